# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License"). You may not use this file except in compliance
# with the License. A copy of the License is located at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# or in the 'license' file accompanying this file. This file is distributed on an 'AS IS' BASIS, WITHOUT WARRANTIES
# OR CONDITIONS OF ANY KIND, express or implied. See the License for the specific language governing permissions
# and limitations under the License.

import logging
import os

import boto3

LOG_FORMAT = '%(asctime)s %(levelname)-8s [%(filename)s:%(lineno)d]  %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
ROOT_LOGGER_NAME = 'gf_collector'
DEBUG_ENVIRONMENT_VARIABLE = 'GF_COLLECTOR_DEBUG'


def get_logger(name):
    return logging.getLogger(name)


def configure_logging(verbose=False, log_file_name=None):
    """Attach console (and optionally file) handlers to the package logger.

    DEBUG is used when ``verbose`` is set or the GF_COLLECTOR_DEBUG environment
    variable is non-empty, INFO otherwise.
    """
    level = logging.INFO
    if verbose or os.environ.get(DEBUG_ENVIRONMENT_VARIABLE):
        level = logging.DEBUG

    # botocore logs every credential lookup at INFO
    boto3.set_stream_logger(name='botocore.credentials', level=logging.ERROR)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(__get_console_handler(level))
    if log_file_name:
        logger.addHandler(__get_file_handler(log_file_name, level))
    return logger


def __get_formatter():
    return logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)


def __get_console_handler(level):
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(__get_formatter())
    return console_handler


def __get_file_handler(log_file_name, level):
    file_handler = logging.FileHandler(log_file_name, mode='a')
    file_handler.setLevel(level)
    file_handler.setFormatter(__get_formatter())
    return file_handler
