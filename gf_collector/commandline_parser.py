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

import argparse

from gf_collector.common.application_exception import ConfigurationError
from gf_collector.helpers.growthforecast_helper import DEFAULT_PORT, DEFAULT_TIMEOUT
from gf_collector.scheduler import DEFAULT_INTERVAL, DEFAULT_METADATA_INTERVAL


class CommandLineParser:

    def get_options(self, argv=None):
        return self.__validate_arguments(argv)

    def __get_parser(self):
        parser = argparse.ArgumentParser(
            prog='gf-collector',
            description='Copy the latest CloudWatch metric values into GrowthForecast')
        parser.add_argument('--interval', '-i', type=int, default=DEFAULT_INTERVAL,
                            help='Seconds between collection ticks, default={}'.format(DEFAULT_INTERVAL))
        parser.add_argument('--metadata-interval', type=int, default=DEFAULT_METADATA_INTERVAL,
                            help='Seconds between graph metadata syncs, default={}'.format(DEFAULT_METADATA_INTERVAL))
        parser.add_argument('--host', type=str, default='127.0.0.1', help='GrowthForecast host')
        parser.add_argument('--port', '-p', type=int, default=DEFAULT_PORT,
                            help='GrowthForecast port, default={}'.format(DEFAULT_PORT))
        parser.add_argument('--timeout', type=float, default=DEFAULT_TIMEOUT,
                            help='GrowthForecast HTTP timeout in seconds, default={}'.format(DEFAULT_TIMEOUT))
        parser.add_argument('--region', type=str, required=False, help='AWS Region of the load balancers')
        parser.add_argument('--once', action='store_true', help='Run a single tick and exit')
        parser.add_argument('--verbose', '-v', action='store_true', help='Verbose output')
        parser.add_argument('--log-file-name', type=str, required=False, help='Also write the log to this file')
        return parser

    def __validate_arguments(self, argv):
        parser = self.__get_parser()
        config = vars(parser.parse_args(argv))

        if config['interval'] <= 0:
            raise ConfigurationError("Interval must be positive, got: {}".format(config['interval']))
        if config['metadata_interval'] <= 0:
            raise ConfigurationError("Metadata interval must be positive, got: {}".format(config['metadata_interval']))
        if not 0 < config['port'] < 65536:
            raise ConfigurationError("Port must be between 1 and 65535, got: {}".format(config['port']))
        if config['timeout'] <= 0:
            raise ConfigurationError("Timeout must be positive, got: {}".format(config['timeout']))
        if not config['host']:
            raise ConfigurationError("Host cannot be empty")
        return config
