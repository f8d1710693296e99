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

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from gf_collector.common.application_exception import SourceQueryError
from gf_collector.common.logger import get_logger

logger = get_logger(__name__)


class CloudWatchHelper:
    """Read-only access to CloudWatch metrics.

    One boto3 client is created per region on first use and reused afterwards.
    """

    def __init__(self, region_name=None, endpoint_url=None, session=None):
        self.__region_name = region_name
        self.__endpoint_url = endpoint_url
        self.__session = session or boto3.Session()
        self.__clients = {}

    def __get_client(self, region_name=None):
        region_name = region_name or self.__region_name
        if region_name not in self.__clients:
            kwargs = {}
            if region_name is not None:
                kwargs['region_name'] = region_name
            if self.__endpoint_url is not None:
                kwargs['endpoint_url'] = self.__endpoint_url
            self.__clients[region_name] = self.__session.client('cloudwatch', **kwargs)
        return self.__clients[region_name]

    def list_metric_series(self, namespace, dimension_filter, metric_name, region_name=None):
        """Return the dimension sets of every series of ``metric_name`` in ``namespace``.

        ``dimension_filter`` maps dimension names to a value, or to None to match
        any series carrying that dimension. Each series is returned as a
        ``{dimension name: value}`` dictionary.
        """
        dimensions = []
        for name, value in dimension_filter.items():
            if value is None:
                dimensions.append({'Name': name})
            else:
                dimensions.append({'Name': name, 'Value': value})

        series = []
        try:
            paginator = self.__get_client(region_name).get_paginator('list_metrics')
            for page in paginator.paginate(Namespace=namespace, MetricName=metric_name, Dimensions=dimensions):
                for metric in page.get('Metrics', []):
                    series.append({d['Name']: d['Value'] for d in metric.get('Dimensions', [])})
        except ClientError as e:
            raise self.__to_query_error(e)
        except BotoCoreError as e:
            raise SourceQueryError(type(e).__name__, str(e))
        except (KeyError, TypeError, AttributeError) as e:
            raise SourceQueryError('MalformedResponse', "list_metrics returned an unexpected series: {}".format(e))

        logger.debug("list_metrics namespace: %s, metric: %s returned %d series", namespace, metric_name, len(series))
        return series

    def get_datapoints(self, namespace, metric_name, statistic, period, start_time, end_time, dimensions,
                       region_name=None):
        """Return the raw ``Datapoints`` of one metric statistic, in the order CloudWatch sent them."""
        try:
            response = self.__get_client(region_name).get_metric_statistics(
                Namespace=namespace,
                MetricName=metric_name,
                Dimensions=[{'Name': name, 'Value': value} for name, value in dimensions.items()],
                StartTime=start_time,
                EndTime=end_time,
                Period=period,
                Statistics=[statistic])
        except ClientError as e:
            raise self.__to_query_error(e)
        except BotoCoreError as e:
            raise SourceQueryError(type(e).__name__, str(e))

        datapoints = response.get('Datapoints', [])
        logger.debug("get_metric_statistics namespace: %s, metric: %s, dimensions: %s returned %d datapoints",
                     namespace, metric_name, dimensions, len(datapoints))
        return datapoints

    @staticmethod
    def __to_query_error(client_error):
        error = client_error.response.get('Error', {})
        return SourceQueryError(error.get('Code', 'Unknown'), error.get('Message', str(client_error)))
