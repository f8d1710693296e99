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

"""Reduce a CloudWatch metric stream to the single integer the dashboard stores.

For one (instance, metric) pair the reducer queries a window ending now, keeps
the most recent datapoint, applies the catalog adjustment and truncates the
result to an integer. A window without datapoints reduces to 0, so "no data
yet" and "really zero" look the same on the dashboard.
"""

from datetime import datetime, timezone

from gf_collector.common.application_exception import SourceQueryError
from gf_collector.common.logger import get_logger

logger = get_logger(__name__)

PERIOD_SECONDS = 60


def utc_now():
    return datetime.now(timezone.utc)


def latest_datapoint(datapoints):
    """Return the datapoint with the greatest timestamp, or None.

    The sort is stable, so among datapoints sharing the greatest timestamp the
    one CloudWatch listed first wins.
    """
    if not datapoints:
        return None
    try:
        return sorted(datapoints, key=lambda datapoint: datapoint['Timestamp'], reverse=True)[0]
    except (KeyError, TypeError) as e:
        raise SourceQueryError('MalformedResponse', "Datapoints without a comparable Timestamp: {}".format(e))


class MetricReducer:
    def __init__(self, metrics_source, clock=utc_now, period=PERIOD_SECONDS):
        self.__metrics_source = metrics_source
        self.__clock = clock
        self.__period = period

    def reduce(self, group, instance, metric, window=None):
        window = window if window is not None else group.window
        end_time = self.__clock()
        start_time = end_time - window

        dimensions = {group.dimension_key: instance}
        dimensions.update(dict(metric.dimensions))

        # SourceQueryError propagates, the scheduler abandons the rest of the group
        datapoints = self.__metrics_source.get_datapoints(
            group.namespace, metric.query_name, metric.statistic, self.__period, start_time, end_time, dimensions,
            region_name=group.region)

        datapoint = latest_datapoint(datapoints)
        if datapoint is None:
            logger.debug("No datapoints for %s/%s/%s between %s and %s, reporting 0",
                         group.name, instance, metric.name, start_time.isoformat(), end_time.isoformat())
            return 0

        try:
            value = metric.adjustment.apply(datapoint[metric.statistic])
            return int(value)
        except (KeyError, TypeError, ValueError):
            raise SourceQueryError('MalformedResponse', "{}/{}/{} datapoint has no usable {}: {}".format(
                group.name, instance, metric.name, metric.statistic, datapoint))
