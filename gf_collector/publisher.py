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

from gf_collector.common.logger import get_logger

logger = get_logger(__name__)


class Publisher:
    def __init__(self, dashboard):
        self.__dashboard = dashboard

    def publish(self, group, instance, metric_name, value, mode):
        """Upsert one value, PublishError is left to the caller."""
        logger.debug("Posting %s/%s/%s = %s (%s)", group, instance, metric_name, value, mode)
        self.__dashboard.post_metric(group, instance, metric_name, int(value), mode)
