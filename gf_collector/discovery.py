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

from gf_collector.common.application_exception import SourceQueryError
from gf_collector.common.logger import get_logger

logger = get_logger(__name__)


class ResourceDiscovery:
    def __init__(self, metrics_source):
        self.__metrics_source = metrics_source

    def discover(self, group):
        """Return the sorted, distinct values of the group's dimension key.

        A failed query is logged and yields no instances, the next tick retries.
        """
        try:
            series = self.__metrics_source.list_metric_series(
                group.namespace, {group.dimension_key: None}, group.discovery_metric, region_name=group.region)
        except SourceQueryError as e:
            logger.error("Discovery failed for group: %s, code: %s, message: %s", group.name, e.code, e.message)
            return []

        instances = sorted({dimensions[group.dimension_key] for dimensions in series
                            if group.dimension_key in dimensions})
        logger.info("Discovered %d instances for group: %s. Instances: %s", len(instances), group.name, instances)
        return instances
