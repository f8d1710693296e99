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

import time

from gf_collector.common.application_exception import CollectorError
from gf_collector.common.logger import get_logger

logger = get_logger(__name__)

DEFAULT_INTERVAL = 60
DEFAULT_METADATA_INTERVAL = DEFAULT_INTERVAL * 30


class SchedulerContext:
    def __init__(self):
        self.last_metadata_sync = None
        self.running = True
        self.ticks = 0


class Scheduler:
    def __init__(self, groups, discovery, reducer, publisher, synchronizer, interval=DEFAULT_INTERVAL,
                 metadata_interval=DEFAULT_METADATA_INTERVAL, once=False, clock=time.time, sleep=time.sleep):
        self.groups = groups
        self.discovery = discovery
        self.reducer = reducer
        self.publisher = publisher
        self.synchronizer = synchronizer
        self.interval = interval
        self.metadata_interval = metadata_interval
        self.once = once
        self.__clock = clock
        self.__sleep = sleep

    def collect(self, group):
        """Discover, reduce and publish every metric of ``group``.

        The first failure abandons the remaining instances and metrics of the
        group for this tick. Values published before it stay published.
        """
        instances = self.discovery.discover(group)
        try:
            for instance in instances:
                for metric in group.metrics.values():
                    value = self.reducer.reduce(group, instance, metric, group.window)
                    self.publisher.publish(group.name, instance, metric.name, value, metric.mode)
        except CollectorError as e:
            logger.error("Collection for group: %s stopped at %s/%s. %s", group.name, instance, metric.name, e)
        return instances

    def metadata_due(self, context, now):
        if context.last_metadata_sync is None:
            return True
        return now - context.last_metadata_sync > self.metadata_interval

    def tick(self, context):
        discovered = []
        for group in self.groups:
            discovered.append((group, self.collect(group)))

        now = self.__clock()
        if self.metadata_due(context, now):
            for group, instances in discovered:
                if not group.sync_metadata:
                    continue
                try:
                    self.synchronizer.synchronize(group, instances)
                except CollectorError as e:
                    logger.error("Metadata sync for group: %s failed. %s", group.name, e)
            context.last_metadata_sync = now

        context.ticks += 1
        if self.once:
            context.running = False
        return context

    def run(self, context=None):
        context = context or SchedulerContext()
        logger.info("Starting collector. interval: %ss, metadata interval: %ss, groups: %s",
                    self.interval, self.metadata_interval, [group.name for group in self.groups])
        while context.running:
            started = self.__clock()
            self.tick(context)
            logger.debug("Tick %d finished in %.2f seconds", context.ticks, self.__clock() - started)
            if context.running:
                self.__sleep(self.interval)
        logger.info("Collector stopped after %d ticks", context.ticks)
        return context
