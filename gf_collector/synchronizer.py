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

"""Keep dashboard graph metadata in line with the metric catalog.

Display attributes of existing graphs are overwritten from the catalog and
missing composite graphs are created. Both steps only write when something is
different or absent, so a second run against an unchanged dashboard issues no
calls besides the initial graph listing.

Unlike metric collection, a failure here is logged per graph and the run moves
on to the next graph or instance.
"""

from gf_collector.common.application_exception import PublishError
from gf_collector.common.logger import get_logger

logger = get_logger(__name__)


def _differs(current, wanted):
    if current is None:
        return True
    return str(current) != str(wanted)


class MetadataSynchronizer:
    def __init__(self, dashboard):
        self.__dashboard = dashboard

    def synchronize(self, group, instances):
        summary = {'updated': 0, 'created': 0, 'skipped': 0, 'failed': 0}
        try:
            tree = self.__dashboard.get_graph_tree()
        except PublishError as e:
            logger.error("Unable to read the graph tree for group: %s. %s", group.name, e)
            summary['failed'] += 1
            return summary

        sections = tree.get(group.name, {})
        self.__push_display_attributes(group, sections, summary)
        for instance in instances:
            self.__create_missing_composites(group, instance, sections.get(instance, {}), summary)

        logger.info("Metadata sync for group: %s completed. %s", group.name, summary)
        return summary

    def __push_display_attributes(self, group, sections, summary):
        for instance in sorted(sections):
            graphs = sections[instance]
            for graph_name in sorted(graphs):
                graph = graphs[graph_name]
                metric = group.metric(graph_name)
                if metric is None or graph.get('complex'):
                    continue

                wanted = metric.display_attributes()
                changes = {key: value for key, value in wanted.items() if _differs(graph.get(key), value)}
                if not changes:
                    continue

                updated = dict(graph)
                updated.update(changes)
                try:
                    self.__dashboard.edit_graph_metadata(updated)
                except PublishError as e:
                    logger.error("Unable to update graph %s/%s/%s (id: %s). %s",
                                 group.name, instance, graph_name, graph.get('id'), e)
                    summary['failed'] += 1
                    continue
                graphs[graph_name] = updated
                summary['updated'] += 1
                logger.info("Updated graph %s/%s/%s: %s", group.name, instance, graph_name, sorted(changes))

    def __create_missing_composites(self, group, instance, graphs, summary):
        for composite in group.composites:
            if composite.name in graphs:
                continue

            missing = [name for name in composite.constituents
                       if name not in graphs or graphs[name].get('complex')]
            if missing:
                # the graphs appear once values are posted, try again next sync
                logger.warning("Skipping composite %s/%s/%s, constituent graphs not found yet: %s",
                               group.name, instance, composite.name, missing)
                summary['skipped'] += 1
                continue

            constituent_ids = [graphs[name]['id'] for name in composite.constituents]
            try:
                self.__dashboard.create_composite_graph(
                    group.name, instance, composite.name, composite.description, composite.sum_up,
                    composite.sort, composite.graph_type, composite.mode, composite.stack, constituent_ids)
            except PublishError as e:
                logger.error("Unable to create composite %s/%s/%s. %s", group.name, instance, composite.name, e)
                summary['failed'] += 1
                continue
            summary['created'] += 1
            logger.info("Created composite %s/%s/%s from ids %s",
                        group.name, instance, composite.name, constituent_ids)
