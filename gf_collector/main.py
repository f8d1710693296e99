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

"""gf-collector entry point.

Usage:
    gf-collector --host <growthforecast-host> --port 5125 \\
        [--region <aws-region-name>] [--interval 60] [--metadata-interval 1800] \\
        [--once] [--verbose] [--log-file-name <file>]
"""

import json
import sys
from signal import SIGINT, SIGTERM, signal

from gf_collector.catalog import RESOURCE_GROUPS
from gf_collector.commandline_parser import CommandLineParser
from gf_collector.common.application_exception import ConfigurationError
from gf_collector.common.logger import configure_logging, get_logger
from gf_collector.discovery import ResourceDiscovery
from gf_collector.helpers.cloudwatch_helper import CloudWatchHelper
from gf_collector.helpers.growthforecast_helper import GrowthForecastHelper
from gf_collector.publisher import Publisher
from gf_collector.reducer import MetricReducer
from gf_collector.scheduler import Scheduler
from gf_collector.synchronizer import MetadataSynchronizer

logger = get_logger(__name__)


def exit_handler(signal_received, frame):
    logger.info("Signal %s received. Exiting", signal_received)
    sys.exit(0)


def build_scheduler(app_config, metrics_source=None, dashboard=None, groups=RESOURCE_GROUPS):
    """Wire the collaborators once, the components only ever see what is passed in here."""
    if metrics_source is None:
        metrics_source = CloudWatchHelper(region_name=app_config.get('region'))
    if dashboard is None:
        dashboard = GrowthForecastHelper(app_config['host'], app_config['port'], timeout=app_config['timeout'])

    return Scheduler(
        groups,
        ResourceDiscovery(metrics_source),
        MetricReducer(metrics_source),
        Publisher(dashboard),
        MetadataSynchronizer(dashboard),
        interval=app_config['interval'],
        metadata_interval=app_config['metadata_interval'],
        once=app_config['once'])


def main(argv=None):
    try:
        app_config = CommandLineParser().get_options(argv)
    except ConfigurationError as e:
        configure_logging()
        logger.error("%s", e)
        return 1

    configure_logging(app_config['verbose'], app_config['log_file_name'])
    logger.info("Command line arguments given: %s", json.dumps(app_config))

    signal(SIGINT, exit_handler)
    signal(SIGTERM, exit_handler)

    scheduler = build_scheduler(app_config)
    scheduler.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
