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

"""Declarative catalog of the metrics collected and the graphs they are drawn as.

Each resource group pairs a CloudWatch namespace with the dimension used to find
its instances, the metrics to copy for every instance, and the composite graphs
stacked on top of those metrics. The same definitions drive both the value
reduction (statistic, adjustment) and the dashboard display metadata.
"""

from collections import OrderedDict
from datetime import timedelta
from typing import Dict, NamedTuple, Optional, Tuple

SUM = 'Sum'
AVERAGE = 'Average'
MAXIMUM = 'Maximum'
MINIMUM = 'Minimum'
STATISTICS = (SUM, AVERAGE, MAXIMUM, MINIMUM)

GAUGE = 'gauge'
COUNTER = 'counter'
MODES = (GAUGE, COUNTER)

AREA = 'AREA'
LINE = 'LINE1'
GRAPH_TYPES = (AREA, LINE)


class NoAdjust(NamedTuple):
    def apply(self, value):
        return value


class ScaleBy(NamedTuple):
    factor: float

    def apply(self, value):
        return value * self.factor


NO_ADJUST = NoAdjust()

# Values are converted before they are posted, so the dashboard must draw them as stored
DISPLAY_ADJUST = '*'
DISPLAY_ADJUSTVAL = '1'


class MetricDefinition(NamedTuple):
    name: str
    statistic: str
    mode: str = GAUGE
    adjustment: object = NO_ADJUST
    color: Optional[str] = None
    description: Optional[str] = None
    sort_order: Optional[int] = None
    graph_type: Optional[str] = None
    # CloudWatch metric to query when it differs from the graph name
    metric_name: Optional[str] = None
    dimensions: Tuple[Tuple[str, str], ...] = ()

    @property
    def query_name(self):
        return self.metric_name or self.name

    def display_attributes(self):
        """Dashboard graph fields owned by the catalog, keyed by their dashboard names."""
        attributes = {
            'description': self.description or self.name,
            'adjust': DISPLAY_ADJUST,
            'adjustval': DISPLAY_ADJUSTVAL,
        }
        if self.color is not None:
            attributes['color'] = self.color
        if self.sort_order is not None:
            attributes['sort'] = self.sort_order
        if self.graph_type is not None:
            attributes['type'] = self.graph_type
        return attributes


class CompositeGraphDefinition(NamedTuple):
    name: str
    description: str
    constituents: Tuple[str, ...]
    sum_up: bool = True
    sort: int = 19
    graph_type: str = AREA
    mode: str = GAUGE
    stack: bool = True


class ResourceGroup(NamedTuple):
    name: str
    namespace: str
    dimension_key: str
    discovery_metric: str
    metrics: Dict[str, MetricDefinition]
    composites: Tuple[CompositeGraphDefinition, ...] = ()
    window: timedelta = timedelta(minutes=5)
    region: Optional[str] = None
    sync_metadata: bool = True

    def metric(self, name):
        return self.metrics.get(name)


def _check_choice(owner, field, value, choices):
    if value not in choices:
        raise ValueError("{}: {} must be one of {}, got: {}".format(owner, field, choices, value))


def _table(*definitions):
    table = OrderedDict()
    for definition in definitions:
        if definition.name in table:
            raise ValueError("Duplicate metric definition: {}".format(definition.name))
        _check_choice(definition.name, 'statistic', definition.statistic, STATISTICS)
        _check_choice(definition.name, 'mode', definition.mode, MODES)
        if definition.graph_type is not None:
            _check_choice(definition.name, 'graph_type', definition.graph_type, GRAPH_TYPES)
        table[definition.name] = definition
    return table


def _composites(metrics, *composites):
    for composite in composites:
        _check_choice(composite.name, 'graph_type', composite.graph_type, GRAPH_TYPES)
        _check_choice(composite.name, 'mode', composite.mode, MODES)
        unknown = [name for name in composite.constituents if name not in metrics]
        if unknown:
            raise ValueError("{}: unknown constituent metrics {}".format(composite.name, unknown))
    return composites


# ----------------------------------------------
# Classic load balancer metrics, one section per load balancer
ELB_METRICS = _table(
    MetricDefinition('RequestCount', SUM, color='#1111cc', description='Requests', sort_order=19, graph_type=AREA),
    MetricDefinition('Latency', AVERAGE, adjustment=ScaleBy(1000), color='#cc6600',
                     description='Latency (ms)', sort_order=18, graph_type=LINE),
    MetricDefinition('HealthyHostCount', MINIMUM, color='#00aa00', description='Healthy hosts', sort_order=17),
    MetricDefinition('UnHealthyHostCount', MAXIMUM, color='#cc0000', description='Unhealthy hosts', sort_order=16),
    MetricDefinition('HTTPCode_Backend_2XX', SUM, color='#33cc33', description='Backend 2XX', sort_order=15),
    MetricDefinition('HTTPCode_Backend_3XX', SUM, color='#3399ff', description='Backend 3XX', sort_order=14),
    MetricDefinition('HTTPCode_Backend_4XX', SUM, color='#ff9900', description='Backend 4XX', sort_order=13),
    MetricDefinition('HTTPCode_Backend_5XX', SUM, color='#ff0000', description='Backend 5XX', sort_order=12),
    MetricDefinition('HTTPCode_ELB_4XX', SUM, color='#cc9933', description='ELB 4XX', sort_order=11),
    MetricDefinition('HTTPCode_ELB_5XX', SUM, color='#990000', description='ELB 5XX', sort_order=10),
    MetricDefinition('BackendConnectionErrors', SUM, color='#9933cc', description='Backend connection errors',
                     sort_order=9),
    MetricDefinition('SurgeQueueLength', MAXIMUM, color='#666666', description='Surge queue length', sort_order=8),
    MetricDefinition('SpilloverCount', SUM, color='#000000', description='Spillover', sort_order=7),
)

ELB_COMPOSITES = _composites(
    ELB_METRICS,
    CompositeGraphDefinition('Backend_Error', 'Backend errors (5XX/4XX/3XX)',
                             ('HTTPCode_Backend_5XX', 'HTTPCode_Backend_4XX', 'HTTPCode_Backend_3XX')),
    CompositeGraphDefinition('ELB_Error', 'ELB errors (5XX/4XX)',
                             ('HTTPCode_ELB_5XX', 'HTTPCode_ELB_4XX')),
)


# ----------------------------------------------
# Estimated charges per AWS service, one section per currency
def _service_charge(service_name, color, sort_order):
    return MetricDefinition(service_name, MAXIMUM, color=color, description='{} (USD)'.format(service_name),
                            sort_order=sort_order, graph_type=AREA, metric_name='EstimatedCharges',
                            dimensions=(('ServiceName', service_name),))


BILLING_METRICS = _table(
    _service_charge('AmazonEC2', '#ff9900', 19),
    _service_charge('AmazonS3', '#569a31', 18),
    _service_charge('AmazonRDS', '#3b48cc', 17),
    _service_charge('AmazonCloudFront', '#8c4fff', 16),
    _service_charge('AmazonRoute53', '#8a2be2', 15),
    _service_charge('AmazonSNS', '#cc2264', 14),
    _service_charge('AmazonSES', '#dd344c', 13),
    _service_charge('AmazonDynamoDB', '#2e27ad', 12),
    _service_charge('AWSDataTransfer', '#7aa116', 11),
)

BILLING_COMPOSITES = _composites(
    BILLING_METRICS,
    CompositeGraphDefinition('Summary', 'Estimated charges by service', tuple(BILLING_METRICS)),
)


# ----------------------------------------------
ELB = ResourceGroup(
    name='ELB',
    namespace='AWS/ELB',
    dimension_key='LoadBalancerName',
    discovery_metric='RequestCount',
    metrics=ELB_METRICS,
    composites=ELB_COMPOSITES,
    window=timedelta(minutes=5),
)

# CloudWatch publishes billing data only in us-east-1, a few times a day
BILLING = ResourceGroup(
    name='Billing',
    namespace='AWS/Billing',
    dimension_key='Currency',
    discovery_metric='EstimatedCharges',
    metrics=BILLING_METRICS,
    composites=BILLING_COMPOSITES,
    window=timedelta(hours=5),
    region='us-east-1',
)

RESOURCE_GROUPS = (ELB, BILLING)
