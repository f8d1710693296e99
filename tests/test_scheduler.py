import logging
from collections import OrderedDict
from datetime import timedelta
from unittest.mock import MagicMock

from gf_collector.catalog import ELB, SUM, MetricDefinition, ResourceGroup
from gf_collector.discovery import ResourceDiscovery
from gf_collector.helpers.growthforecast_helper import GrowthForecastHelper
from gf_collector.publisher import Publisher
from gf_collector.reducer import MetricReducer
from gf_collector.scheduler import DEFAULT_METADATA_INTERVAL, Scheduler, SchedulerContext
from gf_collector.synchronizer import MetadataSynchronizer

from conftest import NOW, FakeDashboard, FakeMetricsSource

GROUP = ResourceGroup(
    name='G',
    namespace='Test/G',
    dimension_key='Name',
    discovery_metric='M1',
    metrics=OrderedDict((name, MetricDefinition(name, SUM)) for name in ('M1', 'M2', 'M3')),
)


def datapoints(value):
    return [{'Timestamp': NOW - timedelta(minutes=1), 'Sum': value}]


class RecordingSynchronizer:
    def __init__(self):
        self.calls = []

    def synchronize(self, group, instances):
        self.calls.append((group.name, list(instances)))


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def build(source, dashboard, groups=(GROUP,), synchronizer=None, **kwargs):
    return Scheduler(
        groups,
        ResourceDiscovery(source),
        MetricReducer(source, clock=lambda: NOW),
        Publisher(dashboard),
        synchronizer or MetadataSynchronizer(dashboard),
        **kwargs)


def test_metrics_are_published_in_order():
    source = FakeMetricsSource(series=[{'Name': 'b'}, {'Name': 'a'}],
                               datapoints={'M1': datapoints(1), 'M2': datapoints(2), 'M3': datapoints(3)})
    dashboard = FakeDashboard()

    build(source, dashboard).collect(GROUP)

    assert [(post[1], post[2], post[3]) for post in dashboard.posts] == [
        ('a', 'M1', 1), ('a', 'M2', 2), ('a', 'M3', 3),
        ('b', 'M1', 1), ('b', 'M2', 2), ('b', 'M3', 3)]


def test_failure_abandons_rest_of_group_for_the_tick(caplog):
    source = FakeMetricsSource(series=[{'Name': 'x'}],
                               datapoints={'M1': datapoints(1), 'M3': datapoints(3)}, failing=['M2'])
    dashboard = FakeDashboard()
    scheduler = build(source, dashboard, synchronizer=RecordingSynchronizer())
    context = SchedulerContext()

    with caplog.at_level(logging.ERROR):
        scheduler.tick(context)

    assert [post[2] for post in dashboard.posts] == ['M1']
    assert [query['metric_name'] for query in source.queries] == ['M1', 'M2']
    assert 'Throttling' in caplog.text

    source.failing.clear()
    scheduler.tick(context)

    assert [post[2] for post in dashboard.posts] == ['M1', 'M1', 'M2', 'M3']
    assert context.ticks == 2


def test_publish_failure_abandons_rest_of_group():
    source = FakeMetricsSource(series=[{'Name': 'x'}, {'Name': 'y'}],
                               datapoints={'M1': datapoints(1), 'M2': datapoints(2), 'M3': datapoints(3)})
    dashboard = FakeDashboard()
    dashboard.failing_posts.add('M2')

    build(source, dashboard).collect(GROUP)

    assert [(post[1], post[2]) for post in dashboard.posts] == [('x', 'M1')]


def test_failing_group_does_not_stop_the_next_group():
    other = GROUP._replace(name='H', metrics=OrderedDict([('M3', MetricDefinition('M3', SUM))]))
    source = FakeMetricsSource(series=[{'Name': 'x'}],
                               datapoints={'M3': datapoints(3)}, failing=['M1'])
    dashboard = FakeDashboard()

    build(source, dashboard, groups=(GROUP, other), synchronizer=RecordingSynchronizer()).tick(SchedulerContext())

    assert [(post[0], post[2]) for post in dashboard.posts] == [('H', 'M3')]


def test_metadata_due():
    scheduler = build(FakeMetricsSource(), FakeDashboard(), metadata_interval=1800)
    context = SchedulerContext()

    assert scheduler.metadata_due(context, 100.0)
    context.last_metadata_sync = 100.0
    assert not scheduler.metadata_due(context, 100.0 + 1800)
    assert scheduler.metadata_due(context, 100.0 + 1801)


def test_metadata_sync_runs_on_slow_cadence():
    clock = FakeClock(1000.0)
    synchronizer = RecordingSynchronizer()
    source = FakeMetricsSource(series=[{'Name': 'x'}])
    scheduler = build(source, FakeDashboard(), synchronizer=synchronizer, metadata_interval=300, clock=clock)
    context = SchedulerContext()

    scheduler.tick(context)
    assert synchronizer.calls == [('G', ['x'])]
    assert context.last_metadata_sync == 1000.0

    clock.now = 1060.0
    scheduler.tick(context)
    assert len(synchronizer.calls) == 1

    clock.now = 1301.0
    scheduler.tick(context)
    assert len(synchronizer.calls) == 2
    assert context.last_metadata_sync == 1301.0


def test_groups_without_metadata_sync_are_skipped():
    synchronizer = RecordingSynchronizer()
    quiet = GROUP._replace(name='Q', sync_metadata=False)
    build(FakeMetricsSource(), FakeDashboard(), groups=(GROUP, quiet), synchronizer=synchronizer) \
        .tick(SchedulerContext())

    assert [call[0] for call in synchronizer.calls] == ['G']


def test_once_runs_a_single_tick_without_sleeping():
    sleeps = []
    scheduler = build(FakeMetricsSource(), FakeDashboard(), once=True, sleep=sleeps.append)

    context = scheduler.run()

    assert context.ticks == 1
    assert context.running is False
    assert sleeps == []


def test_run_sleeps_between_ticks():
    sleeps = []
    context = SchedulerContext()

    def stop_after_three(seconds):
        sleeps.append(seconds)
        if len(sleeps) == 3:
            context.running = False

    scheduler = build(FakeMetricsSource(), FakeDashboard(), interval=15, sleep=stop_after_three)
    scheduler.run(context)

    assert context.ticks == 3
    assert sleeps == [15, 15, 15]


def test_default_metadata_interval_is_thirty_ticks():
    assert DEFAULT_METADATA_INTERVAL == 30 * 60


def test_end_to_end_tick_builds_composites_over_two_syncs():
    every_statistic = [{'Timestamp': NOW, 'Sum': 5.0, 'Average': 0.5, 'Maximum': 5.0, 'Minimum': 1.0}]
    source = FakeMetricsSource(series=[{'LoadBalancerName': 'web'}],
                               datapoints={name: every_statistic for name in ELB.metrics})
    dashboard = FakeDashboard()
    clock = FakeClock(0.0)
    scheduler = build(source, dashboard, groups=(ELB,), metadata_interval=10, clock=clock)
    context = SchedulerContext()

    scheduler.tick(context)
    assert {c['name'] for c in dashboard.creations} == {'Backend_Error', 'ELB_Error'}
    assert dashboard.tree['ELB']['web']['Latency']['adjustval'] == '1'

    clock.now = 20.0
    scheduler.tick(context)
    assert len(dashboard.creations) == 2


def test_latency_is_posted_and_drawn_in_milliseconds():
    average = [{'Timestamp': NOW, 'Sum': 1.0, 'Average': 0.05, 'Maximum': 1.0, 'Minimum': 1.0}]
    source = FakeMetricsSource(series=[{'LoadBalancerName': 'web'}],
                               datapoints={name: average for name in ELB.metrics})
    dashboard = FakeDashboard()

    build(source, dashboard, groups=(ELB,), once=True).run()

    assert [post[3] for post in dashboard.posts if post[2] == 'Latency'] == [50]
    latency = dashboard.tree['ELB']['web']['Latency']
    assert latency['adjust'] == '*'
    assert 50 * float(latency['adjustval']) == 50


def test_malformed_datapoint_stops_the_group_without_escaping(caplog):
    source = FakeMetricsSource(series=[{'Name': 'x'}],
                               datapoints={'M1': datapoints(1), 'M2': [{'Timestamp': NOW}], 'M3': datapoints(3)})
    dashboard = FakeDashboard()
    scheduler = build(source, dashboard, once=True, synchronizer=RecordingSynchronizer())

    with caplog.at_level(logging.ERROR):
        context = scheduler.run()

    assert context.ticks == 1
    assert [post[2] for post in dashboard.posts] == ['M1']
    assert 'MalformedResponse' in caplog.text


def test_malformed_graph_list_does_not_stop_the_collector(caplog):
    session = MagicMock()
    session.request.return_value.ok = True
    session.request.return_value.content = b'[...]'
    session.request.return_value.json.return_value = [
        {'id': 1, 'service_name': 'G', 'graph_name': 'M1'}]
    dashboard = GrowthForecastHelper('gf.example.com', session=session)
    source = FakeMetricsSource(series=[{'Name': 'x'}],
                               datapoints={'M1': datapoints(1), 'M2': datapoints(2), 'M3': datapoints(3)})
    scheduler = build(source, FakeDashboard(), once=True, synchronizer=MetadataSynchronizer(dashboard))

    with caplog.at_level(logging.ERROR):
        context = scheduler.run()

    assert context.ticks == 1
    assert context.last_metadata_sync is not None
    assert 'malformed graph' in caplog.text
