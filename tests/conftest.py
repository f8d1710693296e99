"""
Pytest configuration and shared fixtures for gf-collector tests
"""
import os
from datetime import datetime, timezone

import boto3
import pytest
from moto import mock_aws

from gf_collector.common.application_exception import PublishError, SourceQueryError

NOW = datetime(2024, 2, 11, 13, 0, 0, tzinfo=timezone.utc)


class FakeMetricsSource:
    """In-memory CloudWatch stand-in.

    ``series`` is the list returned by list_metric_series, ``datapoints`` maps a
    CloudWatch metric name to its datapoints and ``failing`` holds metric names
    whose queries raise SourceQueryError.
    """

    def __init__(self, series=None, datapoints=None, failing=()):
        self.series = series or []
        self.datapoints = datapoints or {}
        self.failing = set(failing)
        self.discovery_error = None
        self.queries = []

    def list_metric_series(self, namespace, dimension_filter, metric_name, region_name=None):
        if self.discovery_error is not None:
            raise self.discovery_error
        return list(self.series)

    def get_datapoints(self, namespace, metric_name, statistic, period, start_time, end_time, dimensions,
                       region_name=None):
        self.queries.append({
            'namespace': namespace, 'metric_name': metric_name, 'statistic': statistic, 'period': period,
            'start_time': start_time, 'end_time': end_time, 'dimensions': dict(dimensions),
            'region_name': region_name})
        if metric_name in self.failing:
            raise SourceQueryError('Throttling', 'Rate exceeded')
        return list(self.datapoints.get(metric_name, []))


class FakeDashboard:
    """In-memory GrowthForecast that applies posts, edits and composite creations to its tree."""

    def __init__(self, tree=None):
        self.tree = tree or {}
        self.posts = []
        self.edits = []
        self.creations = []
        self.failing_edits = set()
        self.failing_posts = set()
        self.tree_error = None
        self.__next_id = 1000

    def add_graph(self, group, instance, name, **attributes):
        self.__next_id += 1
        graph = {'id': self.__next_id, 'service_name': group, 'section_name': instance, 'graph_name': name,
                 'complex': False}
        graph.update(attributes)
        self.tree.setdefault(group, {}).setdefault(instance, {})[name] = graph
        return graph

    def post_metric(self, group, instance, metric_name, value, mode):
        if metric_name in self.failing_posts:
            raise PublishError("post rejected", status=500)
        self.posts.append((group, instance, metric_name, value, mode))
        if metric_name not in self.tree.get(group, {}).get(instance, {}):
            self.add_graph(group, instance, metric_name)

    def get_graph_tree(self):
        if self.tree_error is not None:
            raise self.tree_error
        return {group: {instance: {name: dict(graph) for name, graph in graphs.items()}
                        for instance, graphs in sections.items()}
                for group, sections in self.tree.items()}

    def edit_graph_metadata(self, graph):
        if graph['graph_name'] in self.failing_edits:
            raise PublishError("edit rejected", status=500)
        self.edits.append(dict(graph))
        self.tree[graph['service_name']][graph['section_name']][graph['graph_name']] = dict(graph)

    def create_composite_graph(self, group, instance, name, label, sum_up, sort, graph_type, mode, stack,
                               constituent_ids):
        self.creations.append({
            'group': group, 'instance': instance, 'name': name, 'label': label, 'sum_up': sum_up, 'sort': sort,
            'graph_type': graph_type, 'mode': mode, 'stack': stack, 'constituent_ids': list(constituent_ids)})
        self.add_graph(group, instance, name, complex=True, description=label)


@pytest.fixture
def fixed_clock():
    return lambda: NOW


@pytest.fixture
def metrics_source():
    return FakeMetricsSource()


@pytest.fixture
def dashboard():
    return FakeDashboard()


@pytest.fixture(scope="function")
def aws_credentials():
    """Mocked AWS Credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture(scope="function")
def cloudwatch_client(aws_credentials):
    """Create a mocked CloudWatch client."""
    with mock_aws():
        yield boto3.client("cloudwatch", region_name="us-east-1")
