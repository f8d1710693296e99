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

"""HTTP client for the GrowthForecast graph API."""

from urllib.parse import quote

import requests

from gf_collector.common.application_exception import PublishError
from gf_collector.common.logger import get_logger

logger = get_logger(__name__)

DEFAULT_PORT = 5125
DEFAULT_TIMEOUT = 10

# collector mode -> GrowthForecast post mode
POST_MODES = {'gauge': 'gauge', 'counter': 'count'}

# fields every /json/list/all record must carry
GRAPH_KEYS = ('id', 'service_name', 'section_name', 'graph_name')


class GrowthForecastHelper:
    def __init__(self, host='127.0.0.1', port=DEFAULT_PORT, timeout=DEFAULT_TIMEOUT, session=None):
        self.__base_url = "http://{}:{}".format(host, port)
        self.__timeout = timeout
        self.__session = session or requests.Session()

    @property
    def base_url(self):
        return self.__base_url

    def post_metric(self, group, instance, metric_name, value, mode):
        """Create or update the graph for (group, instance, metric_name) with ``value``."""
        path = "/api/{}/{}/{}".format(quote(group, safe=''), quote(instance, safe=''), quote(metric_name, safe=''))
        self.__request('POST', path, data={'number': int(value), 'mode': POST_MODES.get(mode, mode)})

    def get_graph_tree(self):
        """Return every graph, simple and complex, as group -> instance -> graph name -> record."""
        graphs = self.__request('GET', '/json/list/all')
        if graphs is None:
            return {}
        if not isinstance(graphs, list):
            raise PublishError("GET /json/list/all returned an unexpected body: {}".format(graphs))

        tree = {}
        for graph in graphs:
            if not isinstance(graph, dict) or any(key not in graph for key in GRAPH_KEYS):
                raise PublishError("GET /json/list/all returned a malformed graph: {}".format(graph))
            tree.setdefault(graph['service_name'], {}) \
                .setdefault(graph['section_name'], {})[graph['graph_name']] = graph
        return tree

    def edit_graph_metadata(self, graph):
        kind = 'complex' if graph.get('complex') else 'graph'
        self.__request('POST', "/json/edit/{}/{}".format(kind, graph['id']), json=graph)

    def create_composite_graph(self, group, instance, name, label, sum_up, sort, graph_type, mode, stack,
                               constituent_ids):
        payload = {
            'service_name': group,
            'section_name': instance,
            'graph_name': name,
            'description': label,
            'sumup': 1 if sum_up else 0,
            'sort': sort,
            'data': [
                {'graph_id': graph_id, 'type': graph_type, 'gmode': mode, 'stack': 1 if stack else 0}
                for graph_id in constituent_ids
            ],
        }
        self.__request('POST', '/json/create/complex', json=payload)

    def __request(self, method, path, **kwargs):
        url = self.__base_url + path
        logger.debug("%s %s %s", method, url, kwargs)
        try:
            response = self.__session.request(method, url, timeout=self.__timeout, **kwargs)
        except requests.RequestException as e:
            raise PublishError("{} {} failed: {}".format(method, path, e))

        if not response.ok:
            raise PublishError("{} {} returned {}".format(method, path, response.text), status=response.status_code)

        if not response.content:
            return None
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict) and body.get('error'):
            raise PublishError("{} {} rejected: {}".format(method, path, body.get('messages', body)),
                               status=response.status_code)
        return body
