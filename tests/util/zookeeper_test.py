# Copyright 2016 Yelp Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
from unittest import mock

from kazoo.exceptions import NoNodeError

from kafka_balancer.util.serialization import dump_json
from kafka_balancer.util.zookeeper import ZK


@mock.patch(
    'kafka_balancer.util.zookeeper.KazooClient',
    autospec=True
)
class TestZK:

    def test_connection(self, mock_client):
        with ZK('zk1:2181,zk2:2181/kafka'):
            mock_client.return_value.start.assert_called_once_with()

        assert mock_client.call_args[1]['hosts'] == 'zk1:2181,zk2:2181/kafka'
        assert mock_client.call_args[1]['read_only'] is True
        mock_client.return_value.stop.assert_called_once_with()

    def test_get_children(self, mock_client):
        with ZK('some_ip') as zk:
            zk.get_children('/brokers/topics')

            mock_client.return_value.get_children.assert_called_once_with('/brokers/topics')

    def test_get_json(self, mock_client):
        mock_client.return_value.get.return_value = (b'{"version": 1}', mock.sentinel.stat)

        with ZK('some_ip') as zk:
            assert zk.get_json('/some/path') == {'version': 1}

    def test_get_json_empty(self, mock_client):
        mock_client.return_value.get.return_value = (b'', mock.sentinel.stat)

        with ZK('some_ip') as zk:
            assert zk.get_json('/some/path') is None

    def test_get_topics(self, mock_client):
        topics = {
            'topic2': {'version': 1, 'partitions': {'0': [1, 2]}},
            'topic1': {'version': 1, 'partitions': {'1': [2, 3], '0': [3, 1]}},
        }
        mock_client.return_value.get_children.return_value = list(topics)
        mock_client.return_value.get.side_effect = lambda path: (
            dump_json(topics[path.rsplit('/', 1)[1]]).encode(),
            mock.sentinel.stat,
        )

        with ZK('some_ip') as zk:
            assert zk.get_topics() == topics

    def test_get_topics_empty_cluster(self, mock_client):
        mock_client.return_value.get_children.side_effect = NoNodeError()

        with ZK('some_ip') as zk:
            assert zk.get_topics() == {}

    def test_get_topics_missing_topic(self, mock_client):
        mock_client.return_value.get.side_effect = NoNodeError()

        with ZK('some_ip') as zk:
            assert zk.get_topics(['topic1']) == {}

    def test_get_cluster_plan(self, mock_client):
        topics = {
            'topic2': {'version': 1, 'partitions': {'0': [1, 2]}},
            'topic1': {'version': 1, 'partitions': {'1': [2, 3], '0': [3, 1]}},
        }
        mock_client.return_value.get_children.return_value = list(topics)
        mock_client.return_value.get.side_effect = lambda path: (
            dump_json(topics[path.rsplit('/', 1)[1]]).encode(),
            mock.sentinel.stat,
        )

        with ZK('some_ip') as zk:
            plan = zk.get_cluster_plan()

        assert plan == {
            'version': 1,
            'partitions': [
                {'topic': 'topic1', 'partition': 0, 'replicas': [3, 1]},
                {'topic': 'topic1', 'partition': 1, 'replicas': [2, 3]},
                {'topic': 'topic2', 'partition': 0, 'replicas': [1, 2]},
            ],
        }
