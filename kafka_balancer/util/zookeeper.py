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
from __future__ import annotations

import logging
from types import TracebackType
from typing import Any

from kazoo.client import KazooClient
from kazoo.exceptions import NoNodeError
from kazoo.protocol.states import ZnodeStat
from kazoo.retry import KazooRetry
from typing_extensions import TypedDict

from kafka_balancer.util.serialization import load_json

TOPICS_PATH = "/brokers/topics"
_log = logging.getLogger('kafka-zookeeper-manager')


class TopicDataDict(TypedDict):
    version: int
    partitions: dict[str, list[int]]


class ClusterPlanPartitionDict(TypedDict):
    topic: str
    partition: int
    replicas: list[int]


class ClusterPlanDict(TypedDict):
    version: int
    partitions: list[ClusterPlanPartitionDict]


class ZK:
    """Opens a read-only connection to a kafka zookeeper.
    To be used in the 'with' statement.

    :param zookeeper: zookeeper connection string, including the kafka chroot
        if any (e.g. "zk1:2181,zk2:2181/kafka").
    """

    def __init__(self, zookeeper: str) -> None:
        self.zookeeper = zookeeper

    def __enter__(self) -> ZK:
        kazoo_retry = KazooRetry(
            max_tries=5,
        )
        self.zk = KazooClient(
            hosts=self.zookeeper,
            read_only=True,
            connection_retry=kazoo_retry,
        )
        _log.debug(
            "ZK: Creating new zookeeper connection: %s", self.zookeeper,
        )
        self.zk.start()
        return self

    def __exit__(self, type: type | None, value: BaseException | None, traceback: TracebackType | None) -> None:
        self.zk.stop()

    def get_children(self, path: str) -> list[str]:
        """Returns the children of the specified node."""
        _log.debug(f"ZK: Getting children of {path}")
        return self.zk.get_children(path)

    def get(self, path: str) -> tuple[bytes, ZnodeStat]:
        """Returns the data of the specified node."""
        _log.debug(f"ZK: Getting {path}")
        return self.zk.get(path)

    def get_json(self, path: str) -> Any:
        """Reads the data of the specified node and converts it to json."""
        data, _ = self.get(path)
        return load_json(data) if data else None

    def get_topics(self, topic_names: list[str] | None = None) -> dict[str, TopicDataDict]:
        """Get the replica assignment of the given topics, or of every topic
        in the cluster when no name is given.

        Topic-data format:
        topic_data = {
            'version': 1,
            'partitions': {
                <p_id>: [<broker_id>, <broker_id>, ...],
            }
        }
        """
        try:
            if not topic_names:
                topic_names = self.get_children(TOPICS_PATH)
        except NoNodeError:
            _log.error("Cluster is empty.")
            return {}

        topics_data = {}
        for topic_id in topic_names:
            try:
                topics_data[topic_id] = self.get_json(f"{TOPICS_PATH}/{topic_id}")
            except NoNodeError:
                _log.info("topic '%s' not found.", topic_id)
        return topics_data

    def get_cluster_plan(self, topic_names: list[str] | None = None) -> ClusterPlanDict:
        """Fetch the cluster assignment from zookeeper, in the format used by
        kafka reassignment plans. Partitions are sorted by topic and partition
        id so that the result doesn't depend on the znode listing order.
        """
        _log.info('Fetching current cluster-topology from Zookeeper...')
        cluster_layout = self.get_topics(topic_names)
        partitions: list[ClusterPlanPartitionDict] = [
            {
                'topic': topic_id,
                'partition': int(p_id),
                'replicas': replicas,
            }
            for topic_id, topic_info in cluster_layout.items()
            if topic_info
            for p_id, replicas in topic_info['partitions'].items()
        ]
        partitions.sort(key=lambda p: (p['topic'], p['partition']))
        return {
            'version': 1,
            'partitions': partitions,
        }
