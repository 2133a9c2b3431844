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
"""Cluster discovery configuration.

A cluster type is described by a ``<cluster_type>.yaml`` file looked up in
``$KAFKA_DISCOVERY_DIR``, ``~/.kafka_discovery`` and ``/etc/kafka_discovery``
(in this order). Example:

.. code-block:: yaml

   clusters:
     cluster1:
       broker_list:
         - "broker1:9092"
       zookeeper: "zookeeper1:2181/mykafka"
   local_config:
     cluster: cluster1
"""
from __future__ import annotations

import logging
import os
from typing import NamedTuple

import yaml
from typing_extensions import TypedDict

from kafka_balancer.util.error import ConfigurationError
from kafka_balancer.util.error import InvalidConfigurationError
from kafka_balancer.util.error import MissingConfigurationError


DEFAULT_KAFKA_TOPOLOGY_BASE_PATH = '/etc/kafka_discovery'
HOME_OVERRIDE = '.kafka_discovery'


class ClusterConfig(NamedTuple):
    """Cluster configuration.
    :param name: cluster name
    :param broker_list: list of kafka brokers
    :param zookeeper: zookeeper connection string
    """
    type: str
    name: str
    broker_list: list[str]
    zookeeper: str


class ClusterConfigDict(TypedDict):
    broker_list: list[str]
    zookeeper: str


class LocalConfigDict(TypedDict):
    cluster: str


def load_yaml_config(config_path: str) -> dict:
    with open(config_path) as config_file:
        return yaml.safe_load(config_file)


class TopologyConfiguration:
    """Topology configuration for a kafka cluster type.

    :param cluster_type: kafka cluster type, the name of the yaml file.
    :param kafka_topology_path: path of the directory containing the
        <cluster_type>.yaml config
    """

    def __init__(
        self,
        cluster_type: str,
        kafka_topology_path: str = DEFAULT_KAFKA_TOPOLOGY_BASE_PATH,
    ) -> None:
        self.kafka_topology_path = kafka_topology_path
        self.cluster_type = cluster_type
        self.log = logging.getLogger(self.__class__.__name__)
        self.clusters: dict[str, ClusterConfigDict] = {}
        self.local_config: LocalConfigDict | None = None
        self.load_topology_config()

    def load_topology_config(self) -> None:
        """Load the topology configuration"""
        config_path = os.path.join(
            self.kafka_topology_path,
            f'{self.cluster_type}.yaml',
        )
        self.log.debug("Loading configuration from %s", config_path)
        if not os.path.isfile(config_path):
            raise MissingConfigurationError(
                "Topology configuration {} for cluster {} "
                "does not exist".format(config_path, self.cluster_type)
            )
        topology_config = load_yaml_config(config_path)
        if not isinstance(topology_config, dict) or 'clusters' not in topology_config:
            self.log.error("Invalid topology file %s", config_path)
            raise InvalidConfigurationError(
                f"Invalid topology file {config_path}"
            )
        self.clusters = topology_config['clusters']
        self.local_config = topology_config.get('local_config')

    def _build_cluster_config(self, name: str) -> ClusterConfig:
        try:
            cluster = self.clusters[name]
            return ClusterConfig(
                type=self.cluster_type,
                name=name,
                broker_list=cluster['broker_list'],
                zookeeper=cluster['zookeeper'],
            )
        except (KeyError, TypeError):
            self.log.exception("Invalid topology file")
            raise InvalidConfigurationError(
                f"Invalid configuration for cluster {name}"
            )

    def get_cluster_by_name(self, name: str) -> ClusterConfig:
        if name not in self.clusters:
            raise ConfigurationError(f"No cluster with name: {name}")
        return self._build_cluster_config(name)

    def get_local_cluster(self) -> ClusterConfig:
        if not self.local_config:
            raise ConfigurationError("No default local cluster configured")
        try:
            name = self.local_config['cluster']
        except KeyError:
            raise InvalidConfigurationError("Invalid local cluster configuration")
        if name not in self.clusters:
            raise InvalidConfigurationError(
                f"Local cluster {name} is not configured"
            )
        return self._build_cluster_config(name)

    def __repr__(self) -> str:
        return ("TopologyConfig: cluster_type {}, clusters: {},"
                "local_config {}".format(
                    self.cluster_type,
                    self.clusters,
                    self.local_config
                ))


def get_conf_dirs() -> list[str]:
    config_dirs = []
    if os.environ.get("KAFKA_DISCOVERY_DIR"):
        config_dirs.append(os.environ["KAFKA_DISCOVERY_DIR"])
    if os.environ.get("HOME"):
        home_config = os.path.join(
            os.path.abspath(os.environ['HOME']),
            HOME_OVERRIDE,
        )
        if os.path.isdir(home_config):
            config_dirs.append(home_config)
    config_dirs.append(DEFAULT_KAFKA_TOPOLOGY_BASE_PATH)
    return config_dirs


def get_cluster_config(
    cluster_type: str,
    cluster_name: str | None = None,
    kafka_topology_base_path: str | None = None,
) -> ClusterConfig:
    """Return the cluster configuration.
    Use the local cluster if cluster_name is not specified.

    :param cluster_type: the type of the cluster
    :param cluster_name: the name of the cluster
    :param kafka_topology_base_path: base path to look for <cluster_type>.yaml
    :raises MissingConfigurationError: no configuration for the cluster type
    """
    if not kafka_topology_base_path:
        config_dirs = get_conf_dirs()
    else:
        config_dirs = [kafka_topology_base_path]

    topology = None
    for config_dir in config_dirs:
        try:
            topology = TopologyConfiguration(cluster_type, config_dir)
            break
        except MissingConfigurationError:
            pass
    if not topology:
        raise MissingConfigurationError(
            f"No available configuration for type {cluster_type}",
        )

    if cluster_name:
        return topology.get_cluster_by_name(cluster_name)
    else:
        return topology.get_local_cluster()
