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
"""Read and write partition lists.

Two input formats are supported: the JSON format of kafka reassignment
plans, optionally extended with the balancing attributes of each partition,
and the text output of ``kafka-topics.sh --describe``. Partition lists can
also be read from the cluster's zookeeper.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any
from typing import TextIO

from kafka_balancer.balancer.partition import DEFAULT_NUM_CONSUMERS
from kafka_balancer.balancer.partition import Partition
from kafka_balancer.balancer.partition import PARTITION_LIST_VERSION
from kafka_balancer.balancer.partition import PartitionList
from kafka_balancer.util.error import PartitionListError
from kafka_balancer.util.serialization import dump_json
from kafka_balancer.util.validation import get_duplicate_partitions
from kafka_balancer.util.validation import PartitionDict
from kafka_balancer.util.validation import PlanDict
from kafka_balancer.util.validation import validate_format
from kafka_balancer.util.zookeeper import ZK


_log = logging.getLogger(__name__)

DESCRIBE_LINE_RE = re.compile(
    r"^\s*Topic: ([^\t]*)\tPartition: ([0-9]+)\tLeader: (-?[0-9]+|none)"
    r"\tReplicas: ([0-9]+(?:,[0-9]+)*)\tIsr: ([0-9,]*)"
)


def partition_from_dict(data: PartitionDict) -> Partition:
    # 0 stands for "unset" in the wire format
    return Partition(
        data['topic'],
        data['partition'],
        data['replicas'],
        weight=data.get('weight', 0),
        num_replicas=data.get('num_replicas') or None,
        brokers=data.get('brokers'),
        num_consumers=data.get('num_consumers') or DEFAULT_NUM_CONSUMERS,
    )


def partition_to_dict(partition: Partition) -> PartitionDict:
    """Convert a partition to its wire format, leaving out the attributes
    at their default value.
    """
    data: PartitionDict = {
        'topic': partition.topic,
        'partition': partition.partition_id,
        'replicas': list(partition.replicas),
    }
    if partition.weight:
        data['weight'] = partition.weight
    if partition.num_replicas is not None:
        data['num_replicas'] = partition.num_replicas
    if partition.brokers is not None:
        data['brokers'] = list(partition.brokers)
    if partition.num_consumers != DEFAULT_NUM_CONSUMERS:
        data['num_consumers'] = partition.num_consumers
    return data


def partition_list_from_dict(plan: Any) -> PartitionList:
    """Build a partition list from its decoded JSON representation.

    :raises PartitionListError: the data doesn't describe a valid, non-empty
        partition list.
    """
    if not isinstance(plan, dict):
        raise PartitionListError("partition list must be a JSON object")
    if plan.get('version') != PARTITION_LIST_VERSION:
        raise PartitionListError(
            "wrong partition list version: expected {expected}, got {version}"
            .format(expected=PARTITION_LIST_VERSION, version=plan.get('version')),
        )
    if not plan.get('partitions'):
        raise PartitionListError("empty partition list")
    if not validate_format(plan):
        raise PartitionListError("malformed partition list")

    partition_list = PartitionList(
        [partition_from_dict(p_data) for p_data in plan['partitions']],
        plan['version'],
    )
    _check_unique(partition_list)
    return partition_list


def partition_list_to_dict(partition_list: PartitionList) -> PlanDict:
    return {
        'version': partition_list.version,
        'partitions': [partition_to_dict(p) for p in partition_list],
    }


def _check_unique(partition_list: PartitionList) -> None:
    duplicates = get_duplicate_partitions(partition_list_to_dict(partition_list))
    if duplicates:
        raise PartitionListError(f"duplicated partitions {duplicates}")


def parse_json(stream: TextIO) -> PartitionList:
    try:
        plan = json.load(stream)
    except ValueError as e:
        raise PartitionListError(f"failed parsing json: {e}")
    return partition_list_from_dict(plan)


def parse_describe(stream: TextIO) -> PartitionList:
    """Parse the output of kafka-topics.sh --describe. Lines not describing
    a partition are skipped.
    """
    partitions = []
    for line in stream:
        match = DESCRIBE_LINE_RE.match(line)
        if not match:
            continue
        partitions.append(Partition(
            match.group(1),
            int(match.group(2)),
            [int(replica) for replica in match.group(4).split(',')],
        ))

    if not partitions:
        raise PartitionListError("empty partition list")
    partition_list = PartitionList(partitions)
    _check_unique(partition_list)
    return partition_list


def parse_partition_list(stream: TextIO, is_json: bool) -> PartitionList:
    """Read a partition list from stream.

    :param is_json: parse the stream as JSON instead of describe output.
    :raises PartitionListError: the stream can't be parsed.
    """
    if is_json:
        return parse_json(stream)
    return parse_describe(stream)


def partition_list_from_zookeeper(zk: ZK) -> PartitionList:
    """Read the current assignment of every partition of the cluster."""
    plan = zk.get_cluster_plan()
    _log.debug("Cluster plan: %s", plan)
    return partition_list_from_dict(plan)


def write_partition_list(stream: TextIO, partition_list: PartitionList) -> None:
    """Write the partition list to stream as a single JSON document."""
    stream.write(dump_json(partition_list_to_dict(partition_list)) + "\n")
