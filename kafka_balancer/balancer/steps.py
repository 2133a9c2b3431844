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
"""The steps of the rebalancing pipeline.

Each step takes the partition list and the configuration and returns either
None, when it has nothing to change, or a PartitionList holding the single
partition it changed. Steps act on the first eligible partition only.
"""
from __future__ import annotations

from .error import DuplicateReplicaError
from .error import InconsistentWeightsError
from .error import NegativeWeightError
from .error import NoAddableReplicaError
from .error import NoRemovableReplicaError
from .error import NoReplacementBrokerError
from .load import get_broker_loads
from .load import get_brokers_by_load
from .partition import Partition
from .partition import PartitionList
from .rebalance_config import RebalanceConfig
from .stats import get_unbalance


def _single(partition: Partition) -> PartitionList:
    return PartitionList([partition])


def validate_weights(partition_list: PartitionList, _config: RebalanceConfig) -> None:
    """Make sure that either all partitions have an explicit, strictly
    positive weight or that no partition has a weight.
    """
    if not partition_list.partitions:
        return None
    has_weights = partition_list.partitions[0].weight != 0

    for partition in partition_list:
        if has_weights and partition.weight == 0:
            raise InconsistentWeightsError(f"partition {partition} has no weight")
        if not has_weights and partition.weight != 0:
            raise InconsistentWeightsError(f"partition {partition} has weight")
        if partition.weight < 0:
            raise NegativeWeightError(f"partition {partition} has negative weight")
    return None


def validate_replicas(partition_list: PartitionList, _config: RebalanceConfig) -> None:
    """Check that no partition has more than one replica per broker."""
    for partition in partition_list:
        if len(set(partition.replicas)) != len(partition.replicas):
            raise DuplicateReplicaError(
                f"partition {partition} has duplicated replicas {partition.replicas}"
            )
    return None


def fill_defaults(partition_list: PartitionList, config: RebalanceConfig) -> None:
    """Fill in the default weight, allowed brokers and number of replicas.

    Unlike the other steps this one updates the partition list it is given,
    so it must only be handed a private copy.
    """
    if partition_list.partitions and partition_list.partitions[0].weight == 0:
        for partition in partition_list:
            partition.weight = 1.0

    brokers = config.brokers
    if brokers is None:
        brokers = partition_list.get_brokers()
    for partition in partition_list:
        if partition.brokers is None:
            partition.brokers = list(brokers)
        if partition.num_replicas is None:
            partition.num_replicas = len(partition.replicas)
    return None


def remove_extra_replicas(partition_list: PartitionList, _config: RebalanceConfig) -> PartitionList | None:
    """Remove a replica from the first partition having more replicas than
    requested. The replica on the least loaded allowed broker goes.
    """
    loads = get_broker_loads(partition_list)

    for partition in partition_list:
        if partition.num_replicas >= partition.replication_factor:
            continue

        for broker in get_brokers_by_load(loads, partition.brokers):
            if broker in partition.replicas:
                return _single(partition.replace_replica(broker))

        raise NoRemovableReplicaError(
            f"partition {partition} unable to pick replica to remove"
        )
    return None


def add_missing_replicas(partition_list: PartitionList, _config: RebalanceConfig) -> PartitionList | None:
    """Add a follower to the first partition having fewer replicas than
    requested, on the most loaded allowed broker not holding one yet.
    """
    loads = get_broker_loads(partition_list)

    for partition in partition_list:
        if partition.num_replicas <= partition.replication_factor:
            continue

        for broker in reversed(get_brokers_by_load(loads, partition.brokers)):
            if broker not in partition.replicas:
                return _single(partition.add_replica(broker))

        raise NoAddableReplicaError(
            f"partition {partition} unable to pick replica to add"
        )
    return None


def move_disallowed_replicas(partition_list: PartitionList, _config: RebalanceConfig) -> PartitionList | None:
    """Move the first replica found on a broker outside of its partition's
    allowed brokers to the least loaded allowed broker.
    """
    loads = get_broker_loads(partition_list)

    for partition in partition_list:
        allowed = get_brokers_by_load(loads, partition.brokers)

        for replica in partition.replicas:
            if replica in allowed:
                continue

            free = [broker for broker in allowed if broker not in partition.replicas]
            if not free:
                raise NoReplacementBrokerError(
                    f"partition {partition} unable to pick replica to replace broker {replica}"
                )
            return _single(partition.replace_replica(replica, free[0]))
    return None


def _move(partition_list: PartitionList, config: RebalanceConfig, leaders: bool) -> PartitionList | None:
    """Find the single replica relocation that lowers the unbalance the
    most, across every partition eligible for rebalancing.

    Candidates are evaluated partition by partition, replica by replica and
    destination by ascending load; a later candidate only wins when strictly
    better. The best one is returned if it improves the unbalance by more
    than config.min_unbalance.
    """
    loads = get_broker_loads(partition_list)
    for broker in config.brokers or ():
        loads.setdefault(broker, 0.0)
    if len(loads) < 2:
        return None

    # Evaluation order and positions are fixed once for the whole search.
    brokers = get_brokers_by_load(loads, loads)
    position = {broker: idx for idx, broker in enumerate(brokers)}
    broker_loads = [loads[broker] for broker in brokers]

    base_unbalance = get_unbalance(broker_loads)
    best_unbalance = base_unbalance
    best: tuple[Partition, int, int] | None = None

    for partition in partition_list:
        if partition.num_replicas < config.min_replicas_for_rebalancing:
            continue

        allowed = set(partition.brokers)
        replicas = [partition.leader] if leaders else partition.followers
        for replica in replicas:
            load = partition.replica_load(replica)
            source = position[replica]
            source_load = broker_loads[source]
            broker_loads[source] -= load

            for idx, broker in enumerate(brokers):
                if broker not in allowed or broker in partition.replicas:
                    continue
                dest_load = broker_loads[idx]
                broker_loads[idx] += load
                unbalance = get_unbalance(broker_loads)
                broker_loads[idx] = dest_load
                if unbalance < best_unbalance:
                    best_unbalance = unbalance
                    best = (partition, replica, broker)

            broker_loads[source] = source_load

    if best is not None and best_unbalance < base_unbalance - config.min_unbalance:
        partition, replica, broker = best
        return _single(partition.replace_replica(replica, broker))
    return None


def move_non_leaders(partition_list: PartitionList, config: RebalanceConfig) -> PartitionList | None:
    """Move a follower from an overloaded broker to an underloaded one."""
    return _move(partition_list, config, leaders=False)


def move_leaders(partition_list: PartitionList, config: RebalanceConfig) -> PartitionList | None:
    """Move a leader from an overloaded broker to an underloaded one, if
    leader rebalancing is enabled.
    """
    if not config.allow_leader_rebalancing:
        return None
    return _move(partition_list, config, leaders=True)
