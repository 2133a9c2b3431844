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

from typing import Iterator

PARTITION_LIST_VERSION = 1
DEFAULT_NUM_CONSUMERS = 1


class Partition:
    """Class representing a replicated topic partition and its placement
    constraints.

    :param topic: name of the topic.
    :param partition_id: id of the partition within the topic.
    :param replicas: ordered broker ids, the first one is the leader.
    :param weight: relative load of the partition, 0 when unset.
    :param num_replicas: desired number of replicas, None when unset.
    :param brokers: brokers allowed to hold a replica, None when unset.
    :param num_consumers: number of consumers reading from the leader.
    """

    def __init__(
        self,
        topic: str,
        partition_id: int,
        replicas: list[int],
        weight: float = 0,
        num_replicas: int | None = None,
        brokers: list[int] | None = None,
        num_consumers: int = DEFAULT_NUM_CONSUMERS,
    ) -> None:
        # Every partition name has (topic, partition) tuple
        self._name = (topic, partition_id)
        self.replicas = list(replicas)
        self.weight = weight
        self.num_replicas = num_replicas
        self.brokers = list(brokers) if brokers is not None else None
        self.num_consumers = num_consumers

    @property
    def name(self) -> tuple[str, int]:
        """Name of partition, consisting of (topic, partition_id) tuple."""
        return self._name

    @property
    def topic(self) -> str:
        return self._name[0]

    @property
    def partition_id(self) -> int:
        return self._name[1]

    @property
    def leader(self) -> int:
        """Leader broker for the partition."""
        return self.replicas[0]

    @property
    def followers(self) -> list[int]:
        """Brokers holding a replica but not the leadership."""
        return self.replicas[1:]

    @property
    def replication_factor(self) -> int:
        return len(self.replicas)

    @property
    def leader_load(self) -> float:
        """Load placed on the leader. Leaders serve every follower and every
        consumer, so they weigh more than followers.
        """
        return self.weight * (len(self.replicas) + self.num_consumers)

    def replica_load(self, broker: int) -> float:
        """Load placed on the given broker by its replica of this partition."""
        if broker not in self.replicas:
            raise AssertionError(
                f"partition {self!r} replicas don't contain {broker}"
            )
        if broker == self.leader:
            return self.leader_load
        return self.weight

    def copy(self) -> Partition:
        return Partition(
            self.topic,
            self.partition_id,
            self.replicas,
            weight=self.weight,
            num_replicas=self.num_replicas,
            brokers=self.brokers,
            num_consumers=self.num_consumers,
        )

    def replace_replica(self, source: int, dest: int | None = None) -> Partition:
        """Return a copy of the partition with the replica on source moved to
        dest, keeping its position in the replica list. The replica is
        removed when dest is None.
        """
        if source not in self.replicas:
            raise AssertionError(
                f"partition {self!r} replicas don't contain {source}"
            )
        partition = self.copy()
        if dest is None:
            partition.replicas.remove(source)
        else:
            assert dest not in self.replicas
            partition.replicas[partition.replicas.index(source)] = dest
        return partition

    def add_replica(self, broker: int) -> Partition:
        """Return a copy of the partition with a new follower on broker."""
        if broker in self.replicas:
            raise AssertionError(
                f"partition {self!r} replicas already contain {broker}"
            )
        partition = self.copy()
        partition.replicas.append(broker)
        return partition

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Partition):
            return NotImplemented
        return (
            self._name == other._name and
            self.replicas == other.replicas and
            self.weight == other.weight and
            self.num_replicas == other.num_replicas and
            self.brokers == other.brokers and
            self.num_consumers == other.num_consumers
        )

    def __str__(self) -> str:
        return f"{self._name}"

    def __repr__(self) -> str:
        return (
            "Partition({topic!r}, {p_id}, replicas={replicas}, weight={weight}, "
            "num_replicas={num_replicas}, brokers={brokers}, "
            "num_consumers={num_consumers})".format(
                topic=self.topic,
                p_id=self.partition_id,
                replicas=self.replicas,
                weight=self.weight,
                num_replicas=self.num_replicas,
                brokers=self.brokers,
                num_consumers=self.num_consumers,
            )
        )


class PartitionList:
    """An ordered list of partitions together with the version of the format
    they were read from. The order carries no meaning but is preserved so
    that the output is stable.
    """

    def __init__(
        self,
        partitions: list[Partition] | None = None,
        version: int = PARTITION_LIST_VERSION,
    ) -> None:
        self.version = version
        self.partitions = partitions or []

    def __iter__(self) -> Iterator[Partition]:
        return iter(self.partitions)

    def __len__(self) -> int:
        return len(self.partitions)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PartitionList):
            return NotImplemented
        return self.version == other.version and self.partitions == other.partitions

    def __repr__(self) -> str:
        return f"PartitionList(version={self.version}, partitions={self.partitions!r})"

    def copy(self) -> PartitionList:
        return PartitionList(
            [partition.copy() for partition in self.partitions],
            self.version,
        )

    def get_brokers(self) -> list[int]:
        """Sorted ids of the brokers holding at least one replica."""
        return sorted({
            broker
            for partition in self.partitions
            for broker in partition.replicas
        })

    def merge(self, delta: PartitionList) -> PartitionList:
        """Return a new list where each partition of delta replaces the
        partition with the same name. Partitions unknown to this list are
        appended.
        """
        changes = {partition.name: partition for partition in delta}
        merged = [
            changes.pop(partition.name, partition).copy()
            for partition in self.partitions
        ]
        merged.extend(partition.copy() for partition in changes.values())
        return PartitionList(merged, self.version)
