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
"""Aggregate the load every broker carries for a partition list."""
from __future__ import annotations

from typing import Iterable
from typing import Mapping

from .partition import PartitionList


def get_broker_loads(partition_list: PartitionList) -> dict[int, float]:
    """Return the load of each broker holding at least one replica.

    Followers add the partition weight to their broker, leaders add
    weight * (replication factor + number of consumers).
    """
    loads: dict[int, float] = {}
    for partition in partition_list:
        for idx, broker in enumerate(partition.replicas):
            load = partition.leader_load if idx == 0 else partition.weight
            loads[broker] = loads.get(broker, 0.0) + load
    return loads


def get_brokers_by_load(loads: Mapping[int, float], brokers: Iterable[int]) -> list[int]:
    """Sort brokers by ascending load, breaking ties by ascending broker id.
    Brokers missing from loads hold no replica and count as load 0.
    """
    return sorted(
        set(brokers),
        key=lambda broker: (loads.get(broker, 0.0), broker),
    )
