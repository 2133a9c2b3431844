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

from typing import NamedTuple


class RebalanceConfig(NamedTuple):
    """Configuration driving the rebalancing. The defaults are also the
    defaults of the command line flags.

    :param allow_leader_rebalancing: consider leaders eligible for moves.
    :param min_replicas_for_rebalancing: partitions with a lower replica
        target are left alone by the relocation search.
    :param min_unbalance: minimum unbalance improvement required to propose
        a relocation.
    :param brokers: brokers replicas may be placed on, derived from the
        partition list when None.
    """
    allow_leader_rebalancing: bool = False
    min_replicas_for_rebalancing: int = 2
    min_unbalance: float = 0.00001
    brokers: list[int] | None = None


DEFAULT_REBALANCE_CONFIG = RebalanceConfig()
