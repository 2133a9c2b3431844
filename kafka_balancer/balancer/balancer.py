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
"""Entry point of the rebalancing engine.

The engine runs a fixed list of steps against a partition list. Every step
either reports that it has nothing to change or proposes a change to a
single partition, in which case the engine stops and returns it. Callers
converge by merging each proposal into their partition list and calling the
engine again, up to a bound of their choosing.

The engine performs no I/O and doesn't log: narration is up to the caller.
"""
from __future__ import annotations

from typing import Callable
from typing import NamedTuple

from .error import RebalanceError
from .partition import PartitionList
from .rebalance_config import DEFAULT_REBALANCE_CONFIG
from .rebalance_config import RebalanceConfig
from .steps import add_missing_replicas
from .steps import fill_defaults
from .steps import move_disallowed_replicas
from .steps import move_leaders
from .steps import move_non_leaders
from .steps import remove_extra_replicas
from .steps import validate_replicas
from .steps import validate_weights


class Step(NamedTuple):
    """A pipeline step and the name it is reported under."""
    name: str
    run: Callable[[PartitionList, RebalanceConfig], PartitionList | None]


VALIDATE_WEIGHTS = Step('ValidateWeights', validate_weights)
VALIDATE_REPLICAS = Step('ValidateReplicas', validate_replicas)
FILL_DEFAULTS = Step('FillDefaults', fill_defaults)
REMOVE_EXTRA_REPLICAS = Step('RemoveExtraReplicas', remove_extra_replicas)
ADD_MISSING_REPLICAS = Step('AddMissingReplicas', add_missing_replicas)
MOVE_DISALLOWED_REPLICAS = Step('MoveDisallowedReplicas', move_disallowed_replicas)
MOVE_NON_LEADERS = Step('MoveNonLeaders', move_non_leaders)
MOVE_LEADERS = Step('MoveLeaders', move_leaders)

# Steps preparing the partition list, they never propose a change.
PREPARATION_STEPS = (
    VALIDATE_WEIGHTS,
    VALIDATE_REPLICAS,
    FILL_DEFAULTS,
)

STEPS = PREPARATION_STEPS + (
    REMOVE_EXTRA_REPLICAS,
    ADD_MISSING_REPLICAS,
    MOVE_DISALLOWED_REPLICAS,
    MOVE_NON_LEADERS,
    MOVE_LEADERS,
)


def _run_step(step: Step, partition_list: PartitionList, config: RebalanceConfig) -> PartitionList | None:
    try:
        return step.run(partition_list, config)
    except RebalanceError as e:
        e.step = step.name
        raise


def run_steps(
    partition_list: PartitionList,
    config: RebalanceConfig = DEFAULT_REBALANCE_CONFIG,
) -> tuple[Step | None, PartitionList]:
    """Run the pipeline and return the step that proposed a change together
    with the change, or (None, empty partition list) if every step is
    satisfied.

    The given partition list is left untouched.

    :raises RebalanceError: a step failed, the error names the step.
    """
    working = partition_list.copy()
    for step in STEPS:
        delta = _run_step(step, working, config)
        if delta is not None:
            return step, delta
    return None, PartitionList(version=partition_list.version)


def balance(
    partition_list: PartitionList,
    config: RebalanceConfig = DEFAULT_REBALANCE_CONFIG,
) -> PartitionList:
    """Analyze the load distribution among brokers and return a
    PartitionList holding at most one partition reassignment. An empty
    list means that no further change is worthwhile.

    :raises RebalanceError: the partition list is invalid or a constraint
        can't be satisfied.
    """
    _, delta = run_steps(partition_list, config)
    return delta


def resolve_defaults(
    partition_list: PartitionList,
    config: RebalanceConfig = DEFAULT_REBALANCE_CONFIG,
) -> PartitionList:
    """Return a validated copy of the partition list with the default
    weights, allowed brokers and numbers of replicas filled in, as the
    engine sees them.

    Callers merging proposed changes into their own list should start from
    this copy: the changes carry resolved defaults, and mixing them with
    unresolved partitions would make the weights inconsistent.

    :raises RebalanceError: the partition list is invalid.
    """
    working = partition_list.copy()
    for step in PREPARATION_STEPS:
        _run_step(step, working, config)
    return working
