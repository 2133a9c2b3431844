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

from kafka_balancer.util.error import KafkaBalancerError


class RebalanceError(KafkaBalancerError):
    """Raised when a rebalance step rejects the partition list or can't find
    a feasible broker. None of these errors is transient: retrying with the
    same input fails the same way.

    :param message: description of the failure.
    :param step: name of the step that failed, set by the pipeline.
    """

    def __init__(self, message: str, step: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.step = step

    def __str__(self) -> str:
        if self.step:
            return f"{self.step}: {self.message}"
        return self.message


class InconsistentWeightsError(RebalanceError):
    """Raised when some partitions have a weight and others don't."""
    pass


class NegativeWeightError(RebalanceError):
    """Raised when a partition is assigned a negative weight."""
    pass


class DuplicateReplicaError(RebalanceError):
    """Raised when a partition lists the same broker more than once."""
    pass


class NoRemovableReplicaError(RebalanceError):
    """Raised when none of the allowed brokers holds a replica that could be
    removed from an over-replicated partition.
    """
    pass


class NoAddableReplicaError(RebalanceError):
    """Raised when every allowed broker already holds a replica of an
    under-replicated partition.
    """
    pass


class NoReplacementBrokerError(RebalanceError):
    """Raised when a replica sits on a disallowed broker and no allowed broker
    is free to take it.
    """
    pass
