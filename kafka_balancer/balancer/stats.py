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
"""Functions scoring how evenly load is spread over the brokers."""
from __future__ import annotations

from math import fsum
from math import sqrt
from typing import Iterable
from typing import Mapping
from typing import Sequence


def mean(data: Sequence[float]) -> float:
    """Return the mean of a sequence of numbers."""
    return fsum(data) / len(data)


def variance(data: Sequence[float], data_mean: float | None = None) -> float:
    """Return variance of a sequence of numbers.
    :param data_mean: Precomputed mean of the sequence.
    """
    if data_mean is None:
        data_mean = mean(data)
    return fsum((x - data_mean) ** 2 for x in data) / len(data)


def standard_deviation(data: Sequence[float], data_mean: float | None = None) -> float:
    """Return standard deviation of a sequence of numbers.
    :param data_mean: Precomputed mean of the sequence.
    """
    return sqrt(variance(data, data_mean))


def coefficient_of_variation(data: Sequence[float]) -> float:
    """Return the coefficient of variation (CV) of a sequence of numbers."""
    data_mean = mean(data)
    data_stdev = standard_deviation(data, data_mean)
    if data_mean == 0:
        return float("inf") if data_stdev != 0 else 0
    return data_stdev / data_mean


def get_unbalance(loads: Iterable[float]) -> float:
    """Score the unbalance of a set of broker loads. 0 means perfectly
    balanced, lower is better.

    Each broker contributes f(load / mean - 1) where f(x) is x**2 for
    overloaded brokers and x**2 / 2 for underloaded ones, so hotspots weigh
    more than idle brokers.

    Sums are exact (fsum), so the score only depends on the multiset of loads
    and not on the order they are given in.

    :raises ValueError: loads is empty.
    """
    loads = list(loads)
    if not loads:
        raise ValueError("Unbalance of an empty set of brokers is undefined")
    total = fsum(loads)
    if total == 0:
        return 0.0
    avg = total / len(loads)

    penalties = []
    for load in loads:
        rel_load = load / avg - 1.0
        if rel_load > 0:
            penalties.append(rel_load * rel_load)
        else:
            penalties.append(rel_load * rel_load / 2)
    return fsum(penalties)


def get_broker_unbalance(loads: Mapping[int, float]) -> float:
    """Score the unbalance of a broker_id -> load mapping."""
    return get_unbalance(loads[broker] for broker in sorted(loads))
