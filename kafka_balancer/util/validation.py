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
"""Provide functions to validate partition lists and reassignment plans."""
from __future__ import annotations

import logging
import math
from collections import Counter
from numbers import Real
from typing import Any

from typing_extensions import TypedDict


_log = logging.getLogger(__name__)

REQUIRED_PARTITION_KEYS = {'topic', 'partition', 'replicas'}
OPTIONAL_PARTITION_KEYS = {'weight', 'num_replicas', 'brokers', 'num_consumers'}


class _PartitionDict(TypedDict):
    topic: str
    partition: int
    replicas: list[int]


class PartitionDict(_PartitionDict, total=False):
    weight: float
    num_replicas: int
    brokers: list[int]
    num_consumers: int


class PlanDict(TypedDict):
    version: int
    partitions: list[PartitionDict]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_int_list(value: Any) -> bool:
    return isinstance(value, list) and all(_is_int(item) for item in value)


def validate_plan(plan: PlanDict) -> bool:
    """Verify that the plan is valid for execution.

    Given plan should affirm with following rules:
    - Plan has the expected format, version and at least one partition
    - Partition-name list is unique
    - No duplicate broker-ids in each replicas
    """
    if not validate_format(plan):
        _log.error('Invalid proposed-plan.')
        return False

    duplicate_partitions = get_duplicate_partitions(plan)
    if duplicate_partitions:
        _log.error(
            'Duplicate partitions in plan {p_list}'
            .format(p_list=duplicate_partitions),
        )
        return False

    for p_data in plan['partitions']:
        dup_replica_brokers = [
            broker
            for broker, count in Counter(p_data['replicas']).items()
            if count > 1
        ]
        if dup_replica_brokers:
            _log.error(
                'Duplicate brokers: ({topic}, {p_id}) in replicas {replicas}'
                .format(
                    topic=p_data['topic'],
                    p_id=p_data['partition'],
                    replicas=p_data['replicas'],
                )
            )
            return False
    return True


def get_duplicate_partitions(plan: PlanDict) -> list[tuple[str, int]]:
    """Return the (topic, partition) names listed more than once."""
    partition_names = [
        (p_data['topic'], p_data['partition'])
        for p_data in plan['partitions']
    ]
    return [
        partition for partition, count in Counter(partition_names).items()
        if count > 1
    ]


def validate_format(plan: Any) -> bool:
    """Validate if the format of the plan as expected.

    Validate format of plan on following rules:
    a) Verify if it ONLY and MUST have keys 'version' and 'partitions'
    b) Verify if each value of 'partitions' MUST have keys 'replicas',
        'partition', 'topic' and optionally the extension keys 'weight',
        'num_replicas', 'brokers' and 'num_consumers'
    c) Verify desired type of each value
    d) Verify non-empty partitions and replicas
    Sample-plan format:
    {
        "version": 1,
        "partitions": [
            {"partition":0, "topic":'t1', "replicas":[0,1,2]},
            {"partition":0, "topic":'t2', "replicas":[1,2], "weight": 2.5},
            ...
        ]}
    """
    if not isinstance(plan, dict):
        _log.error('Plan of type dict expected, found {t_type}'.format(t_type=type(plan)))
        return False

    # Verify presence of required keys
    if set(plan.keys()) != {'version', 'partitions'}:
        _log.error(
            'Invalid or incomplete keys in given plan. Expected: "version", '
            '"partitions". Found:{keys}'
            .format(keys=', '.join(list(plan.keys()))),
        )
        return False

    if plan['version'] != 1:
        _log.error(
            'Invalid version of plan {version}'
            .format(version=plan['version']),
        )
        return False

    if not isinstance(plan['partitions'], list):
        _log.error('"partitions" of type list expected.')
        return False

    if not plan['partitions']:
        _log.error('"partitions" list found empty')
        return False

    return all(_validate_partition_format(p_data) for p_data in plan['partitions'])


def _validate_partition_format(p_data: Any) -> bool:
    if not isinstance(p_data, dict):
        _log.error('Partition-data of type dict expected, found {p_data}'.format(p_data=p_data))
        return False
    keys = set(p_data.keys())
    if not REQUIRED_PARTITION_KEYS <= keys or not keys <= REQUIRED_PARTITION_KEYS | OPTIONAL_PARTITION_KEYS:
        _log.error(
            'Invalid keys in partition-data {keys}'
            .format(keys=', '.join(sorted(keys))),
        )
        return False
    if not isinstance(p_data['topic'], str):
        _log.error(
            '"topic" of type string expected {p_data}, found {t_type}'
            .format(p_data=p_data, t_type=type(p_data['topic'])),
        )
        return False
    if not _is_int(p_data['partition']):
        _log.error(
            '"partition" of type int expected {p_data}, found {p_type}'
            .format(p_data=p_data, p_type=type(p_data['partition'])),
        )
        return False
    if not _is_int_list(p_data['replicas']) or not p_data['replicas']:
        _log.error(
            'Non-empty "replicas" of type integer list expected {p_data}'
            .format(p_data=p_data),
        )
        return False
    if 'weight' in p_data and (
        not isinstance(p_data['weight'], Real) or isinstance(p_data['weight'], bool)
    ):
        _log.error('"weight" of type number expected {p_data}'.format(p_data=p_data))
        return False
    if 'weight' in p_data and not math.isfinite(p_data['weight']):
        _log.error('"weight" must be finite {p_data}'.format(p_data=p_data))
        return False
    for key in ('num_replicas', 'num_consumers'):
        if key in p_data and not _is_int(p_data[key]):
            _log.error(
                '"{key}" of type int expected {p_data}'.format(key=key, p_data=p_data),
            )
            return False
        if key in p_data and p_data[key] < 0:
            _log.error(
                '"{key}" must not be negative {p_data}'.format(key=key, p_data=p_data),
            )
            return False
    if 'brokers' in p_data and not _is_int_list(p_data['brokers']):
        _log.error('"brokers" of type integer list expected {p_data}'.format(p_data=p_data))
        return False
    return True
