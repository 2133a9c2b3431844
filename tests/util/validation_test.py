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
from kafka_balancer.util.validation import get_duplicate_partitions
from kafka_balancer.util.validation import validate_format
from kafka_balancer.util.validation import validate_plan


def test_validate_format_valid():
    assignment = {
        "version": 1,
        "partitions": [
            {"partition": 0, "topic": 't1', "replicas": [0, 1, 2]},
            {"partition": 0, "topic": 't2', "replicas": [1, 2]},
        ]
    }

    # Verify correct format
    assert validate_format(assignment) is True


def test_validate_format_extension_keys():
    assignment = {
        "version": 1,
        "partitions": [
            {
                "partition": 0,
                "topic": 't1',
                "replicas": [0, 1, 2],
                "weight": 2.5,
                "num_replicas": 3,
                "brokers": [0, 1, 2, 3],
                "num_consumers": 2,
            },
        ]
    }

    assert validate_format(assignment) is True


def test_validate_format_not_a_dict():
    assert validate_format([]) is False


def test_validate_format_version_absent():
    assignment = {
        "partitions":
        [{"partition": 0, "topic": 't1', "replicas": [0, 1, 2]}]
    }

    # 'version' key missing: Verify Validation failed
    assert validate_format(assignment) is False


def test_validate_format_invalid_key():
    # Invalid key "cluster"
    assignment = {
        "version": 1,
        "cluster": "invalid_key",
        "partitions":
        [{"partition": 0, "topic": 't1', "replicas": [0, 1, 2]}]
    }

    # Verify validation failed
    assert validate_format(assignment) is False


def test_validate_format_version_wrong():
    # Invalid version 2
    assignment = {
        "version": 2,
        "partitions":
        [{"partition": 0, "topic": 't1', "replicas": [0, 1, 2]}]
    }

    # Verify validation failed
    assert validate_format(assignment) is False


def test_validate_format_partitions_empty():
    assert validate_format({"version": 1, "partitions": []}) is False


def test_validate_format_partitions_not_list():
    assert validate_format({"version": 1, "partitions": {}}) is False


def test_validate_format_missing_replicas():
    assignment = {
        "version": 1,
        "partitions": [{"partition": 0, "topic": 't1'}]
    }

    assert validate_format(assignment) is False


def test_validate_format_invalid_partition_key():
    assignment = {
        "version": 1,
        "partitions": [
            {"partition": 0, "topic": 't1', "replicas": [0], "leader": 0},
        ]
    }

    assert validate_format(assignment) is False


def test_validate_format_partition_type():
    # Partition id should be an int
    assignment = {
        "version": 1,
        "partitions": [{"partition": '0', "topic": 't1', "replicas": [0]}]
    }

    assert validate_format(assignment) is False


def test_validate_format_topic_type():
    assignment = {
        "version": 1,
        "partitions": [{"partition": 0, "topic": 1, "replicas": [0]}]
    }

    assert validate_format(assignment) is False


def test_validate_format_replicas_empty():
    assignment = {
        "version": 1,
        "partitions": [{"partition": 0, "topic": 't1', "replicas": []}]
    }

    assert validate_format(assignment) is False


def test_validate_format_replicas_type():
    assignment = {
        "version": 1,
        "partitions": [{"partition": 0, "topic": 't1', "replicas": ['0', 1]}]
    }

    assert validate_format(assignment) is False


def test_validate_format_weight_type():
    assignment = {
        "version": 1,
        "partitions": [
            {"partition": 0, "topic": 't1', "replicas": [0], "weight": "1"},
        ]
    }

    assert validate_format(assignment) is False


def test_validate_format_bool_is_not_int():
    assignment = {
        "version": 1,
        "partitions": [
            {"partition": 0, "topic": 't1', "replicas": [0], "num_replicas": True},
        ]
    }

    assert validate_format(assignment) is False


def test_validate_format_brokers_type():
    assignment = {
        "version": 1,
        "partitions": [
            {"partition": 0, "topic": 't1', "replicas": [0], "brokers": [0, 'a']},
        ]
    }

    assert validate_format(assignment) is False


def test_get_duplicate_partitions():
    plan = {
        "version": 1,
        "partitions": [
            {"partition": 0, "topic": 't1', "replicas": [0]},
            {"partition": 1, "topic": 't1', "replicas": [1]},
            {"partition": 0, "topic": 't1', "replicas": [2]},
        ]
    }

    assert get_duplicate_partitions(plan) == [('t1', 0)]


def test_validate_plan_valid():
    plan = {
        "version": 1,
        "partitions": [
            {"partition": 0, "topic": 't1', "replicas": [0, 1]},
            {"partition": 1, "topic": 't1', "replicas": [1, 2], "weight": 1.0},
        ]
    }

    assert validate_plan(plan) is True


def test_validate_plan_duplicate_partition():
    plan = {
        "version": 1,
        "partitions": [
            {"partition": 0, "topic": 't1', "replicas": [0, 1]},
            {"partition": 0, "topic": 't1', "replicas": [1, 2]},
        ]
    }

    assert validate_plan(plan) is False


def test_validate_plan_duplicate_replica():
    plan = {
        "version": 1,
        "partitions": [
            {"partition": 0, "topic": 't1', "replicas": [0, 1, 0]},
        ]
    }

    assert validate_plan(plan) is False


def test_validate_plan_invalid_format():
    assert validate_plan({"version": 1, "partitions": []}) is False


def test_validate_format_negative_num_consumers():
    assignment = {
        "version": 1,
        "partitions": [
            {"partition": 0, "topic": 't1', "replicas": [0], "num_consumers": -5},
        ]
    }

    assert validate_format(assignment) is False


def test_validate_format_negative_num_replicas():
    assignment = {
        "version": 1,
        "partitions": [
            {"partition": 0, "topic": 't1', "replicas": [0], "num_replicas": -1},
        ]
    }

    assert validate_format(assignment) is False


def test_validate_format_zero_means_unset():
    assignment = {
        "version": 1,
        "partitions": [
            {
                "partition": 0,
                "topic": 't1',
                "replicas": [0],
                "num_replicas": 0,
                "num_consumers": 0,
            },
        ]
    }

    assert validate_format(assignment) is True


def test_validate_format_weight_not_finite():
    for weight in (float('nan'), float('inf')):
        assignment = {
            "version": 1,
            "partitions": [
                {"partition": 0, "topic": 't1', "replicas": [0], "weight": weight},
            ]
        }

        assert validate_format(assignment) is False
