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
from kafka_balancer.balancer.load import get_broker_loads
from kafka_balancer.balancer.load import get_brokers_by_load
from kafka_balancer.balancer.partition import Partition
from kafka_balancer.balancer.partition import PartitionList


def test_get_broker_loads_single_partition(create_partition_list):
    partition_list = create_partition_list([1, 2, 3], weight=1.0)

    assert get_broker_loads(partition_list) == {1: 4.0, 2: 1.0, 3: 1.0}


def test_get_broker_loads_accumulates(create_partition_list):
    partition_list = create_partition_list([1, 2], [2, 1], [3], weight=2.0)

    # Leaders weigh 2 * (2 + 1), followers 2, single replica leader 2 * (1 + 1)
    assert get_broker_loads(partition_list) == {1: 8.0, 2: 8.0, 3: 4.0}


def test_get_broker_loads_num_consumers():
    partition_list = PartitionList([
        Partition('a', 1, [1, 2], weight=1.0, num_consumers=0),
        Partition('a', 2, [2, 1], weight=1.0, num_consumers=4),
    ])

    assert get_broker_loads(partition_list) == {1: 3.0, 2: 7.0}


def test_get_broker_loads_empty():
    assert get_broker_loads(PartitionList()) == {}


def test_get_brokers_by_load():
    loads = {1: 5.0, 2: 1.0, 3: 3.0}

    assert get_brokers_by_load(loads, [1, 2, 3]) == [2, 3, 1]


def test_get_brokers_by_load_ties_by_id():
    loads = {1: 2.0, 2: 1.0, 3: 1.0, 4: 2.0}

    assert get_brokers_by_load(loads, [4, 3, 2, 1]) == [2, 3, 1, 4]


def test_get_brokers_by_load_unknown_brokers():
    loads = {1: 2.0, 2: 1.0}

    # Brokers without replicas have no load
    assert get_brokers_by_load(loads, [1, 2, 5, 4]) == [4, 5, 2, 1]


def test_get_brokers_by_load_subset():
    loads = {1: 2.0, 2: 1.0, 3: 0.5}

    assert get_brokers_by_load(loads, [1, 2]) == [2, 1]
