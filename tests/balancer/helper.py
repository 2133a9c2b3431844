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
from kafka_balancer.balancer.partition import Partition
from kafka_balancer.balancer.partition import PartitionList


def build_partition_list(*replica_lists, **kwargs):
    """Build a partition list of topic 'a' whose partitions are numbered
    from 1, one per replica list.
    """
    return PartitionList([
        Partition('a', p_id, replicas, **kwargs)
        for p_id, replicas in enumerate(replica_lists, start=1)
    ])
