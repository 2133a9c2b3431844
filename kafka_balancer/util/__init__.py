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

from argparse import ArgumentTypeError


def positive_int(string: str) -> int:
    """Convert string to positive integer."""
    error_msg = f'Positive integer required, {string} given.'
    try:
        value = int(string)
    except ValueError:
        raise ArgumentTypeError(error_msg)
    if value < 0:
        raise ArgumentTypeError(error_msg)
    return value


def positive_float(string: str) -> float:
    """Convert string to positive float."""
    error_msg = f'Positive float required, {string} given.'
    try:
        value = float(string)
    except ValueError:
        raise ArgumentTypeError(error_msg)
    if value < 0:
        raise ArgumentTypeError(error_msg)
    return value


def broker_id_list(string: str) -> list[int] | None:
    """Convert a comma separated list of broker ids to a list of integers.

    The special value "auto" returns None, meaning that the brokers should be
    derived from the partition list.

    :raises ValueError: an element of the list is not an integer.
    """
    if string == 'auto':
        return None
    return [int(broker_id) for broker_id in string.split(',')]
