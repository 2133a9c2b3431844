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

import argparse
import configparser
import cProfile
import logging
import sys
from contextlib import contextmanager
from logging.config import fileConfig
from logging.handlers import MemoryHandler
from typing import Iterator
from typing import TextIO

from kazoo.exceptions import KazooException
from kazoo.handlers.threading import KazooTimeoutError

from kafka_balancer.balancer.balancer import resolve_defaults
from kafka_balancer.balancer.balancer import run_steps
from kafka_balancer.balancer.error import RebalanceError
from kafka_balancer.balancer.load import get_broker_loads
from kafka_balancer.balancer.partition import Partition
from kafka_balancer.balancer.partition import PartitionList
from kafka_balancer.balancer.rebalance_config import DEFAULT_REBALANCE_CONFIG
from kafka_balancer.balancer.rebalance_config import RebalanceConfig
from kafka_balancer.balancer.stats import coefficient_of_variation
from kafka_balancer.balancer.stats import get_broker_unbalance
from kafka_balancer.codecs import parse_partition_list
from kafka_balancer.codecs import partition_list_from_zookeeper
from kafka_balancer.codecs import partition_list_to_dict
from kafka_balancer.codecs import write_partition_list
from kafka_balancer.util import broker_id_list
from kafka_balancer.util import positive_float
from kafka_balancer.util import positive_int
from kafka_balancer.util.config import get_cluster_config
from kafka_balancer.util.error import KafkaBalancerError
from kafka_balancer.util.validation import validate_plan
from kafka_balancer.util.zookeeper import ZK

_log = logging.getLogger()

EXIT_OK = 0
EXIT_INPUT_FILE_ERROR = 1
EXIT_PARTITION_LIST_ERROR = 2
EXIT_REBALANCE_ERROR = 3
EXIT_OUTPUT_ERROR = 4

PROFILE_OUTPUT = 'kafka-balancer.prof'
LOG_BUFFER_CAPACITY = 4096

_buffer_handler: MemoryHandler | None = None


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse the arguments."""
    parser = argparse.ArgumentParser(
        prog='kafka-balancer',
        description='Propose partition reassignments evening out the load of'
        ' the brokers of a kafka cluster. The partition list is read from a'
        ' file, stdin or zookeeper and the proposed changes are written to'
        ' stdout in the kafka reassignment plan format.',
    )
    parser.add_argument(
        '--input-json',
        action='store_true',
        help='Parse the input as JSON instead of kafka-topics.sh --describe'
        ' output.',
    )
    parser.add_argument(
        '--input',
        metavar='<partition-list-file>',
        help='Name of the file to read. If no file is specified read from'
        ' stdin. Can not be used with a zookeeper source.',
    )
    parser.add_argument(
        '--from-zk',
        metavar='<zookeeper-connection-string>',
        help='Read the partition list from the zookeeper of the cluster.'
        ' Can not be used with --input.',
    )
    parser.add_argument(
        '--cluster-type',
        '-t',
        dest='cluster_type',
        help='Type of the cluster to read the partition list from. The'
        ' zookeeper is looked up in <cluster_type>.yaml.',
    )
    parser.add_argument(
        '--cluster-name',
        '-c',
        dest='cluster_name',
        help='Name of the cluster (Default to local cluster).',
    )
    parser.add_argument(
        '--discovery-base-path',
        dest='discovery_base_path',
        help='Path of the directory containing the <cluster_type>.yaml config',
    )
    parser.add_argument(
        '--max-reassign',
        type=int,
        default=1,
        help='Maximum number of reassignments to generate. DEFAULT: %(default)s',
    )
    parser.add_argument(
        '--full-output',
        action='store_true',
        help='Output the full partition list: by default only the changes'
        ' are printed.',
    )
    parser.add_argument(
        '--allow-leader',
        action='store_true',
        default=DEFAULT_REBALANCE_CONFIG.allow_leader_rebalancing,
        help='Consider the partition leader eligible for rebalancing.',
    )
    parser.add_argument(
        '--min-replicas',
        type=positive_int,
        default=DEFAULT_REBALANCE_CONFIG.min_replicas_for_rebalancing,
        help='Minimum number of replicas for a partition to be eligible for'
        ' rebalancing. DEFAULT: %(default)s',
    )
    parser.add_argument(
        '--min-unbalance',
        type=positive_float,
        default=DEFAULT_REBALANCE_CONFIG.min_unbalance,
        help='Minimum unbalance improvement required to perform a'
        ' rebalancing move. DEFAULT: %(default)s',
    )
    parser.add_argument(
        '--broker-ids',
        default='auto',
        help='Comma-separated list of the broker ids replicas can be placed'
        ' on. DEFAULT: %(default)s, the brokers found in the partition list.',
    )
    parser.add_argument(
        '--show-stats',
        action='store_true',
        help='Log the broker loads and unbalance before and after the'
        ' proposed changes.',
    )
    parser.add_argument(
        '--profile',
        action='store_true',
        help=f'Profile the rebalancing and write the stats to {PROFILE_OUTPUT}.',
    )
    parser.add_argument(
        '--logconf',
        type=str,
        help='Path to logging configuration file. Default: log to console.',
    )
    return parser.parse_args(argv)


def exception_logger(exc_type, exc_value, exc_traceback):
    """Log unhandled exceptions"""
    if not issubclass(exc_type, KeyboardInterrupt):  # do not log Ctrl-C
        _log.critical(
            "Uncaught exception:",
            exc_info=(exc_type, exc_value, exc_traceback)
        )
    flush_logging()
    sys.__excepthook__(exc_type, exc_value, exc_traceback)


def _install_buffered_handler(stream: TextIO) -> None:
    """Log to stream through a buffer, so that log lines are only written
    when flushed or when an error is logged.
    """
    global _buffer_handler
    root = logging.getLogger()
    if _buffer_handler is not None:
        root.removeHandler(_buffer_handler)
        _buffer_handler.close()
    target = logging.StreamHandler(stream)
    target.setFormatter(logging.Formatter(logging.BASIC_FORMAT))
    _buffer_handler = MemoryHandler(
        LOG_BUFFER_CAPACITY,
        flushLevel=logging.ERROR,
        target=target,
    )
    root.addHandler(_buffer_handler)
    root.setLevel(logging.INFO)


def flush_logging() -> None:
    """Write out the buffered log records."""
    if _buffer_handler is not None:
        _buffer_handler.flush()


def configure_logging(log_conf: str | None = None, log_unhandled_exceptions: bool = True) -> None:
    if log_conf:
        try:
            fileConfig(log_conf, disable_existing_loggers=False)
        except (configparser.Error, KeyError, OSError, RuntimeError):
            _install_buffered_handler(sys.stderr)
            _log.error(
                'Failed to load {logconf} file.'
                .format(logconf=log_conf),
            )
    else:
        _install_buffered_handler(sys.stderr)
    if log_unhandled_exceptions:
        sys.excepthook = exception_logger


@contextmanager
def profiled(enabled: bool) -> Iterator[None]:
    """Run the enclosed block under cProfile if enabled."""
    if not enabled:
        yield
        return
    profiler = cProfile.Profile()
    profiler.enable()
    try:
        yield
    finally:
        profiler.disable()
        profiler.dump_stats(PROFILE_OUTPUT)
        _log.info('Profile stats written to %s', PROFILE_OUTPUT)


def get_zookeeper(args: argparse.Namespace) -> str:
    if args.from_zk:
        return args.from_zk
    cluster_config = get_cluster_config(
        args.cluster_type,
        args.cluster_name,
        args.discovery_base_path,
    )
    return cluster_config.zookeeper


def rebalance(
    partition_list: PartitionList,
    config: RebalanceConfig,
    max_reassign: int,
) -> tuple[PartitionList, PartitionList]:
    """Ask the engine for up to max_reassign changes, merging each of them
    into the partition list before asking for the next one.

    :returns: A 2-tuple whose first element holds the changed partitions,
        in the order they were first changed, and whose second element is
        the partition list with every change applied.
    """
    changes: dict[tuple[str, int], Partition] = {}
    for _ in range(max_reassign):
        step, delta = run_steps(partition_list, config)
        if step is None:
            _log.info('no candidate changes')
            break
        _log.info('%s: %r', step.name, delta.partitions)
        for partition in delta:
            changes[partition.name] = partition
        partition_list = partition_list.merge(delta)
    return PartitionList(list(changes.values()), partition_list.version), partition_list


def log_stats(title: str, partition_list: PartitionList, brokers: list[int] | None) -> None:
    loads = get_broker_loads(partition_list)
    for broker in brokers or ():
        loads.setdefault(broker, 0.0)
    _log.info(
        '%s: broker loads %s',
        title,
        {broker: loads[broker] for broker in sorted(loads)},
    )
    if len(loads) < 2:
        return
    _log.info(
        '%s: unbalance %f, coefficient of variation %f',
        title,
        get_broker_unbalance(loads),
        coefficient_of_variation(list(loads.values())),
    )


def _run(args: argparse.Namespace, stdin: TextIO, stdout: TextIO) -> int:
    try:
        brokers = broker_id_list(args.broker_ids)
    except ValueError as e:
        _log.error('failed parsing broker list "%s": %s', args.broker_ids, e)
        return EXIT_REBALANCE_ERROR

    if args.max_reassign < 0:
        _log.error('invalid number of max reassignments "%d"', args.max_reassign)
        return EXIT_REBALANCE_ERROR

    if args.from_zk and args.cluster_type:
        _log.error("can't specify both --from-zk and --cluster-type")
        return EXIT_REBALANCE_ERROR

    if args.input and (args.from_zk or args.cluster_type):
        _log.error("can't specify both --input and a zookeeper source")
        return EXIT_REBALANCE_ERROR

    try:
        if args.input:
            try:
                input_file = open(args.input)
            except OSError as e:
                _log.error('failed opening file %s: %s', args.input, e)
                return EXIT_INPUT_FILE_ERROR
            with input_file:
                partition_list = parse_partition_list(input_file, args.input_json)
        elif args.from_zk or args.cluster_type:
            with ZK(get_zookeeper(args)) as zk:
                partition_list = partition_list_from_zookeeper(zk)
        else:
            partition_list = parse_partition_list(stdin, args.input_json)
    except (KafkaBalancerError, KazooException, KazooTimeoutError, ValueError) as e:
        _log.error('failed getting partition list: %s', e)
        return EXIT_PARTITION_LIST_ERROR

    config = RebalanceConfig(
        allow_leader_rebalancing=args.allow_leader,
        min_replicas_for_rebalancing=args.min_replicas,
        min_unbalance=args.min_unbalance,
        brokers=brokers,
    )
    _log.info('rebalance config: %s', config)

    try:
        with profiled(args.profile):
            partition_list = resolve_defaults(partition_list, config)
            if args.show_stats:
                log_stats('Before', partition_list, brokers)
            changes, partition_list = rebalance(
                partition_list,
                config,
                args.max_reassign,
            )
    except RebalanceError as e:
        _log.error('failed optimizing distribution: %s', e)
        return EXIT_REBALANCE_ERROR

    if args.show_stats:
        log_stats('After', partition_list, brokers)

    output = partition_list if args.full_output else changes
    if output and not validate_plan(partition_list_to_dict(output)):
        _log.error('Invalid proposed partition list. Exiting.')
        return EXIT_REBALANCE_ERROR

    flush_logging()
    try:
        write_partition_list(stdout, output)
    except OSError as e:
        _log.error('failed writing partition list: %s', e)
        return EXIT_OUTPUT_ERROR
    return EXIT_OK


def run(
    argv: list[str] | None = None,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> int:
    try:
        args = parse_args(argv)
    except SystemExit as e:
        # Invalid arguments exit with 3, not argparse's 2
        if e.code:
            return EXIT_REBALANCE_ERROR
        raise

    configure_logging(args.logconf)

    try:
        return _run(args, stdin or sys.stdin, stdout or sys.stdout)
    finally:
        flush_logging()
