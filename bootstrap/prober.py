# BENCHDOCK v1.0
'''Readiness prober: wait for dependencies to accept TCP connections'''

import logging
import socket
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from bootstrap.errors import DependencyUnreachable
from bootstrap.waiter import await_condition
from config import Dependency

_log = logging.getLogger(__name__)

DEFAULT_PROBE_INTERVAL = 1.0
DEFAULT_CONNECT_TIMEOUT = 2.0


@dataclass(frozen=True)
class ReadinessDeadline:
    dependency: Dependency
    timeout_seconds: float


def tcp_connect(host, port, timeout=DEFAULT_CONNECT_TIMEOUT):
    '''Return True if host:port accepts a TCP connection'''
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


def wait_ready(dependency, timeout, interval=DEFAULT_PROBE_INTERVAL,
               connect=tcp_connect, clock=time.monotonic, sleep=time.sleep):
    '''Block until dependency accepts connections or timeout elapses.

    Returns a WaitResult; callers decide whether a timeout is fatal.
    '''
    _log.info("Waiting %ss for %s (%s:%s)", timeout, dependency.name,
              dependency.host, dependency.port)

    connect_timeout = min(DEFAULT_CONNECT_TIMEOUT, max(timeout, 0.1))
    result = await_condition(
        lambda: connect(dependency.host, dependency.port, connect_timeout),
        interval=interval,
        deadline=timeout,
        clock=clock,
        sleep=sleep,
    )

    if result.ready:
        _log.info("%s:%s is available after %.1f seconds",
                  dependency.host, dependency.port, result.elapsed)
    else:
        _log.error("Timeout occurred after waiting %ss for %s:%s",
                   timeout, dependency.host, dependency.port)
    return result


def wait_all_ready(deadlines, interval=DEFAULT_PROBE_INTERVAL, connect=tcp_connect,
                   clock=time.monotonic, sleep=time.sleep):
    '''Probe every dependency concurrently and join.

    Raises DependencyUnreachable naming every dependency that timed out.
    Returns {dependency name: WaitResult} when all are ready.
    '''
    deadlines = list(deadlines)
    if not deadlines:
        return {}

    with ThreadPoolExecutor(max_workers=len(deadlines), thread_name_prefix='probe') as pool:
        futures = [
            (d, pool.submit(wait_ready, d.dependency, d.timeout_seconds,
                            interval, connect, clock, sleep))
            for d in deadlines
        ]
        results = [(d, fut.result()) for d, fut in futures]

    failed = [d for d, result in results if result.timed_out]
    if failed:
        raise DependencyUnreachable(
            [d.dependency for d in failed],
            max(d.timeout_seconds for d in failed),
        )

    return {d.dependency.name: result for d, result in results}
