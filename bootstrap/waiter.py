# BENCHDOCK v1.0
'''Generic poll-until-ready helper shared by the readiness prober and config waiter'''

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

_log = logging.getLogger(__name__)


@dataclass
class WaitResult:
    '''Outcome of a bounded wait'''
    ready: bool
    value: Any = None
    elapsed: float = 0.0
    attempts: int = 0

    @property
    def timed_out(self):
        return not self.ready


def await_condition(
    check: Callable[[], Any],
    interval: float,
    deadline: float,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
    on_retry: Optional[Callable[[int, float], None]] = None,
) -> WaitResult:
    '''Call check() until it returns something truthy or deadline seconds pass.

    The last sleep is clamped to the remaining budget, so a timed out wait
    never overshoots the deadline by more than one check.
    '''
    if interval < 0:
        raise ValueError("interval must be >= 0")
    if deadline < 0:
        raise ValueError("deadline must be >= 0")

    start = clock()
    attempts = 0

    while True:
        attempts += 1
        value = check()
        elapsed = clock() - start

        if value:
            return WaitResult(ready=True, value=value, elapsed=elapsed, attempts=attempts)

        remaining = deadline - elapsed
        if remaining <= 0:
            _log.debug("Condition not met after %d attempts (%.1fs)", attempts, elapsed)
            return WaitResult(ready=False, elapsed=elapsed, attempts=attempts)

        if on_retry:
            on_retry(attempts, elapsed)

        sleep(min(interval, remaining))
