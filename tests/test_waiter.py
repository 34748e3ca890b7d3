"""Tests for the shared poll-until-ready helper."""

import pytest

from bootstrap.waiter import await_condition


def test_ready_on_first_check_does_not_sleep(clock):
    result = await_condition(lambda: "ok", interval=1, deadline=10,
                             clock=clock, sleep=clock.sleep)
    assert result.ready
    assert result.value == "ok"
    assert result.attempts == 1
    assert clock.sleeps == []


def test_ready_after_several_checks(clock):
    answers = iter([None, False, {}, {"k": "v"}])
    result = await_condition(lambda: next(answers), interval=2, deadline=60,
                             clock=clock, sleep=clock.sleep)
    assert result.ready
    assert result.value == {"k": "v"}
    assert result.attempts == 4
    assert result.elapsed == pytest.approx(6)


@pytest.mark.parametrize("interval,deadline", [(1, 10), (5, 120), (7, 20), (3, 0)])
def test_timeout_never_overshoots_deadline_by_more_than_one_interval(clock, interval, deadline):
    result = await_condition(lambda: False, interval=interval, deadline=deadline,
                             clock=clock, sleep=clock.sleep)
    assert result.timed_out
    assert deadline <= result.elapsed <= deadline + interval


def test_last_sleep_is_clamped_to_remaining_budget(clock):
    await_condition(lambda: False, interval=7, deadline=20, clock=clock, sleep=clock.sleep)
    assert clock.sleeps == [7, 7, 6]


def test_on_retry_called_between_attempts(clock):
    seen = []
    await_condition(lambda: False, interval=5, deadline=10, clock=clock, sleep=clock.sleep,
                    on_retry=lambda attempt, elapsed: seen.append((attempt, elapsed)))
    assert seen == [(1, 0), (2, 5)]


def test_negative_interval_rejected(clock):
    with pytest.raises(ValueError):
        await_condition(lambda: True, interval=-1, deadline=1, clock=clock, sleep=clock.sleep)
