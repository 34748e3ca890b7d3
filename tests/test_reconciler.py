"""Tests for the post-provision reconciler."""

import pytest

from bootstrap.errors import ReconcileFailed
from bootstrap.reconciler import reconcile
from fakes import FakeBench


def test_migrates_then_restarts(fake_bench):
    reconcile(fake_bench, "acme")
    assert fake_bench.calls == [("migrate", "acme"), ("restart",)]


def test_migrate_failure_skips_restart(bench_dir):
    bench = FakeBench(bench_dir / "sites", fail_migrate=True)
    with pytest.raises(ReconcileFailed) as exc:
        reconcile(bench, "acme")
    assert "migrate" in str(exc.value)
    assert exc.value.stage == "reconciling"
    assert bench.names("restart") == []


def test_restart_failure(bench_dir):
    bench = FakeBench(bench_dir / "sites", fail_restart=True)
    with pytest.raises(ReconcileFailed, match="restart"):
        reconcile(bench, "acme")


def test_safe_to_repeat(fake_bench):
    reconcile(fake_bench, "acme")
    reconcile(fake_bench, "acme")
    assert len(fake_bench.names("migrate")) == 2
