"""
Shared fixtures for the bootstrap tests.

Nothing here touches docker or the network: time is simulated with FakeClock
and the bench CLI is replaced by FakeBench, which records every call and
creates the site directory the way `bench new-site` does.
"""

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config import Dependency, Settings  # noqa: E402
from fakes import FakeBench, FakeClock  # noqa: E402


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def bench_dir(tmp_path):
    """A bench tree with the base app plus two addons."""
    root = tmp_path / "frappe-bench"
    (root / "sites").mkdir(parents=True)
    for app in ("frappe", "hrms", "erpnext"):
        (root / "apps" / app).mkdir(parents=True)
    return root


@pytest.fixture
def write_site_config(bench_dir):
    def _write(data):
        path = bench_dir / "sites" / "common_site_config.json"
        path.write_text(data if isinstance(data, str) else json.dumps(data))
        return path
    return _write


@pytest.fixture
def full_config():
    return {
        "db_host": "db",
        "db_port": 3306,
        "redis_cache": "redis://redis-cache:6379",
        "redis_queue": "redis://redis-queue:6379",
    }


@pytest.fixture
def settings(bench_dir):
    return Settings(
        bench_dir=bench_dir,
        site_name="acme",
        dependencies=(
            Dependency(name="db", host="db", port=3306),
            Dependency(name="redis-cache", host="redis-cache", port=6379),
        ),
        dependency_timeout=10,
        dependency_interval=1,
        config_deadline=120,
        config_interval=5,
    )


@pytest.fixture
def fake_bench(bench_dir):
    return FakeBench(bench_dir / "sites")
