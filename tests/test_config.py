"""Tests for Settings and .env loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from config import Dependency, Settings, load_settings


class TestDependency:
    def test_parse_host_port(self):
        dep = Dependency.parse("redis-cache:6379")
        assert (dep.name, dep.host, dep.port) == ("redis-cache", "redis-cache", 6379)

    def test_parse_named(self):
        dep = Dependency.parse("cache=redis:6380")
        assert (dep.name, dep.host, dep.port) == ("cache", "redis", 6380)

    @pytest.mark.parametrize("value", ["db", ":3306", "db:notaport", "db:70000"])
    def test_parse_rejects_bad_values(self, value):
        with pytest.raises(ValueError):
            Dependency.parse(value)


class TestSettings:
    def test_defaults_match_compose_file(self):
        s = Settings()
        assert [d.name for d in s.dependencies] == ["db", "redis-cache", "redis-queue"]
        assert s.required_config_keys == ("db_host", "redis_cache", "redis_queue")
        assert s.dependency_timeout == 120
        assert s.config_deadline == 120
        assert s.config_interval == 5

    def test_is_immutable(self):
        s = Settings()
        with pytest.raises(ValidationError):
            s.site_name = "other"

    def test_bench_paths(self):
        s = Settings(bench_dir=Path("/srv/bench"))
        assert s.common_site_config == Path("/srv/bench/sites/common_site_config.json")
        assert s.apps_dir == Path("/srv/bench/apps")

    @pytest.mark.parametrize("image,name", [
        ("custom-frappe:latest", "custom-frappe"),
        ("custom-frappe", "custom-frappe"),
        ("localhost:5000/frappe", "localhost:5000/frappe"),
        ("ghcr.io/me/frappe:v15", "ghcr.io/me/frappe"),
    ])
    def test_image_name_strips_tag(self, image, name):
        assert Settings(image=image).image_name == name

    def test_invalid_site_name(self):
        with pytest.raises(ValidationError):
            Settings(site_name="../etc")

    def test_negative_timeout(self):
        with pytest.raises(ValidationError):
            Settings(config_deadline=-1)


class TestLoadSettings:
    def test_reads_env_file(self, tmp_path):
        (tmp_path / ".env").write_text(
            "SITE_NAME=acme\nMYSQL_ROOT_PASSWORD=secret\nHTTP_PORT=9090\n"
            "CONFIG_DEADLINE=30\nBOOTSTRAP_DEPENDENCIES=db:3306,redis-queue:6379\n"
        )
        s = load_settings(project_dir=tmp_path, environ={})

        assert s.site_name == "acme"
        assert s.db_root_password == "secret"
        assert s.http_port == 9090
        assert s.config_deadline == 30
        assert [d.host for d in s.dependencies] == ["db", "redis-queue"]
        assert s.compose_file == tmp_path / "docker-compose.yml"

    def test_environment_wins_over_env_file(self, tmp_path):
        (tmp_path / ".env").write_text("SITE_NAME=from-file\n")
        s = load_settings(project_dir=tmp_path, environ={"SITE_NAME": "from-env"})
        assert s.site_name == "from-env"

    def test_db_root_password_prefers_explicit_variable(self, tmp_path):
        s = load_settings(project_dir=tmp_path, environ={
            "DB_ROOT_PASSWORD": "explicit", "MYSQL_ROOT_PASSWORD": "mysql"})
        assert s.db_root_password == "explicit"

    def test_missing_env_file_uses_defaults(self, tmp_path):
        s = load_settings(project_dir=tmp_path, environ={})
        assert s.site_name == "frontend"
        assert s.image == "custom-frappe:latest"

    def test_overrides_win(self, tmp_path):
        s = load_settings(project_dir=tmp_path, environ={"SITE_NAME": "env"}, site_name="kw")
        assert s.site_name == "kw"

    def test_empty_values_are_ignored(self, tmp_path):
        s = load_settings(project_dir=tmp_path, environ={"SITE_NAME": ""})
        assert s.site_name == "frontend"
