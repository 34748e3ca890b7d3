# BENCHDOCK v1.0 - Immutable settings for commands and the bootstrap sequencer
import os
from pathlib import Path
from typing import Optional, Tuple

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, field_validator

from utils.validation import validate_port, validate_site_name

PROJECT_DIR = Path.cwd()

DEFAULT_DEPENDENCIES = 'db:3306,redis-cache:6379,redis-queue:6379'
REQUIRED_CONFIG_KEYS = ('db_host', 'redis_cache', 'redis_queue')


class Dependency(BaseModel):
    '''A network service the bootstrap must see before provisioning'''
    model_config = ConfigDict(frozen=True)

    name: str
    host: str
    port: int

    @field_validator('port')
    @classmethod
    def _check_port(cls, value):
        return validate_port(value)

    @classmethod
    def parse(cls, value):
        '''Parse "host:port" or "name=host:port"'''
        value = value.strip()
        name = None
        if '=' in value:
            name, _, value = value.partition('=')
            name = name.strip()
        host, sep, port = value.rpartition(':')
        if not sep or not host:
            raise ValueError(f"Dependency must look like host:port, got '{value}'")
        return cls(name=name or host, host=host, port=port)


class Settings(BaseModel):
    '''Everything the commands need, resolved once at startup'''
    model_config = ConfigDict(frozen=True)

    # Image
    image: str = 'custom-frappe:latest'
    registry: str = 'ghcr.io'
    registry_repo: str = 'frappe-custom'
    registry_user: str = ''

    # Project files
    project_dir: Path = PROJECT_DIR
    compose_file: Path = PROJECT_DIR / 'docker-compose.yml'
    apps_file: Path = PROJECT_DIR / 'apps.json'
    dockerfile: Path = PROJECT_DIR / 'Dockerfile'
    backup_dir: Path = PROJECT_DIR / 'backups'
    backend_service: str = 'backend'

    # Site
    site_name: str = 'frontend'
    admin_password: str = 'admin'
    db_name: str = 'frappe'
    db_password: str = 'admin'
    db_root_password: str = 'admin'
    http_port: int = 8080

    # Bootstrap
    bench_dir: Path = Path('/home/frappe/frappe-bench')
    base_app: str = 'frappe'
    dependencies: Tuple[Dependency, ...] = tuple(
        Dependency.parse(d) for d in DEFAULT_DEPENDENCIES.split(','))
    dependency_timeout: float = 120
    dependency_interval: float = 1.0
    config_deadline: float = 120
    config_interval: float = 5.0
    required_config_keys: Tuple[str, ...] = REQUIRED_CONFIG_KEYS

    log_level: str = 'INFO'

    @field_validator('site_name')
    @classmethod
    def _check_site_name(cls, value):
        return validate_site_name(value)

    @field_validator('http_port')
    @classmethod
    def _check_http_port(cls, value):
        return validate_port(value)

    @field_validator('dependency_timeout', 'config_deadline',
                     'dependency_interval', 'config_interval')
    @classmethod
    def _check_non_negative(cls, value):
        if value < 0:
            raise ValueError("Timeouts and intervals must be >= 0")
        return value

    @property
    def image_name(self):
        '''Image reference without its tag'''
        name, sep, tag = self.image.rpartition(':')
        if sep and '/' not in tag:
            return name
        return self.image

    @property
    def sites_dir(self):
        return self.bench_dir / 'sites'

    @property
    def apps_dir(self):
        return self.bench_dir / 'apps'

    @property
    def common_site_config(self):
        return self.sites_dir / 'common_site_config.json'


# Setting name -> environment variable(s), first match wins
ENV_MAP = {
    'image': ('FRAPPE_IMAGE',),
    'registry': ('REGISTRY',),
    'registry_repo': ('GHCR_REPO',),
    'registry_user': ('GITHUB_USERNAME',),
    'site_name': ('SITE_NAME',),
    'admin_password': ('ADMIN_PASSWORD',),
    'db_name': ('DB_NAME',),
    'db_password': ('DB_PASSWORD',),
    'db_root_password': ('DB_ROOT_PASSWORD', 'MYSQL_ROOT_PASSWORD'),
    'http_port': ('HTTP_PORT',),
    'bench_dir': ('BENCH_DIR',),
    'base_app': ('BASE_APP',),
    'dependencies': ('BOOTSTRAP_DEPENDENCIES',),
    'dependency_timeout': ('DEPENDENCY_TIMEOUT',),
    'dependency_interval': ('DEPENDENCY_INTERVAL',),
    'config_deadline': ('CONFIG_DEADLINE',),
    'config_interval': ('CONFIG_INTERVAL',),
    'backend_service': ('BACKEND_SERVICE',),
    'log_level': ('BENCHDOCK_LOG_LEVEL',),
}


def read_env_file(env_file):
    '''Read KEY=value pairs from a .env file, empty dict if missing'''
    env_file = Path(env_file)
    if not env_file.exists():
        return {}
    return {k: v for k, v in dotenv_values(env_file).items() if v is not None}


def load_settings(project_dir=None, env_file=None, environ=None, **overrides) -> Settings:
    '''Build Settings from <project_dir>/.env, then the process environment.

    Process environment wins over the .env file, keyword overrides win over both.
    '''
    project_dir = Path(project_dir) if project_dir else Path.cwd()
    env_file = Path(env_file) if env_file else project_dir / '.env'
    environ = os.environ if environ is None else environ

    merged = dict(read_env_file(env_file))
    merged.update(environ)

    values = {
        'project_dir': project_dir,
        'compose_file': project_dir / 'docker-compose.yml',
        'apps_file': project_dir / 'apps.json',
        'dockerfile': project_dir / 'Dockerfile',
        'backup_dir': project_dir / 'backups',
    }
    for field, env_names in ENV_MAP.items():
        for env_name in env_names:
            raw = merged.get(env_name)
            if raw not in (None, ''):
                values[field] = raw
                break

    if isinstance(values.get('dependencies'), str):
        values['dependencies'] = tuple(
            Dependency.parse(d) for d in values['dependencies'].split(',') if d.strip())

    values.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**values)


def get_settings(project_dir=None, env_file=None, **overrides) -> Settings:
    '''Load settings for the CLI'''
    return load_settings(project_dir=project_dir, env_file=env_file, **overrides)
