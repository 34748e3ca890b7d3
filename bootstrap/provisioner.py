# BENCHDOCK v1.0
'''Site provisioner: create the tenant site once, then install addons onto it'''

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

from bootstrap.errors import AddonInstallFailed, ConfigMalformed, ProvisionFailed
from bootstrap.site_config import read_site_config

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AddonSpec:
    name: str
    source_location: Path


@dataclass(frozen=True)
class Tenant:
    name: str
    created_at: Optional[datetime]
    admin_password: str = field(repr=False)
    db_name: str
    db_password: str = field(repr=False)


@dataclass
class ProvisionResult:
    tenant: Tenant
    created: bool
    installed: List[str] = field(default_factory=list)
    failures: List[Tuple[str, AddonInstallFailed]] = field(default_factory=list)

    @property
    def failed_addons(self):
        return [name for name, _ in self.failures]

    @property
    def status(self):
        return 'partially_provisioned' if self.failures else 'provisioned'


def discover_addons(apps_dir, exclude=()):
    '''List addon packages installed under apps_dir, sorted by name'''
    apps_dir = Path(apps_dir)
    if not apps_dir.is_dir():
        return []

    addons = []
    for entry in sorted(apps_dir.iterdir(), key=lambda p: p.name):
        if not entry.is_dir() or entry.name.startswith('.'):
            continue
        if entry.name in exclude:
            continue
        addons.append(AddonSpec(name=entry.name, source_location=entry))
    return addons


class SiteProvisioner:
    '''Idempotent tenant creation plus best-effort addon installation'''

    def __init__(self, bench, sites_dir, apps_dir, base_app='frappe', now=None):
        self.bench = bench
        self.sites_dir = Path(sites_dir)
        self.apps_dir = Path(apps_dir)
        self.base_app = base_app
        self._now = now or (lambda: datetime.now(timezone.utc))

    def site_exists(self, name):
        return (self.sites_dir / name).is_dir()

    def _default_site(self):
        try:
            config = read_site_config(self.sites_dir / 'common_site_config.json')
        except ConfigMalformed:
            return None
        return (config or {}).get('default_site') or None

    def discover_addons(self):
        exclude = (self.base_app,) if self.base_app else ()
        return discover_addons(self.apps_dir, exclude=exclude)

    def create_site(self, tenant_name, admin_password, db_password, db_root_password, db_name):
        '''Create the site. Raises ProvisionFailed if bench exits non-zero.'''
        set_default = self._default_site() is None
        _log.info("Creating site: %s", tenant_name)

        result = self.bench.new_site(
            tenant_name,
            admin_password=admin_password,
            db_password=db_password,
            db_name=db_name,
            db_root_password=db_root_password,
            set_default=set_default,
        )
        if not result.ok:
            tail = result.output.strip().splitlines()[-1:] if result.output else []
            detail = f": {tail[0]}" if tail else ''
            raise ProvisionFailed(
                f"bench new-site {tenant_name} failed with exit code {result.returncode}{detail}")

        if set_default:
            _log.info("Site %s set as default", tenant_name)
        return self._now()

    def install_addons(self, tenant_name, addons):
        '''Install each addon in order, collecting failures instead of stopping'''
        installed = []
        failures = []

        for addon in addons:
            _log.info("Installing app: %s", addon.name)
            result = self.bench.install_app(tenant_name, addon.name)
            if result.ok:
                installed.append(addon.name)
                continue

            error = AddonInstallFailed(addon.name, result.returncode, result.output)
            _log.warning("Failed to install %s, continuing...", addon.name)
            failures.append((addon.name, error))

        return installed, failures

    def provision(self, tenant_name, admin_password, db_password, db_root_password, db_name,
                  addons=None):
        created_at = None
        created = False

        if self.site_exists(tenant_name):
            _log.info("Site %s already exists, skipping creation", tenant_name)
        else:
            created_at = self.create_site(
                tenant_name, admin_password, db_password, db_root_password, db_name)
            created = True

        if addons is None:
            addons = self.discover_addons()
        else:
            addons = sorted(addons, key=lambda a: a.name)

        installed, failures = self.install_addons(tenant_name, addons)

        tenant = Tenant(
            name=tenant_name,
            created_at=created_at,
            admin_password=admin_password,
            db_name=db_name,
            db_password=db_password,
        )
        result = ProvisionResult(tenant=tenant, created=created,
                                 installed=installed, failures=failures)

        if failures:
            _log.warning("Site %s provisioned, %d addon(s) failed: %s",
                         tenant_name, len(failures), ', '.join(result.failed_addons))
        else:
            _log.info("Site %s provisioned with %d addon(s)", tenant_name, len(installed))
        return result
