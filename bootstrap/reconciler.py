# BENCHDOCK v1.0
'''Post-provision reconciler: migrate the site and restart workers'''

import logging

from bootstrap.errors import ReconcileFailed

_log = logging.getLogger(__name__)


def _last_line(output):
    lines = [l for l in (output or '').strip().splitlines() if l.strip()]
    return f": {lines[-1]}" if lines else ''


def reconcile(bench, tenant_name):
    '''Run outstanding migrations, then restart dependent workers.

    Safe to run on every bootstrap. Raises ReconcileFailed on the first
    failing step; migrations already applied are left in place.
    '''
    _log.info("Migrating %s", tenant_name)
    result = bench.migrate(tenant_name)
    if not result.ok:
        raise ReconcileFailed(
            f"bench --site {tenant_name} migrate failed with exit code "
            f"{result.returncode}{_last_line(result.output)}")

    _log.info("Restarting services")
    result = bench.restart()
    if not result.ok:
        raise ReconcileFailed(
            f"bench restart failed with exit code {result.returncode}{_last_line(result.output)}")
