# BENCHDOCK v1.0
'''Runs the wrapped platform's `bench` command line.

Exit code is the only success signal; output is kept for logging.
'''

import logging
import subprocess
from dataclasses import dataclass

_log = logging.getLogger(__name__)


@dataclass
class BenchResult:
    args: list
    returncode: int
    output: str = ''

    @property
    def ok(self):
        return self.returncode == 0


class BenchRunner:
    '''Invoke bench as a subprocess inside the bench directory.

    prefix lets the same runner go through a container, e.g.
    ['docker', 'compose', '-f', 'docker-compose.yml', 'exec', '-T', 'backend'].
    '''

    def __init__(self, bench_dir, prefix=None, executable='bench'):
        self.bench_dir = bench_dir
        self.prefix = list(prefix or [])
        self.executable = executable

    def command(self, args):
        return self.prefix + [self.executable] + list(args)

    def run(self, args, secret_args=()):
        '''Run bench with args. secret_args values are masked in logs.'''
        cmd = self.command(args)
        shown = [_mask(a, secret_args) for a in cmd]
        _log.debug("Running: %s", ' '.join(shown))

        try:
            result = subprocess.run(
                cmd,
                cwd=None if self.prefix else str(self.bench_dir),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding='utf-8',
                errors='ignore',
            )
        except FileNotFoundError as e:
            _log.error("Cannot run %s: %s", cmd[0], e)
            return BenchResult(args=shown, returncode=127, output=str(e))
        except OSError as e:
            # Found but not executable
            _log.error("Cannot run %s: %s", cmd[0], e)
            return BenchResult(args=shown, returncode=126, output=str(e))

        output = result.stdout or ''
        for line in output.splitlines():
            if line.strip():
                _log.debug("  %s", line)

        return BenchResult(args=shown, returncode=result.returncode, output=output)

    # Commands used by the bootstrap

    def new_site(self, site, admin_password, db_root_password, db_password=None,
                 db_name=None, set_default=True):
        args = [
            'new-site', site,
            '--mariadb-user-host-login-scope=%',
            f'--admin-password={admin_password}',
        ]
        if db_password:
            args.append(f'--db-password={db_password}')
        if db_name:
            args.append(f'--db-name={db_name}')
        args.append(f'--db-root-password={db_root_password}')
        if set_default:
            args.append('--set-default')
        return self.run(args, secret_args=(admin_password, db_password, db_root_password))

    def install_app(self, site, app):
        return self.run(['--site', site, 'install-app', app])

    def migrate(self, site):
        return self.run(['--site', site, 'migrate'])

    def restart(self):
        return self.run(['restart'])


def _mask(arg, secrets):
    '''Hide option values that carry a secret: --db-password=x -> --db-password=****'''
    key, sep, value = arg.partition('=')
    if sep and key.startswith('--') and any(s and s == value for s in secrets):
        return f"{key}=****"
    return arg
