import re
import subprocess

HEALTHY = 'healthy'
UNHEALTHY = 'unhealthy'
UNKNOWN = 'unknown'

_HEALTH_MAP = {
    'healthy': HEALTHY,
    'running': HEALTHY,
    'unhealthy': UNHEALTHY,
    'exited': UNHEALTHY,
    'dead': UNHEALTHY,
}


def get_docker_compose_command():
    """Get the correct docker compose command for the system"""

    try:
        # Try new format: docker compose (Docker 20.10+)
        result = subprocess.run(
            ['docker', 'compose', '--version'],
            capture_output=True,
            text=True
        )

        if result.returncode == 0:
            return ['docker', 'compose']

        # Fallback to old format: docker-compose (legacy)
        result = subprocess.run(
            ['docker-compose', '--version'],
            capture_output=True,
            text=True
        )

        if result.returncode == 0:
            return ['docker-compose']
    except FileNotFoundError:
        pass

    # Default to new format (will provide helpful error if neither available)
    return ['docker', 'compose']


def safe_docker_run(command, **kwargs):
    """Run a docker command safely - returns None if Docker is not installed."""
    try:
        return subprocess.run(command, **kwargs)
    except FileNotFoundError:
        return None


def check_docker_status():
    """Check Docker availability and return detailed status."""
    try:
        result = subprocess.run(
            ['docker', 'info'],
            capture_output=True,
            text=True,
            timeout=10
        )
        if result.returncode == 0:
            return {'installed': True, 'running': True, 'message': 'Docker is running'}
        else:
            stderr = result.stderr.lower()
            if 'cannot connect' in stderr or 'is the docker daemon running' in stderr:
                return {'installed': True, 'running': False, 'message': 'Docker is installed but not running. Start Docker first.'}
            return {'installed': True, 'running': False, 'message': f'Docker error: {result.stderr.strip()[:100]}'}
    except FileNotFoundError:
        return {'installed': False, 'running': False, 'message': 'Docker is not installed.'}
    except subprocess.TimeoutExpired:
        return {'installed': True, 'running': False, 'message': 'Docker is not responding (timeout). Restart Docker.'}


def parse_docker_error(stderr):
    """Parse Docker stderr into a short, readable error message."""
    text = (stderr or '').strip()
    if not text:
        return ''
    lower = text.lower()

    if 'port is already allocated' in lower:
        m = re.search(r'(\d+\.\d+\.\d+\.\d+:\d+)', text)
        port = m.group(1) if m else 'unknown'
        return f'Port {port} is already in use. Change HTTP_PORT in .env.'

    if 'is the docker daemon running' in lower or 'cannot connect' in lower:
        return 'Docker is not running. Start Docker first.'

    if 'no such image' in lower or 'manifest unknown' in lower:
        return 'Docker image not found. Build it first or check the image name.'

    if 'denied' in lower and ('push' in lower or 'unauthorized' in lower or 'requested access' in lower):
        return 'Registry denied the request. Log in to the registry first.'

    if 'permission denied' in lower:
        return 'Permission denied. Run with admin/sudo privileges.'

    if 'no space left' in lower:
        return 'No disk space left. Free up space and try again.'

    # Fallback: extract last meaningful line
    for line in reversed(text.splitlines()):
        line = line.strip()
        if line and not line.startswith(('time=', '|')):
            return line[:200]

    return 'Unknown error. Check Docker logs for details.'


class ContainerRuntime:
    '''Start, stop, exec into and inspect the services of one compose project'''

    def __init__(self, compose_file, compose_command=None):
        self.compose_file = str(compose_file)
        self._compose_command = compose_command

    @property
    def compose_command(self):
        if self._compose_command is None:
            self._compose_command = get_docker_compose_command()
        return self._compose_command

    def compose(self, *args):
        '''Full command line for a compose subcommand'''
        return list(self.compose_command) + ['-f', self.compose_file] + list(args)

    def _run(self, args, capture=True):
        return safe_docker_run(
            args,
            capture_output=capture,
            text=True,
            encoding='utf-8',
            errors='ignore'
        )

    def start(self, service=None, build=False):
        args = ['up', '-d']
        if build:
            args.append('--build')
        if service:
            args.append(service)
        return self._run(self.compose(*args))

    def stop(self, service=None):
        args = ['stop'] + ([service] if service else [])
        return self._run(self.compose(*args))

    def exec_prefix(self, service, tty=False):
        '''Command prefix that runs something inside service'''
        args = ['exec'] + ([] if tty else ['-T']) + [service]
        return self.compose(*args)

    def exec(self, service, command, tty=False):
        '''Run command (a list) inside a running service.

        With tty=True the terminal is handed to the command and nothing is captured.
        '''
        return self._run(self.exec_prefix(service, tty) + list(command), capture=not tty)

    def logs(self, services=(), follow=False):
        '''Yield log lines from services (all services when empty)'''
        args = ['logs', '--no-color'] + (['-f'] if follow else []) + list(services)
        try:
            process = subprocess.Popen(
                self.compose(*args),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding='utf-8',
                errors='ignore',
                bufsize=1
            )
        except FileNotFoundError:
            return

        try:
            for line in iter(process.stdout.readline, ''):
                yield line.rstrip('\n')
        finally:
            if process.poll() is None:
                process.terminate()
            process.wait()

    def container_id(self, service):
        result = self._run(self.compose('ps', '-q', service))
        if result is None or result.returncode != 0:
            return None
        ids = result.stdout.strip().splitlines()
        return ids[0].strip() if ids else None

    def health(self, service):
        '''Return healthy, unhealthy or unknown for a service'''
        container = self.container_id(service)
        if not container:
            return UNKNOWN

        result = self._run([
            'docker', 'inspect', container, '--format',
            '{{if .State.Health}}{{.State.Health.Status}}{{else}}{{.State.Status}}{{end}}'
        ])
        if result is None or result.returncode != 0:
            return UNKNOWN

        return _HEALTH_MAP.get(result.stdout.strip().lower(), UNKNOWN)
