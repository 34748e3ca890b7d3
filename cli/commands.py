# BENCHDOCK v1.0 - Lifecycle commands (build, push, deploy, exec, backup, ...)
import logging
from datetime import datetime
from pathlib import Path

from apps.manifest_loader import (app_name_from_url, encode_apps_config, load_apps_config,
                                  write_sample_apps)
from bootstrap import run_bootstrap
from bootstrap.bench import BenchRunner
from cli.ui import (console, confirm, show_error, show_info, show_result_panel, show_step,
                    show_step_detail, show_step_final, show_success, show_warning)
from utils.docker_progress import filter_docker_errors, run_docker_with_progress
from utils.docker_utils import (ContainerRuntime, check_docker_status, parse_docker_error,
                                safe_docker_run)
from utils.validation import validate_image_tag, validate_service_name, validate_site_name

_log = logging.getLogger(__name__)

SITES_PATH = '/home/frappe/frappe-bench/sites'

SAMPLE_ENV = '''# Database Configuration
DB_PASSWORD=admin
MYSQL_ROOT_PASSWORD=admin
DB_NAME=frappe

# Site Configuration
SITE_NAME=frontend
ADMIN_PASSWORD=admin

# Image Configuration
FRAPPE_IMAGE=custom-frappe:latest

# Network Configuration
HTTP_PORT=8080

# Bootstrap timeouts (seconds)
DEPENDENCY_TIMEOUT=120
CONFIG_DEADLINE=120

# Additional Environment Variables
TZ=UTC
'''


def _runtime(settings):
    return ContainerRuntime(settings.compose_file)


def _report_failure(result, action):
    '''Print a short docker error for a failed CompletedProcess (or missing docker)'''
    if result is None:
        show_error(f"{action} failed: {check_docker_status()['message']}")
        return 1
    message = parse_docker_error(filter_docker_errors(result.stderr or '') or result.stderr)
    show_error(f"{action} failed" + (f": {message}" if message else ''))
    return result.returncode or 1


def _require_compose_file(settings):
    if not Path(settings.compose_file).exists():
        show_error(f"{Path(settings.compose_file).name} not found")
        return False
    return True


# ── init ──────────────────────────────────────────────────────────────────────

def init_project(settings, force=False):
    '''Create a sample apps.json and .env in the project directory'''
    show_info("Initializing Frappe project structure...")

    apps_file = Path(settings.apps_file)
    env_file = Path(settings.project_dir) / '.env'

    if apps_file.exists() and not force:
        show_warning(f"{apps_file.name} already exists, leaving it untouched")
    else:
        write_sample_apps(apps_file)
        show_step_detail(f"{apps_file.name}: configure your Frappe apps")

    if env_file.exists() and not force:
        show_warning(".env already exists, leaving it untouched")
    else:
        env_file.write_text(SAMPLE_ENV, encoding='utf-8')
        show_step_detail(".env: environment variables")

    show_success("Project initialized successfully!")
    show_info(f"Edit {apps_file.name} to customize your apps, then run: benchdock build")
    return 0


# ── build / push ──────────────────────────────────────────────────────────────

def build_image(settings, tag='latest', apps_file=None):
    '''Build the custom image with the apps listed in apps.json baked in'''
    apps_file = Path(apps_file or settings.apps_file)
    try:
        tag = validate_image_tag(tag)
        apps = load_apps_config(apps_file)
        apps_b64 = encode_apps_config(apps_file)
    except ValueError as e:
        show_error(str(e))
        return 1

    image = f"{settings.image_name}:{tag}"
    show_success(f"{apps_file.name} validation passed ({len(apps)} apps)")
    show_step_detail(", ".join(app_name_from_url(a["url"]) for a in apps))
    show_info(f"Building Frappe Docker image: {image}")

    result = run_docker_with_progress(
        ['docker', 'build',
         '--build-arg', f'APPS_JSON_BASE64={apps_b64}',
         '--tag', image,
         '--file', str(settings.dockerfile),
         str(settings.project_dir)],
        f"Building {image}",
        cwd=str(settings.project_dir)
    )
    if result is None or result.returncode != 0:
        return _report_failure(result, "Build")

    show_success(f"Docker image built successfully: {image}")
    return 0


def get_registry_username(settings, username=None):
    '''Explicit username, then settings, then git config'''
    if username:
        return username
    if settings.registry_user:
        return settings.registry_user

    for key in ('github.user', 'user.name'):
        result = safe_docker_run(
            ['git', 'config', '--global', key],
            capture_output=True, text=True
        )
        if result is not None and result.returncode == 0 and result.stdout.strip():
            return result.stdout.strip()
    return ''


def _image_exists(image):
    result = safe_docker_run(['docker', 'image', 'inspect', image], capture_output=True)
    return result is not None and result.returncode == 0


def _tag_and_push(local_image, remote_image):
    result = safe_docker_run(['docker', 'tag', local_image, remote_image],
                             capture_output=True, text=True)
    if result is None or result.returncode != 0:
        return _report_failure(result, f"Tagging {remote_image}")

    result = run_docker_with_progress(['docker', 'push', remote_image], f"Pushing {remote_image}")
    if result is None or result.returncode != 0:
        return _report_failure(result, "Push")
    return 0


def push_image(settings, tag='latest', username=None, repo=None):
    '''Tag the local image for the registry and push it.
    Assumes `docker login` was already done for the registry.
    '''
    username = get_registry_username(settings, username)
    if not username:
        show_error("Registry username is required. Use -u or set git config github.user")
        return 1

    try:
        tag = validate_image_tag(tag)
    except ValueError as e:
        show_error(str(e))
        return 1

    repo = repo or settings.registry_repo
    local_image = f"{settings.image_name}:{tag}"
    remote_image = f"{settings.registry}/{username}/{repo}:{tag}"

    show_info(f"Local image: {local_image}")
    show_info(f"Remote image: {remote_image}")

    if not _image_exists(local_image):
        show_error(f"Local image '{local_image}' not found. Build it first with: benchdock build -t {tag}")
        return 1

    code = _tag_and_push(local_image, remote_image)
    if code:
        return code
    show_success(f"Successfully pushed: {remote_image}")

    if tag != 'latest':
        latest_remote = f"{settings.registry}/{username}/{repo}:latest"
        code = _tag_and_push(local_image, latest_remote)
        if code:
            return code
        show_success(f"Also pushed as: {latest_remote}")

    show_info(f"To use this image, set FRAPPE_IMAGE={remote_image} in .env")
    return 0


# ── compose lifecycle ─────────────────────────────────────────────────────────

def deploy_services(settings):
    '''Bring the whole stack up in the background'''
    if not _require_compose_file(settings):
        return 1

    runtime = _runtime(settings)
    result = run_docker_with_progress(runtime.compose('up', '-d', '--build'), "Deploying Frappe services")
    if result is None or result.returncode != 0:
        return _report_failure(result, "Deploy")

    show_success("Services deployed successfully!")
    show_info(f"Access your Frappe instance at: http://localhost:{settings.http_port}")
    show_info("Follow site creation with: benchdock logs create-site")
    return 0


def stop_services(settings):
    result = run_docker_with_progress(_runtime(settings).compose('stop'), "Stopping Frappe services")
    if result is None or result.returncode != 0:
        return _report_failure(result, "Stop")
    show_success("Services stopped")
    return 0


def down_services(settings):
    result = run_docker_with_progress(_runtime(settings).compose('down'),
                                      "Stopping and removing Frappe services")
    if result is None or result.returncode != 0:
        return _report_failure(result, "Down")
    show_success("Services removed")
    return 0


def show_logs(settings, services=(), follow=True):
    try:
        services = [validate_service_name(s) for s in services]
    except ValueError as e:
        show_error(str(e))
        return 1

    try:
        for line in _runtime(settings).logs(services, follow=follow):
            console.print(line, markup=False, highlight=False)
    except KeyboardInterrupt:
        pass
    return 0


def exec_command(settings, command=None):
    '''Run a command (default: bash) inside the backend container'''
    command = list(command or ['bash'])
    result = _runtime(settings).exec(settings.backend_service, command, tty=True)
    if result is None:
        show_error("docker is not installed")
        return 1
    return result.returncode


def create_site(settings, site_name):
    '''Create an extra site inside the running backend container'''
    try:
        site_name = validate_site_name(site_name)
    except ValueError as e:
        show_error(str(e))
        return 1

    show_info(f"Creating site: {site_name}")
    runtime = _runtime(settings)
    bench = BenchRunner(settings.bench_dir, prefix=runtime.exec_prefix(settings.backend_service))
    result = bench.new_site(
        site_name,
        admin_password=settings.admin_password,
        db_root_password=settings.db_root_password,
        set_default=False,
    )
    if not result.ok:
        show_error(f"Site '{site_name}' could not be created (exit {result.returncode})")
        if result.output:
            show_step_detail(result.output.strip().splitlines()[-1])
        return result.returncode or 1

    show_success(f"Site '{site_name}' created successfully")
    return 0


def backup_sites(settings):
    '''Back up every site with files and copy the sites folder to the host'''
    runtime = _runtime(settings)
    backup_dir = Path(settings.backup_dir) / datetime.now().strftime("%Y%m%d_%H%M%S")

    show_info("Creating backup...")
    result = runtime.exec(settings.backend_service,
                          ['bench', '--site', 'all', 'backup', '--with-files'])
    if result is None or result.returncode != 0:
        return _report_failure(result, "Backup")

    container = runtime.container_id(settings.backend_service)
    if not container:
        show_error(f"Could not find the {settings.backend_service} container")
        return 1

    backup_dir.parent.mkdir(parents=True, exist_ok=True)
    result = safe_docker_run(
        ['docker', 'cp', f"{container}:{SITES_PATH}", str(backup_dir)],
        capture_output=True, text=True
    )
    if result is None or result.returncode != 0:
        return _report_failure(result, "Copying backups")

    show_success(f"Backup completed in: {backup_dir}")
    return 0


def cleanup(settings, prune_volumes=None):
    '''Prune stopped containers and dangling images, optionally volumes'''
    show_info("Cleaning up Docker resources...")

    for what in ('container', 'image'):
        result = safe_docker_run(['docker', what, 'prune', '-f'], capture_output=True, text=True)
        if result is None or result.returncode != 0:
            return _report_failure(result, f"{what.capitalize()} prune")
        show_step_detail(f"Unused {what}s removed")

    if prune_volumes is None:
        prune_volumes = confirm("Remove unused volumes? This will delete data!", default=False)

    if prune_volumes:
        result = safe_docker_run(['docker', 'volume', 'prune', '-f'], capture_output=True, text=True)
        if result is None or result.returncode != 0:
            return _report_failure(result, "Volume prune")
        show_step_detail("Unused volumes removed")

    show_success("Cleanup completed")
    return 0


# ── bootstrap ─────────────────────────────────────────────────────────────────

def bootstrap_site(settings):
    '''Run the first-start sequence for settings.site_name in this process'''
    show_info(f"Bootstrapping site {settings.site_name} in {settings.bench_dir}")

    outcome = run_bootstrap(settings)

    for stage, at in outcome.stages:
        status = "error" if stage == outcome.failed_stage else "done"
        show_step(f"{stage.value} ({at:.1f}s)", status=status)

    if not outcome.succeeded:
        show_step_final(f"Failed in {outcome.failed_stage.value}: {outcome.reason}", success=False)
        return outcome.exit_code

    show_step_final(f"Bootstrap finished in {outcome.elapsed:.1f}s")
    provision = outcome.provision
    lines = [
        f"Site: {settings.site_name} ({'created' if provision.created else 'already existed'})",
        f"Installed apps: {', '.join(provision.installed) or 'none'}",
    ]
    if provision.failures:
        lines.append(f"Failed apps: {', '.join(provision.failed_addons)}")
        show_result_panel('\n'.join(lines), title="Partially provisioned")
    else:
        show_result_panel('\n'.join(lines))
    return outcome.exit_code
