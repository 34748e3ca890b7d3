"""Tests for the command-line dispatch and lifecycle commands (docker is mocked)."""

import subprocess
from unittest import mock

import pytest

import main
from bootstrap.sequencer import BootstrapOutcome, Stage
from bootstrap.provisioner import ProvisionResult, Tenant
from cli import commands
from config import load_settings


def _completed(returncode=0, stdout='', stderr=''):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def project(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for var in ('SITE_NAME', 'FRAPPE_IMAGE', 'GITHUB_USERNAME', 'HTTP_PORT', 'BOOTSTRAP_DEPENDENCIES'):
        monkeypatch.delenv(var, raising=False)
    return tmp_path


@pytest.fixture
def project_settings(project):
    return load_settings(project_dir=project, environ={})


class TestParseOptions:
    def test_build_options(self):
        assert main.parse_options('build', ['-t', 'v15', '--file', 'my.json']) == {
            'tag': 'v15', 'file': 'my.json'}

    def test_unknown_option(self):
        with pytest.raises(ValueError, match="Unknown option"):
            main.parse_options('deploy', ['--force'])

    def test_missing_value(self):
        with pytest.raises(ValueError, match="needs a value"):
            main.parse_options('push', ['-u'])

    def test_global_options_are_split_out(self):
        rest, env_file, verbose = main.split_global_options(
            ['--env', 'prod.env', 'build', '-v', '-t', 'x'])
        assert rest == ['build', '-t', 'x']
        assert env_file == 'prod.env'
        assert verbose


class TestMain:
    def test_help(self, capsys):
        assert main.main(['help']) == 0
        assert 'create-site' in capsys.readouterr().out

    def test_unknown_command(self, project):
        assert main.main(['frobnicate']) == 1

    def test_bad_option_exits_1(self, project):
        assert main.main(['build', '--nope']) == 1

    def test_create_site_requires_name(self, project):
        assert main.main(['create-site']) == 1

    def test_dispatches_bootstrap(self, project):
        with mock.patch.object(commands, 'bootstrap_site', return_value=0) as run:
            assert main.main(['bootstrap']) == 0
        assert run.call_args.args[0].site_name == 'frontend'

    def test_invalid_configuration(self, project):
        (project / '.env').write_text('HTTP_PORT=99999\n')
        assert main.main(['deploy']) == 1

    def test_bad_dependency_list(self, project, capsys):
        (project / '.env').write_text('BOOTSTRAP_DEPENDENCIES=db\n')
        with mock.patch.object(commands, 'bootstrap_site') as run:
            assert main.main(['bootstrap']) == 1
        run.assert_not_called()
        assert 'host:port' in capsys.readouterr().out


def test_init_writes_samples_once(project_settings, project):
    assert commands.init_project(project_settings) == 0
    assert (project / 'apps.json').exists()
    assert 'SITE_NAME=frontend' in (project / '.env').read_text()

    (project / '.env').write_text('SITE_NAME=mine\n')
    commands.init_project(project_settings)
    assert (project / '.env').read_text() == 'SITE_NAME=mine\n'


def test_build_without_apps_json_fails(project_settings):
    with mock.patch('cli.commands.run_docker_with_progress') as run:
        assert commands.build_image(project_settings) == 1
    run.assert_not_called()


def test_build_passes_apps_as_build_arg(project_settings, capsys):
    commands.init_project(project_settings)
    with mock.patch('cli.commands.run_docker_with_progress', return_value=_completed()) as run:
        assert commands.build_image(project_settings, tag='v15') == 0

    cmd = run.call_args.args[0]
    assert cmd[:2] == ['docker', 'build']
    assert 'custom-frappe:v15' in cmd
    assert any(a.startswith('APPS_JSON_BASE64=') for a in cmd)
    assert 'erpnext, hrms, payments' in capsys.readouterr().out


def test_push_requires_username(project_settings):
    with mock.patch('cli.commands.safe_docker_run', return_value=_completed(returncode=1)):
        assert commands.push_image(project_settings) == 1


def test_push_tags_and_pushes_latest_too(project_settings):
    with mock.patch('cli.commands.safe_docker_run', return_value=_completed()) as docker, \
            mock.patch('cli.commands.run_docker_with_progress', return_value=_completed()) as push:
        assert commands.push_image(project_settings, tag='v15', username='me') == 0

    pushed = [c.args[0][-1] for c in push.call_args_list]
    assert pushed == ['ghcr.io/me/frappe-custom:v15', 'ghcr.io/me/frappe-custom:latest']
    assert ['docker', 'image', 'inspect', 'custom-frappe:v15'] in [c.args[0] for c in docker.call_args_list]


def test_deploy_without_compose_file(project_settings):
    assert commands.deploy_services(project_settings) == 1


def test_cleanup_skips_volumes_when_declined(project_settings):
    with mock.patch('cli.commands.safe_docker_run', return_value=_completed()) as docker:
        assert commands.cleanup(project_settings, prune_volumes=False) == 0
    assert ['docker', 'volume', 'prune', '-f'] not in [c.args[0] for c in docker.call_args_list]


def test_logs_rejects_bad_service_name(project_settings):
    assert commands.show_logs(project_settings, ['bad name']) == 1


def _outcome(succeeded, failures=()):
    tenant = Tenant(name='frontend', created_at=None, admin_password='a',
                    db_name='frappe', db_password='b')
    provision = ProvisionResult(tenant=tenant, created=True, installed=['hrms'],
                                failures=list(failures))
    if succeeded:
        return BootstrapOutcome(succeeded=True, provision=provision,
                                stages=[(Stage.WAITING_DEPS, 0.0), (Stage.DONE, 3.0)])
    return BootstrapOutcome(succeeded=False, failed_stage=Stage.WAITING_CONFIG,
                            reason='missing: redis_queue', stages=[(Stage.DONE, 120.0)])


@pytest.mark.parametrize("outcome,code", [
    (_outcome(True), 0),
    (_outcome(True, failures=[('erpnext', None)]), 0),
    (_outcome(False), 1),
])
def test_bootstrap_exit_codes(project_settings, outcome, code):
    with mock.patch('cli.commands.run_bootstrap', return_value=outcome):
        assert commands.bootstrap_site(project_settings) == code


def test_missing_docker_reports_status(project_settings, capsys):
    commands.init_project(project_settings)
    status = {'installed': False, 'running': False, 'message': 'Docker is not installed.'}
    with mock.patch('cli.commands.run_docker_with_progress', return_value=None), \
            mock.patch('cli.commands.check_docker_status', return_value=status):
        assert commands.build_image(project_settings) == 1
    assert 'Docker is not installed.' in capsys.readouterr().out


def test_bootstrap_marks_failed_stage(project_settings):
    outcome = BootstrapOutcome(
        succeeded=False, failed_stage=Stage.PROVISIONING, reason='exit code 1',
        stages=[(Stage.WAITING_DEPS, 0.0), (Stage.WAITING_CONFIG, 1.0),
                (Stage.PROVISIONING, 2.0), (Stage.DONE, 9.0)])

    with mock.patch('cli.commands.run_bootstrap', return_value=outcome), \
            mock.patch('cli.commands.show_step') as step:
        assert commands.bootstrap_site(project_settings) == 1

    statuses = [c.kwargs['status'] for c in step.call_args_list]
    assert statuses == ['done', 'done', 'error', 'done']
