# BENCHDOCK v1.0
'''Bootstrap sequencer.

Runs the first-start sequence for a deployment in strict order:

    init -> waiting_deps -> waiting_config -> provisioning -> reconciling -> done

Every stage either succeeds or ends the run with a failed outcome that names
the stage and the reason. Nothing is retried here: the create-site container
is simply started again, and provisioning and reconciling are safe to repeat.
'''

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from bootstrap.bench import BenchRunner
from bootstrap.errors import BootstrapError
from bootstrap.prober import ReadinessDeadline, tcp_connect, wait_all_ready
from bootstrap.provisioner import ProvisionResult, SiteProvisioner
from bootstrap.reconciler import reconcile
from bootstrap.site_config import wait_for_config

_log = logging.getLogger(__name__)


class Stage(str, Enum):
    INIT = 'init'
    WAITING_DEPS = 'waiting_deps'
    WAITING_CONFIG = 'waiting_config'
    PROVISIONING = 'provisioning'
    RECONCILING = 'reconciling'
    DONE = 'done'


@dataclass
class BootstrapOutcome:
    succeeded: bool
    failed_stage: Optional[Stage] = None
    reason: str = ''
    elapsed: float = 0.0
    provision: Optional[ProvisionResult] = None
    stages: List[Tuple[Stage, float]] = field(default_factory=list)

    @property
    def failed_addons(self):
        return self.provision.failed_addons if self.provision else []

    @property
    def exit_code(self):
        return 0 if self.succeeded else 1


class Sequencer:
    '''Drives one bootstrap run against a Settings instance'''

    def __init__(self, settings, bench=None, connect=tcp_connect,
                 clock=time.monotonic, sleep=time.sleep):
        self.settings = settings
        self.bench = bench or BenchRunner(settings.bench_dir)
        self.connect = connect
        self.clock = clock
        self.sleep = sleep
        self.stage = Stage.INIT
        self._start = None
        self._stages = []

    @property
    def elapsed(self):
        if self._start is None:
            return 0.0
        return self.clock() - self._start

    def _enter(self, stage):
        self.stage = stage
        self._stages.append((stage, self.elapsed))
        _log.info("[%s] entering stage (%.1fs elapsed)", stage.value, self.elapsed)

    def _failed(self, reason, provision=None):
        failed_stage = self.stage
        self._enter(Stage.DONE)
        _log.error("Bootstrap failed in %s after %.1fs: %s",
                   failed_stage.value, self.elapsed, reason)
        return BootstrapOutcome(
            succeeded=False,
            failed_stage=failed_stage,
            reason=reason,
            elapsed=self.elapsed,
            provision=provision,
            stages=list(self._stages),
        )

    # Stages

    def _wait_dependencies(self):
        deadlines = [
            ReadinessDeadline(dependency=d, timeout_seconds=self.settings.dependency_timeout)
            for d in self.settings.dependencies
        ]
        wait_all_ready(deadlines, interval=self.settings.dependency_interval,
                       connect=self.connect, clock=self.clock, sleep=self.sleep)

    def _wait_config(self):
        return wait_for_config(
            self.settings.common_site_config,
            self.settings.required_config_keys,
            deadline=self.settings.config_deadline,
            interval=self.settings.config_interval,
            clock=self.clock,
            sleep=self.sleep,
        )

    def _provision(self):
        s = self.settings
        provisioner = SiteProvisioner(self.bench, s.sites_dir, s.apps_dir, base_app=s.base_app)
        return provisioner.provision(
            s.site_name,
            admin_password=s.admin_password,
            db_password=s.db_password,
            db_root_password=s.db_root_password,
            db_name=s.db_name,
        )

    def run(self) -> BootstrapOutcome:
        self._start = self.clock()
        self._stages = []
        self.stage = Stage.INIT
        provision = None

        try:
            self._enter(Stage.WAITING_DEPS)
            self._wait_dependencies()

            self._enter(Stage.WAITING_CONFIG)
            self._wait_config()

            self._enter(Stage.PROVISIONING)
            provision = self._provision()

            self._enter(Stage.RECONCILING)
            reconcile(self.bench, self.settings.site_name)
        except BootstrapError as e:
            return self._failed(e.reason, provision)
        except OSError as e:
            # e.g. an unreadable sites or apps directory
            return self._failed(f"{type(e).__name__}: {e}", provision)

        self._enter(Stage.DONE)
        if provision.failures:
            _log.warning("Bootstrap finished in %.1fs, failed addons: %s",
                         self.elapsed, ', '.join(provision.failed_addons))
        else:
            _log.info("Bootstrap finished in %.1fs", self.elapsed)

        return BootstrapOutcome(
            succeeded=True,
            elapsed=self.elapsed,
            provision=provision,
            stages=list(self._stages),
        )


def run_bootstrap(settings, bench=None) -> BootstrapOutcome:
    '''Build a sequencer from settings and run it once'''
    return Sequencer(settings, bench=bench).run()
