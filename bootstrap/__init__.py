# BENCHDOCK v1.0 - Bootstrap sequencer for a fresh bench deployment
from bootstrap.errors import (
    BootstrapError,
    DependencyUnreachable,
    ConfigIncomplete,
    ConfigMalformed,
    AddonInstallFailed,
    ProvisionFailed,
    ReconcileFailed,
)
from bootstrap.sequencer import Sequencer, Stage, BootstrapOutcome, run_bootstrap

__all__ = [
    'BootstrapError',
    'DependencyUnreachable',
    'ConfigIncomplete',
    'ConfigMalformed',
    'AddonInstallFailed',
    'ProvisionFailed',
    'ReconcileFailed',
    'Sequencer',
    'Stage',
    'BootstrapOutcome',
    'run_bootstrap',
]
