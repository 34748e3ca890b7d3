# BENCHDOCK v1.0 - Bootstrap error taxonomy


class BootstrapError(Exception):
    '''Base class for every failure the sequencer can surface'''

    stage = None

    def __init__(self, message, stage=None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage

    @property
    def reason(self):
        return str(self)


class DependencyUnreachable(BootstrapError):
    '''A dependency did not accept connections before its deadline'''

    stage = 'waiting_deps'

    def __init__(self, dependencies, timeout):
        self.dependencies = list(dependencies)
        self.timeout = timeout
        names = ', '.join(f"{d.name} ({d.host}:{d.port})" for d in self.dependencies)
        super().__init__(f"Dependencies not reachable after {timeout}s: {names}")


class ConfigMalformed(BootstrapError):
    '''Shared config artifact could not be read or parsed'''

    stage = 'waiting_config'

    def __init__(self, path, detail):
        self.path = path
        self.detail = detail
        super().__init__(f"{path} is unreadable: {detail}")


class ConfigIncomplete(BootstrapError):
    '''Required keys never all appeared in the shared config'''

    stage = 'waiting_config'

    def __init__(self, path, missing, deadline):
        self.path = path
        self.missing = sorted(missing)
        self.deadline = deadline
        super().__init__(
            f"Could not find {path} with required keys after {deadline}s "
            f"(missing: {', '.join(self.missing)})"
        )


class AddonInstallFailed(BootstrapError):
    '''One addon failed to install. Collected, never raised by the provisioner'''

    stage = 'provisioning'

    def __init__(self, addon, returncode, output=''):
        self.addon = addon
        self.returncode = returncode
        self.output = output
        super().__init__(f"Failed to install {addon} (exit {returncode})")


class ProvisionFailed(BootstrapError):
    stage = 'provisioning'


class ReconcileFailed(BootstrapError):
    stage = 'reconciling'
