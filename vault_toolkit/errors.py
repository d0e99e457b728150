"""Exception hierarchy for vault-toolkit.

PUBLIC API:
  - VaultToolkitError: Base class for every error raised by this package
  - VaultConfigurationError: Invalid or incomplete vault configuration
  - VaultArgumentError: Structurally invalid caller arguments
  - VaultEncryptionError: ansible-vault ran but failed or did not exit
  - ProcessLaunchError: A subprocess could not be started at all
  - ProcessQueryError: The process listing tool itself failed
  - ProcessStateError: Zero or multiple processes where exactly one was required
  - ProcessTerminationError: Base for kill timeouts
  - ProcessTerminationTimeoutError: Process did not end before the kill timeout
  - ProcessForceKillError: Process survived a forced kill
"""
from typing import List, Optional, Sequence


class VaultToolkitError(Exception):
    """Base class for vault-toolkit errors."""
    pass


class VaultConfigurationError(VaultToolkitError):
    """Configuration error listing every violation found."""

    def __init__(self, violations: Sequence[str]):
        self.violations: List[str] = list(violations)
        super().__init__(", ".join(self.violations))


class VaultArgumentError(VaultToolkitError, ValueError):
    """Invalid argument, raised before any subprocess is launched."""
    pass


class VaultEncryptionError(VaultToolkitError):
    """ansible-vault exited non-zero or its exit status is unknown."""

    def __init__(self, message: str, exit_code: Optional[int] = None, stderr: Optional[str] = None):
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr


class ProcessLaunchError(VaultToolkitError):
    """Executable missing or not executable."""

    def __init__(self, message: str, command_parts: Sequence[str]):
        super().__init__(message)
        self.command_parts = list(command_parts)


class ProcessQueryError(VaultToolkitError):
    """pgrep itself failed or its output could not be parsed."""
    pass


class ProcessStateError(VaultToolkitError):
    """Process query matched the wrong number of processes."""

    def __init__(self, message: str, process_ids: Sequence[int] = ()):
        super().__init__(message)
        self.process_ids = list(process_ids)


class ProcessTerminationError(VaultToolkitError):
    """Base for processes that outlived their kill timeout."""

    def __init__(self, message: str, pid: int, timeout: float):
        super().__init__(message)
        self.pid = pid
        self.timeout = timeout


class ProcessTerminationTimeoutError(ProcessTerminationError):
    """Process did not end before the kill timeout."""
    pass


class ProcessForceKillError(ProcessTerminationError):
    """Process was still running after a forced kill."""
    pass
