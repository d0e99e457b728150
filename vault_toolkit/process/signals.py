"""Kill signals and what to do when a kill times out."""
import logging
from enum import Enum
from typing import Union

from ..errors import ProcessForceKillError, ProcessTerminationTimeoutError

logger = logging.getLogger(__name__)

# Returned when a process outlives the kill timeout and the action is NO_OP
UNKNOWN_EXIT_CODE = -1

FORCE_KILL_TIMEOUT_SECONDS = 1


class KillSignal(Enum):
    """POSIX signals accepted by kill operations."""

    SIGHUP = 1
    SIGINT = 2
    SIGQUIT = 3
    SIGKILL = 9
    SIGTERM = 15

    @property
    def signal_number(self) -> int:
        return self.value

    @property
    def number(self) -> str:
        return str(self.value)

    def with_leading_dash(self) -> str:
        return f"-{self.value}"

    @classmethod
    def from_value(cls, value: Union["KillSignal", int, str]) -> "KillSignal":
        """
        Normalize a signal given as a member, a number or a name.

        Accepts 15, "15", "-15", "TERM", "SIGTERM" and "sigterm" alike.

        Raises:
            ValueError: If value does not name a supported signal
        """
        if isinstance(value, cls):
            return value

        if isinstance(value, int) and not isinstance(value, bool):
            return cls(value)

        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"Invalid signal: {value!r}")

        text = value.strip().lstrip("-")
        if text.isdigit():
            try:
                return cls(int(text))
            except ValueError:
                raise ValueError(f"Unsupported signal number: {value}") from None

        name = text.upper()
        if not name.startswith("SIG"):
            name = f"SIG{name}"
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"Unsupported signal name: {value}") from None


class KillTimeoutAction(Enum):
    """Policy applied when a signalled process is still alive after the timeout."""

    NO_OP = "no-op"
    THROW_EXCEPTION = "throw"
    FORCE_KILL = "force-kill"

    def execute_on(self, process, pid: int, timeout: float) -> int:
        """
        Apply this action to a process that did not end before timeout.

        Args:
            process: Handle to wait on and force-kill (LaunchedProcess-like)
            pid: Process id used in messages
            timeout: The timeout that already elapsed, in seconds

        Returns:
            Exit code of the process, or UNKNOWN_EXIT_CODE for NO_OP
        """
        if self is KillTimeoutAction.NO_OP:
            logger.warning(f"Process {pid} did not end before {timeout} second timeout; ignoring")
            return UNKNOWN_EXIT_CODE

        if self is KillTimeoutAction.THROW_EXCEPTION:
            raise ProcessTerminationTimeoutError(
                f"Process {pid} did not end before {timeout} second timeout", pid, timeout
            )

        logger.warning(f"Process {pid} did not end before {timeout} second timeout; force killing")
        exit_code = process.destroy_forcibly().wait_for(FORCE_KILL_TIMEOUT_SECONDS)
        if exit_code is None:
            raise ProcessForceKillError(
                f"Process {pid} was not killed before {FORCE_KILL_TIMEOUT_SECONDS} second timeout expired",
                pid,
                FORCE_KILL_TIMEOUT_SECONDS,
            )
        return exit_code
