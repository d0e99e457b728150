"""Subprocess launching and waiting.

PUBLIC API:
  - LaunchedProcess: Handle over a running subprocess with buffered output
  - ProcessExecutor: Launch argument vectors and wait for them with a timeout
  - is_successful_exit_code / is_nonzero_exit_code: Exit code helpers
"""
import logging
import subprocess
from typing import List, Optional, Sequence

from ..errors import ProcessLaunchError

logger = logging.getLogger(__name__)


class LaunchedProcess:
    """Handle over a subprocess started by ProcessExecutor.

    Output is collected while waiting, so a child writing more than a pipe
    buffer never blocks. read_stdout/read_stderr return the full output once
    the process has exited.
    """

    def __init__(self, popen: subprocess.Popen, command_parts: Sequence[str]):
        self._popen = popen
        self.command_parts: List[str] = list(command_parts)
        self._stdout: Optional[bytes] = None
        self._stderr: Optional[bytes] = None

    @property
    def pid(self) -> int:
        return self._popen.pid

    @property
    def exit_code(self) -> Optional[int]:
        """Exit code, or None while the process is still running."""
        return self._popen.poll()

    def is_alive(self) -> bool:
        return self._popen.poll() is None

    def wait_for(self, timeout: Optional[float] = None) -> Optional[int]:
        """
        Wait for the process to exit.

        Args:
            timeout: Seconds to wait; None waits forever

        Returns:
            Exit code, or None if the timeout elapsed first
        """
        if self._stdout is None:
            try:
                stdout, stderr = self._popen.communicate(timeout=timeout)
            except subprocess.TimeoutExpired:
                return None
            self._stdout = stdout or b""
            self._stderr = stderr or b""
        return self._popen.returncode

    def read_stdout(self) -> str:
        self.wait_for()
        return self._stdout.decode("utf-8", errors="replace")

    def read_stderr(self) -> str:
        self.wait_for()
        return self._stderr.decode("utf-8", errors="replace")

    def destroy(self) -> None:
        """Send SIGTERM."""
        self._popen.terminate()

    def destroy_forcibly(self) -> "LaunchedProcess":
        """Send SIGKILL, which the process cannot catch or ignore."""
        self._popen.kill()
        return self

    def __repr__(self) -> str:
        return f"LaunchedProcess(pid={self.pid}, command={self.command_parts[:1]})"


class ProcessExecutor:
    """Launches commands as explicit argument vectors, never through a shell."""

    def launch(self, command_parts: Sequence[str]) -> LaunchedProcess:
        """
        Start a subprocess.

        Args:
            command_parts: Argument vector; the first element is the executable

        Returns:
            LaunchedProcess handle

        Raises:
            ProcessLaunchError: If the executable cannot be started
        """
        parts = list(command_parts)
        if not parts:
            raise ValueError("command_parts cannot be empty")

        try:
            popen = subprocess.Popen(
                parts,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise ProcessLaunchError(f"Error launching command {parts[0]}: {e}", parts) from e

        logger.debug(f"Launched {parts[0]} with pid {popen.pid}")
        return LaunchedProcess(popen, parts)

    def wait_for_exit(self, process: LaunchedProcess, timeout: float) -> Optional[int]:
        """
        Wait up to timeout seconds for process to exit.

        Returns:
            Exit code, or None on timeout. Exit codes are not interpreted here.
        """
        exit_code = process.wait_for(timeout)
        if exit_code is None:
            logger.debug(f"Process {process.pid} did not exit within {timeout} seconds")
        return exit_code


def is_successful_exit_code(exit_code: int) -> bool:
    return exit_code == 0


def is_nonzero_exit_code(exit_code: int) -> bool:
    return exit_code != 0
