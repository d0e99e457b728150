"""Signal delivery with a timeout policy.

kill() shells out to the POSIX kill command, which is the only way to signal
a process that this interpreter did not start. kill_process() signals a
LaunchedProcess we own directly.
"""
import logging
import os
from typing import Optional, Union

from .executor import LaunchedProcess, ProcessExecutor
from .signals import KillSignal, KillTimeoutAction

logger = logging.getLogger(__name__)

DEFAULT_KILL_TIMEOUT_SECONDS = 5

SignalLike = Union[KillSignal, int, str]


def kill(
    pid: int,
    signal: SignalLike,
    action: KillTimeoutAction,
    timeout: float = DEFAULT_KILL_TIMEOUT_SECONDS,
    executor: Optional[ProcessExecutor] = None,
) -> int:
    """
    Send signal to pid using the kill command and wait for it to finish.

    Args:
        pid: Target process id
        signal: KillSignal, signal number, numeric string or signal name
        action: What to do if kill has not finished before timeout
        timeout: Seconds to wait
        executor: ProcessExecutor used to launch kill (default: new executor)

    Returns:
        Exit code of the kill command, or of the force-killed process

    Raises:
        ValueError: If signal is not a supported signal
        ProcessTerminationError: Per action, when the timeout elapses
    """
    kill_signal = KillSignal.from_value(signal)
    executor = executor or ProcessExecutor()

    logger.debug(f"Sending {kill_signal.name} to process {pid}")
    killer_process = executor.launch(["kill", kill_signal.with_leading_dash(), str(pid)])
    return kill_internal(pid, killer_process, timeout, action)


def kill_internal(pid: int, process: LaunchedProcess, timeout: float, action: KillTimeoutAction) -> int:
    """Wait up to timeout for process; apply action if it is still running."""
    exit_code = process.wait_for(timeout)
    if exit_code is not None:
        return exit_code
    return action.execute_on(process, pid, timeout)


def kill_process(
    process: LaunchedProcess,
    signal: SignalLike,
    action: KillTimeoutAction,
    timeout: float = DEFAULT_KILL_TIMEOUT_SECONDS,
) -> int:
    """
    Signal a process launched by ProcessExecutor and wait for it to exit.

    Returns:
        The process exit code (negative signal number when killed by a signal)
    """
    kill_signal = KillSignal.from_value(signal)
    if process.is_alive():
        logger.debug(f"Sending {kill_signal.name} to process {process.pid}")
        os.kill(process.pid, kill_signal.signal_number)
    return kill_internal(process.pid, process, timeout, action)
