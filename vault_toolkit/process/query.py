"""Process lookup by command line pattern, using pgrep.

PUBLIC API:
  - ProcessInfo: pid plus full command line (dataclass)
  - ProcessQuery: Find processes by pattern/user and direct children by parent pid
  - parse_pgrep_output: Parse "<pid> <command line>" lines
  - choose_pgrep_flags: Pick pgrep flags for listing full command lines
  - find_processes: Module-level shortcut for ProcessQuery().find_process_ids
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..errors import ProcessQueryError, ProcessStateError
from .executor import ProcessExecutor, is_nonzero_exit_code, is_successful_exit_code

logger = logging.getLogger(__name__)

PGREP_TIMEOUT_SECONDS = 5

# procps pgrep prints full command lines with -a, BSD pgrep with -l
DEFAULT_PGREP_FLAGS = "-fa"
_CANDIDATE_PGREP_FLAGS = ("-fa", "-fl")

# pgrep exits 1 when nothing matched
_PGREP_NO_MATCH = 1


@dataclass(frozen=True)
class ProcessInfo:
    """A process id and its full command line."""
    pid: int
    command_line: str


def parse_pgrep_output(output: str, with_command_lines: bool = False) -> list:
    """
    Parse newline-delimited pgrep output.

    Args:
        output: pgrep stdout
        with_command_lines: True if lines are "<pid> <command line>"

    Returns:
        List of ints, or of ProcessInfo when with_command_lines is True
    """
    results = []
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue

        pid_text, _, command_line = line.partition(" ")
        try:
            pid = int(pid_text)
        except ValueError:
            raise ProcessQueryError(f"Unexpected pgrep output line: {line!r}") from None

        if with_command_lines:
            results.append(ProcessInfo(pid=pid, command_line=command_line.strip()))
        else:
            results.append(pid)
    return results


def choose_pgrep_flags(flags: Optional[str]) -> Tuple[str, bool]:
    """
    Returns:
        (flags to use, whether detection succeeded). Falls back to -fa.
    """
    if flags:
        return flags, True
    return DEFAULT_PGREP_FLAGS, False


class ProcessQuery:
    """Finds processes by shelling out to pgrep."""

    def __init__(self, executor: Optional[ProcessExecutor] = None):
        self._executor = executor or ProcessExecutor()
        self._pgrep_flags: Optional[str] = None

    @property
    def pgrep_flags(self) -> str:
        """Flags that make pgrep print full command lines, detected on first use."""
        if self._pgrep_flags is None:
            flags, successful = choose_pgrep_flags(self._detect_pgrep_flags())
            if not successful:
                logger.warning(f"Could not determine pgrep flags for full command lines; using {flags}")
            self._pgrep_flags = flags
        return self._pgrep_flags

    def _detect_pgrep_flags(self) -> Optional[str]:
        for flags in _CANDIDATE_PGREP_FLAGS:
            try:
                exit_code, _, stderr = self._run_pgrep([flags, "vault-toolkit-pgrep-flag-check"])
            except ProcessQueryError as e:
                logger.debug(f"pgrep {flags} check failed: {e}")
                continue
            if is_successful_exit_code(exit_code) or exit_code == _PGREP_NO_MATCH:
                logger.debug(f"Using pgrep flags {flags}")
                return flags
            logger.debug(f"pgrep rejected flags {flags}: {stderr.strip()}")
        return None

    def _run_pgrep(self, arguments: Sequence[str]) -> Tuple[int, str, str]:
        command = ["pgrep", *arguments]
        process = self._executor.launch(command)
        exit_code = self._executor.wait_for_exit(process, PGREP_TIMEOUT_SECONDS)
        if exit_code is None:
            process.destroy_forcibly()
            raise ProcessQueryError(f"pgrep did not exit before {PGREP_TIMEOUT_SECONDS} second timeout: {command}")
        return exit_code, process.read_stdout(), process.read_stderr()

    def _query(self, arguments: Sequence[str], with_command_lines: bool = False) -> list:
        exit_code, stdout, stderr = self._run_pgrep(arguments)
        if exit_code == _PGREP_NO_MATCH:
            return []
        if is_nonzero_exit_code(exit_code):
            raise ProcessQueryError(
                f"pgrep returned exit code {exit_code} for arguments {list(arguments)}. Stderr: {stderr.strip()}"
            )
        return parse_pgrep_output(stdout, with_command_lines=with_command_lines)

    @staticmethod
    def _pattern_arguments(flags: str, pattern: str, user: Optional[str]) -> List[str]:
        if not pattern or not pattern.strip():
            raise ValueError("pattern cannot be blank")
        arguments = [flags]
        if user:
            arguments += ["-u", user]
        arguments.append(pattern)
        return arguments

    def find_process_ids(self, pattern: str, user: Optional[str] = None) -> List[int]:
        """
        Find ids of processes whose full command line matches pattern.

        Args:
            pattern: pgrep pattern matched against the full command line
            user: Restrict to processes owned by this user (default: all users)

        Returns:
            Process ids in the order pgrep reports them
        """
        return self._query(self._pattern_arguments("-f", pattern, user))

    def find_process_id(self, pattern: str, user: Optional[str] = None) -> int:
        """
        Find the single process matching pattern.

        Raises:
            ProcessStateError: If zero or more than one process matched
        """
        process_ids = self.find_process_ids(pattern, user)
        if len(process_ids) != 1:
            raise ProcessStateError(
                f"Expected exactly one process matching '{pattern}' but found {len(process_ids)}: {process_ids}",
                process_ids,
            )
        return process_ids[0]

    def find_processes(self, pattern: str, user: Optional[str] = None) -> List[ProcessInfo]:
        """Find matching processes along with their full command lines."""
        arguments = self._pattern_arguments(self.pgrep_flags, pattern, user)
        return self._query(arguments, with_command_lines=True)

    def find_child_process_ids(self, parent_pid: int) -> List[int]:
        """Direct children of parent_pid."""
        return self._query(["-P", str(parent_pid)])

    def find_child_process_id(self, parent_pid: int) -> Optional[int]:
        """
        The only direct child of parent_pid, or None if it has none.

        Raises:
            ProcessStateError: If parent_pid has more than one child; use
                find_child_process_ids instead
        """
        child_ids = self.find_child_process_ids(parent_pid)
        if len(child_ids) > 1:
            raise ProcessStateError(
                f"Process {parent_pid} has more than one child process: {child_ids}",
                child_ids,
            )
        return child_ids[0] if child_ids else None


def find_processes(pattern: str, user: Optional[str] = None) -> List[int]:
    """Shortcut for ProcessQuery().find_process_ids(pattern, user)."""
    return ProcessQuery().find_process_ids(pattern, user)
