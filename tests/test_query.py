"""Tests for pgrep-based process queries."""
import shutil
import sys
import uuid

import pytest

from conftest import FakeExecutor, FakeProcess
from vault_toolkit.errors import ProcessQueryError, ProcessStateError
from vault_toolkit.process import query as query_module
from vault_toolkit.process.executor import ProcessExecutor
from vault_toolkit.process.query import (
    DEFAULT_PGREP_FLAGS,
    ProcessInfo,
    ProcessQuery,
    choose_pgrep_flags,
    parse_pgrep_output,
)


def pgrep_result(stdout="", exit_code=0, stderr=""):
    return FakeProcess(exit_code=exit_code, stdout=stdout, stderr=stderr)


class TestParsePgrepOutput:

    def test_process_ids(self):
        assert parse_pgrep_output("123\n456\n\n789\n") == [123, 456, 789]

    def test_command_lines(self):
        output = "123 /usr/bin/java -jar service.jar --port 8080\n456 sleep 30\n"

        assert parse_pgrep_output(output, with_command_lines=True) == [
            ProcessInfo(123, "/usr/bin/java -jar service.jar --port 8080"),
            ProcessInfo(456, "sleep 30"),
        ]

    def test_rejects_garbage(self):
        with pytest.raises(ProcessQueryError):
            parse_pgrep_output("not-a-pid something\n")


class TestChoosePgrepFlags:

    def test_detected_flags(self):
        assert choose_pgrep_flags("-fl") == ("-fl", True)

    def test_defaults_when_detection_failed(self):
        assert choose_pgrep_flags(None) == (DEFAULT_PGREP_FLAGS, False)
        assert DEFAULT_PGREP_FLAGS == "-fa"


class TestFindProcessIds:

    def test_all_users(self):
        executor = FakeExecutor(pgrep_result("42\n7\n"))

        assert ProcessQuery(executor).find_process_ids("java -jar service") == [42, 7]
        assert executor.launched == [["pgrep", "-f", "java -jar service"]]

    def test_single_user(self):
        executor = FakeExecutor(pgrep_result("42\n"))

        ProcessQuery(executor).find_process_ids("service", user="deploy")

        assert executor.launched == [["pgrep", "-f", "-u", "deploy", "service"]]

    def test_no_matches(self):
        executor = FakeExecutor(pgrep_result(exit_code=1))

        assert ProcessQuery(executor).find_process_ids("nothing") == []

    def test_pgrep_error(self):
        executor = FakeExecutor(pgrep_result(exit_code=2, stderr="pgrep: invalid user name: nobody-here"))

        with pytest.raises(ProcessQueryError, match="invalid user name"):
            ProcessQuery(executor).find_process_ids("service", user="nobody-here")

    def test_pgrep_timeout(self):
        process = pgrep_result(exit_code=None)
        executor = FakeExecutor(process)

        with pytest.raises(ProcessQueryError, match="did not exit"):
            ProcessQuery(executor).find_process_ids("service")

        assert process.force_killed

    def test_blank_pattern(self):
        executor = FakeExecutor()

        with pytest.raises(ValueError):
            ProcessQuery(executor).find_process_ids("  ")

        assert executor.launched == []


class TestFindProcessesShortcut:

    def test_returns_process_ids(self, monkeypatch):
        executor = FakeExecutor(pgrep_result("42\n43\n"))
        monkeypatch.setattr(query_module, "ProcessExecutor", lambda: executor)

        assert query_module.find_processes("service", user="deploy") == [42, 43]
        assert executor.launched == [["pgrep", "-f", "-u", "deploy", "service"]]

    def test_no_matches(self, monkeypatch):
        executor = FakeExecutor(pgrep_result(exit_code=1))
        monkeypatch.setattr(query_module, "ProcessExecutor", lambda: executor)

        assert query_module.find_processes("nothing") == []


class TestFindProcessId:

    def test_exactly_one(self):
        executor = FakeExecutor(pgrep_result("42\n"))

        assert ProcessQuery(executor).find_process_id("service") == 42

    @pytest.mark.parametrize("stdout, exit_code, expected_ids", [
        ("", 1, []),
        ("42\n43\n", 0, [42, 43]),
    ])
    def test_zero_or_many(self, stdout, exit_code, expected_ids):
        executor = FakeExecutor(pgrep_result(stdout, exit_code))

        with pytest.raises(ProcessStateError) as exc_info:
            ProcessQuery(executor).find_process_id("service")

        assert exc_info.value.process_ids == expected_ids
        assert str(expected_ids) in str(exc_info.value)


class TestFindProcesses:

    def test_detects_flags_then_queries(self):
        executor = FakeExecutor(
            pgrep_result(exit_code=1),
            pgrep_result("42 java -jar service.jar\n"),
        )
        query = ProcessQuery(executor)

        assert query.find_processes("service") == [ProcessInfo(42, "java -jar service.jar")]
        assert executor.launched[0][:2] == ["pgrep", "-fa"]
        assert executor.launched[1] == ["pgrep", "-fa", "service"]

    def test_falls_back_to_bsd_flags(self):
        executor = FakeExecutor(
            pgrep_result(exit_code=2, stderr="pgrep: illegal option -- a"),
            pgrep_result(exit_code=1),
            pgrep_result("42 sleep 30\n"),
        )
        query = ProcessQuery(executor)

        query.find_processes("sleep", user="deploy")

        assert query.pgrep_flags == "-fl"
        assert executor.launched[2] == ["pgrep", "-fl", "-u", "deploy", "sleep"]

    def test_flags_detected_once(self):
        executor = FakeExecutor(pgrep_result(exit_code=1))
        query = ProcessQuery(executor)

        query.find_processes("a")
        query.find_processes("b")

        flag_checks = [command for command in executor.launched if "vault-toolkit-pgrep-flag-check" in command]
        assert len(flag_checks) == 1

    def test_defaults_when_detection_fails(self):
        executor = FakeExecutor(pgrep_result(exit_code=2, stderr="bad option"))

        assert ProcessQuery(executor).pgrep_flags == DEFAULT_PGREP_FLAGS


class TestChildProcesses:

    def test_child_ids(self):
        executor = FakeExecutor(pgrep_result("100\n101\n"))

        assert ProcessQuery(executor).find_child_process_ids(99) == [100, 101]
        assert executor.launched == [["pgrep", "-P", "99"]]

    def test_single_child(self):
        executor = FakeExecutor(pgrep_result("100\n"))

        assert ProcessQuery(executor).find_child_process_id(99) == 100

    def test_no_child(self):
        executor = FakeExecutor(pgrep_result(exit_code=1))

        assert ProcessQuery(executor).find_child_process_id(99) is None

    def test_more_than_one_child(self):
        executor = FakeExecutor(pgrep_result("100\n101\n"))

        with pytest.raises(ProcessStateError) as exc_info:
            ProcessQuery(executor).find_child_process_id(99)

        assert exc_info.value.process_ids == [100, 101]
        assert "Process 99 has more than one child process" in str(exc_info.value)


@pytest.mark.skipif(shutil.which("pgrep") is None, reason="pgrep not found")
class TestRealPgrep:

    def test_finds_running_process(self):
        marker = f"vault-toolkit-{uuid.uuid4().hex}"
        executor = ProcessExecutor()
        process = executor.launch([sys.executable, "-c", "import sys, time; time.sleep(30)", marker])
        try:
            query = ProcessQuery(executor)

            assert query.find_process_ids(marker) == [process.pid]
            assert query.find_process_id(marker) == process.pid
            assert query.find_processes(marker)[0].pid == process.pid
        finally:
            process.destroy_forcibly()
            process.wait_for(5)

    def test_finds_nothing(self):
        marker = f"vault-toolkit-{uuid.uuid4().hex}"

        with pytest.raises(ProcessStateError):
            ProcessQuery().find_process_id(marker)
