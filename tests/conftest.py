"""Shared fixtures: an in-memory process executor and vault configuration."""
import pytest

from vault_toolkit.vault.domains.configuration import VaultConfiguration
from vault_toolkit.vault.workflows.encryption_helper import VaultEncryptionHelper

ENCRYPTED_VARIABLE = (
    "db_password: !vault |\n"
    "          $ANSIBLE_VAULT;1.1;AES256\n"
    "          62313365396662343061393464336163383764373764613633653634306231386433626436623361\n"
    "          6435386333343565353834353033376465386562343038320a386561656339663935373430353030\n"
    "          34373738393833616165313661343161316461376337306432353962393833623937346561656137\n"
)

ENCRYPTED_VARIABLE_WITH_LABEL = (
    "db_password: !vault |\n"
    "          $ANSIBLE_VAULT;1.2;AES256;prod\n"
    "          62313365396662343061393464336163383764373764613633653634306231386433626436623361\n"
    "          6435386333343565353834353033376465386562343038320a386561656339663935373430353030\n"
)


class FakeProcess:
    """Stands in for LaunchedProcess.

    wait_results, when given, is consumed one value per wait_for call;
    otherwise every wait returns exit_code.
    """

    def __init__(self, exit_code=0, stdout="", stderr="", pid=4242, wait_results=None):
        self.pid = pid
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        self.wait_results = list(wait_results) if wait_results is not None else None
        self.wait_calls = []
        self.destroyed = False
        self.force_killed = False

    def wait_for(self, timeout=None):
        self.wait_calls.append(timeout)
        if self.wait_results is not None:
            return self.wait_results.pop(0)
        return self.exit_code

    def is_alive(self):
        return not self.force_killed and self.exit_code is None

    def read_stdout(self):
        return self.stdout

    def read_stderr(self):
        return self.stderr

    def destroy(self):
        self.destroyed = True

    def destroy_forcibly(self):
        self.force_killed = True
        return self


class FakeExecutor:
    """Stands in for ProcessExecutor, recording every launched command."""

    def __init__(self, *processes, launch_error=None, on_launch=None):
        self.processes = list(processes)
        self.launched = []
        self.wait_timeouts = []
        self.launch_error = launch_error
        self.on_launch = on_launch

    def launch(self, command_parts):
        self.launched.append(list(command_parts))
        if self.on_launch:
            self.on_launch(list(command_parts))
        if self.launch_error:
            raise self.launch_error
        if len(self.processes) > 1:
            return self.processes.pop(0)
        return self.processes[0] if self.processes else FakeProcess()

    def wait_for_exit(self, process, timeout):
        self.wait_timeouts.append(timeout)
        return process.wait_for(timeout)


@pytest.fixture
def vault_paths(tmp_path):
    """Existing ansible-vault and password file paths (the vault is never run)."""
    ansible_vault = tmp_path / "bin" / "ansible-vault"
    ansible_vault.parent.mkdir()
    ansible_vault.write_text("#!/bin/sh\nexit 0\n")
    ansible_vault.chmod(0o755)

    password_file = tmp_path / "vault-password.txt"
    password_file.write_text("super-secret\n")

    temp_directory = tmp_path / "vault-tmp"
    return str(ansible_vault), str(password_file), str(temp_directory)


@pytest.fixture
def configuration(vault_paths):
    ansible_vault, password_file, temp_directory = vault_paths
    return VaultConfiguration(
        ansible_vault_path=ansible_vault,
        vault_password_file_path=password_file,
        temp_directory=temp_directory,
    )


@pytest.fixture
def fake_executor():
    return FakeExecutor()


@pytest.fixture
def helper(configuration, fake_executor):
    return VaultEncryptionHelper(configuration, executor=fake_executor)
