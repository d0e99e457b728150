"""Encrypt, decrypt, view and rekey with the ansible-vault executable."""
import logging
import os
from pathlib import Path
from typing import Optional, Union

from ...errors import VaultArgumentError, VaultEncryptionError
from ...process.executor import LaunchedProcess, ProcessExecutor, is_nonzero_exit_code
from ..domains import commands
from ..domains.commands import VaultCommand
from ..domains.configuration import VaultConfiguration
from ..domains.encrypted_variable import VaultEncryptedVariable

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10

PathLike = Union[str, os.PathLike]


def _path_string(path: PathLike, name: str) -> str:
    if path is None:
        raise VaultArgumentError(f"{name} cannot be None")
    value = os.fspath(path)
    if not value.strip():
        raise VaultArgumentError(f"{name} cannot be blank")
    return value


def _loggable_parts(command: VaultCommand):
    """Command parts with the plain text argument of encrypt_string masked."""
    parts = command.command_parts
    if command.subcommand == "encrypt_string":
        parts[-1] = "********"
    return parts


class VaultEncryptionHelper:
    """
    Runs ansible-vault commands and turns their exit code and stderr into
    results or VaultEncryptionError.

    Holds only the validated configuration and an executor, so a single
    instance can be shared between threads. Every call launches its own
    ansible-vault process. Calls against the same file are not serialized.
    """

    def __init__(self, configuration: VaultConfiguration, executor: Optional[ProcessExecutor] = None):
        """
        Args:
            configuration: ansible-vault paths; validated here
            executor: Launches processes (default: ProcessExecutor)

        Raises:
            VaultConfigurationError: If any configured path is blank or missing
        """
        if configuration is None:
            raise VaultArgumentError("configuration is required")
        self.configuration = configuration.validate().copy_of()
        self._executor = executor or ProcessExecutor()

    def encrypt_file(self, plain_text_file_path: PathLike, vault_id_label: Optional[str] = None) -> Path:
        """Encrypt a file in place; returns its path."""
        file_path = _path_string(plain_text_file_path, "plain_text_file_path")
        command = commands.encrypt_command(self.configuration, file_path, vault_id_label)
        self._execute(command)
        return Path(file_path)

    def decrypt_file(
        self,
        encrypted_file_path: PathLike,
        output_file_path: Optional[PathLike] = None,
        vault_id_label: Optional[str] = None,
    ) -> Path:
        """
        Decrypt a file in place, or into output_file_path when given.

        Returns:
            Path of the decrypted file

        Raises:
            VaultArgumentError: If output_file_path equals encrypted_file_path
                ignoring case
            VaultEncryptionError: If ansible-vault fails
        """
        file_path = _path_string(encrypted_file_path, "encrypted_file_path")

        if output_file_path is None:
            command = commands.decrypt_command(self.configuration, file_path, vault_id_label=vault_id_label)
            self._execute(command)
            return Path(file_path)

        output_path = _path_string(output_file_path, "output_file_path")
        if output_path.lower() == file_path.lower():
            raise VaultArgumentError(
                f"output_file_path must be different than encrypted_file_path (case-insensitive): {output_path}"
            )

        command = commands.decrypt_command(self.configuration, file_path, output_path, vault_id_label)
        self._execute(command)
        return Path(output_path)

    def view_file(self, encrypted_file_path: PathLike, vault_id_label: Optional[str] = None) -> str:
        """Decrypted content of a file, leaving the file encrypted."""
        file_path = _path_string(encrypted_file_path, "encrypted_file_path")
        command = commands.view_command(self.configuration, file_path, vault_id_label)
        return self._execute(command).read_stdout()

    def rekey_file(
        self,
        encrypted_file_path: PathLike,
        new_vault_password_file_path: PathLike,
        vault_id_label: Optional[str] = None,
    ) -> Path:
        """
        Re-encrypt a file with the password in new_vault_password_file_path.

        Raises:
            VaultArgumentError: If the new password file is the configured one
                (compared ignoring case)
            VaultEncryptionError: If ansible-vault fails
        """
        file_path = _path_string(encrypted_file_path, "encrypted_file_path")
        new_password_file = _path_string(new_vault_password_file_path, "new_vault_password_file_path")
        if new_password_file.lower() == self.configuration.vault_password_file_path.lower():
            raise VaultArgumentError(
                "new_vault_password_file_path must be different than "
                "configuration.vault_password_file_path (case-insensitive)"
            )

        command = commands.rekey_command(self.configuration, file_path, new_password_file, vault_id_label)
        self._execute(command)
        return Path(file_path)

    def encrypt_string(self, plain_text: str, variable_name: str, vault_id_label: Optional[str] = None) -> str:
        """
        Encrypt plain_text as a YAML variable named variable_name.

        Returns:
            encrypt_string output, parseable by VaultEncryptedVariable
        """
        command = commands.encrypt_string_command(self.configuration, plain_text, variable_name, vault_id_label)
        return self._execute(command).read_stdout()

    def decrypt_string(self, encrypted_string: str) -> str:
        """
        Decrypt encrypt_string output.

        ansible-vault only decrypts files, so the encrypted content is written
        to a uniquely named file in the configured temp directory, decrypted to
        stdout with `decrypt --output -`, then deleted whether or not
        decryption succeeded. `view` is not used because it routes output
        through ansible's pager and display, which append a newline.

        Returns:
            The plain text
        """
        encrypted_variable = VaultEncryptedVariable(encrypted_string)
        temp_directory = Path(self.configuration.temp_directory)
        temp_file_path = encrypted_variable.generate_random_file_path(str(temp_directory))

        try:
            temp_directory.mkdir(parents=True, exist_ok=True)
            temp_file_path.write_bytes(encrypted_variable.encrypted_file_bytes)
            logger.debug(f"Wrote temporary file containing encrypt_string content: {temp_file_path}")

            command = commands.decrypt_to_stdout_command(
                self.configuration, str(temp_file_path), encrypted_variable.vault_id_label
            )
            return self._execute(command).read_stdout()
        except Exception as e:
            logger.error(f"Error decrypting variable {encrypted_variable.variable_name}: {e}")
            raise
        finally:
            _delete_quietly(temp_file_path)

    def _execute(self, command: VaultCommand) -> LaunchedProcess:
        logger.debug(f"ansible-vault command: {_loggable_parts(command)}")

        process = self._executor.launch(command.command_parts)
        exit_code = self._executor.wait_for_exit(process, DEFAULT_TIMEOUT_SECONDS)
        if exit_code is None:
            process.destroy_forcibly()
            raise VaultEncryptionError(
                f"ansible-vault did not exit before {DEFAULT_TIMEOUT_SECONDS} second timeout"
            )

        logger.debug(f"ansible-vault exit code: {exit_code}")
        if is_nonzero_exit_code(exit_code):
            raw_error_output = process.read_stderr()
            error_output = raw_error_output.strip() or "[no stderr]"
            logger.debug(f"Error output: [{error_output}]")
            raise VaultEncryptionError(
                f"ansible-vault returned non-zero exit code {exit_code}. Stderr: {error_output}",
                exit_code=exit_code,
                stderr=raw_error_output,
            )

        return process


def _delete_quietly(path: Path) -> None:
    try:
        path.unlink()
        logger.debug(f"Deleted temporary file: {path}")
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error(f"Could not delete temporary file {path}: {e}")
