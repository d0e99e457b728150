"""Argument vectors for ansible-vault subcommands.

Builders are pure: they read the configuration, reject blank required
arguments with VaultArgumentError and return a VaultCommand. Nothing here touches the filesystem or runs a process.
"""
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ...errors import VaultArgumentError
from .configuration import VaultConfiguration

OUTPUT_FILE_STDOUT = "-"


@dataclass(frozen=True)
class VaultCommand:
    """An ansible-vault invocation as an ordered argument vector."""
    parts: Tuple[str, ...]

    @property
    def command_parts(self) -> List[str]:
        return list(self.parts)

    @property
    def subcommand(self) -> str:
        return self.parts[1]


def _require_not_blank(value: Optional[str], name: str) -> str:
    if value is None or not str(value).strip():
        raise VaultArgumentError(f"{name} cannot be blank")
    return str(value)


def _password_arguments(configuration: VaultConfiguration, vault_id_label: Optional[str]) -> List[str]:
    password_file = configuration.vault_password_file_path
    if vault_id_label is None:
        return ["--vault-password-file", password_file]
    label = _require_not_blank(vault_id_label, "vault_id_label")
    return ["--vault-id", f"{label}@{password_file}"]


def _command(configuration: VaultConfiguration, subcommand: str, *arguments: str) -> VaultCommand:
    return VaultCommand((configuration.ansible_vault_path, subcommand) + tuple(arguments))


def encrypt_command(
    configuration: VaultConfiguration,
    plain_text_file_path: str,
    vault_id_label: Optional[str] = None,
) -> VaultCommand:
    file_path = _require_not_blank(plain_text_file_path, "plain_text_file_path")
    return _command(
        configuration, "encrypt",
        *_password_arguments(configuration, vault_id_label),
        file_path,
    )


def decrypt_command(
    configuration: VaultConfiguration,
    encrypted_file_path: str,
    output_file_path: Optional[str] = None,
    vault_id_label: Optional[str] = None,
) -> VaultCommand:
    """Decrypt in place, or into output_file_path ("-" for stdout) when given."""
    file_path = _require_not_blank(encrypted_file_path, "encrypted_file_path")
    output_arguments = []
    if output_file_path is not None:
        output_arguments = ["--output", _require_not_blank(output_file_path, "output_file_path")]
    return _command(
        configuration, "decrypt",
        *_password_arguments(configuration, vault_id_label),
        *output_arguments,
        file_path,
    )


def decrypt_to_stdout_command(
    configuration: VaultConfiguration,
    encrypted_file_path: str,
    vault_id_label: Optional[str] = None,
) -> VaultCommand:
    return decrypt_command(configuration, encrypted_file_path, OUTPUT_FILE_STDOUT, vault_id_label)


def view_command(
    configuration: VaultConfiguration,
    encrypted_file_path: str,
    vault_id_label: Optional[str] = None,
) -> VaultCommand:
    file_path = _require_not_blank(encrypted_file_path, "encrypted_file_path")
    return _command(
        configuration, "view",
        *_password_arguments(configuration, vault_id_label),
        file_path,
    )


def rekey_command(
    configuration: VaultConfiguration,
    encrypted_file_path: str,
    new_vault_password_file_path: str,
    vault_id_label: Optional[str] = None,
) -> VaultCommand:
    file_path = _require_not_blank(encrypted_file_path, "encrypted_file_path")
    new_password_file = _require_not_blank(new_vault_password_file_path, "new_vault_password_file_path")
    return _command(
        configuration, "rekey",
        *_password_arguments(configuration, vault_id_label),
        "--new-vault-password-file", new_password_file,
        file_path,
    )


def encrypt_string_command(
    configuration: VaultConfiguration,
    plain_text: str,
    variable_name: str,
    vault_id_label: Optional[str] = None,
) -> VaultCommand:
    text = _require_not_blank(plain_text, "plain_text")
    name = _require_not_blank(variable_name, "variable_name")
    return _command(
        configuration, "encrypt_string",
        *_password_arguments(configuration, vault_id_label),
        "--name", name,
        text,
    )
