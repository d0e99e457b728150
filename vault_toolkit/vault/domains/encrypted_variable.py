"""Parser for `ansible-vault encrypt_string` output.

The expected input looks like:

    db_password: !vault |
              $ANSIBLE_VAULT;1.1;AES256
              62313365396662343061393464336163383764373764613633653634306231386433626436623361
              ...

An optional fourth header field carries the vault id label:
`$ANSIBLE_VAULT;1.2;AES256;prod`.
"""
import os
import uuid
from pathlib import Path
from typing import List, Optional

from ...errors import VaultArgumentError

INVALID_ENCRYPT_STRING_INPUT = "Input does not appear to be valid encrypt_string content"
INVALID_VARIABLE_NAME_DECLARATION = "First line does not have a valid variable name declaration"
INVALID_VARIABLE_NAME_PATH = "Variable name cannot contain a path separator or '..'"
INVALID_ANSIBLE_VAULT_DECLARATION = "Second line does not have a valid $ANSIBLE_VAULT declaration"
INVALID_SPACING_IN_ENCRYPTED_CONTENT = "Encrypted content does not start with 10 spaces"
INVALID_FORMAT_IN_ENCRYPTED_CONTENT = (
    "Encrypted content is not longer than 10 characters or has more than 10 spaces before encrypted content"
)

VARIABLE_NAME_SUFFIX = ": !vault |"
INDENT = " " * 10
HEADER_PREFIX = f"{INDENT}$ANSIBLE_VAULT"
VALID_FORMAT_VERSIONS = ("1.1", "1.2")


def _check(condition: bool, message: str) -> None:
    if not condition:
        raise VaultArgumentError(message)


def _check_not_a_path(variable_name: str) -> None:
    """The name becomes a file name prefix, so it must stay a single path component."""
    separators = [os.sep] + ([os.altsep] if os.altsep else [])
    _check(
        ".." not in variable_name and not any(sep in variable_name for sep in separators),
        INVALID_VARIABLE_NAME_PATH,
    )


class VaultEncryptedVariable:
    """Parsed view of an encrypt_string variable. Never holds the plain text."""

    def __init__(self, encrypted_string: str):
        _check(encrypted_string is not None and encrypted_string.strip() != "", "encrypted_string cannot be blank")

        lines = encrypted_string.rstrip("\r\n").splitlines()
        _check(len(lines) > 2, INVALID_ENCRYPT_STRING_INPUT)

        self.variable_name = self._parse_variable_name(lines[0])
        self.format_version, self.cipher, self.vault_id_label = self._parse_header(lines[1])
        self.encrypted_content_lines = self._parse_encrypted_content(lines[2:])
        self.encrypted_file_content = self._build_encrypted_file_content()

    @staticmethod
    def _parse_variable_name(line: str) -> str:
        _check(line.endswith(VARIABLE_NAME_SUFFIX), INVALID_VARIABLE_NAME_DECLARATION)
        variable_name = line.split(":")[0]
        _check(variable_name.strip() != "", INVALID_VARIABLE_NAME_DECLARATION)
        _check_not_a_path(variable_name)
        return variable_name

    @staticmethod
    def _parse_header(line: str):
        _check(";" in line, INVALID_ANSIBLE_VAULT_DECLARATION)
        fields = line.split(";")
        while fields and fields[-1] == "":
            fields.pop()
        _check(len(fields) in (3, 4) and fields[0] == HEADER_PREFIX, INVALID_ANSIBLE_VAULT_DECLARATION)
        _check(fields[1] in VALID_FORMAT_VERSIONS, INVALID_ANSIBLE_VAULT_DECLARATION)
        _check(fields[2].strip() != "", INVALID_ANSIBLE_VAULT_DECLARATION)

        vault_id_label = None
        if len(fields) == 4:
            _check(fields[3].strip() != "", INVALID_ANSIBLE_VAULT_DECLARATION)
            vault_id_label = fields[3]

        return fields[1], fields[2], vault_id_label

    @staticmethod
    def _parse_encrypted_content(lines: List[str]) -> List[str]:
        for line in lines:
            _check(line.startswith(INDENT), INVALID_SPACING_IN_ENCRYPTED_CONTENT)
            _check(len(line) > 10 and line[10] != " ", INVALID_FORMAT_IN_ENCRYPTED_CONTENT)
        return list(lines)

    def _build_encrypted_file_content(self) -> str:
        header = f"$ANSIBLE_VAULT;{self.format_version};{self.cipher}"
        if self.vault_id_label is not None:
            header += f";{self.vault_id_label}"
        body = [line.lstrip() for line in self.encrypted_content_lines]
        return "\n".join([header] + body)

    @property
    def encrypted_file_bytes(self) -> bytes:
        """Content of an equivalent vault-encrypted file, as UTF-8."""
        return self.encrypted_file_content.encode("utf-8")

    def generate_random_file_path(self, temp_directory: str) -> Path:
        return generate_random_file_path(temp_directory, self.variable_name)

    def __repr__(self) -> str:
        return (
            f"VaultEncryptedVariable(variable_name={self.variable_name!r}, "
            f"format_version={self.format_version!r}, cipher={self.cipher!r}, "
            f"vault_id_label={self.vault_id_label!r})"
        )


def generate_random_file_path(temp_directory: str, variable_name: str) -> Path:
    """<temp_directory>/<variable_name>.<random>.txt, unique per call."""
    _check_not_a_path(variable_name)
    return Path(os.path.join(temp_directory, f"{variable_name}.{uuid.uuid4().hex}.txt"))


def parse_encrypted_variable(encrypted_string: str) -> VaultEncryptedVariable:
    return VaultEncryptedVariable(encrypted_string)
