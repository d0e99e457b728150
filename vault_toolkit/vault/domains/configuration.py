"""ansible-vault configuration."""
import dataclasses
import logging
import os
import tempfile
from dataclasses import dataclass
from typing import List, Optional

from ...errors import VaultConfigurationError

logger = logging.getLogger(__name__)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


@dataclass(frozen=True)
class VaultConfiguration:
    """
    Paths needed to run ansible-vault.

    Attributes:
        ansible_vault_path: Path to the ansible-vault executable
        vault_password_file_path: Password file used to encrypt and decrypt
        temp_directory: Where decrypt_string stages encrypted content; defaults
            to the platform temp directory when blank
    """
    ansible_vault_path: str
    vault_password_file_path: str
    temp_directory: Optional[str] = None

    def __post_init__(self):
        for field in dataclasses.fields(self):
            value = getattr(self, field.name)
            if isinstance(value, os.PathLike):
                object.__setattr__(self, field.name, os.fspath(value))
        if _is_blank(self.temp_directory):
            object.__setattr__(self, "temp_directory", tempfile.gettempdir())

    def violations(self) -> List[str]:
        """Every problem with this configuration, vault path problems first."""
        violations = []

        if _is_blank(self.ansible_vault_path):
            violations.append("ansible_vault_path is required")
        elif not os.path.exists(self.ansible_vault_path):
            violations.append(f"ansible-vault executable does not exist: {self.ansible_vault_path}")

        if _is_blank(self.vault_password_file_path):
            violations.append("vault_password_file_path is required")
        elif not os.path.exists(self.vault_password_file_path):
            violations.append(f"vault password file does not exist: {self.vault_password_file_path}")

        return violations

    def validate(self) -> "VaultConfiguration":
        """
        Check that both paths are set and exist.

        Returns:
            self, for chaining

        Raises:
            VaultConfigurationError: Listing all violations, not just the first
        """
        violations = self.violations()
        if violations:
            logger.error(f"Invalid vault configuration: {violations}")
            raise VaultConfigurationError(violations)
        return self

    def copy_of(self, **changes) -> "VaultConfiguration":
        return dataclasses.replace(self, **changes)


def new_config(
    ansible_vault_path: str,
    vault_password_file_path: str,
    temp_directory: Optional[str] = None,
) -> VaultConfiguration:
    """Create and validate a VaultConfiguration."""
    return VaultConfiguration(
        ansible_vault_path=ansible_vault_path,
        vault_password_file_path=vault_password_file_path,
        temp_directory=temp_directory,
    ).validate()
