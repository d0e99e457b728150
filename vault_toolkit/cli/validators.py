"""Input validation for CLI arguments."""
import re
import sys

from vault_toolkit.process.signals import KillSignal

VARIABLE_NAME_PATTERN = r'^[a-zA-Z_][a-zA-Z0-9_]*$'


def validate_variable_name(name: str) -> None:
    """
    Validate an encrypt_string variable name is a usable YAML/Ansible variable.

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not name:
        print("Error: Variable name cannot be empty", file=sys.stderr)
        sys.exit(2)

    if not re.match(VARIABLE_NAME_PATTERN, name):
        print(f"Error: Invalid variable name '{name}'", file=sys.stderr)
        print("\nVariable names must start with a letter or underscore and contain only", file=sys.stderr)
        print("letters, numbers and underscores (_).", file=sys.stderr)
        print("\nExamples of valid names:", file=sys.stderr)
        print("  ✓ db_password", file=sys.stderr)
        print("  ✓ _internal_token", file=sys.stderr)
        print("\nExamples of invalid names:", file=sys.stderr)
        print("  ✗ db-password (contains hyphen)", file=sys.stderr)
        print("  ✗ 1password (starts with a digit)", file=sys.stderr)
        sys.exit(2)


def validate_vault_id_label(label: str) -> None:
    """
    Validate a vault id label.

    The label is passed as <label>@<password file> and ends up in the
    $ANSIBLE_VAULT header, so it cannot contain '@' or ';'.

    Raises:
        SystemExit with code 2 if validation fails
    """
    if label is None:
        return

    if not label.strip():
        print("Error: Vault id label cannot be blank", file=sys.stderr)
        sys.exit(2)

    if "@" in label or ";" in label:
        print(f"Error: Invalid vault id label '{label}'", file=sys.stderr)
        print("\nVault id labels cannot contain '@' or ';'", file=sys.stderr)
        sys.exit(2)


def validate_signal(signal: str) -> KillSignal:
    """
    Resolve a signal name or number.

    Returns:
        The matching KillSignal

    Raises:
        SystemExit with code 2 if the signal is not supported
    """
    try:
        return KillSignal.from_value(signal)
    except ValueError:
        supported = ", ".join(f"{s.name} ({s.signal_number})" for s in KillSignal)
        print(f"Error: Unsupported signal '{signal}'", file=sys.stderr)
        print(f"\nSupported signals: {supported}", file=sys.stderr)
        sys.exit(2)
