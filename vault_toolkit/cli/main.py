"""CLI entrypoint for vault-toolkit."""
import sys
import argparse
import logging

from .validators import validate_signal, validate_variable_name, validate_vault_id_label

VERSION = "0.1.0"

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool = False):
    """Log to stderr; DEBUG shows the ansible-vault commands being run."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        stream=sys.stderr
    )


def _build_helper():
    """Create a VaultEncryptionHelper from the config file."""
    from vault_toolkit.vault.domains.config_loader import load_vault_configuration
    from vault_toolkit.vault.workflows.encryption_helper import VaultEncryptionHelper

    return VaultEncryptionHelper(load_vault_configuration())


def cmd_version(args):
    """Show version information."""
    print(f"vault-toolkit {VERSION}")


def cmd_config_show(args):
    """Show which config file would be used."""
    from vault_toolkit.vault.domains.config_loader import resolve_config_path

    config_path, source = resolve_config_path()
    if config_path.exists():
        print(f"Config path: {config_path}")
        print(f"Source: {source}")
    else:
        print(f"Config path: {config_path}")
        print(f"Source: {source} (file not found)")


def cmd_vault_encrypt(args):
    """Encrypt a file in place."""
    validate_vault_id_label(args.vault_id)
    path = _build_helper().encrypt_file(args.file, args.vault_id)
    print(f"Encrypted: {path}")


def cmd_vault_decrypt(args):
    """Decrypt a file in place or to --output."""
    validate_vault_id_label(args.vault_id)
    path = _build_helper().decrypt_file(args.file, args.output, args.vault_id)
    print(f"Decrypted: {path}")


def cmd_vault_view(args):
    """Print the decrypted content of a file."""
    validate_vault_id_label(args.vault_id)
    sys.stdout.write(_build_helper().view_file(args.file, args.vault_id))


def cmd_vault_rekey(args):
    """Re-encrypt a file with a new password file."""
    validate_vault_id_label(args.vault_id)
    path = _build_helper().rekey_file(args.file, args.new_password_file, args.vault_id)
    print(f"Rekeyed: {path}")


def cmd_vault_encrypt_string(args):
    """Encrypt a string as a named variable."""
    validate_variable_name(args.variable_name)
    validate_vault_id_label(args.vault_id)
    sys.stdout.write(_build_helper().encrypt_string(args.plain_text, args.variable_name, args.vault_id))


def cmd_vault_decrypt_string(args):
    """Decrypt encrypt_string output read from a file or stdin."""
    if args.file == "-":
        encrypted_string = sys.stdin.read()
    else:
        with open(args.file, 'r') as f:
            encrypted_string = f.read()

    print(_build_helper().decrypt_string(encrypted_string))


def cmd_process_find(args):
    """Find processes whose command line matches a pattern."""
    from vault_toolkit.process.query import ProcessQuery

    query = ProcessQuery()
    if args.command_lines:
        for info in query.find_processes(args.pattern, args.user):
            print(f"{info.pid} {info.command_line}")
    else:
        for pid in query.find_process_ids(args.pattern, args.user):
            print(pid)


def cmd_process_children(args):
    """List direct children of a process."""
    from vault_toolkit.process.query import ProcessQuery

    for pid in ProcessQuery().find_child_process_ids(args.pid):
        print(pid)


def cmd_process_kill(args):
    """Signal a process and wait for the kill to complete."""
    from vault_toolkit.process.signals import KillTimeoutAction
    from vault_toolkit.process.termination import kill

    signal = validate_signal(args.signal)
    action = KillTimeoutAction(args.on_timeout)
    exit_code = kill(args.pid, signal, action, timeout=args.timeout)
    print(f"kill {signal.name} {args.pid} exit code: {exit_code}")
    sys.exit(0 if exit_code == 0 else 1)


def build_parser():
    """Build the argparse parser for the vaulttool command."""
    parser = argparse.ArgumentParser(
        prog="vaulttool",
        description="vault-toolkit CLI - drive ansible-vault and manage processes",
        epilog="""
Exit codes:
  0 - Success
  1 - Runtime error (ansible-vault failure, invalid configuration, process errors)
  2 - Usage error (invalid arguments, invalid variable name, unsupported signal)

Environment variables:
  VAULT_TOOLKIT_CONFIG - Path to config file (overrides default location)

Configuration:
  Default location: ~/.config/vault-toolkit/config.yml
  View current: Run 'vaulttool config show'
        """
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug output, including ansible-vault commands, to stderr"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "version",
        help="Show version information",
        description="Display the current version of vault-toolkit"
    )

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description="Inspect vault-toolkit configuration"
    )
    config_subparsers = config_parser.add_subparsers(dest="config_command")
    config_subparsers.add_parser(
        "show",
        help="Show current config path",
        description="""
Display the configuration file path and its source.

Sources:
  - environment: Path from VAULT_TOOLKIT_CONFIG
  - default: ~/.config/vault-toolkit/config.yml
        """
    )

    # vault command
    vault_parser = subparsers.add_parser(
        "vault",
        help="ansible-vault operations",
        description="Encrypt, decrypt, view and rekey files and strings with ansible-vault"
    )
    vault_subparsers = vault_parser.add_subparsers(dest="vault_command")

    def add_vault_id(subparser):
        subparser.add_argument(
            "--vault-id",
            help="Vault id label; passes --vault-id <label>@<password file> to ansible-vault"
        )

    encrypt_parser = vault_subparsers.add_parser("encrypt", help="Encrypt a file in place")
    encrypt_parser.add_argument("file", help="File to encrypt")
    add_vault_id(encrypt_parser)

    decrypt_parser = vault_subparsers.add_parser("decrypt", help="Decrypt a file")
    decrypt_parser.add_argument("file", help="Encrypted file")
    decrypt_parser.add_argument("--output", help="Write decrypted content here instead of in place")
    add_vault_id(decrypt_parser)

    view_parser = vault_subparsers.add_parser("view", help="Print decrypted content of a file")
    view_parser.add_argument("file", help="Encrypted file")
    add_vault_id(view_parser)

    rekey_parser = vault_subparsers.add_parser("rekey", help="Re-encrypt a file with a new password")
    rekey_parser.add_argument("file", help="Encrypted file")
    rekey_parser.add_argument("new_password_file", help="File containing the new vault password")
    add_vault_id(rekey_parser)

    encrypt_string_parser = vault_subparsers.add_parser(
        "encrypt-string",
        help="Encrypt a string as a named variable",
        description="""
Encrypt a string with ansible-vault encrypt_string and print the result,
ready to paste into a YAML vars file.

Warning: the plain text is visible in the process list while ansible-vault runs.
        """
    )
    encrypt_string_parser.add_argument("variable_name", help="Variable name (format: [a-zA-Z_][a-zA-Z0-9_]*)")
    encrypt_string_parser.add_argument("plain_text", help="Text to encrypt")
    add_vault_id(encrypt_string_parser)

    decrypt_string_parser = vault_subparsers.add_parser(
        "decrypt-string",
        help="Decrypt encrypt_string output",
        description="Decrypt the output of encrypt-string, read from FILE or stdin"
    )
    decrypt_string_parser.add_argument("file", nargs="?", default="-", help="File with encrypted variable (default: stdin)")

    # process command
    process_parser = subparsers.add_parser(
        "process",
        help="Process operations",
        description="Find and signal processes (POSIX only)"
    )
    process_subparsers = process_parser.add_subparsers(dest="process_command")

    find_parser = process_subparsers.add_parser("find", help="Find processes by command line pattern")
    find_parser.add_argument("pattern", help="Pattern matched against the full command line")
    find_parser.add_argument("--user", help="Only processes owned by this user")
    find_parser.add_argument("--command-lines", action="store_true", help="Print full command lines")

    children_parser = process_subparsers.add_parser("children", help="List direct child processes")
    children_parser.add_argument("pid", type=int, help="Parent process id")

    kill_parser = process_subparsers.add_parser(
        "kill",
        help="Signal a process",
        description="""
Send a signal to a process and wait for the kill to finish.

On timeout:
  no-op      - Report exit code -1
  throw      - Fail with exit code 1
  force-kill - Send SIGKILL and wait one more second
        """
    )
    kill_parser.add_argument("pid", type=int, help="Process id")
    kill_parser.add_argument("--signal", default="TERM", help="Signal name or number (default: TERM)")
    kill_parser.add_argument("--timeout", type=float, default=5, help="Seconds to wait (default: 5)")
    kill_parser.add_argument(
        "--on-timeout",
        choices=["no-op", "throw", "force-kill"],
        default="force-kill",
        help="Action when the timeout elapses (default: force-kill)"
    )

    return parser, {
        "config": (config_parser, "config_command", {"show": cmd_config_show}),
        "vault": (vault_parser, "vault_command", {
            "encrypt": cmd_vault_encrypt,
            "decrypt": cmd_vault_decrypt,
            "view": cmd_vault_view,
            "rekey": cmd_vault_rekey,
            "encrypt-string": cmd_vault_encrypt_string,
            "decrypt-string": cmd_vault_decrypt_string,
        }),
        "process": (process_parser, "process_command", {
            "find": cmd_process_find,
            "children": cmd_process_children,
            "kill": cmd_process_kill,
        }),
    }


def main(argv=None):
    """Main CLI entrypoint.

    Exit codes:
        0 - Success
        1 - Runtime errors (ansible-vault failure, configuration, process errors)
        2 - Usage errors (invalid arguments, invalid variable name, etc.)
    """
    parser, groups = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    # If no command provided, show help and exit with usage error code
    if not args.command:
        parser.print_help()
        sys.exit(2)

    try:
        if args.command == "version":
            cmd_version(args)
        elif args.command in groups:
            group_parser, dest, handlers = groups[args.command]
            handler = handlers.get(getattr(args, dest))
            if handler is None:
                group_parser.print_help()
                sys.exit(2)
            handler(args)
        else:
            parser.print_help()
            sys.exit(2)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
