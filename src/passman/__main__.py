# Main Entry Point - passman command line
#
# Parses one verb, prompts for the master passphrase, runs the command
# through passman.commands, prints the result and maps failures to exit
# codes. All vault logic lives in passman.vault.

import argparse
import getpass
import logging
import sys
from typing import List, Optional, Sequence

from . import __version__
from .commands import (
    AddCommand,
    Command,
    DeleteCommand,
    GetCommand,
    ListCommand,
    UpdateCommand,
    run_command,
)
from .core import configure_audit_logger, load_config
from .vault import (
    AuthenticationError,
    DuplicateIdentifierError,
    FormatError,
    InvalidParameterError,
    NotFoundError,
    PersistenceError,
    Record,
    VaultError,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USER_ERROR = 1
EXIT_AUTH_FAILED = 2
EXIT_FORMAT_ERROR = 3
EXIT_PERSISTENCE_ERROR = 4
EXIT_INTERRUPTED = 130

PASSPHRASE_PROMPT = "Master passphrase: "
CONFIRM_PROMPT = "Confirm new master passphrase: "

_EXIT_CODES = (
    (AuthenticationError, EXIT_AUTH_FAILED),
    (FormatError, EXIT_FORMAT_ERROR),
    (PersistenceError, EXIT_PERSISTENCE_ERROR),
    (NotFoundError, EXIT_USER_ERROR),
    (DuplicateIdentifierError, EXIT_USER_ERROR),
    (InvalidParameterError, EXIT_USER_ERROR),
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="passman",
        description="A simple encrypted password manager for the command line",
    )
    parser.add_argument("--vault", help="Vault file (default: $PASSMAN_VAULT or ~/.passman_vault)")
    parser.add_argument("--audit-dir", help="Write a daily JSON audit log to this directory")
    parser.add_argument("--env-file", help="Read PASSMAN_* settings from this .env file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log vault events to stderr")
    parser.add_argument("--version", action="version", version=f"passman {__version__}")

    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Add a new account")
    add.add_argument("-u", "--username", required=True, help="Account identifier")
    add.add_argument("-p", "--password", required=True, help="Secret to store")
    add.add_argument("-n", "--notes", default="", help="Notes (site, app, ...)")

    delete = sub.add_parser("delete", help="Delete an account")
    delete.add_argument("-u", "--username", required=True, help="Account identifier")

    update = sub.add_parser("update", help="Update an account")
    update.add_argument("-u", "--username", required=True, help="Account identifier")
    update.add_argument("-p", "--password", help="New secret (optional)")
    update.add_argument("-n", "--notes", help="New notes (optional)")

    sub.add_parser("list", help="Show all accounts")

    get = sub.add_parser("get", help="Show one account")
    get.add_argument("-u", "--username", required=True, help="Account identifier")

    return parser


def command_from_args(args: argparse.Namespace) -> Command:
    """Translate parsed arguments into a command variant."""
    if args.command == "add":
        return AddCommand(args.username, args.password, args.notes)
    if args.command == "delete":
        return DeleteCommand(args.username)
    if args.command == "update":
        return UpdateCommand(args.username, secret=args.password, notes=args.notes)
    if args.command == "get":
        return GetCommand(args.username)
    return ListCommand()


def format_table(records: Sequence[Record]) -> str:
    """Render records as a plain-text table."""
    header = ("Identifier", "Secret", "Notes")
    rows = [header] + [(r.identifier, r.secret, r.notes) for r in records]
    widths = [max(len(row[i]) for row in rows) for i in range(len(header))]

    border = "+" + "+".join("-" * (w + 2) for w in widths) + "+"
    lines = [border]
    for i, row in enumerate(rows):
        lines.append("| " + " | ".join(cell.ljust(w) for cell, w in zip(row, widths)) + " |")
        if i == 0:
            lines.append(border)
    lines.append(border)
    return "\n".join(lines)


def exit_code_for(error: VaultError) -> int:
    for error_type, code in _EXIT_CODES:
        if isinstance(error, error_type):
            return code
    return EXIT_USER_ERROR


def read_passphrase(confirm: bool = False) -> Optional[str]:
    """Prompt without echo. Returns None if a confirmation did not match."""
    passphrase = getpass.getpass(PASSPHRASE_PROMPT)
    if confirm and getpass.getpass(CONFIRM_PROMPT) != passphrase:
        return None
    return passphrase


def _success_message(command: Command) -> Optional[str]:
    if isinstance(command, AddCommand):
        return f"Account added: {command.identifier}"
    if isinstance(command, DeleteCommand):
        return f"Account deleted: {command.identifier}"
    if isinstance(command, UpdateCommand):
        return f"Account updated: {command.identifier}"
    return None


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for passman."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(
            env_file=args.env_file,
            vault_path=args.vault,
            audit_dir=args.audit_dir,
            log_level="INFO" if args.verbose else None,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USER_ERROR

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(config.log_level)  # audit file handler may log below this
    logging.basicConfig(level=config.log_level, format="%(message)s", handlers=[stderr_handler])
    configure_audit_logger(config.audit_dir)

    command = command_from_args(args)

    try:
        # A vault that does not exist yet takes its passphrase from the first add
        creating = isinstance(command, AddCommand) and not config.vault_path.exists()
        passphrase = read_passphrase(confirm=creating)
        if passphrase is None:
            print("Error: passphrases do not match", file=sys.stderr)
            return EXIT_USER_ERROR

        result = run_command(config.vault_path, passphrase, command)
    except EOFError:
        print("Error: no passphrase given (stdin closed)", file=sys.stderr)
        return EXIT_USER_ERROR
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return EXIT_INTERRUPTED
    except VaultError as e:
        print(f"Error: {e}", file=sys.stderr)
        return exit_code_for(e)

    message = _success_message(command)
    if message:
        if isinstance(command, UpdateCommand) and not result.changed:
            message = f"No changes: {command.identifier}"
        print(message)
    elif isinstance(command, ListCommand) and not result.records:
        print("No accounts stored")
    else:
        print(format_table(result.records))

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
