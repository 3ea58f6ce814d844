# Commands - Vault Verbs
#
# The closed set of operations the CLI can request, and the one function
# that runs them against an open VaultStore.
#
# Flow per invocation:
#   run_command(path, passphrase, cmd)
#     -> VaultStore.open(passphrase)
#     -> dispatch(store, cmd)        (mutate or read, save if dirty)
#     -> VaultStore.close()          (key zeroed)
#
# Typed VaultError failures propagate to the caller unchanged.

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

from .core import EventSeverity, EventType, get_audit_logger
from .vault import (
    AuthenticationError,
    PersistenceError,
    Record,
    VaultError,
    VaultStore,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AddCommand:
    identifier: str
    secret: str
    notes: str = ""


@dataclass(frozen=True)
class DeleteCommand:
    identifier: str


@dataclass(frozen=True)
class UpdateCommand:
    identifier: str
    secret: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class GetCommand:
    identifier: str


@dataclass(frozen=True)
class ListCommand:
    pass


Command = Union[AddCommand, DeleteCommand, UpdateCommand, GetCommand, ListCommand]


@dataclass(frozen=True)
class CommandResult:
    """Records touched by a command and whether the vault file changed."""
    records: Tuple[Record, ...] = ()
    changed: bool = False


def dispatch(store: VaultStore, command: Command) -> CommandResult:
    """
    Run one command against an open store, saving if it changed anything.

    Args:
        store: VaultStore in the OPEN state
        command: One of the command dataclasses

    Returns:
        CommandResult

    Raises:
        VaultError: NotFoundError, DuplicateIdentifierError, PersistenceError, ...
        TypeError: If command is not a known command type
    """
    audit = get_audit_logger()
    details = {"vault": str(store.path)}
    logger.debug("Dispatching %s", type(command).__name__)

    if isinstance(command, AddCommand):
        record = store.add(command.identifier, command.secret, command.notes)
        records: Tuple[Record, ...] = (record,)
        event, message = EventType.RECORD_ADDED, f"account added: {command.identifier}"
    elif isinstance(command, DeleteCommand):
        record = store.delete(command.identifier)
        records = (record,)
        event, message = EventType.RECORD_DELETED, f"account deleted: {command.identifier}"
    elif isinstance(command, UpdateCommand):
        store.update(command.identifier, secret=command.secret, notes=command.notes)
        records = (store.get(command.identifier),)
        event, message = EventType.RECORD_UPDATED, f"account updated: {command.identifier}"
    elif isinstance(command, GetCommand):
        records = (store.get(command.identifier),)
        event, message = EventType.RECORD_ACCESSED, f"account accessed: {command.identifier}"
    elif isinstance(command, ListCommand):
        records = tuple(store.list())
        event, message = EventType.VAULT_LISTED, f"listed {len(records)} accounts"
    else:
        raise TypeError(f"Unknown command: {command!r}")

    if not isinstance(command, ListCommand):
        details["identifier"] = command.identifier

    changed = store.is_dirty
    if changed:
        created = store.is_new
        store.save()
        if created:
            audit.log_vault_event(EventType.VAULT_CREATED, "created", details={"vault": str(store.path)})
        audit.log_vault_event(EventType.VAULT_SAVED, "saved", details={"vault": str(store.path)})

    audit.log_vault_event(event, message, details=details)
    return CommandResult(records=records, changed=changed)


def run_command(path: Union[str, Path], passphrase: str, command: Command) -> CommandResult:
    """Open the vault at path, run one command, and close it again."""
    audit = get_audit_logger()

    with VaultStore(path) as store:
        try:
            store.open(passphrase)
        except AuthenticationError:
            audit.log_event(
                event_type=EventType.VAULT_OPEN_FAILED,
                severity=EventSeverity.ALERT,
                message="Vault open failed: wrong passphrase or tampered file",
                details={"vault": str(store.path)},
            )
            raise
        except VaultError as e:
            audit.log_event(
                event_type=EventType.VAULT_OPEN_FAILED,
                severity=EventSeverity.CRITICAL,
                message=f"Vault open failed: {e}",
                details={"vault": str(store.path), "error": type(e).__name__},
            )
            raise

        audit.log_vault_event(EventType.VAULT_OPENED, "opened", details={"vault": str(store.path)})

        try:
            return dispatch(store, command)
        except VaultError as e:
            audit.log_event(
                event_type=EventType.VAULT_ERROR,
                severity=(
                    EventSeverity.CRITICAL
                    if isinstance(e, PersistenceError)
                    else EventSeverity.INFO
                ),
                message=f"Vault command failed: {e}",
                details={"vault": str(store.path), "error": type(e).__name__},
            )
            raise
