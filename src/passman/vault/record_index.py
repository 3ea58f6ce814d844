# Vault - Record Index
#
# In-memory identifier -> Record mapping.
# Identifiers are unique; iteration follows insertion order.
# Records are immutable, so callers can never mutate the index behind its back.

from dataclasses import dataclass, replace
from typing import Dict, Iterator, Optional

from .exceptions import DuplicateIdentifierError, InvalidParameterError, NotFoundError


@dataclass(frozen=True)
class Record:
    """One stored account."""
    identifier: str
    secret: str
    notes: str = ""

    def __repr__(self) -> str:
        """Redact the secret to prevent accidental logging."""
        return f"Record(identifier={self.identifier!r}, secret='***', notes={self.notes!r})"


class RecordListing:
    """Lazy view over the index's records.

    Each iteration starts over from the first record, so the listing can
    be walked more than once. It reflects the index at iteration time.
    """

    def __init__(self, records: Dict[str, Record]):
        self._records = records

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records.values())

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)


class RecordIndex:
    """Mapping from account identifier to Record.

    All mutation goes through add / update / delete.
    """

    def __init__(self):
        self._records: Dict[str, Record] = {}

    def add(self, identifier: str, secret: str, notes: str = "") -> Record:
        """Insert a new record.

        Raises:
            InvalidParameterError: If identifier is empty.
            DuplicateIdentifierError: If identifier is already present.
        """
        if not identifier:
            raise InvalidParameterError("Identifier must not be empty")
        if identifier in self._records:
            raise DuplicateIdentifierError(identifier)

        record = Record(identifier=identifier, secret=secret, notes=notes)
        self._records[identifier] = record
        return record

    def get(self, identifier: str) -> Record:
        try:
            return self._records[identifier]
        except KeyError:
            raise NotFoundError(identifier) from None

    def update(
        self,
        identifier: str,
        secret: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> bool:
        """Replace the supplied fields; None leaves a field unchanged.

        Returns:
            True if any field actually changed.

        Raises:
            NotFoundError: If identifier is absent.
        """
        current = self.get(identifier)

        changes = {}
        if secret is not None and secret != current.secret:
            changes["secret"] = secret
        if notes is not None and notes != current.notes:
            changes["notes"] = notes

        if not changes:
            return False

        # Reassigning an existing key keeps its insertion position
        self._records[identifier] = replace(current, **changes)
        return True

    def delete(self, identifier: str) -> Record:
        """Remove and return the record."""
        try:
            return self._records.pop(identifier)
        except KeyError:
            raise NotFoundError(identifier) from None

    def list(self) -> RecordListing:
        return RecordListing(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._records

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RecordIndex):
            return NotImplemented
        return list(self._records.values()) == list(other._records.values())

    def __repr__(self) -> str:
        return f"RecordIndex({len(self._records)} records)"
