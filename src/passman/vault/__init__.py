# Vault Module - Encrypted Single-File Credential Store
#
# Master passphrase -> key (scrypt), record set encrypted with AES-256-GCM,
# persisted to one file through an atomic rename.

from .codec import VaultCodec
from .encryption import Cipher, KeyDeriver
from .exceptions import (
    AuthenticationError,
    DuplicateIdentifierError,
    FormatError,
    InvalidParameterError,
    NotFoundError,
    PersistenceError,
    VaultError,
    VaultStateError,
)
from .record_index import Record, RecordIndex, RecordListing
from .vault_store import FORMAT_VERSION, VaultHeader, VaultState, VaultStore

__all__ = [
    "VaultStore",
    "VaultState",
    "VaultHeader",
    "FORMAT_VERSION",
    "Record",
    "RecordIndex",
    "RecordListing",
    "VaultCodec",
    "KeyDeriver",
    "Cipher",
    # Errors
    "VaultError",
    "InvalidParameterError",
    "AuthenticationError",
    "FormatError",
    "DuplicateIdentifierError",
    "NotFoundError",
    "PersistenceError",
    "VaultStateError",
]
