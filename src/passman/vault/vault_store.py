# Vault Store - Encrypted Single-File Vault
#
# Owns the on-disk vault file:
#   open  -> read whole file, derive key, decrypt, decode into a RecordIndex
#   edits -> in-memory only, mark the store dirty
#   save  -> encode, encrypt with a fresh nonce, write temp file, atomic rename
#
# File layout:
#   [format_version: 1 byte][salt: 16 bytes][nonce: 12 bytes][ciphertext || tag]
#
# The salt is generated once, when an absent vault is first opened, and
# reused for every later save. The nonce is regenerated on every save.
#
# No cross-process locking: two processes saving the same vault race and
# the last os.replace() wins.

import contextlib
import os
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from .codec import VaultCodec
from .encryption import NONCE_LENGTH, SALT_LENGTH, Cipher, KeyDeriver
from .exceptions import FormatError, PersistenceError, VaultStateError
from .record_index import Record, RecordIndex, RecordListing

FORMAT_VERSION = 1
HEADER_SIZE = 1 + SALT_LENGTH + NONCE_LENGTH


class VaultState(str, Enum):
    """Lifecycle of a VaultStore."""
    UNINITIALIZED = "uninitialized"
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class VaultHeader:
    """Plaintext prefix of the vault file."""
    format_version: int
    salt: bytes
    nonce: bytes

    @property
    def associated_data(self) -> bytes:
        """Header bytes authenticated together with the ciphertext."""
        return bytes([self.format_version]) + self.salt

    def pack(self) -> bytes:
        return bytes([self.format_version]) + self.salt + self.nonce

    @classmethod
    def unpack(cls, blob: bytes) -> "VaultHeader":
        """Parse the header at the start of a vault file.

        Only the header is checked here. A body cut short, down to zero
        bytes, fails authentication in Cipher.open instead.

        Raises:
            FormatError: If the header is incomplete or the version is unknown.
        """
        if len(blob) < HEADER_SIZE:
            raise FormatError(
                f"Vault file too short ({len(blob)} bytes) to be a valid vault"
            )

        version = blob[0]
        if version != FORMAT_VERSION:
            raise FormatError(f"Unsupported vault format version: {version}")

        salt = blob[1:1 + SALT_LENGTH]
        nonce = blob[1 + SALT_LENGTH:HEADER_SIZE]
        return cls(format_version=version, salt=salt, nonce=nonce)


class VaultStore:
    """
    Encrypted credential vault backed by one file.

    Usage:
        with VaultStore(path) as store:
            store.open(passphrase)
            store.add("github", "hunter2", notes="work account")
            store.save()

    Security:
    - Master passphrase never stored (only the salt for key derivation)
    - Key held in a bytearray and zeroed on close()
    - A failed open exposes nothing and never touches the file
    - save() publishes through a single os.replace(); a crash before it
      leaves the previous vault file intact
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

        self._state = VaultState.UNINITIALIZED
        self._dirty = False
        self._is_new = False
        self._salt: Optional[bytes] = None
        self._key: Optional[bytearray] = None
        self._index: Optional[RecordIndex] = None

    # ── Lifecycle ───────────────────────────────────────────────────

    @property
    def state(self) -> VaultState:
        return self._state

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    @property
    def is_new(self) -> bool:
        """True until the first successful save of a freshly created vault."""
        return self._is_new

    def open(self, passphrase: str) -> None:
        """
        Load the vault, or start a new empty one if the file is absent.

        Args:
            passphrase: Master passphrase

        Raises:
            VaultStateError: If the store is not UNINITIALIZED
            PersistenceError: If the vault file cannot be read
            FormatError: If the file is not a vault this version understands
            AuthenticationError: Wrong passphrase or tampered file
        """
        if self._state is not VaultState.UNINITIALIZED:
            raise VaultStateError(f"Cannot open a vault that is {self._state.value}")

        blob = self._read_file()

        if blob is None:
            salt = KeyDeriver.generate_salt()
            key = bytearray(KeyDeriver.derive(passphrase, salt))
            index = RecordIndex()
            is_new = True
        else:
            header = VaultHeader.unpack(blob)
            salt = header.salt
            key = bytearray(KeyDeriver.derive(passphrase, salt))
            try:
                plaintext = Cipher.open(
                    key, header.nonce, blob[HEADER_SIZE:], header.associated_data
                )
                index = VaultCodec.decode(plaintext)
            except BaseException:
                _zero(key)
                raise
            is_new = False

        self._salt = salt
        self._key = key
        self._index = index
        self._is_new = is_new
        self._dirty = False
        self._state = VaultState.OPEN

    def save(self) -> None:
        """
        Encrypt the current records and atomically replace the vault file.

        Raises:
            VaultStateError: If the store is not open or has no changes
            PersistenceError: On I/O failure; the previous file is untouched
                and the store stays dirty so the caller may retry
        """
        self._require_open()
        if not self._dirty:
            raise VaultStateError("No unsaved changes")

        nonce = Cipher.generate_nonce()
        header = VaultHeader(format_version=FORMAT_VERSION, salt=self._salt, nonce=nonce)
        sealed = Cipher.seal(
            self._key, nonce, VaultCodec.encode(self._index), header.associated_data
        )

        self._atomic_write(header.pack() + sealed)

        self._dirty = False
        self._is_new = False

    def close(self) -> None:
        """Zero the key and drop the records. Unsaved changes are discarded."""
        if self._key is not None:
            _zero(self._key)
        self._key = None
        self._salt = None
        self._index = None
        self._dirty = False
        self._state = VaultState.CLOSED

    def __enter__(self) -> "VaultStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ── Records ─────────────────────────────────────────────────────

    def add(self, identifier: str, secret: str, notes: str = "") -> Record:
        record = self._require_open().add(identifier, secret, notes)
        self._dirty = True
        return record

    def get(self, identifier: str) -> Record:
        return self._require_open().get(identifier)

    def update(
        self,
        identifier: str,
        secret: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> bool:
        """Update the supplied fields. Marks the store dirty only on a real change."""
        changed = self._require_open().update(identifier, secret=secret, notes=notes)
        if changed:
            self._dirty = True
        return changed

    def delete(self, identifier: str) -> Record:
        record = self._require_open().delete(identifier)
        self._dirty = True
        return record

    def list(self) -> RecordListing:
        return self._require_open().list()

    def __len__(self) -> int:
        return len(self._require_open())

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._require_open()

    def __repr__(self) -> str:
        return f"VaultStore(path={str(self.path)!r}, state={self._state.value}, dirty={self._dirty})"

    # ── Private helpers ─────────────────────────────────────────────

    def _require_open(self) -> RecordIndex:
        if self._state is not VaultState.OPEN:
            raise VaultStateError(f"Vault is {self._state.value}. Open it first.")
        return self._index

    def _read_file(self) -> Optional[bytes]:
        """Return the whole vault file, or None if it does not exist."""
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceError(f"Cannot read vault {self.path}: {exc}") from exc

    def _atomic_write(self, data: bytes) -> None:
        """Write to a temp file beside the vault, then os.replace() it in.

        mkstemp creates the temp file with mode 600. The rename is the only
        step that makes new content visible at self.path; once it returns
        the save is committed.
        """
        directory = self.path.parent
        tmp_path: Optional[Path] = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=directory
            )
            tmp_path = Path(tmp_name)
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as exc:
            _discard(tmp_path)
            if tmp_path is None:
                raise PersistenceError(
                    f"Cannot create temporary file in {directory}: {exc}"
                ) from exc
            raise PersistenceError(f"Failed to save vault {self.path}: {exc}") from exc
        except BaseException:
            # Interrupted mid-save: the old vault is still in place
            _discard(tmp_path)
            raise

        # Some filesystems reject fsync on a directory (EINVAL, EBADF)
        with contextlib.suppress(OSError):
            _fsync_directory(directory)


def _zero(buf: bytearray) -> None:
    for i in range(len(buf)):
        buf[i] = 0


def _discard(tmp_path: Optional[Path]) -> None:
    if tmp_path is None:
        return
    with contextlib.suppress(OSError):
        tmp_path.unlink(missing_ok=True)


def _fsync_directory(directory: Path) -> None:
    """Persist the rename itself (POSIX only; Windows cannot open directories)."""
    if os.name != "posix":
        return
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)
