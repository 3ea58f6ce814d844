"""Vault payload codec: record set <-> plaintext bytes.

The payload is what Cipher encrypts. It is length-prefixed so no field
value, including one containing separators or NUL bytes, can shift the
parse.

Layout (big-endian):
  magic   4 bytes  b"PMV1"
  count   u32
  per record, in insertion order:
    u32 length + UTF-8 identifier
    u32 length + UTF-8 secret
    u32 length + UTF-8 notes
"""

import struct
from typing import Tuple

from .exceptions import FormatError, VaultError
from .record_index import RecordIndex

PAYLOAD_MAGIC = b"PMV1"

_U32 = struct.Struct(">I")


def _pack_str(value: str) -> bytes:
    raw = value.encode("utf-8")
    return _U32.pack(len(raw)) + raw


class VaultCodec:
    """Serialize a RecordIndex to bytes and back."""

    @staticmethod
    def encode(index: RecordIndex) -> bytes:
        parts = [PAYLOAD_MAGIC, _U32.pack(len(index))]
        for record in index.list():
            parts.append(_pack_str(record.identifier))
            parts.append(_pack_str(record.secret))
            parts.append(_pack_str(record.notes))
        return b"".join(parts)

    @staticmethod
    def decode(payload: bytes) -> RecordIndex:
        """Parse a payload produced by encode().

        Raises:
            FormatError: On bad magic, truncation, invalid UTF-8, trailing
                bytes, empty or duplicate identifiers.
        """
        if payload[:len(PAYLOAD_MAGIC)] != PAYLOAD_MAGIC:
            raise FormatError("Vault payload has an unknown layout")

        offset = len(PAYLOAD_MAGIC)
        count, offset = VaultCodec._read_u32(payload, offset)

        index = RecordIndex()
        for _ in range(count):
            identifier, offset = VaultCodec._read_str(payload, offset)
            secret, offset = VaultCodec._read_str(payload, offset)
            notes, offset = VaultCodec._read_str(payload, offset)
            try:
                index.add(identifier, secret, notes)
            except VaultError as exc:
                raise FormatError(f"Invalid record in vault payload: {exc}") from exc

        if offset != len(payload):
            raise FormatError(
                f"Vault payload has {len(payload) - offset} unexpected trailing bytes"
            )
        return index

    @staticmethod
    def _read_u32(payload: bytes, offset: int) -> Tuple[int, int]:
        try:
            (value,) = _U32.unpack_from(payload, offset)
        except struct.error as exc:
            raise FormatError("Vault payload is truncated") from exc
        return value, offset + _U32.size

    @staticmethod
    def _read_str(payload: bytes, offset: int) -> Tuple[str, int]:
        length, offset = VaultCodec._read_u32(payload, offset)
        end = offset + length
        if end > len(payload):
            raise FormatError("Vault payload is truncated")
        try:
            value = payload[offset:end].decode("utf-8")
        except UnicodeDecodeError as exc:
            raise FormatError("Vault payload contains invalid UTF-8") from exc
        return value, end
