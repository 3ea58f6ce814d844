# Vault - Encryption Service
#
# Master passphrase -> encryption key (scrypt, memory-hard)
# Record set encryption (AES-256-GCM, authenticated)
# Lengths checked at the boundary, library errors translated to VaultError

import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from .exceptions import AuthenticationError, InvalidParameterError

KEY_LENGTH = 32    # 256 bits for AES-256
SALT_LENGTH = 16   # 128-bit salt, stored in the vault header
NONCE_LENGTH = 12  # 96-bit nonce for GCM (recommended)
TAG_LENGTH = 16    # GCM authentication tag appended to the ciphertext


class KeyDeriver:
    """
    Derives the vault key from the master passphrase.

    Flow:
    1. Vault creation generates a random salt (once per vault lifetime)
    2. Every open re-derives the key from passphrase + stored salt
    3. Same passphrase + salt always yields the same key

    The scrypt work factors below belong to vault format version 1.
    Changing them makes existing vaults unopenable.
    """

    SCRYPT_N = 2 ** 15  # CPU/memory cost (32 MiB with r=8)
    SCRYPT_R = 8        # block size
    SCRYPT_P = 1        # parallelism

    @staticmethod
    def derive(passphrase: str, salt: bytes) -> bytes:
        """
        Derive a 256-bit key from the passphrase using scrypt.

        No passphrase is rejected. An empty passphrase still produces a
        (weak) key; passphrase strength is the caller's concern.

        Args:
            passphrase: User's master passphrase
            salt: Random salt stored in the vault header

        Returns:
            32-byte key

        Raises:
            InvalidParameterError: If the salt is not SALT_LENGTH bytes
        """
        if len(salt) != SALT_LENGTH:
            raise InvalidParameterError(
                f"Salt must be {SALT_LENGTH} bytes, got {len(salt)}"
            )

        kdf = Scrypt(
            salt=bytes(salt),
            length=KEY_LENGTH,
            n=KeyDeriver.SCRYPT_N,
            r=KeyDeriver.SCRYPT_R,
            p=KeyDeriver.SCRYPT_P,
        )
        return kdf.derive(passphrase.encode("utf-8"))

    @staticmethod
    def generate_salt() -> bytes:
        """Generate cryptographically random salt."""
        return os.urandom(SALT_LENGTH)


class Cipher:
    """
    Authenticated encryption of the vault payload (AES-256-GCM).

    A wrong key, a flipped bit or mismatched associated data all fail
    open() with AuthenticationError; garbage is never returned.
    """

    @staticmethod
    def _check_lengths(key: bytes, nonce: bytes) -> None:
        if len(key) != KEY_LENGTH:
            raise InvalidParameterError(
                f"Key must be {KEY_LENGTH} bytes, got {len(key)}"
            )
        if len(nonce) != NONCE_LENGTH:
            raise InvalidParameterError(
                f"Nonce must be {NONCE_LENGTH} bytes, got {len(nonce)}"
            )

    @staticmethod
    def generate_nonce() -> bytes:
        """Generate a random nonce (must be unique per encryption)."""
        return os.urandom(NONCE_LENGTH)

    @staticmethod
    def seal(
        key: bytes,
        nonce: bytes,
        plaintext: bytes,
        associated_data: Optional[bytes] = None,
    ) -> bytes:
        """
        Encrypt plaintext using AES-256-GCM.

        Args:
            key: 256-bit key (from KeyDeriver.derive)
            nonce: 96-bit nonce, never reused with the same key
            plaintext: Payload to encrypt
            associated_data: Authenticated but unencrypted bytes (header)

        Returns:
            ciphertext || tag
        """
        Cipher._check_lengths(key, nonce)
        return AESGCM(bytes(key)).encrypt(nonce, plaintext, associated_data)

    @staticmethod
    def open(
        key: bytes,
        nonce: bytes,
        sealed: bytes,
        associated_data: Optional[bytes] = None,
    ) -> bytes:
        """
        Decrypt and verify ciphertext || tag.

        Raises:
            InvalidParameterError: If key or nonce length is wrong
            AuthenticationError: If the tag does not verify
        """
        Cipher._check_lengths(key, nonce)
        if len(sealed) < TAG_LENGTH:
            raise AuthenticationError("Encrypted data too short to contain a tag")

        try:
            return AESGCM(bytes(key)).decrypt(nonce, sealed, associated_data)
        except InvalidTag as exc:
            raise AuthenticationError(
                "Decryption failed: wrong passphrase or tampered vault"
            ) from exc
