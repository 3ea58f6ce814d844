# Tests for vault key derivation and authenticated encryption
# Covers: KeyDeriver (scrypt), Cipher (AES-256-GCM), length checks,
#         wrong key / tamper / truncation handling

import os

import pytest

from passman.vault.encryption import (
    KEY_LENGTH,
    NONCE_LENGTH,
    SALT_LENGTH,
    TAG_LENGTH,
    Cipher,
    KeyDeriver,
)
from passman.vault.exceptions import AuthenticationError, InvalidParameterError


# ── KeyDeriver ───────────────────────────────────────────────────────


class TestKeyDeriver:
    def test_key_length(self):
        key = KeyDeriver.derive("correct horse", KeyDeriver.generate_salt())
        assert len(key) == KEY_LENGTH

    def test_deterministic(self):
        salt = KeyDeriver.generate_salt()
        assert KeyDeriver.derive("passphrase", salt) == KeyDeriver.derive("passphrase", salt)

    def test_different_salt_different_key(self):
        k1 = KeyDeriver.derive("passphrase", b"\x01" * SALT_LENGTH)
        k2 = KeyDeriver.derive("passphrase", b"\x02" * SALT_LENGTH)
        assert k1 != k2

    def test_different_passphrase_different_key(self):
        salt = KeyDeriver.generate_salt()
        assert KeyDeriver.derive("one", salt) != KeyDeriver.derive("two", salt)

    def test_empty_passphrase_is_accepted(self):
        key = KeyDeriver.derive("", KeyDeriver.generate_salt())
        assert len(key) == KEY_LENGTH

    def test_unicode_passphrase(self):
        salt = KeyDeriver.generate_salt()
        assert KeyDeriver.derive("主密钥", salt) == KeyDeriver.derive("主密钥", salt)

    def test_wrong_salt_length_rejected(self):
        with pytest.raises(InvalidParameterError, match="Salt must be"):
            KeyDeriver.derive("passphrase", b"short")

    def test_generate_salt_is_random(self):
        s1 = KeyDeriver.generate_salt()
        s2 = KeyDeriver.generate_salt()
        assert len(s1) == SALT_LENGTH
        assert s1 != s2


@pytest.mark.real_kdf
class TestShippedWorkFactors:
    """The format-version-1 constants must never drift."""

    def test_scrypt_constants(self):
        assert KeyDeriver.SCRYPT_N == 2 ** 15
        assert KeyDeriver.SCRYPT_R == 8
        assert KeyDeriver.SCRYPT_P == 1

    def test_derive_with_shipped_cost(self):
        salt = bytes(range(SALT_LENGTH))
        k1 = KeyDeriver.derive("passman", salt)
        assert k1 == KeyDeriver.derive("passman", salt)
        assert len(k1) == KEY_LENGTH


# ── Cipher ───────────────────────────────────────────────────────────


@pytest.fixture
def key():
    return os.urandom(KEY_LENGTH)


@pytest.fixture
def nonce():
    return Cipher.generate_nonce()


class TestCipher:
    def test_seal_open_roundtrip(self, key, nonce):
        sealed = Cipher.seal(key, nonce, b"account data")
        assert Cipher.open(key, nonce, sealed) == b"account data"

    def test_empty_plaintext(self, key, nonce):
        sealed = Cipher.seal(key, nonce, b"")
        assert len(sealed) == TAG_LENGTH
        assert Cipher.open(key, nonce, sealed) == b""

    def test_sealed_is_plaintext_plus_tag(self, key, nonce):
        sealed = Cipher.seal(key, nonce, b"x" * 100)
        assert len(sealed) == 100 + TAG_LENGTH

    def test_ciphertext_differs_from_plaintext(self, key, nonce):
        sealed = Cipher.seal(key, nonce, b"visible secret")
        assert b"visible secret" not in sealed

    def test_wrong_key_fails(self, key, nonce):
        sealed = Cipher.seal(key, nonce, b"secret")
        other = os.urandom(KEY_LENGTH)
        with pytest.raises(AuthenticationError):
            Cipher.open(other, nonce, sealed)

    def test_tampered_ciphertext_fails(self, key, nonce):
        sealed = bytearray(Cipher.seal(key, nonce, b"secret"))
        sealed[0] ^= 0x01
        with pytest.raises(AuthenticationError):
            Cipher.open(key, nonce, bytes(sealed))

    def test_tampered_tag_fails(self, key, nonce):
        sealed = bytearray(Cipher.seal(key, nonce, b"secret"))
        sealed[-1] ^= 0x80
        with pytest.raises(AuthenticationError):
            Cipher.open(key, nonce, bytes(sealed))

    def test_truncated_fails(self, key, nonce):
        sealed = Cipher.seal(key, nonce, b"secret")
        with pytest.raises(AuthenticationError):
            Cipher.open(key, nonce, sealed[:-1])

    def test_shorter_than_tag_fails(self, key, nonce):
        with pytest.raises(AuthenticationError, match="too short"):
            Cipher.open(key, nonce, b"\x00" * (TAG_LENGTH - 1))

    def test_wrong_nonce_fails(self, key, nonce):
        sealed = Cipher.seal(key, nonce, b"secret")
        with pytest.raises(AuthenticationError):
            Cipher.open(key, Cipher.generate_nonce(), sealed)

    def test_associated_data_must_match(self, key, nonce):
        sealed = Cipher.seal(key, nonce, b"secret", associated_data=b"header-v1")
        assert Cipher.open(key, nonce, sealed, associated_data=b"header-v1") == b"secret"
        with pytest.raises(AuthenticationError):
            Cipher.open(key, nonce, sealed, associated_data=b"header-v2")
        with pytest.raises(AuthenticationError):
            Cipher.open(key, nonce, sealed)

    def test_accepts_bytearray_key(self, key, nonce):
        sealed = Cipher.seal(bytearray(key), nonce, b"secret")
        assert Cipher.open(bytearray(key), nonce, sealed) == b"secret"

    def test_authentication_error_chains_invalid_tag(self, key, nonce):
        from cryptography.exceptions import InvalidTag

        sealed = Cipher.seal(key, nonce, b"secret")
        with pytest.raises(AuthenticationError) as exc_info:
            Cipher.open(os.urandom(KEY_LENGTH), nonce, sealed)
        assert isinstance(exc_info.value.__cause__, InvalidTag)


class TestCipherParameterChecks:
    @pytest.mark.parametrize("length", [0, 16, 31, 33])
    def test_bad_key_length(self, length, nonce):
        with pytest.raises(InvalidParameterError, match="Key must be"):
            Cipher.seal(b"\x00" * length, nonce, b"data")
        with pytest.raises(InvalidParameterError, match="Key must be"):
            Cipher.open(b"\x00" * length, nonce, b"\x00" * 32)

    @pytest.mark.parametrize("length", [0, 8, 11, 13, 16])
    def test_bad_nonce_length(self, key, length):
        with pytest.raises(InvalidParameterError, match="Nonce must be"):
            Cipher.seal(key, b"\x00" * length, b"data")
        with pytest.raises(InvalidParameterError, match="Nonce must be"):
            Cipher.open(key, b"\x00" * length, b"\x00" * 32)

    def test_generate_nonce_length_and_randomness(self):
        n1 = Cipher.generate_nonce()
        n2 = Cipher.generate_nonce()
        assert len(n1) == NONCE_LENGTH
        assert n1 != n2
