"""
Vault Exception Classes
"""

from typing import Optional


class VaultError(Exception):
    """Base exception for vault operations"""
    pass


class InvalidParameterError(VaultError):
    """Raised when a key, nonce, salt or identifier has an invalid shape"""
    pass


class AuthenticationError(VaultError):
    """Raised when decryption fails: wrong passphrase or tampered file"""
    pass


class FormatError(VaultError):
    """Raised when the vault file or payload has an unreadable layout"""
    pass


class PersistenceError(VaultError):
    """Raised when reading or writing the vault file fails"""
    pass


class VaultStateError(VaultError):
    """Raised when an operation is not valid in the store's current state"""
    pass


class _IdentifierError(VaultError):
    def __init__(self, identifier: str, message: Optional[str] = None):
        self.identifier = identifier
        super().__init__(message or self._default_message(identifier))

    @staticmethod
    def _default_message(identifier: str) -> str:
        raise NotImplementedError


class DuplicateIdentifierError(_IdentifierError):
    """Raised when adding an identifier that already exists"""

    @staticmethod
    def _default_message(identifier: str) -> str:
        return f"Account already exists: {identifier}"


class NotFoundError(_IdentifierError):
    """Raised when an identifier is not in the vault"""

    @staticmethod
    def _default_message(identifier: str) -> str:
        return f"Account not found: {identifier}"
