# passman - Local Encrypted Password Manager
#
# One master passphrase, one encrypted vault file.
# Accounts (identifier, secret, notes) are added, read, updated, deleted
# and listed through passman.commands; the engine lives in passman.vault.

__version__ = "0.1.0"
__description__ = "Local encrypted password manager"

from .vault import (
    Record,
    VaultError,
    VaultStore,
)

__all__ = [
    "__version__",
    "Record",
    "VaultError",
    "VaultStore",
]
