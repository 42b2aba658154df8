# Vault Module - Encrypted Secret Store
#
# File-per-secret storage, AES-256-GCM under a PBKDF2-SHA256 key
# derived from the master password and the vault salt.

from .encryption import EncryptionService
from .errors import (
    AuthenticationFailure,
    CorruptState,
    MalformedRecord,
    SecretNotFound,
    Unauthorized,
    VaultError,
    VaultIOError,
)
from .secret import Secret, decode_secret, encode_secret
from .state import VaultState, load_state, save_state
from .vault_manager import VaultManager, open_vault

__all__ = [
    "VaultManager",
    "open_vault",
    "EncryptionService",
    "Secret",
    "encode_secret",
    "decode_secret",
    "VaultState",
    "load_state",
    "save_state",
    "VaultError",
    "SecretNotFound",
    "Unauthorized",
    "AuthenticationFailure",
    "CorruptState",
    "MalformedRecord",
    "VaultIOError",
]
