"""
Vault Exception Classes
"""


class VaultError(Exception):
    """Base exception for vault operations"""
    pass


class SecretNotFound(VaultError):
    """Raised when a secret name is not tracked by the vault"""

    def __init__(self, name: str):
        super().__init__(f"Secret not found: {name}")
        self.name = name


class Unauthorized(VaultError):
    """Raised when an existing secret cannot be decrypted with the supplied password.

    A wrong password and a corrupted or tampered secret file are
    indistinguishable here; both end up as this error.
    """

    def __init__(self, message: str = "Provided credentials are incorrect"):
        super().__init__(message)


class AuthenticationFailure(VaultError):
    """Raised by the cipher when an AES-GCM blob fails to open"""
    pass


class CorruptState(VaultError):
    """Raised when the vault state file is unreadable or unparseable"""
    pass


class MalformedRecord(VaultError):
    """Raised when decrypted bytes do not decode as a secret record"""
    pass


class VaultIOError(VaultError):
    """Raised on filesystem failures (permissions, disk full, missing files)"""
    pass
