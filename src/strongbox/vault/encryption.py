# Vault - Encryption Service
#
# Master password -> encryption key (PBKDF2-SHA256)
# Secret encryption (AES-256-GCM), blob format: nonce(12) || ciphertext+tag
# Successful decryption is the only password check the vault has

import os
import base64
from typing import Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.backends import default_backend

from .errors import AuthenticationFailure


class EncryptionService:
    """
    Handles key derivation and encryption for vault secrets.

    Flow:
    1. Caller supplies the master password
    2. PBKDF2 derives a 256-bit key from password + vault salt
    3. AES-256-GCM seals each secret under that key
    4. Each encryption uses a fresh random nonce, prepended to the ciphertext

    Never use more than ~2^32 random nonces with one key: past that the
    chance of a nonce repeat stops being negligible.
    """

    PBKDF2_ITERATIONS = 50_000  # Default and floor; existing vaults depend on it
    MIN_PBKDF2_ITERATIONS = 50_000
    KEY_LENGTH = 32  # 256 bits for AES-256
    SALT_LENGTH = 32  # 256-bit salt
    NONCE_LENGTH = 12  # 96-bit nonce for GCM (recommended)

    @staticmethod
    def derive_key(
        password: Union[str, bytes],
        salt: bytes,
        iterations: int = PBKDF2_ITERATIONS,
    ) -> bytes:
        """
        Derive encryption key from master password using PBKDF2-HMAC-SHA256.

        Args:
            password: Master password (str is UTF-8 encoded)
            salt: Vault salt (stored in the vault state file)
            iterations: PBKDF2 iteration count

        Returns:
            256-bit encryption key
        """
        if isinstance(password, str):
            password = password.encode('utf-8')

        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=EncryptionService.KEY_LENGTH,
            salt=salt,
            iterations=iterations,
            backend=default_backend()
        )

        return kdf.derive(password)

    @staticmethod
    def generate_salt() -> bytes:
        """Generate cryptographically random salt."""
        return os.urandom(EncryptionService.SALT_LENGTH)

    @staticmethod
    def encrypt(key: bytes, plaintext: bytes) -> bytes:
        """
        Encrypt plaintext using AES-256-GCM.

        Args:
            key: 256-bit encryption key (from derive_key)
            plaintext: Bytes to seal

        Returns:
            nonce || ciphertext_with_tag
        """
        # Generate random nonce (must be unique per encryption)
        nonce = os.urandom(EncryptionService.NONCE_LENGTH)

        aesgcm = AESGCM(key)
        ciphertext = aesgcm.encrypt(nonce, plaintext, None)

        return nonce + ciphertext

    @staticmethod
    def decrypt(key: bytes, blob: bytes) -> bytes:
        """
        Decrypt a blob produced by encrypt().

        Raises:
            AuthenticationFailure: Blob too short, wrong key, or tampered data.
        """
        if len(blob) < EncryptionService.NONCE_LENGTH:
            raise AuthenticationFailure("Encrypted data too short to contain a nonce")

        nonce = blob[:EncryptionService.NONCE_LENGTH]
        ciphertext = blob[EncryptionService.NONCE_LENGTH:]

        try:
            return AESGCM(key).decrypt(nonce, ciphertext, None)
        except InvalidTag as e:
            raise AuthenticationFailure("Could not decrypt cipher text") from e

    @staticmethod
    def encode_for_storage(data: bytes) -> str:
        """
        Encode binary data for the JSON state file (base64).
        """
        return base64.b64encode(data).decode('utf-8')

    @staticmethod
    def decode_from_storage(data: str) -> bytes:
        """Decode base64-encoded data from the state file."""
        return base64.b64decode(data.encode('utf-8'), validate=True)
