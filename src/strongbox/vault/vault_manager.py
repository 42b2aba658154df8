# Vault Manager - Encrypted Secret Store
#
# One encrypted file per secret under the storage root, plus the state file
# mapping secret names to file ids.
# Password check = decrypting the secret being read, overwritten or deleted
# (no stored password hash, no canary).

import logging
from pathlib import Path
from typing import List, Optional, Union
from uuid import uuid4

from .encryption import EncryptionService
from .errors import AuthenticationFailure, SecretNotFound, Unauthorized, VaultIOError
from .secret import Secret, decode_secret, encode_secret
from .state import VaultState, load_state, save_state, write_private_file
from ..core import AuditLogger, EventSeverity, EventType, get_audit_logger

logger = logging.getLogger(__name__)


class VaultManager:
    """
    Operations on one opened vault.

    Security:
    - Each secret encrypted with AES-256-GCM under a PBKDF2-derived key
    - Master password held in memory for this session only, never stored
    - A wrong password is detected when an existing secret fails to decrypt;
      a corrupted or tampered file looks exactly the same
    - Names are not treated as sensitive: list_secrets() needs no password

    Instances are meant to be short-lived (one per request). Nothing
    serializes writers, so two managers updating the same vault concurrently
    can lose one another's mapping changes.
    """

    def __init__(self, state: VaultState, audit_logger: Optional[AuditLogger] = None):
        self.state = state
        self.logger = audit_logger or get_audit_logger()
        self._key: Optional[bytes] = None

    @property
    def store(self) -> Path:
        return self.state.store

    def _derive_key(self) -> bytes:
        if self._key is None:
            self._key = EncryptionService.derive_key(
                self.state.password or b"", self.state.salt, self.state.kdf_iterations
            )
        return self._key

    def _read_secret_file(self, name: str, file_id: str) -> bytes:
        path = self.state.secret_path(file_id)
        try:
            return path.read_bytes()
        except OSError as e:
            logger.error(f"Could not read secret file for '{name}' at {path}: {e}")
            raise VaultIOError(f"Could not read secret file for '{name}': {e}") from e

    def _open(self, name: str, blob: bytes) -> bytes:
        """Decrypt a secret blob, turning any cipher failure into Unauthorized."""
        try:
            return EncryptionService.decrypt(self._derive_key(), blob)
        except AuthenticationFailure:
            logger.error(f"Could not decrypt secret file for '{name}'")
            self.logger.log_event(
                event_type=EventType.VAULT_UNAUTHORIZED,
                severity=EventSeverity.ALERT,
                message=f"Credential check failed for secret: {name}",
                details={"secret": name}
            )
            raise Unauthorized()

    def list_secrets(self) -> List[str]:
        """Return the names of all tracked secrets, sorted. No authentication."""
        return sorted(self.state.secrets)

    def get_secret(self, name: str) -> Secret:
        """
        Decrypt and return a stored secret.

        Raises:
            SecretNotFound: Name not tracked, or its file is gone.
            Unauthorized: Decryption failed (wrong password or damaged file).
            MalformedRecord: Decrypted bytes are not a secret record.
            VaultIOError: Secret file exists but cannot be read.
        """
        file_id = self.state.secrets.get(name)
        if file_id is None:
            raise SecretNotFound(name)

        try:
            blob = self._read_secret_file(name, file_id)
        except VaultIOError as e:
            if isinstance(e.__cause__, FileNotFoundError):
                raise SecretNotFound(name) from e
            raise

        plaintext = self._open(name, blob)
        secret = decode_secret(plaintext)

        self.logger.log_vault_event(
            event_type=EventType.SECRET_ACCESSED,
            message=f"Secret accessed: {name}",
            details={"secret": name, "file_id": file_id}
        )

        return secret

    def update_secret(self, secret: Secret) -> str:
        """
        Create a secret or overwrite an existing one.

        An existing secret must decrypt with the session password before it
        is overwritten; its file id is reused. New secrets get a fresh id.

        Returns:
            The secret's file id

        Raises:
            ValueError: Empty secret name.
            Unauthorized: Existing secret failed to decrypt; nothing written.
            VaultIOError: Reading the old file, writing the new one, or saving
                the state failed. A failure on the state save leaves the new
                secret file on disk without a durable mapping entry.
        """
        if not secret.name:
            raise ValueError("Secret name must not be empty")

        file_id = self.state.secrets.get(secret.name)
        if file_id is not None:
            logger.warning(f"Secret: {secret.name} already exists. Updating secret")
            self._open(secret.name, self._read_secret_file(secret.name, file_id))
        else:
            file_id = uuid4().hex

        cipher_text = EncryptionService.encrypt(self._derive_key(), encode_secret(secret))

        try:
            write_private_file(self.state.secret_path(file_id), cipher_text)
        except VaultIOError:
            logger.error(f"Could not write encrypted secret '{secret.name}' to store")
            self._log_error(f"Failed to write secret: {secret.name}")
            raise

        self.state.secrets[secret.name] = file_id
        try:
            save_state(self.state)
        except VaultIOError:
            logger.error(
                f"Secret file {file_id} written but vault state not saved; "
                f"mapping for '{secret.name}' is not durable"
            )
            self._log_error(f"Failed to save vault state after writing secret: {secret.name}")
            raise

        self.logger.log_vault_event(
            event_type=EventType.SECRET_UPDATED,
            message=f"Secret updated: {secret.name}",
            details={"secret": secret.name, "file_id": file_id}
        )

        return file_id

    def delete_secret(self, name: str) -> None:
        """
        Delete a secret after checking the password against it.

        Raises:
            SecretNotFound: Name not tracked.
            Unauthorized: Secret failed to decrypt; nothing removed.
            VaultIOError: Reading or removing the file, or saving state, failed.
        """
        file_id = self.state.secrets.get(name)
        if file_id is None:
            logger.error(f"Secret: {name} does not exist. Nothing was deleted")
            raise SecretNotFound(name)

        self._open(name, self._read_secret_file(name, file_id))

        path = self.state.secret_path(file_id)
        try:
            path.unlink()
        except OSError as e:
            logger.error(f"Could not delete secret in path: {path}")
            self._log_error(f"Failed to delete secret file: {name}")
            raise VaultIOError(f"Could not delete secret '{name}': {e}") from e

        del self.state.secrets[name]
        try:
            save_state(self.state)
        except VaultIOError:
            logger.error(f"Secret file for '{name}' removed but vault state not saved")
            self._log_error(f"Failed to save vault state after deleting secret: {name}")
            raise

        self.logger.log_vault_event(
            event_type=EventType.SECRET_DELETED,
            message=f"Secret deleted: {name}",
            details={"secret": name, "file_id": file_id}
        )

    def _log_error(self, message: str):
        self.logger.log_event(
            event_type=EventType.VAULT_ERROR,
            severity=EventSeverity.CRITICAL,
            message=message
        )


def open_vault(
    storage_root: Union[str, Path],
    password: Union[str, bytes],
    iterations: int = EncryptionService.PBKDF2_ITERATIONS,
    audit_logger: Optional[AuditLogger] = None,
) -> VaultManager:
    """
    Open (or create) the vault at ``storage_root`` for one session.

    Args:
        storage_root: Vault directory
        password: Master password, already decoded by the caller
        iterations: PBKDF2 iterations used only if the vault is new
        audit_logger: Audit sink (default: global audit logger)

    Raises:
        ValueError: ``iterations`` is below the PBKDF2 minimum.
        CorruptState: Existing state file cannot be parsed.
        VaultIOError: Store directory or state file inaccessible.
    """
    audit = audit_logger or get_audit_logger()
    state, created = load_state(storage_root, password, iterations)

    if created:
        audit.log_vault_event(
            event_type=EventType.VAULT_CREATED,
            message=f"Vault created at {state.store}",
            details={"store": str(state.store), "kdf_iterations": state.kdf_iterations}
        )
    else:
        logger.info(f"Loaded existing vault state at {state.state_path}")

    return VaultManager(state, audit_logger=audit)
