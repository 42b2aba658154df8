# Vault - State Persistence
#
# The vault state file ("vault") lives in the storage root next to the
# per-secret files and holds: secret name -> file id mapping, salt,
# storage root path and the PBKDF2 iteration count.
#
# Writes go to a temp file in the same directory and are moved into place
# with os.replace, so the state file is never half-written. There is no
# fsync and no lock: concurrent writers race and the last one wins.

import contextlib
import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from .encryption import EncryptionService
from .errors import CorruptState, VaultIOError

logger = logging.getLogger(__name__)

STATE_FILE_NAME = "vault"
STORE_DIR_MODE = 0o700
FILE_MODE = 0o600
MAX_FILE_ID_LENGTH = 255


@dataclass
class VaultState:
    """In-memory view of one vault. ``password`` is never serialized."""
    secrets: Dict[str, str]
    salt: bytes
    store: Path
    kdf_iterations: int = EncryptionService.PBKDF2_ITERATIONS
    password: Optional[Union[str, bytes]] = field(default=None, repr=False, compare=False)

    @property
    def state_path(self) -> Path:
        return self.store / STATE_FILE_NAME

    def secret_path(self, file_id: str) -> Path:
        return self.store / file_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "secrets": dict(self.secrets),
            "salt": EncryptionService.encode_for_storage(self.salt),
            "store": str(self.store),
            "kdf_iterations": self.kdf_iterations,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "VaultState":
        """Build state from parsed JSON.

        Raises:
            CorruptState: On any missing or mistyped field.
        """
        if not isinstance(data, dict):
            raise CorruptState("Vault state is not a JSON object")

        secrets = data.get("secrets")
        if not isinstance(secrets, dict):
            raise CorruptState("Vault state has no secrets mapping")
        for name, file_id in secrets.items():
            if not isinstance(file_id, str) or not _is_plain_file_id(file_id):
                raise CorruptState(f"Vault state has an invalid file id for secret '{name}'")

        salt_b64 = data.get("salt")
        if not isinstance(salt_b64, str):
            raise CorruptState("Vault state has no salt")
        try:
            salt = EncryptionService.decode_from_storage(salt_b64)
        except ValueError as e:
            raise CorruptState(f"Vault salt is not valid base64: {e}") from e
        if not salt:
            raise CorruptState("Vault salt is empty")

        store = data.get("store")
        if not isinstance(store, str):
            raise CorruptState("Vault state has no store path")

        # Vaults written before the iteration count was persisted
        iterations = data.get("kdf_iterations", EncryptionService.PBKDF2_ITERATIONS)
        if isinstance(iterations, bool) or not isinstance(iterations, int):
            raise CorruptState("Vault state has an invalid kdf_iterations value")
        if iterations < EncryptionService.MIN_PBKDF2_ITERATIONS:
            raise CorruptState(
                f"Vault state kdf_iterations {iterations} is below the minimum "
                f"of {EncryptionService.MIN_PBKDF2_ITERATIONS}"
            )

        return cls(
            secrets=dict(secrets),
            salt=salt,
            store=Path(store),
            kdf_iterations=iterations,
        )


def _is_plain_file_id(file_id: str) -> bool:
    """File ids must name a file directly inside the storage root."""
    return (
        bool(file_id)
        and file_id not in (".", "..", STATE_FILE_NAME)
        and Path(file_id).name == file_id
        and "\\" not in file_id
        and len(file_id) <= MAX_FILE_ID_LENGTH
    )


def _exists(path: Path) -> bool:
    # Path.exists() only swallows "not found" style errors
    try:
        return path.exists()
    except OSError as e:
        raise VaultIOError(f"Could not access {path}: {e}") from e


def write_private_file(path: Path, data: bytes) -> None:
    """Atomically write ``data`` to ``path`` with owner-only permissions.

    Raises:
        VaultIOError: On any filesystem failure. The temp file is removed.
    """
    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
        )
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.chmod(tmp_path, FILE_MODE)
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path is not None:
            with contextlib.suppress(OSError):
                os.remove(tmp_path)
        raise VaultIOError(f"Could not write {path}: {e}") from e


def save_state(state: VaultState) -> None:
    """Serialize the whole state and overwrite the state file."""
    blob = json.dumps(state.to_dict(), indent=2, sort_keys=True).encode("utf-8")
    write_private_file(state.state_path, blob)


def load_state(
    storage_root: Union[str, Path],
    password: Union[str, bytes],
    iterations: int = EncryptionService.PBKDF2_ITERATIONS,
) -> Tuple[VaultState, bool]:
    """
    Load the vault rooted at ``storage_root``, creating it if needed.

    A missing root directory is created (mode 700). A missing state file
    means a brand-new vault: fresh salt, empty mapping, persisted right away
    using ``iterations``. Existing vaults keep their own iteration count.

    Args:
        storage_root: Directory holding the state file and secret files
        password: Master password, attached in memory only
        iterations: PBKDF2 iterations for a newly created vault

    Returns:
        (state, created)

    Raises:
        ValueError: ``iterations`` is below the PBKDF2 minimum.
        CorruptState: State file content cannot be parsed.
        VaultIOError: Directory or state file cannot be created or read.
    """
    if iterations < EncryptionService.MIN_PBKDF2_ITERATIONS:
        raise ValueError(
            f"iterations must be at least {EncryptionService.MIN_PBKDF2_ITERATIONS}, "
            f"got {iterations}"
        )

    root = Path(storage_root).expanduser()

    if not _exists(root):
        logger.warning(f"Vault store does not exist in {root}. Creating new vault store")
        try:
            root.mkdir(mode=STORE_DIR_MODE, parents=True, exist_ok=True)
        except OSError as e:
            raise VaultIOError(f"Could not create vault store in {root}: {e}") from e
        logger.info(f"New vault store created at {root}")

    state_path = root / STATE_FILE_NAME
    created = False

    if not _exists(state_path):
        logger.warning(f"Vault state does not exist in {state_path}. Creating new vault")
        state = VaultState(
            secrets={},
            salt=EncryptionService.generate_salt(),
            store=root,
            kdf_iterations=iterations,
        )
        save_state(state)
        created = True
        logger.info(f"New vault state created at {state_path}")
    else:
        try:
            blob = state_path.read_bytes()
        except OSError as e:
            raise VaultIOError(f"Could not read vault state from {state_path}: {e}") from e

        try:
            data = json.loads(blob.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CorruptState(f"Could not parse vault state {state_path}: {e}") from e

        state = VaultState.from_dict(data)

        if state.store != root:
            # Secret files are always resolved next to the state file
            logger.warning(
                f"Vault state records store {state.store} but was opened from {root}; using {root}"
            )
            state.store = root

    state.password = password
    return state, created
