# Strongbox - Configuration
#
# Everything the engine and server need is passed in explicitly through
# VaultConfig; nothing reads a hardcoded storage root.
#
# Environment variables (a .env file is honoured by the CLI):
#   STRONGBOX_STORE            vault storage root (default ~/.strongbox)
#   STRONGBOX_KDF_ITERATIONS   PBKDF2 iterations for new vaults (>= 50000)
#   STRONGBOX_AUDIT_LOG_DIR    audit log directory (default ./audit_logs)
#   STRONGBOX_HOST             API bind host (default 127.0.0.1)
#   STRONGBOX_PORT             API port (default 3000)

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from .vault.encryption import EncryptionService

DEFAULT_STORE_DIR = ".strongbox"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000


def default_storage_root() -> Path:
    return Path.home() / DEFAULT_STORE_DIR


@dataclass
class VaultConfig:
    """Settings for opening vaults and serving the API."""
    storage_root: Path = field(default_factory=default_storage_root)
    kdf_iterations: int = EncryptionService.PBKDF2_ITERATIONS
    audit_log_dir: Optional[Path] = None
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    def __post_init__(self):
        self.storage_root = Path(self.storage_root).expanduser()
        if self.audit_log_dir is not None:
            self.audit_log_dir = Path(self.audit_log_dir).expanduser()

        if self.kdf_iterations < EncryptionService.MIN_PBKDF2_ITERATIONS:
            raise ValueError(
                f"kdf_iterations must be at least {EncryptionService.MIN_PBKDF2_ITERATIONS}, "
                f"got {self.kdf_iterations}"
            )
        if not 0 < self.port < 65536:
            raise ValueError(f"port must be between 1 and 65535, got {self.port}")

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any,
    ) -> "VaultConfig":
        """Build a config from STRONGBOX_* environment variables.

        Keyword overrides (e.g. command-line flags) take precedence over the
        environment; an overridden variable is never parsed. ``None`` means
        "not given".

        Raises:
            ValueError: If a numeric variable is not an integer or out of range.
        """
        env = os.environ if environ is None else environ
        kwargs = {}

        for field_name, (var, convert) in ENV_VARS.items():
            if overrides.get(field_name) is not None:
                kwargs[field_name] = overrides[field_name]
            elif env.get(var):
                kwargs[field_name] = convert(var, env[var])

        return cls(**kwargs)


def _parse_path(name: str, value: str) -> Path:
    return Path(value)


def _parse_str(name: str, value: str) -> str:
    return value


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


# VaultConfig field -> (environment variable, parser)
ENV_VARS = {
    "storage_root": ("STRONGBOX_STORE", _parse_path),
    "kdf_iterations": ("STRONGBOX_KDF_ITERATIONS", _parse_int),
    "audit_log_dir": ("STRONGBOX_AUDIT_LOG_DIR", _parse_path),
    "host": ("STRONGBOX_HOST", _parse_str),
    "port": ("STRONGBOX_PORT", _parse_int),
}
