# Vault API - JSON endpoints for secret management
#
# Every request opens the vault fresh, runs one operation and drops it.
# There is no shared vault instance and no lock, so concurrent writes to the
# same vault race on the state file (last writer wins).
#
# Listing needs no credentials: secret names are treated as non-sensitive.
# Everything else takes the master password from HTTP Basic auth.

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from ..config import VaultConfig
from ..vault import (
    Secret,
    SecretNotFound,
    Unauthorized,
    VaultError,
    VaultManager,
    open_vault,
)
from .security import get_master_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/secrets", tags=["secrets"])

# ── Config ────────────────────────────────────────────────────────────

_config: Optional[VaultConfig] = None


def get_vault_config() -> VaultConfig:
    """Get or create the VaultConfig used by the routes."""
    global _config
    if _config is None:
        _config = VaultConfig.from_env()
    return _config


def set_vault_config(config: Optional[VaultConfig]):
    """Allow DI for testing and embedding."""
    global _config
    _config = config


# Request/Response Models
class ListSecretsResponse(BaseModel):
    secrets: List[str]


class SecretResponse(BaseModel):
    name: str
    username: str
    password: str
    url: str
    email: str
    notes: str


class UpdateSecretRequest(BaseModel):
    username: str = ""
    password: str = ""
    url: str = ""
    email: str = ""
    notes: str = ""


class SecretNameResponse(BaseModel):
    name: str


def _open(config: VaultConfig, password: str) -> VaultManager:
    try:
        return open_vault(config.storage_root, password, iterations=config.kdf_iterations)
    except VaultError as e:
        raise _to_http_error(e)


def _to_http_error(error: VaultError) -> HTTPException:
    """Map vault errors onto HTTP status codes."""
    if isinstance(error, SecretNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, Unauthorized):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(error),
            headers={"WWW-Authenticate": "Basic"},
        )

    logger.error(f"Internal server error. Error: {type(error).__name__}: {error}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error"
    )


# Endpoints

@router.get("/", response_model=ListSecretsResponse)
def list_secrets(config: VaultConfig = Depends(get_vault_config)):
    """
    List the names of all stored secrets.

    No credentials required; secret values are never returned here.
    """
    vault = _open(config, "")
    return ListSecretsResponse(secrets=vault.list_secrets())


@router.get("/{name}/", response_model=SecretResponse)
def get_secret(
    name: str,
    password: str = Depends(get_master_password),
    config: VaultConfig = Depends(get_vault_config),
):
    """
    Get a secret with all fields decrypted.

    401 if the master password does not decrypt it, 404 if it does not exist.
    """
    vault = _open(config, password)
    try:
        secret = vault.get_secret(name)
    except VaultError as e:
        raise _to_http_error(e)

    return SecretResponse(**secret.to_dict())


@router.api_route(
    "/{name}/",
    methods=["POST", "PUT"],
    response_model=SecretNameResponse,
)
def update_secret(
    name: str,
    request: UpdateSecretRequest,
    password: str = Depends(get_master_password),
    config: VaultConfig = Depends(get_vault_config),
):
    """
    Create a secret, or overwrite it if it exists.

    Overwriting requires the master password to decrypt the current value.
    """
    vault = _open(config, password)
    secret = Secret(
        name=name,
        username=request.username,
        password=request.password,
        url=request.url,
        email=request.email,
        notes=request.notes,
    )

    try:
        vault.update_secret(secret)
    except VaultError as e:
        raise _to_http_error(e)

    return SecretNameResponse(name=name)


@router.delete("/{name}/", response_model=SecretNameResponse)
def delete_secret(
    name: str,
    password: str = Depends(get_master_password),
    config: VaultConfig = Depends(get_vault_config),
):
    """Delete a secret after checking the master password against it."""
    vault = _open(config, password)
    try:
        vault.delete_secret(name)
    except VaultError as e:
        raise _to_http_error(e)

    return SecretNameResponse(name=name)
