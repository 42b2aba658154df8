# Strongbox - FastAPI Backend
#
# Thin HTTP surface over the vault engine. No TLS: run behind a reverse
# proxy or on localhost only.

import logging

import uvicorn
from fastapi import FastAPI

from .. import __version__
from .vault_routes import router as vault_router

logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(
    title="Strongbox API",
    description="Local encrypted secret store",
    version=__version__
)

# Register routers
app.include_router(vault_router)


@app.get("/health")
async def health():
    """Liveness check. Does not touch the vault."""
    return {"status": "ok"}


def start_api_server(host: str = "127.0.0.1", port: int = 3000):
    """
    Start FastAPI server.

    Args:
        host: Host to bind to (default: localhost only)
        port: Port to listen on
    """
    logger.info(f"Starting Strongbox API on {host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="info")
