"""
Shared pytest fixtures for the Strongbox test suite.

Autouse fixtures below isolate tests from the live environment:
  - Audit logger -> temp directory  (prevents test events in ./audit_logs)
  - Route config -> reset per test  (no vault opened under ~/.strongbox)
"""

import pytest


@pytest.fixture(autouse=True)
def _isolate_audit_logs(tmp_path):
    """Point the global AuditLogger at a temp directory for every test.

    Without this, anything that calls ``get_audit_logger()`` writes into the
    real ``./audit_logs/`` directory.
    """
    import strongbox.core.audit_log as audit_mod

    old_logger = audit_mod._audit_logger
    audit_mod._audit_logger = audit_mod.AuditLogger(log_dir=tmp_path / "audit_logs")

    yield

    audit_mod._audit_logger.close()
    audit_mod._audit_logger = old_logger


@pytest.fixture(autouse=True)
def _isolate_vault_config(monkeypatch):
    """Drop any cached route config and STRONGBOX_* variables."""
    import strongbox.api.vault_routes as routes_mod

    for name in (
        "STRONGBOX_STORE",
        "STRONGBOX_KDF_ITERATIONS",
        "STRONGBOX_AUDIT_LOG_DIR",
        "STRONGBOX_HOST",
        "STRONGBOX_PORT",
    ):
        monkeypatch.delenv(name, raising=False)

    old_config = routes_mod._config
    routes_mod._config = None

    yield

    routes_mod._config = old_config


@pytest.fixture
def store(tmp_path):
    """Storage root for a vault that does not exist yet."""
    return tmp_path / "store"
