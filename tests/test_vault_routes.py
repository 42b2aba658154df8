"""
Tests for the secrets API endpoints.

Uses FastAPI TestClient with the route config pointed at a temp vault via
dependency_overrides.
"""

import pytest
from fastapi.testclient import TestClient

from strongbox.api.main import app
from strongbox.api.vault_routes import get_vault_config
from strongbox.config import VaultConfig
from strongbox.vault.state import STATE_FILE_NAME

MASTER = ("bobby", "m1")
TOAD = {
    "username": "bobby",
    "password": "p",
    "url": "https://toad.co",
    "email": "b@toad.co",
    "notes": "n",
}


@pytest.fixture
def client(store):
    """TestClient with the vault rooted in a temp directory."""
    app.dependency_overrides[get_vault_config] = lambda: VaultConfig(storage_root=store)
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestListEndpoint:

    def test_empty_vault(self, client, store):
        resp = client.get("/api/secrets/")
        assert resp.status_code == 200
        assert resp.json() == {"secrets": []}
        assert (store / STATE_FILE_NAME).exists()

    def test_lists_names_without_auth(self, client):
        client.put("/api/secrets/toad/", json=TOAD, auth=MASTER)
        client.put("/api/secrets/frog/", json=TOAD, auth=MASTER)

        resp = client.get("/api/secrets/")
        assert resp.status_code == 200
        assert resp.json() == {"secrets": ["frog", "toad"]}


class TestSecretEndpoints:

    def test_put_then_get(self, client):
        resp = client.put("/api/secrets/toad/", json=TOAD, auth=MASTER)
        assert resp.status_code == 200
        assert resp.json() == {"name": "toad"}

        resp = client.get("/api/secrets/toad/", auth=MASTER)
        assert resp.status_code == 200
        assert resp.json() == {"name": "toad", **TOAD}

    def test_post_creates_too(self, client):
        resp = client.post("/api/secrets/toad/", json=TOAD, auth=MASTER)
        assert resp.status_code == 200
        assert client.get("/api/secrets/toad/", auth=MASTER).json()["username"] == "bobby"

    def test_partial_body_defaults_to_empty(self, client):
        client.put("/api/secrets/toad/", json={"password": "only"}, auth=MASTER)
        data = client.get("/api/secrets/toad/", auth=MASTER).json()
        assert data["password"] == "only"
        assert data["username"] == ""
        assert data["notes"] == ""

    def test_username_in_basic_auth_is_ignored(self, client):
        client.put("/api/secrets/toad/", json=TOAD, auth=MASTER)
        resp = client.get("/api/secrets/toad/", auth=("someone-else", "m1"))
        assert resp.status_code == 200

    def test_password_with_colon(self, client):
        auth = ("bobby", "pa:ss:word")
        client.put("/api/secrets/toad/", json=TOAD, auth=auth)
        assert client.get("/api/secrets/toad/", auth=auth).status_code == 200

    def test_overwrite(self, client):
        client.put("/api/secrets/toad/", json=TOAD, auth=MASTER)
        client.put("/api/secrets/toad/", json={**TOAD, "password": "new"}, auth=MASTER)
        assert client.get("/api/secrets/toad/", auth=MASTER).json()["password"] == "new"

    def test_delete(self, client):
        client.put("/api/secrets/toad/", json=TOAD, auth=MASTER)

        resp = client.delete("/api/secrets/toad/", auth=MASTER)
        assert resp.status_code == 200
        assert resp.json() == {"name": "toad"}

        assert client.get("/api/secrets/toad/", auth=MASTER).status_code == 404
        assert client.get("/api/secrets/").json() == {"secrets": []}


class TestErrorMapping:

    def test_get_requires_auth(self, client):
        resp = client.get("/api/secrets/toad/")
        assert resp.status_code == 401

    def test_update_requires_auth(self, client):
        resp = client.put("/api/secrets/toad/", json=TOAD)
        assert resp.status_code == 401

    def test_delete_requires_auth(self, client):
        resp = client.delete("/api/secrets/toad/")
        assert resp.status_code == 401

    def test_garbled_basic_header(self, client):
        resp = client.get("/api/secrets/toad/", headers={"Authorization": "Basic !!!notbase64"})
        assert resp.status_code == 401

    def test_get_missing_secret(self, client):
        resp = client.get("/api/secrets/nope/", auth=MASTER)
        assert resp.status_code == 404
        assert "nope" in resp.json()["detail"]

    def test_delete_missing_secret(self, client):
        assert client.delete("/api/secrets/nope/", auth=MASTER).status_code == 404

    def test_wrong_password_get(self, client):
        client.put("/api/secrets/toad/", json=TOAD, auth=MASTER)
        resp = client.get("/api/secrets/toad/", auth=("bobby", "wrong"))
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Provided credentials are incorrect"

    def test_wrong_password_update_leaves_secret(self, client):
        client.put("/api/secrets/toad/", json=TOAD, auth=MASTER)
        resp = client.put(
            "/api/secrets/toad/", json={**TOAD, "password": "hijacked"}, auth=("bobby", "wrong")
        )
        assert resp.status_code == 401
        assert client.get("/api/secrets/toad/", auth=MASTER).json()["password"] == "p"

    def test_wrong_password_delete(self, client):
        client.put("/api/secrets/toad/", json=TOAD, auth=MASTER)
        assert client.delete("/api/secrets/toad/", auth=("bobby", "wrong")).status_code == 401
        assert client.get("/api/secrets/").json() == {"secrets": ["toad"]}

    def test_invalid_body(self, client):
        resp = client.put("/api/secrets/toad/", json={"username": ["not", "a", "string"]}, auth=MASTER)
        assert resp.status_code == 422

    def test_corrupt_state_is_server_error(self, client, store):
        store.mkdir()
        (store / STATE_FILE_NAME).write_text("{ broken")

        resp = client.get("/api/secrets/")
        assert resp.status_code == 500
        assert resp.json()["detail"] == "Internal server error"

        resp = client.get("/api/secrets/toad/", auth=MASTER)
        assert resp.status_code == 500

    def test_filesystem_error_is_json_server_error(self, client, monkeypatch):
        from pathlib import Path

        client.put("/api/secrets/toad/", json=TOAD, auth=MASTER)

        def failing_exists(self):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(Path, "exists", failing_exists)

        resp = client.get("/api/secrets/toad/", auth=MASTER)
        assert resp.status_code == 500
        assert resp.json() == {"detail": "Internal server error"}


class TestConfigDependency:

    def test_default_config_from_env(self, monkeypatch, tmp_path):
        from strongbox.api import vault_routes

        monkeypatch.setenv("STRONGBOX_STORE", str(tmp_path / "env-store"))
        config = vault_routes.get_vault_config()
        assert config.storage_root == tmp_path / "env-store"
        assert vault_routes.get_vault_config() is config

    def test_set_vault_config(self, store):
        from strongbox.api import vault_routes

        vault_routes.set_vault_config(VaultConfig(storage_root=store))
        client = TestClient(app)
        client.put("/api/secrets/toad/", json=TOAD, auth=MASTER)
        assert (store / STATE_FILE_NAME).exists()


def test_health():
    resp = TestClient(app).get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}

