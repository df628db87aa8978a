"""Tests for the auth module: tokens, dev mode bypass, and mounted users end to end."""

from nodetree.core.token_factory import create_token, decode_token
from nodetree.core.config import settings
from tests.conftest import make_node, make_scenario_tree, make_user_headers

SESSION = {"x-session-id": "auth-session-1"}


class TestTokenFactory:

    def test_create_and_decode(self):
        token = create_token("editor", "test-secret")
        payload = decode_token(token, "test-secret")
        assert payload is not None
        assert payload.sub == "editor"

    def test_wrong_secret_returns_none(self):
        token = create_token("editor", "correct-secret")
        assert decode_token(token, "wrong-secret") is None

    def test_expired_token_returns_none(self):
        token = create_token("editor", "secret", expires_hours=-1)
        assert decode_token(token, "secret") is None

    def test_malformed_token_returns_none(self):
        assert decode_token("not.a.token", "secret") is None
        assert decode_token("", "secret") is None


class TestAuthDisabledMode:

    def test_write_without_token_succeeds(self, client):
        resp = client.post("/api/nodes", json={"name": "No Auth"})
        assert resp.status_code == 201


class TestAuthEnabled:

    def test_missing_token_is_401(self, client, auth_enabled):
        resp = client.get("/api/navigation")
        assert resp.status_code == 401
        assert resp.json()["error"] == "UNAUTHORIZED"

    def test_unknown_user_is_401(self, client, auth_enabled):
        token = create_token("ghost", settings.jwt_secret_key)
        resp = client.get("/api/navigation", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_node_outside_mount_is_denied(self, client, db, auth_enabled):
        make_scenario_tree(db)
        make_node(db, 7)
        headers = make_user_headers(db, permissions=["edit"], mounts=[1])

        assert client.get("/api/nodes/2", headers=headers).status_code == 200
        resp = client.get("/api/nodes/7", headers=headers)
        assert resp.status_code == 403
        assert resp.json()["error"] == "ACCESS_DENIED"

    def test_mounted_user_scenario(self, client, db, auth_enabled):
        make_scenario_tree(db)
        headers = {**make_user_headers(db, permissions=["create", "edit", "delete"], mounts=[1]), **SESSION}

        data = client.get("/api/nodes/view?nn=2&clipboard_mode=cut&clipboard_ids=1", headers=headers).json()

        assert [e["label"] for e in data["breadcrumb"]["entries"]] == ["All nodes", "A", "B"]
        b = data["tree"][0]
        assert b["id"] == 2
        assert b["buttons"]["paste_into"] is False
        assert b["buttons"]["delete"] is True

        client.delete("/api/navigation", headers=headers)
        data = client.get("/api/nodes/view", headers=headers).json()
        a = data["tree"][0]
        assert a["id"] == 1
        assert a["buttons"]["delete"] is False
        assert a["children"][0]["buttons"]["delete"] is True
        assert data["policy"]["root_ids"] == [1]
        assert data["policy"]["root_paste"] is False

    def test_not_mounted_path_is_denied_and_reset(self, client, db, auth_enabled):
        make_scenario_tree(db)
        make_node(db, 7)
        headers = {**make_user_headers(db, permissions=["edit"], mounts=[7]), **SESSION}

        resp = client.get("/api/nodes/view?nn=2", headers=headers)
        assert resp.status_code == 403
        assert resp.json()["error"] == "NOT_MOUNTED"

        assert client.get("/api/navigation", headers=headers).json()["status"] == "unset"

    def test_bulk_selection_is_scrubbed(self, client, db, auth_enabled):
        make_node(db, 1)
        make_node(db, 2, pid=1)
        make_node(db, 3, pid=1)
        make_node(db, 7)
        headers = {**make_user_headers(db, permissions=["edit"], mounts=[1]), **SESSION}

        resp = client.put("/api/nodes/selection", json={"ids": [1, 2, 3, 7]}, headers=headers)

        assert resp.json()["ids"] == [1, 2, 3]

    def test_created_node_can_be_edited_in_the_same_session(self, client, db, auth_enabled):
        make_node(db, 1)
        headers = {**make_user_headers(db, permissions=["create", "edit", "root"], mounts=[1]), **SESSION}

        node_id = client.post("/api/nodes", json={"name": "Mine"}, headers=headers).json()["id"]
        resp = client.put(f"/api/nodes/{node_id}", json={"name": "Still mine"}, headers=headers)

        assert resp.status_code == 200

        other = {**headers, "x-session-id": "auth-session-2"}
        assert client.put(f"/api/nodes/{node_id}", json={"name": "x"}, headers=other).status_code == 403
