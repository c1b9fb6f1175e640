"""
NoteTree Backend: API Integration Tests
=========================================

What:  End-to-end tests of every HTTP endpoint.
How:   HTTPX AsyncClient over ASGITransport against a fresh app whose
       database is in-memory SQLite (see conftest.test_client).

What we test:
    ✅ Health endpoint and X-Request-ID propagation
    ✅ User registration, lookup, login, update and deletion
    ✅ Note creation, threads, replies, update and deletion
    ✅ Error bodies: status, error code, message and request_id
    ✅ Out-of-range ids are rejected as validation errors
"""

import pytest


# ══════════════════════════════════════════════════════════════════════════
# Health & plumbing
# ══════════════════════════════════════════════════════════════════════════

class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert "version" in body

    @pytest.mark.asyncio
    async def test_request_id_is_generated(self, test_client):
        response = await test_client.get("/health")

        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, test_client):
        response = await test_client.get("/api/notes/999", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"
        assert response.json()["request_id"] == "abc123"


# ══════════════════════════════════════════════════════════════════════════
# Users
# ══════════════════════════════════════════════════════════════════════════

class TestUsersAPI:

    @pytest.mark.asyncio
    async def test_register_returns_public_fields(self, test_client):
        response = await test_client.post(
            "/api/users", json={"username": "alice", "password": "pw"}
        )

        assert response.status_code == 201
        body = response.json()
        assert set(body) == {"id", "username", "createdAt", "updatedAt"}
        assert body["username"] == "alice"

    @pytest.mark.asyncio
    async def test_register_duplicate(self, test_client, signup):
        await signup("alice")

        response = await test_client.post(
            "/api/users", json={"username": "alice", "password": "other"}
        )

        assert response.status_code == 409
        assert response.json()["error"] == "duplicate_username"
        assert response.json()["message"] == "Username already exists"

    @pytest.mark.asyncio
    async def test_register_missing_password(self, test_client):
        response = await test_client.post("/api/users", json={"username": "alice"})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_list_users_never_exposes_passwords(self, test_client, signup):
        alice = await signup("alice")
        await test_client.post("/api/notes", json={"titre": "hi"}, headers=alice["headers"])

        response = await test_client.get("/api/users")

        assert response.status_code == 200
        users = response.json()
        assert len(users) == 1
        assert "password" not in users[0]
        assert [n["titre"] for n in users[0]["notes"]] == ["hi"]
        assert users[0]["notes"][0]["userId"] == alice["user"]["id"]

    @pytest.mark.asyncio
    async def test_get_user_by_id_and_username(self, test_client, signup):
        alice = await signup("alice")
        user_id = alice["user"]["id"]

        by_id = await test_client.get(f"/api/users/{user_id}")
        by_name = await test_client.get("/api/users/username/alice")

        assert by_id.status_code == 200
        assert by_name.status_code == 200
        assert by_id.json()["id"] == by_name.json()["id"] == user_id
        assert by_id.json()["notes"] == []

    @pytest.mark.asyncio
    async def test_get_user_not_found(self, test_client):
        response = await test_client.get("/api/users/12345")

        assert response.status_code == 404
        assert response.json() == {
            "error": "not_found",
            "message": "User not found",
            "request_id": response.headers["X-Request-ID"],
        }

    @pytest.mark.asyncio
    async def test_get_user_non_numeric_id(self, test_client):
        response = await test_client.get("/api/users/abc")

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_login(self, test_client, signup):
        await signup("alice", "pw")

        response = await test_client.post(
            "/api/users/login", json={"username": "alice", "password": "pw"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["username"] == "alice"
        assert body["token"].count(".") == 2

    @pytest.mark.asyncio
    async def test_login_failures_look_the_same(self, test_client, signup):
        await signup("alice", "pw")

        wrong = await test_client.post(
            "/api/users/login", json={"username": "alice", "password": "bad"}
        )
        unknown = await test_client.post(
            "/api/users/login", json={"username": "nobody", "password": "bad"}
        )

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json()["message"] == unknown.json()["message"] == "Invalid username or password"

    @pytest.mark.asyncio
    async def test_update_self(self, test_client, signup):
        alice = await signup("alice", "pw")

        response = await test_client.put(
            f"/api/users/{alice['user']['id']}",
            json={"username": "alicia", "password": "pw2"},
            headers=alice["headers"],
        )

        assert response.status_code == 200
        assert response.json()["username"] == "alicia"
        login = await test_client.post(
            "/api/users/login", json={"username": "alicia", "password": "pw2"}
        )
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_update_someone_else(self, test_client, signup):
        alice = await signup("alice")
        bob = await signup("bob")

        response = await test_client.put(
            f"/api/users/{alice['user']['id']}",
            json={"username": "pwned"},
            headers=bob["headers"],
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Access denied: you can only modify your own account"

    @pytest.mark.asyncio
    async def test_update_requires_token(self, test_client, signup):
        alice = await signup("alice")

        response = await test_client.put(
            f"/api/users/{alice['user']['id']}", json={"username": "x"}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_update_to_taken_username(self, test_client, signup):
        await signup("alice")
        bob = await signup("bob")

        response = await test_client.put(
            f"/api/users/{bob['user']['id']}",
            json={"username": "alice"},
            headers=bob["headers"],
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_delete_self_cascades_to_notes(self, test_client, signup):
        alice = await signup("alice")
        bob = await signup("bob")
        root = await test_client.post(
            "/api/notes", json={"titre": "alice's"}, headers=alice["headers"]
        )
        await test_client.post(
            "/api/notes",
            json={"titre": "bob replies", "parentId": root.json()["id"]},
            headers=bob["headers"],
        )

        response = await test_client.delete(
            f"/api/users/{alice['user']['id']}", headers=alice["headers"]
        )

        assert response.status_code == 200
        assert response.json()["username"] == "alice"
        assert (await test_client.get(f"/api/users/{alice['user']['id']}")).status_code == 404
        assert (await test_client.get("/api/notes")).json() == []
        bob_now = await test_client.get(f"/api/users/{bob['user']['id']}")
        assert bob_now.json()["notes"] == []

    @pytest.mark.asyncio
    async def test_delete_someone_else(self, test_client, signup):
        alice = await signup("alice")
        bob = await signup("bob")

        response = await test_client.delete(
            f"/api/users/{alice['user']['id']}", headers=bob["headers"]
        )

        assert response.status_code == 403
        assert (await test_client.get(f"/api/users/{alice['user']['id']}")).status_code == 200


# ══════════════════════════════════════════════════════════════════════════
# Notes
# ══════════════════════════════════════════════════════════════════════════

class TestNotesAPI:

    @pytest.mark.asyncio
    async def test_create_root_note(self, test_client, signup):
        alice = await signup("alice")

        response = await test_client.post(
            "/api/notes",
            json={"titre": "Groceries", "contenu": "milk"},
            headers=alice["headers"],
        )

        assert response.status_code == 201
        body = response.json()
        assert body["titre"] == "Groceries"
        assert body["userId"] == alice["user"]["id"]
        assert body["parentId"] is None
        assert body["parent"] is None
        assert body["user"]["username"] == "alice"
        assert "password" not in body["user"]

    @pytest.mark.asyncio
    async def test_owner_comes_from_token(self, test_client, signup):
        alice = await signup("alice")
        bob = await signup("bob")

        response = await test_client.post(
            "/api/notes",
            json={"titre": "sneaky", "userId": bob["user"]["id"]},
            headers=alice["headers"],
        )

        assert response.json()["userId"] == alice["user"]["id"]

    @pytest.mark.asyncio
    async def test_create_requires_titre(self, test_client, signup):
        alice = await signup("alice")

        response = await test_client.post(
            "/api/notes", json={"contenu": "no title"}, headers=alice["headers"]
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_reply_to_unknown_parent(self, test_client, signup):
        alice = await signup("alice")

        response = await test_client.post(
            "/api/notes", json={"titre": "r", "parentId": 999}, headers=alice["headers"]
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Parent note not found"

    @pytest.mark.asyncio
    async def test_thread_listing(self, test_client, signup):
        alice = await signup("alice")
        bob = await signup("bob")
        older = await test_client.post("/api/notes", json={"titre": "older"}, headers=alice["headers"])
        newer = await test_client.post("/api/notes", json={"titre": "newer"}, headers=bob["headers"])
        reply = await test_client.post(
            "/api/notes",
            json={"titre": "re: older", "parentId": older.json()["id"]},
            headers=bob["headers"],
        )

        response = await test_client.get("/api/notes")

        assert response.status_code == 200
        roots = response.json()
        assert [n["id"] for n in roots] == [newer.json()["id"], older.json()["id"]]
        assert [r["id"] for r in roots[1]["replies"]] == [reply.json()["id"]]
        assert roots[1]["replies"][0]["user"]["username"] == "bob"

    @pytest.mark.asyncio
    async def test_get_note_detail(self, test_client, signup):
        alice = await signup("alice")
        root = await test_client.post("/api/notes", json={"titre": "root"}, headers=alice["headers"])
        reply = await test_client.post(
            "/api/notes",
            json={"titre": "reply", "parentId": root.json()["id"]},
            headers=alice["headers"],
        )

        response = await test_client.get(f"/api/notes/{reply.json()['id']}")

        assert response.status_code == 200
        body = response.json()
        assert body["parent"]["id"] == root.json()["id"]
        assert body["parent"]["user"]["username"] == "alice"
        assert body["replies"] == []

    @pytest.mark.asyncio
    async def test_get_note_errors(self, test_client):
        missing = await test_client.get("/api/notes/424242")
        bad_id = await test_client.get("/api/notes/not-a-number")

        assert missing.status_code == 404
        assert missing.json()["message"] == "Note not found"
        assert bad_id.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", [
        "/api/notes/99999999999999999999",
        "/api/notes/2147483648",
        "/api/notes/0",
        "/api/notes/99999999999999999999/replies",
        "/api/notes/user/99999999999999999999",
        "/api/users/99999999999999999999",
        "/api/users/-1",
    ])
    async def test_out_of_range_ids_are_rejected(self, test_client, path):
        response = await test_client.get(path)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_out_of_range_mutation_ids(self, test_client, signup):
        alice = await signup("alice")
        huge = "99999999999999999999"

        put_note = await test_client.put(
            f"/api/notes/{huge}", json={"titre": "x"}, headers=alice["headers"]
        )
        delete_note = await test_client.delete(f"/api/notes/{huge}", headers=alice["headers"])
        put_user = await test_client.put(
            f"/api/users/{huge}", json={"username": "x"}, headers=alice["headers"]
        )
        delete_user = await test_client.delete(f"/api/users/{huge}", headers=alice["headers"])

        for response in (put_note, delete_note, put_user, delete_user):
            assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("parent_id", [99999999999999999999, 0, -5])
    async def test_reply_with_out_of_range_parent(self, test_client, signup, parent_id):
        alice = await signup("alice")

        response = await test_client.post(
            "/api/notes", json={"titre": "r", "parentId": parent_id}, headers=alice["headers"]
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert (await test_client.get("/api/notes")).json() == []

    @pytest.mark.asyncio
    async def test_token_of_deleted_account_cannot_post(self, test_client, signup):
        alice = await signup("alice")
        deleted = await test_client.delete(
            f"/api/users/{alice['user']['id']}", headers=alice["headers"]
        )
        assert deleted.status_code == 200

        response = await test_client.post(
            "/api/notes", json={"titre": "from beyond"}, headers=alice["headers"]
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired token"
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert (await test_client.get("/api/notes")).json() == []

    @pytest.mark.asyncio
    async def test_notes_of_user(self, test_client, signup):
        alice = await signup("alice")
        bob = await signup("bob")
        mine = await test_client.post("/api/notes", json={"titre": "mine"}, headers=alice["headers"])
        await test_client.post("/api/notes", json={"titre": "theirs"}, headers=bob["headers"])

        response = await test_client.get(f"/api/notes/user/{alice['user']['id']}")

        assert response.status_code == 200
        assert [n["id"] for n in response.json()] == [mine.json()["id"]]

    @pytest.mark.asyncio
    async def test_replies_endpoint(self, test_client, signup):
        alice = await signup("alice")
        root = await test_client.post("/api/notes", json={"titre": "root"}, headers=alice["headers"])
        root_id = root.json()["id"]
        first = await test_client.post(
            "/api/notes", json={"titre": "1", "parentId": root_id}, headers=alice["headers"]
        )
        second = await test_client.post(
            "/api/notes", json={"titre": "2", "parentId": root_id}, headers=alice["headers"]
        )

        response = await test_client.get(f"/api/notes/{root_id}/replies")

        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == [first.json()["id"], second.json()["id"]]
        assert (await test_client.get("/api/notes/999/replies")).json() == []

    @pytest.mark.asyncio
    async def test_update_own_note(self, test_client, signup):
        alice = await signup("alice")
        note = await test_client.post(
            "/api/notes", json={"titre": "old", "contenu": "body"}, headers=alice["headers"]
        )

        response = await test_client.put(
            f"/api/notes/{note.json()['id']}",
            json={"titre": "new"},
            headers=alice["headers"],
        )

        assert response.status_code == 200
        assert response.json()["titre"] == "new"
        assert response.json()["contenu"] == "body"
        assert response.json()["user"]["username"] == "alice"

    @pytest.mark.asyncio
    async def test_update_someone_elses_note(self, test_client, signup):
        alice = await signup("alice")
        bob = await signup("bob")
        note = await test_client.post("/api/notes", json={"titre": "mine"}, headers=alice["headers"])

        response = await test_client.put(
            f"/api/notes/{note.json()['id']}",
            json={"titre": "pwned"},
            headers=bob["headers"],
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Access denied: you can only modify your own notes"

    @pytest.mark.asyncio
    async def test_update_missing_note(self, test_client, signup):
        alice = await signup("alice")

        response = await test_client.put(
            "/api/notes/999", json={"titre": "x"}, headers=alice["headers"]
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_note_and_subtree(self, test_client, signup):
        alice = await signup("alice")
        bob = await signup("bob")
        root = await test_client.post("/api/notes", json={"titre": "root"}, headers=alice["headers"])
        root_id = root.json()["id"]
        reply = await test_client.post(
            "/api/notes", json={"titre": "reply", "parentId": root_id}, headers=bob["headers"]
        )

        response = await test_client.delete(f"/api/notes/{root_id}", headers=alice["headers"])

        assert response.status_code == 200
        assert response.json()["id"] == root_id
        assert (await test_client.get(f"/api/notes/{root_id}")).status_code == 404
        assert (await test_client.get(f"/api/notes/{reply.json()['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_requires_ownership(self, test_client, signup):
        alice = await signup("alice")
        bob = await signup("bob")
        note = await test_client.post("/api/notes", json={"titre": "mine"}, headers=alice["headers"])

        forbidden = await test_client.delete(
            f"/api/notes/{note.json()['id']}", headers=bob["headers"]
        )
        anonymous = await test_client.delete(f"/api/notes/{note.json()['id']}")

        assert forbidden.status_code == 403
        assert forbidden.json()["message"] == "Access denied: you can only delete your own notes"
        assert anonymous.status_code == 401
        assert (await test_client.get(f"/api/notes/{note.json()['id']}")).status_code == 200
