"""Tests for the lobby HTTP API."""

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import update
from sqlalchemy.exc import OperationalError

from lobbyhub.db.models import Base
from lobbyhub.db.models import Lobby as LobbyModel
from lobbyhub.main import create_app
from lobbyhub.settings import Settings


def identity(username: str, user_id: uuid.UUID | None = None) -> dict[str, str]:
    """Build gateway identity headers."""
    return {"X-User-ID": str(user_id or uuid.uuid4()), "X-Username": username}


async def create_lobby(client: AsyncClient, headers: dict[str, str]) -> dict:
    response = await client.post("/api/lobbies", headers=headers)
    assert response.status_code == 201
    return response.json()


def assert_error(response, status_code: int, code: str) -> None:
    assert response.status_code == status_code
    body = response.json()
    assert body["error"] == code
    assert isinstance(body["message"], str) and body["message"]


class TestCreateLobby:
    """Tests for POST /api/lobbies."""

    @pytest.mark.asyncio
    async def test_create(self, client: AsyncClient):
        alice = identity("Alice")

        data = await create_lobby(client, alice)

        assert len(data["joinCode"]) == 6
        assert data["leaderId"] == alice["X-User-ID"]
        assert data["status"] == "waiting"
        assert len(data["players"]) == 1
        player = data["players"][0]
        assert player["userId"] == alice["X-User-ID"]
        assert player["displayName"] == "Alice"
        assert player["isActive"] is True
        assert player["leftAt"] is None
        assert "membershipId" in player
        assert "joinedAt" in player

    @pytest.mark.asyncio
    async def test_missing_identity(self, client: AsyncClient):
        response = await client.post("/api/lobbies")
        assert_error(response, 401, "unauthorized")

        response = await client.post("/api/lobbies", headers={"X-User-ID": str(uuid.uuid4())})
        assert_error(response, 401, "unauthorized")

    @pytest.mark.asyncio
    async def test_malformed_user_id(self, client: AsyncClient):
        response = await client.post(
            "/api/lobbies", headers={"X-User-ID": "not-a-uuid", "X-Username": "Alice"}
        )
        assert_error(response, 400, "bad_request")

    @pytest.mark.asyncio
    async def test_username_too_long(self, client: AsyncClient):
        response = await client.post("/api/lobbies", headers=identity("x" * 21))
        assert_error(response, 400, "bad_request")

    @pytest.mark.asyncio
    async def test_database_failure_is_opaque(
        self, app: FastAPI, client: AsyncClient, monkeypatch: pytest.MonkeyPatch
    ):
        failure = OperationalError("INSERT INTO users", {}, Exception("connection refused"))
        monkeypatch.setattr(
            app.state.coordinator, "create_lobby", AsyncMock(side_effect=failure)
        )

        response = await client.post("/api/lobbies", headers=identity("Alice"))

        assert response.status_code == 500
        assert response.json() == {"error": "internal_error", "message": "Internal server error"}

    @pytest.mark.asyncio
    async def test_timeout_is_opaque(
        self, app: FastAPI, client: AsyncClient, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setattr(
            app.state.coordinator, "create_lobby", AsyncMock(side_effect=TimeoutError())
        )

        response = await client.post("/api/lobbies", headers=identity("Alice"))

        assert response.status_code == 500
        assert response.json()["error"] == "internal_error"


class TestJoinLobby:
    """Tests for POST /api/lobbies/join."""

    @pytest.mark.asyncio
    async def test_join(self, client: AsyncClient):
        created = await create_lobby(client, identity("Alice"))
        bob = identity("Bob")

        response = await client.post(
            "/api/lobbies/join", json={"joinCode": created["joinCode"].lower()}, headers=bob
        )

        assert response.status_code == 200
        data = response.json()
        assert data["lobbyId"] == created["lobbyId"]
        assert [p["displayName"] for p in data["players"]] == ["Alice", "Bob"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("join_code", ["ABC", "ABCDEFG", "\u00dfABCD"])
    async def test_invalid_code(self, client: AsyncClient, join_code: str):
        response = await client.post(
            "/api/lobbies/join", json={"joinCode": join_code}, headers=identity("Bob")
        )
        assert_error(response, 400, "bad_request")

    @pytest.mark.asyncio
    async def test_missing_body(self, client: AsyncClient):
        response = await client.post("/api/lobbies/join", json={}, headers=identity("Bob"))
        assert_error(response, 400, "bad_request")

    @pytest.mark.asyncio
    async def test_unknown_code(self, client: AsyncClient):
        response = await client.post(
            "/api/lobbies/join", json={"joinCode": "ZZZZZZ"}, headers=identity("Bob")
        )
        assert_error(response, 404, "not_found")

    @pytest.mark.asyncio
    async def test_already_in_lobby(self, client: AsyncClient):
        alice = identity("Alice")
        created = await create_lobby(client, alice)

        response = await client.post(
            "/api/lobbies/join", json={"joinCode": created["joinCode"]}, headers=alice
        )
        assert_error(response, 409, "already_in_lobby")

    @pytest.mark.asyncio
    async def test_lobby_full(self, client: AsyncClient):
        created = await create_lobby(client, identity("Leader"))
        for i in range(5):
            response = await client.post(
                "/api/lobbies/join",
                json={"joinCode": created["joinCode"]},
                headers=identity(f"Player{i}"),
            )
            assert response.status_code == 200

        response = await client.post(
            "/api/lobbies/join", json={"joinCode": created["joinCode"]}, headers=identity("Late")
        )
        assert_error(response, 409, "lobby_full")

    @pytest.mark.asyncio
    async def test_not_joinable(self, app: FastAPI, client: AsyncClient):
        created = await create_lobby(client, identity("Alice"))
        async with app.state.engine.begin() as conn:
            await conn.execute(
                update(LobbyModel)
                .where(LobbyModel.id == uuid.UUID(created["lobbyId"]))
                .values(status="in_game")
            )

        response = await client.post(
            "/api/lobbies/join", json={"joinCode": created["joinCode"]}, headers=identity("Bob")
        )
        assert_error(response, 409, "lobby_not_joinable")


class TestGetLobby:
    """Tests for GET /api/lobbies/{lobby_id}."""

    @pytest.mark.asyncio
    async def test_member_reads(self, client: AsyncClient):
        alice = identity("Alice")
        created = await create_lobby(client, alice)

        response = await client.get(f"/api/lobbies/{created['lobbyId']}", headers=alice)

        assert response.status_code == 200
        assert response.json()["joinCode"] == created["joinCode"]

    @pytest.mark.asyncio
    async def test_stranger_forbidden(self, client: AsyncClient):
        created = await create_lobby(client, identity("Alice"))

        response = await client.get(f"/api/lobbies/{created['lobbyId']}", headers=identity("Eve"))
        assert_error(response, 403, "forbidden")

    @pytest.mark.asyncio
    async def test_not_found(self, client: AsyncClient):
        response = await client.get(f"/api/lobbies/{uuid.uuid4()}", headers=identity("Alice"))
        assert_error(response, 404, "not_found")

    @pytest.mark.asyncio
    async def test_malformed_lobby_id(self, client: AsyncClient):
        response = await client.get("/api/lobbies/not-a-uuid", headers=identity("Alice"))
        assert_error(response, 400, "bad_request")


class TestKickPlayer:
    """Tests for POST /api/lobbies/{lobby_id}/kick."""

    @pytest.mark.asyncio
    async def test_scenario(self, client: AsyncClient):
        alice, bob = identity("Alice"), identity("Bob")
        created = await create_lobby(client, alice)
        lobby_url = f"/api/lobbies/{created['lobbyId']}"
        await client.post("/api/lobbies/join", json={"joinCode": created["joinCode"]}, headers=bob)

        response = await client.post(
            f"{lobby_url}/kick", json={"targetUserId": alice["X-User-ID"]}, headers=bob
        )
        assert_error(response, 403, "forbidden")

        response = await client.post(
            f"{lobby_url}/kick", json={"targetUserId": alice["X-User-ID"]}, headers=alice
        )
        assert_error(response, 400, "cannot_kick_self")

        response = await client.post(
            f"{lobby_url}/kick", json={"targetUserId": bob["X-User-ID"]}, headers=alice
        )
        assert response.status_code == 204
        assert response.content == b""

        response = await client.post(
            f"{lobby_url}/kick", json={"targetUserId": bob["X-User-ID"]}, headers=alice
        )
        assert_error(response, 404, "player_not_in_lobby")

        response = await client.post(
            f"{lobby_url}/kick", json={"targetUserId": alice["X-User-ID"]}, headers=bob
        )
        assert_error(response, 403, "forbidden")

        for reader in (alice, bob):
            response = await client.get(lobby_url, headers=reader)
            assert response.status_code == 200
            data = response.json()
            bob_row = next(p for p in data["players"] if p["userId"] == bob["X-User-ID"])
            assert bob_row["isActive"] is False
            assert bob_row["leftAt"] is not None
            assert data["leaderId"] == alice["X-User-ID"]

    @pytest.mark.asyncio
    async def test_lobby_not_found(self, client: AsyncClient):
        response = await client.post(
            f"/api/lobbies/{uuid.uuid4()}/kick",
            json={"targetUserId": str(uuid.uuid4())},
            headers=identity("Alice"),
        )
        assert_error(response, 404, "not_found")


class TestUpdatePlayerActiveStatus:
    """Tests for PATCH /api/internal/lobbies/{lobby_id}/players/{membership_id}."""

    @pytest.mark.asyncio
    async def test_deactivate(self, client: AsyncClient):
        alice, bob = identity("Alice"), identity("Bob")
        created = await create_lobby(client, alice)
        joined = (
            await client.post(
                "/api/lobbies/join", json={"joinCode": created["joinCode"]}, headers=bob
            )
        ).json()
        membership_id = joined["players"][1]["membershipId"]

        response = await client.patch(
            f"/api/internal/lobbies/{created['lobbyId']}/players/{membership_id}",
            json={"isActive": False},
        )
        assert response.status_code == 204

        data = (await client.get(f"/api/lobbies/{created['lobbyId']}", headers=alice)).json()
        assert data["players"][1]["isActive"] is False

        response = await client.patch(
            f"/api/internal/lobbies/{created['lobbyId']}/players/{membership_id}",
            json={"isActive": True},
        )
        assert_error(response, 404, "player_not_found")

    @pytest.mark.asyncio
    async def test_lobby_not_found(self, client: AsyncClient):
        response = await client.patch(
            f"/api/internal/lobbies/{uuid.uuid4()}/players/{uuid.uuid4()}",
            json={"isActive": False},
        )
        assert_error(response, 404, "not_found")


class TestRateLimiting:
    """Tests for rate limits on lobby creation and joining."""

    @pytest.fixture
    async def make_limited_client(self, tmp_path: Path):
        """Factory for clients on fresh rate-limited apps, each with its own database."""
        apps: list[FastAPI] = []

        @asynccontextmanager
        async def _make(name: str) -> AsyncIterator[AsyncClient]:
            settings = Settings(
                _env_file=None,
                database_url=f"sqlite+aiosqlite:///{tmp_path / f'{name}.db'}",
                rate_limiting_enabled=True,
            )
            app = create_app(settings)
            apps.append(app)
            async with app.state.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                yield client

        yield _make

        for app in apps:
            await app.state.engine.dispose()

    @pytest.mark.asyncio
    async def test_create_is_limited(self, make_limited_client):
        headers = identity("Alice")
        async with make_limited_client("limited") as client:
            for _ in range(10):
                response = await client.post("/api/lobbies", headers=headers)
                assert response.status_code == 201

            response = await client.post("/api/lobbies", headers=headers)
            assert_error(response, 429, "rate_limited")

    @pytest.mark.asyncio
    async def test_limits_are_counted_per_route(self, make_limited_client):
        async with make_limited_client("limited") as client:
            created = await create_lobby(client, identity("Alice"))
            for _ in range(9):
                await create_lobby(client, identity("Alice"))

            response = await client.post(
                "/api/lobbies/join", json={"joinCode": created["joinCode"]}, headers=identity("Bob")
            )
            assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_apps_do_not_share_counters(self, make_limited_client):
        headers = identity("Alice")
        async with make_limited_client("first") as first:
            for _ in range(10):
                await create_lobby(first, headers)
            response = await first.post("/api/lobbies", headers=headers)
            assert_error(response, 429, "rate_limited")

        async with make_limited_client("second") as second:
            response = await second.post("/api/lobbies", headers=headers)
            assert response.status_code == 201
