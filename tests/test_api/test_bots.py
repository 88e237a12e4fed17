"""Tests for bot and Discord helper API endpoints."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from npc_herald.api.main import app
from npc_herald.api.routes.bots import get_bot, get_store
from npc_herald.discord.discord_api import DiscordBotInfo
from npc_herald.discord.models import BotConfiguration, NPCProfile, RecentResponse
from npc_herald.discord.store import InMemoryCampaignStore


@pytest.fixture
def client():
    """Create test client."""
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def store():
    store = InMemoryCampaignStore()
    store.add_npc(NPCProfile(id="npc_grak", world_id="w1", name="Grak"))
    store.add_configuration(
        BotConfiguration(
            id="bot_1", world_id="w1", npc_id="npc_grak",
            server_id="1", channel_id="100", name="Forge",
        )
    )
    return store


class TestHealthEndpoints:
    """Test health check endpoints."""

    def test_root_endpoint(self, client):
        """Test root health check."""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "NPC Herald"

    def test_health_endpoint(self, client):
        """Test detailed health check."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["discord"] == "offline"


class TestBotEndpoints:
    """Test bot status and recent response endpoints."""

    def test_status_without_bot(self, client):
        app.dependency_overrides[get_bot] = lambda: None

        response = client.get("/api/bot/status")

        assert response.status_code == 200
        assert response.json()["ready"] is False

    def test_status_with_bot(self, client):
        bot = MagicMock()
        bot.status.return_value = {"ready": True, "user_id": "999"}
        app.dependency_overrides[get_bot] = lambda: bot

        response = client.get("/api/bot/status")

        assert response.json() == {"ready": True, "user_id": "999"}

    def test_recent_responses_unknown_bot(self, client, store):
        app.dependency_overrides[get_store] = lambda: store
        app.dependency_overrides[get_bot] = lambda: None

        response = client.get("/api/bots/missing/recent-responses")

        assert response.status_code == 404

    def test_recent_responses_bot_offline(self, client, store):
        app.dependency_overrides[get_store] = lambda: store
        app.dependency_overrides[get_bot] = lambda: None

        response = client.get("/api/bots/bot_1/recent-responses")

        assert response.status_code == 200
        assert response.json() == []

    def test_recent_responses(self, client, store):
        """Test replies are read through the running bot's client."""
        bot = MagicMock()
        bot.ready = True
        app.dependency_overrides[get_store] = lambda: store
        app.dependency_overrides[get_bot] = lambda: bot
        reply = RecentResponse(
            content="Hmph.",
            npc_id="npc_grak",
            npc_name="Grak",
            channel_id="100",
            created_at="2024-05-01T12:00:00Z",
        )
        fetch = AsyncMock(return_value=[reply])

        with patch("npc_herald.api.routes.bots.fetch_recent_webhook_messages", fetch):
            response = client.get("/api/bots/bot_1/recent-responses?limit=5")

        assert response.status_code == 200
        assert response.json()[0]["npc_name"] == "Grak"
        assert fetch.call_args.args[0] is bot.client
        assert fetch.call_args.kwargs["limit"] == 5

    def test_recent_responses_limit_bounds(self, client, store):
        app.dependency_overrides[get_store] = lambda: store
        app.dependency_overrides[get_bot] = lambda: None

        assert client.get("/api/bots/bot_1/recent-responses?limit=0").status_code == 422
        assert client.get("/api/bots/bot_1/recent-responses?limit=51").status_code == 422

    def test_store_missing(self, client):
        """Test requests before startup report the store as unavailable."""
        app.dependency_overrides[get_bot] = lambda: None

        response = client.get("/api/bots/bot_1/recent-responses")

        assert response.status_code == 503


class TestDiscordTools:
    """Test token and invite endpoints."""

    def test_invite_url(self, client):
        response = client.get("/api/discord/invite-url", params={"client_id": "123"})

        assert response.status_code == 200
        assert "client_id=123" in response.json()["invite_url"]

    def test_invite_url_rejects_non_numeric(self, client):
        response = client.get("/api/discord/invite-url", params={"client_id": "abc"})
        assert response.status_code == 400

    def test_validate_token(self, client):
        info = DiscordBotInfo(id="42", username="Herald")
        with (
            patch("npc_herald.discord.discord_api.get_bot_info", AsyncMock(return_value=info)),
            patch("npc_herald.discord.discord_api.get_client_id", AsyncMock(return_value="42")),
        ):
            response = client.post("/api/discord/validate-token", json={"token": " tok "})

        data = response.json()
        assert data["valid"] is True
        assert data["bot"]["username"] == "Herald"
        assert data["client_id"] == "42"
        assert data["invite_url"].startswith("https://discord.com/api/oauth2/authorize?client_id=42")

    def test_validate_invalid_token(self, client):
        with patch("npc_herald.discord.discord_api.get_bot_info", AsyncMock(return_value=None)):
            response = client.post("/api/discord/validate-token", json={"token": "bad"})

        assert response.json() == {
            "valid": False,
            "bot": None,
            "client_id": None,
            "invite_url": None,
        }

    def test_validate_empty_token(self, client):
        response = client.post("/api/discord/validate-token", json={"token": ""})
        assert response.status_code == 422
