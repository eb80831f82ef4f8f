import pytest

from config import settings


@pytest.mark.asyncio
async def test_root_and_liveness(integration_client):
    root = await integration_client.get("/")
    assert root.json()["name"] == "Skillify API"

    live = await integration_client.get("/health/live")
    assert live.json() == {"alive": True}


@pytest.mark.asyncio
async def test_readiness_requires_youtube_key(integration_client, monkeypatch):
    monkeypatch.setattr(settings, "YOUTUBE_API_KEY", "")
    missing = await integration_client.get("/health/ready")
    assert missing.status_code == 503
    assert missing.json()["missing"] == ["YOUTUBE_API_KEY"]

    monkeypatch.setattr(settings, "YOUTUBE_API_KEY", "test-key")
    ready = await integration_client.get("/health/ready")
    assert ready.json() == {"ready": True}
