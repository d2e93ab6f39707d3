"""
测试 /webhook, /api/aggregate, /api/health 端点
"""
import json
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from subscribe_board.api.lifespan import build_runtime
from subscribe_board.api_server import create_app
from subscribe_board.board.aggregator import AggregateRequest
from subscribe_board.core.config import Config, parse_env_config
from subscribe_board.errors import ConfigurationError
from subscribe_board.utils.time_utils import format_date_key

TOKEN = "s3cret"
CHAT = "-100"
COVER = "https://image.tmdb.org/t/p/w500/cover.jpg"

REMINDER = {"data": {"title": "电视剧更新", "text": "📺 Show A (2024) S01E01-E04", "image": COVER}}


def make_env(**overrides):
    values = {"WEBHOOK_TOKEN": TOKEN, "BOT_TOKEN": "123:abc", "CHAT_ID": CHAT, "ADOPT_PINNED": "0"}
    values.update(overrides)
    return parse_env_config(values)

def today():
    return format_date_key(datetime.now(timezone.utc), "Asia/Shanghai")


@pytest.fixture
def api(fake_client, memory_store):
    app = create_app(env=make_env(), config=Config(), client=fake_client, store=memory_store)
    with TestClient(app) as client:
        yield client


def test_health(api):
    response = api.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "OK"
    assert data["service"] == "subscribe-board"
    assert data["configured"] is True
    assert data["time_zone"] == "Asia/Shanghai"
    assert data["active_lanes"] == []

def test_ping(api):
    response = api.get("/webhook", params={"token": TOKEN})

    assert response.status_code == 200
    assert response.text == "Worker OK"

@pytest.mark.parametrize("params", [{}, {"token": "wrong"}, {"token": ""}])
def test_unauthorized(api, params):
    assert api.get("/webhook", params=params).status_code == 401
    assert api.post("/webhook", params=params, json=REMINDER).status_code == 401
    assert api.post("/api/aggregate", params=params, json={}).status_code == 401

def test_method_not_allowed(api):
    assert api.put("/webhook", params={"token": TOKEN}).status_code == 405
    assert api.delete("/webhook", params={"token": TOKEN}).status_code == 405

def test_start_download_is_skipped(api, fake_client):
    payload = {"data": {"title": "开始下载", "text": "Show A (2024) S01E05"}}

    response = api.post("/webhook", params={"token": TOKEN}, json=payload)

    assert response.status_code == 200
    assert response.json() == {"success": True, "result": "Skipped: Start download (ignored)"}
    assert fake_client.calls == []

def test_reminder_without_valid_items_is_skipped(api):
    payload = {"data": {"title": "电视剧更新", "text": "📺 something unparseable"}}

    response = api.post("/webhook", params={"token": TOKEN}, json=payload)

    assert response.json() == {"success": True, "result": "Skipped: No valid items (subscribe)"}

def test_reminder_publishes_dashboard(api, fake_client, memory_store):
    response = api.post("/webhook", params={"token": TOKEN}, json=REMINDER)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["result"]["skipped"] is False
    assert body["result"]["dateKey"] == today()
    assert body["result"]["action"]["type"] == "sendPhoto"
    assert fake_client.last("sendPhoto")["photo"] == COVER
    assert json.loads(memory_store.blobs[CHAT])["dayImage"] == COVER

def test_library_event_does_not_forward_image(api, fake_client, memory_store):
    api.post("/webhook", params={"token": TOKEN}, json={"data": {"title": "电视剧更新", "text": "📺 Show A (2024) S01E01-E04"}})
    library = {"data": {"title": "已入库", "text": "Show A (2024) S01E02 已入库", "image": COVER}}

    response = api.post("/webhook", params={"token": TOKEN}, json=library)

    state = json.loads(memory_store.blobs[CHAT])
    assert response.json()["result"]["action"]["type"] == "editMessageText"
    assert state["dayImage"] == ""
    assert state["content"][0]["done"] == [2]
    assert "E01-E04 (1/4) ✅" in fake_client.last("editMessageText")["text"]

def test_invalid_json_body(api):
    response = api.post(
        "/webhook",
        params={"token": TOKEN},
        content=b"{not json",
        headers={"content-type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["success"] is False

def test_telegram_failure_is_500(api, fake_client):
    fake_client.fail("sendPhoto", "Bad Request: chat not found", "Bad Request: chat not found", "Bad Request: chat not found")

    response = api.post("/webhook", params={"token": TOKEN}, json=REMINDER)

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Bad Request: chat not found"}

def test_aggregate_endpoint(api, fake_client):
    payload = {
        "dateKey": "2025-01-06",
        "event": "subscribe",
        "items": [{"title": "Show A", "year": "2024", "season": "S01", "epFrom": 1, "epTo": 2, "epFromStr": "01", "epToStr": "02"}],
        "image": "",
    }

    response = api.post("/api/aggregate", params={"token": TOKEN}, json=payload)

    assert response.status_code == 200
    assert response.json()["action"]["type"] == "sendMessage"
    assert "🗓 2025-01-06" in fake_client.last("sendMessage")["text"]

def test_aggregate_rejects_malformed_body(api):
    response = api.post("/api/aggregate", params={"token": TOKEN}, json={"event": "subscribe"})

    assert response.status_code == 400
    assert response.json()["success"] is False

def test_missing_bot_configuration(memory_store):
    app = create_app(env=make_env(BOT_TOKEN="", CHAT_ID=""), config=Config(), store=memory_store)

    with TestClient(app) as client:
        response = client.post("/webhook", params={"token": TOKEN}, json=REMINDER)

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Missing Env Vars: BOT_TOKEN / CHAT_ID"}
    assert memory_store.blobs == {}

@pytest.mark.asyncio
async def test_unconfigured_worker_rejects_queued_events(memory_store):
    runtime = build_runtime(make_env(BOT_TOKEN="", CHAT_ID=""), Config(), store=memory_store)
    request = AggregateRequest(dateKey=today(), items=[])

    try:
        with pytest.raises(ConfigurationError, match="Missing Env Vars"):
            await runtime.worker.submit("chat", request)
    finally:
        await runtime.aclose()

    assert memory_store.blobs == {}
