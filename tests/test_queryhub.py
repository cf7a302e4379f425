import json

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from starlette.websockets import WebSocketDisconnect

from app.core.config import get_settings
from app.main import app
from app.nl2sql.orchestrator import STATUS_EXECUTING, error_text
from app.nl2sql.hub import STATUS_CONNECTED
from app.nl2sql.service import get_pipeline
from helpers import LAST_7_DAYS_SQL, fake_sql


def ask(question):
    return {"event": "ProcessNaturalLanguageQuery", "data": question}


def receive_until_done(ws):
    """Read frames until the request is over (final status or error)."""
    frames = []
    while True:
        frame = ws.receive_json()
        frames.append(frame)
        if frame["event"] == "ReceiveError":
            return frames
        if frame["event"] == "ReceiveStatus" and frame["data"].startswith("✅ Query completed"):
            return frames


@pytest.fixture
def hub_client(make_pipeline, test_settings):
    """TestClient with the pipeline and settings swapped for test doubles."""

    def _client(generator, config=None):
        config = config or test_settings
        pipeline = make_pipeline(generator, config=config)
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        app.dependency_overrides[get_settings] = lambda: config
        return TestClient(app)

    yield _client
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_root():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/")
    assert response.status_code == 200
    assert response.json()["websocket"] == "/queryhub"


def test_connect_sends_status(hub_client):
    client = hub_client(fake_sql("SELECT 1"))
    with client.websocket_connect("/queryhub") as ws:
        assert ws.receive_json() == {"event": "ReceiveStatus", "data": STATUS_CONNECTED}


def test_question_round_trip(hub_client):
    client = hub_client(fake_sql(LAST_7_DAYS_SQL))
    with client.websocket_connect("/queryhub") as ws:
        ws.receive_json()
        ws.send_json(ask("How many orders in the last 7 days?"))
        frames = receive_until_done(ws)

    events = [frame["event"] for frame in frames]
    assert events == [
        "ReceiveStatus",
        "ReceiveStatus",
        "ReceiveStatus",
        "ReceiveSqlQuery",
        "ReceiveStatus",
        "ReceiveResults",
        "ReceiveStatus",
    ]
    assert frames[3]["data"] == LAST_7_DAYS_SQL
    assert frames[4]["data"] == STATUS_EXECUTING
    assert frames[5]["data"] == [{"OrderCount": 6}]
    assert frames[6]["data"] == "✅ Query completed! Found 1 result(s)"


def test_channel_stays_open_after_error(hub_client):
    client = hub_client(fake_sql("DELETE FROM Orders"))
    with client.websocket_connect("/queryhub") as ws:
        ws.receive_json()

        ws.send_json(ask("Delete everything"))
        first = receive_until_done(ws)
        assert first[-1]["event"] == "ReceiveError"
        assert "DELETE" in first[-1]["data"]

        ws.send_json(ask("Delete everything again"))
        second = receive_until_done(ws)
        assert second[-1]["event"] == "ReceiveError"


def test_malformed_frames_get_an_error(hub_client):
    client = hub_client(fake_sql("SELECT 1 AS One"))
    with client.websocket_connect("/queryhub") as ws:
        ws.receive_json()

        ws.send_text("not json at all")
        assert ws.receive_json() == {
            "event": "ReceiveError",
            "data": error_text("Unrecognized message"),
        }

        ws.send_json({"event": "SomethingElse", "data": "hi"})
        assert ws.receive_json()["event"] == "ReceiveError"

        ws.send_bytes(b"\x00\xff")
        assert ws.receive_json() == {
            "event": "ReceiveError",
            "data": error_text("Unrecognized message"),
        }

        # Still usable afterwards
        ws.send_json(ask("one"))
        frames = receive_until_done(ws)
        assert {"event": "ReceiveResults", "data": [{"One": 1}]} in frames


def test_binary_frame_is_read_as_json(hub_client):
    client = hub_client(fake_sql("SELECT 1 AS One"))
    with client.websocket_connect("/queryhub") as ws:
        ws.receive_json()

        ws.send_bytes(json.dumps(ask("one")).encode("utf-8"))
        frames = receive_until_done(ws)
        assert {"event": "ReceiveResults", "data": [{"One": 1}]} in frames


def test_request_limit_closes_channel(hub_client, test_settings):
    config = test_settings.model_copy(update={"MAX_REQUESTS_PER_CONNECTION": 1})
    client = hub_client(fake_sql("SELECT 1 AS One"), config=config)
    with client.websocket_connect("/queryhub") as ws:
        ws.receive_json()
        ws.send_json(ask("one"))
        receive_until_done(ws)

        ws.send_json(ask("two"))
        frame = ws.receive_json()
        assert frame["event"] == "ReceiveError"
        assert "Request limit" in frame["data"]

        with pytest.raises(WebSocketDisconnect) as closed:
            ws.receive_json()
        assert closed.value.code == 1008
