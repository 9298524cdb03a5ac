import json
from datetime import date

import pytest
from fastapi.testclient import TestClient

from rulerush import puzzle_answer
from rulerush.api import puzzle as puzzle_api
from rulerush.application import create_app
from rulerush.puzzle_answer import PuzzleAnswerError, build_puzzle_answer_url
from rulerush.runtime import SessionRuntime


@pytest.fixture()
def client():
    app = create_app(SessionRuntime())
    with TestClient(app) as test_client:
        yield test_client


def recv_until(ws, msg_type, max_messages=20):
    for _ in range(max_messages):
        data = ws.receive_json()
        if data.get("type") == msg_type:
            return data
    raise AssertionError(f"Never received {msg_type}")


def test_health_is_plain_ok(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.text == "OK"
    assert res.headers["content-type"].startswith("text/plain")


def test_wordle_passthrough(client, monkeypatch):
    async def fake_fetch():
        return {"solution": "crane", "days_since_launch": 1000}

    monkeypatch.setattr(puzzle_api, "fetch_puzzle_answer", fake_fetch)
    res = client.get("/wordle")
    assert res.status_code == 200
    assert res.json() == {"solution": "crane", "days_since_launch": 1000}


def test_wordle_upstream_failure_maps_to_502(client, monkeypatch):
    async def failing_fetch():
        raise PuzzleAnswerError("boom")

    monkeypatch.setattr(puzzle_api, "fetch_puzzle_answer", failing_fetch)
    res = client.get("/wordle")
    assert res.status_code == 502
    assert res.json() == {"detail": "Puzzle service unavailable"}


def test_puzzle_answer_url_is_date_keyed():
    url = build_puzzle_answer_url(date(2024, 3, 7))
    assert url == "https://www.nytimes.com/svc/wordle/v2/2024-03-07.json"


@pytest.mark.asyncio
async def test_fetch_puzzle_answer_propagates_upstream_errors(monkeypatch):
    def broken_request(url):
        raise PuzzleAnswerError(f"HTTP 404 for {url}")

    monkeypatch.setattr(puzzle_answer, "_request_puzzle_answer", broken_request)
    with pytest.raises(PuzzleAnswerError):
        await puzzle_answer.fetch_puzzle_answer(date(2024, 1, 1))


def test_websocket_game_round_trip(client):
    with client.websocket_connect("/ws") as host:
        host.send_json({"type": "create_room", "playerName": "Host", "timeLimit": 1})
        created = recv_until(host, "room_created")
        assert created["isHost"] is True
        recv_until(host, "room_stats")

        with client.websocket_connect("/") as player:
            player.send_json(
                {"type": "join_room", "roomCode": created["roomCode"], "playerName": "Bo"}
            )
            joined = recv_until(player, "room_joined")
            assert joined["isHost"] is False
            assert recv_until(host, "player_joined")["player"]["name"] == "Bo"

            host.send_json({"type": "start_game"})
            started = recv_until(player, "game_started")
            assert started["timeLimit"] == 60_000

            player.send_json(
                {"type": "update_progress", "rulesCompleted": 4, "totalRules": 4, "allSolved": True}
            )
            ended = recv_until(player, "game_ended")
            assert ended["reason"] == "all_completed"
            assert ended["finalStats"][0]["id"] == joined["playerId"]
            assert recv_until(host, "game_ended") == ended

    stats = client.get("/api/ws-stats").json()
    assert stats["activeRooms"] == 1
    assert stats["stats"]["gamesEnded"] == 1
    assert stats["rooms"][0]["phase"] == "ended"


def test_websocket_invalid_frame_keeps_connection_open(client):
    with client.websocket_connect("/ws") as host:
        host.send_text("definitely not json")
        assert host.receive_json() == {"type": "error", "message": "Invalid message format"}

        host.send_json({"type": "create_room", "playerName": "Host"})
        created = recv_until(host, "room_created")
        assert created["isHost"] is True


def test_websocket_binary_frames_keep_lobby_seat(client):
    with client.websocket_connect("/ws") as host:
        host.send_json({"type": "create_room", "playerName": "Host"})
        created = recv_until(host, "room_created")

        with client.websocket_connect("/ws") as player:
            player.send_bytes(
                json.dumps(
                    {"type": "join_room", "roomCode": created["roomCode"], "playerName": "Bo"}
                ).encode()
            )
            joined = recv_until(player, "room_joined")

            player.send_bytes(b"\xff\xfe")
            assert player.receive_json() == {"type": "error", "message": "Invalid message format"}

            player.send_bytes(
                json.dumps({"type": "update_progress", "rulesCompleted": 2, "totalRules": 5}).encode()
            )
            recv_until(host, "player_joined")
            for _ in range(2):
                stats = recv_until(host, "room_stats")["stats"]
                if stats["players"] and stats["players"][0]["rulesCompleted"] == 2:
                    break
            assert stats["players"][0]["id"] == joined["playerId"]
            assert stats["players"][0]["rulesCompleted"] == 2
