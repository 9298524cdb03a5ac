import json
import os
import sys

import pytest
import pytest_asyncio

# Ensure the backend root (containing the `rulerush` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from rulerush.runtime import SessionRuntime


class MockWebSocket:
    """Lightweight stand-in for fastapi.WebSocket that records sent frames."""

    def __init__(self, fail_sends=False):
        self.sent_messages: list[dict] = []
        self.fail_sends = fail_sends

    async def send_json(self, data: dict):
        if self.fail_sends:
            raise RuntimeError("socket closed")
        self.sent_messages.append(data)

    def last(self, msg_type: str) -> dict | None:
        for msg in reversed(self.sent_messages):
            if msg.get("type") == msg_type:
                return msg
        return None

    def all(self, msg_type: str) -> list[dict]:
        return [m for m in self.sent_messages if m.get("type") == msg_type]

    def clear(self):
        self.sent_messages.clear()


async def send(runtime, ws, **payload):
    await runtime.handle_raw_message(ws, json.dumps(payload))


async def create_room(runtime, name="Host", time_limit=None):
    ws = MockWebSocket()
    payload = {"playerName": name}
    if time_limit is not None:
        payload["timeLimit"] = time_limit
    await send(runtime, ws, type="create_room", **payload)
    created = ws.last("room_created")
    return ws, created["playerId"], created["roomCode"]


async def join_room(runtime, code, name):
    ws = MockWebSocket()
    await send(runtime, ws, type="join_room", roomCode=code, playerName=name)
    joined = ws.last("room_joined")
    return ws, joined["playerId"] if joined else None


@pytest.fixture()
def mock_ws():
    return MockWebSocket()


@pytest_asyncio.fixture()
async def session_runtime():
    rt = SessionRuntime(default_time_limit_ms=60 * 60 * 1000, empty_room_sweep_ms=5 * 60 * 1000)
    yield rt
    await rt.shutdown()
