import pytest

from rulerush import runtime_registry
from rulerush.runtime_constants import ROOM_CODE_CHARS
from rulerush.runtime_registry import SessionRegistry
from rulerush.runtime_types import Player


def make_player(player_id, room_id, name="P"):
    return Player(id=player_id, name=name, room_id=room_id, joined_at=0)


def test_create_room_assigns_six_char_code():
    registry = SessionRegistry()
    room, created = registry.create_room("host-1", 60_000)
    assert created is True
    assert len(room.code) == 6
    assert set(room.code) <= set(ROOM_CODE_CHARS)
    assert room.phase == "lobby"
    assert registry.get_room(room.id) is room


def test_create_room_is_idempotent_per_host():
    registry = SessionRegistry()
    room, _ = registry.create_room("host-1", 60_000)
    registry.register_player(make_player("host-1", room.id))

    again, created = registry.create_room("host-1", 120_000)
    assert created is False
    assert again is room
    assert again.time_limit_ms == 60_000
    assert len(registry.rooms) == 1


def test_create_room_regenerates_colliding_codes(monkeypatch):
    registry = SessionRegistry()
    codes = iter(["AAAAAA", "AAAAAA", "AAAAAA", "BBBBBB"])
    monkeypatch.setattr(runtime_registry, "random_room_code", lambda: next(codes))

    first, _ = registry.create_room("host-1", 60_000)
    second, _ = registry.create_room("host-2", 60_000)

    assert first.code == "AAAAAA"
    assert second.code == "BBBBBB"


def test_find_room_by_code():
    registry = SessionRegistry()
    room, _ = registry.create_room("host-1", 60_000)
    assert registry.find_room_by_code(room.code) is room
    assert registry.find_room_by_code("ZZZZZZ" if room.code != "ZZZZZZ" else "YYYYYY") is None


def test_register_and_remove_player():
    registry = SessionRegistry()
    room, _ = registry.create_room("host-1", 60_000)
    registry.register_player(make_player("host-1", room.id))
    registry.register_player(make_player("p-1", room.id))

    assert [p.id for p in registry.non_host_players(room)] == ["p-1"]
    assert registry.room_for_player("p-1") is room

    removed = registry.remove_player("p-1")
    assert removed is not None
    assert "p-1" not in registry.players
    assert "p-1" not in room.players
    assert registry.remove_player("p-1") is None


def test_register_player_for_unknown_room_raises():
    registry = SessionRegistry()
    with pytest.raises(KeyError):
        registry.register_player(make_player("p-1", "missing"))
