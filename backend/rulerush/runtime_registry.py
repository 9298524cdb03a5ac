from __future__ import annotations

from .runtime_types import Player, Room
from .runtime_utils import now_ms, random_id, random_room_code


class SessionRegistry:
    """Process-wide room and player maps.

    Only ``SessionRuntime`` and the game-flow helpers it drives mutate this
    object; everything else reads through the accessors.
    """

    def __init__(self) -> None:
        self.rooms: dict[str, Room] = {}
        self.players: dict[str, Player] = {}

    def get_room(self, room_id: str | None) -> Room | None:
        if not room_id:
            return None
        return self.rooms.get(room_id)

    def get_player(self, player_id: str | None) -> Player | None:
        if not player_id:
            return None
        return self.players.get(player_id)

    def room_for_player(self, player_id: str | None) -> Room | None:
        player = self.get_player(player_id)
        if player is None:
            return None
        return self.rooms.get(player.room_id)

    def find_room_by_code(self, code: str) -> Room | None:
        for room in self.rooms.values():
            if room.code == code:
                return room
        return None

    def _allocate_room_code(self) -> str:
        taken = {room.code for room in self.rooms.values()}
        code = random_room_code()
        while code in taken:
            code = random_room_code()
        return code

    def create_room(self, host_id: str, time_limit_ms: int) -> tuple[Room, bool]:
        """Return ``(room, created)``; a host that already owns a live room gets it back."""
        existing = self.room_for_player(host_id)
        if existing is not None:
            return existing, False
        for room in self.rooms.values():
            if room.host_id == host_id:
                return room, False

        room = Room(
            id=random_id(),
            code=self._allocate_room_code(),
            host_id=host_id,
            created_at=now_ms(),
            time_limit_ms=time_limit_ms,
        )
        self.rooms[room.id] = room
        return room, True

    def register_player(self, player: Player) -> None:
        room = self.rooms.get(player.room_id)
        if room is None:
            raise KeyError(f"Unknown room {player.room_id}")
        self.players[player.id] = player
        room.players[player.id] = player

    def remove_player(self, player_id: str) -> Player | None:
        player = self.players.pop(player_id, None)
        if player is None:
            return None
        room = self.rooms.get(player.room_id)
        if room is not None:
            room.players.pop(player_id, None)
        return player

    def remove_room(self, room_id: str) -> Room | None:
        return self.rooms.pop(room_id, None)

    @staticmethod
    def non_host_players(room: Room) -> list[Player]:
        return [player for player in room.players.values() if player.id != room.host_id]
