from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .runtime import SessionRuntime


async def send_to_player(runtime: "SessionRuntime", player_id: str, message: dict[str, Any]) -> None:
    connection = runtime.connections.connection_for(player_id)
    if connection is None:
        # Disconnected participants keep their seat; the message is dropped.
        return
    await runtime.send_safe(connection, message, player_id=player_id)


async def broadcast_to_room(
    runtime: "SessionRuntime",
    room_id: str,
    message: dict[str, Any],
    exclude_player_id: str | None = None,
) -> None:
    room = runtime.registry.get_room(room_id)
    if room is None:
        return

    for player_id in list(room.players):
        if player_id == exclude_player_id:
            continue
        await send_to_player(runtime, player_id, message)
