from __future__ import annotations

import logging
from typing import TYPE_CHECKING, cast

from fastapi import WebSocket

from .runtime_constants import (
    GAME_ALREADY_STARTED_MESSAGE,
    GAME_NOT_RUNNING_MESSAGE,
    HOST_ONLY_START_MESSAGE,
    HOST_ONLY_STOP_MESSAGE,
    JOIN_FAILED_MESSAGE,
)
from .runtime_game_flow import end_game, start_game, update_progress
from .runtime_types import Player
from .runtime_utils import now_ms, random_id, sanitize_room_code, time_limit_ms_from_minutes
from .schemas.messages import (
    ClientMessage,
    CreateRoomMessage,
    JoinRoomMessage,
    ReconnectMessage,
    UpdateProgressMessage,
)

if TYPE_CHECKING:
    from .runtime import SessionRuntime

logger = logging.getLogger(__name__)


async def handle_message(
    runtime: "SessionRuntime",
    connection: WebSocket,
    data: ClientMessage,
) -> None:
    message_type = data.type

    if message_type == "create_room":
        await _create_room(runtime, connection, cast(CreateRoomMessage, data))
        return

    if message_type == "join_room":
        await _join_room(runtime, connection, cast(JoinRoomMessage, data))
        return

    if message_type == "reconnect":
        await _reconnect(runtime, connection, cast(ReconnectMessage, data))
        return

    player_id = runtime.connections.player_for(connection)
    player = runtime.registry.get_player(player_id)
    if player is None:
        logger.debug("Ignoring %s from unbound connection", message_type)
        return
    room = runtime.registry.get_room(player.room_id)

    if message_type == "start_game":
        if room is None or room.host_id != player.id:
            await runtime.send_safe(connection, {"type": "error", "message": HOST_ONLY_START_MESSAGE})
            return
        if room.started or room.ended:
            await runtime.send_safe(
                connection,
                {"type": "error", "message": GAME_ALREADY_STARTED_MESSAGE},
            )
            return
        await start_game(runtime, room)
        return

    if message_type == "stop_game":
        if room is None or room.host_id != player.id:
            await runtime.send_safe(connection, {"type": "error", "message": HOST_ONLY_STOP_MESSAGE})
            return
        if not room.is_running:
            await runtime.send_safe(connection, {"type": "error", "message": GAME_NOT_RUNNING_MESSAGE})
            return
        await end_game(runtime, room, "stopped")
        return

    if message_type == "update_progress":
        if room is None:
            return
        await update_progress(runtime, room, player, cast(UpdateProgressMessage, data))
        return

    if message_type == "get_stats":
        # Non-hosts get no reply at all.
        if room is not None and room.host_id == player.id:
            await runtime._push_room_stats(room)
        return


async def _create_room(
    runtime: "SessionRuntime",
    connection: WebSocket,
    data: CreateRoomMessage,
) -> None:
    player_id = random_id()
    runtime.connections.bind(connection, player_id)

    time_limit_ms = time_limit_ms_from_minutes(data.timeLimit, runtime.default_time_limit_ms)
    room, created = runtime.registry.create_room(player_id, time_limit_ms)
    player = Player(id=player_id, name=data.playerName, room_id=room.id, joined_at=now_ms())
    runtime.registry.register_player(player)

    if created:
        runtime._increment_stat("roomsCreated")
    runtime._log_ws_event(
        "room_created",
        roomId=room.id,
        roomCode=room.code,
        playerId=player_id,
        timeLimit=room.time_limit_ms,
        reused=not created,
    )

    async with room.lock:
        await runtime.send_safe(
            connection,
            {"type": "room_created", "roomCode": room.code, "playerId": player_id, "isHost": True},
            player_id=player_id,
        )
        await runtime._push_room_stats(room)


async def _join_room(
    runtime: "SessionRuntime",
    connection: WebSocket,
    data: JoinRoomMessage,
) -> None:
    room = runtime.registry.find_room_by_code(sanitize_room_code(data.roomCode))
    if room is None or room.phase != "lobby":
        runtime._increment_stat("joinRejected")
        await runtime.send_safe(connection, {"type": "join_failed", "message": JOIN_FAILED_MESSAGE})
        return

    player_id = random_id()
    runtime.connections.bind(connection, player_id)
    player = Player(id=player_id, name=data.playerName, room_id=room.id, joined_at=now_ms())
    runtime.registry.register_player(player)
    runtime._log_ws_event("player_joined", roomId=room.id, roomCode=room.code, playerId=player_id)

    await runtime.send_safe(
        connection,
        {
            "type": "room_joined",
            "roomCode": room.code,
            "playerId": player_id,
            "isHost": room.host_id == player_id,
        },
        player_id=player_id,
    )
    await runtime._broadcast_to_room(
        room.id,
        {"type": "player_joined", "player": {"id": player.id, "name": player.name}},
    )
    await runtime._push_room_stats(room)


async def _reconnect(
    runtime: "SessionRuntime",
    connection: WebSocket,
    data: ReconnectMessage,
) -> None:
    player = runtime.registry.get_player(data.playerId)
    if player is None:
        runtime._log_ws_event("reconnect_unknown", level=logging.DEBUG, playerId=data.playerId)
        return

    runtime.connections.bind(connection, player.id)
    runtime._increment_stat("reconnects")
    room = runtime.registry.get_room(player.room_id)
    if room is None:
        return

    runtime._log_ws_event("reconnect", roomId=room.id, roomCode=room.code, playerId=player.id)
    await runtime.send_safe(
        connection,
        {
            "type": "reconnected",
            "roomCode": room.code,
            "playerName": player.name,
            "gameStarted": room.started,
            "gameEnded": room.ended,
            "startedAt": room.started_at,
            "timeLimit": room.time_limit_ms,
        },
        player_id=player.id,
    )
    if room.host_id == player.id:
        await runtime._push_room_stats(room)
