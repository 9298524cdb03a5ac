from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from .runtime_connections import ConnectionDirectory
from .runtime_constants import DEFAULT_TIME_LIMIT_MS, EMPTY_ROOM_SWEEP_MS, INVALID_MESSAGE_FORMAT
from .runtime_game_flow import sweep_empty_room, time_limit_expired
from .runtime_message_handlers import handle_message as handle_session_message
from .runtime_messaging import broadcast_to_room, send_to_player
from .runtime_registry import SessionRegistry
from .runtime_stats import build_room_stats
from .runtime_types import Room
from .runtime_utils import now_ms, sanitize_room_code
from .schemas.messages import (
    ClientMessage,
    CreateRoomMessage,
    JoinRoomMessage,
    ReconnectMessage,
    parse_client_message,
)

logger = logging.getLogger(__name__)

TimerCallback = Callable[[str], Awaitable[None]]


class SessionRuntime:
    def __init__(
        self,
        *,
        default_time_limit_ms: int = DEFAULT_TIME_LIMIT_MS,
        empty_room_sweep_ms: int = EMPTY_ROOM_SWEEP_MS,
    ) -> None:
        self.registry = SessionRegistry()
        self.connections = ConnectionDirectory()
        self.default_time_limit_ms = default_time_limit_ms
        self.empty_room_sweep_ms = empty_room_sweep_ms
        self._timers: set[asyncio.Task[None]] = set()
        self._ws_stats: dict[str, int] = {
            "connectSuccess": 0,
            "disconnects": 0,
            "messageReceived": 0,
            "invalidMessages": 0,
            "handlerErrors": 0,
            "sendFailures": 0,
            "roomsCreated": 0,
            "joinRejected": 0,
            "reconnects": 0,
            "gamesStarted": 0,
            "gamesEnded": 0,
            "roomsSwept": 0,
            "activeConnections": 0,
            "peakConnections": 0,
        }

    @property
    def active_rooms_count(self) -> int:
        return len(self.registry.rooms)

    @property
    def pending_timers(self) -> int:
        return sum(1 for task in self._timers if not task.done())

    def _increment_stat(self, key: str, amount: int = 1) -> None:
        self._ws_stats[key] = int(self._ws_stats.get(key, 0)) + amount

    def _on_connect(self) -> None:
        self._increment_stat("connectSuccess")
        active_connections = int(self._ws_stats.get("activeConnections", 0)) + 1
        self._ws_stats["activeConnections"] = active_connections
        if active_connections > int(self._ws_stats.get("peakConnections", 0)):
            self._ws_stats["peakConnections"] = active_connections

    def _on_disconnect(self) -> None:
        self._increment_stat("disconnects")
        active_connections = max(0, int(self._ws_stats.get("activeConnections", 0)) - 1)
        self._ws_stats["activeConnections"] = active_connections

    def _log_ws_event(self, event: str, level: int = logging.INFO, **fields: object) -> None:
        logger.log(
            level,
            "ws.%s %s",
            event,
            json.dumps(fields, ensure_ascii=False, separators=(",", ":")),
        )

    async def get_ws_stats(self) -> dict[str, Any]:
        room_summaries = [
            {
                "roomCode": room.code,
                "phase": room.phase,
                "players": len(room.players),
                "connected": sum(
                    1 for player_id in room.players if self.connections.connection_for(player_id)
                ),
            }
            for room in self.registry.rooms.values()
        ]

        room_summaries.sort(key=lambda item: int(item.get("players", 0)), reverse=True)

        return {
            "generatedAt": now_ms(),
            "activeRooms": len(room_summaries),
            "boundConnections": len(self.connections),
            "stats": dict(self._ws_stats),
            "rooms": room_summaries[:50],
        }

    async def shutdown(self) -> None:
        for task in list(self._timers):
            if not task.done():
                task.cancel()
        self._timers.clear()
        self.registry.rooms.clear()
        self.registry.players.clear()
        self.connections.clear()
        self._ws_stats["activeConnections"] = 0

    async def handle_websocket(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._on_connect()
        self._log_ws_event("connect", client=str(getattr(websocket, "client", None) or "-"))

        disconnect_code: int | None = None
        disconnect_reason = "unknown"

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    disconnect_code = message.get("code")
                    disconnect_reason = "websocket_disconnect"
                    break
                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes")
                if raw is None:
                    continue
                await self.handle_raw_message(websocket, raw)
        except WebSocketDisconnect as exc:
            disconnect_code = exc.code
            disconnect_reason = "websocket_disconnect"
        except Exception:
            disconnect_reason = "server_error"
            logger.exception("Unexpected websocket error")
        finally:
            self._on_disconnect()
            await self.handle_disconnect(websocket, reason=disconnect_reason, close_code=disconnect_code)

    async def handle_raw_message(self, connection: WebSocket, raw: str | bytes) -> None:
        self._increment_stat("messageReceived")
        try:
            message = parse_client_message(raw)
        except ValidationError as exc:
            self._increment_stat("invalidMessages")
            self._log_ws_event(
                "invalid_message",
                level=logging.DEBUG,
                errors=exc.error_count(),
                playerId=self.connections.player_for(connection) or "-",
            )
            await self.send_safe(connection, {"type": "error", "message": INVALID_MESSAGE_FORMAT})
            return

        await self.handle_message(connection, message)

    def _room_for_message(self, connection: WebSocket, message: ClientMessage) -> Room | None:
        if isinstance(message, CreateRoomMessage):
            return None
        if isinstance(message, JoinRoomMessage):
            return self.registry.find_room_by_code(sanitize_room_code(message.roomCode))
        if isinstance(message, ReconnectMessage):
            return self.registry.room_for_player(message.playerId)
        return self.registry.room_for_player(self.connections.player_for(connection))

    async def handle_message(self, connection: WebSocket, message: ClientMessage) -> None:
        while True:
            room = self._room_for_message(connection, message)
            if room is None:
                await self._dispatch_message(connection, message)
                return
            async with room.lock:
                # The room may have been swept or the binding moved while waiting.
                if self._room_for_message(connection, message) is room:
                    await self._dispatch_message(connection, message)
                    return

    async def _dispatch_message(self, connection: WebSocket, message: ClientMessage) -> None:
        try:
            await handle_session_message(self, connection, message)
        except Exception:
            self._increment_stat("handlerErrors")
            logger.exception("Error handling %s message", message.type)
            await self.send_safe(connection, {"type": "error", "message": INVALID_MESSAGE_FORMAT})

    async def handle_disconnect(
        self,
        connection: WebSocket,
        reason: str = "unknown",
        close_code: int | None = None,
    ) -> None:
        player_id = self.connections.unbind(connection)
        if player_id is None:
            return

        room = self.registry.room_for_player(player_id)
        self._log_ws_event(
            "disconnect",
            playerId=player_id,
            roomCode=room.code if room else "-",
            reason=reason,
            closeCode=close_code,
        )
        if room is None:
            return

        async with room.lock:
            if self.connections.connection_for(player_id) is not None:
                # Reconnected on another socket while the room was busy.
                return
            player = self.registry.get_player(player_id)
            if player is None or self.registry.room_for_player(player_id) is not room or room.started:
                # Started games keep the seat so the host still sees last progress.
                return
            if room.host_id == player_id:
                return

            self.registry.remove_player(player_id)
            await self._broadcast_to_room(room.id, {"type": "player_left", "playerId": player_id})
            await self._push_room_stats(room)

            if not room.players:
                self._schedule_timer(room.id, "sweep", self.empty_room_sweep_ms, self._sweep_empty_room)

    async def send_safe(
        self,
        websocket: WebSocket,
        data: dict[str, Any],
        player_id: str | None = None,
    ) -> None:
        try:
            await websocket.send_json(data)
        except Exception as exc:
            # Connection may already be closed.
            self._increment_stat("sendFailures")
            logger.debug(
                "[SEND_FAIL] player=%s type=%s reason=%s",
                player_id or "-",
                data.get("type"),
                repr(exc),
            )

    async def _send_to_player(self, player_id: str, message: dict[str, Any]) -> None:
        await send_to_player(self, player_id, message)

    async def _broadcast_to_room(
        self,
        room_id: str,
        message: dict[str, Any],
        exclude_player_id: str | None = None,
    ) -> None:
        await broadcast_to_room(self, room_id, message, exclude_player_id=exclude_player_id)

    async def _push_room_stats(self, room: Room) -> None:
        if not room.host_id:
            return
        await self._send_to_player(room.host_id, {"type": "room_stats", "stats": build_room_stats(room)})

    def _schedule_timer(
        self,
        room_id: str,
        key: str,
        delay_ms: int,
        callback: TimerCallback,
    ) -> asyncio.Task[None]:
        delay_s = max(0.0, (delay_ms or 0) / 1000)

        async def runner() -> None:
            try:
                await asyncio.sleep(delay_s)
            except asyncio.CancelledError:
                return
            room = self.registry.get_room(room_id)
            if room is None:
                await self._run_timer_callback(key, room_id, callback)
                return
            async with room.lock:
                await self._run_timer_callback(key, room_id, callback)

        task = asyncio.create_task(runner(), name=f"{room_id}:{key}")
        self._timers.add(task)
        task.add_done_callback(self._timers.discard)
        return task

    async def _run_timer_callback(self, key: str, room_id: str, callback: TimerCallback) -> None:
        try:
            await callback(room_id)
        except Exception:
            logger.exception("Timer %s failed for room %s", key, room_id)

    async def _on_time_limit_expired(self, room_id: str) -> None:
        await time_limit_expired(self, room_id)

    async def _sweep_empty_room(self, room_id: str) -> None:
        await sweep_empty_room(self, room_id)


runtime = SessionRuntime()
