from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .runtime_stats import build_final_stats
from .runtime_types import PlayerProgress, RuleState
from .runtime_utils import now_ms

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from .runtime import SessionRuntime
    from .runtime_types import EndReason, Player, Room
    from .schemas.messages import UpdateProgressMessage


async def start_game(runtime: "SessionRuntime", room: "Room") -> None:
    room.started = True
    room.started_at = now_ms()
    runtime._increment_stat("gamesStarted")
    runtime._log_ws_event(
        "game_started",
        roomId=room.id,
        roomCode=room.code,
        timeLimit=room.time_limit_ms,
        players=len(room.players),
    )

    await runtime._broadcast_to_room(
        room.id,
        {"type": "game_started", "timeLimit": room.time_limit_ms, "startedAt": room.started_at},
    )
    runtime._schedule_timer(room.id, "timeLimit", room.time_limit_ms, runtime._on_time_limit_expired)
    await runtime._push_room_stats(room)


async def end_game(runtime: "SessionRuntime", room: "Room", reason: "EndReason") -> bool:
    """Move ``room`` to ended exactly once; later calls return False and send nothing."""
    if room.ended:
        return False

    room.ended = True
    room.end_reason = reason

    final_stats = build_final_stats(room)
    payload = {"type": "game_ended", "reason": reason, "finalStats": final_stats}
    runtime._increment_stat("gamesEnded")
    runtime._log_ws_event(
        "game_ended",
        roomId=room.id,
        roomCode=room.code,
        reason=reason,
        ranked=len(final_stats),
    )

    # Host is ranked out of finalStats and gets its copy directly.
    await runtime._broadcast_to_room(room.id, payload, exclude_player_id=room.host_id)
    if room.host_id:
        await runtime._send_to_player(room.host_id, payload)
    return True


async def time_limit_expired(runtime: "SessionRuntime", room_id: str) -> None:
    room = runtime.registry.get_room(room_id)
    if room is None or not room.is_running:
        runtime._log_ws_event("time_limit_stale", level=logging.DEBUG, roomId=room_id)
        return
    await end_game(runtime, room, "time_up")


def apply_progress_update(room: "Room", player: "Player", data: "UpdateProgressMessage") -> None:
    all_solved = bool(data.allSolved)
    finished_at: int | None = None
    time_taken = 0
    if all_solved:
        finished_at = now_ms()
        if room.started_at is not None:
            time_taken = finished_at - room.started_at

    player.progress = PlayerProgress(
        rules_completed=data.rulesCompleted,
        total_rules=data.totalRules,
        password=data.password or "",
        rule_states=[
            RuleState(rule_number=state.ruleNumber, correct=state.correct, unlocked=state.unlocked)
            for state in data.ruleStates or []
        ],
        all_solved=all_solved,
        finished_at=finished_at,
        time_taken=time_taken,
    )


def all_participants_solved(runtime: "SessionRuntime", room: "Room") -> bool:
    participants = runtime.registry.non_host_players(room)
    return bool(participants) and all(player.progress.all_solved for player in participants)


async def update_progress(
    runtime: "SessionRuntime",
    room: "Room",
    player: "Player",
    data: "UpdateProgressMessage",
) -> None:
    if room.ended:
        return

    apply_progress_update(room, player, data)

    if all_participants_solved(runtime, room):
        await end_game(runtime, room, "all_completed")
        return

    if player.id != room.host_id:
        await runtime._push_room_stats(room)


async def sweep_empty_room(runtime: "SessionRuntime", room_id: str) -> None:
    room = runtime.registry.get_room(room_id)
    if room is None or room.started or room.players:
        return
    runtime.registry.remove_room(room_id)
    runtime._increment_stat("roomsSwept")
    runtime._log_ws_event("room_swept", roomId=room_id, roomCode=room.code)
