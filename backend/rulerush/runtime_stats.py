from __future__ import annotations

from typing import Any

from .runtime_registry import SessionRegistry
from .runtime_types import Player, Room
from .runtime_utils import now_ms


def build_player_stats(player: Player) -> dict[str, Any]:
    progress = player.progress
    return {
        "id": player.id,
        "name": player.name,
        "rulesCompleted": progress.rules_completed,
        "totalRules": progress.total_rules,
        "allSolved": progress.all_solved,
        "joinedAt": player.joined_at,
        "finishedAt": progress.finished_at,
        "timeTaken": progress.time_taken,
        "ruleStates": [state.to_payload() for state in progress.rule_states],
    }


def build_room_stats(room: Room) -> dict[str, Any]:
    players = SessionRegistry.non_host_players(room)
    return {
        "roomCode": room.code,
        "gameStarted": room.started,
        "gameEnded": room.ended,
        "players": [build_player_stats(player) for player in players],
        "totalPlayers": len(players),
        "timeLimit": room.time_limit_ms,
        "startedAt": room.started_at,
        "endReason": room.end_reason,
    }


def final_time_taken(room: Room, player: Player, end_time: int) -> int:
    if room.started_at is None:
        return 0
    return (player.progress.finished_at or end_time) - room.started_at


def final_stats_sort_key(entry: dict[str, Any]) -> tuple[int, int, int]:
    return (
        0 if entry["allSolved"] else 1,
        -int(entry["rulesCompleted"] or 0),
        int(entry["timeTaken"] or 0),
    )


def build_final_stats(room: Room, end_time: int | None = None) -> list[dict[str, Any]]:
    """Rank non-host members: solved first, then most rules, then fastest."""
    finished_at = now_ms() if end_time is None else end_time
    entries = [
        {
            "id": player.id,
            "name": player.name,
            "rulesCompleted": player.progress.rules_completed,
            "totalRules": player.progress.total_rules,
            "allSolved": player.progress.all_solved,
            "timeTaken": final_time_taken(room, player, finished_at),
            "finishedAt": player.progress.finished_at,
            "ruleStates": [state.to_payload() for state in player.progress.rule_states],
        }
        for player in SessionRegistry.non_host_players(room)
    ]
    entries.sort(key=final_stats_sort_key)
    return entries
