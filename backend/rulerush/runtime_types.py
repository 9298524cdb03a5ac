from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Literal

EndReason = Literal["time_up", "stopped", "all_completed"]
Phase = Literal["lobby", "running", "ended"]


@dataclass
class RuleState:
    rule_number: int
    correct: bool = False
    unlocked: bool = False

    def to_payload(self) -> dict[str, Any]:
        return {
            "ruleNumber": self.rule_number,
            "correct": self.correct,
            "unlocked": self.unlocked,
        }


@dataclass
class PlayerProgress:
    rules_completed: int = 0
    total_rules: int = 0
    password: str = ""
    rule_states: list[RuleState] = field(default_factory=list)
    all_solved: bool = False
    finished_at: int | None = None
    time_taken: int = 0


@dataclass
class Player:
    id: str
    name: str
    room_id: str
    joined_at: int
    progress: PlayerProgress = field(default_factory=PlayerProgress)


@dataclass
class Room:
    id: str
    code: str
    host_id: str
    created_at: int
    time_limit_ms: int
    players: dict[str, Player] = field(default_factory=dict)
    started: bool = False
    ended: bool = False
    started_at: int | None = None
    end_reason: EndReason | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def phase(self) -> Phase:
        if self.ended:
            return "ended"
        if self.started:
            return "running"
        return "lobby"

    @property
    def is_running(self) -> bool:
        return self.started and not self.ended
