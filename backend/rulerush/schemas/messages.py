from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter


class InboundMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")


class CreateRoomMessage(InboundMessage):
    type: Literal["create_room"]
    playerName: str
    timeLimit: int | None = Field(default=None, ge=0)


class JoinRoomMessage(InboundMessage):
    type: Literal["join_room"]
    roomCode: str
    playerName: str


class StartGameMessage(InboundMessage):
    type: Literal["start_game"]


class StopGameMessage(InboundMessage):
    type: Literal["stop_game"]


class RuleStatePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ruleNumber: int = Field(validation_alias=AliasChoices("ruleNumber", "num"))
    correct: bool = False
    unlocked: bool = False


class UpdateProgressMessage(InboundMessage):
    type: Literal["update_progress"]
    rulesCompleted: int
    totalRules: int
    password: str | None = None
    ruleStates: list[RuleStatePayload] | None = None
    allSolved: bool | None = None


class GetStatsMessage(InboundMessage):
    type: Literal["get_stats"]


class ReconnectMessage(InboundMessage):
    type: Literal["reconnect"]
    playerId: str


ClientMessage = Annotated[
    Union[
        CreateRoomMessage,
        JoinRoomMessage,
        StartGameMessage,
        StopGameMessage,
        UpdateProgressMessage,
        GetStatsMessage,
        ReconnectMessage,
    ],
    Field(discriminator="type"),
]

client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)


def parse_client_message(raw: str | bytes) -> ClientMessage:
    """Validate one inbound frame.

    Raises ``pydantic.ValidationError`` for non-JSON text, non-object
    payloads, unknown ``type`` values and missing or mistyped fields.
    """
    return client_message_adapter.validate_json(raw)
