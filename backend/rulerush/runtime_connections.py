from __future__ import annotations

from fastapi import WebSocket


class ConnectionDirectory:
    """Live websocket <-> player id association.

    A connection maps to at most one player and a player to at most one
    connection. Rebuilt on every reconnect; never part of room state.
    """

    def __init__(self) -> None:
        self._players_by_connection: dict[WebSocket, str] = {}

    def __len__(self) -> int:
        return len(self._players_by_connection)

    def bind(self, connection: WebSocket, player_id: str) -> None:
        for other, bound_player_id in list(self._players_by_connection.items()):
            if bound_player_id == player_id and other is not connection:
                del self._players_by_connection[other]
        self._players_by_connection[connection] = player_id

    def unbind(self, connection: WebSocket) -> str | None:
        return self._players_by_connection.pop(connection, None)

    def player_for(self, connection: WebSocket) -> str | None:
        return self._players_by_connection.get(connection)

    def connection_for(self, player_id: str) -> WebSocket | None:
        for connection, bound_player_id in self._players_by_connection.items():
            if bound_player_id == player_id:
                return connection
        return None

    def clear(self) -> None:
        self._players_by_connection.clear()
