"""Exceptions shared by the table engine and the lobby server."""


class GameError(Exception):
    pass


class IllegalAction(GameError, ValueError):
    """An action that must be dropped without touching the game state."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class RoomError(GameError):
    """Registry failure that is reported back to the client verbatim."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
