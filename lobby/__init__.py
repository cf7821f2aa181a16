"""Lobby package: rooms, WebSocket protocol and AI pacing around GameTable."""

from .rooms import GameRoom, RoomRegistry
from .server import ClientSession, GameServer, ServerConfig

__all__ = ["ClientSession", "GameRoom", "GameServer", "RoomRegistry", "ServerConfig"]
