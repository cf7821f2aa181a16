from __future__ import annotations

import asyncio
import logging
import secrets
import string
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Set

from schwimmen.errors import RoomError
from schwimmen.models import GameConfig
from schwimmen.table import GameTable

LOGGER = logging.getLogger("schwimmen_server")

ROOM_ID_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class GameRoom:
    # A room exclusively owns its table; connections only point back by id.
    id: str
    table: GameTable
    connections: Dict[str, Any] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    ai_tasks: Set[asyncio.Task] = field(default_factory=set)
    rejected_actions: int = 0

    def unclaimed_human_seat(self) -> Optional[str]:
        for player_id in self.table.human_player_ids():
            if player_id not in self.connections:
                return player_id
        return None

    async def wait_for_ai(self) -> None:
        """Block until no AI move is queued; each move may queue the next one."""
        while self.ai_tasks:
            await asyncio.gather(*list(self.ai_tasks), return_exceptions=True)


class RoomRegistry:
    def __init__(self, id_length: int = 6) -> None:
        self.id_length = id_length
        self.rooms: Dict[str, GameRoom] = {}

    def create(self, config: GameConfig, creator_name: str) -> GameRoom:
        room_id = self._new_room_id()
        room = GameRoom(id=room_id, table=GameTable(config, creator_name=creator_name))
        self.rooms[room_id] = room
        LOGGER.info(
            "Room %s created by %s (humans=%s ai=%s lives=%s)",
            room_id,
            creator_name,
            config.human_players,
            config.ai_players,
            config.starting_lives,
        )
        return room

    def get(self, room_id: str) -> GameRoom:
        room = self.rooms.get(self._normalize(room_id))
        if room is None:
            raise RoomError("Room not found")
        return room

    def claim_seat(self, room: GameRoom, player_name: str, connection: Any) -> str:
        player_id = room.unclaimed_human_seat()
        if player_id is None:
            raise RoomError("Room is full")
        room.table.rename_player(player_id, player_name)
        room.connections[player_id] = connection
        LOGGER.info("Room %s seat %s claimed by %s", room.id, player_id, player_name)
        return player_id

    def _normalize(self, room_id: str) -> str:
        return room_id.strip().lower()

    def _new_room_id(self) -> str:
        while True:
            room_id = "".join(secrets.choice(ROOM_ID_ALPHABET) for _ in range(self.id_length))
            if room_id not in self.rooms:
                return room_id
