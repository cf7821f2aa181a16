from __future__ import annotations

import asyncio
import json
import logging
import random
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Dict, Optional

import websockets
from websockets.asyncio.server import ServerConnection, serve

from schwimmen.cards import Card
from schwimmen.errors import IllegalAction, RoomError
from schwimmen.models import GameConfig, Phase

from .rooms import GameRoom, RoomRegistry

LOGGER = logging.getLogger("schwimmen_server")

# GameServer glues the table engine to WebSocket clients. Every network
# concern lives here; GameTable stays synchronous and free of I/O.

ROOM_MESSAGES = ("start-round", "continue-game", "dealer-decision", "player-action")


@dataclass
class ServerConfig:
    ai_delay_min: float = 1.0
    ai_delay_max: float = 2.0
    dealer_delay: float = 1.5
    room_id_length: int = 6


@dataclass
class ClientSession:
    room_id: str
    player_id: str
    websocket: Any


class GameServer:
    def __init__(self, config: Optional[ServerConfig] = None, rng: Optional[random.Random] = None) -> None:
        self.config = config or ServerConfig()
        self.rng = rng or random.Random()
        self.registry = RoomRegistry(id_length=self.config.room_id_length)
        self.sessions: Dict[Any, ClientSession] = {}

    async def start(self, host: str = "0.0.0.0", port: int = 3002) -> None:
        async with serve(self._handle_connection, host, port, process_request=_process_request):
            LOGGER.info("Schwimmen server listening on %s:%s", host, port)
            await asyncio.Future()

    async def _handle_connection(self, websocket: ServerConnection) -> None:
        LOGGER.info("Client connected from %s", getattr(websocket, "remote_address", None))
        try:
            async for raw in websocket:
                await self.handle_message(websocket, raw)
        except websockets.ConnectionClosed:
            pass
        finally:
            self._disconnect(websocket)
        LOGGER.info("Client disconnected")

    async def handle_message(self, websocket: Any, raw: Any) -> None:
        message = self._decode(raw)
        if message is None:
            LOGGER.warning("Unparseable message dropped")
            await self._send_error(websocket, "Invalid message")
            return

        msg_type = message.get("type")
        if msg_type == "create-game":
            await self._handle_create(websocket, message)
        elif msg_type == "join-game":
            await self._handle_join(websocket, message)
        elif msg_type in ROOM_MESSAGES:
            session = self.sessions.get(websocket)
            room = self.registry.rooms.get(session.room_id) if session else None
            if session is None or room is None:
                await self._send_error(websocket, "Not in a game")
                return
            await self._handle_room_message(websocket, session, room, message)
        else:
            LOGGER.warning("Unknown message type %r", msg_type)
            await self._send_error(websocket, "Unknown message type")

    # Lobby -----------------------------------------------------------

    async def _handle_create(self, websocket: Any, message: Dict[str, Any]) -> None:
        try:
            config = GameConfig.from_payload(message.get("config"))
        except ValueError as exc:
            await self._send_error(websocket, str(exc))
            return

        self._disconnect(websocket)
        name = _player_name(message.get("playerName"), "Player 1")
        room = self.registry.create(config, name)
        async with room.lock:
            player_id = room.table.state.players[0].id
            room.connections[player_id] = websocket
            self.sessions[websocket] = ClientSession(room_id=room.id, player_id=player_id, websocket=websocket)
            await self._send_json(websocket, "game-created", {"roomId": room.id, "playerId": player_id})
            await self._broadcast_state(room)

    async def _handle_join(self, websocket: Any, message: Dict[str, Any]) -> None:
        room_id = message.get("roomId")
        try:
            if not isinstance(room_id, str):
                raise RoomError("Room not found")
            room = self.registry.get(room_id)
        except RoomError as exc:
            LOGGER.info("Join rejected room=%r reason=%s", room_id, exc.message)
            await self._send_error(websocket, exc.message)
            return

        async with room.lock:
            name = _player_name(message.get("playerName"), "Player")
            try:
                player_id = self.registry.claim_seat(room, name, websocket)
            except RoomError as exc:
                LOGGER.info("Join rejected room=%s reason=%s", room.id, exc.message)
                await self._send_error(websocket, exc.message)
                return
            previous = self.sessions.get(websocket)
            if previous is not None and (previous.room_id, previous.player_id) != (room.id, player_id):
                self._disconnect(websocket)
            self.sessions[websocket] = ClientSession(room_id=room.id, player_id=player_id, websocket=websocket)
            await self._send_json(websocket, "game-joined", {"roomId": room.id, "playerId": player_id})
            await self._broadcast_state(room)

    # Game flow -------------------------------------------------------

    async def _handle_room_message(
        self,
        websocket: Any,
        session: ClientSession,
        room: GameRoom,
        message: Dict[str, Any],
    ) -> None:
        msg_type = message["type"]
        player_id = session.player_id

        card_to_exchange: Optional[Card] = None
        public_card_to_take: Optional[Card] = None
        if msg_type == "player-action":
            try:
                if message.get("cardToExchange") is not None:
                    card_to_exchange = Card.from_payload(message["cardToExchange"])
                if message.get("publicCardToTake") is not None:
                    public_card_to_take = Card.from_payload(message["publicCardToTake"])
            except ValueError as exc:
                LOGGER.warning("Bad card in message room=%s player=%s: %s", room.id, player_id, exc)
                await self._send_error(websocket, "Invalid card")
                return
        if msg_type == "dealer-decision" and not isinstance(message.get("keepSeenSet"), bool):
            await self._send_error(websocket, "keepSeenSet must be a boolean")
            return

        async with room.lock:
            table = room.table
            try:
                if msg_type == "start-round":
                    table.start_round()
                elif msg_type == "continue-game":
                    table.start_round(continuing=True)
                elif msg_type == "dealer-decision":
                    table.process_dealer_decision(player_id, message["keepSeenSet"])
                else:
                    table.process_player_action(
                        player_id,
                        message.get("action"),  # type: ignore[arg-type]
                        card_to_exchange,
                        public_card_to_take,
                    )
            except IllegalAction as exc:
                self._reject(room, player_id, message.get("action") or msg_type, exc)
                return
            await self._broadcast_state(room)
            self._schedule_ai(room)

    def _reject(self, room: GameRoom, player_id: str, action: object, exc: IllegalAction) -> None:
        # Illegal moves are dropped without a reply; the client simply re-renders.
        room.rejected_actions += 1
        LOGGER.warning(
            "Rejected action room=%s player=%s action=%s reason=%s",
            room.id,
            player_id,
            action,
            exc.reason,
        )

    # AI scheduling ---------------------------------------------------

    def _schedule_ai(self, room: GameRoom) -> Optional[asyncio.Task]:
        player = room.table.pending_ai_player()
        if player is None:
            return None
        if room.table.state.phase == Phase.DEALER_DECISION:
            delay = self.config.dealer_delay
        else:
            delay = self.rng.uniform(self.config.ai_delay_min, self.config.ai_delay_max)
        task = asyncio.create_task(self._run_ai_turn(room, player.id, room.table.version, delay))
        room.ai_tasks.add(task)
        task.add_done_callback(room.ai_tasks.discard)
        LOGGER.debug("Scheduled AI %s in room %s after %.2fs", player.id, room.id, delay)
        return task

    async def _run_ai_turn(self, room: GameRoom, player_id: str, version: int, delay: float) -> None:
        await asyncio.sleep(delay)
        async with room.lock:
            if room.table.version != version:
                LOGGER.debug("Stale AI turn for %s in room %s dropped", player_id, room.id)
                return
            try:
                room.table.decide_for_ai(player_id)
            except IllegalAction as exc:
                self._reject(room, player_id, "ai-turn", exc)
                return
            except Exception as exc:  # noqa: BLE001
                LOGGER.exception("AI turn crashed in room %s: %s", room.id, exc)
                raise
            await self._broadcast_state(room)
            self._schedule_ai(room)

    # Transport helpers -----------------------------------------------

    async def _broadcast_state(self, room: GameRoom) -> None:
        targets = list(room.connections.items())
        if not targets:
            return
        await asyncio.gather(
            *(
                self._send_json(
                    websocket,
                    "game-state",
                    {"gameState": room.table.snapshot_payload(player_id), "yourPlayerId": player_id},
                )
                for player_id, websocket in targets
            ),
            return_exceptions=True,
        )

    def _disconnect(self, websocket: Any) -> None:
        session = self.sessions.pop(websocket, None)
        if session is None:
            return
        room = self.registry.rooms.get(session.room_id)
        if room and room.connections.get(session.player_id) is websocket:
            del room.connections[session.player_id]
            LOGGER.info("Player %s left room %s", session.player_id, room.id)

    async def _send_json(self, websocket: Any, msg_type: str, payload: Dict[str, object]) -> None:
        try:
            await websocket.send(self._envelope(msg_type, payload))
        except websockets.ConnectionClosed:
            pass

    async def _send_error(self, websocket: Any, message: str) -> None:
        await self._send_json(websocket, "error", {"message": message})

    def _envelope(self, msg_type: str, payload: Dict[str, object]) -> str:
        body: Dict[str, object] = {"type": msg_type}
        body.update(payload)
        return json.dumps(body)

    def _decode(self, raw: Any) -> Optional[Dict[str, Any]]:
        try:
            message = json.loads(raw)
        except (json.JSONDecodeError, TypeError, UnicodeDecodeError):
            return None
        return message if isinstance(message, dict) else None


def _player_name(raw: object, default: str) -> str:
    if isinstance(raw, str) and raw.strip():
        return raw.strip()[:32]
    return default


def _process_request(connection: ServerConnection, request: Any) -> Any:
    """Answer plain HTTP health checks; let WebSocket upgrades through."""
    if request.headers.get("Upgrade", "").lower() == "websocket":
        return None
    if request.path in {"/", "/health", "/healthz"}:
        return connection.respond(HTTPStatus.OK, "schwimmen server running\n")
    return connection.respond(HTTPStatus.NOT_FOUND, "not found\n")
