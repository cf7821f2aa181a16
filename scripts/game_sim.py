#!/usr/bin/env python3
"""Play complete games against the server's AI seats.

This script spins up the game server in-process, connects one scripted
client that creates a room and plays the human seat with the same heuristic
the AI seats use. Handy for watching a whole game scroll past in the logs.

Example:
    python scripts/game_sim.py --ai-players 3 --lives 2 --games 5
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import random
from typing import Any, Dict, Optional

import websockets

from lobby.server import GameServer, ServerConfig
from schwimmen.ai import get_ai_action, get_ai_dealer_decision
from schwimmen.cards import Card

LOGGER = logging.getLogger("game_sim")


def choose_message(state: Dict[str, Any], you: str, rng: random.Random) -> Optional[Dict[str, Any]]:
    """Return the message the scripted human should send for ``state``, if any."""
    phase = state["phase"]
    players = state["players"]
    me = next(player for player in players if player["id"] == you)

    if phase == "dealer-decision" and me["isDealer"]:
        seen_index = state["seenSetIndex"]
        seen = [Card.from_payload(card) for card in state["dealerSets"][seen_index]]
        decision = get_ai_dealer_decision(seen, rng)
        return {"type": "dealer-decision", "keepSeenSet": decision.keep_seen_set}

    if phase in ("playing", "last-round") and players[state["currentPlayerIndex"]]["id"] == you:
        hand = [Card.from_payload(card) for card in me["hand"]]
        public = [Card.from_payload(card) for card in state["publicCards"]]
        choice = get_ai_action(hand, public, state["hasFirstRoundCompleted"], phase == "last-round", rng)
        message: Dict[str, Any] = {"type": "player-action", "action": choice.action.value}
        if choice.card_to_exchange and choice.public_card_to_take:
            message["cardToExchange"] = choice.card_to_exchange.to_payload()
            message["publicCardToTake"] = choice.public_card_to_take.to_payload()
        return message

    if phase == "round-end":
        return {"type": "continue-game"}
    return None


async def play_game(url: str, args: argparse.Namespace, rng: random.Random) -> Dict[str, Any]:
    async with websockets.connect(url) as ws:
        await ws.send(
            json.dumps(
                {
                    "type": "create-game",
                    "playerName": "SimPlayer",
                    "config": {"humanPlayers": 1, "aiPlayers": args.ai_players, "startingLives": args.lives},
                }
            )
        )
        you: Optional[str] = None
        started = False
        last_sent: Optional[tuple] = None
        while True:
            raw = await asyncio.wait_for(ws.recv(), timeout=args.timeout)
            message = json.loads(raw)
            msg_type = message.get("type")
            if msg_type == "game-created":
                you = message["playerId"]
                LOGGER.info("Room %s created", message["roomId"])
                continue
            if msg_type == "error":
                LOGGER.warning("Server error: %s", message.get("message"))
                continue
            if msg_type != "game-state" or you is None:
                continue

            state = message["gameState"]
            if state["phase"] == "game-end":
                return state
            if not started and state["phase"] == "setup":
                started = True
                await ws.send(json.dumps({"type": "start-round"}))
                continue

            reply = choose_message(state, you, rng)
            # Every broadcast repeats the state; answer each turn only once.
            marker = (
                state["roundNumber"],
                state["phase"],
                state["currentPlayerIndex"],
                json.dumps(state["lastAction"], sort_keys=True),
            )
            if reply is not None and marker != last_sent:
                last_sent = marker
                await ws.send(json.dumps(reply))


async def run_simulation(args: argparse.Namespace) -> None:
    server = GameServer(
        ServerConfig(
            ai_delay_min=args.ai_delay_ms / 1000,
            ai_delay_max=args.ai_delay_ms / 1000,
            dealer_delay=args.ai_delay_ms / 1000,
        ),
        rng=random.Random(args.seed),
    )
    server_task = asyncio.create_task(server.start(args.host, args.port))
    await asyncio.sleep(0.5)  # give the socket time to bind

    rng = random.Random(args.seed)
    try:
        for game_idx in range(args.games):
            final = await play_game(f"ws://{args.host}:{args.port}", args, rng)
            survivors = [player["name"] for player in final["players"] if not player["isEliminated"]]
            LOGGER.info(
                "Game %s finished after %s rounds; winner=%s",
                game_idx + 1,
                final["roundNumber"],
                survivors[0] if survivors else None,
            )
    finally:
        server_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await server_task


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run scripted Schwimmen games against the AI seats")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=9002)
    parser.add_argument("--ai-players", type=int, default=3)
    parser.add_argument("--lives", type=int, default=3)
    parser.add_argument("--games", type=int, default=1)
    parser.add_argument("--ai-delay-ms", type=int, default=20)
    parser.add_argument("--timeout", type=float, default=30.0, help="max seconds to wait for any server message")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))
    try:
        asyncio.run(run_simulation(args))
    except KeyboardInterrupt:
        LOGGER.info("Simulation interrupted; shutting down")


if __name__ == "__main__":
    main()
