import argparse
import asyncio
import logging

from .server import GameServer, ServerConfig


def main() -> None:
    parser = argparse.ArgumentParser(description="Schwimmen/31 game server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=3002)
    parser.add_argument("--ai-delay-min-ms", type=int, default=1_000, help="Shortest pause before an AI move")
    parser.add_argument("--ai-delay-max-ms", type=int, default=2_000, help="Longest pause before an AI move")
    parser.add_argument("--dealer-delay-ms", type=int, default=1_500, help="Pause before an AI dealer picks a set")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    if args.ai_delay_max_ms < args.ai_delay_min_ms:
        parser.error("--ai-delay-max-ms must not be smaller than --ai-delay-min-ms")

    config = ServerConfig(
        ai_delay_min=args.ai_delay_min_ms / 1000,
        ai_delay_max=args.ai_delay_max_ms / 1000,
        dealer_delay=args.dealer_delay_ms / 1000,
    )
    server = GameServer(config)
    asyncio.run(server.start(host=args.host, port=args.port))


if __name__ == "__main__":
    main()
