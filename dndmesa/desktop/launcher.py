"""Desktop launcher for the local combat view server."""

from __future__ import annotations

import argparse
import logging
import sys
import webbrowser
from dataclasses import replace

from dndmesa.client.api import create_app
from dndmesa.client.config import ClientSettings, load_settings
from dndmesa.client.session import CombatSession
from dndmesa.client.transport import create_transport

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="DND Mesa combat view")
    parser.add_argument("--server", default=None)
    parser.add_argument("--room", default=None)
    parser.add_argument("--name", default=None)
    parser.add_argument("--role", choices=["dm", "player"], default=None)
    parser.add_argument("--host", default=None)
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--muted", action="store_true")
    parser.add_argument("--open-browser", action="store_true")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace, base: ClientSettings) -> ClientSettings:
    settings = replace(
        base,
        server_url=args.server if args.server is not None else base.server_url,
        room_id=args.room if args.room is not None else base.room_id,
        player_name=args.name if args.name is not None else base.player_name,
        role=args.role if args.role is not None else base.role,
        host=args.host if args.host is not None else base.host,
        port=args.port if args.port is not None else base.port,
        muted=args.muted or base.muted,
    )
    if not settings.server_url:
        raise RuntimeError("A server URL is required (--server or DNDMESA_SERVER_URL)")
    if not settings.room_id or not settings.player_name:
        raise RuntimeError("Room and player name are required (--room/--name)")
    return settings


def build_view_url(settings: ClientSettings) -> str:
    return f"http://{settings.host}:{settings.port}/api/view"


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    base = load_settings()
    logging.basicConfig(level=base.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        settings = build_settings(args, base)
    except RuntimeError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    transport = create_transport(
        server_url=settings.server_url,
        room_id=settings.room_id,
        player_name=settings.player_name,
        role=settings.role,
    )
    app = create_app(session=CombatSession(settings=settings, transport=transport))

    import uvicorn

    if args.open_browser:
        webbrowser.open(build_view_url(settings))
    logger.info("Serving combat view on %s", build_view_url(settings))
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
