"""Configuration helpers for the client runtime."""

from __future__ import annotations

import os
from dataclasses import dataclass

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ClientSettings:
    server_url: str | None
    room_id: str
    player_name: str
    role: str
    host: str
    port: int
    default_duration_seconds: float
    ui_tick_ms: int
    fx_ttl_ms: int
    crit_ttl_ms: int
    muted: bool
    log_level: str


def load_settings() -> ClientSettings:
    port_raw = os.getenv("DNDMESA_PORT", "8100")
    return ClientSettings(
        server_url=os.getenv("DNDMESA_SERVER_URL"),
        room_id=os.getenv("DNDMESA_ROOM", ""),
        player_name=os.getenv("DNDMESA_NAME", ""),
        role=os.getenv("DNDMESA_ROLE", "player"),
        host=os.getenv("DNDMESA_HOST", "127.0.0.1"),
        port=int(port_raw),
        default_duration_seconds=float(os.getenv("DNDMESA_TURN_SECONDS", "60")),
        ui_tick_ms=int(os.getenv("DNDMESA_TICK_MS", "150")),
        fx_ttl_ms=int(os.getenv("DNDMESA_FX_TTL_MS", "1200")),
        crit_ttl_ms=int(os.getenv("DNDMESA_CRIT_TTL_MS", "1400")),
        muted=os.getenv("DNDMESA_MUTED", "0").strip().lower() in _TRUE_VALUES,
        log_level=os.getenv("DNDMESA_LOG_LEVEL", "INFO").upper(),
    )
