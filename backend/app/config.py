"""Environment-driven settings."""

from __future__ import annotations

import os
from dataclasses import dataclass

FEED_SOURCES = ("finnhub", "simulator")


@dataclass(frozen=True)
class Settings:
    finnhub_api_key: str = ""
    finnhub_ws_url: str = "wss://ws.finnhub.io"
    feed_source: str = "finnhub"
    port: int = 3001
    frontend_url: str = "http://localhost:3000"
    reconnect_delay: float = 5.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        """Read settings from the process environment, falling back to defaults."""
        env = os.environ
        return cls(
            finnhub_api_key=env.get("FINNHUB_API_KEY", "").strip(),
            finnhub_ws_url=env.get("FINNHUB_WS_URL", cls.finnhub_ws_url).strip(),
            feed_source=env.get("FEED_SOURCE", cls.feed_source).strip().lower(),
            port=int(env.get("PORT", cls.port)),
            frontend_url=env.get("FRONTEND_URL", cls.frontend_url).strip(),
            reconnect_delay=float(env.get("RECONNECT_DELAY", cls.reconnect_delay)),
            log_level=env.get("LOG_LEVEL", cls.log_level).strip().upper(),
        )
