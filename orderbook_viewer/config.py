"""Configuration via environment variables with ORDERBOOK_ prefix."""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings

from .types import DepthMode


class Settings(BaseSettings):
    model_config = {"env_prefix": "ORDERBOOK_"}

    # Backend
    base_url: str = "http://localhost:3000"
    orderbook_path: str = "/orderbook"
    push_path: str = "/ws"
    update_event: str = "orderbook"

    # Update gate
    throttle_window_ms: int = 1000

    # Transport
    poll_interval: float = 30.0
    reconnect_delay: float = 1.0
    request_timeout: float = 10.0

    # Depth chart
    depth_mode: DepthMode = DepthMode.FULL
    notional_cap: Decimal = Decimal(5)
    size_cap: Decimal = Decimal(150)

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None
    json_logs: bool = False

    @field_validator(
        "throttle_window_ms", "poll_interval", "reconnect_delay",
        "request_timeout", "notional_cap", "size_cap",
    )
    @classmethod
    def _positive(cls, value):
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @field_validator("base_url")
    @classmethod
    def _strip_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def orderbook_url(self) -> str:
        return f"{self.base_url}{self.orderbook_path}"

    @property
    def push_url(self) -> str:
        """Push endpoint on the same host: http(s) becomes ws(s)."""
        if self.base_url.startswith("https://"):
            base = "wss://" + self.base_url[len("https://"):]
        elif self.base_url.startswith("http://"):
            base = "ws://" + self.base_url[len("http://"):]
        else:
            base = self.base_url
        return f"{base}{self.push_path}"

    @property
    def throttle_window_sec(self) -> float:
        return self.throttle_window_ms / 1000


@lru_cache
def get_settings() -> Settings:
    return Settings()
