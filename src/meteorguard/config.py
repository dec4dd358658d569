"""Runtime settings read from the environment (and .env via python-dotenv at entry points)."""

import logging
import os
from dataclasses import dataclass

from meteorguard.errors import InvalidArgument
from meteorguard.geometry import DEFAULT_POLAR_LIMIT_DEG
from meteorguard.mapview import DEFAULT_TILES
from meteorguard.viewstate import EASE_DURATION_S

DEFAULT_API_URL = "http://localhost:8000"


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise InvalidArgument(f"{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    api_url: str = DEFAULT_API_URL
    request_timeout_s: float = 10.0
    polar_limit_deg: float = DEFAULT_POLAR_LIMIT_DEG
    ease_duration_s: float = EASE_DURATION_S
    map_tiles: str = DEFAULT_TILES
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_url=os.environ.get("METEORGUARD_API_URL") or DEFAULT_API_URL,
            request_timeout_s=_float_env("METEORGUARD_TIMEOUT_S", 10.0),
            polar_limit_deg=_float_env("METEORGUARD_POLAR_LIMIT_DEG", DEFAULT_POLAR_LIMIT_DEG),
            ease_duration_s=_float_env("METEORGUARD_EASE_S", EASE_DURATION_S),
            map_tiles=os.environ.get("METEORGUARD_TILES") or DEFAULT_TILES,
            log_level=(os.environ.get("METEORGUARD_LOG_LEVEL") or "INFO").upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
