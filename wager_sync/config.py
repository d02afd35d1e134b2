# wager_sync/config.py
"""
Configuration for the wager sync client and the authority service.

This module centralizes all tunable settings (authority URL, request timeout,
storage paths, simulator cadence and probabilities, and logging level).
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, returning default on missing/invalid values."""
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    """Read a float environment variable, returning default on missing/invalid values."""
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    """
    Read a boolean-ish environment variable.

    Treats these as false: 0, false, no, off
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off")


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable app configuration.

    Client side:
      - api_base_url / request_timeout_seconds: authority endpoint and deadline
      - user_id: account the local session acts for
      - replica_path: directory holding the local replica blob

    Authority side:
      - data_path: directory holding the durable {games, user} document
      - sim_*: event simulator cadence and distribution bounds
    """

    # Client settings
    api_base_url: str = os.getenv("API_BASE_URL", "http://localhost:3001/api")
    user_id: str = os.getenv("USER_ID", "user123")
    request_timeout_seconds: float = _env_float("REQUEST_TIMEOUT_SECONDS", 5.0)
    replica_path: str = os.getenv("REPLICA_PATH", os.path.expanduser("~/.wager_sync"))

    # Authority settings
    data_path: str = os.getenv("DATA_PATH", "./data")
    port: int = _env_int("PORT", 3001)
    sim_enabled: bool = _env_bool("SIM_ENABLED", True)
    sim_interval_seconds: float = _env_float("SIM_INTERVAL_SECONDS", 30.0)
    sim_update_probability: float = _env_float("SIM_UPDATE_PROBABILITY", 0.3)
    sim_max_score_delta: int = _env_int("SIM_MAX_SCORE_DELTA", 2)

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    def __post_init__(self):
        """Clamp values that would make the simulator misbehave."""
        # dataclass frozen => use object.__setattr__
        p = min(max(self.sim_update_probability, 0.0), 1.0)
        object.__setattr__(self, "sim_update_probability", p)
        if self.sim_interval_seconds <= 0:
            object.__setattr__(self, "sim_interval_seconds", 30.0)
        if self.sim_max_score_delta < 0:
            object.__setattr__(self, "sim_max_score_delta", 0)


def configure_logging(level: str = "INFO") -> None:
    """Install one root handler with a timestamped format."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
