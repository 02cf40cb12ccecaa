# scorer_api/config.py
from __future__ import annotations

import os
from dotenv import load_dotenv

# Load .env from project root
load_dotenv()


def _get_env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, str(default))
    try:
        return float(raw)
    except ValueError:
        return default


# -------------------------
# Match defaults
# -------------------------
DEFAULT_TOTAL_OVERS: int = _get_env_int("DEFAULT_TOTAL_OVERS", 20)

# Semi-finals generated from the group tables are short games
KNOCKOUT_TOTAL_OVERS: int = _get_env_int("KNOCKOUT_TOTAL_OVERS", 10)


# -------------------------
# Snapshot persistence (local JSON file)
# -------------------------
SNAPSHOT_ENABLED: bool = _get_env("SNAPSHOT_ENABLED", "1") == "1"
SNAPSHOT_PATH: str = _get_env("SNAPSHOT_PATH", "data/tournament.json")


# -------------------------
# Remote sync (OPTIONAL, fire-and-forget)
# -------------------------
SYNC_ENABLED: bool = _get_env("SYNC_ENABLED", "0") == "1"
SYNC_URL: str = _get_env("SYNC_URL")
SYNC_API_KEY: str = _get_env("SYNC_API_KEY")
SYNC_TIMEOUT_SECONDS: float = _get_env_float("SYNC_TIMEOUT_SECONDS", 5.0)

# Incoming remote snapshots are ignored for this long after a local write
SYNC_SUPPRESS_SECONDS: int = _get_env_int("SYNC_SUPPRESS_SECONDS", 3)


LOG_LEVEL: str = _get_env("LOG_LEVEL", "INFO").upper()


def validate_config() -> None:
    if DEFAULT_TOTAL_OVERS <= 0:
        raise RuntimeError("DEFAULT_TOTAL_OVERS must be positive")

    if KNOCKOUT_TOTAL_OVERS <= 0:
        raise RuntimeError("KNOCKOUT_TOTAL_OVERS must be positive")

    if SNAPSHOT_ENABLED and not SNAPSHOT_PATH:
        raise RuntimeError("SNAPSHOT_PATH must be set when SNAPSHOT_ENABLED=1")

    # If enabled, enforce a usable endpoint
    if SYNC_ENABLED:
        if not SYNC_URL.startswith("http"):
            raise RuntimeError("SYNC_URL must start with http/https when SYNC_ENABLED=1")

    if SYNC_TIMEOUT_SECONDS <= 0:
        raise RuntimeError("SYNC_TIMEOUT_SECONDS must be positive")

    if SYNC_SUPPRESS_SECONDS < 0:
        raise RuntimeError("SYNC_SUPPRESS_SECONDS cannot be negative")

    if LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise RuntimeError(f"Invalid LOG_LEVEL: {LOG_LEVEL}")
