# Role: Central configuration module. Loads .env into environment variables and computes runtime settings.
# Importers read travel_assistant.config.<NAME> at call time, so settings stay correct after load_env()
# and tests can monkeypatch them without threading flags through every call.

from __future__ import annotations

import os
from dotenv import load_dotenv

DEBUG: bool = False

# Model rounds per turn (first call + follow-ups after capability results).
MAX_MODEL_ROUNDS: int = 2

# Heuristic layer confidence when none of its checks fired.
HEURISTIC_CLEAN_CONFIDENCE: float = 0.7

# "two_layer" (heuristic + judge) or "three_layer" (heuristic + common sense + conditional judge).
DETECTION_MODE: str = "two_layer"

NETWORK_TIMEOUT_SECONDS: float = 15.0
CAPABILITY_MAX_WORKERS: int = 4

# Max conversation threads the Gemini adapter keeps behind continuation tokens.
PROVIDER_THREAD_CACHE_SIZE: int = 1000


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    try:
        value = int(os.getenv(name, str(default)))
    except ValueError:
        return default
    return max(value, minimum)


def _env_float(name: str, default: float, low: float = 0.0, high: float | None = None) -> float:
    try:
        value = float(os.getenv(name, str(default)))
    except ValueError:
        return default
    value = max(value, low)
    return min(value, high) if high is not None else value


def load_env() -> None:
    """
    Load .env into os.environ, then recompute every setting.
    This makes settings correct even if load_env() is called after import.
    """
    global DEBUG, MAX_MODEL_ROUNDS, HEURISTIC_CLEAN_CONFIDENCE, DETECTION_MODE
    global NETWORK_TIMEOUT_SECONDS, CAPABILITY_MAX_WORKERS, PROVIDER_THREAD_CACHE_SIZE
    load_dotenv()
    # Key line: accept common truthy values.
    DEBUG = os.getenv("DEBUG", "0").lower() in {"1", "true", "yes"}

    MAX_MODEL_ROUNDS = _env_int("MAX_MODEL_ROUNDS", 2)
    HEURISTIC_CLEAN_CONFIDENCE = _env_float("HEURISTIC_CLEAN_CONFIDENCE", 0.7, high=1.0)

    mode = os.getenv("DETECTION_MODE", "two_layer").strip().lower()
    DETECTION_MODE = mode if mode in {"two_layer", "three_layer"} else "two_layer"

    NETWORK_TIMEOUT_SECONDS = _env_float("NETWORK_TIMEOUT_SECONDS", 15.0, low=1.0)
    CAPABILITY_MAX_WORKERS = _env_int("CAPABILITY_MAX_WORKERS", 4)
    PROVIDER_THREAD_CACHE_SIZE = _env_int("PROVIDER_THREAD_CACHE_SIZE", 1000)
