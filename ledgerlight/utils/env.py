from __future__ import annotations

import os
from typing import Callable, List, TypeVar

from dotenv import load_dotenv

# Load .env once on import so every entrypoint sees the same settings.
load_dotenv()

T = TypeVar("T")


def _env_str(name: str, default: str = "") -> str:
    """Read a string env var, stripping whitespace."""
    return (os.getenv(name, default) or "").strip()


def _env_bool(name: str, default: bool = False) -> bool:
    """Read a boolean env var with common truthy values."""
    raw = _env_str(name, str(default)).lower()
    return raw in {"y", "yes", "t", "true", "on", "1"}


def _env_number(name: str, default: T, cast: Callable[[str], T]) -> T:
    # Under TESTING=true a non-empty `TEST_<NAME>` wins over `<NAME>`.
    if _env_bool("TESTING", False):
        override = _env_str(f"TEST_{name}", "")
        if override:
            return cast(override)
    return cast(_env_str(name, str(default)))


def _env_int(name: str, default: int = 0) -> int:
    return _env_number(name, default, int)


def _env_float(name: str, default: float = 0.0) -> float:
    return _env_number(name, default, float)


def _env_list(name: str) -> List[str]:
    """Read a comma and/or whitespace separated list env var."""
    raw = _env_str(name, "")
    return [item for item in raw.replace(",", " ").split() if item]
