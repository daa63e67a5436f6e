import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from widebf.brainfuck import DEFAULT_MEMORY_SIZE

load_dotenv()


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class RunConfig:
    """Interpreter settings, read from BF_* environment variables (and .env)."""
    memory_size: int = DEFAULT_MEMORY_SIZE
    step_limit: Optional[int] = None  # None or 0: run to completion
    max_loop_depth: Optional[int] = None
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> 'RunConfig':
        step_limit = _env_int("BF_STEP_LIMIT", None)
        return cls(
            memory_size=_env_int("BF_MEMORY_SIZE", DEFAULT_MEMORY_SIZE),
            step_limit=step_limit or None,
            max_loop_depth=_env_int("BF_MAX_LOOP_DEPTH", None),
            log_level=os.environ.get("BF_LOG_LEVEL", "WARNING").upper(),
        )
