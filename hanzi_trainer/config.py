from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

VOCAB_PATH_ENV = "HANZI_VOCAB_PATH"
CANVAS_PX_ENV = "HANZI_CANVAS_PX"
SEED_ENV = "HANZI_SEED"
LOG_LEVEL_ENV = "HANZI_LOG_LEVEL"

MIN_CANVAS_PX = 120
MAX_CANVAS_PX = 1000


@dataclass(frozen=True, slots=True)
class TrainerConfig:
    vocab_path: Path | None = None
    canvas_px: int = 300
    seed: int | None = None
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if not (MIN_CANVAS_PX <= self.canvas_px <= MAX_CANVAS_PX):
            raise ValueError(f"canvas_px must be in [{MIN_CANVAS_PX}, {MAX_CANVAS_PX}]")
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"unknown log level: {self.log_level!r}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "TrainerConfig":
        env = os.environ if environ is None else environ

        raw_path = env.get(VOCAB_PATH_ENV, "").strip()
        raw_px = env.get(CANVAS_PX_ENV, "").strip()
        raw_seed = env.get(SEED_ENV, "").strip()
        raw_level = env.get(LOG_LEVEL_ENV, "").strip().upper()

        return cls(
            vocab_path=Path(raw_path).expanduser() if raw_path else None,
            canvas_px=_parse_int(CANVAS_PX_ENV, raw_px) if raw_px else 300,
            seed=_parse_int(SEED_ENV, raw_seed) if raw_seed else None,
            log_level=raw_level or "WARNING",
        )


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
