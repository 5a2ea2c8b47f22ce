"""
Application settings.

Settings are plain pydantic models with sensible defaults, optionally overridden from a YAML file:

    engine:
      program_path: /usr/games/fruit
      difficulty: normal
      openings_book: /usr/share/fruit/book_small.bin
    database:
      url: sqlite:///chess.db
    log_level: DEBUG
"""

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from src.core.shared_types import Difficulty

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class EngineSettings(BaseModel):
    """How to launch and talk to the engine subprocess. No program path means: no engine opponent available."""

    program_path: Optional[str] = None
    arguments: list[str] = Field(default_factory=list)
    difficulty: Difficulty = Difficulty.HARD
    openings_book: Optional[str] = None
    debug: bool = False
    player_name: str = "engine"
    # Reply polling: wait `reply_poll_interval` seconds per attempt, give up after `reply_poll_limit` empty attempts.
    reply_poll_interval: float = Field(default=0.001, gt=0)
    reply_poll_limit: int = Field(default=250, ge=1)
    # Seconds to wait for the process to exit after "quit"
    shutdown_timeout: float = Field(default=1.0, ge=0)


class DatabaseSettings(BaseModel):
    url: str = "sqlite:///chess.db"
    echo: bool = False


class Settings(BaseModel):
    engine: EngineSettings = Field(default_factory=EngineSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    log_level: str = "INFO"


def load_settings(path: Optional[Path] = None) -> Settings:
    """Read settings from a YAML file. Without a file (or with an empty one) the defaults are used."""
    if path is None:
        return Settings()

    with open(path, encoding="utf-8") as stream:
        raw = yaml.safe_load(stream) or {}
    return Settings.model_validate(raw)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
