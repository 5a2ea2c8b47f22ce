"""
The model that crosses layer boundaries.

The API layer, the service, and the repositories only ever exchange GameModel.
The domain Game and the DBGame row stay private to their own layer.
"""

from dataclasses import dataclass
from typing import Optional

# "white" / "black"
SideName = str
PlayerName = str


@dataclass
class GameModel:
    """One stored game.

    `record` holds the current FEN followed by the notation of every event so far.
    Together with `starting_fen` (None for the standard start) that is enough for Game.from_record
    to rebuild the full history.
    """

    record: str
    registered_players: dict[SideName, PlayerName]
    status: str
    victor: Optional[SideName] = None
    engine_color: Optional[SideName] = None
    starting_fen: Optional[str] = None
