"""Protocol repository: where game records are kept between requests (SQL database, in memory for tests, ...)"""

from typing import Optional, Protocol
from uuid import UUID

from src.core.models import GameModel


class GameRepository(Protocol):
    def get_game(self, game_id: UUID) -> GameModel | None:
        """None if there is no record with this ID"""
        ...

    def list_games(self, status: Optional[str] = None) -> list[tuple[UUID, GameModel]]:
        """All stored games (optionally only those with the given status), oldest first."""
        ...

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Store new game and return the stored data + newly created game ID."""
        ...

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        """Overwrite the record of an existing game. None if there is no such game."""
        ...

    def delete_game(self, game_id: UUID) -> GameModel | None: ...
