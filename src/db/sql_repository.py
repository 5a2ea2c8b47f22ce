"""GameRepository backed by a SQL database through SQLAlchemy"""

from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.core.models import GameModel
from src.db.schema import DBGame


class SQLGameRepository:
    """One row of the games table per game. Every write is committed right away."""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_game(self, game_id: UUID) -> GameModel | None:
        """None for an unknown id"""
        game_db = self._fetch_game(game_id)
        if game_db:
            return self._to_model(game_db)
        return None

    def list_games(self, status: Optional[str] = None) -> list[tuple[UUID, GameModel]]:
        query = select(DBGame).order_by(DBGame.created_at)
        if status is not None:
            query = query.where(DBGame.status == status)
        return [(game_db.id, self._to_model(game_db)) for game_db in self.db.scalars(query)]

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """The id is generated here, not by the database."""
        new_id = uuid4()
        game_db = DBGame(id=new_id)
        self._copy_fields(game, game_db)
        self.db.add(game_db)
        self.db.commit()
        self.db.refresh(game_db)
        return self._to_model(game_db), new_id

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        """Overwrite the record of an existing game."""
        game_db = self._fetch_game(game_id)
        if not game_db:
            return None
        self._copy_fields(game, game_db)
        self.db.commit()
        self.db.refresh(game_db)
        return self._to_model(game_db)

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Returns the deleted game, None if there was nothing to delete."""
        game_db = self._fetch_game(game_id)
        if not game_db:
            return None
        game_model = self._to_model(game_db)
        self.db.delete(game_db)
        self.db.commit()
        return game_model

    def _fetch_game(self, game_id: UUID) -> DBGame | None:
        return self.db.get(DBGame, game_id)

    @staticmethod
    def _copy_fields(game: GameModel, game_db: DBGame) -> None:
        game_db.record = game.record
        # new dict, so SQLAlchemy notices the change of the JSON column
        game_db.registered_players = dict(game.registered_players)
        game_db.status = game.status
        game_db.victor = game.victor
        game_db.engine_color = game.engine_color
        game_db.starting_fen = game.starting_fen

    def _to_model(self, game_db: DBGame) -> GameModel:
        """Row to GameModel, with its own copy of the players dict"""
        return GameModel(
            record=game_db.record,
            registered_players=dict(game_db.registered_players),
            status=game_db.status,
            victor=game_db.victor,
            engine_color=game_db.engine_color,
            starting_fen=game_db.starting_fen,
        )
