"""Orchestration of communication from API router to business logic, engine and persistence layers (and the reverse direction)."""

import logging
from functools import partial
from typing import Callable, Optional, Self
from uuid import UUID

from src.api.models import (
    ClaimDrawRequest,
    CreateGameRequest,
    DeleteGameRequest,
    GameResponse,
    GetGameRequest,
    JoinGameRequest,
    LegalMovesRequest,
    LegalMovesResponse,
    ListGamesRequest,
    MoveRequest,
    PlayerActionRequest,
    TimeControlLossRequest,
    WarResultRequest,
)
from src.chess.events import DrawType, LossType, describe_event
from src.chess.game import Game, Result
from src.chess.pieces import Color as DomainColor
from src.chess.position import Position
from src.chess.square import Square
from src.core.config import EngineSettings
from src.core.exceptions import (
    EngineError,
    EngineLaunchError,
    GameStateError,
    IllegalMoveError,
    InvalidRequestError,
    NotYourTurnError,
    RepositoryError,
)
from src.core.models import GameModel
from src.core.shared_types import Color, DrawType as ClaimableDraw, Status
from src.db.repository import GameRepository
from src.engine.client import EngineClient

logger = logging.getLogger(__name__)

EngineFactory = Callable[[], EngineClient]

DRAW_CLAIMS: dict[ClaimableDraw, DrawType] = {
    ClaimableDraw.FIFTY_MOVE: DrawType.FIFTY_MOVE,
    ClaimableDraw.THREEFOLD_REPETITION: DrawType.THREEFOLD_REPETITION,
}


class ChessService:
    """Orchestration of layers for chess game."""

    def __init__(
        self,
        repository: GameRepository,
        engine_factory: Optional[EngineFactory] = None,
        engine_name: str = "engine",
    ) -> None:
        self.repo = repository
        self.engine_factory = engine_factory
        self.engine_name = engine_name
        # one engine process per game with an engine opponent, launched when first needed
        self.engines: dict[UUID, EngineClient] = {}

    @classmethod
    def from_settings(cls, repository: GameRepository, settings: EngineSettings) -> Self:
        """Engine opponents are only available if an engine program is configured."""
        factory: Optional[EngineFactory] = None
        if settings.program_path:
            factory = partial(EngineClient, settings)
        return cls(repository, factory, settings.player_name)

    def close(self) -> None:
        """Shut down all engine processes"""
        for game_id in list(self.engines):
            self._close_engine(game_id)

    # -- API routes logic ---
    def create_new_game(self, request: CreateGameRequest) -> GameResponse:
        """First player requested to create a new game (against another player or against the engine)."""
        if request.against_engine and self.engine_factory is None:
            raise InvalidRequestError("No engine is available to play against.")

        position = (
            Position.from_fen(request.starting_fen)
            if request.starting_fen
            else Position.starting()
        )
        game = Game.from_position(position)
        players = {request.color.value: request.player_name}
        engine_color: Optional[str] = None
        if request.against_engine:
            engine_color = _opposite(request.color).value
            players[engine_color] = self.engine_name

        model = GameModel(
            record=game.to_record(),
            registered_players=players,
            status=Status.WAITING_FOR_PLAYERS,
            engine_color=engine_color,
            starting_fen=position.to_fen() if request.starting_fen else None,
        )
        _, game_id = self.repo.create_game(model)

        self._play_engine_turns(game_id, game, model)
        return self._store(game_id, game, model)

    def join_game(self, request: JoinGameRequest) -> GameResponse:
        """Second player requested to join a game."""
        model = self._fetch_game(request.game_id)
        if model.status != Status.WAITING_FOR_PLAYERS:
            raise GameStateError(
                f"Cannot join this game. Game is not accepting new players. status: {model.status}"
            )

        open_color = next(
            color.value for color in Color if color.value not in model.registered_players
        )
        model.registered_players[open_color] = request.player_name
        game = _load_game(model)
        return self._store(request.game_id, game, model)

    def get_game_state(self, request: GetGameRequest) -> GameResponse:
        """
        Retrieve current game state.
        ----
        Used in "polling" loop by frontend to check when it is the player's turn for instance.
        """
        model = self._fetch_game(request.game_id)
        return self._create_game_response(request.game_id, _load_game(model), model)

    def list_games(self, request: ListGamesRequest) -> list[GameResponse]:
        """Show all recorded games (optionally only those with a given status)."""
        status = request.status.value if request.status else None
        return [
            self._create_game_response(game_id, _load_game(model), model)
            for game_id, model in self.repo.list_games(status)
        ]

    def legal_moves(self, request: LegalMovesRequest) -> LegalMovesResponse:
        """retrieve set of legal moves (in compact notation: e2e4)."""
        model = self._fetch_game(request.game_id)
        game = _load_game(model)
        color = self._assert_your_turn(model, game, request.player_name)
        return LegalMovesResponse(
            game_id=request.game_id,
            player_name=request.player_name,
            color=color,
            legal_moves=[move.to_uci() for move in game.possible_moves],
        )

    def make_move(self, request: MoveRequest) -> GameResponse:
        """Make a move attempt. If the opponent is the engine, it replies right away."""
        model = self._fetch_game(request.game_id)
        game = _load_game(model)
        self._assert_your_turn(model, game, request.player_name)

        move = game.find_possible_move(
            Square.from_algebraic(request.from_square),
            Square.from_algebraic(request.to_square),
        )
        if move is None:
            raise IllegalMoveError(
                f"Move not allowed: {request.from_square}-{request.to_square}"
            )
        game.make_move(move)

        self._play_engine_turns(request.game_id, game, model)
        return self._store(request.game_id, game, model)

    def resign(self, request: PlayerActionRequest) -> GameResponse:
        """Only possible when it is your turn"""
        model = self._fetch_game(request.game_id)
        game = _load_game(model)
        self._assert_your_turn(model, game, request.player_name)
        game.record_loss(LossType.RESIGNATION, game.active_color)
        return self._store(request.game_id, game, model)

    def claim_draw(self, request: ClaimDrawRequest) -> GameResponse:
        """Claim a draw by the fifty move rule or threefold repetition. Only possible when it is your turn."""
        model = self._fetch_game(request.game_id)
        game = _load_game(model)
        self._assert_your_turn(model, game, request.player_name)
        game.record_draw(DRAW_CLAIMS[request.draw_type])
        return self._store(request.game_id, game, model)

    def agree_draw(self, request: PlayerActionRequest) -> GameResponse:
        """The opponent offered a draw and the requesting player accepts it."""
        model = self._fetch_game(request.game_id)
        game = _load_game(model)
        self._assert_registered(model, request.player_name)
        self._assert_in_progress(model)
        game.record_draw(DrawType.BY_AGREEMENT)
        return self._store(request.game_id, game, model)

    def record_time_control_loss(self, request: TimeControlLossRequest) -> GameResponse:
        model = self._fetch_game(request.game_id)
        game = _load_game(model)
        self._assert_in_progress(model)
        game.record_loss(LossType.TIME_CONTROL, _to_domain(request.color))
        return self._store(request.game_id, game, model)

    def record_war_result(self, request: WarResultRequest) -> GameResponse:
        model = self._fetch_game(request.game_id)
        game = _load_game(model)
        self._assert_in_progress(model)
        victor = _to_domain(request.victor) if request.victor else DomainColor.NONE
        game.record_war_result(victor)
        return self._store(request.game_id, game, model)

    def delete_game(self, request: DeleteGameRequest) -> None:
        """Handle a request to delete a Game record."""
        self._close_engine(request.game_id)
        if self.repo.delete_game(request.game_id) is None:
            raise RepositoryError(f"Game with game_id={request.game_id} not found.")

    # -- Engine opponent --
    def _play_engine_turns(self, game_id: UUID, game: Game, model: GameModel) -> None:
        """
        Let the engine move for as long as it is its turn
        ----

        If the engine fails in any way, the game continues without it: the human player takes over the engine's pieces.
        """
        while game.result == Result.ONGOING and self._is_engine_turn(game, model):
            try:
                engine = self._engine_for(game_id, game)
                engine.set_position(game.position)
                budget = engine.start_calculation()
                best_move = engine.wait_for_best_move(budget)
            except EngineError as e:
                self._disable_engine(game_id, model, str(e))
                return

            if engine.has_resigned():
                engine.take_best_move()
                game.record_loss(LossType.RESIGNATION, game.active_color)
                break

            move = game.find_possible_move_by_code(engine.take_best_move())
            if move is None:
                self._disable_engine(game_id, model, f"impossible move {best_move!r}")
                return
            game.make_move(move)

    def _is_engine_turn(self, game: Game, model: GameModel) -> bool:
        return model.engine_color is not None and model.engine_color == _from_domain(
            game.active_color
        )

    def _engine_for(self, game_id: UUID, game: Game) -> EngineClient:
        """The running engine for this game, or a freshly launched one"""
        engine = self.engines.get(game_id)
        if engine is None:
            if self.engine_factory is None:
                raise EngineLaunchError("no engine program configured")
            engine = self.engine_factory()
            self.engines[game_id] = engine
            engine.start_game(game.position)
        return engine

    def _disable_engine(self, game_id: UUID, model: GameModel, reason: str) -> None:
        """Continue the game without engine: the human player now controls both sides."""
        logger.warning(
            "Engine opponent of game %s failed (%s). Continuing without engine.",
            game_id,
            reason,
        )
        self._close_engine(game_id)
        if model.engine_color is None:
            return
        human = next(
            name
            for color, name in model.registered_players.items()
            if color != model.engine_color
        )
        model.registered_players[model.engine_color] = human
        model.engine_color = None

    def _close_engine(self, game_id: UUID) -> None:
        engine = self.engines.pop(game_id, None)
        if engine is None:
            return
        try:
            engine.close()
        except EngineError as e:
            logger.warning("Could not shut down engine of game %s cleanly: %s", game_id, e)

    # -- Internal helpers --
    def _store(self, game_id: UUID, game: Game, model: GameModel) -> GameResponse:
        """Capture updated state in GameModel, store it and respond with it."""
        if game.result != Result.ONGOING:
            self._close_engine(game_id)
        model.record = game.to_record()
        model.status = _status(game, model)
        model.victor = _from_domain(game.victor)
        if self.repo.update_game(game_id, model) is None:
            raise RepositoryError(f"Game with {game_id=} not found.")
        return self._create_game_response(game_id, game, model)

    def _create_game_response(self, game_id: UUID, game: Game, model: GameModel) -> GameResponse:
        last_event = game.last_event
        return GameResponse(
            game_id=game_id,
            players=model.registered_players,
            status=Status(model.status),
            victor=Color(model.victor) if model.victor else None,
            fen_state=game.position.to_fen(),
            record=model.record,
            move_history=[entry.event.to_notation() for entry in game.history],
            last_event=describe_event(last_event) if last_event else None,
            in_check=game.result == Result.ONGOING and game.is_in_check(),
            engine_color=Color(model.engine_color) if model.engine_color else None,
            engine_available=model.engine_color is not None,
        )

    def _fetch_game(self, game_id: UUID) -> GameModel:
        """Attempt to find the game in the repository and raise error if it fails."""
        game_model = self.repo.get_game(game_id)
        if game_model is None:
            raise RepositoryError(f"Game with {game_id=} not found.")
        return game_model

    def _assert_in_progress(self, model: GameModel) -> None:
        if model.status != Status.IN_PROGRESS:
            raise GameStateError(f"Game is not in progress. status: {model.status}")

    def _assert_registered(self, model: GameModel, player: str) -> None:
        if player not in model.registered_players.values():
            raise NotYourTurnError(f"Player {player} does not take part in this game.")

    def _assert_your_turn(self, model: GameModel, game: Game, player: str) -> Color:
        """You must wait for your turn before calculating legal moves / making a move. Returns the color you play."""
        self._assert_in_progress(model)
        color = _from_domain(game.active_color)
        player_to_move = model.registered_players.get(color) if color else None
        if player != player_to_move:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for player {player_to_move} to make a move first."
            )
        return Color(color)


def _load_game(model: GameModel) -> Game:
    return Game.from_record(model.record, model.starting_fen)


def _status(game: Game, model: GameModel) -> Status:
    match game.result:
        case Result.WON:
            return Status.WON
        case Result.DRAWN:
            return Status.DRAWN
    if len(model.registered_players) < len(Color):
        return Status.WAITING_FOR_PLAYERS
    return Status.IN_PROGRESS


def _opposite(color: Color) -> Color:
    return Color.BLACK if color == Color.WHITE else Color.WHITE


def _to_domain(color: Color) -> DomainColor:
    return DomainColor[color.name]


def _from_domain(color: DomainColor) -> Optional[str]:
    """None for Color.NONE"""
    if not color.is_valid():
        return None
    return Color[color.name].value
