"""Requests and Response models"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, field_validator

from src.chess.fen import validate_fen
from src.chess.square import Square
from src.core.exceptions import InvalidFENError, InvalidRequestError
from src.core.models import PlayerName, SideName
from src.core.shared_types import Color, DrawType, PieceType, Status


# --- REQUEST MODELS ---
class CreateGameRequest(BaseModel):
    """Without an engine opponent, the game waits for a second player to join."""

    player_name: str
    color: Color
    against_engine: bool = False
    starting_fen: Optional[str] = None

    @field_validator("starting_fen")
    @classmethod
    def validate_starting_fen(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        try:
            validate_fen(value.strip())
        except InvalidFENError as e:
            raise InvalidRequestError(str(e)) from e
        return value.strip()


class JoinGameRequest(BaseModel):
    game_id: UUID
    player_name: str


class LegalMovesRequest(BaseModel):
    game_id: UUID
    player_name: str


class MoveRequest(BaseModel):
    game_id: UUID
    player_name: str
    from_square: str
    to_square: str
    # Pawns are always promoted to a queen. Accepted so clients can state their intention.
    promote_to: Optional[PieceType] = None

    @field_validator("from_square", "to_square")
    @classmethod
    def validate_square(cls, value: str) -> str:
        if not Square.from_algebraic(value).is_valid():
            raise InvalidRequestError(
                f"Cannot interpret {value!r} as a valid square name."
            )
        return value.lower()


class PlayerActionRequest(BaseModel):
    """Resigning, or agreeing to a draw"""

    game_id: UUID
    player_name: str


class ClaimDrawRequest(BaseModel):
    game_id: UUID
    player_name: str
    draw_type: DrawType


class TimeControlLossRequest(BaseModel):
    """The clock (not a player) reports which side ran out of time."""

    game_id: UUID
    color: Color


class WarResultRequest(BaseModel):
    """End the game outside of the chess rules. No victor means a draw."""

    game_id: UUID
    victor: Optional[Color] = None


class GetGameRequest(BaseModel):
    game_id: UUID


class ListGamesRequest(BaseModel):
    status: Optional[Status] = None


class DeleteGameRequest(BaseModel):
    game_id: UUID


# --- RESPONSE MODELS ---
class GameResponse(BaseModel):
    game_id: UUID
    players: dict[SideName, PlayerName]
    status: Status
    victor: Optional[Color]
    fen_state: str
    record: str
    move_history: list[str]
    last_event: Optional[str]
    in_check: bool
    engine_color: Optional[Color]
    # False once an engine opponent failed (or if there never was one)
    engine_available: bool


class LegalMovesResponse(BaseModel):
    game_id: UUID
    player_name: str
    color: Color
    legal_moves: list[str]
