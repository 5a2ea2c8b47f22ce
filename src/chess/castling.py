"""Castling directions, their rights and the squares involved"""

from dataclasses import dataclass
from enum import Enum
from typing import Self

from src.chess.pieces import Color
from src.chess.square import Square


class CastlingDirection(Enum):
    """Values are the letters used in the castling field of a FEN string."""

    WHITE_KING_SIDE = "K"
    WHITE_QUEEN_SIDE = "Q"
    BLACK_KING_SIDE = "k"
    BLACK_QUEEN_SIDE = "q"

    @property
    def color(self) -> Color:
        return Color.WHITE if self.value.isupper() else Color.BLACK

    @property
    def is_king_side(self) -> bool:
        return self.value.lower() == "k"


CASTLING_ORDER: tuple[CastlingDirection, ...] = (
    CastlingDirection.WHITE_KING_SIDE,
    CastlingDirection.WHITE_QUEEN_SIDE,
    CastlingDirection.BLACK_KING_SIDE,
    CastlingDirection.BLACK_QUEEN_SIDE,
)


@dataclass(frozen=True)
class CastlingSquares:
    """
    Where king and rook start and land for one castling direction.
    A right that has not been revoked implies both pieces are still on their start squares.

    `passed` are the squares between king and rook that must be empty. The king crosses `king_passes` on its way,
    so that one (and `king_to`) may not be under attack.
    """

    king_from: Square
    king_to: Square
    rook_from: Square
    rook_to: Square
    passed: tuple[Square, ...]

    @property
    def king_passes(self) -> Square:
        # the rook ends up on the square the king crosses
        return self.rook_to

    @classmethod
    def from_algebraic(cls, *names: str) -> Self:
        """king from, king to, rook from, rook to, then the squares in between"""
        king_from, king_to, rook_from, rook_to, *between = [
            Square.from_algebraic(name) for name in names
        ]
        return cls(king_from, king_to, rook_from, rook_to, tuple(between))


CASTLING_RULES: dict[CastlingDirection, CastlingSquares] = {
    CastlingDirection.WHITE_KING_SIDE: CastlingSquares.from_algebraic(
        "e1", "g1", "h1", "f1", "f1", "g1"
    ),
    CastlingDirection.WHITE_QUEEN_SIDE: CastlingSquares.from_algebraic(
        "e1", "c1", "a1", "d1", "d1", "c1", "b1"
    ),
    CastlingDirection.BLACK_KING_SIDE: CastlingSquares.from_algebraic(
        "e8", "g8", "h8", "f8", "f8", "g8"
    ),
    CastlingDirection.BLACK_QUEEN_SIDE: CastlingSquares.from_algebraic(
        "e8", "c8", "a8", "d8", "d8", "c8", "b8"
    ),
}


def castling_directions(color: Color) -> list[CastlingDirection]:
    """king side first, then queen side"""
    return [direction for direction in CASTLING_ORDER if direction.color == color]


def castling_from_fen(castle_fen: str) -> dict[CastlingDirection, bool]:
    """parse the part of the FEN string that encodes castling rights"""
    return {
        direction: (direction.value in castle_fen) for direction in CastlingDirection
    }


def castling_to_fen(castling_rights: dict[CastlingDirection, bool]) -> str:
    """create the part of the FEN string that encodes castling rights"""
    castling_chars = "".join(
        [direction.value for direction in CASTLING_ORDER if castling_rights[direction]]
    )
    return castling_chars or "-"


def no_castling_rights() -> dict[CastlingDirection, bool]:
    return {direction: False for direction in CastlingDirection}
