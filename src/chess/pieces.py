"""Defines the sides and the types of chess pieces"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Self

from src.chess.square import BOARD_DIMENSIONS


class PieceType(Enum):
    EMPTY = auto()
    KING = auto()
    QUEEN = auto()
    ROOK = auto()
    BISHOP = auto()
    KNIGHT = auto()
    PAWN = auto()


class Color(Enum):
    NONE = auto()
    WHITE = auto()
    BLACK = auto()

    @property
    def opponent(self) -> Color:
        if self == Color.WHITE:
            return Color.BLACK
        if self == Color.BLACK:
            return Color.WHITE
        return Color.NONE

    @property
    def facing_direction(self) -> int:
        """White moves UP the board, black moves DOWN"""
        return {Color.WHITE: 1, Color.BLACK: -1}.get(self, 0)

    @property
    def code(self) -> str:
        return {Color.WHITE: "w", Color.BLACK: "b"}.get(self, "-")

    @classmethod
    def from_code(cls, code: str) -> Color:
        return {"w": Color.WHITE, "b": Color.BLACK}.get(code.lower(), Color.NONE)

    def is_valid(self) -> bool:
        return self != Color.NONE


FEN_TO_PIECE: dict[str, PieceType] = {
    "k": PieceType.KING,
    "q": PieceType.QUEEN,
    "r": PieceType.ROOK,
    "b": PieceType.BISHOP,
    "n": PieceType.KNIGHT,
    "p": PieceType.PAWN,
}

PIECE_TO_FEN: dict[PieceType, str] = {value: key for key, value in FEN_TO_PIECE.items()}

PIECE_NAMES: dict[PieceType, str] = {
    piece_type: piece_type.name.lower()
    for piece_type in PieceType
    if piece_type != PieceType.EMPTY
}


@dataclass(frozen=True)
class Piece:
    type: PieceType
    color: Color

    @classmethod
    def from_fen(cls, character: str) -> Self:
        """lower case: Black pieces, upper case: White pieces. Unknown characters give an empty square."""
        piece_type = FEN_TO_PIECE.get(character.lower()) if len(character) == 1 else None
        if piece_type is None:
            return cls(PieceType.EMPTY, Color.NONE)
        color = Color.WHITE if character.isupper() else Color.BLACK
        return cls(piece_type, color)

    def to_fen(self) -> str:
        """Empty string for an empty square (or any other invalid piece)"""
        if not self.is_valid():
            return ""
        return (
            PIECE_TO_FEN[self.type].upper()
            if self.color == Color.WHITE
            else PIECE_TO_FEN[self.type]
        )

    def is_valid(self) -> bool:
        return self.type != PieceType.EMPTY and self.color != Color.NONE

    def initial_rank(self) -> int:
        """Rank the piece starts the game on. 0 if there is no such thing."""
        if not self.is_valid():
            return 0
        if self.color == Color.WHITE:
            return 2 if self.type == PieceType.PAWN else 1
        last_rank = BOARD_DIMENSIONS[1]
        return last_rank - 1 if self.type == PieceType.PAWN else last_rank

    def promoted(self, new_type: PieceType) -> Piece:
        return Piece(new_type, self.color)

    @property
    def name(self) -> str:
        if not self.is_valid():
            return "nothing"
        return f"{self.color.name.lower()} {PIECE_NAMES[self.type]}"


EMPTY_SQUARE = Piece(PieceType.EMPTY, Color.NONE)
