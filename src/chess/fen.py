"""
Forsyth-Edwards Notation: validation and the split of a FEN string into its data fields.
"""

from dataclasses import dataclass
from itertools import combinations
from typing import Self

from src.chess.castling import (
    CASTLING_ORDER,
    CastlingDirection,
    castling_from_fen,
    castling_to_fen,
)
from src.chess.pieces import FEN_TO_PIECE, Color
from src.chess.square import BOARD_DIMENSIONS, Square
from src.core.exceptions import InvalidFENError

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
FEN_FIELDS = (
    "piece placement",
    "active side",
    "castling options",
    "en passant square",
    "half move clock",
    "full move number",
)
# every subset of the four rights, always written in KQkq order
VALID_CASTLING_ENCODINGS = ["-"] + [
    "".join(direction.value for direction in subset)
    for size in range(1, len(CASTLING_ORDER) + 1)
    for subset in combinations(CASTLING_ORDER, size)
]


def is_valid_fen(fen: str) -> bool:
    try:
        validate_fen(fen)
    except InvalidFENError:
        return False
    return True


def validate_fen(fen: str) -> list[str]:
    """Split the FEN into its 6 fields. Raises InvalidFENError naming the first field that is wrong."""
    parts = fen.split()
    if len(parts) < len(FEN_FIELDS):
        raise InvalidFENError(f"invalid FEN: missing {FEN_FIELDS[len(parts)]} in {fen!r}")
    if len(parts) > len(FEN_FIELDS):
        raise InvalidFENError(f"invalid FEN: unexpected trailing data in {fen!r}")

    placement, color, castling, en_passant, half_move_clock, full_move_number = parts
    if not is_valid_placement(placement):
        raise InvalidFENError(f"invalid FEN: malformed piece placement {placement!r}")
    if not is_valid_color_code(color):
        raise InvalidFENError(f"invalid FEN: invalid active side {color!r}")
    if not is_valid_castling_rights(castling):
        raise InvalidFENError(f"invalid FEN: invalid castling options {castling!r}")
    if not is_valid_en_passant(en_passant):
        raise InvalidFENError(f"invalid FEN: invalid en passant square {en_passant!r}")
    if not is_valid_move_counter(half_move_clock):
        raise InvalidFENError(f"invalid FEN: invalid half move clock {half_move_clock!r}")
    if not is_valid_move_counter(full_move_number):
        raise InvalidFENError(f"invalid FEN: invalid full move number {full_move_number!r}")
    return parts


def rank_width(rank_fen: str) -> int | None:
    """Number of files one rank of the placement covers, None if it holds an unknown character."""
    width = 0
    for character in rank_fen:
        if character in "12345678":
            width += int(character)
        elif character.lower() in FEN_TO_PIECE:
            width += 1
        else:
            return None
    return width


def is_valid_placement(position: str) -> bool:
    """Eight ranks separated by '/', each exactly eight files wide."""
    num_files, num_ranks = BOARD_DIMENSIONS
    rank_fens = position.split("/")
    return len(rank_fens) == num_ranks and all(
        rank_width(rank_fen) == num_files for rank_fen in rank_fens
    )


def is_valid_color_code(color: str) -> bool:
    """'-' marks a finished game: nobody is to move anymore"""
    return color in {"w", "b", "-"}


def is_valid_castling_rights(castling: str) -> bool:
    return castling in VALID_CASTLING_ENCODINGS


def is_valid_en_passant(en_passant: str) -> bool:
    return en_passant == "-" or is_valid_square(en_passant)


def is_valid_square(square: str) -> bool:
    """Lower case file letter followed by the rank digit, e.g. 'e3'"""
    return square.islower() and Square.from_algebraic(square).is_valid()


def is_valid_move_counter(counter: str) -> bool:
    return counter.isascii() and counter.isdigit()


@dataclass
class FENState:
    """
    The six fields of a FEN string, parsed.

    placement: the board, rank 8 first, '/' between ranks (see Board.from_fen)
    color_to_move: "w", "b", or "-" for a game that has ended
    castling_rights: which of KQkq are still available
    en_passant_square: the square a pawn skipped over on the last move, NO_SQUARE otherwise
    half_move_clock: moves since the last capture or pawn move
    num_turns: starts at 1, goes up after each move by black
    """

    placement: str
    color_to_move: Color
    castling_rights: dict[CastlingDirection, bool]
    en_passant_square: Square
    half_move_clock: int
    num_turns: int

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        """Parse the FEN into data. Raises InvalidFENError."""
        placement, side, castling, en_passant, half_moves, turns = validate_fen(fen)
        return cls(
            placement=placement,
            color_to_move=Color.from_code(side),
            castling_rights=castling_from_fen(castling),
            # '-' gives NO_SQUARE
            en_passant_square=Square.from_algebraic(en_passant),
            half_move_clock=int(half_moves),
            num_turns=int(turns),
        )

    def to_fen(self) -> str:
        fields = [
            self.placement,
            self.color_to_move.code,
            castling_to_fen(self.castling_rights),
            self.en_passant_square.to_algebraic(),
            str(self.half_move_clock),
            str(self.num_turns),
        ]
        return " ".join(fields)

    @classmethod
    def starting_position(cls) -> Self:
        return cls.from_fen(STARTING_FEN)
