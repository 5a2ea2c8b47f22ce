"""Squares as (file, rank) pairs counted from 1, with NO_SQUARE for anything off the board"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from string import ascii_lowercase

# (files, ranks)
BOARD_DIMENSIONS = (8, 8)
FILE_NAMES = ascii_lowercase[: BOARD_DIMENSIONS[0]]
RANK_NAMES = "".join(str(rank) for rank in range(1, BOARD_DIMENSIONS[1] + 1))


class SquareShade(Enum):
    NONE = auto()
    LIGHT = auto()
    DARK = auto()


@dataclass(frozen=True)
class Square:
    """
    Files and ranks are 1-based: a1 is (1, 1), h8 is (8, 8).
    Anything outside of the board is not a usable square; use NO_SQUARE to denote "no square at all".
    """

    file: int
    rank: int

    @classmethod
    def from_algebraic(cls, sq: str) -> Square:
        """Algebraic notation: 'a1' - 'h8' get converted to (1,1) - (8,8). Anything else gives NO_SQUARE."""
        if len(sq) != 2:
            return NO_SQUARE
        file_char, rank_char = sq[0].lower(), sq[1]
        if file_char not in FILE_NAMES or rank_char not in RANK_NAMES:
            return NO_SQUARE
        return cls(FILE_NAMES.index(file_char) + 1, RANK_NAMES.index(rank_char) + 1)

    def to_algebraic(self) -> str:
        if not self.is_valid():
            return "-"
        return f"{chr(self.file + ord('a') - 1)}{self.rank}"

    def is_valid(self) -> bool:
        return (1 <= self.file <= BOARD_DIMENSIONS[0]) and (
            1 <= self.rank <= BOARD_DIMENSIONS[1]
        )

    def offset(self, df: int, dr: int) -> Square:
        """Step along a vector. Stepping off the board (or from an invalid square) never wraps around: you get NO_SQUARE."""
        if not self.is_valid():
            return NO_SQUARE
        target = Square(self.file + df, self.rank + dr)
        return target if target.is_valid() else NO_SQUARE

    def shade(self) -> SquareShade:
        """a1 is a dark square"""
        if not self.is_valid():
            return SquareShade.NONE
        return SquareShade.DARK if self.file % 2 == self.rank % 2 else SquareShade.LIGHT


NO_SQUARE = Square(0, 0)

# file-major: a1, b1, ..., h1, a2, ...
ALL_SQUARES: tuple[Square, ...] = tuple(
    Square(file, rank)
    for rank in range(1, BOARD_DIMENSIONS[1] + 1)
    for file in range(1, BOARD_DIMENSIONS[0] + 1)
)
