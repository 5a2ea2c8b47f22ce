"""The Board is the configuration of pieces on the 64 squares (the first field of a FEN string)"""

from dataclasses import dataclass
from itertools import groupby
from typing import Self

from src.chess.fen import is_valid_placement
from src.chess.pieces import EMPTY_SQUARE, Color, Piece
from src.chess.square import ALL_SQUARES, BOARD_DIMENSIONS, Square
from src.core.exceptions import InvalidFENError, InvalidSquareError

STARTING_PLACEMENT = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"
EMPTY_CHAR = "."


@dataclass
class Board:
    position: dict[Square, Piece]

    @classmethod
    def empty(cls) -> Self:
        return cls({square: EMPTY_SQUARE for square in ALL_SQUARES})

    @classmethod
    def from_fen(cls, fen_str: str) -> Self:
        """Construct a board from the piece placement field of a FEN string.

        Ranks run from 8 down to 1, each read from the a-file towards the h-file.
        Letters are pieces (upper case for white), digits count empty squares:
        rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR is the starting position.
        """
        if not is_valid_placement(fen_str):
            raise InvalidFENError(f"invalid FEN: malformed piece placement {fen_str!r}")

        position: dict[Square, Piece] = {}
        top_rank = BOARD_DIMENSIONS[1]
        for rank, rank_fen in zip(range(top_rank, 0, -1), fen_str.split("/")):
            expanded = "".join(
                EMPTY_CHAR * int(char) if char in "12345678" else char for char in rank_fen
            )
            for file, char in enumerate(expanded, start=1):
                position[Square(file, rank)] = (
                    EMPTY_SQUARE if char == EMPTY_CHAR else Piece.from_fen(char)
                )
        return cls(position)

    @classmethod
    def starting(cls) -> Self:
        return cls.from_fen(STARTING_PLACEMENT)

    def to_fen(self) -> str:
        return "/".join(
            self.rank_to_fen(rank) for rank in range(BOARD_DIMENSIONS[1], 0, -1)
        )

    def rank_to_fen(self, rank: int) -> str:
        """Runs of empty squares collapse into a single digit"""
        pieces = [
            self.piece(Square(file, rank)) for file in range(1, BOARD_DIMENSIONS[0] + 1)
        ]
        chunks = []
        for occupied, group in groupby(pieces, key=Piece.is_valid):
            run = list(group)
            chunks.append(
                "".join(piece.to_fen() for piece in run) if occupied else str(len(run))
            )
        return "".join(chunks)

    def piece(self, square: Square) -> Piece:
        """Strict access: asking for a square that is not on the board is a programming error."""
        if not square.is_valid():
            raise InvalidSquareError(f"invalid square specified: {square}")
        return self.position[square]

    def is_empty(self, square: Square) -> bool:
        return not self.piece(square).is_valid()

    def place_piece(self, piece: Piece, square: Square) -> None:
        if not square.is_valid():
            raise InvalidSquareError(f"invalid square specified: {square}")
        self.position[square] = piece

    def remove_piece(self, square: Square) -> None:
        self.place_piece(EMPTY_SQUARE, square)

    def locate(self, piece: Piece) -> list[Square]:
        """file-major order"""
        return [square for square in ALL_SQUARES if self.position[square] == piece]

    def locate_color(self, color: Color) -> list[Square]:
        return [
            square for square in ALL_SQUARES if self.position[square].color == color
        ]

    def copy(self) -> Self:
        # Pieces are immutable, so a shallow copy of the mapping is enough
        return type(self)(dict(self.position))
