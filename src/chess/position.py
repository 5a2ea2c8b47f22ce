"""
Representation of a single position: the board plus the state needed to judge legality (everything a FEN string encodes).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Self

from src.chess.board import Board
from src.chess.castling import (
    CASTLING_RULES,
    CastlingDirection,
    castling_directions,
    no_castling_rights,
)
from src.chess.events import Capture, Castling, Event, Move, TwoSquarePawnMove
from src.chess.fen import STARTING_FEN, FENState
from src.chess.moves import ATTACK_RULES
from src.chess.pieces import EMPTY_SQUARE, Color, Piece, PieceType
from src.chess.square import ALL_SQUARES, NO_SQUARE, Square, SquareShade
from src.core.exceptions import IllegalMoveError


@dataclass(eq=False)
class Position:
    board: Board
    active_color: Color = Color.WHITE
    castling_rights: dict[CastlingDirection, bool] = field(
        default_factory=no_castling_rights
    )
    en_passant_square: Square = NO_SQUARE
    half_move_clock: int = 0
    full_move_number: int = 1

    # --- CONSTRUCTION / SERIALIZATION ---
    @classmethod
    def starting(cls) -> Self:
        return cls.from_fen(STARTING_FEN)

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        """Raises InvalidFENError if the FEN is malformed"""
        state = FENState.from_fen(fen)
        return cls(
            board=Board.from_fen(state.placement),
            active_color=state.color_to_move,
            castling_rights=state.castling_rights,
            en_passant_square=state.en_passant_square,
            half_move_clock=state.half_move_clock,
            full_move_number=state.num_turns,
        )

    def to_fen(self) -> str:
        return FENState(
            placement=self.board.to_fen(),
            color_to_move=self.active_color,
            castling_rights=self.castling_rights,
            en_passant_square=self.en_passant_square,
            half_move_clock=self.half_move_clock,
            num_turns=self.full_move_number,
        ).to_fen()

    def copy(self) -> Self:
        """Scratch copy, used to try out moves"""
        return type(self)(
            board=self.board.copy(),
            active_color=self.active_color,
            castling_rights=dict(self.castling_rights),
            en_passant_square=self.en_passant_square,
            half_move_clock=self.half_move_clock,
            full_move_number=self.full_move_number,
        )

    def __eq__(self, other: object) -> bool:
        """
        Positions are the same if the same side is to move with the same options on the same board.
        The move counters do not matter (used for the threefold repetition rule).
        """
        if not isinstance(other, Position):
            return NotImplemented
        return (
            self.board == other.board
            and self.active_color == other.active_color
            and self.castling_rights == other.castling_rights
            and self.en_passant_square == other.en_passant_square
        )

    # --- QUERIES ---
    def piece_at(self, square: Square) -> Piece:
        """Tolerant access: anything off the board is simply empty"""
        if not square.is_valid():
            return EMPTY_SQUARE
        return self.board.piece(square)

    def is_under_attack(self, square: Square, attacker: Color) -> bool:
        """
        Could a piece of the `attacker` side take on this square?
        Whether the attacker would expose its own king by doing so is irrelevant here.
        """
        return any(
            is_attacked_by(square, attacker, self)
            for is_attacked_by in ATTACK_RULES.values()
        )

    def is_in_check(self, color: Color = Color.NONE) -> bool:
        """Defaults to the active side"""
        if color == Color.NONE:
            color = self.active_color
        king = Piece(PieceType.KING, color)
        return any(
            self.is_under_attack(square, color.opponent)
            for square in self.board.locate(king)
        )

    def is_dead(self) -> bool:
        """
        Insufficient material
        ----

        Only these patterns of remaining (non-king) material are recognized:
        * nothing at all
        * a single knight
        * any number of bishops, all on squares of the same shade

        Other dead positions exist, but are not detected.
        """
        num_knights = 0
        bishop_shades: set[SquareShade] = set()
        for square in ALL_SQUARES:
            piece = self.piece_at(square)
            match piece.type:
                case PieceType.EMPTY | PieceType.KING:
                    continue
                case PieceType.KNIGHT:
                    num_knights += 1
                case PieceType.BISHOP:
                    bishop_shades.add(square.shade())
                case _:
                    # pawn, rook or queen: can still mate
                    return False

        if num_knights <= 1 and not bishop_shades:
            return True
        if num_knights > 1:
            return False
        # NOTE: a lone knight together with bishops of a single shade also counts as dead.
        return len(bishop_shades) == 1

    # --- STATE TRANSITIONS ---
    def apply(self, event: Event) -> None:
        """
        Play the move on this position
        ----

        1. remove the captured piece (not on the target square for en passant)
        2. move the piece (promoting it if needed) and, when castling, the rook
        3. revoke castling rights
        4. hand the turn to the opponent
        5. set the en passant square (only after a two square pawn move)
        6. update the move counters
        """
        if not isinstance(event, Move) or not event.valid:
            raise IllegalMoveError(f"cannot apply event to position: {event!r}")

        original_type = event.piece.type
        piece = (
            event.promoted_piece if event.promoted_piece.is_valid() else event.piece
        )

        if isinstance(event, Capture):
            self.board.remove_piece(event.captured_square)

        self.board.remove_piece(event.from_square)
        self.board.place_piece(piece, event.to_square)

        if isinstance(event, Castling):
            self.board.remove_piece(event.rook_from)
            self.board.place_piece(event.rook_piece, event.rook_to)

        self._revoke_castling_rights(event, original_type)

        self.active_color = event.side.opponent

        self.en_passant_square = (
            event.passed_square if isinstance(event, TwoSquarePawnMove) else NO_SQUARE
        )

        if original_type == PieceType.PAWN or isinstance(event, Capture):
            self.half_move_clock = 0
        else:
            self.half_move_clock += 1

        if event.side == Color.BLACK:
            self.full_move_number += 1

    def end_game(self) -> None:
        """Nobody is to move anymore. The full move number stays as it is."""
        self.active_color = Color.NONE
        self.castling_rights = no_castling_rights()
        self.en_passant_square = NO_SQUARE
        self.half_move_clock = 0

    def _revoke_castling_rights(self, move: Move, original_type: PieceType) -> None:
        """
        1. Moving your king revokes both of your rights
        2. Moving a rook away from its starting square revokes the rights in the direction of that rook
           (a rook that was just promoted does not count)
        3. Taking your opponent's rook on its starting square revokes the rights in the direction of that rook
        """
        color = move.side
        if original_type == PieceType.KING:
            for direction in castling_directions(color):
                self.castling_rights[direction] = False
        elif original_type == PieceType.ROOK:
            for direction in castling_directions(color):
                if move.from_square == CASTLING_RULES[direction].rook_from:
                    self.castling_rights[direction] = False

        if isinstance(move, Capture) and move.captured_piece.type == PieceType.ROOK:
            for direction in castling_directions(color.opponent):
                if move.captured_square == CASTLING_RULES[direction].rook_from:
                    self.castling_rights[direction] = False
