"""
The Game class is the entrypoint into the domain layer for the service layer.
It keeps the current position, the history of events that lead up to it and the moves that are possible right now,
and it decides when (and how) the game has ended.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import NamedTuple, Optional, Self

from src.chess.castling import CASTLING_RULES, castling_directions
from src.chess.events import (
    Castling,
    Draw,
    DrawType,
    Event,
    Loss,
    LossType,
    Move,
    parse_event,
)
from src.chess.moves import MOVEMENT_RULES
from src.chess.pieces import Color, Piece, PieceType
from src.chess.position import Position
from src.chess.square import ALL_SQUARES, Square
from src.core.exceptions import (
    GameStateError,
    IllegalMoveError,
    InvalidClaimError,
    InvalidFENError,
    InvalidRecordError,
    NotYourTurnError,
)

logger = logging.getLogger(__name__)

FIFTY_MOVE_RULE_PLIES = 100
NUM_FEN_FIELDS = 6


class Result(Enum):
    ONGOING = auto()
    WON = auto()
    DRAWN = auto()


class HistoryEntry(NamedTuple):
    """The position right before the event happened, and the event itself"""

    position: Position
    event: Event


@dataclass
class Game:
    position: Position
    history: list[HistoryEntry] = field(default_factory=list)
    possible_moves: list[Move] = field(default_factory=list)
    result: Result = Result.ONGOING
    victor: Color = Color.NONE
    # where the history begins, needed to replay a record
    starting_position: Position = field(default_factory=Position.starting)

    # --- CONSTRUCTION ---
    @classmethod
    def new(cls) -> Self:
        return cls.from_position(Position.starting())

    @classmethod
    def from_position(cls, position: Position) -> Self:
        """Start a game from any position (the game might even be over right away)"""
        game = cls(position.copy(), starting_position=position.copy())
        game.update_possible_moves()
        game.detect_endgames()
        return game

    @classmethod
    def from_record(cls, record: str, starting_fen: Optional[str] = None) -> Self:
        """
        Restore a game from its record: the current position (as FEN) followed by the notation of every event in the history.
        ----

        The positions stored in the history are recovered by replaying the moves from `starting_fen`
        (the standard starting position if not given), beginning with the side to move there.
        """
        tokens = record.split()
        fen = " ".join(tokens[:NUM_FEN_FIELDS])
        try:
            position = Position.from_fen(fen)
            start = Position.from_fen(starting_fen) if starting_fen else Position.starting()
        except InvalidFENError as e:
            raise InvalidRecordError(f"invalid record: {e}") from e

        game = cls(position, starting_position=start.copy())
        replay = start
        event_color = start.active_color
        event_full_move = start.full_move_number
        for token in tokens[NUM_FEN_FIELDS:]:
            if game.result != Result.ONGOING:
                raise InvalidRecordError(f"invalid record: event {token!r} after the end of the game")
            event = parse_event(token, event_color)
            if event is None:
                raise InvalidRecordError(f"invalid record: cannot read event {token!r}")

            game.history.append(HistoryEntry(replay.copy(), event))
            match event:
                case Loss():
                    game.result = Result.WON
                    game.victor = event.color.opponent
                    event_color = Color.NONE
                case Draw():
                    game.result = Result.DRAWN
                    event_color = Color.NONE
                case Move():
                    replay.apply(event)
                    if event_color == Color.BLACK:
                        event_full_move += 1
                    event_color = event_color.opponent

        if position.full_move_number != event_full_move:
            logger.warning(
                "History of game record is not consistent with the recorded position "
                "(full move number %d, history reaches %d)",
                position.full_move_number,
                event_full_move,
            )

        game.update_possible_moves()
        game.detect_endgames()
        return game

    def to_record(self) -> str:
        """reverse operation of from_record()"""
        return " ".join(
            [self.position.to_fen()]
            + [entry.event.to_notation() for entry in self.history]
        )

    # --- STATUS ---
    @property
    def active_color(self) -> Color:
        return self.position.active_color

    @property
    def last_event(self) -> Optional[Event]:
        return self.history[-1].event if self.history else None

    def is_in_check(self) -> bool:
        return self.position.is_in_check()

    def is_third_repetition(self) -> bool:
        """The current position counts as the first occurrence"""
        repetitions = 1
        for entry in self.history:
            if entry.position == self.position:
                repetitions += 1
                if repetitions == 3:
                    return True
        return False

    def find_possible_move(self, from_square: Square, to_square: Square) -> Optional[Move]:
        for move in self.possible_moves:
            if move.from_square == from_square and move.to_square == to_square:
                return move
        return None

    def find_possible_move_by_code(self, code: str) -> Optional[Move]:
        """
        Compact move code: 'e2e4', or 'e7e8q' when promoting.
        Pawns always promote to a queen, so the promotion piece is only checked for being a piece at all.
        """
        if len(code) == 5:
            if not Piece.from_fen(code[4]).is_valid():
                return None
        elif len(code) != 4:
            return None
        return self.find_possible_move(
            Square.from_algebraic(code[0:2]), Square.from_algebraic(code[2:4])
        )

    # --- MOVEMENT AND PLAYER ACTIONS ---
    def make_move(self, move: Optional[Move]) -> None:
        """
        Make one of the possible moves
        -----

        1. store the position before the move, together with the move
        2. update the position
        3. determine the moves the opponent can make
        4. check whether the game has ended
        """
        self._assert_ongoing()
        if move is None or not move.valid:
            raise IllegalMoveError(f"Not a valid move: {move!r}")
        if move not in self.possible_moves:
            raise IllegalMoveError(f"Move not allowed: {move.to_notation()}")

        self._record_event(move)
        self.position.apply(move)
        self.update_possible_moves()
        self.detect_endgames()

    def record_loss(self, loss_type: LossType, color: Color) -> None:
        """Resigning is only possible as the side that is to move. Running out of time is accepted without questions."""
        self._assert_ongoing()
        match loss_type:
            case LossType.CHECKMATE:
                raise InvalidClaimError("Checkmate can only be detected automatically")
            case LossType.RESIGNATION:
                if color != self.active_color:
                    raise NotYourTurnError("Only the side to move can resign")
            case LossType.TIME_CONTROL:
                pass

        loss = Loss(loss_type, color)
        if not loss.valid:
            raise InvalidClaimError(f"No side specified for loss: {loss_type.name.lower()}")
        self._record_event(loss)
        self._end_game(Result.WON, color.opponent)

    def record_draw(self, draw_type: DrawType) -> None:
        """
        Claiming a draw
        ---

        * stalemate and dead positions are detected automatically, so cannot be claimed
        * fifty move rule: 100 half moves without a pawn move or capture
        * threefold repetition: the current position occurred twice before
        * by agreement: always accepted (both players must have agreed beforehand)
        """
        self._assert_ongoing()
        match draw_type:
            case DrawType.STALEMATE | DrawType.DEAD_POSITION:
                raise InvalidClaimError(
                    f"Draw by {draw_type.name.lower()} can only be detected automatically"
                )
            case DrawType.FIFTY_MOVE:
                if self.position.half_move_clock < FIFTY_MOVE_RULE_PLIES:
                    raise InvalidClaimError("Fifty move rule not in effect")
            case DrawType.THREEFOLD_REPETITION:
                if not self.is_third_repetition():
                    raise InvalidClaimError("Threefold repetition rule not in effect")
            case DrawType.BY_AGREEMENT:
                pass

        self._record_event(Draw(draw_type))
        self._end_game(Result.DRAWN, Color.NONE)

    def record_war_result(self, victor: Color) -> None:
        """End the game outside of the chess rules: the victor checkmated the opponent, or nobody won (dead position)."""
        self._assert_ongoing()
        if victor == Color.NONE:
            self._record_event(Draw(DrawType.DEAD_POSITION))
            self._end_game(Result.DRAWN, Color.NONE)
        else:
            self._record_event(Loss(LossType.CHECKMATE, victor.opponent))
            self._end_game(Result.WON, victor)

    # --- ANALYSIS ---
    def detect_endgames(self) -> None:
        """
        In this order (first match wins):
        1. dead position --> draw
        2. no moves left while in check --> checkmate
        3. no moves left --> stalemate
        """
        if self.result != Result.ONGOING:
            return

        if self.position.is_dead():
            self._record_event(Draw(DrawType.DEAD_POSITION))
            self._end_game(Result.DRAWN, Color.NONE)
        elif not self.possible_moves and self.is_in_check():
            loser = self.active_color
            self._record_event(Loss(LossType.CHECKMATE, loser))
            self._end_game(Result.WON, loser.opponent)
        elif not self.possible_moves:
            self._record_event(Draw(DrawType.STALEMATE))
            self._end_game(Result.DRAWN, Color.NONE)

    def update_possible_moves(self) -> None:
        """
        List of legal moves for the side to move
        ----

        1. generate candidate moves, using the basic movement rules for all pieces
        2. add candidate castling moves
        3. keep only the moves that do not leave your own king in check
        """
        self.possible_moves = []
        if self.result != Result.ONGOING:
            return

        color = self.active_color
        for square in ALL_SQUARES:
            piece = self.position.piece_at(square)
            if not piece.is_valid() or piece.color != color:
                continue

            candidates = MOVEMENT_RULES[piece.type](square, self.position)
            if piece.type == PieceType.KING:
                candidates.extend(self._candidate_castling_moves(piece, square))

            for candidate in candidates:
                self._confirm_possible_move(candidate)

    # -- PRIVATE HELPERS ---
    def _assert_ongoing(self) -> None:
        if self.result != Result.ONGOING:
            raise GameStateError(f"Game has already ended. result: {self.result.name.lower()}")

    def _record_event(self, event: Event) -> None:
        self.history.append(HistoryEntry(self.position.copy(), event))

    def _end_game(self, result: Result, victor: Color) -> None:
        self.position.end_game()
        self.result = result
        self.victor = victor
        self.possible_moves = []

    def _confirm_possible_move(self, move: Move) -> bool:
        """Try the move on a copy of the position: it is only possible if it does not leave your own king in check."""
        if not move.valid:
            return False

        scratch = self.position.copy()
        scratch.apply(move)
        if scratch.is_in_check(move.side):
            return False

        self.possible_moves.append(move)
        return True

    def _candidate_castling_moves(self, king: Piece, square: Square) -> list[Move]:
        """
        **you are allowed to castle if**

        * You are not currently in check (you cannot castle out of check).
        * Castling rights are not yet revoked, and king and rook still stand on their starting squares.
        * All squares between king and rook are empty.
        * Neither the square the king passes nor the square it ends up on is under attack.
        """
        if self.is_in_check():
            return []

        opponent = king.color.opponent
        moves: list[Move] = []
        for direction in castling_directions(king.color):
            if not self.position.castling_rights[direction]:
                continue

            rule = CASTLING_RULES[direction]
            if square != rule.king_from or self.position.piece_at(
                rule.rook_from
            ) != Piece(PieceType.ROOK, king.color):
                continue

            if any(self.position.piece_at(sq).is_valid() for sq in rule.passed):
                continue

            if self.position.is_under_attack(
                rule.king_passes, opponent
            ) or self.position.is_under_attack(rule.king_to, opponent):
                continue

            moves.append(Castling.for_direction(direction))
        return moves


def halfmove_label(halfmove: int) -> str:
    """Prefix for a logbook entry: '1.' for white's first move, '1...' for black's reply, etc."""
    turn = halfmove // 2 + 1
    return f"{turn}." if halfmove % 2 == 0 else f"{turn}..."
