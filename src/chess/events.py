"""
Game events: everything that can be written into the history of a game.

Moves
    Move, Capture, EnPassantCapture, TwoSquarePawnMove, Castling
Game endings
    Loss, Draw
Informational (never stored in a history)
    Check

All events are immutable and know at construction whether they make sense ("valid").
An invalid event is not an error by itself: it just serializes/describes to an empty string and will be refused by
Position.apply / Game.make_move.

Each one has a textual notation (a modified long algebraic notation) used to persist the history of a game:

* Move:                 Pe2-e3        (piece code, from square, '-', to square, [promoted piece code])
* Capture:              Pe4xpd5       (piece code, from square, 'x', captured piece code, to square, [promoted piece code])
* En passant capture:   Pe5xpd6e.p.
* Two square pawn move: Pe2-e4t.s.
* Castling:             0-0 / 0-0-0
* Loss:                 # (checkmate), 0 (resignation), TCw / TCb (time control)
* Draw:                 SM, DP, 50M, 3FR, =
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Optional, Self

from src.chess.castling import CASTLING_RULES, CastlingDirection
from src.chess.pieces import EMPTY_SQUARE, Color, Piece, PieceType
from src.chess.square import BOARD_DIMENSIONS, NO_SQUARE, Square

EN_PASSANT_SUFFIX = "e.p."
TWO_SQUARE_SUFFIX = "t.s."


# --- MOVES ---
@dataclass(frozen=True)
class Move:
    """A piece moves from one square to an empty square.

    Pawns reaching the far rank are always promoted to a queen.
    """

    piece: Piece
    from_square: Square
    to_square: Square
    promote_to: PieceType = field(init=False, default=PieceType.EMPTY)
    valid: bool = field(init=False, default=True, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.piece.is_valid() and self.piece.type == PieceType.PAWN:
            opposing_king = Piece(PieceType.KING, self.piece.color.opponent)
            if self.to_square.rank == opposing_king.initial_rank():
                object.__setattr__(self, "promote_to", PieceType.QUEEN)

        if not (
            self.piece.is_valid()
            and self.from_square.is_valid()
            and self.to_square.is_valid()
            and self.from_square != self.to_square
        ):
            self._invalidate()

    def _invalidate(self) -> None:
        object.__setattr__(self, "valid", False)

    @property
    def side(self) -> Color:
        return self.piece.color

    @property
    def promoted_piece(self) -> Piece:
        if self.promote_to == PieceType.EMPTY:
            return EMPTY_SQUARE
        return self.piece.promoted(self.promote_to)

    @classmethod
    def from_notation(cls, token: str, active_color: Color) -> Optional[Move]:
        if len(token) not in (6, 7) or token[3] != "-":
            return None
        move = cls(
            Piece.from_fen(token[0]),
            Square.from_algebraic(token[1:3]),
            Square.from_algebraic(token[4:6]),
        )
        return move if _notation_matches(move, token[6:], active_color) else None

    def to_notation(self) -> str:
        if not self.valid:
            return ""
        return (
            f"{self.piece.to_fen()}{self.from_square.to_algebraic()}-"
            f"{self.to_square.to_algebraic()}{self.promoted_piece.to_fen()}"
        )

    def to_uci(self) -> str:
        """Compact move code as used by UCI engines: 'e2e4', 'e7e8q'"""
        return (
            f"{self.from_square.to_algebraic()}{self.to_square.to_algebraic()}"
            f"{self.promoted_piece.to_fen().lower()}"
        )


@dataclass(frozen=True)
class Capture(Move):
    """A piece moves onto a square and takes the opponent's piece standing there."""

    captured_piece: Piece
    captured_square: Square = field(init=False, default=NO_SQUARE)

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "captured_square", self.to_square)
        if not self.captured_piece.is_valid() or self.captured_piece.color == self.piece.color:
            self._invalidate()

    @classmethod
    def from_notation(cls, token: str, active_color: Color) -> Optional[Capture]:
        if len(token) not in (7, 8) or token[3] != "x":
            return None
        capture = cls(
            Piece.from_fen(token[0]),
            Square.from_algebraic(token[1:3]),
            Square.from_algebraic(token[5:7]),
            Piece.from_fen(token[4]),
        )
        return capture if _notation_matches(capture, token[7:], active_color) else None

    def to_notation(self) -> str:
        if not self.valid:
            return ""
        return (
            f"{self.piece.to_fen()}{self.from_square.to_algebraic()}x"
            f"{self.captured_piece.to_fen()}{self.to_square.to_algebraic()}"
            f"{self.promoted_piece.to_fen()}"
        )


@dataclass(frozen=True)
class EnPassantCapture(Capture):
    """The pawn takes on the en passant square, the captured pawn stands right behind it (on the capturing pawn's rank)."""

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(
            self,
            "captured_square",
            Square(self.to_square.file, self.from_square.rank),
        )
        color = self.piece.color
        capturing_rank = _en_passant_capturing_rank(color)
        if not (
            self.piece.type == PieceType.PAWN
            and self.captured_piece == Piece(PieceType.PAWN, color.opponent)
            and self.from_square.rank == capturing_rank
            and self.to_square.rank == capturing_rank + color.facing_direction
            and abs(self.from_square.file - self.to_square.file) == 1
        ):
            self._invalidate()

    @classmethod
    def for_files(cls, color: Color, from_file: int, to_file: int) -> Self:
        capturing_rank = _en_passant_capturing_rank(color)
        return cls(
            Piece(PieceType.PAWN, color),
            Square(from_file, capturing_rank),
            Square(to_file, capturing_rank + color.facing_direction),
            Piece(PieceType.PAWN, color.opponent),
        )

    @classmethod
    def from_notation(cls, token: str, active_color: Color) -> Optional[EnPassantCapture]:
        if not token.endswith(EN_PASSANT_SUFFIX):
            return None
        capture = Capture.from_notation(token.removesuffix(EN_PASSANT_SUFFIX), active_color)
        if capture is None:
            return None
        en_passant = cls(
            capture.piece, capture.from_square, capture.to_square, capture.captured_piece
        )
        return en_passant if en_passant.valid else None

    def to_notation(self) -> str:
        return super().to_notation() + EN_PASSANT_SUFFIX if self.valid else ""


@dataclass(frozen=True)
class TwoSquarePawnMove(Move):
    """A pawn leaves its initial rank by two squares. The square it passes is the en passant square for the next move."""

    passed_square: Square = field(init=False, default=NO_SQUARE)

    def __post_init__(self) -> None:
        super().__post_init__()
        color = self.piece.color
        direction = color.facing_direction
        object.__setattr__(self, "passed_square", self.from_square.offset(0, direction))
        if not (
            self.piece.type == PieceType.PAWN
            and self.from_square.rank == self.piece.initial_rank()
            and self.to_square == self.from_square.offset(0, 2 * direction)
        ):
            self._invalidate()

    @classmethod
    def for_file(cls, color: Color, file: int) -> Self:
        pawn = Piece(PieceType.PAWN, color)
        from_square = Square(file, pawn.initial_rank())
        return cls(pawn, from_square, from_square.offset(0, 2 * color.facing_direction))

    @classmethod
    def from_notation(cls, token: str, active_color: Color) -> Optional[TwoSquarePawnMove]:
        if not token.endswith(TWO_SQUARE_SUFFIX):
            return None
        move = Move.from_notation(token.removesuffix(TWO_SQUARE_SUFFIX), active_color)
        if move is None:
            return None
        two_square = cls(move.piece, move.from_square, move.to_square)
        return two_square if two_square.valid else None

    def to_notation(self) -> str:
        return super().to_notation() + TWO_SQUARE_SUFFIX if self.valid else ""


@dataclass(frozen=True)
class Castling(Move):
    """The king moves two squares towards one of its rooks, which jumps over to the square the king crossed."""

    direction: CastlingDirection = CastlingDirection.WHITE_KING_SIDE
    rook_piece: Piece = field(init=False, default=EMPTY_SQUARE)
    rook_from: Square = field(init=False, default=NO_SQUARE)
    rook_to: Square = field(init=False, default=NO_SQUARE)

    def __post_init__(self) -> None:
        super().__post_init__()
        rule = CASTLING_RULES[self.direction]
        object.__setattr__(self, "rook_piece", Piece(PieceType.ROOK, self.direction.color))
        object.__setattr__(self, "rook_from", rule.rook_from)
        object.__setattr__(self, "rook_to", rule.rook_to)
        if not (
            self.piece == Piece(PieceType.KING, self.direction.color)
            and self.from_square == rule.king_from
            and self.to_square == rule.king_to
        ):
            self._invalidate()

    @classmethod
    def for_direction(cls, direction: CastlingDirection) -> Self:
        rule = CASTLING_RULES[direction]
        king = Piece(PieceType.KING, direction.color)
        return cls(king, rule.king_from, rule.king_to, direction)

    @classmethod
    def from_notation(cls, token: str, active_color: Color) -> Optional[Castling]:
        if token not in ("0-0", "0-0-0") or not active_color.is_valid():
            return None
        king_side = token == "0-0"
        direction = next(
            direction
            for direction in CastlingDirection
            if direction.color == active_color and direction.is_king_side == king_side
        )
        return cls.for_direction(direction)

    def to_notation(self) -> str:
        if not self.valid:
            return ""
        return "0-0" if self.direction.is_king_side else "0-0-0"


# --- GAME ENDINGS ---
# NOTE: src/core/shared_types.py has boundary versions of LossType/DrawType with only the manually recordable options.
class LossType(Enum):
    # Detected and entered automatically.
    CHECKMATE = auto()
    # Entered manually
    RESIGNATION = auto()
    TIME_CONTROL = auto()


class DrawType(Enum):
    # Detected and entered automatically.
    STALEMATE = auto()
    DEAD_POSITION = auto()
    # Entered manually, only accepted if the conditions are present.
    FIFTY_MOVE = auto()
    THREEFOLD_REPETITION = auto()
    # Entered manually, accepted unconditionally
    BY_AGREEMENT = auto()


DRAW_NOTATION: dict[DrawType, str] = {
    DrawType.STALEMATE: "SM",
    DrawType.DEAD_POSITION: "DP",
    DrawType.FIFTY_MOVE: "50M",
    DrawType.THREEFOLD_REPETITION: "3FR",
    DrawType.BY_AGREEMENT: "=",
}


@dataclass(frozen=True)
class Loss:
    """The side named lost the game"""

    type: LossType
    color: Color
    valid: bool = field(init=False, default=True, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.color.is_valid():
            object.__setattr__(self, "valid", False)

    @property
    def side(self) -> Color:
        return self.color

    @classmethod
    def from_notation(cls, token: str, active_color: Color) -> Optional[Loss]:
        if token == "#":
            loss = cls(LossType.CHECKMATE, active_color)
        elif token == "0":
            loss = cls(LossType.RESIGNATION, active_color)
        elif len(token) == 3 and token.startswith("TC"):
            loss = cls(LossType.TIME_CONTROL, Color.from_code(token[2]))
        else:
            return None
        return loss if loss.valid else None

    def to_notation(self) -> str:
        if not self.valid:
            return ""
        match self.type:
            case LossType.CHECKMATE:
                return "#"
            case LossType.RESIGNATION:
                return "0"
            case LossType.TIME_CONTROL:
                return f"TC{self.color.code}"


@dataclass(frozen=True)
class Draw:
    type: DrawType
    valid: bool = field(init=False, default=True, compare=False, repr=False)

    @property
    def side(self) -> Color:
        return Color.NONE

    @classmethod
    def from_notation(cls, token: str, active_color: Color) -> Optional[Draw]:
        for draw_type, notation in DRAW_NOTATION.items():
            if token == notation:
                return cls(draw_type)
        return None

    def to_notation(self) -> str:
        return DRAW_NOTATION[self.type]


# --- INFORMATIONAL ---
@dataclass(frozen=True)
class Check:
    """The side named is in check. Reported to callers, never recorded in a history."""

    color: Color
    valid: bool = field(init=False, default=True, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.color.is_valid():
            object.__setattr__(self, "valid", False)

    @property
    def side(self) -> Color:
        return self.color

    def to_notation(self) -> str:
        return "+" if self.valid else ""


Event = Move | Loss | Draw
EventParser = Callable[[str, Color], Optional[Event]]

# Order matters: the notations are not prefix free (a two square pawn move is a move followed by a suffix, etc.)
EVENT_PARSERS: tuple[EventParser, ...] = (
    Loss.from_notation,
    Draw.from_notation,
    Castling.from_notation,
    TwoSquarePawnMove.from_notation,
    EnPassantCapture.from_notation,
    Capture.from_notation,
    Move.from_notation,
)


def parse_event(token: str, active_color: Color) -> Optional[Event]:
    """Interpret a history token played by `active_color`. None if no event type recognizes it."""
    for parser in EVENT_PARSERS:
        event = parser(token, active_color)
        if event is not None and event.valid:
            return event
    return None


def describe_event(event: Event | Check) -> str:
    """Human readable (English) description of an event"""
    if not event.valid:
        return ""

    match event:
        case Castling(direction=direction):
            wing = "kingside" if direction.is_king_side else "queenside"
            return f"{_side_name(direction.color)} castles {wing}."
        case EnPassantCapture():
            return (
                f"{_capitalized(event.piece.name)} on {event.from_square.to_algebraic()} "
                f"captures the {event.captured_piece.name} on {event.captured_square.to_algebraic()} "
                f"en passant, moving to {event.to_square.to_algebraic()}."
            )
        case Capture():
            return (
                f"{_capitalized(event.piece.name)} on {event.from_square.to_algebraic()} "
                f"captures the {event.captured_piece.name} on {event.to_square.to_algebraic()}"
                f"{_promotion_text(event)}."
            )
        case Move():
            return (
                f"{_capitalized(event.piece.name)} moves from {event.from_square.to_algebraic()} "
                f"to {event.to_square.to_algebraic()}{_promotion_text(event)}."
            )
        case Loss(type=loss_type, color=color):
            loser, winner = _side_name(color), _side_name(color.opponent)
            match loss_type:
                case LossType.CHECKMATE:
                    return f"{loser} is checkmated. {winner} wins."
                case LossType.RESIGNATION:
                    return f"{loser} resigns. {winner} wins."
                case LossType.TIME_CONTROL:
                    return f"{loser} has run out of time. {winner} wins."
        case Draw(type=draw_type):
            reason = draw_type.name.lower().replace("_", " ")
            return f"The game is drawn ({reason})."
        case Check(color=color):
            return f"{_side_name(color)} is in check."
    return ""


# --- HELPERS ---
def _notation_matches(move: Move, promotion_code: str, active_color: Color) -> bool:
    """The move itself makes sense, is played by the active side, and mentions exactly the (forced) promotion."""
    if not move.valid or move.side != active_color:
        return False
    return promotion_code == move.promoted_piece.to_fen()


def _en_passant_capturing_rank(color: Color) -> int:
    """A pawn can only capture en passant from the 5th rank (from the point of view of its own side)"""
    if color == Color.WHITE:
        return 5
    if color == Color.BLACK:
        return BOARD_DIMENSIONS[1] - 4
    return 0


def _promotion_text(move: Move) -> str:
    if move.promote_to == PieceType.EMPTY:
        return ""
    return f" and is promoted to a {move.promote_to.name.lower()}"


def _side_name(color: Color) -> str:
    return color.name.capitalize()


def _capitalized(text: str) -> str:
    return text[:1].upper() + text[1:]
