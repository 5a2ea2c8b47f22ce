"""Unit tests for src/chess/events.py"""

import pytest

from src.chess.castling import CastlingDirection
from src.chess.events import (
    DRAW_NOTATION,
    Capture,
    Castling,
    Check,
    Draw,
    DrawType,
    EnPassantCapture,
    Loss,
    LossType,
    Move,
    TwoSquarePawnMove,
    describe_event,
    parse_event,
)
from src.chess.pieces import EMPTY_SQUARE, Color, Piece, PieceType
from src.chess.square import Square

WHITE_PAWN = Piece(PieceType.PAWN, Color.WHITE)
BLACK_PAWN = Piece(PieceType.PAWN, Color.BLACK)


def sq(name: str) -> Square:
    return Square.from_algebraic(name)


# --- MOVES ---
def test_move_notation() -> None:
    move = Move(WHITE_PAWN, sq("e2"), sq("e3"))
    assert move.valid
    assert move.to_notation() == "Pe2-e3"
    assert Move.from_notation("Pe2-e3", Color.WHITE) == move


def test_move_of_the_wrong_side_is_not_read() -> None:
    assert Move.from_notation("Pe2-e3", Color.BLACK) is None
    assert parse_event("Pe2-e3", Color.BLACK) is None


@pytest.mark.parametrize(
    "move",
    [
        Move(EMPTY_SQUARE, sq("e2"), sq("e3")),
        Move(WHITE_PAWN, sq("e2"), sq("e2")),
        Move(WHITE_PAWN, Square(0, 0), sq("e3")),
    ],
)
def test_invalid_move(move: Move) -> None:
    """Invalid events are not errors, but they serialize and describe to nothing"""
    assert not move.valid
    assert move.to_notation() == ""
    assert describe_event(move) == ""


def test_capture_notation() -> None:
    capture = Capture(WHITE_PAWN, sq("e4"), sq("d5"), BLACK_PAWN)
    assert capture.captured_square == sq("d5")
    assert capture.to_notation() == "Pe4xpd5"
    assert Capture.from_notation("Pe4xpd5", Color.WHITE) == capture


def test_capturing_own_piece_is_invalid() -> None:
    assert not Capture(WHITE_PAWN, sq("e4"), sq("d5"), WHITE_PAWN).valid


@pytest.mark.parametrize("color, from_square, to_square", [(Color.WHITE, "e7", "e8"), (Color.BLACK, "d2", "d1")])
def test_pawns_always_promote_to_queen(color: Color, from_square: str, to_square: str) -> None:
    pawn = Piece(PieceType.PAWN, color)
    move = Move(pawn, sq(from_square), sq(to_square))
    assert move.promote_to == PieceType.QUEEN
    assert move.promoted_piece == Piece(PieceType.QUEEN, color)
    assert move.to_notation().endswith(Piece(PieceType.QUEEN, color).to_fen())


def test_promotion_notation_must_mention_the_queen() -> None:
    assert Move.from_notation("Pe7-e8", Color.WHITE) is None
    assert Move.from_notation("Pe7-e8N", Color.WHITE) is None
    assert Move.from_notation("Pe7-e8Q", Color.WHITE) == Move(WHITE_PAWN, sq("e7"), sq("e8"))
    assert Move.from_notation("Pe6-e7Q", Color.WHITE) is None


def test_uci_code() -> None:
    assert Move(WHITE_PAWN, sq("e2"), sq("e4")).to_uci() == "e2e4"
    assert Capture(WHITE_PAWN, sq("e7"), sq("f8"), Piece.from_fen("r")).to_uci() == "e7f8q"


def test_en_passant_capture() -> None:
    capture = EnPassantCapture.for_files(Color.WHITE, 5, 4)
    assert capture.valid
    assert capture.from_square == sq("e5")
    assert capture.to_square == sq("d6")
    assert capture.captured_square == sq("d5")
    assert capture.to_notation() == "Pe5xpd6e.p."
    assert EnPassantCapture.from_notation("Pe5xpd6e.p.", Color.WHITE) == capture


def test_black_en_passant_capture() -> None:
    capture = EnPassantCapture.for_files(Color.BLACK, 1, 2)
    assert capture.from_square == sq("a4")
    assert capture.to_square == sq("b3")
    assert capture.captured_square == sq("b4")


def test_en_passant_only_from_the_fifth_rank() -> None:
    assert not EnPassantCapture(WHITE_PAWN, sq("e4"), sq("d5"), BLACK_PAWN).valid
    assert EnPassantCapture.from_notation("Pe4xpd5e.p.", Color.WHITE) is None


def test_two_square_pawn_move() -> None:
    move = TwoSquarePawnMove.for_file(Color.WHITE, 5)
    assert move.from_square == sq("e2")
    assert move.to_square == sq("e4")
    assert move.passed_square == sq("e3")
    assert move.to_notation() == "Pe2-e4t.s."
    assert TwoSquarePawnMove.from_notation("Pe2-e4t.s.", Color.WHITE) == move
    assert TwoSquarePawnMove.from_notation("Pe3-e5t.s.", Color.WHITE) is None
    assert TwoSquarePawnMove.for_file(Color.BLACK, 4).passed_square == sq("d6")


def test_different_variants_are_never_equal() -> None:
    """A two square pawn move is not the same event as a plain move between the same squares"""
    two_square = TwoSquarePawnMove.for_file(Color.WHITE, 5)
    plain = Move(WHITE_PAWN, sq("e2"), sq("e4"))
    assert two_square != plain
    assert plain != two_square


@pytest.mark.parametrize(
    "direction, notation, king_to, rook_from, rook_to",
    [
        (CastlingDirection.WHITE_KING_SIDE, "0-0", "g1", "h1", "f1"),
        (CastlingDirection.WHITE_QUEEN_SIDE, "0-0-0", "c1", "a1", "d1"),
        (CastlingDirection.BLACK_KING_SIDE, "0-0", "g8", "h8", "f8"),
        (CastlingDirection.BLACK_QUEEN_SIDE, "0-0-0", "c8", "a8", "d8"),
    ],
)
def test_castling(
    direction: CastlingDirection, notation: str, king_to: str, rook_from: str, rook_to: str
) -> None:
    castling = Castling.for_direction(direction)
    assert castling.valid
    assert castling.to_square == sq(king_to)
    assert castling.rook_from == sq(rook_from)
    assert castling.rook_to == sq(rook_to)
    assert castling.rook_piece == Piece(PieceType.ROOK, direction.color)
    assert castling.to_notation() == notation
    assert Castling.from_notation(notation, direction.color) == castling


def test_castling_with_wrong_squares_is_invalid() -> None:
    king = Piece(PieceType.KING, Color.WHITE)
    assert not Castling(king, sq("e1"), sq("f1"), CastlingDirection.WHITE_KING_SIDE).valid
    assert Castling.from_notation("0-0", Color.NONE) is None


# --- GAME ENDINGS ---
@pytest.mark.parametrize(
    "token, active_color, expected",
    [
        ("#", Color.WHITE, Loss(LossType.CHECKMATE, Color.WHITE)),
        ("0", Color.BLACK, Loss(LossType.RESIGNATION, Color.BLACK)),
        ("TCb", Color.WHITE, Loss(LossType.TIME_CONTROL, Color.BLACK)),
    ],
)
def test_loss_notation(token: str, active_color: Color, expected: Loss) -> None:
    assert parse_event(token, active_color) == expected
    assert expected.to_notation() == token


@pytest.mark.parametrize("draw_type", list(DrawType))
def test_draw_notation(draw_type: DrawType) -> None:
    draw = Draw(draw_type)
    assert draw.to_notation() == DRAW_NOTATION[draw_type]
    assert parse_event(draw.to_notation(), Color.WHITE) == draw
    assert draw.side == Color.NONE


def test_parse_event_picks_the_most_specific_variant() -> None:
    assert isinstance(parse_event("Pe2-e4t.s.", Color.WHITE), TwoSquarePawnMove)
    assert type(parse_event("Pe2-e4", Color.WHITE)) is Move
    assert isinstance(parse_event("Pe5xpd6e.p.", Color.WHITE), EnPassantCapture)
    assert type(parse_event("Pe5xpd6", Color.WHITE)) is Capture
    assert parse_event("nonsense", Color.WHITE) is None


# --- DESCRIPTIONS ---
@pytest.mark.parametrize(
    "event, description",
    [
        (Move(WHITE_PAWN, sq("e2"), sq("e4")), "White pawn moves from e2 to e4."),
        (
            Move(BLACK_PAWN, sq("a2"), sq("a1")),
            "Black pawn moves from a2 to a1 and is promoted to a queen.",
        ),
        (
            Capture(Piece.from_fen("N"), sq("c3"), sq("d5"), BLACK_PAWN),
            "White knight on c3 captures the black pawn on d5.",
        ),
        (
            EnPassantCapture.for_files(Color.WHITE, 5, 4),
            "White pawn on e5 captures the black pawn on d5 en passant, moving to d6.",
        ),
        (Castling.for_direction(CastlingDirection.BLACK_QUEEN_SIDE), "Black castles queenside."),
        (Loss(LossType.CHECKMATE, Color.WHITE), "White is checkmated. Black wins."),
        (Loss(LossType.RESIGNATION, Color.BLACK), "Black resigns. White wins."),
        (Draw(DrawType.FIFTY_MOVE), "The game is drawn (fifty move)."),
        (Check(Color.BLACK), "Black is in check."),
    ],
)
def test_describe_event(event: Move | Loss | Draw | Check, description: str) -> None:
    assert describe_event(event) == description


def test_check_is_informational() -> None:
    assert Check(Color.WHITE).to_notation() == "+"
    assert not Check(Color.NONE).valid
