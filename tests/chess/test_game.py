"""Unit tests for /src/chess/game.py"""

import logging

import pytest

from src.chess.castling import CastlingDirection
from src.chess.events import (
    Castling,
    Draw,
    DrawType,
    EnPassantCapture,
    Loss,
    LossType,
    Move,
    TwoSquarePawnMove,
)
from src.chess.fen import STARTING_FEN
from src.chess.game import Game, Result, halfmove_label
from src.chess.pieces import Color, Piece, PieceType
from src.chess.position import Position
from src.chess.square import Square
from src.core.exceptions import (
    GameStateError,
    IllegalMoveError,
    InvalidClaimError,
    InvalidRecordError,
    NotYourTurnError,
)

FOOLS_MATE = ["f2f3", "e7e5", "g2g4", "d8h4"]
FOOLS_MATE_RECORD = (
    "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR - - - 0 3 "
    "Pf2-f3 pe7-e5t.s. Pg2-g4t.s. qd8-h4 #"
)
CASTLING_FEN = "r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1"


def sq(name: str) -> Square:
    return Square.from_algebraic(name)


def play(game: Game, *codes: str) -> None:
    for code in codes:
        move = game.find_possible_move_by_code(code)
        assert move is not None, f"{code} is not possible"
        game.make_move(move)


def game_from_fen(fen: str) -> Game:
    return Game.from_position(Position.from_fen(fen))


def castling_options(game: Game) -> set[CastlingDirection]:
    return {move.direction for move in game.possible_moves if isinstance(move, Castling)}


@pytest.fixture
def fools_mate() -> Game:
    game = Game.new()
    play(game, *FOOLS_MATE)
    return game


# -- CREATION --
def test_new_game() -> None:
    game = Game.new()
    assert game.result == Result.ONGOING
    assert game.active_color == Color.WHITE
    assert game.last_event is None
    assert len(game.possible_moves) == 20
    assert game.to_record() == STARTING_FEN


def test_from_position_copies_the_position() -> None:
    position = Position.starting()
    game = Game.from_position(position)
    play(game, "e2e4")
    assert position == Position.starting()


# -- ENDGAMES --
def test_checkmate(fools_mate: Game) -> None:
    assert fools_mate.result == Result.WON
    assert fools_mate.victor == Color.BLACK
    assert fools_mate.last_event == Loss(LossType.CHECKMATE, Color.WHITE)
    assert fools_mate.possible_moves == []
    assert fools_mate.active_color == Color.NONE
    assert fools_mate.to_record() == FOOLS_MATE_RECORD


def test_stalemate() -> None:
    game = game_from_fen("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1")
    assert game.result == Result.DRAWN
    assert game.victor == Color.NONE
    assert game.last_event == Draw(DrawType.STALEMATE)


def test_dead_position_is_drawn_right_away() -> None:
    game = game_from_fen("8/8/8/8/8/8/8/K6k w - - 0 1")
    assert game.result == Result.DRAWN
    assert game.last_event == Draw(DrawType.DEAD_POSITION)


def test_capturing_the_last_piece_kills_the_position() -> None:
    game = game_from_fen("8/8/8/8/8/8/1r6/K6k w - - 0 1")
    play(game, "a1b2")
    assert game.result == Result.DRAWN
    assert game.last_event == Draw(DrawType.DEAD_POSITION)


def test_detect_endgames_only_records_once(fools_mate: Game) -> None:
    num_events = len(fools_mate.history)
    fools_mate.detect_endgames()
    assert len(fools_mate.history) == num_events


# -- MOVES --
def test_make_move_records_history() -> None:
    game = Game.new()
    play(game, "e2e4")
    assert game.active_color == Color.BLACK
    assert game.last_event == TwoSquarePawnMove.for_file(Color.WHITE, 5)
    assert game.history[0].position == Position.starting()
    assert game.position.en_passant_square == sq("e3")
    assert len(game.possible_moves) == 20


def test_move_that_is_not_possible_is_refused() -> None:
    game = Game.new()
    with pytest.raises(IllegalMoveError):
        game.make_move(Move(Piece.from_fen("P"), sq("e2"), sq("e5")))
    with pytest.raises(IllegalMoveError):
        game.make_move(None)
    assert game.history == []


def test_pinned_piece_cannot_move() -> None:
    game = game_from_fen("4k3/4r3/8/8/8/8/4B3/4K3 w - - 0 1")
    assert game.find_possible_move(sq("e2"), sq("d3")) is None
    # the king can still step aside
    assert game.find_possible_move(sq("e1"), sq("d1")) is not None


def test_check_must_be_answered() -> None:
    game = game_from_fen("4k3/8/8/8/8/8/3PP3/r3K3 w - - 0 1")
    assert game.is_in_check()
    # the king only escapes to f2; d2/e2 are taken by its own pawns
    assert {move.to_uci() for move in game.possible_moves} == {"e1f2"}


def test_en_passant_only_right_after_the_two_square_move() -> None:
    game = Game.new()
    play(game, "e2e4", "a7a6", "e4e5", "d7d5")
    capture = game.find_possible_move(sq("e5"), sq("d6"))
    assert isinstance(capture, EnPassantCapture)

    play(game, "h2h3", "a6a5")
    assert game.find_possible_move(sq("e5"), sq("d6")) is None


def test_promotion() -> None:
    game = game_from_fen("8/4P3/8/8/8/8/8/k3K3 w - - 0 50")
    move = game.find_possible_move_by_code("e7e8q")
    assert move is not None
    game.make_move(move)
    assert game.position.piece_at(sq("e8")) == Piece(PieceType.QUEEN, Color.WHITE)


@pytest.mark.parametrize("code", ["e2e5", "e2", "e2e4e6", "e7e8x", "zzzz"])
def test_find_possible_move_by_code_rejects(code: str) -> None:
    assert Game.new().find_possible_move_by_code(code) is None


# -- CASTLING --
def test_castling_allowed() -> None:
    game = game_from_fen(CASTLING_FEN)
    assert castling_options(game) == {
        CastlingDirection.WHITE_KING_SIDE,
        CastlingDirection.WHITE_QUEEN_SIDE,
    }
    play(game, "e1g1")
    # the rook now on f1 covers f8, the square the black king would pass
    assert castling_options(game) == {CastlingDirection.BLACK_QUEEN_SIDE}


@pytest.mark.parametrize(
    "fen, expected",
    [
        # knight on b1: the b-file must be empty for queenside castling
        ("r3k2r/8/8/8/8/8/8/RN2K2R w KQkq - 0 1", {CastlingDirection.WHITE_KING_SIDE}),
        # the rook on f8 attacks the square the king passes
        ("r3kr2/8/8/8/8/8/8/R3K2R w KQq - 0 1", {CastlingDirection.WHITE_QUEEN_SIDE}),
        # the rook on c8 attacks the square the king ends up on
        ("2r1k2r/8/8/8/8/8/8/R3K2R w KQk - 0 1", {CastlingDirection.WHITE_KING_SIDE}),
        # the b1 square may be attacked, only the king's path matters
        ("1r2k2r/8/8/8/8/8/8/R3K2R w KQk - 0 1", {
            CastlingDirection.WHITE_KING_SIDE,
            CastlingDirection.WHITE_QUEEN_SIDE,
        }),
        # cannot castle out of check
        ("r3k2r/8/8/8/8/8/4r3/R3K2R w KQkq - 0 1", set()),
        # rights revoked
        ("r3k2r/8/8/8/8/8/8/R3K2R w kq - 0 1", set()),
        # rook no longer on its starting square, even though the rights claim otherwise
        ("r3k2r/8/8/8/8/8/8/1R2K2R w KQkq - 0 1", {CastlingDirection.WHITE_KING_SIDE}),
    ],
)
def test_castling_conditions(fen: str, expected: set[CastlingDirection]) -> None:
    assert castling_options(game_from_fen(fen)) == expected


def test_moving_the_rook_revokes_castling() -> None:
    game = game_from_fen(CASTLING_FEN)
    play(game, "h1h2", "a8a7", "h2h1", "a7a8")
    assert castling_options(game) == {CastlingDirection.WHITE_QUEEN_SIDE}


# -- PLAYER ACTIONS --
def test_resignation() -> None:
    game = Game.new()
    with pytest.raises(NotYourTurnError):
        game.record_loss(LossType.RESIGNATION, Color.BLACK)

    game.record_loss(LossType.RESIGNATION, Color.WHITE)
    assert game.result == Result.WON
    assert game.victor == Color.BLACK
    assert game.to_record().endswith(" 0")


def test_time_control_loss_for_either_side() -> None:
    game = Game.new()
    game.record_loss(LossType.TIME_CONTROL, Color.BLACK)
    assert game.victor == Color.WHITE
    assert game.last_event == Loss(LossType.TIME_CONTROL, Color.BLACK)


@pytest.mark.parametrize(
    "loss_type, color",
    [(LossType.CHECKMATE, Color.WHITE), (LossType.TIME_CONTROL, Color.NONE)],
)
def test_invalid_loss_claims(loss_type: LossType, color: Color) -> None:
    game = Game.new()
    with pytest.raises(InvalidClaimError):
        game.record_loss(loss_type, color)
    assert game.result == Result.ONGOING


@pytest.mark.parametrize(
    "draw_type",
    [DrawType.STALEMATE, DrawType.DEAD_POSITION, DrawType.FIFTY_MOVE, DrawType.THREEFOLD_REPETITION],
)
def test_draw_claims_rejected_at_the_start(draw_type: DrawType) -> None:
    game = Game.new()
    with pytest.raises(InvalidClaimError):
        game.record_draw(draw_type)


def test_draw_by_agreement() -> None:
    game = Game.new()
    game.record_draw(DrawType.BY_AGREEMENT)
    assert game.result == Result.DRAWN
    assert game.last_event == Draw(DrawType.BY_AGREEMENT)


def test_fifty_move_rule() -> None:
    game = game_from_fen("4k3/8/8/8/8/8/8/R3K3 w - - 99 60")
    with pytest.raises(InvalidClaimError, match="Fifty move"):
        game.record_draw(DrawType.FIFTY_MOVE)
    play(game, "a1a2")
    game.record_draw(DrawType.FIFTY_MOVE)
    assert game.result == Result.DRAWN


def test_threefold_repetition() -> None:
    game = Game.new()
    knight_shuffle = ["g1f3", "g8f6", "f3g1", "f6g8"]
    play(game, *knight_shuffle)
    assert not game.is_third_repetition()
    with pytest.raises(InvalidClaimError, match="Threefold"):
        game.record_draw(DrawType.THREEFOLD_REPETITION)

    play(game, *knight_shuffle)
    assert game.is_third_repetition()
    game.record_draw(DrawType.THREEFOLD_REPETITION)
    assert game.last_event == Draw(DrawType.THREEFOLD_REPETITION)


@pytest.mark.parametrize(
    "victor, result, last_event",
    [
        (Color.WHITE, Result.WON, Loss(LossType.CHECKMATE, Color.BLACK)),
        (Color.NONE, Result.DRAWN, Draw(DrawType.DEAD_POSITION)),
    ],
)
def test_war_result(victor: Color, result: Result, last_event: Loss | Draw) -> None:
    game = Game.new()
    game.record_war_result(victor)
    assert game.result == result
    assert game.victor == victor
    assert game.last_event == last_event


def test_nothing_happens_after_the_end(fools_mate: Game) -> None:
    with pytest.raises(GameStateError):
        fools_mate.make_move(Move(Piece.from_fen("P"), sq("a2"), sq("a3")))
    with pytest.raises(GameStateError):
        fools_mate.record_draw(DrawType.BY_AGREEMENT)
    with pytest.raises(GameStateError):
        fools_mate.record_loss(LossType.RESIGNATION, Color.WHITE)
    with pytest.raises(GameStateError):
        fools_mate.record_war_result(Color.WHITE)


# -- RECORDS --
def test_record_round_trip(fools_mate: Game) -> None:
    restored = Game.from_record(fools_mate.to_record())
    assert restored.to_record() == FOOLS_MATE_RECORD
    assert restored.result == Result.WON
    assert restored.victor == Color.BLACK
    assert [entry.position for entry in restored.history] == [
        entry.position for entry in fools_mate.history
    ]


def test_record_of_ongoing_game() -> None:
    game = Game.from_record(
        "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1 Pe2-e4t.s."
    )
    assert game.result == Result.ONGOING
    assert game.active_color == Color.BLACK
    assert game.history[0].position == Position.starting()
    assert len(game.possible_moves) == 20


def test_record_from_custom_start_with_black_to_move() -> None:
    start = "4k3/4p3/8/8/8/8/4P3/4K3 b - - 0 1"
    game = game_from_fen(start)
    play(game, "e7e6", "e2e4")
    restored = Game.from_record(game.to_record(), start)
    assert restored.to_record() == game.to_record()
    assert restored.starting_position == Position.from_fen(start)
    assert [entry.position for entry in restored.history] == [
        entry.position for entry in game.history
    ]
    assert restored.history[0].position.active_color == Color.BLACK
    assert restored.possible_moves == game.possible_moves


def test_record_from_custom_start_without_its_fen_is_unreadable() -> None:
    game = game_from_fen("4k3/4p3/8/8/8/8/4P3/4K3 b - - 0 1")
    play(game, "e7e6")
    with pytest.raises(InvalidRecordError):
        Game.from_record(game.to_record())


def test_threefold_repetition_survives_the_record() -> None:
    start = "r3k3/8/8/8/8/8/8/R3K3 w - - 0 1"
    game = game_from_fen(start)
    rook_shuffle = ["a1a2", "a8a7", "a2a1", "a7a8"]
    play(game, *rook_shuffle, *rook_shuffle)
    assert game.is_third_repetition()

    restored = Game.from_record(game.to_record(), start)
    assert restored.is_third_repetition()
    restored.record_draw(DrawType.THREEFOLD_REPETITION)
    assert restored.result == Result.DRAWN


def test_record_with_an_invalid_starting_fen() -> None:
    with pytest.raises(InvalidRecordError):
        Game.from_record(STARTING_FEN, "not a fen")


@pytest.mark.parametrize(
    "record",
    [
        "garbage",
        STARTING_FEN + " Zz9-9",
        # black cannot move first
        STARTING_FEN + " pe7-e5t.s.",
        # nothing happens after a resignation
        STARTING_FEN + " 0 Pe2-e4t.s.",
        # superscript digits are not ranks
        STARTING_FEN + " Pe2-e³",
        "4k3/8/8/8/8/8/8/4K3 w - e² 0 1",
        "4k3/8/8/8/8/8/8/4K3 w - - ² 1",
    ],
)
def test_invalid_record(record: str) -> None:
    with pytest.raises(InvalidRecordError):
        Game.from_record(record)


def test_inconsistent_record_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="src.chess.game"):
        game = Game.from_record("rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 5")
    assert game.result == Result.ONGOING
    assert "not consistent" in caplog.text


@pytest.mark.parametrize("halfmove, label", [(0, "1."), (1, "1..."), (2, "2."), (9, "5...")])
def test_halfmove_label(halfmove: int, label: str) -> None:
    assert halfmove_label(halfmove) == label
