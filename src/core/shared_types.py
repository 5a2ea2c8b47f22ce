"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    WAITING_FOR_PLAYERS = "waiting for players"
    IN_PROGRESS = "in progress"
    WON = "won"
    DRAWN = "drawn"


# --- These are the boundary versions of Color / PieceType (plain strings on the wire).
# --- The domain versions (src/chess/pieces.py) additionally carry the NONE / EMPTY options.


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"


class PieceType(StrEnum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"


class LossType(StrEnum):
    """Losses a player may record by hand (checkmate is detected automatically)."""

    RESIGNATION = "resignation"
    TIME_CONTROL = "time control"


class DrawType(StrEnum):
    """Draws a player may claim on their own (stalemate / dead position are detected automatically, a draw by agreement needs both players)."""

    FIFTY_MOVE = "fifty move"
    THREEFOLD_REPETITION = "threefold repetition"


class Difficulty(StrEnum):
    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"
