"""
Piece geometry: where each piece type may go, and which squares it attacks.

Both are looked up per piece type in MOVEMENT_RULES and ATTACK_RULES.

Candidate moves are pseudo-legal: they follow the movement rules of the piece, but may still leave the own king in check.
Legality is checked later by Game.
Castling needs castling rights and attack information, so it is also generated by Game.
"""

from typing import Callable, Protocol

from src.chess.events import Capture, EnPassantCapture, Move, TwoSquarePawnMove
from src.chess.pieces import Color, Piece, PieceType
from src.chess.square import Square


class PositionView(Protocol):
    """Read-only access to a position, as far as piece geometry is concerned"""

    en_passant_square: Square

    def piece_at(self, square: Square) -> Piece: ...


Vector = tuple[int, int]

STRAIGHTS: list[Vector] = [(0, 1), (0, -1), (1, 0), (-1, 0)]
DIAGONALS: list[Vector] = [(1, 1), (1, -1), (-1, -1), (-1, 1)]
KING_DELTAS: list[Vector] = STRAIGHTS + DIAGONALS
KNIGHT_DELTAS: list[Vector] = [
    (df, dr) for df in (-2, -1, 1, 2) for dr in (-2, -1, 1, 2) if abs(df) != abs(dr)
]


def move_or_capture(square: Square, target: Square, view: PositionView) -> list[Move]:
    """Moving onto an empty square is a Move, onto a hostile piece a Capture, onto a friendly piece is not possible."""
    piece = view.piece_at(square)
    occupant = view.piece_at(target)
    if not target.is_valid() or occupant.color == piece.color:
        return []
    if occupant.is_valid():
        return [Capture(piece, square, target, occupant)]
    return [Move(piece, square, target)]


# --- MOVEMENT RULES ---
def raycasting_move(
    square: Square, view: PositionView, directions: list[Vector]
) -> list[Move]:
    """Slide along each direction until the edge of the board or the first occupied square, which is a capture if hostile."""
    moves: list[Move] = []
    for df, dr in directions:
        target = square.offset(df, dr)
        while target.is_valid():
            moves.extend(move_or_capture(square, target, view))
            if view.piece_at(target).is_valid():
                break
            target = target.offset(df, dr)
    return moves


def single_step_move(
    square: Square, view: PositionView, deltas: list[Vector]
) -> list[Move]:
    """Kings and knights: a single jump per delta"""
    moves: list[Move] = []
    for df, dr in deltas:
        moves.extend(move_or_capture(square, square.offset(df, dr), view))
    return moves


def candidate_pawn_moves(square: Square, view: PositionView) -> list[Move]:
    """
    Forward one square onto an empty square, or two from the initial rank when both are empty.
    Diagonally forward only to capture, either an enemy piece or en passant.
    """
    pawn = view.piece_at(square)
    facing = pawn.color.facing_direction
    moves: list[Move] = []

    one_square = square.offset(0, facing)
    if one_square.is_valid() and not view.piece_at(one_square).is_valid():
        moves.append(Move(pawn, square, one_square))

        two_square = one_square.offset(0, facing)
        if (
            two_square.is_valid()
            and not view.piece_at(two_square).is_valid()
            and square.rank == pawn.initial_rank()
        ):
            moves.append(TwoSquarePawnMove(pawn, square, two_square))

    for df in (-1, 1):
        target = square.offset(df, facing)
        if not target.is_valid():
            continue
        occupant = view.piece_at(target)
        if occupant.color == pawn.color.opponent:
            moves.append(Capture(pawn, square, target, occupant))
        elif target == view.en_passant_square:
            en_passant = EnPassantCapture(
                pawn, square, target, Piece(PieceType.PAWN, pawn.color.opponent)
            )
            # only from the capturing rank, and only with the passing pawn really there
            if (
                en_passant.valid
                and view.piece_at(en_passant.captured_square) == en_passant.captured_piece
            ):
                moves.append(en_passant)
    return moves


def candidate_knight_moves(square: Square, view: PositionView) -> list[Move]:
    return single_step_move(square, view, KNIGHT_DELTAS)


def candidate_bishop_moves(square: Square, view: PositionView) -> list[Move]:
    return raycasting_move(square, view, DIAGONALS)


def candidate_rook_moves(square: Square, view: PositionView) -> list[Move]:
    return raycasting_move(square, view, STRAIGHTS)


def candidate_queen_moves(square: Square, view: PositionView) -> list[Move]:
    return candidate_rook_moves(square, view) + candidate_bishop_moves(square, view)


def candidate_king_moves(square: Square, view: PositionView) -> list[Move]:
    """Castling is not included here, see Game."""
    return single_step_move(square, view, KING_DELTAS)


# --- MOVEMENT RULES BY PIECE TYPE ---
CandidateMovesFn = Callable[[Square, PositionView], list[Move]]
MOVEMENT_RULES: dict[PieceType, CandidateMovesFn] = {
    PieceType.KING: candidate_king_moves,
    PieceType.QUEEN: candidate_queen_moves,
    PieceType.ROOK: candidate_rook_moves,
    PieceType.BISHOP: candidate_bishop_moves,
    PieceType.KNIGHT: candidate_knight_moves,
    PieceType.PAWN: candidate_pawn_moves,
}


# --- ATTACKS ---
def raycasting_attack(
    square: Square,
    by_color: Color,
    by_piece_type: PieceType,
    view: PositionView,
    directions: list[Vector],
) -> bool:
    """
    The reverse of `raycasting_move()`: look outwards from `square` and report whether the first piece
    met along any direction is a `by_color` piece of type `by_piece_type`.
    """
    attacker = Piece(by_piece_type, by_color)
    for df, dr in directions:
        target = square.offset(df, dr)
        while target.is_valid():
            piece_found = view.piece_at(target)
            if piece_found == attacker:
                return True
            if piece_found.is_valid():
                break
            target = target.offset(df, dr)
    return False


def single_step_attack(
    square: Square,
    by_color: Color,
    by_piece_type: PieceType,
    view: PositionView,
    deltas: list[Vector],
) -> bool:
    attacker = Piece(by_piece_type, by_color)
    return any(view.piece_at(square.offset(df, dr)) == attacker for df, dr in deltas)


def is_attacked_by_pawn(square: Square, by_color: Color, view: PositionView) -> bool:
    """
    An attacking pawn stands one rank behind `square`, seen from its own side (white pawns attack upwards, so look down).

    En passant: if the en passant square lies right in front of `square` (seen from the attacker),
    the piece on `square` is the pawn that just advanced two squares, and an attacking pawn next to it can take it.
    """
    facing = by_color.facing_direction
    pawn = Piece(PieceType.PAWN, by_color)
    for df in (-1, 1):
        if view.piece_at(square.offset(df, -facing)) == pawn:
            return True

        in_front = square.offset(0, facing)
        if (
            in_front.is_valid()
            and in_front == view.en_passant_square
            and view.piece_at(square.offset(df, 0)) == pawn
        ):
            return True
    return False


def is_attacked_by_knight(square: Square, by_color: Color, view: PositionView) -> bool:
    return single_step_attack(square, by_color, PieceType.KNIGHT, view, KNIGHT_DELTAS)


def is_attacked_by_bishop(square: Square, by_color: Color, view: PositionView) -> bool:
    return raycasting_attack(square, by_color, PieceType.BISHOP, view, DIAGONALS)


def is_attacked_by_rook(square: Square, by_color: Color, view: PositionView) -> bool:
    return raycasting_attack(square, by_color, PieceType.ROOK, view, STRAIGHTS)


def is_attacked_by_queen(square: Square, by_color: Color, view: PositionView) -> bool:
    return raycasting_attack(square, by_color, PieceType.QUEEN, view, KING_DELTAS)


def is_attacked_by_king(square: Square, by_color: Color, view: PositionView) -> bool:
    return single_step_attack(square, by_color, PieceType.KING, view, KING_DELTAS)


# --- ATTACK RULES BY PIECE TYPE ---
IsAttackedFn = Callable[[Square, Color, PositionView], bool]
ATTACK_RULES: dict[PieceType, IsAttackedFn] = {
    PieceType.KING: is_attacked_by_king,
    PieceType.QUEEN: is_attacked_by_queen,
    PieceType.ROOK: is_attacked_by_rook,
    PieceType.BISHOP: is_attacked_by_bishop,
    PieceType.KNIGHT: is_attacked_by_knight,
    PieceType.PAWN: is_attacked_by_pawn,
}
