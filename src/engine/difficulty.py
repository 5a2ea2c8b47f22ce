"""How hard the engine tries: search depth and time budget per difficulty level"""

from typing import NamedTuple

from src.core.shared_types import Difficulty


class SearchLimits(NamedTuple):
    depth: int
    movetime_ms: int


SEARCH_LIMITS: dict[Difficulty, SearchLimits] = {
    Difficulty.EASY: SearchLimits(depth=1, movetime_ms=2500),
    Difficulty.NORMAL: SearchLimits(depth=4, movetime_ms=5000),
    Difficulty.HARD: SearchLimits(depth=9, movetime_ms=7500),
}


def go_command(limits: SearchLimits) -> str:
    return f"go depth {limits.depth} movetime {limits.movetime_ms}"
