"""
Exceptions raised across layers.

Three families that callers must be able to tell apart:
* GameError: the caller broke a chess rule or a Game/Position contract ("your move was illegal")
* ParseError (a GameError): a persisted FEN / game record could not be read ("this saved game is corrupt")
* EngineError: the engine subprocess misbehaved ("the computer opponent is unavailable")
"""


class GameError(Exception):
    """Base class for chess rule and usage errors."""


class InvalidSquareError(GameError):
    """Indexing the board with a square that is not on it."""


class GameStateError(GameError):
    """The game is in a state that does not allow the requested action (for instance: it is already over)."""


class IllegalMoveError(GameError):
    """The move is invalid or not among the currently possible moves."""


class NotYourTurnError(GameError):
    """Acting for the side that is not active."""


class InvalidClaimError(GameError):
    """Manually recording a loss/draw that is detected automatically, or whose condition is not present."""


class ParseError(GameError):
    """Base class for malformed persisted data."""


class InvalidFENError(ParseError):
    pass


class InvalidRecordError(ParseError):
    pass


class EngineError(Exception):
    """Base class for failures of the engine subprocess. Deliberately NOT a GameError."""


class EngineLaunchError(EngineError):
    pass


class EnginePipeError(EngineError):
    """Missing or broken pipe to/from the engine."""


class EngineTimeoutError(EngineError):
    """The engine did not send the awaited reply in time."""


class RepositoryError(Exception):
    pass


class InvalidRequestError(Exception):
    """Raised by the request model validators (propagates through pydantic as is)."""
