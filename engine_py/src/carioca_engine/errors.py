# engine_py/src/carioca_engine/errors.py

from typing import Any, Dict, Optional


class GameError(Exception):
    """Base exception for game-related errors."""
    def __init__(self, code: str, message: str, status: Optional[int] = None):
        self.code = code
        self.message = message
        self.status = status if status is not None else STATUS_BY_CODE.get(code, 400)
        super().__init__(f"[{code}] {message}")

# Turn violations
NOT_YOUR_TURN = "NOT_YOUR_TURN"
NOT_HOST = "NOT_HOST"

# Precondition violations
ALREADY_DRAWN = "ALREADY_DRAWN"
MUST_DRAW_FIRST = "MUST_DRAW_FIRST"
BUY_WINDOW_CLOSED = "BUY_WINDOW_CLOSED"
BUYS_EXHAUSTED = "BUYS_EXHAUSTED"
NO_PRIORITY = "NO_PRIORITY"
NOT_MELDED = "NOT_MELDED"
INVALID_PHASE = "INVALID_PHASE"
ALREADY_READY = "ALREADY_READY"
PLAYERS_NOT_READY = "PLAYERS_NOT_READY"
ROOM_FULL = "ROOM_FULL"
NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
EMPTY_DISCARD = "EMPTY_DISCARD"

# Structural invalid input
SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
CARD_NOT_FOUND = "CARD_NOT_FOUND"
MELD_NOT_FOUND = "MELD_NOT_FOUND"
UNKNOWN_ACTION = "UNKNOWN_ACTION"
INVALID_PAYLOAD = "INVALID_PAYLOAD"

# Rule violations
INVALID_MELD = "INVALID_MELD"
INVALID_STEAL = "INVALID_STEAL"

# Terminal state
GAME_FINISHED = "GAME_FINISHED"

INTERNAL_ERROR = "INTERNAL_ERROR"

STATUS_BY_CODE = {
    NOT_YOUR_TURN: 403,
    NOT_HOST: 403,
    ALREADY_DRAWN: 409,
    MUST_DRAW_FIRST: 409,
    BUY_WINDOW_CLOSED: 409,
    BUYS_EXHAUSTED: 409,
    NO_PRIORITY: 409,
    NOT_MELDED: 409,
    INVALID_PHASE: 409,
    ALREADY_READY: 409,
    PLAYERS_NOT_READY: 409,
    ROOM_FULL: 409,
    NOT_ENOUGH_PLAYERS: 409,
    EMPTY_DISCARD: 409,
    SESSION_NOT_FOUND: 404,
    PLAYER_NOT_FOUND: 404,
    CARD_NOT_FOUND: 404,
    MELD_NOT_FOUND: 404,
    UNKNOWN_ACTION: 400,
    INVALID_PAYLOAD: 400,
    INVALID_MELD: 400,
    INVALID_STEAL: 400,
    GAME_FINISHED: 409,
    INTERNAL_ERROR: 500,
}


class MoveResult:
    """Outcome of a processed move."""

    def __init__(
        self,
        success: bool,
        error: Optional[str] = None,
        status: Optional[int] = None,
        code: Optional[str] = None,
        game_status: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        self.success = success
        self.error = error
        self.status = status
        self.code = code
        self.game_status = game_status
        self.data = data or {}

    @classmethod
    def ok(cls, game_status: str, **data) -> 'MoveResult':
        return cls(success=True, game_status=game_status, data=data)

    @classmethod
    def fail(cls, error: GameError) -> 'MoveResult':
        return cls(success=False, error=error.message, status=error.status, code=error.code)

    def to_dict(self) -> Dict[str, Any]:
        result = {'success': self.success}
        if self.success:
            result['gameStatus'] = self.game_status
            result.update(self.data)
        else:
            result['error'] = self.error
            result['status'] = self.status
            result['code'] = self.code
        return result

    def __repr__(self) -> str:
        if self.success:
            return f"MoveResult(success=True, game_status={self.game_status!r})"
        return f"MoveResult(success=False, code={self.code!r}, error={self.error!r})"
