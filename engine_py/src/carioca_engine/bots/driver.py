"""
Bounded turn loop that plays bot turns after each processed move.
"""

import logging
import random
import time
from typing import Callable, Optional

from .base import fallback_action
from .carioca_bot import calculate_bot_move
from ..constants import DIFFICULTY_MEDIUM, STATUS_PLAYING, MoveAction
from ..errors import INVALID_PHASE, GameError, MoveResult

logger = logging.getLogger(__name__)


class BotTurnDriver:
    """
    Apply bot moves until a human is on turn or the loop budget runs out.

    The engine passed in must expose get_game_state(session_id) and
    apply_move(session_id, player_id, action, payload); apply_move never
    re-enters the driver.
    """

    def __init__(
        self,
        engine,
        max_iterations: int = 50,
        turn_timeout: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
    ):
        self.engine = engine
        self.max_iterations = max_iterations
        self.turn_timeout = turn_timeout
        self.clock = clock
        self.rng = rng or random.Random()

    def run(self, session_id: str) -> int:
        """
        Play bot turns for a session.

        Returns:
            Number of loop iterations used
        """
        iterations = 0
        turn_key = None
        deadline = 0.0

        while iterations < self.max_iterations:
            state = self.engine.get_game_state(session_id)
            if state.status != STATUS_PLAYING:
                break
            bot = state.current_player
            if bot is None or not bot.is_bot:
                break

            key = (state.current_round, state.current_turn)
            if key != turn_key:
                turn_key = key
                deadline = self.clock() + self.turn_timeout
            iterations += 1

            if self.clock() > deadline:
                logger.warning(f"Bot {bot.id} exceeded {self.turn_timeout}s in session {session_id}, forcing a move")
                if not self.force_fallback(session_id, bot.id).success:
                    break
                continue

            action = calculate_bot_move(
                state, bot.id, bot.difficulty or DIFFICULTY_MEDIUM, self.rng,
                max_buys=self.engine.rules.max_buys,
            )
            if action is None:
                logger.warning(f"Bot {bot.id} had no move in session {session_id}, forcing a move")
                if not self.force_fallback(session_id, bot.id).success:
                    break
                continue

            if action.type == MoveAction.DRAW_DISCARD:
                self.engine.apply_move(session_id, bot.id, MoveAction.INTEND_BUY)

            result = self.engine.apply_move(session_id, bot.id, action.type, action.payload)
            if not result.success:
                logger.warning(f"Bot {bot.id} move {action} failed ({result.code}), forcing a move")
                if not self.force_fallback(session_id, bot.id).success:
                    break

        if iterations >= self.max_iterations:
            logger.warning(f"Bot driver yielded after {iterations} iterations in session {session_id}")
        return iterations

    def force_fallback(self, session_id: str, bot_id: str) -> MoveResult:
        """
        Draw if needed, then discard the highest-point card.

        Returns the result of the last applied move.
        """
        result = None
        # At most a draw and a discard
        for _ in range(2):
            state = self.engine.get_game_state(session_id)
            current = state.current_player
            if state.status != STATUS_PLAYING or current is None or current.id != bot_id:
                break
            action = fallback_action(state, bot_id)
            if action is None:
                break
            result = self.engine.apply_move(session_id, bot_id, action.type, action.payload)
            if not result.success:
                logger.warning(f"Fallback {action} for bot {bot_id} failed: {result.error}")
                return result

        if result is None:
            return MoveResult.fail(GameError(INVALID_PHASE, "El bot no tiene turno."))
        return result
