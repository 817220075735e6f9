"""
Bot players for the Carioca engine.
"""

from .base import BaseBot, BotAction, fallback_action
from .carioca_bot import CariocaBot, calculate_bot_move
from .driver import BotTurnDriver

__all__ = ["BaseBot", "BotAction", "BotTurnDriver", "CariocaBot", "calculate_bot_move", "fallback_action"]
