"""
Carioca card game engine: rules, move processing and bots.
"""

from .engine import CariocaEngine
from .errors import MoveResult
from .rules import RuleConfig, create_rules, default_rules

__all__ = ["CariocaEngine", "MoveResult", "RuleConfig", "create_rules", "default_rules"]
