"""
Base bot interface and utilities.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..constants import STATUS_PLAYING, MoveAction
from ..models import Card, GameSession, Player
from ..scoring import card_points


class BotAction:
    """Represents a bot action."""

    def __init__(self, action_type: MoveAction, **payload):
        self.type = action_type
        self.payload: Dict[str, Any] = payload

    @classmethod
    def draw_deck(cls) -> 'BotAction':
        return cls(MoveAction.DRAW_DECK)

    @classmethod
    def draw_discard(cls) -> 'BotAction':
        """Take the top discard (a buy when it is not the bot's turn)."""
        return cls(MoveAction.DRAW_DISCARD)

    @classmethod
    def discard(cls, card_id: str) -> 'BotAction':
        return cls(MoveAction.DISCARD, cardId=card_id)

    @classmethod
    def down(cls, groups: List[List[Card]]) -> 'BotAction':
        """Lay down groups, given as card lists."""
        return cls(MoveAction.DOWN, groups=[[c.id for c in group] for group in groups])

    @classmethod
    def add_to_meld(cls, card_id: str, target_player_id: str, meld_index: int) -> 'BotAction':
        return cls(
            MoveAction.ADD_TO_MELD,
            cardId=card_id,
            targetPlayerId=target_player_id,
            meldIndex=meld_index,
        )

    @classmethod
    def steal_joker(cls, card_id: str, target_player_id: str, meld_index: int,
                    second_card_id: Optional[str] = None) -> 'BotAction':
        payload = {'cardId': card_id, 'targetPlayerId': target_player_id, 'meldIndex': meld_index}
        if second_card_id:
            payload['secondCardId'] = second_card_id
        return cls(MoveAction.STEAL_JOKER, **payload)

    def __repr__(self) -> str:
        return f"BotAction({self.type.value}, {self.payload})"


def highest_point_card(hand: List[Card], allow_jokers: bool = False) -> Optional[Card]:
    """Highest-point card of the hand, keeping jokers unless they are all that is left."""
    candidates = [c for c in hand if not c.is_joker] or (list(hand) if allow_jokers else [])
    if not candidates:
        return None
    return max(candidates, key=card_points)


def fallback_action(state: GameSession, bot_id: str) -> Optional[BotAction]:
    """
    Always-legal move for the turn player: draw if needed, then shed the
    highest-point card. Used when a bot stalls or fails.
    """
    bot = state.get_player(bot_id)
    if bot is None or state.status != STATUS_PLAYING:
        return None
    if not bot.has_drawn:
        return BotAction.draw_deck()
    card = highest_point_card(bot.hand, allow_jokers=True)
    return BotAction.discard(card.id) if card else None


class BaseBot(ABC):
    """Abstract base class for bot players."""

    def __init__(self, player_id: str):
        self.player_id = player_id

    @abstractmethod
    def choose_action(self, state: GameSession) -> Optional[BotAction]:
        """
        Choose an action based on the current game state.

        Args:
            state: Current game state (full snapshot)

        Returns:
            BotAction to take, or None if no action needed
        """
        pass

    def get_player(self, state: GameSession) -> Optional[Player]:
        return state.get_player(self.player_id)

    def is_my_turn(self, state: GameSession) -> bool:
        """Check if it's this bot's turn."""
        current = state.current_player
        return current is not None and current.id == self.player_id

    def get_opponents(self, state: GameSession) -> List[Player]:
        return [p for p in state.players if p.id != self.player_id]

    def get_table_melds(self, state: GameSession, own_first: bool = True):
        """Yield (owner, meld_index, meld) for every meld on the table."""
        players = list(state.players)
        if own_first:
            players.sort(key=lambda p: p.id != self.player_id)
        for owner in players:
            for index, meld in enumerate(owner.melds):
                yield owner, index, meld
