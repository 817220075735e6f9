"""Game models and data structures"""

from dataclasses import dataclass, field
from typing import List, Optional

from .constants import JOKER_VALUE, STATUS_WAITING, SUIT_JOKER, DIRECTION_COUNTER_CLOCKWISE


@dataclass(frozen=True)
class Card:
    id: str
    suit: str  # HEART|DIAMOND|CLUB|SPADE|JOKER
    value: int  # 0 for Joker, 1 for Ace, 11-13 for J, Q, K

    @property
    def is_joker(self) -> bool:
        return self.suit == SUIT_JOKER or self.value == JOKER_VALUE

    def __str__(self) -> str:
        if self.is_joker:
            return 'Joker'
        names = {1: 'A', 11: 'J', 12: 'Q', 13: 'K'}
        symbols = {'HEART': '♥', 'DIAMOND': '♦', 'CLUB': '♣', 'SPADE': '♠'}
        return f"{names.get(self.value, self.value)}{symbols.get(self.suit, '?')}"


@dataclass
class Player:
    id: str
    name: str
    hand: List[Card] = field(default_factory=list)
    melds: List[List[Card]] = field(default_factory=list)  # laid down this round
    bought_cards: List[Card] = field(default_factory=list)  # acquired this turn, subset of hand
    score: int = 0
    round_scores: List[int] = field(default_factory=list)
    round_buys: List[int] = field(default_factory=list)
    buys_used: int = 0  # cumulative over the whole game
    has_drawn: bool = False
    is_bot: bool = False
    difficulty: Optional[str] = None  # EASY|MEDIUM|HARD, bots only

    @property
    def has_melded(self) -> bool:
        return len(self.melds) > 0

    def find_card(self, card_id: str) -> Optional[Card]:
        return next((c for c in self.hand if c.id == card_id), None)

    def remove_cards(self, card_ids: List[str]) -> List[Card]:
        """Remove the given cards from hand and bought_cards, returning them in request order."""
        wanted = set(card_ids)
        by_id = {c.id: c for c in self.hand if c.id in wanted}
        self.hand = [c for c in self.hand if c.id not in wanted]
        self.bought_cards = [c for c in self.bought_cards if c.id not in wanted]
        return [by_id[cid] for cid in card_ids]


@dataclass
class BuyIntent:
    player_id: str
    timestamp: float


@dataclass
class LastAction:
    player_id: str
    type: str
    description: str
    timestamp: float


@dataclass
class GameSession:
    id: str
    creator_id: str
    players: List[Player] = field(default_factory=list)  # turn order fixed by position
    deck: List[Card] = field(default_factory=list)
    discard_pile: List[Card] = field(default_factory=list)
    current_turn: int = 0
    current_round: int = 1
    status: str = STATUS_WAITING  # WAITING|PLAYING|ROUND_ENDED|FINISHED
    direction: str = DIRECTION_COUNTER_CLOCKWISE
    ready_for_next_round: List[str] = field(default_factory=list)
    reshuffle_count: int = 0
    pending_buy_intents: List[BuyIntent] = field(default_factory=list)
    last_action: Optional[LastAction] = None
    version: int = 0

    @property
    def current_player(self) -> Optional[Player]:
        if 0 <= self.current_turn < len(self.players):
            return self.players[self.current_turn]
        return None

    @property
    def top_discard(self) -> Optional[Card]:
        return self.discard_pile[-1] if self.discard_pile else None

    def player_index(self, player_id: str) -> int:
        return next((i for i, p in enumerate(self.players) if p.id == player_id), -1)

    def get_player(self, player_id: str) -> Optional[Player]:
        index = self.player_index(player_id)
        return self.players[index] if index >= 0 else None

    def total_cards(self) -> int:
        """Cards currently in circulation (bought_cards are a subset of hands)."""
        return (
            len(self.deck)
            + len(self.discard_pile)
            + sum(len(p.hand) for p in self.players)
            + sum(len(m) for p in self.players for m in p.melds)
        )

    def increment_version(self):
        self.version += 1
