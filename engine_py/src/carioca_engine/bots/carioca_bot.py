"""
Carioca bot with difficulty-tiered heuristics.
"""

import random
from typing import Optional

from .analysis import (
    find_additional_group,
    find_contract_groups,
    hand_quality,
    is_excellent,
    is_group_material,
    is_useful,
    opponent_usefulness,
)
from .base import BaseBot, BotAction, highest_point_card
from ..constants import DIFFICULTY_EASY, DIFFICULTY_HARD, DIFFICULTY_MEDIUM, STATUS_PLAYING
from ..models import Card, GameSession, Player
from ..rules import default_rules
from ..scoring import card_points, hand_points
from ..validate import SHAPE_TRIO, can_add_to_meld, can_steal_joker, find_trio_steal_partner, meld_shape

EASY_BUY_CHANCE = 0.05
MEDIUM_BUY_CHANCE = 0.4
MEDIUM_BLOCK_CHANCE = 0.5
MEDIUM_WEAK_HAND = 0.4
HARD_BUY_CHANCE = 0.8
HARD_BLOCK_LEADER_CHANCE = 0.9
HARD_BLOCK_COMPETITOR_CHANCE = 0.7
HARD_DENY_CHANCE = 0.5
HARD_DENY_MAX_HAND = 16
CLOSE_COMPETITOR_POINTS = 20
EMERGENCY_HAND_POINTS = 80
# Hand size at which a bot starts dumping cards onto opponents' melds
ADD_TO_OTHERS_HAND_SIZE = 4


class CariocaBot(BaseBot):
    """
    Bot that plays one move at a time for the turn it holds.

    Strategy:
    - Draw phase: deck by default, buying the discard when useful or to block
    - Action phase: emergency down, joker steals, contract down, adds and
      extra downs, then a discard
    """

    def __init__(self, player_id: str, difficulty: str = DIFFICULTY_MEDIUM,
                 rng: Optional[random.Random] = None, max_buys: int = default_rules.max_buys):
        super().__init__(player_id)
        self.difficulty = difficulty
        self.rng = rng or random.Random()
        self.max_buys = max_buys

    def choose_action(self, state: GameSession) -> Optional[BotAction]:
        if state.status != STATUS_PLAYING or not self.is_my_turn(state):
            return None

        bot = self.get_player(state)
        if not bot.has_drawn:
            return self._choose_draw(state, bot)
        return self._choose_play(state, bot)

    # ------------------------------------------------------------------
    # Draw phase
    # ------------------------------------------------------------------

    def _choose_draw(self, state: GameSession, bot: Player) -> BotAction:
        top = state.top_discard
        if top is None or bot.buys_used >= self.max_buys:
            return BotAction.draw_deck()

        if self.difficulty == DIFFICULTY_EASY:
            wants = is_excellent(top, bot.hand) and self.rng.random() < EASY_BUY_CHANCE
        elif self.difficulty == DIFFICULTY_HARD:
            wants = self._hard_wants_discard(state, bot, top)
        else:
            wants = self._medium_wants_discard(state, bot, top)

        return BotAction.draw_discard() if wants else BotAction.draw_deck()

    def _medium_wants_discard(self, state: GameSession, bot: Player, top: Card) -> bool:
        if is_useful(top, bot.hand, state.current_round):
            if hand_quality(bot.hand) < MEDIUM_WEAK_HAND or self.rng.random() < MEDIUM_BUY_CHANCE:
                return True

        leader = self._score_leader(state)
        if leader and is_useful(top, leader.hand, state.current_round):
            return self.rng.random() < MEDIUM_BLOCK_CHANCE
        return False

    def _hard_wants_discard(self, state: GameSession, bot: Player, top: Card) -> bool:
        if top.is_joker:
            return True
        if is_useful(top, bot.hand, state.current_round) and self.rng.random() < HARD_BUY_CHANCE:
            return True

        leader = self._score_leader(state)
        if leader and is_useful(top, leader.hand, state.current_round):
            if self.rng.random() < HARD_BLOCK_LEADER_CHANCE:
                return True

        for opponent in self.get_opponents(state):
            close = abs(opponent.score - bot.score) <= CLOSE_COMPETITOR_POINTS
            if close and opponent is not leader and is_useful(top, opponent.hand, state.current_round):
                if self.rng.random() < HARD_BLOCK_COMPETITOR_CHANCE:
                    return True

        # Defensive buy: deny a card some opponent wants while the hand is still manageable
        if len(bot.hand) <= HARD_DENY_MAX_HAND:
            wanted = any(is_useful(top, o.hand, state.current_round) for o in self.get_opponents(state))
            if wanted and self.rng.random() < HARD_DENY_CHANCE:
                return True
        return False

    def _score_leader(self, state: GameSession) -> Optional[Player]:
        """Opponent with the lowest cumulative score (lowest wins)."""
        opponents = self.get_opponents(state)
        if not opponents:
            return None
        return min(opponents, key=lambda p: p.score)

    # ------------------------------------------------------------------
    # Action phase
    # ------------------------------------------------------------------

    def _choose_play(self, state: GameSession, bot: Player) -> Optional[BotAction]:
        if (self.difficulty == DIFFICULTY_HARD and not bot.has_melded
                and hand_points(bot.hand) > EMERGENCY_HAND_POINTS):
            groups = find_contract_groups(bot.hand, state.current_round)
            if groups:
                return BotAction.down(groups)

        if self.difficulty != DIFFICULTY_EASY and bot.has_melded:
            steal = self._find_steal(state, bot)
            if steal:
                return steal

        if not bot.has_melded:
            # Candidates are always exact contract size; EASY only takes ones
            # it holds outright, without joker padding
            groups = find_contract_groups(
                bot.hand, state.current_round,
                allow_jokers=self.difficulty != DIFFICULTY_EASY,
            )
            if groups:
                return BotAction.down(groups)
        else:
            add = self._find_add(state, bot)
            if add:
                return add
            group = find_additional_group(bot.hand, allow_jokers=self.difficulty != DIFFICULTY_EASY)
            if group:
                return BotAction.down([group])

        return self._choose_discard(state, bot)

    def _find_steal(self, state: GameSession, bot: Player) -> Optional[BotAction]:
        trades = []
        for owner, index, meld in self.get_table_melds(state):
            if not any(c.is_joker for c in meld):
                continue
            for card in bot.hand:
                if card.is_joker:
                    continue
                if meld_shape(meld) == SHAPE_TRIO:
                    partner = find_trio_steal_partner(card, meld, bot.hand)
                    if partner is None:
                        continue
                    cost = card_points(card) + card_points(partner)
                    trades.append((cost, card, partner, owner, index, meld))
                elif can_steal_joker(card, meld, bot.hand):
                    trades.append((card_points(card), card, None, owner, index, meld))

        if not trades:
            return None

        if self.difficulty == DIFFICULTY_HARD:
            chosen = min(trades, key=lambda t: t[0])
        else:
            profitable = [t for t in trades if hand_points(t[5]) > 2 * t[0]]
            if not profitable:
                return None
            chosen = profitable[0]

        _, card, partner, owner, index, _ = chosen
        return BotAction.steal_joker(card.id, owner.id, index, partner.id if partner else None)

    def _find_add(self, state: GameSession, bot: Player) -> Optional[BotAction]:
        # Jokers are kept for later unless the bot is about to go out
        cards = [c for c in bot.hand if not c.is_joker]
        if len(bot.hand) <= 2:
            cards += [c for c in bot.hand if c.is_joker]

        for owner, index, meld in self.get_table_melds(state, own_first=True):
            if owner.id != bot.id and len(bot.hand) > ADD_TO_OTHERS_HAND_SIZE:
                continue
            for card in cards:
                if can_add_to_meld(card, meld):
                    return BotAction.add_to_meld(card.id, owner.id, index)
        return None

    def _choose_discard(self, state: GameSession, bot: Player) -> Optional[BotAction]:
        hand = bot.hand
        if not hand:
            return None

        if self.difficulty == DIFFICULTY_EASY:
            naturals = [c for c in hand if not c.is_joker]
            return BotAction.discard(self.rng.choice(naturals or hand).id)

        table_melds = [meld for _, _, meld in self.get_table_melds(state)]
        candidates = [
            c for c in hand
            if not c.is_joker
            and not is_group_material(c, hand)
            and not any(can_add_to_meld(c, meld) for meld in table_melds)
        ]
        if not candidates:
            candidates = [c for c in hand if not c.is_joker]
        if not candidates:
            return BotAction.discard(highest_point_card(hand, allow_jokers=True).id)

        if self.difficulty == DIFFICULTY_HARD:
            opponent_hands = [o.hand for o in self.get_opponents(state)]
            chosen = min(
                candidates,
                key=lambda c: (opponent_usefulness(c, opponent_hands), card_points(c)),
            )
        else:
            chosen = max(candidates, key=card_points)
        return BotAction.discard(chosen.id)


def calculate_bot_move(state: GameSession, bot_id: str, difficulty: str = DIFFICULTY_MEDIUM,
                       rng: Optional[random.Random] = None,
                       max_buys: int = default_rules.max_buys) -> Optional[BotAction]:
    """
    Decide the next move for a bot.

    Args:
        state: Full session snapshot (bots see every hand)
        bot_id: Bot to decide for
        difficulty: EASY, MEDIUM or HARD
        rng: Random source, seeded in tests

    Returns:
        The chosen BotAction, or None when it is not the bot's turn
    """
    return CariocaBot(bot_id, difficulty, rng, max_buys).choose_action(state)
