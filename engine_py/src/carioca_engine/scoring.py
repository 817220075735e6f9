# engine_py/src/carioca_engine/scoring.py

import logging
from typing import Dict, List, Optional, Sequence

from .constants import (
    ACE,
    STATUS_FINISHED,
    STATUS_ROUND_ENDED,
)
from .models import Card, GameSession
from .rules import RuleConfig, default_rules

logger = logging.getLogger(__name__)

JOKER_POINTS = 20
ACE_POINTS = 15
FACE_POINTS = 10


def card_points(card: Card) -> int:
    """Penalty points of a single card left in hand."""
    if card.is_joker:
        return JOKER_POINTS
    if card.value == ACE:
        return ACE_POINTS
    if 11 <= card.value <= 13:
        return FACE_POINTS
    return card.value


def hand_points(hand: Sequence[Card]) -> int:
    return sum(card_points(card) for card in hand)


def remaining_buys(buys_used: int, max_buys: int = default_rules.max_buys) -> int:
    return max(0, max_buys - (buys_used or 0))


def buy_penalty(buys_used: int, max_buys: int = default_rules.max_buys,
                penalty: int = default_rules.unused_buys_penalty) -> int:
    return penalty if remaining_buys(buys_used, max_buys) > 0 else 0


def apply_remaining_buys_penalty(score: int, buys_used: int,
                                 max_buys: int = default_rules.max_buys,
                                 penalty: int = default_rules.unused_buys_penalty) -> int:
    """Adjust a final score: players who kept buys unused get the penalty subtracted."""
    return score - buy_penalty(buys_used, max_buys, penalty)


def finalize_round(state: GameSession, winner_id: Optional[str], rules: RuleConfig = default_rules) -> str:
    """
    Score the round and move the session to ROUND_ENDED or FINISHED.

    This function mutates the state: every player's remaining hand points are
    added to their score (the winner scores 0), histories are appended, and
    per-turn state is cleared. Bots are marked ready for the next round.

    Args:
        state: Session being finalized
        winner_id: Player who emptied their hand, or None when the deck ran out

    Returns:
        The new session status
    """
    for player in state.players:
        points = 0 if player.id == winner_id else hand_points(player.hand)
        player.score += points
        player.round_scores.append(points)
        player.round_buys.append(player.buys_used)
        player.bought_cards = []
        player.has_drawn = False

    state.pending_buy_intents = []
    state.ready_for_next_round = []

    if state.current_round >= rules.total_rounds:
        for player in state.players:
            player.score = apply_remaining_buys_penalty(
                player.score, player.buys_used, rules.max_buys, rules.unused_buys_penalty
            )
        state.status = STATUS_FINISHED
        logger.info(f"Session {state.id} finished after round {state.current_round}")
    else:
        state.status = STATUS_ROUND_ENDED
        state.ready_for_next_round = [p.id for p in state.players if p.is_bot]
        logger.info(f"Session {state.id} round {state.current_round} ended (winner: {winner_id or 'none'})")

    return state.status


def final_standings(state: GameSession) -> List[Dict]:
    """Participants ordered by final score (lowest wins, seat order breaks ties)."""
    ranked = sorted(enumerate(state.players), key=lambda item: (item[1].score, item[0]))
    return [{'id': p.id, 'name': p.name, 'score': p.score} for _, p in ranked]
