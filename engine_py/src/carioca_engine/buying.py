"""
Buy-intent priority arbitration.

Players announce they want the top discard with INTEND_BUY. When a buy is
attempted, every intent younger than the window competes and the seat
closest to the turn player, counting counter-clockwise, wins. The turn
player sits at distance 0 and always has priority.
"""

from typing import List, Optional, Sequence

from .models import BuyIntent


def seat_distance(seat: int, current_turn: int, player_count: int) -> int:
    """Counter-clockwise seat distance from the turn player (0 for the turn player)."""
    return (current_turn - seat) % player_count


def recent_intents(intents: Sequence[BuyIntent], now: float, window: float) -> List[BuyIntent]:
    return [i for i in intents if now - i.timestamp < window]


def register_intent(intents: Sequence[BuyIntent], player_id: str, now: float) -> List[BuyIntent]:
    """Add or refresh a player's intent, keeping one entry per player."""
    updated = [i for i in intents if i.player_id != player_id]
    updated.append(BuyIntent(player_id=player_id, timestamp=now))
    return updated


def resolve_buy_priority(
    intents: Sequence[BuyIntent],
    current_turn: int,
    player_ids: Sequence[str],
    now: float,
    window: float = 10.0,
) -> Optional[str]:
    """
    Pick the player entitled to buy the top discard.

    Args:
        intents: Registered intents (any age)
        current_turn: Seat index of the turn player
        player_ids: Player ids in seat order
        now: Current timestamp, in the same unit as the intents
        window: Seconds an intent remains eligible

    Returns:
        Winning player id, or None when no eligible intent exists
    """
    player_count = len(player_ids)
    if player_count == 0:
        return None

    candidates = []
    for intent in recent_intents(intents, now, window):
        if intent.player_id not in player_ids:
            continue
        seat = player_ids.index(intent.player_id)
        candidates.append((seat_distance(seat, current_turn, player_count), intent.timestamp, intent.player_id))

    if not candidates:
        return None
    return min(candidates)[2]
