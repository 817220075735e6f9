"""
Card shuffling and dealing utilities.
"""

import random
from typing import List, Optional, Tuple

from .constants import JOKER_VALUE, SUIT_JOKER, SUITS, VALUES
from .models import Card, GameSession


def create_deck(number_of_decks: int = 2, jokers_per_deck: int = 2) -> List[Card]:
    """Create the shoe: standard 52-card decks plus jokers, each card uniquely identified."""
    deck = []

    for i in range(number_of_decks):
        for suit in SUITS:
            for value in VALUES:
                deck.append(Card(id=f"{suit[0]}{value}-{i}", suit=suit, value=value))

        for j in range(jokers_per_deck):
            deck.append(Card(id=f"JOKER-{i}-{j}", suit=SUIT_JOKER, value=JOKER_VALUE))

    return deck


def shuffle_deck(deck: List[Card], rng: Optional[random.Random] = None) -> List[Card]:
    """
    Shuffle a deck, deterministically if a seeded Random is provided.

    Args:
        deck: Cards to shuffle
        rng: Optional random source

    Returns:
        Shuffled copy of the deck
    """
    deck_copy = deck.copy()
    (rng or random).shuffle(deck_copy)
    return deck_copy


def deal_hands(deck: List[Card], player_count: int, cards_per_hand: int) -> Tuple[List[List[Card]], List[Card]]:
    """
    Deal consecutive blocks of cards from the front of the deck.

    Args:
        deck: Shuffled deck of cards
        player_count: Number of hands to deal
        cards_per_hand: Cards per hand

    Returns:
        Tuple of (hands in seat order, remaining deck)
    """
    if player_count * cards_per_hand > len(deck):
        raise ValueError(
            f"Cannot deal {cards_per_hand} cards to {player_count} players from {len(deck)} cards"
        )

    remaining = deck.copy()
    hands = []
    for _ in range(player_count):
        hands.append(remaining[:cards_per_hand])
        remaining = remaining[cards_per_hand:]

    return hands, remaining


def draw_with_reshuffle(
    session: GameSession,
    max_reshuffles: int,
    rng: Optional[random.Random] = None,
) -> Optional[Card]:
    """
    Pop the top deck card, recycling the discard pile into the deck when it runs out.

    Each recycle consumes one of the round's reshuffle allowances. Returns None
    when the deck is empty and no allowance (or no discard) is left.
    """
    if not session.deck and session.reshuffle_count < max_reshuffles and session.discard_pile:
        session.deck = shuffle_deck(session.discard_pile, rng)
        session.discard_pile = []
        session.reshuffle_count += 1

    if not session.deck:
        return None
    return session.deck.pop()


def validate_deck_integrity(session: GameSession, expected_size: int) -> bool:
    """
    Validate that all cards are accounted for and no duplicates exist.

    Args:
        session: Session to validate
        expected_size: Size of the full shoe dealt for the round

    Returns:
        True if deck integrity is valid
    """
    all_ids = [c.id for c in session.deck]
    all_ids.extend(c.id for c in session.discard_pile)
    for player in session.players:
        all_ids.extend(c.id for c in player.hand)
        for meld in player.melds:
            all_ids.extend(c.id for c in meld)

    hand_ids = {c.id for p in session.players for c in p.hand}
    bought_in_hand = all(c.id in hand_ids for p in session.players for c in p.bought_cards)

    return (
        len(all_ids) == len(set(all_ids)) and
        len(all_ids) == expected_size and
        bought_in_hand
    )
