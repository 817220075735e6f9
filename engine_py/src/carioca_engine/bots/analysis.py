"""
Hand analysis used by the bots: candidate groups, contract search and
card usefulness estimates.
"""

from collections import defaultdict
from typing import Dict, List, Optional, Sequence

from ..constants import KING, get_contract
from ..models import Card
from ..validate import (
    MIN_GROUP_SIZE,
    is_escala,
    is_trio,
    split_jokers,
    validate_additional_down,
    validate_contract,
)

# Same-suit cards this close (circularly) are escala material
NEIGHBOR_DISTANCE = 2


def circular_distance(a: int, b: int) -> int:
    diff = abs(a - b)
    return min(diff, KING - diff)


def distinct_suits(cards: Sequence[Card]) -> List[Card]:
    """One card per suit, keeping the first seen."""
    seen = set()
    result = []
    for card in cards:
        if card.suit not in seen:
            seen.add(card.suit)
            result.append(card)
    return result


def by_value(cards: Sequence[Card]) -> Dict[int, List[Card]]:
    groups = defaultdict(list)
    for card in cards:
        if not card.is_joker:
            groups[card.value].append(card)
    return groups


def by_suit(cards: Sequence[Card]) -> Dict[str, List[Card]]:
    groups = defaultdict(list)
    for card in cards:
        if not card.is_joker:
            groups[card.suit].append(card)
    return groups


def trio_candidates(hand: Sequence[Card], size: int, allow_jokers: bool = True) -> List[List[Card]]:
    """
    Exact-size trio groups the hand can form, one per value.

    Naturals are deduplicated by suit; jokers pad the group only when
    allowed and never outnumber the naturals.
    """
    naturals, jokers = split_jokers(hand)
    candidates = []
    for value, cards in sorted(by_value(naturals).items()):
        suited = distinct_suits(cards)
        if len(suited) >= size:
            candidates.append(suited[:size])
            continue
        needed = size - len(suited)
        if allow_jokers and needed <= len(jokers) and needed <= len(suited):
            candidates.append(suited + jokers[:needed])
    return [c for c in candidates if is_trio(c, size)]


def escala_candidates(hand: Sequence[Card], size: int, allow_jokers: bool = True) -> List[List[Card]]:
    """Exact-size escala groups: every circular window of the given length, per suit."""
    naturals, jokers = split_jokers(hand)
    candidates = []
    for suit, cards in sorted(by_suit(naturals).items()):
        first_by_value = {}
        for card in cards:
            first_by_value.setdefault(card.value, card)

        for start in range(1, KING + 1):
            window = [((start + i - 1) % KING) + 1 for i in range(size)]
            present = [first_by_value[v] for v in window if v in first_by_value]
            needed = size - len(present)
            if needed == 0:
                candidates.append(present)
            elif allow_jokers and needed <= len(jokers) and needed <= len(present):
                candidates.append(present + jokers[:needed])
    return [c for c in candidates if is_escala(c, size)]


def _joker_count(group: Sequence[Card]) -> int:
    return sum(1 for c in group if c.is_joker)


def find_contract_groups(hand: Sequence[Card], round_number: int,
                         allow_jokers: bool = True) -> Optional[List[List[Card]]]:
    """
    Search for disjoint groups satisfying exactly the round contract.

    Escala requirements are filled first, then trios; candidates using fewer
    jokers are tried first. Returns None when the hand cannot meet the contract.
    """
    try:
        contract = get_contract(round_number)
    except ValueError:
        return None

    requirements = (
        [('escala', contract.escala_size)] * contract.escalas
        + [('trio', contract.trio_size)] * contract.trios
    )

    def search(remaining: List[Card], index: int) -> Optional[List[List[Card]]]:
        if index == len(requirements):
            return []
        kind, size = requirements[index]
        if kind == 'escala':
            candidates = escala_candidates(remaining, size, allow_jokers)
        else:
            candidates = trio_candidates(remaining, size, allow_jokers)

        for group in sorted(candidates, key=_joker_count):
            used = {c.id for c in group}
            rest = search([c for c in remaining if c.id not in used], index + 1)
            if rest is not None:
                return [group] + rest
        return None

    groups = search(list(hand), 0)
    if groups is None or not validate_contract(groups, round_number):
        return None
    return groups


def find_additional_group(hand: Sequence[Card], allow_jokers: bool = True) -> Optional[List[Card]]:
    """Any single 3+ trio or escala that could be laid down after the contract."""
    candidates = (
        trio_candidates(hand, MIN_GROUP_SIZE, allow_jokers)
        + escala_candidates(hand, MIN_GROUP_SIZE, allow_jokers)
    )
    for group in sorted(candidates, key=_joker_count):
        if validate_additional_down([group]):
            return group
    return None


def is_group_material(card: Card, hand: Sequence[Card]) -> bool:
    """Whether the card pairs with another natural of the hand (same value or near same-suit)."""
    if card.is_joker:
        return True
    for other in hand:
        if other.id == card.id or other.is_joker:
            continue
        if other.value == card.value:
            return True
        if other.suit == card.suit and circular_distance(other.value, card.value) <= NEIGHBOR_DISTANCE:
            return True
    return False


def is_useful(card: Card, hand: Sequence[Card], round_number: int) -> bool:
    """
    Would the card improve the hand toward the round contract?

    Trio rounds value a new suit for a value already held; the escala round
    values same-suit neighbours.
    """
    if card.is_joker:
        return True
    contract = get_contract(round_number)
    naturals, _ = split_jokers(hand)

    if contract.trios:
        same_value = [c for c in naturals if c.value == card.value]
        if same_value and card.suit not in {c.suit for c in same_value}:
            return True
    if contract.escalas:
        for other in naturals:
            if (other.suit == card.suit and other.value != card.value
                    and circular_distance(other.value, card.value) <= NEIGHBOR_DISTANCE):
                return True
    return False


def is_excellent(card: Card, hand: Sequence[Card]) -> bool:
    """A joker, or a value the hand already holds at least twice."""
    if card.is_joker:
        return True
    return sum(1 for c in hand if not c.is_joker and c.value == card.value) >= 2


def hand_quality(hand: Sequence[Card]) -> float:
    """Share of the hand that already works toward some group (0.0 - 1.0)."""
    if not hand:
        return 1.0
    return sum(1 for c in hand if is_group_material(c, hand)) / len(hand)


def opponent_usefulness(card: Card, opponent_hands: Sequence[Sequence[Card]]) -> int:
    """How many cards of the same value the opponents hold."""
    if card.is_joker:
        return sum(len(hand) for hand in opponent_hands)
    return sum(1 for hand in opponent_hands for c in hand if not c.is_joker and c.value == card.value)
