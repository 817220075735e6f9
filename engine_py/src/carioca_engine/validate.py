"""
Meld validation for Carioca groups.

A meld is either a trio (cards sharing one value, every natural card of a
different suit) or an escala (a same-suit run that may wrap from King to
Ace). Jokers fill missing positions but may never outnumber the natural
cards in a group.
"""

from typing import List, Optional, Sequence, Tuple

from .constants import KING, describe_contract, get_contract
from .errors import INVALID_MELD
from .models import Card

MIN_GROUP_SIZE = 3
MAX_ESCALA_SIZE = KING

SHAPE_TRIO = 'TRIO'
SHAPE_ESCALA = 'ESCALA'


class ValidationResult:
    """Result of meld validation."""

    def __init__(
        self,
        valid: bool,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
    ):
        self.valid = valid
        self.error_code = error_code
        self.error_message = error_message

    @property
    def error(self) -> Optional[str]:
        return self.error_message

    @classmethod
    def success(cls) -> 'ValidationResult':
        """Create a successful validation result."""
        return cls(valid=True)

    @classmethod
    def failure(cls, error_message: str, error_code: str = INVALID_MELD) -> 'ValidationResult':
        """Create an error validation result."""
        return cls(valid=False, error_code=error_code, error_message=error_message)

    def __bool__(self) -> bool:
        return self.valid


def split_jokers(cards: Sequence[Card]) -> Tuple[List[Card], List[Card]]:
    """Split cards into (naturals, jokers)."""
    naturals = [c for c in cards if not c.is_joker]
    jokers = [c for c in cards if c.is_joker]
    return naturals, jokers


def circular_span(values: Sequence[int]) -> int:
    """
    Length of the shortest circular run (A..K wrapping) that covers all values.

    Example: Q, K, A, 2 -> 4; 2, 3, 5 -> 4.
    """
    ordered = sorted(set(values))
    if not ordered:
        return 0
    if len(ordered) == 1:
        return 1

    gaps = [b - a for a, b in zip(ordered, ordered[1:])]
    gaps.append(ordered[0] + KING - ordered[-1])  # wrap from the highest back to the lowest
    return KING - max(gaps) + 1


def is_trio(cards: Sequence[Card], min_len: int = MIN_GROUP_SIZE) -> bool:
    """Same value, pairwise distinct suits among naturals, jokers never outnumbering naturals."""
    if len(cards) < min_len:
        return False

    naturals, jokers = split_jokers(cards)
    if not naturals or len(jokers) > len(naturals):
        return False

    value = naturals[0].value
    if any(c.value != value for c in naturals):
        return False

    suits = [c.suit for c in naturals]
    return len(set(suits)) == len(suits)


def is_escala(cards: Sequence[Card], min_len: int = MIN_GROUP_SIZE) -> bool:
    """Same-suit circular run; jokers fill the gaps of the minimal enclosing span."""
    if len(cards) < min_len or len(cards) > MAX_ESCALA_SIZE:
        return False

    naturals, jokers = split_jokers(cards)
    if not naturals or len(jokers) > len(naturals):
        return False

    suit = naturals[0].suit
    if any(c.suit != suit for c in naturals):
        return False

    values = [c.value for c in naturals]
    if len(set(values)) != len(values):
        return False

    return circular_span(values) <= len(cards)


def is_valid_group(cards: Sequence[Card]) -> bool:
    return len(cards) >= MIN_GROUP_SIZE and (is_trio(cards) or is_escala(cards))


def meld_shape(meld: Sequence[Card]) -> Optional[str]:
    """Classify a laid-down meld by its natural cards."""
    naturals, _ = split_jokers(meld)
    if not naturals:
        return None
    if all(c.value == naturals[0].value for c in naturals):
        return SHAPE_TRIO
    return SHAPE_ESCALA


def validate_contract(groups: List[List[Card]], round_number: int) -> ValidationResult:
    """
    Validate a first down against the round contract.

    Escala requirements are satisfied first (they are more restrictive), then
    trio requirements, each consuming the first matching submitted group.
    Any group left over must stand on its own as a trio or escala of 3+.
    """
    try:
        contract = get_contract(round_number)
    except ValueError:
        return ValidationResult.failure("Ronda desconocida o contrato no válido.")

    if not groups:
        return ValidationResult.failure(f"Debes bajar {describe_contract(round_number)}.")

    consumed = set()

    def take(predicate) -> bool:
        for index, group in enumerate(groups):
            if index not in consumed and predicate(group):
                consumed.add(index)
                return True
        return False

    escalas_found = sum(
        1 for _ in range(contract.escalas)
        if take(lambda g: is_escala(g, contract.escala_size))
    )
    trios_found = sum(
        1 for _ in range(contract.trios)
        if take(lambda g: is_trio(g, contract.trio_size))
    )

    missing = []
    if trios_found < contract.trios:
        missing.append(
            f"{contract.trios - trios_found} grupo(s) de {contract.trio_size}+ cartas del mismo valor"
        )
    if escalas_found < contract.escalas:
        missing.append(
            f"{contract.escalas - escalas_found} escala(s) de {contract.escala_size}+ cartas"
        )
    if missing:
        return ValidationResult.failure(f"Te faltan {' y '.join(missing)}.")

    for index, group in enumerate(groups):
        if index in consumed:
            continue
        if not is_valid_group(group):
            return ValidationResult.failure(
                f"Solo puedes bajar exactamente {describe_contract(round_number)}; "
                f"el grupo {index + 1} no es un Trío ni una Escala válida."
            )

    return ValidationResult.success()


def validate_additional_down(groups: List[List[Card]]) -> ValidationResult:
    """Every group of a later down must independently be a trio or escala of 3+."""
    if not groups:
        return ValidationResult.failure("Debes bajar al menos 1 grupo.")

    for index, group in enumerate(groups):
        if len(group) < MIN_GROUP_SIZE:
            return ValidationResult.failure(
                f"El grupo {index + 1} debe tener al menos {MIN_GROUP_SIZE} cartas."
            )
        if not (is_trio(group) or is_escala(group)):
            return ValidationResult.failure(
                f"El grupo {index + 1} no es un Trío ni una Escala válida."
            )

    return ValidationResult.success()


def can_add_to_meld(card: Card, meld: Sequence[Card]) -> bool:
    """Appending the card must keep the meld a valid trio or escala."""
    extended = list(meld) + [card]
    return is_trio(extended) or is_escala(extended)


def find_trio_steal_partner(
    card: Card,
    meld: Sequence[Card],
    hand: Sequence[Card],
    partner_id: Optional[str] = None,
) -> Optional[Card]:
    """
    Find the second natural card a trio joker steal needs.

    The stealer gives two cards of the meld's value and takes one joker back,
    so the resulting meld (one joker fewer, two naturals more) must still be a
    valid trio.
    """
    naturals, jokers = split_jokers(meld)
    if card.is_joker or not jokers or len(naturals) < 2:
        return None
    value = naturals[0].value
    if card.value != value:
        return None

    remaining = list(meld)
    remaining.remove(jokers[0])
    for candidate in hand:
        if candidate.id == card.id or candidate.is_joker or candidate.value != value:
            continue
        if partner_id is not None and candidate.id != partner_id:
            continue
        if is_trio(remaining + [card, candidate], len(meld)):
            return candidate
    return None


def can_steal_joker(card: Card, meld: Sequence[Card], hand: Sequence[Card]) -> bool:
    """
    Whether the card (from hand) can free a joker from the meld.

    Trio melds need two existing naturals and a 2-for-1 swap; escala melds
    take a single natural that fits the run at the joker's position.
    """
    if card.is_joker:
        return False
    naturals, jokers = split_jokers(meld)
    if not jokers:
        return False

    if meld_shape(meld) == SHAPE_TRIO:
        return find_trio_steal_partner(card, meld, hand) is not None

    substituted = list(meld)
    substituted[substituted.index(jokers[0])] = card
    return is_escala(substituted, len(meld))


def swap_joker(meld: Sequence[Card], cards: Sequence[Card]) -> Tuple[List[Card], Card]:
    """Replace the meld's first joker with cards[0], append the rest; return (new meld, freed joker)."""
    new_meld = list(meld)
    joker_index = next(i for i, c in enumerate(new_meld) if c.is_joker)
    joker = new_meld[joker_index]
    new_meld[joker_index] = cards[0]
    new_meld.extend(cards[1:])
    return new_meld, joker
