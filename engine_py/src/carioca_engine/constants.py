"""Game constants and the per-round contract table"""

from enum import Enum
from typing import Dict, NamedTuple

SUIT_HEART = 'HEART'
SUIT_DIAMOND = 'DIAMOND'
SUIT_CLUB = 'CLUB'
SUIT_SPADE = 'SPADE'
SUIT_JOKER = 'JOKER'
SUITS = [SUIT_HEART, SUIT_DIAMOND, SUIT_CLUB, SUIT_SPADE]

JOKER_VALUE = 0
ACE = 1
KING = 13
VALUES = list(range(ACE, KING + 1))

# Game phases
STATUS_WAITING = 'WAITING'
STATUS_PLAYING = 'PLAYING'
STATUS_ROUND_ENDED = 'ROUND_ENDED'
STATUS_FINISHED = 'FINISHED'

# Bot tiers
DIFFICULTY_EASY = 'EASY'
DIFFICULTY_MEDIUM = 'MEDIUM'
DIFFICULTY_HARD = 'HARD'
DIFFICULTIES = [DIFFICULTY_EASY, DIFFICULTY_MEDIUM, DIFFICULTY_HARD]
DIFFICULTY_LABELS = {
    DIFFICULTY_EASY: 'Fácil',
    DIFFICULTY_MEDIUM: 'Medio',
    DIFFICULTY_HARD: 'Difícil',
}

DIRECTION_CLOCKWISE = 'clockwise'
DIRECTION_COUNTER_CLOCKWISE = 'counter-clockwise'

SYSTEM_PLAYER_ID = 'SYSTEM'


class MoveAction(str, Enum):
    """Actions accepted by the move processor."""
    DRAW_DECK = 'DRAW_DECK'
    DRAW_DISCARD = 'DRAW_DISCARD'
    DISCARD = 'DISCARD'
    DOWN = 'DOWN'
    ADD_TO_MELD = 'ADD_TO_MELD'
    STEAL_JOKER = 'STEAL_JOKER'
    INTEND_BUY = 'INTEND_BUY'
    READY_FOR_NEXT_ROUND = 'READY_FOR_NEXT_ROUND'
    START_NEXT_ROUND = 'START_NEXT_ROUND'


# lastAction type for a discard bought outside the buyer's turn
LAST_ACTION_BUY = 'BUY'
LAST_ACTION_START_GAME = 'START_GAME'
LAST_ACTION_ROUND_ENDED = 'ROUND_ENDED'
LAST_ACTION_GAME_ENDED = 'GAME_ENDED'


class ContractRequirement(NamedTuple):
    trios: int
    trio_size: int
    escalas: int
    escala_size: int


ROUND_CONTRACTS: Dict[int, ContractRequirement] = {
    1: ContractRequirement(trios=1, trio_size=3, escalas=0, escala_size=0),
    2: ContractRequirement(trios=2, trio_size=3, escalas=0, escala_size=0),
    3: ContractRequirement(trios=1, trio_size=4, escalas=0, escala_size=0),
    4: ContractRequirement(trios=2, trio_size=4, escalas=0, escala_size=0),
    5: ContractRequirement(trios=1, trio_size=5, escalas=0, escala_size=0),
    6: ContractRequirement(trios=2, trio_size=5, escalas=0, escala_size=0),
    7: ContractRequirement(trios=1, trio_size=6, escalas=0, escala_size=0),
    8: ContractRequirement(trios=0, trio_size=0, escalas=1, escala_size=7),
}


def get_contract(round_number: int) -> ContractRequirement:
    """Look up the contract for a round, raising for unknown rounds."""
    try:
        return ROUND_CONTRACTS[round_number]
    except KeyError:
        raise ValueError(f"Invalid round: {round_number}")


def describe_contract(round_number: int) -> str:
    """Human readable contract, e.g. '2 grupo(s) de 4+ cartas del mismo valor'."""
    contract = get_contract(round_number)
    parts = []
    if contract.trios:
        parts.append(f"{contract.trios} grupo(s) de {contract.trio_size}+ cartas del mismo valor")
    if contract.escalas:
        parts.append(f"{contract.escalas} escala(s) de {contract.escala_size}+ cartas")
    return " y ".join(parts)
