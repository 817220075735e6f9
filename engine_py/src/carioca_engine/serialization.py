"""
State serialization and sanitization utilities.
"""

from dataclasses import asdict
from typing import Any, Dict, List, Optional

from .constants import get_contract
from .models import BuyIntent, Card, GameSession, LastAction, Player


def card_to_dict(card: Card) -> Dict[str, Any]:
    return {'id': card.id, 'suit': card.suit, 'value': card.value}


def card_from_dict(data: Dict[str, Any]) -> Card:
    return Card(id=data['id'], suit=data['suit'], value=int(data['value']))


def _cards(data: List[Dict[str, Any]]) -> List[Card]:
    return [card_from_dict(c) for c in data or []]


def player_to_dict(player: Player) -> Dict[str, Any]:
    return {
        'id': player.id,
        'name': player.name,
        'hand': [card_to_dict(c) for c in player.hand],
        'melds': [[card_to_dict(c) for c in meld] for meld in player.melds],
        'bought_cards': [card_to_dict(c) for c in player.bought_cards],
        'score': player.score,
        'round_scores': list(player.round_scores),
        'round_buys': list(player.round_buys),
        'buys_used': player.buys_used,
        'has_drawn': player.has_drawn,
        'is_bot': player.is_bot,
        'difficulty': player.difficulty,
    }


def player_from_dict(data: Dict[str, Any]) -> Player:
    return Player(
        id=data['id'],
        name=data['name'],
        hand=_cards(data.get('hand')),
        melds=[_cards(meld) for meld in data.get('melds') or []],
        bought_cards=_cards(data.get('bought_cards')),
        score=data.get('score', 0),
        round_scores=list(data.get('round_scores') or []),
        round_buys=list(data.get('round_buys') or []),
        buys_used=data.get('buys_used', 0),
        has_drawn=data.get('has_drawn', False),
        is_bot=data.get('is_bot', False),
        difficulty=data.get('difficulty'),
    )


def session_to_dict(state: GameSession) -> Dict[str, Any]:
    """Full, lossless encoding of a session for storage."""
    return {
        'id': state.id,
        'creator_id': state.creator_id,
        'players': [player_to_dict(p) for p in state.players],
        'deck': [card_to_dict(c) for c in state.deck],
        'discard_pile': [card_to_dict(c) for c in state.discard_pile],
        'current_turn': state.current_turn,
        'current_round': state.current_round,
        'status': state.status,
        'direction': state.direction,
        'ready_for_next_round': list(state.ready_for_next_round),
        'reshuffle_count': state.reshuffle_count,
        'pending_buy_intents': [asdict(i) for i in state.pending_buy_intents],
        'last_action': asdict(state.last_action) if state.last_action else None,
        'version': state.version,
    }


def session_from_dict(data: Dict[str, Any]) -> GameSession:
    last_action = data.get('last_action')
    return GameSession(
        id=data['id'],
        creator_id=data['creator_id'],
        players=[player_from_dict(p) for p in data.get('players') or []],
        deck=_cards(data.get('deck')),
        discard_pile=_cards(data.get('discard_pile')),
        current_turn=data.get('current_turn', 0),
        current_round=data.get('current_round', 1),
        status=data['status'],
        direction=data.get('direction', 'counter-clockwise'),
        ready_for_next_round=list(data.get('ready_for_next_round') or []),
        reshuffle_count=data.get('reshuffle_count', 0),
        pending_buy_intents=[BuyIntent(**i) for i in data.get('pending_buy_intents') or []],
        last_action=LastAction(**last_action) if last_action else None,
        version=data.get('version', 0),
    )


def sanitize_state(state: GameSession, viewer_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Sanitize session state for transmission to clients.

    Args:
        state: Session to sanitize
        viewer_id: ID of the player viewing the state (to show their cards)

    Returns:
        Sanitized state dictionary safe for JSON transmission
    """
    contract = get_contract(state.current_round)
    sanitized = {
        'id': state.id,
        'version': state.version,
        'status': state.status,
        'creator_id': state.creator_id,
        'current_turn': state.current_turn,
        'current_round': state.current_round,
        'direction': state.direction,
        'contract': contract._asdict(),
        'deck_count': len(state.deck),
        'discard_pile': [card_to_dict(c) for c in state.discard_pile],
        'reshuffle_count': state.reshuffle_count,
        'ready_for_next_round': list(state.ready_for_next_round),
        'last_action': asdict(state.last_action) if state.last_action else None,
        'players': [],
    }

    for player in state.players:
        sanitized_player = {
            'id': player.id,
            'name': player.name,
            'melds': [[card_to_dict(c) for c in meld] for meld in player.melds],
            'score': player.score,
            'round_scores': list(player.round_scores),
            'round_buys': list(player.round_buys),
            'buys_used': player.buys_used,
            'has_drawn': player.has_drawn,
            'is_bot': player.is_bot,
            'difficulty': player.difficulty,
            'hand_count': len(player.hand),
        }

        # Show full hand only to the viewer
        if player.id == viewer_id:
            sanitized_player['hand'] = [card_to_dict(c) for c in player.hand]
            sanitized_player['bought_cards'] = [card_to_dict(c) for c in player.bought_cards]

        sanitized['players'].append(sanitized_player)

    return sanitized
