"""
Tests for the Carioca move processor and session lifecycle.
"""

import random

import pytest

from carioca_engine.constants import (
    STATUS_FINISHED,
    STATUS_PLAYING,
    STATUS_ROUND_ENDED,
    STATUS_WAITING,
    SYSTEM_PLAYER_ID,
)
from carioca_engine.engine import CariocaEngine
from carioca_engine.errors import GameError
from carioca_engine.models import Card
from carioca_engine.repository import InMemoryHistoryRecorder, InMemorySessionRepository
from carioca_engine.rules import create_rules, default_rules
from carioca_engine.scoring import hand_points
from carioca_engine.shuffle import validate_deck_integrity

DECK_SIZE = default_rules.get_deck_size()


def card(suit, value, copy=0):
    return Card(id=f"{suit[0]}{value}-{copy}", suit=suit, value=value)


JOKER = Card(id='JOKER-0-0', suit='JOKER', value=0)


def make_engine(**rule_overrides):
    return CariocaEngine(
        repository=InMemorySessionRepository(),
        history=InMemoryHistoryRecorder(),
        rules=create_rules(**rule_overrides),
        rng=random.Random(42),
        clock=lambda: 1000.0,
    )


def start_game(engine):
    session_id, host = engine.create_session("Ana")
    beto = engine.join_session(session_id, "Beto")
    carla = engine.join_session(session_id, "Carla")
    engine.start_game(session_id, host)
    return session_id, [host, beto, carla]


def edit_players(engine, session_id, edit):
    """Apply a test edit to the stored players."""
    state = engine.get_game_state(session_id)
    edit(state)
    engine.repository.save(session_id, {'players': state.players})


def end_round_by_exhaustion(engine, session_id):
    engine.repository.save(session_id, {'deck': [], 'reshuffle_count': 3})
    state = engine.get_game_state(session_id)
    return engine.process_move(session_id, state.current_player.id, 'DRAW_DECK')


def test_create_and_join_session():
    """Sessions start in WAITING with the host seated first."""
    engine = make_engine()
    session_id, host = engine.create_session("Ana")
    beto = engine.join_session(session_id, "Beto")

    state = engine.get_game_state(session_id)
    assert state.status == STATUS_WAITING
    assert state.creator_id == host
    assert [p.id for p in state.players] == [host, beto]


def test_room_full():
    """Seats are capped at max_players."""
    engine = make_engine()
    session_id, _ = engine.create_session("Ana")
    for i in range(default_rules.max_players - 1):
        engine.join_session(session_id, f"Player {i}")

    with pytest.raises(GameError) as exc:
        engine.join_session(session_id, "Extra")
    assert exc.value.code == 'ROOM_FULL'


def test_add_bot_names_and_difficulty():
    """Bots are named after their seat count and difficulty."""
    engine = make_engine()
    session_id, _ = engine.create_session("Ana")
    bot_id = engine.add_bot(session_id, 'hard')

    bot = engine.get_game_state(session_id).get_player(bot_id)
    assert bot.is_bot
    assert bot.difficulty == 'HARD'
    assert bot.name == 'Bot 1 (Difícil)'

    with pytest.raises(GameError):
        engine.add_bot(session_id, 'IMPOSSIBLE')


def test_start_game_requirements():
    """Only the host starts, and only with enough players."""
    engine = make_engine()
    session_id, host = engine.create_session("Ana")
    beto = engine.join_session(session_id, "Beto")

    with pytest.raises(GameError) as exc:
        engine.start_game(session_id, host)
    assert exc.value.code == 'NOT_ENOUGH_PLAYERS'

    engine.join_session(session_id, "Carla")
    with pytest.raises(GameError) as exc:
        engine.start_game(session_id, beto)
    assert exc.value.code == 'NOT_HOST'


def test_start_game_deals_hands():
    """Eleven cards each, one discard face up, host opens round 1."""
    engine = make_engine()
    session_id, players = start_game(engine)
    state = engine.get_game_state(session_id)

    assert state.status == STATUS_PLAYING
    assert state.current_round == 1
    assert state.current_turn == 0
    assert all(len(p.hand) == 11 for p in state.players)
    assert len(state.discard_pile) == 1
    assert len(state.deck) == DECK_SIZE - 3 * 11 - 1
    assert validate_deck_integrity(state, DECK_SIZE)


def test_unknown_session_and_action():
    """Structural errors are typed failures."""
    engine = make_engine()
    result = engine.process_move('missing', 'p1', 'DRAW_DECK')
    assert not result.success
    assert result.code == 'SESSION_NOT_FOUND'
    assert result.status == 404

    session_id, players = start_game(engine)
    result = engine.process_move(session_id, players[0], 'SHUFFLE')
    assert result.code == 'UNKNOWN_ACTION'


def test_not_your_turn():
    """Only the turn player may draw."""
    engine = make_engine()
    session_id, players = start_game(engine)

    result = engine.process_move(session_id, players[1], 'DRAW_DECK')
    assert not result.success
    assert result.code == 'NOT_YOUR_TURN'
    assert result.status == 403
    assert result.to_dict()['success'] is False


def test_draw_deck_once_per_turn():
    """A second draw in the same turn is rejected."""
    engine = make_engine()
    session_id, players = start_game(engine)

    result = engine.process_move(session_id, players[0], 'DRAW_DECK')
    assert result.success
    assert result.game_status == STATUS_PLAYING

    state = engine.get_game_state(session_id)
    host = state.players[0]
    assert len(host.hand) == 12
    assert host.has_drawn
    assert host.bought_cards[0].id == result.data['card']['id']

    result = engine.process_move(session_id, players[0], 'DRAW_DECK')
    assert result.code == 'ALREADY_DRAWN'


def test_rejected_move_does_not_mutate():
    """Failures leave the stored session untouched."""
    engine = make_engine()
    session_id, players = start_game(engine)
    before = engine.get_game_state(session_id)

    result = engine.process_move(session_id, players[0], 'DISCARD', {'cardId': before.players[0].hand[0].id})
    assert result.code == 'MUST_DRAW_FIRST'

    after = engine.get_game_state(session_id)
    assert after.version == before.version
    assert after.players[0].hand == before.players[0].hand


def test_discard_advances_turn_counter_clockwise():
    """Default direction moves the turn to the previous seat."""
    engine = make_engine()
    session_id, players = start_game(engine)

    engine.process_move(session_id, players[0], 'DRAW_DECK')
    state = engine.get_game_state(session_id)
    discard_id = state.players[0].hand[0].id
    result = engine.process_move(session_id, players[0], 'DISCARD', {'cardId': discard_id})
    assert result.success

    state = engine.get_game_state(session_id)
    assert state.current_turn == 2
    assert state.top_discard.id == discard_id
    assert not state.players[0].has_drawn
    assert state.players[0].bought_cards == []
    assert len(state.players[0].hand) == 11


def test_discard_clockwise_direction():
    """Clockwise sessions pass the turn to the next seat."""
    engine = make_engine(turn_direction='clockwise')
    session_id, players = start_game(engine)

    engine.process_move(session_id, players[0], 'DRAW_DECK')
    state = engine.get_game_state(session_id)
    engine.process_move(session_id, players[0], 'DISCARD', {'cardId': state.players[0].hand[0].id})
    assert engine.get_game_state(session_id).current_turn == 1


def test_card_conservation_over_turns():
    """Draws and discards never create or lose cards."""
    engine = make_engine()
    session_id, _ = start_game(engine)

    for _ in range(6):
        state = engine.get_game_state(session_id)
        player_id = state.current_player.id
        assert engine.process_move(session_id, player_id, 'DRAW_DECK').success
        state = engine.get_game_state(session_id)
        card_id = state.current_player.hand[0].id
        assert engine.process_move(session_id, player_id, 'DISCARD', {'cardId': card_id}).success

        state = engine.get_game_state(session_id)
        assert state.total_cards() == DECK_SIZE
        assert validate_deck_integrity(state, DECK_SIZE)


def test_reshuffle_recycles_discard_pile():
    """An empty deck is refilled from the discard pile."""
    engine = make_engine()
    session_id, players = start_game(engine)
    top = engine.get_game_state(session_id).top_discard
    engine.repository.save(session_id, {'deck': []})

    result = engine.process_move(session_id, players[0], 'DRAW_DECK')
    assert result.success
    assert result.data['card']['id'] == top.id

    state = engine.get_game_state(session_id)
    assert state.reshuffle_count == 1
    assert state.discard_pile == []


def test_deck_exhaustion_ends_round_without_winner():
    """No deck and no reshuffles left ends the round with every hand scored."""
    engine = make_engine()
    session_id, players = start_game(engine)

    result = end_round_by_exhaustion(engine, session_id)
    assert result.success
    assert result.game_status == STATUS_ROUND_ENDED
    assert result.data['roundEnded']

    state = engine.get_game_state(session_id)
    assert state.status == STATUS_ROUND_ENDED
    for player in state.players:
        assert player.round_scores == [hand_points(player.hand)]
        assert player.round_scores[0] > 0
    assert state.last_action.player_id == SYSTEM_PLAYER_ID


def test_buy_priority_between_players():
    """The closest counter-clockwise seat wins the discard."""
    engine = make_engine()
    session_id, (host, beto, carla) = start_game(engine)
    top = engine.get_game_state(session_id).top_discard

    assert engine.process_move(session_id, beto, 'INTEND_BUY').success
    assert engine.process_move(session_id, carla, 'INTEND_BUY').success

    result = engine.process_move(session_id, beto, 'DRAW_DISCARD')
    assert result.code == 'NO_PRIORITY'

    result = engine.process_move(session_id, carla, 'DRAW_DISCARD')
    assert result.success
    assert [c['id'] for c in result.data['cards']][0] == top.id
    assert len(result.data['cards']) == 3

    state = engine.get_game_state(session_id)
    buyer = state.get_player(carla)
    assert len(buyer.hand) == 14
    assert buyer.buys_used == 1
    assert len(buyer.bought_cards) == 3
    assert state.pending_buy_intents == []
    assert state.last_action.type == 'BUY'
    assert not state.players[0].has_drawn
    assert state.total_cards() == DECK_SIZE


def test_turn_player_buy_counts_as_draw():
    """Taking the discard on one's own turn is the normal draw."""
    engine = make_engine()
    session_id, (host, beto, carla) = start_game(engine)

    engine.process_move(session_id, carla, 'INTEND_BUY')
    result = engine.process_move(session_id, host, 'DRAW_DISCARD')
    assert result.success

    state = engine.get_game_state(session_id)
    assert state.players[0].has_drawn
    assert state.players[0].buys_used == 0
    assert len(state.players[0].hand) == 14

    result = engine.process_move(session_id, beto, 'INTEND_BUY')
    assert result.code == 'BUY_WINDOW_CLOSED'


def test_buy_window_closes_after_draw():
    """Once the turn player drew, nobody can buy."""
    engine = make_engine()
    session_id, (host, beto, carla) = start_game(engine)

    engine.process_move(session_id, host, 'DRAW_DECK')
    result = engine.process_move(session_id, beto, 'DRAW_DISCARD')
    assert result.code == 'BUY_WINDOW_CLOSED'


def test_buys_exhausted():
    """Players with every buy spent cannot buy again."""
    engine = make_engine()
    session_id, (host, beto, carla) = start_game(engine)

    def spend_buys(state):
        state.get_player(beto).buys_used = default_rules.max_buys

    edit_players(engine, session_id, spend_buys)
    result = engine.process_move(session_id, beto, 'DRAW_DISCARD')
    assert result.code == 'BUYS_EXHAUSTED'


def set_host_hand(engine, session_id, hand, melds=None):
    def edit(state):
        host = state.players[0]
        host.hand = list(hand)
        host.melds = melds or []
        host.has_drawn = True
    edit_players(engine, session_id, edit)


def test_down_contract():
    """A valid first down becomes a meld."""
    engine = make_engine()
    session_id, (host, _, _) = start_game(engine)
    hand = [card('HEART', 5), card('DIAMOND', 5), card('CLUB', 5), card('SPADE', 9), card('DIAMOND', 13)]
    set_host_hand(engine, session_id, hand)

    result = engine.process_move(session_id, host, 'DOWN', {'groups': [['H5-0', 'D5-0', 'C5-0']]})
    assert result.success

    player = engine.get_game_state(session_id).players[0]
    assert [[c.id for c in m] for m in player.melds] == [['H5-0', 'D5-0', 'C5-0']]
    assert [c.id for c in player.hand] == ['S9-0', 'D13-0']


def test_down_accepts_card_objects():
    """Groups may carry card objects with an id."""
    engine = make_engine()
    session_id, (host, _, _) = start_game(engine)
    set_host_hand(engine, session_id, [card('HEART', 5), card('DIAMOND', 5), card('CLUB', 5), card('SPADE', 9)])

    groups = [[{'id': 'H5-0', 'suit': 'HEART', 'value': 5}, {'id': 'D5-0'}, {'id': 'C5-0'}]]
    assert engine.process_move(session_id, host, 'DOWN', {'groups': groups}).success


def test_down_rejections():
    """Invalid groups and unknown cards are rejected without changes."""
    engine = make_engine()
    session_id, (host, _, _) = start_game(engine)
    set_host_hand(engine, session_id, [card('HEART', 5), card('DIAMOND', 5), card('CLUB', 5), card('SPADE', 9)])
    version = engine.get_game_state(session_id).version

    result = engine.process_move(session_id, host, 'DOWN', {'groups': [['H5-0', 'D5-0', 'S9-0']]})
    assert result.code == 'INVALID_MELD'
    assert "Te faltan" in result.error

    result = engine.process_move(session_id, host, 'DOWN', {'groups': [['H5-0', 'D5-0', 'X1-0']]})
    assert result.code == 'CARD_NOT_FOUND'

    result = engine.process_move(session_id, host, 'DOWN', {'groups': []})
    assert result.code == 'INVALID_PAYLOAD'

    assert engine.get_game_state(session_id).version == version


def test_hand_empty_discard_wins_round():
    """Discarding the last card ends the round with a zero for the winner."""
    engine = make_engine()
    session_id, (host, _, _) = start_game(engine)
    set_host_hand(engine, session_id, [card('HEART', 5), card('DIAMOND', 5), card('CLUB', 5), card('SPADE', 9)])

    engine.process_move(session_id, host, 'DOWN', {'groups': [['H5-0', 'D5-0', 'C5-0']]})
    result = engine.process_move(session_id, host, 'DISCARD', {'cardId': 'S9-0'})
    assert result.success
    assert result.game_status == STATUS_ROUND_ENDED
    assert result.data['winnerId'] == host

    state = engine.get_game_state(session_id)
    assert state.players[0].round_scores == [0]
    assert state.players[1].round_scores == [hand_points(state.players[1].hand)]


def test_hand_empty_down_wins_round():
    """Going down with every card in hand ends the round."""
    engine = make_engine()
    session_id, (host, _, _) = start_game(engine)
    set_host_hand(engine, session_id, [card('HEART', 5), card('DIAMOND', 5), card('CLUB', 5)])

    result = engine.process_move(session_id, host, 'DOWN', {'groups': [['H5-0', 'D5-0', 'C5-0']]})
    assert result.success
    assert result.game_status == STATUS_ROUND_ENDED
    assert result.data == {'roundEnded': True, 'winnerId': host}

    state = engine.get_game_state(session_id)
    assert state.status == STATUS_ROUND_ENDED
    assert state.players[0].hand == []
    assert state.players[0].round_scores == [0]
    for player in state.players[1:]:
        assert player.round_scores == [hand_points(player.hand)]
    assert state.last_action.player_id == SYSTEM_PLAYER_ID


def test_hand_empty_add_to_meld_wins_round():
    """Adding the last card to a meld ends the round."""
    engine = make_engine()
    session_id, (host, _, _) = start_game(engine)
    meld = [card('HEART', 5), card('DIAMOND', 5), card('CLUB', 5)]
    set_host_hand(engine, session_id, [card('SPADE', 5)], melds=[meld])

    result = engine.process_move(session_id, host, 'ADD_TO_MELD',
                                 {'cardId': 'S5-0', 'targetPlayerId': host, 'meldIndex': 0})
    assert result.success
    assert result.game_status == STATUS_ROUND_ENDED
    assert result.data == {'roundEnded': True, 'winnerId': host}

    state = engine.get_game_state(session_id)
    assert state.status == STATUS_ROUND_ENDED
    assert len(state.players[0].melds[0]) == 4
    assert state.players[0].round_scores == [0]
    for player in state.players[1:]:
        assert player.round_scores == [hand_points(player.hand)]
        assert player.score == hand_points(player.hand)


def test_add_to_meld():
    """Melded players extend their own or others' melds."""
    engine = make_engine()
    session_id, (host, beto, _) = start_game(engine)
    meld = [card('HEART', 5), card('DIAMOND', 5), card('CLUB', 5)]
    set_host_hand(engine, session_id, [card('SPADE', 5), card('SPADE', 9), card('DIAMOND', 13)], melds=[meld])

    payload = {'cardId': 'S5-0', 'targetPlayerId': host, 'meldIndex': 0}
    result = engine.process_move(session_id, host, 'ADD_TO_MELD', payload)
    assert result.success
    assert len(engine.get_game_state(session_id).players[0].melds[0]) == 4

    result = engine.process_move(session_id, host, 'ADD_TO_MELD',
                                 {'cardId': 'S9-0', 'targetPlayerId': host, 'meldIndex': 0})
    assert result.code == 'INVALID_MELD'

    result = engine.process_move(session_id, host, 'ADD_TO_MELD',
                                 {'cardId': 'S9-0', 'targetPlayerId': beto, 'meldIndex': 0})
    assert result.code == 'MELD_NOT_FOUND'


def test_add_requires_meld():
    """Adding before going down is a precondition failure."""
    engine = make_engine()
    session_id, (host, _, _) = start_game(engine)
    set_host_hand(engine, session_id, [card('SPADE', 5), card('SPADE', 9)])

    result = engine.process_move(session_id, host, 'ADD_TO_MELD',
                                 {'cardId': 'S5-0', 'targetPlayerId': host, 'meldIndex': 0})
    assert result.code == 'NOT_MELDED'


def test_steal_joker_from_escala():
    """A natural card takes the joker's place in a run."""
    engine = make_engine()
    session_id, (host, beto, _) = start_game(engine)

    def edit(state):
        state.players[0].hand = [card('SPADE', 5), card('HEART', 9), card('CLUB', 2)]
        state.players[0].melds = [[card('HEART', 3), card('DIAMOND', 3), card('CLUB', 3)]]
        state.players[0].has_drawn = True
        state.players[1].melds = [[card('SPADE', 4), JOKER, card('SPADE', 6)]]

    edit_players(engine, session_id, edit)
    result = engine.process_move(session_id, host, 'STEAL_JOKER',
                                 {'cardId': 'S5-0', 'targetPlayerId': beto, 'meldIndex': 0})
    assert result.success

    state = engine.get_game_state(session_id)
    assert JOKER in state.players[0].hand
    assert [c.id for c in state.players[1].melds[0]] == ['S4-0', 'S5-0', 'S6-0']


def test_steal_joker_from_trio():
    """Trio jokers cost two natural cards of the same value."""
    engine = make_engine()
    session_id, (host, beto, _) = start_game(engine)

    def edit(state):
        state.players[0].hand = [card('CLUB', 7), card('SPADE', 7), card('HEART', 2)]
        state.players[0].melds = [[card('HEART', 3), card('DIAMOND', 3), card('CLUB', 3)]]
        state.players[0].has_drawn = True
        state.players[1].melds = [[card('HEART', 7), card('DIAMOND', 7), JOKER]]

    edit_players(engine, session_id, edit)
    result = engine.process_move(session_id, host, 'STEAL_JOKER',
                                 {'cardId': 'C7-0', 'targetPlayerId': beto, 'meldIndex': 0})
    assert result.success

    state = engine.get_game_state(session_id)
    assert sorted(c.id for c in state.players[0].hand) == ['H2-0', 'JOKER-0-0']
    assert sorted(c.id for c in state.players[1].melds[0]) == ['C7-0', 'D7-0', 'H7-0', 'S7-0']


def test_steal_joker_rejected_without_partner():
    """A single card cannot free a trio joker."""
    engine = make_engine()
    session_id, (host, beto, _) = start_game(engine)

    def edit(state):
        state.players[0].hand = [card('CLUB', 7), card('HEART', 2)]
        state.players[0].melds = [[card('HEART', 3), card('DIAMOND', 3), card('CLUB', 3)]]
        state.players[0].has_drawn = True
        state.players[1].melds = [[card('HEART', 7), card('DIAMOND', 7), JOKER]]

    edit_players(engine, session_id, edit)
    result = engine.process_move(session_id, host, 'STEAL_JOKER',
                                 {'cardId': 'C7-0', 'targetPlayerId': beto, 'meldIndex': 0})
    assert result.code == 'INVALID_STEAL'


def test_ready_is_not_idempotent():
    """Marking ready twice is rejected."""
    engine = make_engine()
    session_id, (host, beto, carla) = start_game(engine)

    result = engine.process_move(session_id, beto, 'READY_FOR_NEXT_ROUND')
    assert result.code == 'INVALID_PHASE'

    end_round_by_exhaustion(engine, session_id)
    assert engine.process_move(session_id, beto, 'READY_FOR_NEXT_ROUND').success
    result = engine.process_move(session_id, beto, 'READY_FOR_NEXT_ROUND')
    assert result.code == 'ALREADY_READY'


def test_start_next_round_host_only():
    """Only the host advances rounds, and only once everyone is ready."""
    engine = make_engine()
    session_id, (host, beto, carla) = start_game(engine)
    end_round_by_exhaustion(engine, session_id)

    assert engine.process_move(session_id, beto, 'START_NEXT_ROUND').code == 'NOT_HOST'
    engine.process_move(session_id, beto, 'READY_FOR_NEXT_ROUND')
    assert engine.process_move(session_id, host, 'START_NEXT_ROUND').code == 'PLAYERS_NOT_READY'

    engine.process_move(session_id, carla, 'READY_FOR_NEXT_ROUND')
    result = engine.process_move(session_id, host, 'START_NEXT_ROUND')
    assert result.success
    assert result.game_status == STATUS_PLAYING

    state = engine.get_game_state(session_id)
    assert state.current_round == 2
    assert all(len(p.hand) == 11 and p.melds == [] for p in state.players)
    assert len(state.discard_pile) == 1
    assert state.reshuffle_count == 0
    assert state.ready_for_next_round == []
    assert validate_deck_integrity(state, DECK_SIZE)


def test_starting_player_rotates():
    """Each new round opens one seat further counter-clockwise."""
    engine = make_engine()
    session_id, (host, beto, carla) = start_game(engine)

    starters = []
    for _ in range(3):
        end_round_by_exhaustion(engine, session_id)
        engine.process_move(session_id, beto, 'READY_FOR_NEXT_ROUND')
        engine.process_move(session_id, carla, 'READY_FOR_NEXT_ROUND')
        assert engine.process_move(session_id, host, 'START_NEXT_ROUND').success
        starters.append(engine.get_game_state(session_id).current_turn)

    assert starters == [2, 1, 0]


def test_final_round_finishes_game_and_records_history():
    """Ending round 8 finishes the game and records the lowest score as winner."""
    engine = make_engine()
    session_id, players = start_game(engine)
    engine.repository.save(session_id, {'current_round': 8})

    result = end_round_by_exhaustion(engine, session_id)
    assert result.game_status == STATUS_FINISHED

    state = engine.get_game_state(session_id)
    for player in state.players:
        assert player.score == hand_points(player.hand) - default_rules.unused_buys_penalty

    history = engine.history.history
    assert len(history) == 1
    best = min(state.players, key=lambda p: p.score)
    assert history[0]['winner_id'] == best.id
    assert len(history[0]['participants']) == 3

    result = engine.process_move(session_id, players[0], 'DRAW_DECK')
    assert result.code == 'GAME_FINISHED'


def test_end_game_by_host():
    """The host can abort a running game."""
    engine = make_engine()
    session_id, (host, beto, _) = start_game(engine)

    with pytest.raises(GameError):
        engine.end_game(session_id, beto)

    state = engine.end_game(session_id, host)
    assert state.status == STATUS_FINISHED
    assert engine.history.history == []


def test_bots_play_until_human_turn():
    """After a human discard, bots take their turns automatically."""
    engine = make_engine()
    session_id, host = engine.create_session("Ana")
    engine.add_bot(session_id, 'EASY')
    engine.add_bot(session_id, 'HARD')
    engine.start_game(session_id, host)

    engine.process_move(session_id, host, 'DRAW_DECK')
    state = engine.get_game_state(session_id)
    engine.process_move(session_id, host, 'DISCARD', {'cardId': state.players[0].hand[0].id})

    state = engine.get_game_state(session_id)
    if state.status == STATUS_PLAYING:
        assert state.current_player.id == host
        assert state.total_cards() == DECK_SIZE
        assert all(not p.has_drawn for p in state.players)


def test_skip_bot_turn():
    """The host forces the stuck bot's fallback move."""
    engine = make_engine(auto_play_bots=False)
    session_id, host = engine.create_session("Ana")
    engine.add_bot(session_id, 'MEDIUM')
    bot_two = engine.add_bot(session_id, 'MEDIUM')
    engine.start_game(session_id, host)

    engine.process_move(session_id, host, 'DRAW_DECK')
    state = engine.get_game_state(session_id)
    engine.process_move(session_id, host, 'DISCARD', {'cardId': state.players[0].hand[0].id})
    assert engine.get_game_state(session_id).current_player.id == bot_two

    assert engine.skip_bot_turn(session_id, bot_two).code == 'NOT_HOST'

    result = engine.skip_bot_turn(session_id, host)
    assert result.success
    state = engine.get_game_state(session_id)
    assert state.current_turn == 1
    assert len(state.get_player(bot_two).hand) == 11
