"""Authoritative Carioca move processor and session lifecycle"""

import copy
import logging
import random
import threading
import time
import uuid
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .bots.driver import BotTurnDriver
from .buying import recent_intents, register_intent, resolve_buy_priority
from .constants import (
    DIFFICULTIES,
    DIFFICULTY_LABELS,
    DIRECTION_CLOCKWISE,
    LAST_ACTION_BUY,
    LAST_ACTION_GAME_ENDED,
    LAST_ACTION_ROUND_ENDED,
    LAST_ACTION_START_GAME,
    STATUS_FINISHED,
    STATUS_PLAYING,
    STATUS_ROUND_ENDED,
    STATUS_WAITING,
    SYSTEM_PLAYER_ID,
    MoveAction,
    describe_contract,
)
from .diff import compute_updates
from .errors import (
    ALREADY_DRAWN,
    ALREADY_READY,
    BUY_WINDOW_CLOSED,
    BUYS_EXHAUSTED,
    CARD_NOT_FOUND,
    EMPTY_DISCARD,
    GAME_FINISHED,
    INTERNAL_ERROR,
    INVALID_MELD,
    INVALID_PAYLOAD,
    INVALID_PHASE,
    INVALID_STEAL,
    MELD_NOT_FOUND,
    MUST_DRAW_FIRST,
    NO_PRIORITY,
    NOT_ENOUGH_PLAYERS,
    NOT_HOST,
    NOT_MELDED,
    NOT_YOUR_TURN,
    PLAYER_NOT_FOUND,
    PLAYERS_NOT_READY,
    ROOM_FULL,
    SESSION_NOT_FOUND,
    UNKNOWN_ACTION,
    GameError,
    MoveResult,
)
from .models import GameSession, LastAction, Player
from .repository import HistoryRecorder, InMemorySessionRepository, SessionRepository
from .rules import RuleConfig, default_rules
from .scoring import final_standings, finalize_round
from .serialization import card_to_dict, sanitize_state
from .shuffle import create_deck, deal_hands, draw_with_reshuffle, shuffle_deck
from .validate import (
    SHAPE_TRIO,
    can_add_to_meld,
    can_steal_joker,
    find_trio_steal_partner,
    meld_shape,
    swap_joker,
    validate_additional_down,
    validate_contract,
)

logger = logging.getLogger(__name__)

# Actions only the turn player may submit
TURN_ACTIONS = {
    MoveAction.DRAW_DECK,
    MoveAction.DISCARD,
    MoveAction.DOWN,
    MoveAction.ADD_TO_MELD,
    MoveAction.STEAL_JOKER,
}


class CariocaEngine:
    def __init__(
        self,
        repository: Optional[SessionRepository] = None,
        history: Optional[HistoryRecorder] = None,
        rules: RuleConfig = default_rules,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.repository = repository or InMemorySessionRepository()
        self.history = history
        self.rules = rules
        self.rng = rng or random.Random()
        self.clock = clock
        self.session_locks = defaultdict(threading.Lock)
        self.bot_driver = BotTurnDriver(
            self,
            max_iterations=rules.bot_max_iterations,
            turn_timeout=rules.bot_turn_timeout,
            rng=self.rng,
        )

    # ------------------------------------------------------------------
    # Session access
    # ------------------------------------------------------------------

    def _load(self, session_id: str) -> GameSession:
        state = self.repository.load(session_id)
        if state is None:
            raise GameError(SESSION_NOT_FOUND, f"Sesión {session_id} no encontrada.")
        return state

    def get_game_state(self, session_id: str) -> GameSession:
        """Full snapshot of the session, including every hand."""
        return self._load(session_id)

    def get_player_view(self, session_id: str, viewer_id: Optional[str] = None) -> Dict[str, Any]:
        """Client-facing state that only reveals the viewer's own hand."""
        return sanitize_state(self._load(session_id), viewer_id)

    def _commit(self, session_id: str, before: GameSession, after: GameSession) -> None:
        updates = compute_updates(before, after)
        if updates:
            self.repository.save(session_id, updates)
            after.version = before.version + 1

    def _mutate(self, session_id: str, mutation: Callable[[GameSession], Any]) -> Tuple[GameSession, Any]:
        """Run a lobby mutation under the session lock and persist its changes."""
        with self.session_locks[session_id]:
            state = self._load(session_id)
            before = copy.deepcopy(state)
            outcome = mutation(state)
            self._commit(session_id, before, state)
            return state, outcome

    def _new_player_id(self) -> str:
        return str(uuid.uuid4())[:8]

    def _record_action(self, state: GameSession, player_id: str, action_type: str, description: str) -> None:
        state.last_action = LastAction(
            player_id=player_id,
            type=action_type,
            description=description,
            timestamp=self.clock(),
        )

    # ------------------------------------------------------------------
    # Lobby
    # ------------------------------------------------------------------

    def create_session(self, host_name: str) -> Tuple[str, str]:
        """Create a WAITING session with its host; returns (session_id, host_id)."""
        session_id = str(uuid.uuid4())
        host_id = self._new_player_id()
        state = GameSession(
            id=session_id,
            creator_id=host_id,
            players=[Player(id=host_id, name=host_name)],
            direction=self.rules.turn_direction,
        )
        self.repository.create(state)
        logger.info(f"Created session {session_id} hosted by {host_name} ({host_id})")
        return session_id, host_id

    def join_session(self, session_id: str, name: str) -> str:
        player_id = self._new_player_id()

        def join(state: GameSession):
            self._ensure_can_seat(state)
            state.players.append(Player(id=player_id, name=name))

        self._mutate(session_id, join)
        logger.info(f"Player {name} ({player_id}) joined session {session_id}")
        return player_id

    def add_bot(self, session_id: str, difficulty: str) -> str:
        difficulty = (difficulty or '').upper()
        if difficulty not in DIFFICULTIES:
            raise GameError(INVALID_PAYLOAD, f"Dificultad desconocida: {difficulty}")
        bot_id = f"bot-{self._new_player_id()}"

        def seat_bot(state: GameSession):
            self._ensure_can_seat(state)
            bot_number = sum(1 for p in state.players if p.is_bot) + 1
            state.players.append(Player(
                id=bot_id,
                name=f"Bot {bot_number} ({DIFFICULTY_LABELS[difficulty]})",
                is_bot=True,
                difficulty=difficulty,
            ))

        self._mutate(session_id, seat_bot)
        logger.info(f"Added {difficulty} bot {bot_id} to session {session_id}")
        return bot_id

    def _ensure_can_seat(self, state: GameSession) -> None:
        if state.status != STATUS_WAITING:
            raise GameError(INVALID_PHASE, "La partida ya comenzó.")
        if len(state.players) >= self.rules.max_players:
            raise GameError(ROOM_FULL, f"La sala está llena ({self.rules.max_players} jugadores).")

    def _ensure_host(self, state: GameSession, requester_id: str) -> None:
        if requester_id != state.creator_id:
            raise GameError(NOT_HOST, "Solo el anfitrión puede hacer esto.")

    def start_game(self, session_id: str, requester_id: str) -> GameSession:
        def start(state: GameSession):
            self._ensure_host(state, requester_id)
            if state.status != STATUS_WAITING:
                raise GameError(INVALID_PHASE, "La partida ya comenzó.")
            if not self.rules.validate_player_count(len(state.players)):
                raise GameError(
                    NOT_ENOUGH_PLAYERS,
                    f"Se necesitan al menos {self.rules.min_players} jugadores.",
                )
            self._deal(state)
            state.current_round = 1
            state.current_turn = 0
            state.status = STATUS_PLAYING
            self._record_action(
                state, requester_id, LAST_ACTION_START_GAME,
                f"Comienza la ronda 1: {describe_contract(1)}.",
            )

        state, _ = self._mutate(session_id, start)
        logger.info(f"Session {session_id} started with {len(state.players)} players")
        self._run_bots(session_id)
        return self._load(session_id)

    def end_game(self, session_id: str, requester_id: str) -> GameSession:
        """Host abort: finish the game without scoring the round in progress."""
        def end(state: GameSession):
            self._ensure_host(state, requester_id)
            if state.status == STATUS_FINISHED:
                raise GameError(GAME_FINISHED, "La partida ya terminó.")
            state.status = STATUS_FINISHED
            state.pending_buy_intents = []
            self._record_action(state, requester_id, LAST_ACTION_GAME_ENDED, "El anfitrión terminó la partida.")

        state, _ = self._mutate(session_id, end)
        logger.info(f"Session {session_id} ended by host")
        return state

    def skip_bot_turn(self, session_id: str, requester_id: str) -> MoveResult:
        """Host override: force the current bot's fallback move."""
        state = self._load(session_id)
        try:
            self._ensure_host(state, requester_id)
            if state.status != STATUS_PLAYING:
                raise GameError(INVALID_PHASE, "No hay una ronda en curso.")
            bot = state.current_player
            if not bot.is_bot:
                raise GameError(INVALID_PHASE, "El turno actual no es de un bot.")
        except GameError as e:
            return MoveResult.fail(e)

        logger.info(f"Host skipping bot turn of {bot.id} in session {session_id}")
        result = self.bot_driver.force_fallback(session_id, bot.id)
        if result.success:
            self._run_bots(session_id)
        return result

    # ------------------------------------------------------------------
    # Dealing
    # ------------------------------------------------------------------

    def _deal(self, state: GameSession) -> None:
        deck = shuffle_deck(
            create_deck(self.rules.number_of_decks, self.rules.jokers_per_deck),
            self.rng,
        )
        hands, remaining = deal_hands(deck, len(state.players), self.rules.cards_per_hand)
        for player, hand in zip(state.players, hands):
            player.hand = hand
            player.melds = []
            player.bought_cards = []
            player.has_drawn = False

        state.discard_pile = [remaining.pop()]
        state.deck = remaining
        state.reshuffle_count = 0
        state.pending_buy_intents = []
        state.ready_for_next_round = []

    # ------------------------------------------------------------------
    # Move processing
    # ------------------------------------------------------------------

    def process_move(
        self,
        session_id: str,
        player_id: str,
        action: Union[str, MoveAction],
        payload: Optional[Dict[str, Any]] = None,
    ) -> MoveResult:
        """
        Apply one action, persist the new state and let bots play.

        Args:
            session_id: Target session
            player_id: Acting player
            action: One of MoveAction
            payload: Action specific fields (cardId, groups, targetPlayerId, meldIndex, secondCardId)

        Returns:
            MoveResult describing success or the typed failure
        """
        result = self.apply_move(session_id, player_id, action, payload)
        if result.success:
            self._run_bots(session_id)
        return result

    def apply_move(
        self,
        session_id: str,
        player_id: str,
        action: Union[str, MoveAction],
        payload: Optional[Dict[str, Any]] = None,
    ) -> MoveResult:
        """Apply a single action under the session lock, without running bots."""
        with self.session_locks[session_id]:
            try:
                state = self._load(session_id)
                before = copy.deepcopy(state)
                data = self._dispatch(state, player_id, action, payload or {})
                self._commit(session_id, before, state)
                if state.status == STATUS_FINISHED and before.status != STATUS_FINISHED:
                    self._record_history(state)
                return MoveResult.ok(state.status, **data)
            except GameError as e:
                logger.info(f"Rejected {action} from {player_id} in {session_id}: {e.code}")
                return MoveResult.fail(e)
            except Exception:
                logger.exception(f"Failed to apply {action} from {player_id} in {session_id}")
                return MoveResult.fail(GameError(INTERNAL_ERROR, "operation failed"))

    def _dispatch(self, state: GameSession, player_id: str, action, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            action = MoveAction(action)
        except ValueError:
            raise GameError(UNKNOWN_ACTION, f"Acción desconocida: {action}")

        if not isinstance(payload, dict):
            raise GameError(INVALID_PAYLOAD, "El payload debe ser un objeto.")

        if state.status == STATUS_FINISHED:
            raise GameError(GAME_FINISHED, "La partida ya terminó.")

        player = state.get_player(player_id)
        if player is None:
            raise GameError(PLAYER_NOT_FOUND, f"Jugador {player_id} no encontrado.")

        if action in (MoveAction.READY_FOR_NEXT_ROUND, MoveAction.START_NEXT_ROUND):
            handlers = {
                MoveAction.READY_FOR_NEXT_ROUND: self._ready_for_next_round,
                MoveAction.START_NEXT_ROUND: self._start_next_round,
            }
            return handlers[action](state, player)

        if state.status != STATUS_PLAYING:
            raise GameError(INVALID_PHASE, "No hay una ronda en curso.")

        if action in TURN_ACTIONS and state.current_player.id != player_id:
            raise GameError(NOT_YOUR_TURN, "No es tu turno.")

        handlers = {
            MoveAction.DRAW_DECK: self._draw_deck,
            MoveAction.DRAW_DISCARD: self._draw_discard,
            MoveAction.DISCARD: self._discard,
            MoveAction.DOWN: self._down,
            MoveAction.ADD_TO_MELD: self._add_to_meld,
            MoveAction.STEAL_JOKER: self._steal_joker,
            MoveAction.INTEND_BUY: self._intend_buy,
        }
        return handlers[action](state, player, payload)

    # ------------------------------------------------------------------
    # Action handlers
    # ------------------------------------------------------------------

    def _draw_deck(self, state: GameSession, player: Player, payload: Dict) -> Dict[str, Any]:
        if player.has_drawn:
            raise GameError(ALREADY_DRAWN, "Ya robaste una carta este turno.")

        card = draw_with_reshuffle(state, self.rules.max_reshuffles, self.rng)
        if card is None:
            logger.info(f"Session {state.id}: deck exhausted after {state.reshuffle_count} reshuffles")
            self._end_round(state, None, "Se agotó el mazo; la ronda termina sin ganador.")
            return {'roundEnded': True}

        player.hand.append(card)
        player.bought_cards.append(card)
        player.has_drawn = True
        state.pending_buy_intents = []
        self._record_action(state, player.id, MoveAction.DRAW_DECK.value, f"{player.name} robó del mazo.")
        return {'card': card_to_dict(card)}

    def _draw_discard(self, state: GameSession, buyer: Player, payload: Dict) -> Dict[str, Any]:
        turn_player = state.current_player
        is_turn_player = turn_player.id == buyer.id
        if turn_player.has_drawn:
            if is_turn_player:
                raise GameError(ALREADY_DRAWN, "Ya robaste una carta este turno.")
            raise GameError(BUY_WINDOW_CLOSED, "Ya no se puede comprar esta carta.")

        if state.top_discard is None:
            raise GameError(EMPTY_DISCARD, "No hay carta en el descarte.")

        if buyer.buys_used >= self.rules.max_buys:
            raise GameError(BUYS_EXHAUSTED, f"Ya usaste tus {self.rules.max_buys} compras.")

        now = self.clock()
        intents = register_intent(state.pending_buy_intents, buyer.id, now)
        winner_id = resolve_buy_priority(
            intents,
            state.current_turn,
            [p.id for p in state.players],
            now,
            self.rules.buy_intent_window,
        )
        if winner_id != buyer.id:
            raise GameError(NO_PRIORITY, "Otro jugador tiene prioridad para comprar.")

        cards = [state.discard_pile.pop()]
        for _ in range(self.rules.buy_extra_cards):
            extra = draw_with_reshuffle(state, self.rules.max_reshuffles, self.rng)
            if extra is None:
                break
            cards.append(extra)

        buyer.hand.extend(cards)
        buyer.bought_cards.extend(cards)
        state.pending_buy_intents = []

        if is_turn_player:
            buyer.has_drawn = True
            self._record_action(
                state, buyer.id, MoveAction.DRAW_DISCARD.value,
                f"{buyer.name} tomó {cards[0]} del descarte.",
            )
        else:
            buyer.buys_used += 1
            self._record_action(
                state, buyer.id, LAST_ACTION_BUY,
                f"{buyer.name} compró {cards[0]} ({buyer.buys_used}/{self.rules.max_buys}).",
            )
        logger.info(f"Session {state.id}: {buyer.id} bought {cards[0].id} (+{len(cards) - 1} from deck)")
        return {'cards': [card_to_dict(c) for c in cards]}

    def _intend_buy(self, state: GameSession, player: Player, payload: Dict) -> Dict[str, Any]:
        turn_player = state.current_player
        if turn_player.has_drawn:
            raise GameError(BUY_WINDOW_CLOSED, "Ya no se puede comprar esta carta.")
        if state.top_discard is None:
            raise GameError(EMPTY_DISCARD, "No hay carta en el descarte.")
        if turn_player.id != player.id and player.buys_used >= self.rules.max_buys:
            raise GameError(BUYS_EXHAUSTED, f"Ya usaste tus {self.rules.max_buys} compras.")

        now = self.clock()
        live = recent_intents(state.pending_buy_intents, now, self.rules.buy_intent_window)
        state.pending_buy_intents = register_intent(live, player.id, now)
        return {'intentRegistered': True}

    def _discard(self, state: GameSession, player: Player, payload: Dict) -> Dict[str, Any]:
        if not player.has_drawn:
            raise GameError(MUST_DRAW_FIRST, "Debes robar antes de descartar.")
        card_id = self._require_card_id(payload)
        if player.find_card(card_id) is None:
            raise GameError(CARD_NOT_FOUND, f"No tienes la carta {card_id}.")

        card = player.remove_cards([card_id])[0]
        state.discard_pile.append(card)
        state.pending_buy_intents = []

        if not player.hand:
            self._end_round(state, player.id, f"{player.name} se quedó sin cartas y gana la ronda.")
            return {'roundEnded': True, 'winnerId': player.id}

        player.has_drawn = False
        player.bought_cards = []
        step = 1 if state.direction == DIRECTION_CLOCKWISE else -1
        state.current_turn = (state.current_turn + step) % len(state.players)
        state.current_player.has_drawn = False
        self._record_action(state, player.id, MoveAction.DISCARD.value, f"{player.name} descartó {card}.")
        return {'nextTurn': state.current_turn}

    def _down(self, state: GameSession, player: Player, payload: Dict) -> Dict[str, Any]:
        if not player.has_drawn:
            raise GameError(MUST_DRAW_FIRST, "Debes robar antes de bajarte.")

        group_ids = self._parse_groups(payload)
        groups = []
        for ids in group_ids:
            group = []
            for card_id in ids:
                card = player.find_card(card_id)
                if card is None:
                    raise GameError(CARD_NOT_FOUND, f"No tienes la carta {card_id}.")
                group.append(card)
            groups.append(group)

        if player.has_melded:
            validation = validate_additional_down(groups)
        else:
            validation = validate_contract(groups, state.current_round)
        if not validation:
            raise GameError(validation.error_code or INVALID_MELD, validation.error_message)

        first_down = not player.has_melded
        for ids in group_ids:
            player.melds.append(player.remove_cards(ids))

        if not player.hand:
            self._end_round(state, player.id, f"{player.name} se bajó con todas sus cartas y gana la ronda.")
            return {'roundEnded': True, 'winnerId': player.id}

        verb = "se bajó" if first_down else "bajó otro grupo"
        self._record_action(
            state, player.id, MoveAction.DOWN.value,
            f"{player.name} {verb} con {len(groups)} grupo(s).",
        )
        return {'melds': len(player.melds)}

    def _add_to_meld(self, state: GameSession, player: Player, payload: Dict) -> Dict[str, Any]:
        if not player.has_drawn:
            raise GameError(MUST_DRAW_FIRST, "Debes robar antes de agregar cartas.")
        if not player.has_melded:
            raise GameError(NOT_MELDED, "Debes bajarte antes de agregar cartas.")

        card_id = self._require_card_id(payload)
        target, meld_index = self._target_meld(state, player, payload)
        card = player.find_card(card_id)
        if card is None:
            raise GameError(CARD_NOT_FOUND, f"No tienes la carta {card_id}.")

        meld = target.melds[meld_index]
        if not can_add_to_meld(card, meld):
            raise GameError(INVALID_MELD, f"La carta {card} no encaja en ese grupo.")

        player.remove_cards([card_id])
        meld.append(card)

        if not player.hand:
            self._end_round(state, player.id, f"{player.name} agregó su última carta y gana la ronda.")
            return {'roundEnded': True, 'winnerId': player.id}

        self._record_action(
            state, player.id, MoveAction.ADD_TO_MELD.value,
            f"{player.name} agregó {card} al grupo de {target.name}.",
        )
        return {'meldSize': len(meld)}

    def _steal_joker(self, state: GameSession, player: Player, payload: Dict) -> Dict[str, Any]:
        if not player.has_drawn:
            raise GameError(MUST_DRAW_FIRST, "Debes robar antes de robar un comodín.")
        if not player.has_melded:
            raise GameError(NOT_MELDED, "Debes bajarte antes de robar un comodín.")

        card_id = self._require_card_id(payload)
        target, meld_index = self._target_meld(state, player, payload)
        card = player.find_card(card_id)
        if card is None:
            raise GameError(CARD_NOT_FOUND, f"No tienes la carta {card_id}.")

        meld = target.melds[meld_index]
        if not any(c.is_joker for c in meld):
            raise GameError(INVALID_STEAL, "Ese grupo no tiene comodín.")
        if card.is_joker:
            raise GameError(INVALID_STEAL, "Debes entregar una carta natural.")

        if meld_shape(meld) == SHAPE_TRIO:
            partner = find_trio_steal_partner(card, meld, player.hand, payload.get('secondCardId'))
            if partner is None:
                raise GameError(
                    INVALID_STEAL,
                    "Para robar el comodín de un trío necesitas dos cartas de ese valor.",
                )
            given = [card, partner]
        else:
            if not can_steal_joker(card, meld, player.hand):
                raise GameError(INVALID_STEAL, f"La carta {card} no reemplaza al comodín de esa escala.")
            given = [card]

        new_meld, joker = swap_joker(meld, given)
        player.remove_cards([c.id for c in given])
        player.hand.append(joker)
        target.melds[meld_index] = new_meld
        self._record_action(
            state, player.id, MoveAction.STEAL_JOKER.value,
            f"{player.name} robó un comodín del grupo de {target.name}.",
        )
        return {'joker': card_to_dict(joker)}

    def _ready_for_next_round(self, state: GameSession, player: Player) -> Dict[str, Any]:
        if state.status != STATUS_ROUND_ENDED:
            raise GameError(INVALID_PHASE, "La ronda aún no termina.")
        if player.id in state.ready_for_next_round:
            raise GameError(ALREADY_READY, "Ya estás listo para la siguiente ronda.")

        state.ready_for_next_round.append(player.id)
        for bot in state.players:
            if bot.is_bot and bot.id not in state.ready_for_next_round:
                state.ready_for_next_round.append(bot.id)
        return {'ready': list(state.ready_for_next_round)}

    def _start_next_round(self, state: GameSession, player: Player) -> Dict[str, Any]:
        self._ensure_host(state, player.id)
        if state.status != STATUS_ROUND_ENDED:
            raise GameError(INVALID_PHASE, "La ronda aún no termina.")

        waiting = [
            p.name for p in state.players
            if p.id != state.creator_id and p.id not in state.ready_for_next_round
        ]
        if waiting:
            raise GameError(PLAYERS_NOT_READY, f"Faltan jugadores por estar listos: {', '.join(waiting)}.")

        previous_round = state.current_round
        player_count = len(state.players)
        self._deal(state)
        state.current_round = previous_round + 1
        state.current_turn = (player_count - (previous_round % player_count)) % player_count
        state.status = STATUS_PLAYING
        self._record_action(
            state, player.id, MoveAction.START_NEXT_ROUND.value,
            f"Comienza la ronda {state.current_round}: {describe_contract(state.current_round)}.",
        )
        logger.info(
            f"Session {state.id}: round {state.current_round} started, "
            f"{state.current_player.name} opens"
        )
        return {'round': state.current_round}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _end_round(self, state: GameSession, winner_id: Optional[str], description: str) -> None:
        status = finalize_round(state, winner_id, self.rules)
        action_type = LAST_ACTION_GAME_ENDED if status == STATUS_FINISHED else LAST_ACTION_ROUND_ENDED
        self._record_action(state, SYSTEM_PLAYER_ID, action_type, description)

    def _record_history(self, state: GameSession) -> None:
        if self.history is None:
            return
        standings = final_standings(state)
        winner_id = standings[0]['id'] if standings else None
        self.history.record_game_history(state.id, winner_id, standings)
        logger.info(f"Session {state.id} finished, winner {winner_id}")

    def _require_card_id(self, payload: Dict) -> str:
        card_id = payload.get('cardId')
        if not isinstance(card_id, str) or not card_id:
            raise GameError(INVALID_PAYLOAD, "Falta cardId.")
        return card_id

    def _target_meld(self, state: GameSession, player: Player, payload: Dict) -> Tuple[Player, int]:
        target_id = payload.get('targetPlayerId') or player.id
        target = state.get_player(target_id)
        if target is None:
            raise GameError(PLAYER_NOT_FOUND, f"Jugador {target_id} no encontrado.")

        meld_index = payload.get('meldIndex')
        if not isinstance(meld_index, int) or isinstance(meld_index, bool):
            raise GameError(INVALID_PAYLOAD, "Falta meldIndex.")
        if not 0 <= meld_index < len(target.melds):
            raise GameError(MELD_NOT_FOUND, f"{target.name} no tiene el grupo {meld_index}.")
        return target, meld_index

    def _parse_groups(self, payload: Dict) -> List[List[str]]:
        """Accept groups as lists of card ids or of card objects carrying an id."""
        raw_groups = payload.get('groups')
        if not isinstance(raw_groups, list) or not raw_groups:
            raise GameError(INVALID_PAYLOAD, "Debes enviar al menos un grupo.")

        groups = []
        seen = set()
        for raw_group in raw_groups:
            if not isinstance(raw_group, list):
                raise GameError(INVALID_PAYLOAD, "Cada grupo debe ser una lista de cartas.")
            ids = []
            for entry in raw_group:
                card_id = entry.get('id') if isinstance(entry, dict) else entry
                if not isinstance(card_id, str):
                    raise GameError(INVALID_PAYLOAD, "Carta inválida en el grupo.")
                if card_id in seen:
                    raise GameError(INVALID_PAYLOAD, f"La carta {card_id} aparece más de una vez.")
                seen.add(card_id)
                ids.append(card_id)
            groups.append(ids)
        return groups

    def _run_bots(self, session_id: str) -> None:
        if self.rules.auto_play_bots:
            self.bot_driver.run(session_id)
