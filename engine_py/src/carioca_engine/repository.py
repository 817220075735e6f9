"""
Storage collaborators: session repository and game history recorder.
"""

import copy
import logging
import os
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import orjson

from .diff import apply_updates
from .models import GameSession
from .serialization import session_from_dict, session_to_dict

logger = logging.getLogger(__name__)


class SessionRepository(ABC):
    """Read-modify-write contract the engine needs from storage."""

    @abstractmethod
    def create(self, state: GameSession) -> None:
        """Store a brand new session."""

    @abstractmethod
    def load(self, session_id: str) -> Optional[GameSession]:
        """Return an independent snapshot of the session, or None."""

    @abstractmethod
    def save(self, session_id: str, updates: Dict[str, Any]) -> None:
        """Atomically apply a partial update (field name -> value)."""


class HistoryRecorder(ABC):
    """Receives one record per finished game."""

    @abstractmethod
    def record_game_history(self, session_id: str, winner_id: Optional[str], participants: List[Dict]) -> None:
        pass


class InMemorySessionRepository(SessionRepository):
    def __init__(self):
        self.sessions: Dict[str, GameSession] = {}
        self._lock = threading.Lock()

    def create(self, state: GameSession) -> None:
        with self._lock:
            if state.id in self.sessions:
                raise ValueError(f"Session {state.id} already exists")
            self.sessions[state.id] = copy.deepcopy(state)

    def load(self, session_id: str) -> Optional[GameSession]:
        with self._lock:
            state = self.sessions.get(session_id)
            return copy.deepcopy(state) if state else None

    def save(self, session_id: str, updates: Dict[str, Any]) -> None:
        with self._lock:
            state = self.sessions.get(session_id)
            if state is None:
                raise KeyError(session_id)
            # Work on a copy so a bad update leaves the stored session untouched
            updated = apply_updates(copy.deepcopy(state), updates)
            updated.increment_version()
            self.sessions[session_id] = updated


class InMemoryHistoryRecorder(HistoryRecorder):
    def __init__(self):
        self.history: List[Dict] = []

    def record_game_history(self, session_id: str, winner_id: Optional[str], participants: List[Dict]) -> None:
        self.history.append({
            'session_id': session_id,
            'winner_id': winner_id,
            'participants': copy.deepcopy(participants),
            'played_at': time.time(),
        })


class JsonFileSessionRepository(SessionRepository, HistoryRecorder):
    """
    Single JSON document holding every session and the game history.

    Each write rewrites the file through a temporary file and an atomic rename.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()
        if not os.path.exists(path):
            directory = os.path.dirname(path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            self._write({'sessions': {}, 'history': []})

    def _read(self) -> Dict[str, Any]:
        with open(self.path, 'rb') as fh:
            return orjson.loads(fh.read())

    def _write(self, data: Dict[str, Any]) -> None:
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, 'wb') as fh:
            fh.write(orjson.dumps(data, option=orjson.OPT_INDENT_2))
        os.replace(tmp_path, self.path)

    def create(self, state: GameSession) -> None:
        with self._lock:
            data = self._read()
            if state.id in data['sessions']:
                raise ValueError(f"Session {state.id} already exists")
            data['sessions'][state.id] = session_to_dict(state)
            self._write(data)

    def load(self, session_id: str) -> Optional[GameSession]:
        with self._lock:
            raw = self._read()['sessions'].get(session_id)
        return session_from_dict(raw) if raw else None

    def save(self, session_id: str, updates: Dict[str, Any]) -> None:
        with self._lock:
            data = self._read()
            raw = data['sessions'].get(session_id)
            if raw is None:
                raise KeyError(session_id)
            state = apply_updates(session_from_dict(raw), updates)
            state.increment_version()
            data['sessions'][session_id] = session_to_dict(state)
            self._write(data)

    def record_game_history(self, session_id: str, winner_id: Optional[str], participants: List[Dict]) -> None:
        with self._lock:
            data = self._read()
            data['history'].append({
                'session_id': session_id,
                'winner_id': winner_id,
                'participants': participants,
                'played_at': time.time(),
            })
            self._write(data)
        logger.info(f"Recorded history for session {session_id} (winner: {winner_id})")

    def get_history(self) -> List[Dict]:
        with self._lock:
            return self._read()['history']
