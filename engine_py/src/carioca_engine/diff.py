"""
State diff computation for partial repository writes.
"""

import copy
from dataclasses import fields
from typing import Any, Dict

from .models import GameSession

# Bookkeeping fields the repository maintains itself
IGNORED_FIELDS = {'id', 'version'}


def compute_updates(old_state: GameSession, new_state: GameSession) -> Dict[str, Any]:
    """
    Compute the partial update turning old_state into new_state.

    Args:
        old_state: Snapshot as loaded
        new_state: Snapshot after a move was applied

    Returns:
        Mapping of changed GameSession field names to their new values
    """
    if old_state is None:
        return {f.name: copy.deepcopy(getattr(new_state, f.name))
                for f in fields(GameSession) if f.name not in IGNORED_FIELDS}

    updates = {}
    for f in fields(GameSession):
        if f.name in IGNORED_FIELDS:
            continue
        old_value = getattr(old_state, f.name)
        new_value = getattr(new_state, f.name)
        if old_value != new_value:
            updates[f.name] = copy.deepcopy(new_value)
    return updates


def apply_updates(state: GameSession, updates: Dict[str, Any]) -> GameSession:
    """Apply a partial update in place, rejecting unknown fields."""
    known = {f.name for f in fields(GameSession)}
    unknown = set(updates) - known
    if unknown:
        raise ValueError(f"Unknown session fields: {sorted(unknown)}")

    for name, value in updates.items():
        setattr(state, name, copy.deepcopy(value))
    return state
