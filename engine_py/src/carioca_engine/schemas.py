"""
Request models for the HTTP adapter.
"""

from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator

from .constants import DIFFICULTIES, MoveAction


class CreateGameRequest(BaseModel):
    """Create a session hosted by the caller."""
    name: str = Field(..., min_length=1, max_length=30)


class JoinGameRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=30)


class AddBotRequest(BaseModel):
    difficulty: str = Field(default="MEDIUM")

    @field_validator('difficulty')
    @classmethod
    def validate_difficulty(cls, v):
        v = v.upper()
        if v not in DIFFICULTIES:
            raise ValueError(f"difficulty must be one of {DIFFICULTIES}")
        return v


class HostRequest(BaseModel):
    """Host-only operations (start, skip bot turn, end)."""
    player_id: str = Field(..., min_length=1)


class MoveRequest(BaseModel):
    """One game action."""
    player_id: str = Field(..., min_length=1)
    action: MoveAction
    payload: Dict[str, Any] = Field(default_factory=dict)


class CreateGameResponse(BaseModel):
    game_id: str
    player_id: str


class JoinGameResponse(BaseModel):
    player_id: str
