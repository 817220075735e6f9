"""
Game rule configuration and validation.
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class RuleConfig(BaseModel):
    """Configuration for game rules and settings."""

    min_players: int = Field(
        default=3,
        ge=2,
        le=8,
        description="Minimum number of players required to start"
    )
    max_players: int = Field(
        default=5,
        ge=2,
        le=8,
        description="Maximum number of players allowed"
    )
    cards_per_hand: int = Field(
        default=11,
        ge=1,
        description="Cards dealt to each player at the start of a round"
    )
    number_of_decks: int = Field(
        default=2,
        ge=1,
        le=4,
        description="Standard 52-card decks shuffled together"
    )
    jokers_per_deck: int = Field(
        default=2,
        ge=0,
        le=4,
        description="Jokers added per deck"
    )
    total_rounds: int = Field(
        default=8,
        ge=1,
        le=8,
        description="Rounds played before the game finishes"
    )
    max_buys: int = Field(
        default=7,
        ge=0,
        description="Discard buys each player may make over the whole game"
    )
    buy_extra_cards: int = Field(
        default=2,
        ge=0,
        description="Extra deck cards received together with a bought discard"
    )
    buy_intent_window: float = Field(
        default=10.0,
        gt=0,
        description="Seconds a buy intent stays eligible for priority"
    )
    max_reshuffles: int = Field(
        default=3,
        ge=0,
        description="Times per round the discard pile may be recycled into the deck"
    )
    turn_direction: Literal['clockwise', 'counter-clockwise'] = Field(
        default='counter-clockwise',
        description="Direction the turn advances after a discard"
    )
    unused_buys_penalty: int = Field(
        default=10,
        ge=0,
        description="Points subtracted at game end from players with buys left"
    )
    auto_play_bots: bool = Field(
        default=True,
        description="Run bot turns automatically after each processed move"
    )
    bot_max_iterations: int = Field(
        default=50,
        ge=1,
        description="Bot moves applied per driver run before yielding"
    )
    bot_turn_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Wall-clock seconds a bot may spend on one turn before a forced move"
    )

    @field_validator('max_players')
    @classmethod
    def validate_max_players(cls, v, info):
        """Validate maximum players doesn't fall below minimum."""
        min_players = info.data.get('min_players', 3)
        if v < min_players:
            raise ValueError(f'max_players ({v}) must be >= min_players ({min_players})')
        return v

    def validate_player_count(self, player_count: int) -> bool:
        """Check if a player count is valid for this configuration."""
        return self.min_players <= player_count <= self.max_players

    def get_deck_size(self) -> int:
        """Get the total number of cards in the shoe."""
        return self.number_of_decks * (52 + self.jokers_per_deck)


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)
