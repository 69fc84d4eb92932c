"""
Game rule configuration and validation.
"""

from pydantic import BaseModel, Field, field_validator

from .constants import CARDS_PER_PLAYER, MAX_SEATS, MIN_PLAYERS, WIN_THRESHOLD


class RuleConfig(BaseModel):
    """Configuration for game rules and settings."""

    cards_per_player: int = Field(
        default=CARDS_PER_PLAYER,
        ge=1,
        le=9,
        description="Cards dealt to each seated player"
    )
    min_players: int = Field(
        default=MIN_PLAYERS,
        ge=2,
        le=4,
        description="Minimum number of seated, ready players required to start"
    )
    max_seats: int = Field(
        default=MAX_SEATS,
        ge=2,
        le=4,
        description="Number of seats at the table"
    )
    win_threshold: int = Field(
        default=WIN_THRESHOLD,
        ge=3,
        description="Melded cards a player needs to win"
    )
    auto_start: bool = Field(
        default=True,
        description="Start the game as soon as every seated player is ready"
    )
    auto_complete_exchange: bool = Field(
        default=True,
        description="Complete the exchange once every player has chosen a card"
    )
    max_write_attempts: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Read-transition-write attempts before a version conflict is surfaced"
    )

    @field_validator('max_seats')
    @classmethod
    def validate_max_seats(cls, v, info):
        """Validate seat count is not below the minimum player count."""
        min_players = info.data.get('min_players', MIN_PLAYERS)
        if v < min_players:
            raise ValueError(f'max_seats ({v}) must be >= min_players ({min_players})')
        return v

    def validate_player_count(self, player_count: int) -> bool:
        """Check if a seated player count is valid for this configuration."""
        return self.min_players <= player_count <= self.max_seats


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)
