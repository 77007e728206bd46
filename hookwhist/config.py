"""Application configuration using Pydantic settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from hookwhist.constants import MAX_PLAYERS, MIN_PLAYERS, NO_TRUMP_FROM_ROUND
from hookwhist.models.enums import DeckPolicy


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")  # noqa: S104
    port: int = Field(default=3000, description="Server port")
    environment: str = Field(default="development", description="Environment")
    default_game_id: str = Field(default="desiree", description="Room joined when none is given")

    # Game Configuration
    min_players: int = Field(default=MIN_PLAYERS, description="Players needed to start")
    max_players: int = Field(default=MAX_PLAYERS, description="Maximum players per game")
    no_trump_from_round: int = Field(
        default=NO_TRUMP_FROM_ROUND, description="First round played without trump"
    )
    deck_policy: DeckPolicy = Field(
        default=DeckPolicy.ELIMINATE, description="What happens when the deck runs short"
    )

    # Presentation delays
    trick_pause_seconds: float = Field(default=3.0, description="Pause after a trick")
    round_pause_seconds: float = Field(default=5.0, description="Pause after round scores")
    elimination_pause_seconds: float = Field(default=4.0, description="Pause after elimination")


# Global settings instance
settings = Settings()
