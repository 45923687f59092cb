from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """
    Manages all application settings. It automatically reads from
    environment variables or a .env file.
    """
    # Tell pydantic to load variables from a .env file
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Regime limits
    MIN_DURATION_MS: int = 10000
    MIN_BREATHS_PER_MINUTE: int = 2
    MAX_BREATHS_PER_MINUTE: int = 60

    # Randomized segments are drawn from base +/- RANDOM_SPREAD_MS / segments,
    # in steps of RANDOM_STEP_MS / segments
    RANDOM_SPREAD_MS: int = 2000
    RANDOM_STEP_MS: int = 100

    # Playback
    DRAIN_ALL_BOUNDARIES: bool = False
    EVENT_HISTORY_SIZE: int = 100
    # Oldest sessions are evicted past this many, completed ones first
    MAX_SESSIONS: int = 1000

    LOG_LEVEL: str = "INFO"
    CORS_ALLOW_ORIGINS: List[str] = ["*"]

    # Used by tools/simulate_session.py
    APP_URL: str = "http://127.0.0.1:8000"
    SIMULATOR_FRAME_MS: int = 100

# Create a single, reusable instance of the settings
settings = Settings()
