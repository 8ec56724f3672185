"""
Interview Proctor Configuration Settings

Service-level knobs only. Detection thresholds and the PASS policy
threshold live on their classes as constants.
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configuration for the interview proctoring service."""

    # API Settings
    APP_NAME: str = "Interview Proctor Service"
    DEBUG: bool = True
    PORT: int = 5050
    LOG_LEVEL: str = "INFO"

    # Capture cadence
    FRAME_INTERVAL_SECONDS: float = 0.1  # 100ms video tick
    AUDIO_BLOCK_INTERVAL_SECONDS: float = 0.05  # ~2048 samples at 44.1kHz

    # Assumed capture width when the caller does not report one
    FRAME_WIDTH: int = 640

    # Session listing
    SESSION_LIST_LIMIT: int = 50

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
