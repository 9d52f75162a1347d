"""Application configuration loaded from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite:///./trainload.db"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Athlete reference values used when the athlete record has none
    DEFAULT_FTP: int = 200  # watts
    DEFAULT_THRESHOLD_HR: int = 170  # bpm

    # Metrics calculator
    NP_WINDOW_SECONDS: int = 30
    ELEVATION_SPIKE_THRESHOLD_M: float = 50.0  # 0 disables the spike filter

    # Compact time-series persistence
    COMPACT_MAX_POINTS: int = 300
    COMPACT_MAX_GPS_POINTS: int = 100

    # Load chronicle
    CHRONICLE_DEFAULT_DAYS: int = 90
    CHRONICLE_CACHE_TTL_SECONDS: int = 300

    # Adaptive engine window and policy tables
    ADAPTIVE_WINDOW_DAYS: int = 7
    FATIGUE_BASE: int = 30
    FATIGUE_ACCUMULATED_CAP: int = 50
    FATIGUE_MEDIUM: int = 50
    FATIGUE_HIGH: int = 70
    FATIGUE_CRITICAL: int = 85
    GLYCOGEN_MAX_G: float = 500.0
    GLYCOGEN_LOW_THRESHOLD_G: float = 200.0
    GLYCOGEN_DEPLETED_THRESHOLD_G: float = 100.0
    GLYCOGEN_DEPLETION_PER_TSS: float = 0.5  # grams per TSS point
    GLYCOGEN_RESTORE_RATE: float = 5.0  # grams per hour of recovery
    TSS_CAPACITY_BASE: int = 150
    TSS_REDUCTION_PER_FATIGUE: float = 1.5

    # Planned/actual matching policy
    MATCH_REQUIRE_SAME_SPORT: bool = True
    MATCH_DURATION_TOLERANCE: float = 0.5  # relative difference

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Create a global settings instance for direct import
settings = get_settings()
