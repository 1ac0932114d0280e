# arranger/config/settings.py

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    GROUP_COUNT_DEFAULT: int = 4
    MIN_PER_GROUP_DEFAULT: int = 3
    MAX_PER_GROUP_DEFAULT: int = 4
    GENDER_POLICY_DEFAULT: str = "balanced"

    # heuristic bounds
    RECONCILE_PASSES: int = 3
    REBALANCE_MAX_ITERATIONS: int = 200
    PLACEMENT_SAFETY_FACTOR: int = 4

    model_config = SettingsConfigDict(env_file=".env", env_prefix="ARRANGER_", extra="ignore")


settings = Settings()
