"""Application configuration managed via environment variables."""
from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Rhythm Planner"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://rhythm@localhost:5432/rhythm"
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "rhythm-planner"

    # Planning horizon (one day, local to planner_timezone)
    planner_timezone: str = "UTC"
    day_start_hour: int = 7
    day_end_hour: int = 23

    # Genetic search
    ga_population_size: int = 50
    ga_generations: int = 100
    ga_mutation_rate: float = 0.1
    ga_random_seed: Optional[int] = None
    ga_preserve_hard_placements: bool = True

    planner_complexity_tiers: bool = False
    planner_fallback_enabled: bool = False
    buffer_minutes: int = 10
    rhythm_repository: Literal["sql", "memory"] = "sql"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
