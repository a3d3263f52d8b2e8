from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


def find_env_file() -> str:
    env_file = ".env" if Path("/.dockerenv").exists() else ".env.local"

    current_path = Path.cwd()

    for path in [current_path] + list(current_path.parents):
        env_path = path / env_file
        if env_path.exists():
            return str(env_path)

    return env_file


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=find_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = "postgresql+psycopg2://app:app@db:5432/battery_rental"
    create_schema: bool = True  # create_all on startup

    # Credit rating
    standard_rental_period_days: int = 7  # on-time return threshold
    default_credit_rating: int = 3

    # Reporting
    dashboard_top_n: int = 5

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # HTTP
    metrics_enabled: bool = True
    cors_origins: List[str] = ["*"]
