"""Client configuration, read from FAMILY_TREE_* environment variables or .env."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    api_base_url: str = "https://your-domain.com/api"
    request_timeout: float = 30.0  # seconds
    session_db_path: Path = Path("family_tree_session.db")

    model_config = SettingsConfigDict(env_prefix="FAMILY_TREE_", env_file=".env", extra="ignore")


settings = Settings()
