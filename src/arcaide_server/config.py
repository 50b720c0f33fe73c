from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./arcaide.db"
    sql_echo: bool = False  # Set True for SQL debugging

    # Bearer tokens are minted by the auth provider, we only verify them
    jwt_secret: SecretStr
    jwt_algo: str = "HS256"
    jwt_issuer: str = "arcaide-auth"
    jwt_audience: str = "arcaide-server"

    # Fuzzy correction
    fuzzy_backend_enabled: bool = True
    fuzzy_max_distance: int = Field(default=2, ge=0)

    # FTS5 snippet() arguments
    search_snippet_tokens: int = Field(default=5, ge=1, le=64)
    search_snippet_column: int = 4

    log_level: str = "INFO"

    # Used by the `arcaide-server` console script
    host: str = "127.0.0.1"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_prefix="ARCAIDE_",
        env_file=".env",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
