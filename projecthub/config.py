from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_JWT_SECRET = "dev-change-me-projecthub-signing-secret"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    app_name: str = "ProjectHub"
    database_url: str = Field(default="sqlite:///./projecthub.db")
    jwt_secret: str = Field(default=DEV_JWT_SECRET)
    jwt_algorithm: str = "HS256"
    token_ttl_days: int = Field(default=7, ge=1)
    # bcrypt work factor; tests lower it to keep hashing fast
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    environment: str = Field(default="development", validation_alias="APP_ENV")
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process; the returned object is immutable."""
    return Settings()


settings = get_settings()
