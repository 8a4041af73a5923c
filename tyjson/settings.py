from pathlib import Path
from typing import Dict, FrozenSet

from pydantic import AliasChoices, BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def choose_env_file() -> str:
    return ".env.local" if Path(".env.local").exists() else ".env"


def split_names(value: str) -> FrozenSet[str]:
    return frozenset(part.strip() for part in (value or "").split(",") if part.strip())


class TokenConfig(BaseModel):
    enabled: bool = False
    value: str = ""
    format: str = "Bearer"


class RestrictionConfig(BaseModel):
    get: FrozenSet[str] = frozenset()
    post: FrozenSet[str] = frozenset()
    options: FrozenSet[str] = frozenset()
    fields: FrozenSet[str] = frozenset()

    def forbids(self, method: str, endpoint: str) -> bool:
        names = {"GET": self.get, "POST": self.post}.get(method.upper(), frozenset())
        return endpoint in names


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=choose_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # tolerate unrelated env vars
    )

    # Content store
    DATABASE_URL: str = "sqlite:///./tyjson.db"

    # Logging
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = Field(False, validation_alias=AliasChoices("DEBUG", "TTDF_DEBUG"))

    # REST API
    REST_API_ENABLED: bool = Field(
        True, validation_alias=AliasChoices("REST_API_ENABLED", "TTDF_RESTAPI_ENABLED")
    )
    REST_API_ROUTE: str = "ty-json"
    REST_API_OVERRIDE_SETTING: str = "RESTAPI_Switch"
    CORS_ALLOW_ORIGIN: str = "*"
    # Extra headers added to every API response, as a JSON object
    RESPONSE_HEADERS: Dict[str, str] = {}

    # Token gate; the REST_API_* names are the old flat config keys
    TOKEN_ENABLED: bool = Field(
        False, validation_alias=AliasChoices("TOKEN_ENABLED", "REST_API_TOKEN_ENABLED")
    )
    TOKEN_VALUE: str = Field(
        "", validation_alias=AliasChoices("TOKEN_VALUE", "REST_API_TOKEN")
    )
    TOKEN_FORMAT: str = Field(
        "Bearer", validation_alias=AliasChoices("TOKEN_FORMAT", "REST_API_TOKEN_FORMAT")
    )

    # Restrictions, comma separated names
    LIMIT_GET: str = Field(
        "", validation_alias=AliasChoices("LIMIT_GET", "REST_API_LIMIT_GET")
    )
    LIMIT_POST: str = Field(
        "", validation_alias=AliasChoices("LIMIT_POST", "REST_API_LIMIT_POST")
    )
    LIMIT_OPTIONS: str = Field(
        "", validation_alias=AliasChoices("LIMIT_OPTIONS", "REST_API_LIMIT_OPTIONS")
    )
    LIMIT_FIELDS: str = Field(
        "", validation_alias=AliasChoices("LIMIT_FIELDS", "REST_API_LIMIT_FIELDS")
    )

    # Site / theme
    SITE_SECRET: str = ""
    THEME_NAME: str = "TTDF"
    THEME_VERSION: str = "1.0.0"
    FRAMEWORK_VERSION: str = "3.0.0"
    THEME_SETUP_FILE: str = str(Path(__file__).parent / "theme" / "setup.yaml")
    TIMEZONE: str = "UTC"

    # Settings cache
    CACHE_TTL: int = 300
    CACHE_MAX_SIZE: int = 1000

    # AI summary provider
    AI_API_BASE_URL: str = "https://api.openai.com/v1"
    AI_API_KEY: str = Field("", validation_alias=AliasChoices("AI_API_KEY", "OPENAI_API_KEY"))
    AI_MODEL: str = "gpt-3.5-turbo"
    AI_PROMPT_TEMPLATE: str = (
        "Write a short summary (under 200 words) of the following article:\n\n"
        "Title: ${title}\n\nContent:\n${content}"
    )
    AI_TIMEOUT: float = 30.0

    @property
    def api_base_path(self) -> str:
        return "/" + self.REST_API_ROUTE.strip("/")

    @property
    def token(self) -> TokenConfig:
        return TokenConfig(
            enabled=self.TOKEN_ENABLED, value=self.TOKEN_VALUE, format=self.TOKEN_FORMAT
        )

    @property
    def restrictions(self) -> RestrictionConfig:
        return RestrictionConfig(
            get=split_names(self.LIMIT_GET),
            post=split_names(self.LIMIT_POST),
            options=split_names(self.LIMIT_OPTIONS),
            fields=split_names(self.LIMIT_FIELDS),
        )


# Global settings instance (evaluated at import, but reads env on construction)
settings = Settings()
