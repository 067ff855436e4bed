from typing import Annotated, Any, Literal

from pydantic import BeforeValidator, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "Content Agents"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    PORT: int = 3000

    # The browser extension posts from its own origin.
    BACKEND_CORS_ORIGINS: Annotated[
        list[str] | str, BeforeValidator(parse_cors)
    ] = ["*"]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    # Storage
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_USER: str = ""
    DB_PASSWORD: str | None = None
    DB_NAME: str = ""
    DB_CONNECT_TIMEOUT: int = 20
    DATABASE_URL: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return URL.create(
            drivername="mysql+pymysql",
            username=self.DB_USER or None,
            password=self.DB_PASSWORD,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_NAME or None,
        ).render_as_string(hide_password=False)

    # Model provider (OpenAI-compatible endpoint)
    GEMINI_API_KEY: str | None = None
    LLM_API_KEY: str | None = None
    LLM_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    MODEL_DEFAULT: str = "gemini-1.5-flash"
    LLM_JSON_MODE: bool = True
    LLM_TIMEOUT_SECONDS: float = 60.0

    # Pipeline
    PROMPT_MAX_CHARS: int = 4000
    IDEAS_PER_AGENT: int = 2
    PROJECTS_LIST_LIMIT: int = 20
    STATUS_UPDATE_ATTEMPTS: int = 3
    STATUS_UPDATE_RETRY_DELAY_SECONDS: float = 0.5


settings = Settings()  # type: ignore
