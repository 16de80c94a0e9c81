from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    APP_NAME: str = "mongo-soft-delete"
    APP_ENV: Literal["dev", "prod"] = "dev"
    APP_DEBUG: bool = False

    model_config = SettingsConfigDict(env_file=".env", env_prefix="APP_", extra="ignore")


class LogSettings(BaseSettings):
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    LOG_FILE: str | None = None

    model_config = SettingsConfigDict(env_file=".env", env_prefix="LOG_", extra="ignore")


class MongoSettings(BaseSettings):
    MONGO_HOST: str = ""
    MONGO_PORT: int = 27017
    MONGO_DB: str = ""
    MONGO_USER: str = ""
    MONGO_PWD: str = ""
    MONGO_SERVER_SELECTION_TIMEOUT_MS: int = 8000
    MONGO_CONNECT_TIMEOUT_MS: int = 8000
    MONGO_SOCKET_TIMEOUT_MS: int = 10000
    MONGO_MAX_POOL_SIZE: int = 50
    MONGO_MIN_POOL_SIZE: int = 0

    model_config = SettingsConfigDict(env_file=".env", env_prefix="MONGO_", extra="ignore")

    @property
    def MONGO_URL(self) -> str:
        host = self.MONGO_HOST or "localhost"
        port = self.MONGO_PORT or 27017
        if self.MONGO_USER and self.MONGO_PWD:
            return f"mongodb://{self.MONGO_USER}:{self.MONGO_PWD}@{host}:{port}"
        return f"mongodb://{host}:{port}"


class SentrySettings(BaseSettings):
    SENTRY_DSN: str | None = None
    SENTRY_TRACES_SAMPLE_RATE: float = 0.2
    SENTRY_SEND_DEFAULT_PII: bool = False

    model_config = SettingsConfigDict(env_file=".env", env_prefix="SENTRY_", extra="ignore")


class Settings(AppSettings, LogSettings, MongoSettings, SentrySettings):
    RELEASE: str | None = None
    model_config = SettingsConfigDict(env_file=".env", env_prefix="", extra="ignore")


settings = Settings()
