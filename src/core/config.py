from datetime import datetime
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings

from src.core.env_manager import EnvManager


class Settings(BaseSettings):
    DATABASE_URI: str = EnvManager.get_env_variable(
        "DATABASE_URL", "sqlite:///database.db"
    )
    ASYNC_DATABASE_URL: str = EnvManager.get_env_variable(
        "ASYNC_DATABASE_URL", "sqlite+aiosqlite:///database.db"
    )
    SECRET_KEY: str = EnvManager.get_env_variable("SECRET_KEY", "supersecretkey")
    JWT_ALGORITHM: str = EnvManager.get_env_variable("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = EnvManager.get_int(
        "ACCESS_TOKEN_EXPIRE_MINUTES", 60
    )

    PROJECT_NAME: str = EnvManager.get_env_variable("PROJECT_NAME", "Post Feed API")
    PROJECT_INFO: str = EnvManager.get_env_variable(
        "PROJECT_INFO", "Posts with ownership checks, search and live notifications"
    )
    PROJECT_VERSION: str = EnvManager.get_env_variable("PROJECT_VERSION", "1.0.0")
    TIME_ZONE: str = EnvManager.get_env_variable("TIME_ZONE", "UTC")

    POSTS_PER_PAGE: int = EnvManager.get_int("POSTS_PER_PAGE", 6)

    LOG_LEVEL: str = EnvManager.get_env_variable("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = EnvManager.get_env_variable("LOG_FORMAT", "text")
    CORS_ORIGINS: str = EnvManager.get_env_variable("CORS_ORIGINS", "*")

    def get_now(self):
        """Get the current time in the configured time zone."""
        tz = ZoneInfo(self.TIME_ZONE)
        return datetime.now(tz)

    def get_cors_origins(self) -> list[str]:
        """Comma separated origins, e.g. ``http://a.test,http://b.test``."""
        return [item.strip() for item in self.CORS_ORIGINS.split(",") if item.strip()]


settings = Settings()
