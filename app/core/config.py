from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # DB
    DATABASE_URL: str = "sqlite:///./database.db"

    # Logging
    LOG_LEVEL: str = "INFO"
    SLOW_REQUEST_MS: float = 500.0

    # Pagination
    DEFAULT_PAGE_LIMIT: int = 20
    MAX_PAGE_LIMIT: int = 200

    # Default price list guard
    DEFAULT_LOCK_TIMEOUT_SECONDS: float = 10.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
