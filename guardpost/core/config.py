from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173"

    # Database – SQLite for local development, postgresql+asyncpg in production
    DATABASE_URL: str = "sqlite+aiosqlite:///./guardpost.db"

    # Security
    SECRET_KEY: str = "dev_secret_key_change_in_production_min_32_chars!!"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Evidence storage (filesystem bucket)
    EVIDENCE_STORAGE_DIR: str = "./storage"
    EVIDENCE_BUCKET: str = "evidence"
    SIGNED_URL_EXPIRE_SECONDS: int = 3600
    MAX_UPLOAD_SIZE_MB: int = 25

    # Instance-local UI preferences and void overrides
    LOCAL_STATE_PATH: str = "./guardpost_state.json"

    # Display
    DISPLAY_TIMEZONE: str = "America/New_York"

    # Violations
    DOCUMENTATION_DUE_HOURS: int = 72
    DEFAULT_PAGE_SIZE: int = 25
    ANNOUNCEMENTS_LIMIT: int = 25

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
