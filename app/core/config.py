from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "PhOD"
    PROJECT_VERSION: str = "1.0.0"
    DATABASE_URL: str = "sqlite:///./phod.db"

    SECRET_KEY: str = "change-me-in-production"
    SESSION_TIMEOUT_MINUTES: int = 480  # 8 hours for long operations
    TIMEZONE: str = "UTC"
    LOG_LEVEL: str = "INFO"

    SEED_REFERENCE_DATA: bool = True
    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_PASSWORD: str = "admin123"

    model_config = SettingsConfigDict(env_file=".env")

settings = Settings()
