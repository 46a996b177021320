from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    DATABASE_URL: str = "sqlite:///./persona_recruit.db"

    # Google Gemini API
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.0-flash"
    EMBEDDING_MODEL: str = "models/text-embedding-004"

    # JWT Authentication
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Object storage (local bucket)
    STORAGE_ROOT: str = "./storage"
    STORAGE_BASE_URL: str = "/files"

    # Rate limiting (requests per window)
    RATE_LIMIT_WINDOW_SECONDS: int = 60
    RATE_LIMIT_AUTH: int = 5
    RATE_LIMIT_UPLOAD: int = 10
    RATE_LIMIT_SEARCH: int = 30
    RATE_LIMIT_API: int = 100
    RATE_LIMIT_AI: int = 20

    # Request limits
    REQUEST_TIMEOUT_SECONDS: float = 30.0
    MAX_BODY_BYTES: int = 5 * 1024 * 1024

    # Application
    APP_NAME: str = "Persona Recruit"
    DEBUG: bool = True
    BACKEND_CORS_ORIGINS: str = (
        "http://localhost:3000,"
        "http://localhost:9002,"
        "http://127.0.0.1:3000,"
        "http://127.0.0.1:9002"
    )


settings = Settings()
