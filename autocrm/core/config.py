"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "change-this-in-production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version
    VERSION: str = "0.1.0"

    # Database
    DATABASE_URL: str = "sqlite:///./autocrm.db"

    # Bearer tokens (supports key rotation)
    JWT_SECRET: str = DEFAULT_JWT_SECRET
    JWT_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    JWT_EXPIRES_HOURS: int = 4

    # Static key used by the upstream email-receiving service
    EMAIL_PROCESSING_API_KEY: str = ""

    # Internal scheduled endpoints (cron jobs)
    INTERNAL_SECRET: str = ""

    # Object storage for raw inbound mail
    EMAIL_BUCKET: str = "autocrm-mail"
    S3_REGION: str = "us-west-2"
    S3_ENDPOINT_URL: str = ""
    S3_URL_STYLE: str = ""  # "path" | "virtual" | "" (botocore default)
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""

    # Language model
    AI_PROVIDER: str = "openai"  # "openai" | "gemini"
    AI_MODEL: str = ""  # Empty uses the provider default
    OPENAI_API_KEY: str = ""
    GEMINI_API_KEY: str = ""
    AI_TIMEOUT_SECONDS: float = 10.0

    # Feedback loop
    FEEDBACK_BATCH_SIZE: int = 50

    # Append-only JSON-lines debug log for the email API (empty disables)
    EMAIL_API_LOG_PATH: str = "logs/email-api.log"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Rate Limiting (requests per minute)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    RATE_LIMIT_EMAIL_INGEST: int = 120

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def jwt_secrets(self) -> list[str]:
        """Returns list of valid secrets (current first, then previous if set)."""
        secrets = [self.JWT_SECRET]
        if self.JWT_SECRET_PREVIOUS:
            secrets.append(self.JWT_SECRET_PREVIOUS)
        return secrets

    @property
    def jwt_secret_configured(self) -> bool:
        """Bearer tokens are trusted only with a real secret outside dev."""
        if not self.JWT_SECRET:
            return False
        return self.ENV == "dev" or DEFAULT_JWT_SECRET not in self.jwt_secrets

    @property
    def ai_api_key(self) -> str:
        """API key for the configured AI provider."""
        if self.AI_PROVIDER == "gemini":
            return self.GEMINI_API_KEY
        return self.OPENAI_API_KEY


settings = Settings()
