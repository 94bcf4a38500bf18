from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "Retail Ops Hub"
    DATABASE_URL: str = "sqlite+pysqlite:///./hub.db"

    # "local" keeps accounts in our own database; "supabase" talks to the
    # hosted auth admin API with the service-role key.
    IDENTITY_BACKEND: str = "local"
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    IDENTITY_TIMEOUT_SECONDS: float = 15.0

    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    TEMP_PASSWORD_LENGTH: int = 16
    PASSWORD_MIN_LENGTH: int = 12
    ACCOUNT_SCAN_MAX_PAGES: int = 5
    ACCOUNT_SCAN_PAGE_SIZE: int = 200
    DEFAULT_REDIRECT_URL: str = ""

    CORS_ALLOW_ORIGINS: list[str] = ["*"]

    BOOTSTRAP_ADMIN_EMAIL: str = "admin@example.com"
    BOOTSTRAP_ADMIN_PASSWORD: str = "change-me-Admin-1"
    BOOTSTRAP_ADMIN_NAME: str = "Hub Admin"
    BOOTSTRAP_STORE_NAME: str = "Main Store"
    BOOTSTRAP_STORE_NUMBER: str = "0001"

    @model_validator(mode="after")
    def _temp_passwords_meet_policy(self):
        if self.TEMP_PASSWORD_LENGTH < self.PASSWORD_MIN_LENGTH:
            raise ValueError(
                f"TEMP_PASSWORD_LENGTH ({self.TEMP_PASSWORD_LENGTH}) must be at least "
                f"PASSWORD_MIN_LENGTH ({self.PASSWORD_MIN_LENGTH})"
            )
        return self


settings = Settings()
