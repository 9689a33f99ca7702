import json

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:5174",
    "http://localhost:5175",
    "http://127.0.0.1:5173",
    "https://parivadi.netlify.app",
    "https://eventhall.onrender.com",
]


class Settings(BaseSettings):
    database_url: str
    environment: str = "development"

    identity_provider: str = "firebase"
    firebase_project_id: str | None = None
    firebase_client_email: str | None = None
    firebase_private_key: str | None = None
    secret_key: str | None = None
    algorithm: str = "HS256"
    local_token_expire_minutes: int = 60

    allowed_origins: list[str] = DEFAULT_ALLOWED_ORIGINS
    ultimate_admin_emails: list[str] = []
    auto_create_tables: bool = False
    auto_run_migrations: bool = False
    seed_categories_on_startup: bool = False

    # Fixed-identity token for local testing; never honoured in production.
    dev_bypass_token: str | None = None
    dev_bypass_email: str | None = None

    admin_motivation_min_length: int = 50
    events_per_category_limit: int = 10

    log_level: str = "INFO"
    log_json: bool = True

    # List settings accept comma-separated strings or JSON lists; disable pydantic-settings JSON decoding
    # so our validators can handle both formats.
    model_config = SettingsConfigDict(
        env_file=".topsecret",
        extra="ignore",
        case_sensitive=False,
        enable_decoding=False,
        env_ignore_empty=True,
    )

    @property
    def is_production(self) -> bool:
        return (self.environment or "").strip().lower() == "production"

    @field_validator("identity_provider", "environment", mode="before")
    @classmethod
    def normalize_choice(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("identity_provider")
    @classmethod
    def validate_identity_provider(cls, value: str) -> str:
        if value not in {"firebase", "local"}:
            raise ValueError("identity_provider must be 'firebase' or 'local'")
        return value

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_allowed_origins(cls, value):
        if value is None or value == "":
            return list(DEFAULT_ALLOWED_ORIGINS)

        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return [origin for origin in parsed if origin]
            except json.JSONDecodeError:
                pass

            parsed = [origin.strip() for origin in value.split(",")]
            return [origin for origin in parsed if origin]

        if isinstance(value, (list, tuple)):
            return [origin for origin in value if origin]

        raise ValueError("allowed_origins must be a list or comma-separated string")

    @field_validator("ultimate_admin_emails", mode="before")
    @classmethod
    def parse_ultimate_admin_emails(cls, value):
        if value is None or value == "":
            return []

        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return [str(email).strip().lower() for email in parsed if str(email).strip()]
            except json.JSONDecodeError:
                pass

            parsed = [email.strip().lower() for email in value.split(",")]
            return [email for email in parsed if email]

        if isinstance(value, (list, tuple)):
            return [str(email).strip().lower() for email in value if str(email).strip()]

        raise ValueError("ultimate_admin_emails must be a list or comma-separated string")


settings = Settings()
