from pathlib import Path
from typing import List

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]

TOKEN_STRATEGIES = ("self_issued", "provider_delegated")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    cors_allow_origins: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed by the CORS middleware",
    )

    # Identity Store
    database_url: str = Field(
        default="sqlite+aiosqlite:///./wallet_identities.db",
        description="SQLAlchemy async URL of the identity store",
    )
    database_auto_create: bool = Field(
        default=True,
        description="Create the identity table on startup (local/dev only)",
    )

    # Session Tokens
    token_strategy: str = Field(
        default="self_issued",
        description="Minting strategy: self_issued or provider_delegated",
    )
    session_signing_secret: SecretStr = Field(
        default=SecretStr(""),
        description="HMAC secret for self-issued session tokens",
    )
    session_token_issuer: str = Field(
        default="wallet-exchange",
        description="Issuer claim for self-issued session tokens",
    )

    # Supabase (provider-delegated minting)
    supabase_url: str = Field(default="", description="Supabase project URL")
    supabase_service_role_key: SecretStr = Field(
        default=SecretStr(""),
        description="Service role key used for GoTrue admin calls",
    )
    supabase_anon_key: SecretStr = Field(
        default=SecretStr(""),
        description="Anon key sent as apikey on the public verify endpoint",
    )
    supabase_timeout_seconds: float = Field(default=10.0, description="Supabase request timeout")
    wallet_email_domain: str = Field(
        default="wallet.local",
        description="Domain of the synthetic principal email derived from a wallet",
    )

    # Diagnostics
    exchange_debug_enabled: bool = Field(
        default=True,
        description="Serve the unverified token inspection path",
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_database_url(cls, v):
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    @field_validator("token_strategy", mode="before")
    @classmethod
    def normalize_token_strategy(cls, v):
        value = str(v or "").strip().lower().replace("-", "_")
        if value not in TOKEN_STRATEGIES:
            raise ValueError(f"token_strategy must be one of {', '.join(TOKEN_STRATEGIES)}")
        return value

    @property
    def has_signing_secret(self) -> bool:
        return bool(self.session_signing_secret.get_secret_value())

    @property
    def has_supabase_admin(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key.get_secret_value())


# Global settings instance
settings = Settings()
