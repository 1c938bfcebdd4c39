from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, model_validator
from decimal import Decimal
from typing import Any
import json
from pathlib import Path
import os


class Settings(BaseSettings):
    API_V1_STR: str = "/api/v1"

    # CORS origins
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]
    CORS_ALLOW_ALL: bool = False

    # Root log level; LOG_LEVEL in the process env wins over .env
    LOG_LEVEL: str = "INFO"

    # Single currency for every amount the engine returns
    DEFAULT_CURRENCY: str = "USD"

    # Platform service fee defaults. Used whenever the admin settings
    # provider cannot be reached or does not set a value.
    SERVICE_FEE_PERCENTAGE: Decimal = Decimal("5.0")
    SERVICE_FEE_FIXED: Decimal = Decimal("0")
    SERVICE_FEE_TYPE: str = "percentage"  # percentage|fixed|hybrid

    # Rate used when an address matches no known jurisdiction
    DEFAULT_TAX_RATE: Decimal = Decimal("0.08")

    # Admin settings provider. Empty URL means "use the defaults above".
    ADMIN_SETTINGS_URL: str = ""
    ADMIN_SETTINGS_TIMEOUT: float = 5.0

    model_config = SettingsConfigDict(
        extra="ignore",
        env_file=os.getenv("ENV_FILE", str(Path(__file__).resolve().parents[3] / ".env")),
        case_sensitive=True,
    )

    @field_validator("CORS_ORIGINS", mode="before")
    def split_origins(cls, v: Any) -> list[str]:
        """Parse comma-separated or JSON list of origins from environment."""
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return parsed
            except json.JSONDecodeError:
                pass
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("SERVICE_FEE_TYPE", "LOG_LEVEL", mode="before")
    def normalize_case(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("SERVICE_FEE_TYPE")
    def known_fee_type(cls, v: str) -> str:
        v = v.lower()
        if v not in ("percentage", "fixed", "hybrid"):
            raise ValueError("SERVICE_FEE_TYPE must be percentage, fixed or hybrid")
        return v

    @model_validator(mode="after")
    def allow_all_if_requested(self) -> "Settings":
        if self.CORS_ALLOW_ALL:
            self.CORS_ORIGINS = ["*"]
        return self


def load_settings() -> "Settings":
    return Settings(_env_file=os.getenv("ENV_FILE", str(Path(__file__).resolve().parents[3] / ".env")))


settings = load_settings()
