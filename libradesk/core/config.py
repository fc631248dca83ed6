from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# libradesk/core/config.py -> BASE_DIR == repository root
BASE_DIR = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        extra="ignore",
        env_prefix="",
        case_sensitive=False,
    )

    # Environment
    env: str = Field(default="dev", validation_alias="ENV")

    # Application
    api_name: str = Field(default="libradesk-api", validation_alias="API_NAME")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # Database & cache
    database_url: str = Field(
        default="sqlite+pysqlite:///./libradesk.db",
        validation_alias="DATABASE_URL",
    )
    # Unset disables change-event forwarding, the SSE stream and stats caching.
    redis_url: str | None = Field(default=None, validation_alias="REDIS_URL")
    dashboard_cache_ttl_secs: int = Field(
        default=60, validation_alias="DASHBOARD_CACHE_TTL_SECS"
    )
    events_channel: str = Field(
        default="library:changes", validation_alias="EVENTS_CHANNEL"
    )

    # Circulation
    late_fee_per_day: Decimal = Field(
        default=Decimal("0.50"), ge=0, validation_alias="LATE_FEE_PER_DAY"
    )
    default_book_quantity: int = Field(
        default=1, ge=0, validation_alias="DEFAULT_BOOK_QUANTITY"
    )
    dashboard_top_n: int = Field(default=5, ge=1, validation_alias="DASHBOARD_TOP_N")

    # CORS
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["*"],
        validation_alias="CORS_ORIGINS",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> list[str]:
        """
        Supported env formats:
          - JSON list: '["http://localhost:5173"]'
          - Bracket list (no quotes): '[http://localhost:5173, http://localhost:8080]'
          - Comma-separated: 'http://localhost:5173, http://localhost:8080'
          - '*' wildcard
        """
        if v is None:
            return []
        if isinstance(v, list):
            return [str(x).strip() for x in v if str(x).strip()]
        if not isinstance(v, str):
            raise TypeError("cors_origins must be a string or list of strings")

        s = v.strip()
        if not s:
            return []
        if s == "*":
            return ["*"]

        if s.startswith("[") and s.endswith("]"):
            try:
                parsed = json.loads(s)
                if isinstance(parsed, list):
                    return [str(x).strip() for x in parsed if str(x).strip()]
            except json.JSONDecodeError:
                inner = s[1:-1].strip()
                if not inner:
                    return []
                parts = [p.strip().strip('"').strip("'") for p in inner.split(",")]
                return [p for p in parts if p]

        parts = [p.strip() for p in s.split(",")]
        return [p for p in parts if p]

    @field_validator("redis_url", mode="before")
    @classmethod
    def blank_redis_url_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    # OpenTelemetry
    otel_enabled: bool = Field(default=False, validation_alias="OTEL_ENABLED")
    otel_otlp_endpoint: str = Field(
        default="http://localhost:4318/v1/traces",
        validation_alias="OTEL_OTLP_ENDPOINT",
    )


settings = Settings()
