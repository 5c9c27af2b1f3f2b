from functools import lru_cache
from typing import Any, List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_CORS = ["https://admin.shopify.com", "http://localhost:3000"]


def _parse_cors_origins(v: Any) -> List[str]:
    try:
        if v is None or v == "":
            return _DEFAULT_CORS.copy()
        if isinstance(v, list):
            return [x for x in v if isinstance(x, str) and x.strip()]
        s = str(v).strip()
        if not s:
            return _DEFAULT_CORS.copy()
        if s.startswith("["):
            import json
            out = json.loads(s)
            return [x for x in out if isinstance(x, str) and x.strip()] or _DEFAULT_CORS.copy()
        return [x.strip() for x in s.split(",") if x.strip()] or _DEFAULT_CORS.copy()
    except ValueError:
        return _DEFAULT_CORS.copy()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    env: str = Field(default="development", description="ENV")
    debug: bool = Field(default=False, description="DEBUG")

    # MongoDB
    mongodb_uri: str = Field(default="mongodb://localhost:27017", alias="MONGODB_URI")
    mongodb_db_name: str = Field(default="loyalty", alias="MONGODB_DB_NAME")
    # Multi-document transactions need a replica set; off for standalone servers
    mongodb_transactions: bool = Field(default=False, alias="MONGODB_TRANSACTIONS")

    # Shopify app secret (webhook HMAC key)
    shopify_api_secret: str = Field(default="", alias="SHOPIFY_API_SECRET")

    # Admin extension API token for the read-only ledger endpoints
    admin_api_token: str = Field(default="", alias="ADMIN_API_TOKEN")

    # Sentry
    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")

    # CORS: env as string, exposed as list
    cors_origins_raw: str = Field(
        default="https://admin.shopify.com,http://localhost:3000",
        alias="CORS_ORIGINS",
        description="Comma-separated or JSON list",
    )

    @property
    def cors_origins(self) -> List[str]:
        return _parse_cors_origins(getattr(self, "cors_origins_raw", None))

    # Points: 1 point per this many units of order subtotal
    points_per_currency_unit: int = Field(default=10, alias="POINTS_PER_CURRENCY_UNIT", gt=0)
    # Larger awards are treated as a bad payload; keeps balances well inside int64
    max_points_per_order: int = Field(default=1_000_000, alias="MAX_POINTS_PER_ORDER", gt=0, le=2**31 - 1)


@lru_cache
def get_settings() -> Settings:
    return Settings()
