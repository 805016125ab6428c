from __future__ import annotations

from pydantic import AnyHttpUrl, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_FEDEX_PRODUCTION_BASE_URL = "https://apis.fedex.com"
_FEDEX_SANDBOX_BASE_URL = "https://apis-sandbox.fedex.com"


class Settings(BaseSettings):
    SHOPIFY_API_KEY: str
    SHOPIFY_API_SECRET: str
    SHOPIFY_SCOPES: str
    SHOPIFY_HOST: AnyHttpUrl
    SHOPIFY_ADMIN_API_VERSION: str = "2024-04"
    SHOPIFY_REQUEST_TIMEOUT_SECONDS: float = 20.0

    SPADE_DB_URL: str = "sqlite:///./spade_bridge.db"
    SPADE_HOST_URL: str = "http://localhost:8000/media"
    SPADE_PRODUCT_TAG: str = "spade-product"
    SPADE_ORDER_TAG: str = "spade-order"
    SPADE_ORDERS_PAGE_SIZE: int = 50

    BILLING_TEST_MODE: bool = True
    BILLING_CURRENCY_CODE: str = "USD"

    FEDEX_CLIENT_ID: str | None = None
    FEDEX_CLIENT_SECRET: str | None = None
    FEDEX_SANDBOX_CLIENT_ID: str | None = None
    FEDEX_SANDBOX_CLIENT_SECRET: str | None = None
    USE_FEDEX_SANDBOX: bool = False
    FEDEX_REQUEST_TIMEOUT_SECONDS: float = 20.0

    LOG_LEVEL: str = "INFO"

    @field_validator("SHOPIFY_SCOPES")
    @classmethod
    def validate_scopes(cls, value: str) -> str:
        scopes = [scope.strip() for scope in value.split(",") if scope.strip()]
        if not scopes:
            raise ValueError("SHOPIFY_SCOPES must include at least one scope")
        return ",".join(scopes)

    @field_validator("BILLING_CURRENCY_CODE")
    @classmethod
    def validate_currency(cls, value: str) -> str:
        cleaned = value.strip().upper()
        if len(cleaned) != 3 or not cleaned.isalpha():
            raise ValueError("BILLING_CURRENCY_CODE must be a 3-letter currency code")
        return cleaned

    @model_validator(mode="after")
    def validate_media_base(self) -> "Settings":
        if not self.SPADE_HOST_URL.strip():
            raise ValueError("SPADE_HOST_URL must not be empty")
        return self

    @property
    def app_base_url(self) -> str:
        return str(self.SHOPIFY_HOST).rstrip("/")

    @property
    def media_base_url(self) -> str:
        return self.SPADE_HOST_URL.strip().rstrip("/")

    @property
    def fedex_base_url(self) -> str:
        return _FEDEX_SANDBOX_BASE_URL if self.USE_FEDEX_SANDBOX else _FEDEX_PRODUCTION_BASE_URL

    @property
    def fedex_credentials(self) -> tuple[str | None, str | None]:
        if self.USE_FEDEX_SANDBOX:
            return self.FEDEX_SANDBOX_CLIENT_ID, self.FEDEX_SANDBOX_CLIENT_SECRET
        return self.FEDEX_CLIENT_ID, self.FEDEX_CLIENT_SECRET

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
