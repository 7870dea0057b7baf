from __future__ import annotations
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

ALLOWED_COUNTRIES: list[str] = ["US", "CA", "GB", "AU", "DE", "FR", "IT", "ES", "NL", "BE"]
DEFAULT_COUNTRY = "US"

# Origin address printed on every label
SHIP_FROM: dict = {
    "name": "Your Store",
    "phone": "555-123-4567",
    "address_line1": "123 Store Street",
    "city_locality": "Store City",
    "state_province": "CA",
    "postal_code": "90210",
    "country_code": "US",
    "address_residential_indicator": "no",
}

LABEL_LAYOUT = "4x6"
LABEL_FORMAT = "pdf"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DATABASE_URL: str = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
    DATABASE_NAME: str = os.getenv("DATABASE_NAME", "storefront")

    STRIPE_SECRET_KEY: str = ""
    PAYMENT_CURRENCY: str = "usd"
    PUBLIC_BASE_URL: str = "http://localhost:3000"

    SHIPENGINE_API_KEY: str = ""
    SHIPENGINE_BASE_URL: str = "https://api.shipengine.com/v1"
    # UPS, FedEx, USPS
    SHIPENGINE_CARRIER_IDS: list[str] = ["se-123890", "se-123891", "se-123892"]

    STOREFRONT_API_URL: str = "http://localhost:8000"
    STORAGE_DIR: str = ".storefront"
    HTTP_TIMEOUT: float = 30.0

    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    @property
    def success_url(self) -> str:
        # {CHECKOUT_SESSION_ID} is filled in by the processor on redirect
        return f"{self.PUBLIC_BASE_URL.rstrip('/')}/success?session_id={{CHECKOUT_SESSION_ID}}"

    @property
    def cancel_url(self) -> str:
        return f"{self.PUBLIC_BASE_URL.rstrip('/')}/cart"


settings = Settings()


def get_settings() -> Settings:
    return settings
