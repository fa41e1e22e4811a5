"""Runtime settings for the storefront, read from the environment."""

import os

from pydantic import BaseModel


class Settings(BaseModel):
    # Pricing
    CURRENCY: str = os.getenv("STOREFRONT_CURRENCY", "USD")
    TAX_RATE: float = float(os.getenv("STOREFRONT_TAX_RATE", "0.08"))
    SHIPPING_FLAT_RATE: float = float(os.getenv("STOREFRONT_SHIPPING_FLAT_RATE", "10.00"))
    FREE_SHIPPING_THRESHOLD: float = float(os.getenv("STOREFRONT_FREE_SHIPPING_THRESHOLD", "1100.00"))

    # Catalog
    LOW_STOCK_THRESHOLD: int = int(os.getenv("STOREFRONT_LOW_STOCK_THRESHOLD", "5"))

    # Checkout concurrency
    MAX_CHECKOUT_ATTEMPTS: int = int(os.getenv("STOREFRONT_MAX_CHECKOUT_ATTEMPTS", "3"))

    # External collaborators
    PAYMENT_GATEWAY: str = os.getenv("STOREFRONT_PAYMENT_GATEWAY", "fake")
    CARRIER_ADAPTER: str = os.getenv("STOREFRONT_CARRIER_ADAPTER", "fake")

    # Logging
    LOG_DIR: str | None = os.getenv("STOREFRONT_LOG_DIR")


settings = Settings()
