"""Server configuration from environment variables (.env supported)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from circlesnip.utils import safe_int, parse_bool


@dataclass(frozen=True)
class ServerConfig:
    port: int = 3000
    store_path: Path = Path("licenses.json")
    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    monthly_price_id: Optional[str] = None
    lifetime_price_id: Optional[str] = None
    success_url: str = "https://circlesnip.com/success"
    cancel_url: str = "https://circlesnip.com/cancel"
    mock_payments: bool = False

    @classmethod
    def from_env(cls) -> "ServerConfig":
        load_dotenv()
        return cls(
            port=safe_int(os.getenv("PORT"), "PORT", min_value=1, max_value=65535, default=3000),
            store_path=Path(os.getenv("LICENSE_STORE_PATH", "licenses.json")),
            stripe_secret_key=os.getenv("STRIPE_SECRET_KEY"),
            stripe_webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET"),
            monthly_price_id=os.getenv("STRIPE_MONTHLY_PRICE_ID"),
            lifetime_price_id=os.getenv("STRIPE_LIFETIME_PRICE_ID"),
            success_url=os.getenv("CHECKOUT_SUCCESS_URL", cls.success_url),
            cancel_url=os.getenv("CHECKOUT_CANCEL_URL", cls.cancel_url),
            mock_payments=parse_bool(os.getenv("LICENSE_MOCK_PAYMENTS"), default=False),
        )

    def price_id(self, price_type: str) -> Optional[str]:
        return self.monthly_price_id if price_type == "monthly" else self.lifetime_price_id
