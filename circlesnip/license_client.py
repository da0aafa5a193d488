"""License verification client.

Talks to the license server over HTTP and keeps a local verdict cache so a
server or network outage never blocks capturing: a valid verdict younger than
7 days keeps the install unlocked.
"""

from __future__ import annotations

import json
import logging
import secrets
import string
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import httpx

from .constants import SnipConstants
from .utils import epoch_millis, safe_int

logger = logging.getLogger(__name__)

PRICE_TYPES = ("monthly", "lifetime")

_BASE36 = string.digits + string.ascii_lowercase


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def new_client_id() -> str:
    """Persistent install id: cs_<16 random base36 chars><base36 ms timestamp>"""
    random_part = "".join(secrets.choice(_BASE36) for _ in range(16))
    return f"cs_{random_part}{_base36(epoch_millis())}"


@dataclass(frozen=True)
class LicenseCache:
    """Last valid verdict seen from the server."""

    valid: bool
    license_type: Optional[str]
    checked_at: int  # epoch ms

    def is_fresh(self, now_ms: Optional[int] = None, max_age_s: int = SnipConstants.LICENSE_CACHE_MAX_AGE_S) -> bool:
        now_ms = epoch_millis() if now_ms is None else now_ms
        return self.valid and now_ms - self.checked_at < max_age_s * 1000

    def to_dict(self) -> dict:
        return {"valid": self.valid, "type": self.license_type, "checkedAt": self.checked_at}

    @classmethod
    def from_dict(cls, data) -> Optional["LicenseCache"]:
        if not isinstance(data, dict):
            return None
        try:
            checked_at = safe_int(data.get("checkedAt"), "checkedAt")
        except ValueError:
            return None
        return cls(valid=data.get("valid") is True, license_type=data.get("type"), checked_at=checked_at)


@dataclass(frozen=True)
class LicenseState:
    """Entitlement the app should act on, plus the cache to persist."""

    is_pro: bool
    license_type: Optional[str] = None
    source: str = "none"  # server | cache | none
    expires_at: Optional[int] = None
    reason: Optional[str] = None
    cache: Optional[LicenseCache] = None


class LicenseClient:
    """HTTP client for /verify and /create-checkout"""

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
        cache_max_age_s: int = SnipConstants.LICENSE_CACHE_MAX_AGE_S,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache_max_age_s = cache_max_age_s
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    def verify(self, client_id: str, cache: Optional[LicenseCache] = None) -> LicenseState:
        """Ask the server for a verdict, falling back to a recent cached one.

        A valid verdict refreshes the cache; an explicit invalid verdict
        clears it. Transport errors, non-2xx replies and malformed bodies
        fall back to the cache.
        """
        try:
            with self._client() as client:
                r = client.get(f"/verify/{quote(client_id, safe='')}", headers={"Accept": "application/json"})
        except httpx.HTTPError as e:
            logger.info(f"License check failed ({e}), using cache")
            return self._from_cache(cache)

        if not r.is_success:
            logger.info(f"License server returned {r.status_code}, using cache")
            return self._from_cache(cache)

        try:
            data = r.json()
        except ValueError:
            logger.info("License server returned a non-JSON body, using cache")
            return self._from_cache(cache)
        if not isinstance(data, dict):
            return self._from_cache(cache)

        if data.get("valid") is True:
            license_type = data.get("type")
            return LicenseState(
                is_pro=True,
                license_type=license_type,
                source="server",
                expires_at=data.get("expiresAt"),
                cache=LicenseCache(valid=True, license_type=license_type, checked_at=epoch_millis()),
            )

        return LicenseState(is_pro=False, source="server", reason=data.get("reason"), cache=None)

    def _from_cache(self, cache: Optional[LicenseCache]) -> LicenseState:
        if cache is not None and cache.is_fresh(max_age_s=self.cache_max_age_s):
            return LicenseState(is_pro=True, license_type=cache.license_type, source="cache", cache=cache)
        return LicenseState(is_pro=False, source="none", cache=cache)

    def create_checkout(
        self,
        client_id: str,
        price_type: str,
        success_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
    ) -> Optional[str]:
        """Start a checkout and return the payment page URL (None on failure)."""
        if price_type not in PRICE_TYPES:
            raise ValueError(f"price_type must be one of {PRICE_TYPES}")

        body = {"clientId": client_id, "priceType": price_type}
        if success_url:
            body["successUrl"] = success_url
        if cancel_url:
            body["cancelUrl"] = cancel_url

        try:
            with self._client() as client:
                r = client.post("/create-checkout", json=body)
                r.raise_for_status()
                url = r.json().get("url")
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.error(f"Checkout error: {e}")
            return None

        return url if isinstance(url, str) and url else None


@dataclass
class ClientState:
    """Install-local state: client id, cached verdict, captures used."""

    client_id: str = field(default_factory=new_client_id)
    license_cache: Optional[LicenseCache] = None
    capture_count: int = 0


class ClientStateFile:
    """JSON file backing ClientState"""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> ClientState:
        """Read state; a missing or corrupt file yields a fresh install id."""
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except FileNotFoundError:
            data = None
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not load client state from {self.path}: {e}")
            data = None

        if not isinstance(data, dict) or not data.get("clientId"):
            state = ClientState()
            self.save(state)
            return state

        try:
            count = safe_int(data.get("captureCount"), "captureCount", min_value=0, default=0)
        except ValueError:
            count = 0
        return ClientState(
            client_id=str(data["clientId"]),
            license_cache=LicenseCache.from_dict(data.get("licenseCache")),
            capture_count=count,
        )

    def save(self, state: ClientState) -> None:
        payload = {
            "clientId": state.client_id,
            "licenseCache": state.license_cache.to_dict() if state.license_cache else None,
            "captureCount": state.capture_count,
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(payload, f, indent=2)
