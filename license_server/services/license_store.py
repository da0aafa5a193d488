"""JSON-file backed license records keyed by client id"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class LicenseRecord:
    """One install's entitlement.

    status: active | expired | payment_failed
    current_period_end: epoch seconds (monthly only)
    """

    type: str
    status: str = "active"
    email: Optional[str] = None
    subscription_id: Optional[str] = None
    current_period_end: Optional[int] = None
    created_at: Optional[str] = None

    _JSON_KEYS = {
        "subscription_id": "subscriptionId",
        "current_period_end": "currentPeriodEnd",
        "created_at": "createdAt",
    }

    def to_dict(self) -> dict:
        data = {self._JSON_KEYS.get(k, k): v for k, v in asdict(self).items()}
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict) -> "LicenseRecord":
        reverse = {v: k for k, v in cls._JSON_KEYS.items()}
        fields = {reverse.get(k, k): v for k, v in data.items()}
        return cls(
            type=fields["type"],
            status=fields.get("status", "active"),
            email=fields.get("email"),
            subscription_id=fields.get("subscription_id"),
            current_period_end=fields.get("current_period_end"),
            created_at=fields.get("created_at"),
        )


class LicenseStore:
    """Thread-safe license map persisted to a JSON file after every change.

    path=None keeps records in memory only.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else None
        self._lock = threading.RLock()
        self._records: dict[str, LicenseRecord] = self._load()

    def _load(self) -> dict[str, LicenseRecord]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as f:
                raw = json.load(f)
            return {client_id: LicenseRecord.from_dict(rec) for client_id, rec in raw.items()}
        except (OSError, json.JSONDecodeError, KeyError, AttributeError) as e:
            logger.error(f"Error loading licenses from {self.path}: {e}")
            return {}

    def _save(self) -> None:
        if self.path is None:
            return
        payload = {client_id: rec.to_dict() for client_id, rec in self._records.items()}
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w") as f:
            json.dump(payload, f, indent=2)
        tmp_path.replace(self.path)

    def get(self, client_id: str) -> Optional[LicenseRecord]:
        with self._lock:
            return self._records.get(client_id)

    def put(self, client_id: str, record: LicenseRecord) -> None:
        with self._lock:
            self._records[client_id] = record
            self._save()

    def find_by_subscription(self, subscription_id: Optional[str]) -> Optional[tuple[str, LicenseRecord]]:
        if not subscription_id:
            return None
        with self._lock:
            for client_id, record in self._records.items():
                if record.subscription_id == subscription_id:
                    return client_id, record
        return None

    def update(self, client_id: str, **changes) -> LicenseRecord:
        """Apply field changes to an existing record and persist."""
        with self._lock:
            record = self._records[client_id]
            for key, value in changes.items():
                setattr(record, key, value)
            self._save()
            return record

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
