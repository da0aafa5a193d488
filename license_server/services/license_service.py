"""License verification, checkout and webhook event handling"""

from __future__ import annotations

import logging
from typing import Optional

from circlesnip.utils import epoch_seconds, iso_timestamp

from .license_store import LicenseRecord, LicenseStore
from .payment_gateway import PaymentGateway

logger = logging.getLogger(__name__)

PRICE_TYPES = {"monthly", "lifetime"}


def _period_end(subscription: dict) -> Optional[int]:
    """current_period_end lives on the subscription or, in newer APIs, its items."""
    period_end = subscription.get("current_period_end")
    if period_end is None:
        items = (subscription.get("items") or {}).get("data") or []
        if items:
            period_end = items[0].get("current_period_end")
    return int(period_end) if period_end is not None else None


class LicenseService:
    """Entitlement logic on top of LicenseStore and a PaymentGateway"""

    def __init__(self, store: LicenseStore, gateway: PaymentGateway):
        self.store = store
        self.gateway = gateway

    def verify(self, client_id: str, now: Optional[int] = None) -> dict:
        """Return the /verify payload for client_id.

        Lifetime licenses are always valid. Monthly licenses are valid while
        active and before currentPeriodEnd.
        """
        record = self.store.get(client_id)
        if record is None:
            return {"valid": False, "reason": "no_license"}

        if record.type == "lifetime":
            return {"valid": True, "type": "lifetime", "email": record.email}

        if record.type == "monthly":
            now = epoch_seconds() if now is None else now
            if record.status == "active" and (record.current_period_end or 0) > now:
                return {
                    "valid": True,
                    "type": "monthly",
                    "email": record.email,
                    "expiresAt": record.current_period_end,
                }
            return {"valid": False, "reason": "subscription_expired", "email": record.email}

        return {"valid": False, "reason": "unknown"}

    def create_checkout(
        self,
        client_id: str,
        price_type: str,
        price_id: Optional[str],
        success_url: str,
        cancel_url: str,
    ) -> str:
        """Create a provider checkout session and return its URL.

        Raises:
            ValueError: Unknown price_type
            GatewayError: Provider failure
        """
        if price_type not in PRICE_TYPES:
            raise ValueError(f"priceType must be one of {sorted(PRICE_TYPES)}")
        mode = "subscription" if price_type == "monthly" else "payment"
        return self.gateway.create_checkout_session(client_id, price_id, mode, success_url, cancel_url)

    def handle_event(self, event: dict) -> None:
        """Apply one payment-provider event to the license records."""
        event_type = event.get("type")
        obj = (event.get("data") or {}).get("object") or {}

        if event_type == "checkout.session.completed":
            self._on_checkout_completed(obj)
        elif event_type in ("customer.subscription.updated", "customer.subscription.deleted"):
            self._on_subscription_changed(obj)
        elif event_type == "invoice.payment_failed":
            self._on_payment_failed(obj)
        else:
            logger.debug(f"Ignoring webhook event {event_type}")

    def _on_checkout_completed(self, session: dict) -> None:
        client_id = session.get("client_reference_id")
        email = session.get("customer_email") or (session.get("customer_details") or {}).get("email")
        if not client_id:
            logger.error("No client id in checkout session")
            return

        if session.get("mode") == "subscription":
            subscription_id = session.get("subscription")
            subscription = self.gateway.retrieve_subscription(subscription_id)
            record = LicenseRecord(
                type="monthly",
                email=email,
                subscription_id=subscription_id,
                status="active",
                current_period_end=_period_end(subscription),
                created_at=iso_timestamp(),
            )
            logger.info(f"Monthly subscription activated for {client_id}")
        else:
            record = LicenseRecord(type="lifetime", email=email, status="active", created_at=iso_timestamp())
            logger.info(f"Lifetime license activated for {client_id}")

        self.store.put(client_id, record)

    def _on_subscription_changed(self, subscription: dict) -> None:
        match = self.store.find_by_subscription(subscription.get("id"))
        if match is None:
            return
        client_id, _ = match

        status = subscription.get("status")
        if status == "active":
            self.store.update(client_id, status="active", current_period_end=_period_end(subscription))
        elif status in ("canceled", "unpaid"):
            self.store.update(client_id, status="expired")
        logger.info(f"Subscription {subscription.get('id')} status: {status}")

    def _on_payment_failed(self, invoice: dict) -> None:
        match = self.store.find_by_subscription(invoice.get("subscription"))
        if match is None:
            return
        client_id, _ = match
        self.store.update(client_id, status="payment_failed")
        logger.info(f"Payment failed for {client_id}")
