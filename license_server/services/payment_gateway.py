"""Payment gateway abstractions (Stripe + Mock)

Keep this small and explicit. StripeGateway wraps the stripe SDK.
DisabledGateway refuses everything when no provider is configured. MockGateway
is for unit tests and explicit local runs: it hands out fake checkout URLs,
accepts a fixed webhook signature and serves queued subscriptions.
"""

from __future__ import annotations

import json
from typing import Optional


class GatewayError(Exception):
    """Raised when the payment provider rejects or fails a request."""


class WebhookSignatureError(GatewayError):
    """Raised when a webhook payload fails signature verification."""


class PaymentGateway:
    def create_checkout_session(
        self,
        client_id: str,
        price_id: Optional[str],
        mode: str,
        success_url: str,
        cancel_url: str,
    ) -> str:  # returns redirect URL
        raise NotImplementedError

    def construct_event(self, payload: bytes, signature: Optional[str]) -> dict:
        raise NotImplementedError

    def retrieve_subscription(self, subscription_id: str) -> dict:
        raise NotImplementedError


class StripeGateway(PaymentGateway):
    def __init__(self, secret_key: str, webhook_secret: Optional[str]):
        import stripe

        stripe.api_key = secret_key
        self._stripe = stripe
        self._webhook_secret = webhook_secret

    def create_checkout_session(self, client_id, price_id, mode, success_url, cancel_url) -> str:
        if not price_id:
            raise GatewayError(f"No price configured for {mode} checkout")
        try:
            session = self._stripe.checkout.Session.create(
                client_reference_id=client_id,
                line_items=[{"price": price_id, "quantity": 1}],
                mode=mode,
                success_url=success_url,
                cancel_url=cancel_url,
                allow_promotion_codes=True,
            )
        except self._stripe.StripeError as e:
            raise GatewayError(str(e)) from e
        return session.url

    def construct_event(self, payload: bytes, signature: Optional[str]) -> dict:
        if not self._webhook_secret:
            raise WebhookSignatureError("Webhook secret not configured")
        try:
            self._stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"), signature or "", self._webhook_secret
            )
            return json.loads(payload)
        except (self._stripe.SignatureVerificationError, ValueError) as e:
            raise WebhookSignatureError(str(e)) from e

    def retrieve_subscription(self, subscription_id: str) -> dict:
        try:
            return self._stripe.Subscription.retrieve(subscription_id).to_dict()
        except self._stripe.StripeError as e:
            raise GatewayError(str(e)) from e


class MockGateway(PaymentGateway):
    def __init__(self, signature: str = "mock-signature"):
        self.signature = signature
        self.sessions: list[dict] = []
        self.subscriptions: dict[str, dict] = {}
        self.fail_checkout = False

    def create_checkout_session(self, client_id, price_id, mode, success_url, cancel_url) -> str:
        if self.fail_checkout:
            raise GatewayError("Mock checkout failure")
        self.sessions.append(
            {
                "client_reference_id": client_id,
                "price": price_id,
                "mode": mode,
                "success_url": success_url,
                "cancel_url": cancel_url,
            }
        )
        return f"https://checkout.mock/session/{len(self.sessions)}"

    def construct_event(self, payload: bytes, signature: Optional[str]) -> dict:
        if signature != self.signature:
            raise WebhookSignatureError("No signatures found matching the expected signature for payload")
        try:
            return json.loads(payload)
        except ValueError as e:
            raise WebhookSignatureError(f"Invalid payload: {e}") from e

    def retrieve_subscription(self, subscription_id: str) -> dict:
        try:
            return self.subscriptions[subscription_id]
        except KeyError:
            raise GatewayError(f"No such subscription: {subscription_id}")


class DisabledGateway(PaymentGateway):
    """Stand-in when no provider is configured: every call is refused."""

    def create_checkout_session(self, client_id, price_id, mode, success_url, cancel_url) -> str:
        raise GatewayError("Payments are not configured")

    def construct_event(self, payload: bytes, signature: Optional[str]) -> dict:
        raise WebhookSignatureError("Payments are not configured")

    def retrieve_subscription(self, subscription_id: str) -> dict:
        raise GatewayError("Payments are not configured")
