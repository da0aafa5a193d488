"""
Flask app for the Circle Snip license server

Verifies installs, starts checkouts and applies payment webhooks.
Run with `circlesnip-license-server` (listens on $PORT, default 3000).
"""

from flask import Flask, request, jsonify
from werkzeug.exceptions import HTTPException
import logging
from typing import Optional

from .config import ServerConfig
from .services import DisabledGateway, GatewayError, LicenseService, LicenseStore, MockGateway, PaymentGateway, StripeGateway, WebhookSignatureError

logger = logging.getLogger(__name__)


def build_gateway(config: ServerConfig) -> PaymentGateway:
    """Stripe when a secret key is configured.

    The mock gateway is only used when LICENSE_MOCK_PAYMENTS is set; without
    a key every payment call and webhook is refused.
    """
    if config.mock_payments:
        logger.warning("Using mock payment gateway (no real payments)")
        return MockGateway()
    if not config.stripe_secret_key:
        logger.error("STRIPE_SECRET_KEY not set: checkouts and webhooks are disabled")
        return DisabledGateway()
    return StripeGateway(config.stripe_secret_key, config.stripe_webhook_secret)


def create_app(
    config: Optional[ServerConfig] = None,
    store: Optional[LicenseStore] = None,
    gateway: Optional[PaymentGateway] = None,
) -> Flask:
    """Build the Flask application; routes stay thin and delegate to LicenseService."""
    config = config or ServerConfig()
    store = store if store is not None else LicenseStore(config.store_path)
    gateway = gateway or build_gateway(config)
    service = LicenseService(store, gateway)

    app = Flask(__name__)
    app.config["LICENSE_SERVICE"] = service

    @app.errorhandler(Exception)
    def handle_unexpected_error(err):
        """Always answer JSON, even for unhandled failures."""
        status = 500
        message = str(err) or "Internal Server Error"
        if isinstance(err, HTTPException):
            status = err.code or 500
            message = err.description or message
        if status >= 500:
            logger.exception("Unhandled API error on %s: %s", request.path, err)
        return jsonify({"success": False, "error": message}), status

    @app.after_request
    def add_cors_headers(response):
        # Extension pages call from arbitrary origins
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.route("/webhook", methods=["POST"])
    def webhook():
        """Payment provider events (raw body is needed for signature checks)"""
        payload = request.get_data()
        signature = request.headers.get("Stripe-Signature")
        try:
            event = gateway.construct_event(payload, signature)
        except WebhookSignatureError as e:
            logger.error(f"Webhook signature verification failed: {e}")
            return f"Webhook Error: {e}", 400
        if not isinstance(event, dict):
            return "Webhook Error: event must be a JSON object", 400

        try:
            service.handle_event(event)
        except GatewayError as e:
            logger.error(f"Webhook handling failed for {event.get('type')}: {e}")
            return jsonify({"success": False, "error": str(e)}), 502

        return jsonify({"received": True})

    @app.route("/verify/<client_id>", methods=["GET"])
    def verify(client_id):
        """License verdict for one install"""
        return jsonify(service.verify(client_id))

    @app.route("/create-checkout", methods=["POST"])
    def create_checkout():
        """Start a checkout session; returns the payment page URL"""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Invalid JSON payload"}), 400

        client_id = data.get("clientId")
        if not client_id:
            return jsonify({"error": "Client ID required"}), 400

        price_type = data.get("priceType", "lifetime")
        try:
            url = service.create_checkout(
                client_id,
                price_type,
                config.price_id(price_type),
                data.get("successUrl") or config.success_url,
                data.get("cancelUrl") or config.cancel_url,
            )
        except ValueError as e:
            return jsonify({"error": str(e)}), 400
        except GatewayError as e:
            logger.error(f"Checkout error: {e}")
            return jsonify({"error": str(e)}), 502

        return jsonify({"url": url})

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok", "licenses": len(store)})

    return app


def main():
    logging.basicConfig(level=logging.INFO)
    config = ServerConfig.from_env()
    app = create_app(config)

    logger.info("=== Circle Snip License Server ===")
    logger.info(f"Port: {config.port}")
    logger.info(f"License store: {config.store_path}")
    logger.info(f"Licenses loaded: {len(app.config['LICENSE_SERVICE'].store)}")
    logger.info("==================================")

    app.run(host="0.0.0.0", port=config.port)


if __name__ == "__main__":
    main()
