"""Service layer for license operations"""

from .license_store import LicenseRecord, LicenseStore
from .license_service import LicenseService
from .payment_gateway import DisabledGateway, GatewayError, MockGateway, PaymentGateway, StripeGateway, WebhookSignatureError

__all__ = [
    'LicenseRecord', 'LicenseStore', 'LicenseService',
    'DisabledGateway', 'GatewayError', 'MockGateway', 'PaymentGateway', 'StripeGateway', 'WebhookSignatureError',
]
