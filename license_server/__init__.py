"""Circle Snip license server: entitlement checks, checkout and payment webhooks."""

from .main import create_app

__all__ = ["create_app"]
