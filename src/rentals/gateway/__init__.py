"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations, selected
by the PAYMENT_GATEWAY_ADAPTER environment variable:
- fake (default) for development and testing
- paypal for the PayPal REST API
"""

import os

from rentals.config import get_settings
from rentals.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway. Defaults to FakeGateway."""
    global _current_gateway
    if _current_gateway is None:
        adapter = os.environ.get("PAYMENT_GATEWAY_ADAPTER", "fake")
        if adapter == "fake":
            from rentals.gateway.fake_adapter import FakeGateway

            _current_gateway = FakeGateway()
        elif adapter == "paypal":
            from rentals.gateway.paypal_adapter import PayPalGateway

            _current_gateway = PayPalGateway(
                base_url=os.environ.get("PAYPAL_BASE_URL", "https://api-m.sandbox.paypal.com"),
                client_id=os.environ.get("PAYPAL_CLIENT_ID", ""),
                client_secret=os.environ.get("PAYPAL_CLIENT_SECRET", ""),
                timeout=get_settings().external_timeout,
            )
        else:
            raise ValueError(f"Unknown payment gateway adapter: {adapter}")
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
