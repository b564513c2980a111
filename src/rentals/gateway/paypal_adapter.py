"""PayPal payment gateway adapter.

Uses the PayPal REST API through ``httpx``: a client-credentials token is
fetched from ``/v1/oauth2/token`` and a checkout order is created at
``/v2/checkout/orders``. Transport failures, timeouts and error responses
become ExternalServiceError.
"""

import httpx
import structlog

from rentals.exceptions import ExternalServiceError
from rentals.gateway.port import PaymentGateway, PaymentIntentResult

logger = structlog.get_logger(__name__)


class PayPalGateway(PaymentGateway):
    """Production PayPal adapter."""

    def __init__(self, base_url: str, client_id: str, client_secret: str, timeout: float = 10.0, transport=None) -> None:
        if not client_id or not client_secret:
            raise ValueError("PAYPAL_CLIENT_ID and PAYPAL_CLIENT_SECRET are required for the PayPal adapter")
        self._client = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)
        self._auth = (client_id, client_secret)

    def create_payment_intent(
        self,
        order_id: str,
        order_number: str,
        amount: int,
        currency: str,
    ) -> PaymentIntentResult:
        token = self._access_token()
        major, minor = divmod(amount, 100)
        body = {
            "intent": "CAPTURE",
            "purchase_units": [
                {
                    "reference_id": order_number,
                    "custom_id": order_id,
                    "description": f"Rental order {order_number}",
                    "amount": {"currency_code": currency, "value": f"{major}.{minor:02d}"},
                }
            ],
        }
        data = self._request(
            "POST",
            "/v2/checkout/orders",
            json=body,
            headers={"Authorization": f"Bearer {token}", "PayPal-Request-Id": f"{order_id}-{amount}"},
        )
        approval_url = next(
            (link.get("href") for link in data.get("links", []) if link.get("rel") in ("approve", "payer-action")),
            None,
        )
        return PaymentIntentResult(
            success=True,
            reference=data.get("id"),
            gateway_status=data.get("status"),
            approval_url=approval_url,
        )

    def _access_token(self) -> str:
        data = self._request(
            "POST",
            "/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            auth=self._auth,
        )
        token = data.get("access_token")
        if not token:
            raise ExternalServiceError("PayPal did not return an access token", provider="paypal")
        return token

    def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as exc:
            logger.error("PayPal request timed out", method=method, path=path)
            raise ExternalServiceError("Payment gateway timed out", provider="paypal") from exc
        except httpx.HTTPStatusError as exc:
            logger.error(
                "PayPal request failed",
                method=method,
                path=path,
                status_code=exc.response.status_code,
                body=exc.response.text[:500],
            )
            raise ExternalServiceError(
                f"Payment gateway returned {exc.response.status_code}", provider="paypal"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("PayPal request error", method=method, path=path, error=str(exc))
            raise ExternalServiceError("Payment gateway unreachable", provider="paypal") from exc
