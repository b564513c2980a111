"""Message templates: render subject and body from a payload dict.

Amounts in payloads are integer cents and are formatted here.
"""

from rentals.shared.money import format_cents


def _greeting(context: dict) -> str:
    name = context.get("customer_name")
    return f"Hi {name}," if name else "Hello,"


class OrderCreatedTemplate:
    name = "order_created"

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        total = format_cents(context.get("total_amount", 0), context.get("currency", "USD"))
        return {
            "subject": f"Your rental order {order_number}",
            "body": (
                f"{_greeting(context)}\n\n"
                f"Thanks for your rental order #{order_number}.\n"
                f"Order total: {total}.\n\n"
                "We will send your rental agreement for signature shortly."
            ),
        }


class OrderUpdatedTemplate:
    name = "order_updated"

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        status = context.get("status", "N/A")
        balance = format_cents(context.get("balance_due", 0), context.get("currency", "USD"))
        return {
            "subject": f"Rental order {order_number} updated",
            "body": (
                f"{_greeting(context)}\n\n"
                f"Your rental order #{order_number} was updated.\n"
                f"Status: {status}. Balance due: {balance}."
            ),
        }


class AgreementSigningLinkTemplate:
    name = "agreement_signing_link"

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        signing_url = context.get("signing_url") or "the link in the email from our signing partner"
        return {
            "subject": f"Please sign your rental agreement for order {order_number}",
            "body": (
                f"{_greeting(context)}\n\n"
                f"Your rental agreement for order #{order_number} is ready.\n"
                f"Sign it here: {signing_url}\n\n"
                "Delivery is scheduled once the agreement is signed."
            ),
        }


class AgreementSignedTemplate:
    name = "agreement_signed"

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        document = context.get("signed_document_url")
        body = f"{_greeting(context)}\n\nWe received your signed rental agreement for order #{order_number}."
        if document:
            body += f"\nA copy is available at {document}."
        return {
            "subject": f"Rental agreement signed - order {order_number}",
            "body": body,
        }


class AgreementDeclinedAlertTemplate:
    name = "agreement_declined_alert"

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        customer = context.get("customer_name") or "The customer"
        return {
            "subject": f"[Action needed] Agreement declined for order {order_number}",
            "body": (
                f"{customer} declined the rental agreement for order #{order_number}.\n"
                "Delivery stays blocked until a new agreement is signed or the block is overridden."
            ),
        }


class AgreementAnomalyAlertTemplate:
    name = "agreement_anomaly_alert"

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        event = context.get("event", "unknown")
        return {
            "subject": f"[Alert] Unexpected agreement event for order {order_number}",
            "body": (
                f"Received a '{event}' event for order #{order_number} after the agreement was signed.\n"
                "The event was not applied. Please check with the signature provider."
            ),
        }


class PaymentConfirmationTemplate:
    name = "payment_confirmation"

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        currency = context.get("currency", "USD")
        amount = format_cents(context.get("amount", 0), currency)
        balance = format_cents(context.get("balance_due", 0), currency)
        return {
            "subject": f"Payment received - order {order_number}",
            "body": (
                f"{_greeting(context)}\n\n"
                f"We received your payment of {amount} for order #{order_number}.\n"
                f"Remaining balance: {balance}.\n\n"
                "Thank you!"
            ),
        }


class PaymentReceivedTemplate:
    name = "payment_received"

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        currency = context.get("currency", "USD")
        amount = format_cents(context.get("amount", 0), currency)
        return {
            "subject": f"Payment recorded for order {order_number}",
            "body": (
                f"Transaction {context.get('transaction_id', 'N/A')} for {amount} "
                f"({context.get('gateway_status', 'N/A')}) was recorded on order #{order_number}.\n"
                f"Payment status: {context.get('payment_status', 'N/A')}."
            ),
        }


TEMPLATE_REGISTRY: dict[str, type] = {
    template.name: template
    for template in (
        OrderCreatedTemplate,
        OrderUpdatedTemplate,
        AgreementSigningLinkTemplate,
        AgreementSignedTemplate,
        AgreementDeclinedAlertTemplate,
        AgreementAnomalyAlertTemplate,
        PaymentConfirmationTemplate,
        PaymentReceivedTemplate,
    )
}


def get_template(name: str):
    """Look up a template class by name."""
    template_cls = TEMPLATE_REGISTRY.get(name)
    if template_cls is None:
        raise ValueError(f"No template registered for: {name}")
    return template_cls
