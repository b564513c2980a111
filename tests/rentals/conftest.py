import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def rentals_bed():
    from rentals.domain import rentals

    bed = DomainFixture(rentals)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(rentals_bed):
    with rentals_bed.domain_context():
        yield

        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------
@pytest.fixture()
def notifier():
    from rentals.notifier import set_notifier
    from rentals.notifier.fake_adapter import FakeNotifier

    fake = FakeNotifier()
    set_notifier(fake)
    return fake


@pytest.fixture()
def signature_provider():
    from rentals.signature import set_signature_provider
    from rentals.signature.fake_adapter import FakeSignatureProvider

    fake = FakeSignatureProvider()
    set_signature_provider(fake)
    return fake


@pytest.fixture()
def gateway():
    from rentals.gateway import set_gateway
    from rentals.gateway.fake_adapter import FakeGateway

    fake = FakeGateway()
    set_gateway(fake)
    return fake


@pytest.fixture()
def access_control():
    from rentals.access import set_access_control
    from rentals.access.port import Role
    from rentals.access.role_adapter import RoleTableAccessControl

    table = RoleTableAccessControl({"admin-001": Role.ADMIN, "user-001": Role.USER})
    set_access_control(table)
    return table


@pytest.fixture()
def webhook_secret():
    from dataclasses import replace

    from rentals.config import load_settings, set_settings

    secret = "test-webhook-secret"
    set_settings(replace(load_settings(), webhook_secret=secret))
    return secret


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
def order_items():
    return [{"kind": "rental", "name": "Castle Bounce House", "quantity": 2, "unit_price": 7500}]


def order_customer(**overrides):
    customer = {
        "contact_id": "contact-001",
        "customer_name": "Jane Doe",
        "customer_email": "jane@example.com",
        "customer_phone": "555-0100",
        "street": "1 Party Lane",
        "city": "Austin",
        "state": "TX",
        "postal_code": "73301",
    }
    customer.update(overrides)
    return customer


@pytest.fixture()
def make_order(notifier):
    """Create a persisted order through the OrderManager."""
    from rentals.order.management import OrderManager

    def _make(items=None, customer=None, fees=None, **kwargs):
        return OrderManager().create_order(
            items=items or order_items(),
            payment_method=kwargs.pop("payment_method", "paypal"),
            customer=customer if customer is not None else order_customer(),
            fees=fees if fees is not None else {"delivery_fee": 2000},
            **kwargs,
        )

    return _make
