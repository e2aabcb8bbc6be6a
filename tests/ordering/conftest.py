import json

import pytest
from ordering.upstream import Collaborators, reset_collaborators, set_collaborators
from ordering.upstream.fake_adapter import (
    FakePaymentService,
    FakeProductCatalogue,
    FakeStockService,
    RecordingCustomerNotifier,
)
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield
        for _, provider in current_domain.providers.items():
            provider._data_reset()


@pytest.fixture(autouse=True)
def collaborators():
    collaborators = Collaborators(
        catalogue=FakeProductCatalogue(),
        payments=FakePaymentService(),
        stock=FakeStockService(),
        notifier=RecordingCustomerNotifier(),
    )
    collaborators.catalogue.add_product("prod-001", "Desk Lamp", 50.0, "lamp.png")
    collaborators.catalogue.add_product("prod-002", "Notebook", 10.0)
    collaborators.catalogue.add_product("prod-003", "Pen", 2.5)
    for product_id in ("prod-001", "prod-002", "prod-003"):
        collaborators.stock.set_stock(product_id, 20)
    set_collaborators(collaborators)
    yield collaborators
    reset_collaborators()


@pytest.fixture
def shipping():
    return {
        "address": "12 Nile St",
        "city": "Cairo",
        "postal_code": "11511",
        "country": "EG",
        "phone": "+201000000000",
    }


@pytest.fixture
def place_order(shipping):
    """Create an order through the command and return it."""
    from ordering.order.creation import CreateOrder

    def _place(items=None, customer_id="cust-001", payment_method="credit_card"):
        items = items if items is not None else [{"product_id": "prod-001", "quantity": 2}]
        return current_domain.process(
            CreateOrder(
                customer_id=customer_id,
                items=json.dumps(items),
                shipping=json.dumps(shipping),
                payment_method=payment_method,
            ),
            asynchronous=False,
        )

    return _place
