import pytest
from payments.claims import MemoryClaimStore, reset_claim_store, set_claim_store
from payments.gateway import reset_gateway, set_gateway
from payments.gateway.fake_adapter import FakeGateway
from payments.notifier import RecordingOutcomeNotifier, reset_notifier, set_notifier
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def payments_bed():
    from payments.domain import payments

    bed = DomainFixture(payments)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(payments_bed):
    with payments_bed.domain_context():
        yield
        for _, provider in current_domain.providers.items():
            provider._data_reset()


@pytest.fixture(autouse=True)
def gateway():
    gateway = FakeGateway()
    set_gateway(gateway)
    yield gateway
    reset_gateway()


@pytest.fixture(autouse=True)
def claim_store():
    store = MemoryClaimStore()
    set_claim_store(store)
    yield store
    reset_claim_store()


@pytest.fixture(autouse=True)
def notifier():
    notifier = RecordingOutcomeNotifier()
    set_notifier(notifier)
    yield notifier
    reset_notifier()


@pytest.fixture
def billing_data():
    return {
        "first_name": "Mona",
        "last_name": "Adel",
        "email": "mona@example.com",
        "phone": "+201000000000",
        "street": "12 Nile St",
        "city": "Cairo",
        "postal_code": "11511",
        "country": "EG",
    }
