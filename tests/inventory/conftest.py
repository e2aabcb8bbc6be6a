import pytest
from inventory.ledger import reset_ledger, set_ledger
from inventory.ledger.memory_adapter import MemoryStockLedger
from protean import current_domain
from protean.integrations.pytest import DomainFixture
from shared.cache import MemoryCache, reset_cache, set_cache


@pytest.fixture(scope="session")
def inventory_bed():
    from inventory.domain import inventory

    bed = DomainFixture(inventory)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(inventory_bed):
    with inventory_bed.domain_context():
        yield
        for _, provider in current_domain.providers.items():
            provider._data_reset()


@pytest.fixture(autouse=True)
def ledger():
    ledger = MemoryStockLedger()
    set_ledger(ledger)
    yield ledger
    reset_ledger()


@pytest.fixture(autouse=True)
def cache():
    cache = MemoryCache()
    set_cache(cache)
    yield cache
    reset_cache()
