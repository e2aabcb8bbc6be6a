import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Pins the Protean overlay and keeps every collaborator in-process: with no
    service, database or Redis URLs set, the factories hand out fakes and
    in-memory stores.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    for name in (
        "ORDER_SERVICE_URL",
        "PAYMENT_SERVICE_URL",
        "PRODUCT_SERVICE_URL",
        "DATABASE_URL",
        "REDIS_URL",
        "NOTIFICATION_WEBHOOK_URL",
        "PAYMOB_API_KEY",
    ):
        os.environ.pop(name, None)
    os.environ["INTERNAL_API_KEY"] = "test-internal-key"

    from shared.settings import get_settings

    get_settings.cache_clear()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        # Get the test file path relative to the tests directory
        test_path = Path(item.fspath)

        # Mark tests based on their directory
        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture
def internal_headers():
    return {"X-Internal-Token": "test-internal-key"}


@pytest.fixture
def customer_headers():
    return {"X-User-Id": "cust-001", "X-User-Email": "mona@example.com", "X-User-Name": "Mona Adel"}


@pytest.fixture
def admin_headers():
    return {"X-User-Id": "admin-001", "X-User-Role": "admin"}
