import os
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the config overlay before any test module imports the domain."""
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    """Run each test in a fresh domain context with empty stores and fresh services."""
    from storefront.payments import reset_gateway
    from storefront.services import reset_services

    reset_services()
    reset_gateway()

    with storefront_bed.domain_context():
        yield

        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()

    reset_services()
    reset_gateway()


@pytest.fixture()
def catalog():
    from storefront.services import get_catalog

    return get_catalog()


@pytest.fixture()
def inventory():
    from storefront.services import get_inventory

    return get_inventory()


@pytest.fixture()
def ledger():
    from storefront.services import get_ledger

    return get_ledger()


@pytest.fixture()
def coordinator():
    from storefront.services import get_coordinator

    return get_coordinator()


@pytest.fixture()
def gateway():
    from storefront.payments import FakeGateway, set_gateway

    fake = FakeGateway()
    set_gateway(fake)
    return fake


@pytest.fixture()
def shipping_info():
    return {
        "first_name": "Asha",
        "last_name": "Rao",
        "address": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "postal_code": "560001",
        "country": "India",
    }


@pytest.fixture()
def card_payment():
    return {"method": "card", "card_number": "4242 4242 4242 4242"}
