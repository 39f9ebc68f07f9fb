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

    Fetch and activate the domain by pushing the associated domain_context, and
    keep durable state in memory unless a test asks for a real directory.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ["STOREFRONT_ENV"] = session.config.option.env
    os.environ.setdefault("STOREFRONT_STORAGE", "memory")

    from storefront.domain import storefront
    from storefront.utils.logging import configure_logging

    configure_logging()
    storefront.init()
    storefront.domain_context().push()


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


@pytest.fixture(scope="session")
def storefront_bed():
    from protean.integrations.pytest import DomainFixture

    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically reset swappable adapters after every test"""
    yield

    from storefront.delivery import reset_estimator
    from storefront.persistence import reset_storage

    reset_estimator()
    reset_storage()


@pytest.fixture()
def memory_storage():
    from storefront.persistence.memory_adapter import MemoryStorage

    return MemoryStorage()


@pytest.fixture()
def storefront(memory_storage):
    """A fresh engine backed by in-memory storage and a fixed delivery quote."""
    from storefront.delivery.fake_adapter import FakeEstimator
    from storefront.engine import Storefront
    from storefront.persistence.adapter import PersistenceAdapter

    engine = Storefront(persistence=PersistenceAdapter(memory_storage), estimator=FakeEstimator())
    yield engine
    engine.shutdown()
