"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import pytest
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.core.models import FlashCard, FlashCardCollection  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def sample_cards():
    """Three cards from one collection."""
    return [
        FlashCard(id=1, term="OSI layers", definition="7", score=0, flash_card_collection_id=10),
        FlashCard(id=2, term="TCP port for HTTPS", definition="443", score=2, flash_card_collection_id=10),
        FlashCard(id=3, term="Default gateway", definition="Router for off-subnet traffic", score=-1, flash_card_collection_id=10),
    ]


@pytest.fixture
def sample_collections():
    """A small hierarchy: two roots, one with a child and a grandchild."""
    return [
        FlashCardCollection(id=1, parent_id=None, title="Networking", flash_card_count=4),
        FlashCardCollection(id=2, parent_id=1, title="Routing", flash_card_count=3),
        FlashCardCollection(id=3, parent_id=2, title="OSPF", flash_card_count=2),
        FlashCardCollection(id=4, parent_id=0, title="Spanish", flash_card_count=10),
    ]


class FakeCardSource:
    """CardSource returning a fixed batch, or raising a queued error."""

    def __init__(self, cards=None, error=None):
        self.cards = list(cards or [])
        self.error = error
        self.calls = []

    async def fetch_batch(self, collection_id, count):
        self.calls.append((collection_id, count))
        if self.error is not None:
            error, self.error = self.error, None
            raise error
        return list(self.cards)


class FakeScoreSink:
    """ScoreSink that records submissions and can fail a number of times."""

    def __init__(self, failures=0, on_submit=None):
        self.failures = failures
        self.on_submit = on_submit
        self.submitted = []

    async def submit(self, updates):
        if self.on_submit is not None:
            self.on_submit()
        if self.failures > 0:
            from src.learn.errors import SubmitFailure

            self.failures -= 1
            raise SubmitFailure("Failed to update scores")
        self.submitted.append(list(updates))


@pytest.fixture
def card_source(sample_cards):
    return FakeCardSource(sample_cards)


@pytest.fixture
def score_sink():
    return FakeScoreSink()


@pytest.fixture
def make_card_source():
    """Factory for sources with custom batches or failures."""
    return FakeCardSource


@pytest.fixture
def make_score_sink():
    """Factory for sinks that fail or run a hook on submit."""
    return FakeScoreSink
