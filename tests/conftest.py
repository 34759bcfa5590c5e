"""Shared fixtures for talkwatch tests."""

from datetime import datetime, timezone
from typing import Callable

import pytest

from talkwatch.events import InMemoryEventSink
from talkwatch.identity import UserDirectory
from talkwatch.notifier import DiscussionNotifier
from talkwatch.signatures import MAIN_PAGE, SignatureLocator, TildeSignatureEngine
from talkwatch.storage import InMemoryRevisionStore


def fixed_clock() -> datetime:
    return datetime(2024, 1, 5, 14, 5, tzinfo=timezone.utc)


@pytest.fixture
def engine() -> TildeSignatureEngine:
    """Signature engine with default formats and a frozen clock."""
    return TildeSignatureEngine(clock=fixed_clock)


@pytest.fixture
def sign(engine: TildeSignatureEngine) -> Callable[[str], str]:
    """Return a helper producing a full ~~~~ signature for a user."""

    def _sign(username: str) -> str:
        return engine.substitute("~~~~", MAIN_PAGE, username)

    return _sign


@pytest.fixture
def directory() -> UserDirectory:
    """User directory with a few registered accounts."""
    users = UserDirectory()
    users.create_user(1, "Carol")
    users.create_user(2, "Alice")
    users.create_user(3, "Bob")
    users.create_user(4, "Dave", rights={"nominornewtalk"})
    return users


@pytest.fixture
def locator(engine: TildeSignatureEngine, directory: UserDirectory) -> SignatureLocator:
    return SignatureLocator(engine, identity=directory)


@pytest.fixture
def store() -> InMemoryRevisionStore:
    return InMemoryRevisionStore()


@pytest.fixture
def sink() -> InMemoryEventSink:
    return InMemoryEventSink()


@pytest.fixture
def notifier(
    store: InMemoryRevisionStore,
    directory: UserDirectory,
    sink: InMemoryEventSink,
    engine: TildeSignatureEngine,
) -> DiscussionNotifier:
    """Notifier wired to in-memory backends."""
    return DiscussionNotifier(
        store=store,
        identity=directory,
        sink=sink,
        signature_engine=engine,
        max_mentions=50,
        mention_success_notifications=False,
    )
