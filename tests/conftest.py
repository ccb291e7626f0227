"""Shared fixtures and test paths."""
import sys
from pathlib import Path

import httpx
import pytest

# Add tools/ to path so tests can import the package without installing it
sys.path.insert(0, str(Path(__file__).parent.parent / "tools"))

from chansync.api import ChanClient  # noqa: E402
from chansync.ledger import DedupLedger  # noqa: E402


@pytest.fixture
def make_client():
    """Build a ChanClient whose requests are answered by ``handler``."""
    clients = []

    def factory(handler):
        client = ChanClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()


@pytest.fixture
def ledger():
    return DedupLedger()
