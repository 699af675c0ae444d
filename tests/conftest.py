"""Shared pytest fixtures for hotelbook tests."""
import sys
sys.dont_write_bytecode = True

from contextlib import contextmanager  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402

from helpers import FakeGateway  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_process_gateway():
    """Never let a test reach the real Stripe gateway through get_gateway()."""
    from hotelbook.domain import gateway as gateway_module

    gateway_module.set_gateway(None)
    yield
    gateway_module.set_gateway(None)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def cur():
    return MagicMock()


@pytest.fixture
def fake_txn(cur):
    """Replacement for infra.db.txn yielding the shared mock cursor.

    Records how each transaction ended so tests can assert on rollback.
    """
    outcomes: list[str] = []

    @contextmanager
    def _txn(conn=None):
        try:
            yield cur
        except Exception:
            outcomes.append("rollback")
            raise
        outcomes.append("commit")

    _txn.outcomes = outcomes
    return _txn
