"""
conftest.py - Shared pytest fixtures for chaincode tests

Provides common fixtures used across unit, functional and conformance tests:
- World states (empty, one property, the full property/condition/contract chain,
  several owners)
- A quiet Chaincode
- An empty FakeStub
"""

import pytest
from datetime import datetime

from estate import Chaincode, WorldState

from tests.fake_stub import FakeStub
from tests.helpers import submit


# =============================================================================
# WORLD STATE FIXTURES
# =============================================================================

@pytest.fixture
def world():
    """Fresh world state with nothing committed."""
    return WorldState("test", datetime(2025, 1, 1), verbose=False)


@pytest.fixture
def property_world(world):
    """World with property p1 owned by alice."""
    response = submit(world, "initProperty", "p1", "islab", "seoul", "alice")
    assert response.ok, response.message
    return world


@pytest.fixture
def contract_world(property_world):
    """World with the full chain: property p1 <- condition c1 <- contract k1."""
    world = property_world
    for function, args in [
        ("initCondition", ("c1", "p1", "alice", "bob", "5000000")),
        ("createContract", ("k1", "c1")),
    ]:
        response = submit(world, function, *args)
        assert response.ok, response.message
    return world


@pytest.fixture
def portfolio_world(world):
    """World where alice owns p1 and p2 and carol owns p3."""
    for num, owner in [("p1", "alice"), ("p2", "alice"), ("p3", "carol")]:
        response = submit(world, "initProperty", num, f"house {num}", "seoul", owner)
        assert response.ok, response.message
    return world


# =============================================================================
# CHAINCODE / STUB FIXTURES
# =============================================================================

@pytest.fixture
def chaincode():
    """Chaincode with console output disabled."""
    return Chaincode(verbose=False)


@pytest.fixture
def fake_stub():
    """Empty FakeStub for operation-level tests."""
    return FakeStub()
