"""
helpers.py - Invocation helpers shared by the chaincode tests
"""

import json
from typing import Dict, List

from estate import (
    Chaincode, Response, WorldState,
    decode, evaluate_transaction, submit_transaction,
)


def submit(world: WorldState, function: str, *args: str) -> Response:
    """Submit one invocation with a quiet chaincode."""
    return submit_transaction(world, Chaincode(verbose=False), function, list(args))


def evaluate(world: WorldState, function: str, *args: str) -> Response:
    """Evaluate one invocation (no commit) with a quiet chaincode."""
    return evaluate_transaction(world, Chaincode(verbose=False), function, list(args))


def read(world: WorldState, key: str, doc_type: str):
    """readValue the key and decode the payload as doc_type."""
    response = evaluate(world, "readValue", key)
    assert response.ok, response.message
    return decode(response.payload, doc_type, key)


def read_json(response: Response):
    """Parse a JSON payload from a successful response."""
    assert response.ok, response.message
    return json.loads(response.payload.decode("utf-8"))


def snapshot_diff(before: Dict[str, bytes], after: Dict[str, bytes]) -> List[str]:
    """Return the keys whose values differ between two snapshots."""
    return sorted(k for k in set(before) | set(after) if before.get(k) != after.get(k))
