"""
router.py - Dispatch Router

Maps an invoked function name to one lifecycle operation.

Following the handler-registry pattern:
- No handler classes, just functions
- A fixed dict of functions, looked up by name
- The router validates arguments, calls the handler, and turns every
  ChaincodeError into an error Response at the invocation boundary

submit_transaction() and evaluate_transaction() run one invocation end to end
against a WorldState: open a stub, invoke, and (for submits) commit only if
the invocation succeeded.
"""

from __future__ import annotations
from typing import Callable, Dict, Optional

from .core import (
    Args, ChaincodeError, ConflictError, Response, StateStub, StorageError,
    UnknownFunction,
)
from .operations import (
    create_contract,
    delete_condition,
    delete_contract,
    delete_property,
    get_history_for_key,
    get_records_by_range,
    init_condition,
    init_property,
    query_properties_by_owner,
    read_condition,
    read_contract,
    read_property,
    read_value,
    transfer_properties_based_on_owner,
    transfer_property,
)
from .validation import validate_invocation
from .world_state import WorldState


# Handler type: (stub, *normalized_args) -> payload or None
Handler = Callable[..., Optional[bytes]]


# ============================================================================
# FUNCTION REGISTRY
# ============================================================================

FUNCTIONS: Dict[str, Handler] = {
    "initProperty": init_property,
    "initCondition": init_condition,
    "createContract": create_contract,
    "transferProperty": transfer_property,
    "transferPropertiesBasedOnOwner": transfer_properties_based_on_owner,
    "readValue": read_value,
    "readProperty": read_property,
    "readCondition": read_condition,
    "readContract": read_contract,
    "deleteProperty": delete_property,
    "deleteCondition": delete_condition,
    "deleteContract": delete_contract,
    "getRecordsByRange": get_records_by_range,
    "queryPropertiesByOwner": query_properties_by_owner,
    "getHistoryForKey": get_history_for_key,
}


class Chaincode:
    """
    Entry point for invocations.

    Holds configuration only; every invocation starts from a read of current
    state through the stub it is given.
    """

    def __init__(self, verbose: bool = True):
        """
        Args:
            verbose: Print invocation progress (default: True)
        """
        self.verbose = verbose

    def init(self, stub: StateStub) -> Response:
        """Instantiate the chaincode. Nothing to set up."""
        return Response.success()

    def invoke(self, stub: StateStub) -> Response:
        """Dispatch the function and arguments carried by the stub."""
        function, args = stub.get_function_and_parameters()
        if self.verbose:
            print("invoke is running " + function)
        return self.route(function, args, stub)

    def route(self, function: str, args: Args, stub: StateStub) -> Response:
        """
        Run one function against the stub.

        Returns:
            Success carrying the handler's payload, or an error Response
            carrying the ChaincodeError (UnknownFunction for unregistered
            names, ValidationError for bad arguments, whatever the handler
            raised otherwise)
        """
        handler = FUNCTIONS.get(function)
        try:
            if handler is None:
                raise UnknownFunction(function)
            values = validate_invocation(function, args)
            if self.verbose:
                print(f"- start {function} {' '.join(str(v) for v in values)}")
            payload = handler(stub, *values)
        except ChaincodeError as e:
            if self.verbose:
                print(f"✗ {function}: {e}")
            return Response.failure(e)

        if self.verbose:
            print(f"- end {function} (success)")
        return Response.success(payload)


# ============================================================================
# SUBMIT / EVALUATE
# ============================================================================

def submit_transaction(
    world: WorldState,
    chaincode: Chaincode,
    function: str,
    args: Args,
    tx_id: Optional[str] = None,
) -> Response:
    """
    Invoke a function and commit its writes if it succeeded.

    A commit rejection (ConflictError for a stale read, StorageError for a
    collaborator failure) becomes an error Response; nothing is applied.
    No retry happens here.
    """
    stub = world.begin(function, args, tx_id)
    response = chaincode.invoke(stub)
    if not response.ok:
        return response
    try:
        world.commit(stub)
    except (ConflictError, StorageError) as e:
        return Response.failure(e)
    return response


def evaluate_transaction(
    world: WorldState,
    chaincode: Chaincode,
    function: str,
    args: Args,
) -> Response:
    """Invoke a function without committing anything (queries)."""
    return chaincode.invoke(world.begin(function, args))
