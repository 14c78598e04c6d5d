"""
estate - Real-Estate Transaction Chaincode

Records properties, sale conditions and contracts as keyed records in a
shared key-value world state.

Usage:
    from estate import Chaincode, WorldState, decode, submit_transaction, evaluate_transaction

    world = WorldState("main")
    chaincode = Chaincode()

    submit_transaction(world, chaincode, "initProperty", ["p1", "islab", "seoul", "alice"])
    submit_transaction(world, chaincode, "initCondition", ["c1", "p1", "alice", "bob", "5000000"])
    submit_transaction(world, chaincode, "createContract", ["k1", "c1"])
    submit_transaction(world, chaincode, "transferProperty", ["p1", "bob"])

    response = evaluate_transaction(world, chaincode, "readValue", ["p1"])
    if response.ok:
        record = decode(response.payload, "property")
"""

# Core types
from .core import (
    StateStub,
    KeyModification,
    Response,
    ValidationReason,
    ChaincodeError,
    ValidationError,
    InvalidKey,
    NotFound,
    AlreadyExists,
    RecordInUse,
    DecodeError,
    ConflictError,
    UnknownFunction,
    StorageError,
    normalize,
    DOC_TYPE_PROPERTY,
    DOC_TYPE_CONDITION,
    DOC_TYPE_CONTRACT,
    STATUS_OK,
    STATUS_ERROR,
)

# Codec
from .codec import (
    Property,
    Condition,
    Contract,
    Record,
    encode,
    decode,
    decode_any,
    to_document,
)

# Keys
from .keys import (
    primary_key,
    create_composite_key,
    split_composite_key,
    partial_key_range,
    is_composite_key,
    type_index_key,
    owner_index_key,
    reference_index_key,
    index_keys_for,
)

# Validation
from .validation import (
    FieldKind,
    FieldSpec,
    validate,
    ARGUMENT_SPECS,
)

# World state
from .world_state import (
    WorldState,
    TransactionStub,
    CommittedTransaction,
)

# Router
from .router import (
    Chaincode,
    FUNCTIONS,
    submit_transaction,
    evaluate_transaction,
)

__all__ = [
    # Core
    'StateStub', 'KeyModification', 'Response', 'ValidationReason',
    'ChaincodeError', 'ValidationError', 'InvalidKey', 'NotFound', 'AlreadyExists',
    'RecordInUse', 'DecodeError', 'ConflictError', 'UnknownFunction', 'StorageError',
    'normalize',
    'DOC_TYPE_PROPERTY', 'DOC_TYPE_CONDITION', 'DOC_TYPE_CONTRACT',
    'STATUS_OK', 'STATUS_ERROR',
    # Codec
    'Property', 'Condition', 'Contract', 'Record',
    'encode', 'decode', 'decode_any', 'to_document',
    # Keys
    'primary_key', 'create_composite_key', 'split_composite_key', 'partial_key_range',
    'is_composite_key', 'type_index_key', 'owner_index_key', 'reference_index_key',
    'index_keys_for',
    # Validation
    'FieldKind', 'FieldSpec', 'validate', 'ARGUMENT_SPECS',
    # World state
    'WorldState', 'TransactionStub', 'CommittedTransaction',
    # Router
    'Chaincode', 'FUNCTIONS', 'submit_transaction', 'evaluate_transaction',
]

__version__ = '1.0.0'
