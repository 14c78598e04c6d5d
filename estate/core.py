"""
Core types and helpers for the real-estate transaction chaincode.

This module provides the foundational data structures and protocols:
1. Protocols: StateStub for per-invocation access to the world state
2. Immutable data structures: KeyModification, Response
3. Exceptions: ChaincodeError and the domain-specific error types
4. Type aliases: Key, Args, KeyValue
5. Normalization: the single rule applied to every string argument

Nothing in this module touches state. The world state is the only component
that mutates anything, and it does so only at commit time.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import (
    Iterator, List, Optional, Protocol, Tuple, runtime_checkable
)


# ============================================================================
# CONSTANTS
# ============================================================================

# docType discriminators. All three record kinds share one key space and
# self-identify through this field.
DOC_TYPE_PROPERTY = "property"
DOC_TYPE_CONDITION = "condition"
DOC_TYPE_CONTRACT = "contract"

DOC_TYPES = frozenset({DOC_TYPE_PROPERTY, DOC_TYPE_CONDITION, DOC_TYPE_CONTRACT})

# Peer response status codes.
STATUS_OK = 200
STATUS_ERROR = 500

# Composite keys live in their own namespace: they start with U+0000 and use
# it as the component delimiter. U+10FFFF is the highest code point and bounds
# partial-key range scans. Neither may appear inside a key component.
COMPOSITE_KEY_NAMESPACE = "\x00"
MIN_UNICODE_RUNE = "\x00"
MAX_UNICODE_RUNE = "\U0010FFFF"

# Value stored under index entries. The index key carries all the
# information; the value only has to be non-empty.
INDEX_MARKER = b"\x00"


# ============================================================================
# TYPE ALIASES
# ============================================================================

# A ledger key. The key space is string-typed.
Key = str

# Positional invocation arguments.
Args = List[str]

# A (key, value) pair as returned by range scans.
KeyValue = Tuple[Key, bytes]


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class KeyModification:
    """
    One committed modification of a key, as returned by history queries.

    Attributes:
        tx_id: Transaction that wrote (or deleted) the key
        timestamp: Logical time at which the transaction committed
        is_delete: True if the transaction removed the key
        value: The value written (None for deletions)
    """
    tx_id: str
    timestamp: datetime
    is_delete: bool
    value: Optional[bytes] = None


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class StateStub(Protocol):
    """
    Per-invocation interface to the world state.

    Lifecycle operations receive a StateStub and never see the world state
    itself. Reads return committed state; writes are buffered and only become
    visible if the invocation succeeds and the world state accepts the commit.

    For testing, FakeStub provides a minimal dictionary-backed implementation.
    """

    @property
    def tx_id(self) -> str:
        """Identifier of the transaction this stub simulates."""
        ...

    def get_function_and_parameters(self) -> Tuple[str, Args]:
        """Return the invoked function name and its positional arguments."""
        ...

    def get_state(self, key: Key) -> Optional[bytes]:
        """Return the committed value at key, or None if the key is absent."""
        ...

    def put_state(self, key: Key, value: bytes) -> None:
        """Buffer a write of value under key."""
        ...

    def del_state(self, key: Key) -> None:
        """Buffer a deletion of key."""
        ...

    def get_state_by_range(self, start_key: Key, end_key: Key) -> Iterator[KeyValue]:
        """
        Iterate simple keys in [start_key, end_key) in key order.

        An empty start_key or end_key leaves that side of the range open.
        Composite keys are never returned.
        """
        ...

    def get_state_by_partial_composite_key(
        self, object_type: str, attributes: List[str]
    ) -> Iterator[KeyValue]:
        """Iterate composite keys that extend (object_type, *attributes)."""
        ...

    def get_history_for_key(self, key: Key) -> Iterator[KeyModification]:
        """Iterate committed modifications of key, oldest first."""
        ...


# ============================================================================
# ENUMS
# ============================================================================

class ValidationReason(Enum):
    """
    Why an invocation argument was rejected.

    WRONG_ARITY: argument count differs from the required count
    EMPTY_FIELD: a required string is empty after trimming
    NOT_NUMERIC: an integer field does not parse as a decimal integer
    NEGATIVE_NUMBER: an integer field parsed but is below zero
    INVALID_KEY: an identifier contains a reserved key delimiter
    NOT_A_STRING: an argument is not a string at all
    """
    WRONG_ARITY = "wrong_arity"
    EMPTY_FIELD = "empty_field"
    NOT_NUMERIC = "not_numeric"
    NEGATIVE_NUMBER = "negative_number"
    INVALID_KEY = "invalid_key"
    NOT_A_STRING = "not_a_string"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class ChaincodeError(Exception):
    """Base exception for all chaincode errors."""
    pass


class ValidationError(ChaincodeError):
    """
    Raised when invocation arguments fail validation.

    Always raised before any state access, so the ledger is left untouched.

    Attributes:
        reason: ValidationReason describing the failure
        position: Zero-based argument index (None for arity failures)
    """

    def __init__(self, reason: ValidationReason, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.reason = reason
        self.position = position


class InvalidKey(ValidationError):
    """Raised when a key or key component contains reserved characters."""

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(ValidationReason.INVALID_KEY, message, position)


class NotFound(ChaincodeError):
    """Raised when a read, update or delete target (or a referenced parent) is absent."""

    def __init__(self, key: Key, what: str = "Record"):
        super().__init__(f"{what} does not exist: {key}")
        self.key = key


class AlreadyExists(ChaincodeError):
    """Raised when a create targets a key that already holds a record."""

    def __init__(self, key: Key, what: str = "Record"):
        super().__init__(f"{what} already exists: {key}")
        self.key = key


class RecordInUse(ChaincodeError):
    """Raised when deleting a record that another record still references."""

    def __init__(self, key: Key, referenced_by: Key):
        super().__init__(f"Record {key} is still referenced by {referenced_by}")
        self.key = key
        self.referenced_by = referenced_by


class DecodeError(ChaincodeError):
    """Raised when stored bytes do not decode as the expected record kind."""

    def __init__(self, message: str, key: Optional[Key] = None):
        super().__init__(message if key is None else f"{message} (key {key})")
        self.key = key


class ConflictError(ChaincodeError):
    """
    Raised at commit when a key read by the transaction changed since the read.

    Retryable: resubmitting the invocation re-reads current state.
    """

    def __init__(self, key: Key, message: Optional[str] = None):
        super().__init__(message or f"Read conflict on key {key!r}: modified since read")
        self.key = key


class UnknownFunction(ChaincodeError):
    """Raised when the invoked function name is not registered."""

    def __init__(self, function: str):
        super().__init__(f"Received unknown function invocation: {function}")
        self.function = function


class StorageError(ChaincodeError):
    """Raised for collaborator-level failures (bad key or value, reused stub)."""
    pass


# ============================================================================
# RESPONSE ENVELOPE
# ============================================================================

@dataclass(frozen=True, slots=True)
class Response:
    """
    Result of one invocation.

    Attributes:
        status: STATUS_OK or STATUS_ERROR
        message: Human-readable failure message (empty on success)
        payload: Optional bytes returned on success
        error: The ChaincodeError behind a failure, for callers that need
               to branch on the kind of failure
    """
    status: int
    message: str = ""
    payload: Optional[bytes] = None
    error: Optional[ChaincodeError] = None

    @classmethod
    def success(cls, payload: Optional[bytes] = None) -> Response:
        return cls(status=STATUS_OK, payload=payload)

    @classmethod
    def failure(cls, error: ChaincodeError) -> Response:
        return cls(status=STATUS_ERROR, message=str(error), error=error)

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK

    def __repr__(self) -> str:
        if self.ok:
            size = 0 if self.payload is None else len(self.payload)
            return f"Response(OK, {size} bytes)"
        return f"Response(ERROR, {type(self.error).__name__}: {self.message})"


# ============================================================================
# NORMALIZATION
# ============================================================================

def normalize(value: str) -> str:
    """
    Normalize a string argument for storage and comparison.

    Surrounding whitespace is trimmed and the value is lower-cased, so that
    identity keys and owner names compare stably.
    """
    return value.strip().lower()
