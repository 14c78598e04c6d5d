"""
codec.py - Entity Codec

The three record kinds (Property, Condition, Contract) share one key space,
so every stored document carries a docType discriminator and decoding is a
tagged-union dispatch on it:

    decode_any(bytes) -> Property | Condition | Contract      (or DecodeError)
    decode(bytes, expected_type) -> record of that kind       (or DecodeError)

Absent bytes (key not found) raise NotFound, never DecodeError, so callers can
tell "does not exist" from "corrupt".

Encoding is canonical JSON: sorted keys, compact separators, UTF-8. Equal
records always produce identical bytes.
"""

from __future__ import annotations
from dataclasses import dataclass, fields, replace
import json
from typing import Any, ClassVar, Dict, FrozenSet, Optional, Type, Union

from .core import (
    DOC_TYPE_CONDITION, DOC_TYPE_CONTRACT, DOC_TYPE_PROPERTY,
    DecodeError, Key, NotFound,
)


def _require_text(record: Any, *names: str) -> None:
    for name in names:
        value = getattr(record, name)
        if not isinstance(value, str):
            raise ValueError(f"{type(record).__name__}.{name} must be str, got {type(value).__name__}")
        if not value:
            raise ValueError(f"{type(record).__name__}.{name} cannot be empty")


# ============================================================================
# RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Property:
    """
    A piece of real estate and its current owner.

    Attributes:
        property_num: Identity of the property (also its ledger key)
        name: Display name of the property
        address: Street address
        owner: Current owner
    """
    DOC_TYPE: ClassVar[str] = DOC_TYPE_PROPERTY
    INTEGER_FIELDS: ClassVar[FrozenSet[str]] = frozenset()

    property_num: str
    name: str
    address: str
    owner: str

    def __post_init__(self):
        _require_text(self, "property_num", "name", "address", "owner")

    @property
    def key(self) -> Key:
        return self.property_num

    def replace_owner(self, new_owner: str) -> Property:
        """Return a copy of this property held by new_owner."""
        return replace(self, owner=new_owner)


@dataclass(frozen=True, slots=True)
class Condition:
    """
    Sale conditions agreed for a property.

    Attributes:
        condition_num: Identity of the condition (also its ledger key)
        property_num: The property being sold (must exist)
        seller: Selling party
        buyer: Buying party
        deposit: Deposit amount, a non-negative integer
    """
    DOC_TYPE: ClassVar[str] = DOC_TYPE_CONDITION
    INTEGER_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"deposit"})

    condition_num: str
    property_num: str
    seller: str
    buyer: str
    deposit: int

    def __post_init__(self):
        _require_text(self, "condition_num", "property_num", "seller", "buyer")
        if isinstance(self.deposit, bool) or not isinstance(self.deposit, int):
            raise ValueError(f"Condition.deposit must be int, got {type(self.deposit).__name__}")
        if self.deposit < 0:
            raise ValueError(f"Condition.deposit must be non-negative, got {self.deposit}")

    @property
    def key(self) -> Key:
        return self.condition_num


@dataclass(frozen=True, slots=True)
class Contract:
    """A signed contract executing one set of sale conditions."""
    DOC_TYPE: ClassVar[str] = DOC_TYPE_CONTRACT
    INTEGER_FIELDS: ClassVar[FrozenSet[str]] = frozenset()

    contract_num: str
    condition_num: str

    def __post_init__(self):
        _require_text(self, "contract_num", "condition_num")

    @property
    def key(self) -> Key:
        return self.contract_num


Record = Union[Property, Condition, Contract]

RECORD_TYPES: Dict[str, Type[Record]] = {
    DOC_TYPE_PROPERTY: Property,
    DOC_TYPE_CONDITION: Condition,
    DOC_TYPE_CONTRACT: Contract,
}


# ============================================================================
# ENCODE / DECODE
# ============================================================================

def to_document(record: Record) -> Dict[str, Any]:
    """Return the JSON document for a record, docType first."""
    doc: Dict[str, Any] = {"docType": record.DOC_TYPE}
    for f in fields(record):
        doc[f.name] = getattr(record, f.name)
    return doc


def encode(record: Record) -> bytes:
    """Encode a record as canonical JSON bytes."""
    return json.dumps(
        to_document(record),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def _from_document(cls: Type[Record], doc: Dict[str, Any], key: Optional[Key]) -> Record:
    names = [f.name for f in fields(cls)]
    expected = {"docType", *names}
    present = set(doc)
    if present != expected:
        missing = sorted(expected - present)
        unexpected = sorted(present - expected)
        raise DecodeError(
            f"{cls.DOC_TYPE} document has missing fields {missing} "
            f"and unexpected fields {unexpected}",
            key,
        )

    values = {}
    for name in names:
        value = doc[name]
        if name in cls.INTEGER_FIELDS:
            if isinstance(value, bool) or not isinstance(value, int):
                raise DecodeError(f"{cls.DOC_TYPE}.{name} must be an integer, got {value!r}", key)
        elif not isinstance(value, str):
            raise DecodeError(f"{cls.DOC_TYPE}.{name} must be a string, got {value!r}", key)
        values[name] = value

    try:
        return cls(**values)
    except ValueError as e:
        raise DecodeError(str(e), key) from e


def decode_any(data: Optional[bytes], key: Optional[Key] = None) -> Record:
    """
    Decode stored bytes into whichever record kind their docType names.

    Args:
        data: Bytes read from the ledger (None if the key was absent)
        key: Ledger key the bytes came from, for error messages

    Raises:
        NotFound: data is None
        DecodeError: malformed JSON, missing or unknown docType, or a
                     document that does not match its kind's shape
    """
    if data is None:
        raise NotFound(key if key is not None else "<unknown>")
    try:
        doc = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError(f"Malformed record: {e}", key) from e

    if not isinstance(doc, dict):
        raise DecodeError(f"Record must be a JSON object, got {type(doc).__name__}", key)
    if "docType" not in doc:
        raise DecodeError("Record has no docType", key)

    doc_type = doc["docType"]
    cls = RECORD_TYPES.get(doc_type) if isinstance(doc_type, str) else None
    if cls is None:
        raise DecodeError(f"Unknown docType {doc_type!r}", key)
    return _from_document(cls, doc, key)


def decode(data: Optional[bytes], expected_type: str, key: Optional[Key] = None) -> Record:
    """
    Decode stored bytes as a record of a specific kind.

    Args:
        data: Bytes read from the ledger (None if the key was absent)
        expected_type: docType the caller requires
        key: Ledger key the bytes came from, for error messages

    Raises:
        ValueError: expected_type is not a known docType
        NotFound: data is None
        DecodeError: the bytes are corrupt or hold a different kind
    """
    if expected_type not in RECORD_TYPES:
        raise ValueError(f"Unknown docType {expected_type!r}")
    if data is None:
        raise NotFound(key if key is not None else "<unknown>", what=expected_type.capitalize())
    record = decode_any(data, key)
    if record.DOC_TYPE != expected_type:
        raise DecodeError(
            f"Expected docType {expected_type!r}, found {record.DOC_TYPE!r}", key
        )
    return record
