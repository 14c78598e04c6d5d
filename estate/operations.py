"""
operations.py - Entity Lifecycle Operations

Create, read, transfer and delete for the three record kinds, plus the range,
owner and history queries. Every operation:

    - takes a StateStub and already-validated, normalized arguments
    - returns the response payload (bytes) or None
    - raises a ChaincodeError subclass on failure, before or instead of
      writing anything that would leave a record half-built

Writes go through the stub, so they only reach the world state if the whole
invocation succeeds and its read set is still current at commit time. A
transfer racing another transfer of the same property therefore fails with
ConflictError instead of silently overwriting it.

Record state machine:
    Absent -> Created -> (Transferred)* -> Deleted -> (Absent again)
"""

from __future__ import annotations
import json
from typing import Any, List, Optional

from .core import (
    DOC_TYPE_CONDITION, DOC_TYPE_CONTRACT, DOC_TYPE_PROPERTY, INDEX_MARKER,
    AlreadyExists, InvalidKey, Key, NotFound, RecordInUse, StateStub,
)
from .codec import (
    Condition, Contract, Property, Record,
    decode, decode_any, encode, to_document,
)
from .keys import (
    OWNER_INDEX, REFERENCE_INDEXES,
    index_keys_for, is_composite_key, owner_index_key, primary_key,
    split_composite_key, type_index_key,
)


def _to_json(value: Any) -> bytes:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _read_record(stub: StateStub, doc_type: str, natural_id: str) -> Record:
    key = primary_key(doc_type, natural_id)
    return decode(stub.get_state(key), doc_type, key)


def _require_absent(stub: StateStub, key: Key, what: str) -> None:
    if stub.get_state(key) is not None:
        raise AlreadyExists(key, what)


def _write_record(stub: StateStub, record: Record) -> None:
    stub.put_state(record.key, encode(record))
    for index_key in index_keys_for(record):
        stub.put_state(index_key, INDEX_MARKER)


def _remove_record(stub: StateStub, record: Record) -> None:
    stub.del_state(record.key)
    for index_key in index_keys_for(record):
        stub.del_state(index_key)


# ============================================================================
# CREATE
# ============================================================================

def init_property(stub: StateStub, property_num: str, name: str, address: str, owner: str) -> None:
    """Create a property owned by owner."""
    key = primary_key(DOC_TYPE_PROPERTY, property_num)
    _require_absent(stub, key, "Property")
    _write_record(stub, Property(property_num, name, address, owner))


def init_condition(
    stub: StateStub,
    condition_num: str,
    property_num: str,
    seller: str,
    buyer: str,
    deposit: int,
) -> None:
    """
    Create sale conditions for an existing property.

    Raises:
        AlreadyExists: condition_num is already in use
        NotFound: the property does not exist
        DecodeError: property_num holds a record of another kind
    """
    key = primary_key(DOC_TYPE_CONDITION, condition_num)
    _require_absent(stub, key, "Condition")
    _read_record(stub, DOC_TYPE_PROPERTY, property_num)
    _write_record(stub, Condition(condition_num, property_num, seller, buyer, deposit))


def create_contract(stub: StateStub, contract_num: str, condition_num: str) -> None:
    """Create a contract executing existing sale conditions."""
    key = primary_key(DOC_TYPE_CONTRACT, contract_num)
    _require_absent(stub, key, "Contract")
    _read_record(stub, DOC_TYPE_CONDITION, condition_num)
    _write_record(stub, Contract(contract_num, condition_num))


# ============================================================================
# READ
# ============================================================================

def read_value(stub: StateStub, key: Key) -> bytes:
    """
    Return the encoded record stored at key.

    The bytes are decoded before they are returned, so a corrupt value is
    reported instead of passed on.

    Raises:
        InvalidKey: key is a composite (index) key
        NotFound: nothing is stored at key
        DecodeError: the stored bytes are not a valid record
    """
    if is_composite_key(key):
        raise InvalidKey(f"Only record keys can be read, got {key!r}")
    data = stub.get_state(key)
    decode_any(data, key)
    return data


def read_record(stub: StateStub, doc_type: str, natural_id: str) -> bytes:
    """
    Look up a record of a given kind through its type index.

    A key holding a record of another kind has no index entry for doc_type,
    so it reads as NotFound rather than as a decode failure.
    """
    if stub.get_state(type_index_key(doc_type, natural_id)) is None:
        raise NotFound(natural_id, doc_type.capitalize())
    return encode(_read_record(stub, doc_type, natural_id))


def read_property(stub: StateStub, property_num: str) -> bytes:
    return read_record(stub, DOC_TYPE_PROPERTY, property_num)


def read_condition(stub: StateStub, condition_num: str) -> bytes:
    return read_record(stub, DOC_TYPE_CONDITION, condition_num)


def read_contract(stub: StateStub, contract_num: str) -> bytes:
    return read_record(stub, DOC_TYPE_CONTRACT, contract_num)


# ============================================================================
# TRANSFER
# ============================================================================

def transfer_property(stub: StateStub, property_num: str, new_owner: str) -> None:
    """
    Set a new owner on a property.

    Reads the full record, replaces the owner and writes the full record back
    under the same key, moving the owner index entry with it.

    Raises:
        NotFound: the property does not exist
        DecodeError: property_num holds a record of another kind
    """
    current = _read_record(stub, DOC_TYPE_PROPERTY, property_num)
    updated = current.replace_owner(new_owner)
    stub.del_state(owner_index_key(current.owner, property_num))
    stub.put_state(updated.key, encode(updated))
    stub.put_state(owner_index_key(updated.owner, property_num), INDEX_MARKER)


def _owned_property_nums(stub: StateStub, owner: str) -> List[str]:
    nums = []
    for index_key, _ in stub.get_state_by_partial_composite_key(OWNER_INDEX, [owner]):
        _, attributes = split_composite_key(index_key)
        nums.append(attributes[1])
    return nums


def transfer_properties_based_on_owner(stub: StateStub, owner: str, new_owner: str) -> bytes:
    """
    Transfer every property held by owner to new_owner in one transaction.

    Returns:
        JSON array of the transferred property numbers
    """
    nums = _owned_property_nums(stub, owner)
    for property_num in nums:
        transfer_property(stub, property_num, new_owner)
    return _to_json(nums)


# ============================================================================
# DELETE
# ============================================================================

def delete_record(stub: StateStub, doc_type: str, natural_id: str) -> None:
    """
    Remove a record and every composite key derived from it.

    Raises:
        NotFound: nothing is stored under natural_id
        DecodeError: natural_id holds a record of another kind
        RecordInUse: a condition or contract still references the record
    """
    record = _read_record(stub, doc_type, natural_id)
    reference_index = REFERENCE_INDEXES.get(doc_type)
    if reference_index is not None:
        for index_key, _ in stub.get_state_by_partial_composite_key(reference_index, [natural_id]):
            _, attributes = split_composite_key(index_key)
            raise RecordInUse(record.key, attributes[-1])
    _remove_record(stub, record)


def delete_property(stub: StateStub, property_num: str) -> None:
    delete_record(stub, DOC_TYPE_PROPERTY, property_num)


def delete_condition(stub: StateStub, condition_num: str) -> None:
    delete_record(stub, DOC_TYPE_CONDITION, condition_num)


def delete_contract(stub: StateStub, contract_num: str) -> None:
    delete_record(stub, DOC_TYPE_CONTRACT, contract_num)


# ============================================================================
# QUERIES
# ============================================================================

def get_records_by_range(stub: StateStub, start_key: str, end_key: str) -> bytes:
    """
    Return every record with start_key <= key < end_key.

    Empty bounds leave that side open. The payload is a JSON array of
    {"Key": ..., "Record": {...}} objects in key order.
    """
    results = []
    for key, value in stub.get_state_by_range(start_key, end_key):
        results.append({"Key": key, "Record": to_document(decode_any(value, key))})
    return _to_json(results)


def query_properties_by_owner(stub: StateStub, owner: str) -> bytes:
    """Return the owner's properties as a JSON array, via the owner index."""
    results = []
    for property_num in _owned_property_nums(stub, owner):
        record = _read_record(stub, DOC_TYPE_PROPERTY, property_num)
        results.append({"Key": property_num, "Record": to_document(record)})
    return _to_json(results)


def get_history_for_key(stub: StateStub, key: Key) -> bytes:
    """
    Return the committed history of a record key, oldest first.

    Each entry is {"TxId", "Timestamp", "IsDelete", "Value"}; Value is the
    record document, or null for deletions.
    """
    if is_composite_key(key):
        raise InvalidKey(f"History is only available for record keys, got {key!r}")
    entries = []
    for modification in stub.get_history_for_key(key):
        value: Optional[dict] = None
        if not modification.is_delete:
            value = to_document(decode_any(modification.value, key))
        entries.append({
            "TxId": modification.tx_id,
            "Timestamp": modification.timestamp.isoformat(),
            "IsDelete": modification.is_delete,
            "Value": value,
        })
    return _to_json(entries)
