"""
keys.py - Key Scheme

Primary keys and composite (secondary-index) keys. All functions are pure:
the same inputs always produce the same key.

Primary keys:
    Every record lives under its bare identifier. The three kinds share one
    key space, so at most one record of any kind exists per identifier.

Composite keys:
    U+0000 + object_type + U+0000 + attr_1 + U+0000 + ... + attr_n + U+0000

    The leading U+0000 puts composite keys below every valid simple key, so
    simple-key range scans never see them. Because U+0000 is forbidden inside
    components, two different component lists can never produce the same key.
    A partial key (object_type plus a prefix of the attributes) bounds a
    range scan that recovers exactly the keys extending it.

Indexes written for each record:
    <docType>             [id]                    every record
    owner~property        [owner, property_num]   properties, by owner
    property~condition    [property_num, cond]    conditions referencing a property
    condition~contract    [condition_num, contr]  contracts referencing a condition
"""

from __future__ import annotations
from typing import List, Sequence, Tuple

from .core import (
    COMPOSITE_KEY_NAMESPACE, MAX_UNICODE_RUNE, MIN_UNICODE_RUNE,
    DOC_TYPE_CONDITION, DOC_TYPE_CONTRACT, DOC_TYPE_PROPERTY,
    InvalidKey, Key,
)
from .codec import Condition, Contract, Property, Record


OWNER_INDEX = "owner~property"
PROPERTY_CONDITION_INDEX = "property~condition"
CONDITION_CONTRACT_INDEX = "condition~contract"

# parent docType -> index linking it to its children
REFERENCE_INDEXES = {
    DOC_TYPE_PROPERTY: PROPERTY_CONDITION_INDEX,
    DOC_TYPE_CONDITION: CONDITION_CONTRACT_INDEX,
}


def has_reserved_characters(value: str) -> bool:
    """True if value contains a character reserved for composite keys."""
    return MIN_UNICODE_RUNE in value or MAX_UNICODE_RUNE in value


def _check_component(value: str, what: str) -> None:
    if not isinstance(value, str):
        raise InvalidKey(f"{what} must be a string, got {type(value).__name__}")
    if has_reserved_characters(value):
        raise InvalidKey(f"{what} {value!r} contains a reserved key character")


# ============================================================================
# PRIMARY KEYS
# ============================================================================

def primary_key(doc_type: str, natural_id: str) -> Key:
    """
    Return the ledger key a record of doc_type with natural_id is stored under.

    The key is the identifier itself; doc_type is checked but does not
    contribute, since all kinds share the key space.

    Raises:
        InvalidKey: unknown doc_type, empty id, or reserved characters
    """
    if doc_type not in (DOC_TYPE_PROPERTY, DOC_TYPE_CONDITION, DOC_TYPE_CONTRACT):
        raise InvalidKey(f"Unknown docType {doc_type!r}")
    _check_component(natural_id, f"{doc_type} id")
    if not natural_id:
        raise InvalidKey(f"{doc_type} id cannot be empty")
    return natural_id


def is_composite_key(key: Key) -> bool:
    return key.startswith(COMPOSITE_KEY_NAMESPACE)


# ============================================================================
# COMPOSITE KEYS
# ============================================================================

def create_composite_key(object_type: str, attributes: Sequence[str]) -> Key:
    """
    Build a composite key from an object type and ordered attributes.

    Raises:
        InvalidKey: empty object type or a component with reserved characters
    """
    _check_component(object_type, "object type")
    if not object_type:
        raise InvalidKey("object type cannot be empty")
    parts = [COMPOSITE_KEY_NAMESPACE, object_type, MIN_UNICODE_RUNE]
    for i, attribute in enumerate(attributes):
        _check_component(attribute, f"attribute {i}")
        parts.append(attribute)
        parts.append(MIN_UNICODE_RUNE)
    return "".join(parts)


def split_composite_key(key: Key) -> Tuple[str, List[str]]:
    """
    Split a composite key back into (object_type, attributes).

    Raises:
        InvalidKey: key is not a well-formed composite key
    """
    if not is_composite_key(key) or not key.endswith(MIN_UNICODE_RUNE) or len(key) < 3:
        raise InvalidKey(f"Not a composite key: {key!r}")
    components = key[1:-1].split(MIN_UNICODE_RUNE)
    object_type, attributes = components[0], components[1:]
    if not object_type:
        raise InvalidKey(f"Composite key has empty object type: {key!r}")
    return object_type, attributes


def partial_key_range(object_type: str, attributes: Sequence[str] = ()) -> Tuple[Key, Key]:
    """
    Return the half-open range [start, end) of composite keys extending a prefix.

    Example:
        start, end = partial_key_range("owner~property", ["alice"])
        # every owner~property key for alice sorts in [start, end)
    """
    start = create_composite_key(object_type, attributes)
    return start, start + MAX_UNICODE_RUNE


# ============================================================================
# INDEX KEYS
# ============================================================================

def type_index_key(doc_type: str, natural_id: str) -> Key:
    """Index entry every record gets: (docType, id)."""
    return create_composite_key(doc_type, [natural_id])


def owner_index_key(owner: str, property_num: str) -> Key:
    return create_composite_key(OWNER_INDEX, [owner, property_num])


def reference_index_key(parent_type: str, parent_id: str, child_id: str) -> Key:
    """Index entry recording that child_id references parent_id."""
    return create_composite_key(REFERENCE_INDEXES[parent_type], [parent_id, child_id])


def index_keys_for(record: Record) -> List[Key]:
    """
    Return every composite key derived from a record.

    Creating a record writes exactly these keys; deleting it removes exactly
    these keys.
    """
    keys = [type_index_key(record.DOC_TYPE, record.key)]
    if isinstance(record, Property):
        keys.append(owner_index_key(record.owner, record.property_num))
    elif isinstance(record, Condition):
        keys.append(reference_index_key(DOC_TYPE_PROPERTY, record.property_num, record.condition_num))
    elif isinstance(record, Contract):
        keys.append(reference_index_key(DOC_TYPE_CONDITION, record.condition_num, record.contract_num))
    return keys
