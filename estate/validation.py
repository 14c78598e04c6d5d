"""
validation.py - Argument Validation

Every invocation's positional arguments are checked here, in full, before any
lifecycle operation reads or writes state. A failure raises ValidationError
naming the argument position and the reason; the ledger is never touched.

Field kinds:
    TEXT        non-empty after trimming; normalized (trimmed, lower-cased)
    IDENTIFIER  as TEXT, and free of reserved key characters
    INTEGER     ASCII decimal digits with an optional sign, non-negative;
                converted to int
    RAW         any string, passed through unchanged (range bounds, which
                may legitimately be empty)
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
import re
from typing import Any, Dict, List, Sequence, Tuple

from .core import ValidationError, ValidationReason, normalize
from .keys import has_reserved_characters


_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")


class FieldKind(Enum):
    TEXT = "text"
    IDENTIFIER = "identifier"
    INTEGER = "integer"
    RAW = "raw"


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """Name and kind of one positional argument."""
    name: str
    kind: FieldKind = FieldKind.TEXT


def _check_field(position: int, value: Any, spec: FieldSpec) -> Any:
    label = f"argument {position + 1} ({spec.name})"
    if not isinstance(value, str):
        raise ValidationError(
            ValidationReason.NOT_A_STRING,
            f"{label} must be a string, got {type(value).__name__}",
            position,
        )
    if spec.kind is FieldKind.RAW:
        return value

    text = normalize(value)
    if not text:
        raise ValidationError(
            ValidationReason.EMPTY_FIELD,
            f"{label} must be a non-empty string",
            position,
        )

    if spec.kind is FieldKind.INTEGER:
        if not _INTEGER_PATTERN.fullmatch(text):
            raise ValidationError(
                ValidationReason.NOT_NUMERIC,
                f"{label} must be a numeric string, got {value!r}",
                position,
            )
        number = int(text)
        if number < 0:
            raise ValidationError(
                ValidationReason.NEGATIVE_NUMBER,
                f"{label} must be non-negative, got {number}",
                position,
            )
        return number

    if spec.kind is FieldKind.IDENTIFIER and has_reserved_characters(text):
        raise ValidationError(
            ValidationReason.INVALID_KEY,
            f"{label} contains a reserved key character",
            position,
        )
    return text


def validate(args: Sequence[Any], arity: int, specs: Sequence[FieldSpec]) -> List[Any]:
    """
    Validate and normalize positional arguments.

    Args:
        args: Arguments as received from the invocation
        arity: Exact number of arguments required
        specs: One FieldSpec per position

    Returns:
        Normalized values, one per argument (strings, or int for INTEGER fields)

    Raises:
        ValidationError: on the first failing check; position is None for
                         arity failures and the zero-based index otherwise
    """
    if len(specs) != arity:
        raise ValueError(f"{len(specs)} field specs given for arity {arity}")
    if len(args) != arity:
        raise ValidationError(
            ValidationReason.WRONG_ARITY,
            f"Incorrect number of arguments. Expecting {arity}, got {len(args)}",
        )
    return [_check_field(i, value, spec) for i, (value, spec) in enumerate(zip(args, specs))]


# ============================================================================
# ARGUMENT SPECS PER FUNCTION
# ============================================================================

_ID = FieldKind.IDENTIFIER
_TEXT = FieldKind.TEXT

ARGUMENT_SPECS: Dict[str, Tuple[FieldSpec, ...]] = {
    "initProperty": (
        FieldSpec("propertyNum", _ID),
        FieldSpec("name", _TEXT),
        FieldSpec("address", _TEXT),
        FieldSpec("owner", _ID),
    ),
    "initCondition": (
        FieldSpec("conditionNum", _ID),
        FieldSpec("propertyNum", _ID),
        FieldSpec("seller", _TEXT),
        FieldSpec("buyer", _TEXT),
        FieldSpec("deposit", FieldKind.INTEGER),
    ),
    "createContract": (
        FieldSpec("contractNum", _ID),
        FieldSpec("conditionNum", _ID),
    ),
    "transferProperty": (
        FieldSpec("propertyNum", _ID),
        FieldSpec("newOwner", _ID),
    ),
    "transferPropertiesBasedOnOwner": (
        FieldSpec("owner", _ID),
        FieldSpec("newOwner", _ID),
    ),
    "readValue": (FieldSpec("key", _ID),),
    "readProperty": (FieldSpec("propertyNum", _ID),),
    "readCondition": (FieldSpec("conditionNum", _ID),),
    "readContract": (FieldSpec("contractNum", _ID),),
    "deleteProperty": (FieldSpec("propertyNum", _ID),),
    "deleteCondition": (FieldSpec("conditionNum", _ID),),
    "deleteContract": (FieldSpec("contractNum", _ID),),
    "getRecordsByRange": (
        FieldSpec("startKey", FieldKind.RAW),
        FieldSpec("endKey", FieldKind.RAW),
    ),
    "queryPropertiesByOwner": (FieldSpec("owner", _ID),),
    "getHistoryForKey": (FieldSpec("key", _ID),),
}


def validate_invocation(function: str, args: Sequence[Any]) -> List[Any]:
    """Validate args against the registered spec for function."""
    specs = ARGUMENT_SPECS[function]
    return validate(args, len(specs), specs)
