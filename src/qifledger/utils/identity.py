"""Content-addressed identifiers for imported entities."""

import hashlib
import json
from datetime import date
from typing import Any

ID_PREFIXES = {
    "Account": "acc_",
    "Security": "sec_",
    "Price": "prc_",
    "Transaction": "txn_",
    "Split": "spl_",
    "Lot": "lot_",
    "LotAllocation": "la_",
}

HASH_LENGTH = 16


def _to_json_value(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    return value


def hash_fields(fields: dict[str, Any]) -> str:
    """Hash a mapping of key fields into a short hex digest.

    Keys are sorted and dates rendered as ISO strings, so the same fields always
    yield the same digest regardless of insertion order.

    Args:
        fields: Field name to value mapping

    Returns:
        Hex digest truncated to HASH_LENGTH characters
    """
    canonical = json.dumps(
        {key: _to_json_value(value) for key, value in fields.items()},
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:HASH_LENGTH]


def stable_id(entity_type: str, fields: dict[str, Any]) -> str:
    """Build a prefixed ID such as 'lot_3f2a...' for an entity type.

    Raises:
        ValueError: If the entity type has no registered prefix
    """
    prefix = ID_PREFIXES.get(entity_type)
    if prefix is None:
        raise ValueError(f"Unknown entity type: {entity_type}")
    return prefix + hash_fields(fields)
