"""Identifier validation.

Every identifier reaching the engine is re-validated here even though the
HTTP layer already checked it; malformed input is a rejection, not a crash.
"""

import uuid

from src.mk_common.errors import InvalidIdentifierError


def is_valid_uuid(value: object) -> bool:
    if not isinstance(value, str):
        return False
    try:
        parsed = uuid.UUID(value)
    except ValueError:
        return False
    # uuid.UUID also accepts braces/urn forms; only the canonical form is allowed
    return str(parsed) == value.lower()


def ensure_uuid(value: object, field: str) -> str:
    """Return the canonical lowercase form or raise InvalidIdentifierError."""
    if not is_valid_uuid(value):
        raise InvalidIdentifierError(field)
    return str(value).lower()
