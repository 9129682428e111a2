"""Domain layer: pure data structures, no IO."""

from .models import (
    STATE_FIELDS,
    StateField,
    UserState,
    lookup_field,
    normalize_identity_key,
)

__all__ = [
    "STATE_FIELDS",
    "StateField",
    "UserState",
    "lookup_field",
    "normalize_identity_key",
]
