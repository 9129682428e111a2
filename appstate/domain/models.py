"""
Domain models: the per-user state record and identity key rules. No IO here.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class StateField:
    """One persisted member of UserState."""
    attr: str          # python attribute name
    record_name: str   # name in the durable JSON record
    value_type: type


# Explicit field table. Adding a flag means adding a row here and an attribute
# (with its default) on UserState below.
STATE_FIELDS: Tuple[StateField, ...] = (
    StateField(
        attr="can_access_config_page",
        record_name="canAccessConfigPage",
        value_type=bool,
    ),
)

_BY_NAME: Dict[str, StateField] = {}
for _f in STATE_FIELDS:
    _BY_NAME[_f.attr] = _f
    _BY_NAME[_f.record_name] = _f


def lookup_field(name: str) -> Optional[StateField]:
    """Resolve either the attribute name or the record name."""
    return _BY_NAME.get(name)


@dataclass
class UserState:
    can_access_config_page: bool = False

    def to_record(self) -> Dict[str, Any]:
        return {f.record_name: getattr(self, f.attr) for f in STATE_FIELDS}

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "UserState":
        state = cls()
        state.merge_record(record)
        return state

    def merge_record(self, record: Dict[str, Any]) -> Tuple[list, list]:
        """
        Copy recognised fields from ``record`` one by one.

        Missing fields keep their current value. Returns ``(applied, rejected)``
        record names; a field is rejected when its value has the wrong type.
        """
        applied, rejected = [], []
        for f in STATE_FIELDS:
            if f.record_name not in record:
                continue
            value = record[f.record_name]
            # bool is a subclass of int; keep the check exact for flags
            if type(value) is not f.value_type:
                rejected.append(f.record_name)
                continue
            setattr(self, f.attr, value)
            applied.append(f.record_name)
        return applied, rejected


def normalize_identity_key(identity: Optional[str]) -> Optional[str]:
    """
    ``"a.b@example.com"`` -> ``"a_b_example_com"``.

    Returns None for a missing or blank identity.
    """
    if identity is None:
        return None
    raw = str(identity).strip()
    if not raw:
        return None
    return raw.replace(".", "_").replace("@", "_")
