"""
Store port: durable per-identity state records.

Implementations raise StateStoreError (or a subclass) on failure; callers
decide whether to swallow.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class StateRecordStore(ABC):
    """One JSON-shaped record per identity key."""

    @abstractmethod
    async def read(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the record for ``key`` or None when no record exists"""
        ...

    @abstractmethod
    async def write(self, key: str, record: Dict[str, Any]) -> None:
        """Create or replace the record for ``key``"""
        ...

    @abstractmethod
    def list_keys(self) -> List[str]:
        """Identity keys that currently have a record"""
        ...
