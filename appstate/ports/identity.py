"""
Identity port: who is the current caller.
"""
from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class IdentityProvider(Protocol):
    """Authentication collaborator consumed by UserStateStore."""

    def is_authenticated(self) -> bool:
        """True when the current caller is signed in"""
        ...

    def identity_name(self) -> Optional[str]:
        """Stable identity string (usually the email), None if absent"""
        ...
