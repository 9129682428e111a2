"""
Ports: abstract collaborators of the state store (identity, durable records).
"""

from .identity import IdentityProvider
from .store import StateRecordStore

__all__ = ["IdentityProvider", "StateRecordStore"]
