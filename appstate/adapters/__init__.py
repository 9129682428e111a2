"""Adapters: concrete implementations of the ports."""

from .identity import ChainedIdentity, SessionIdentity, StaticIdentity, StreamlitUserIdentity
from .json_file_store import JsonFileRecordStore

__all__ = [
    "ChainedIdentity",
    "JsonFileRecordStore",
    "SessionIdentity",
    "StaticIdentity",
    "StreamlitUserIdentity",
]
