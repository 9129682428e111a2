"""
Application layer: the per-user state store and its background writer.
"""

from .user_state_store import UserStateStore, record_sink
from .write_queue import KeyedWriteQueue, WriteStats

__all__ = ["KeyedWriteQueue", "UserStateStore", "WriteStats", "record_sink"]
