"""
基础设施层：日志、异常、配置、路径、序列化。
"""

from .exceptions import (
    AppStateException,
    ConfigError,
    ErrorHandler,
    IdentityError,
    StateSerializationError,
    StateStoreError,
    StoreTimeoutError,
    UnknownFieldError,
    ValidationError,
)
from .logging import LoggerManager, get_logger, set_log_level

__all__ = [
    "AppStateException",
    "ConfigError",
    "ErrorHandler",
    "IdentityError",
    "LoggerManager",
    "StateSerializationError",
    "StateStoreError",
    "StoreTimeoutError",
    "UnknownFieldError",
    "ValidationError",
    "get_logger",
    "set_log_level",
]
