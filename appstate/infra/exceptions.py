"""
基础设施层 - 异常模块

持久化相关异常只在 adapter 层抛出；UserStateStore 负责把它们记录日志后吞掉。
"""

from functools import wraps
from typing import Any, Dict, Optional


class AppStateException(Exception):
    """应用状态基础异常类"""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or "UNKNOWN_ERROR"
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }


class ConfigError(AppStateException):
    """配置相关错误"""
    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs) -> None:
        super().__init__(message, "CONFIG_ERROR", {"config_key": config_key, **kwargs})


class ValidationError(AppStateException):
    """数据验证错误"""
    def __init__(self, message: str, field: Optional[str] = None, value: Any = None, **kwargs) -> None:
        super().__init__(message, "VALIDATION_ERROR", {"field": field, "value": value, **kwargs})


class UnknownFieldError(ValidationError):
    """状态字段名不在已知字段表中"""
    def __init__(self, field: str) -> None:
        super().__init__(f"Unknown state field: {field}", field=field)
        self.error_code = "UNKNOWN_FIELD"


class IdentityError(AppStateException):
    """身份解析错误"""
    def __init__(self, message: str, provider: Optional[str] = None, **kwargs) -> None:
        super().__init__(message, "IDENTITY_ERROR", {"provider": provider, **kwargs})


class StateStoreError(AppStateException):
    """存储操作错误"""
    def __init__(self, message: str, operation: Optional[str] = None, key: Optional[str] = None, **kwargs) -> None:
        super().__init__(message, "STORE_ERROR", {"operation": operation, "key": key, **kwargs})


class StateSerializationError(StateStoreError):
    """记录序列化 / 反序列化错误"""
    def __init__(self, message: str, key: Optional[str] = None, **kwargs) -> None:
        super().__init__(message, operation="serialize", key=key, **kwargs)
        self.error_code = "SERIALIZATION_ERROR"


class StoreTimeoutError(StateStoreError):
    """存储读写超时"""
    def __init__(self, message: str, operation: Optional[str] = None, key: Optional[str] = None,
                 timeout: Optional[float] = None, **kwargs) -> None:
        super().__init__(message, operation=operation, key=key, timeout=timeout, **kwargs)
        self.error_code = "STORE_TIMEOUT"


# =============================================================================
# 错误处理装饰器
# =============================================================================

def handle_async_errors(operation: str, logger=None):
    """
    异步存储操作的统一错误处理：
    AppStateException 原样抛出，未知异常包装为 StateStoreError。
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            _logger = logger
            if _logger is None:
                from .logging import get_logger
                _logger = get_logger(__name__)
            try:
                return await func(*args, **kwargs)
            except AppStateException:
                raise
            except Exception as e:
                _logger.debug(f"{operation} 未处理异常: {e}", exc_info=True)
                raise StateStoreError(f"{operation} failed: {e}", operation=operation) from e
        return wrapper
    return decorator


class ErrorHandler:
    """错误处理工具类"""

    def __init__(self, logger=None):
        if logger is None:
            from .logging import get_logger
            logger = get_logger(__name__)
        self.logger = logger

    def handle_and_log(self, error: BaseException, context: Optional[Dict[str, Any]] = None) -> None:
        """
        记录错误但不抛出

        Args:
            error: 异常对象
            context: 错误上下文信息（identity key、操作名等）
        """
        context = context or {}
        where = ", ".join(f"{k}={v}" for k, v in context.items())

        if isinstance(error, AppStateException):
            self.logger.warning(f"业务异常 [{error.error_code}]: {error.message} ({where})")
        else:
            self.logger.error(f"系统异常: {error} ({where})", exc_info=error)
