"""
基础设施层 - 日志模块

所有模块通过 get_logger(__name__) 取得 logger；持久化失败即使被吞掉也必须在这里留痕。
"""

import logging
import sys
from pathlib import Path
from typing import Dict, Optional

_CONSOLE_FORMAT = '%(asctime)s [%(levelname)s] [%(name)s] %(message)s'
_FILE_FORMAT = '%(asctime)s [%(levelname)s] [%(name)s:%(lineno)d] %(message)s'
_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL,
}


class LoggerManager:
    """统一日志管理器"""

    _loggers: Dict[str, logging.Logger] = {}
    _configured: bool = False
    _log_file: Optional[Path] = None
    _file_handler: Optional[logging.Handler] = None

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """
        获取或创建配置好的logger

        Args:
            name: logger名称，通常使用 __name__
        """
        if not cls._configured:
            cls._configure_logging()

        if name not in cls._loggers:
            cls._loggers[name] = logging.getLogger(name)

        return cls._loggers[name]

    @classmethod
    def _configure_logging(cls) -> None:
        if cls._configured:
            return

        root_logger = logging.getLogger()
        root_logger.setLevel(logging.INFO)

        # 宿主（streamlit / pytest）已经配置过处理器时不再重复添加
        if root_logger.handlers:
            cls._configured = True
            return

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT))
        root_logger.addHandler(console_handler)

        if cls._log_file:
            cls._attach_file_handler(cls._log_file)

        cls._configured = True

    @classmethod
    def _attach_file_handler(cls, log_file: Path) -> None:
        root_logger = logging.getLogger()
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(log_file, encoding='utf-8')
            handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT))
            if cls._file_handler is not None:
                root_logger.removeHandler(cls._file_handler)
                cls._file_handler.close()
            root_logger.addHandler(handler)
            cls._file_handler = handler
        except OSError as e:
            root_logger.warning(f"文件日志配置失败: {e}")

    @classmethod
    def set_log_file(cls, log_file: Path) -> None:
        """设置日志文件路径"""
        cls._log_file = log_file
        if cls._configured:
            cls._attach_file_handler(log_file)

    @classmethod
    def set_level(cls, level: str) -> None:
        """设置全局日志级别，未知级别忽略"""
        resolved = _LEVELS.get(str(level).upper())
        if resolved is not None:
            logging.getLogger().setLevel(resolved)

    @classmethod
    def configure(cls, level: str = 'INFO', log_file: Optional[Path] = None) -> None:
        """按 AppStateConfig 一次性完成日志配置"""
        if log_file is not None:
            cls._log_file = log_file
        cls._configure_logging()
        if log_file is not None and cls._file_handler is None:
            cls._attach_file_handler(log_file)
        cls.set_level(level)

    @classmethod
    def reset(cls) -> None:
        """重置日志配置（测试用）"""
        if cls._file_handler is not None:
            logging.getLogger().removeHandler(cls._file_handler)
            cls._file_handler.close()
        cls._file_handler = None
        cls._loggers.clear()
        cls._configured = False
        cls._log_file = None


def get_logger(name: str) -> logging.Logger:
    """获取日志器的快捷方法"""
    return LoggerManager.get_logger(name)


def set_log_level(level: str) -> None:
    """设置日志级别的快捷方法"""
    LoggerManager.set_level(level)
