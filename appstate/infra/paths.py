"""
基础设施层 - 路径

Data/ 相对于当前工作目录解析（与 streamlit run 的启动目录一致）；绝对路径原样使用。
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .config import AppStateConfig, get_config


def data_dir(config: Optional[AppStateConfig] = None) -> Path:
    config = config or get_config()
    return Path(config.data_dir)


def state_dir(config: Optional[AppStateConfig] = None) -> Path:
    """Data/TempAppState"""
    config = config or get_config()
    return data_dir(config) / config.state_folder


def db_path(config: Optional[AppStateConfig] = None) -> Path:
    config = config or get_config()
    return data_dir(config) / config.db_file


def log_file(config: Optional[AppStateConfig] = None) -> Optional[Path]:
    config = config or get_config()
    if not config.log_file:
        return None
    p = Path(config.log_file)
    return p if p.is_absolute() else data_dir(config) / "logs" / p
