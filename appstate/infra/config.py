"""
基础设施层 - 配置模块

config/app_state.yaml 提供默认值，环境变量（可由 config/.env.local 注入）覆盖文件值。
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigError
from .logging import get_logger

logger = get_logger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DEFAULT_CONFIG_FILE = PROJECT_ROOT / "config" / "app_state.yaml"
DEFAULT_ENV_FILE = PROJECT_ROOT / "config" / ".env.local"

# env var -> (config field, parser)
_ENV_OVERRIDES = {
    "APP_STATE_DATA_DIR": ("data_dir", str),
    "APP_STATE_FOLDER": ("state_folder", str),
    "APP_STATE_WRITE_TIMEOUT": ("write_timeout_seconds", float),
    "APP_STATE_READ_TIMEOUT": ("read_timeout_seconds", float),
    "APP_STATE_LOG_LEVEL": ("log_level", str),
    "APP_STATE_LOG_FILE": ("log_file", str),
    "APP_STATE_DB_FILE": ("db_file", str),
}


@dataclass(frozen=True)
class AppStateConfig:
    data_dir: str = "Data"
    state_folder: str = "TempAppState"
    write_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 5.0
    log_level: str = "INFO"
    log_file: Optional[str] = None
    db_file: str = "app.sqlite"

    def validate(self) -> "AppStateConfig":
        if not str(self.data_dir).strip():
            raise ConfigError("data_dir must not be empty", config_key="data_dir")
        if not str(self.state_folder).strip():
            raise ConfigError("state_folder must not be empty", config_key="state_folder")
        for key in ("write_timeout_seconds", "read_timeout_seconds"):
            if getattr(self, key) <= 0:
                raise ConfigError(f"{key} must be positive", config_key=key, value=getattr(self, key))
        return self


class ConfigManager:
    """读取并合并 YAML + 环境变量配置"""

    def __init__(self, config_file: Optional[Path] = None, env_file: Optional[Path] = None):
        self.config_file = Path(config_file) if config_file else DEFAULT_CONFIG_FILE
        self.env_file = Path(env_file) if env_file else DEFAULT_ENV_FILE
        self._cache: Optional[AppStateConfig] = None

    def _load_file(self) -> Dict[str, Any]:
        if not self.config_file.exists():
            return {}
        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"配置文件解析失败: {e}", config_key=str(self.config_file)) from e
        if not isinstance(raw, dict):
            raise ConfigError("配置文件顶层必须是映射", config_key=str(self.config_file))
        section = raw.get("app_state", raw)
        return section if isinstance(section, dict) else {}

    def _env_values(self) -> Dict[str, Any]:
        if self.env_file.exists():
            load_dotenv(self.env_file, override=False)
        values: Dict[str, Any] = {}
        for env_name, (field_name, parser) in _ENV_OVERRIDES.items():
            raw = os.getenv(env_name)
            if raw is None or raw == "":
                continue
            try:
                values[field_name] = parser(raw)
            except ValueError as e:
                raise ConfigError(f"环境变量 {env_name} 无效: {raw!r}", config_key=env_name) from e
        return values

    def load(self, reload: bool = False) -> AppStateConfig:
        if self._cache is not None and not reload:
            return self._cache

        known = set(AppStateConfig.__dataclass_fields__)
        raw_values = self._load_file()
        file_values = {k: v for k, v in raw_values.items() if k in known}
        unknown = set(raw_values) - known
        if unknown:
            logger.warning(f"忽略未知配置项: {sorted(unknown)}")

        try:
            config = replace(AppStateConfig(), **file_values)
            for key in ("write_timeout_seconds", "read_timeout_seconds"):
                config = replace(config, **{key: float(getattr(config, key))})
        except (TypeError, ValueError) as e:
            raise ConfigError(f"配置值类型错误: {e}") from e

        config = replace(config, **self._env_values()).validate()
        self._cache = config
        return config

    def get_config_value(self, key: str, default: Any = None) -> Any:
        return getattr(self.load(), key, default)


_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    global _manager
    if _manager is None:
        _manager = ConfigManager()
    return _manager


def get_config() -> AppStateConfig:
    return get_config_manager().load()
