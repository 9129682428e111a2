"""
单元测试：核心配置模块
"""
import os
import sys
from pathlib import Path

import pytest

# 添加项目根目录到路径
sys.path.insert(0, str(Path(__file__).parent.parent))

from appstate.infra.config import AppStateConfig, ConfigManager
from appstate.infra.exceptions import ConfigError
from appstate.infra.paths import db_path, log_file, state_dir

_ENV_NAMES = [
    "APP_STATE_DATA_DIR", "APP_STATE_FOLDER", "APP_STATE_WRITE_TIMEOUT", "APP_STATE_READ_TIMEOUT",
    "APP_STATE_LOG_LEVEL", "APP_STATE_LOG_FILE", "APP_STATE_DB_FILE",
]


class TestConfigManager:
    """配置管理器测试类"""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in _ENV_NAMES:
            monkeypatch.delenv(name, raising=False)

    @pytest.fixture
    def manager(self, tmp_path):
        return ConfigManager(config_file=tmp_path / "app_state.yaml", env_file=tmp_path / ".env.local")

    def test_defaults_without_files(self, manager):
        assert manager.load() == AppStateConfig()

    def test_project_config_file(self):
        config = ConfigManager(env_file=Path("/nonexistent/.env")).load()
        assert config.data_dir == "Data"
        assert config.state_folder == "TempAppState"

    def test_yaml_values(self, manager, tmp_path):
        (tmp_path / "app_state.yaml").write_text(
            "app_state:\n  data_dir: /srv/state\n  write_timeout_seconds: 2\n  bogus: 1\n",
            encoding="utf-8",
        )
        config = manager.load()
        assert config.data_dir == "/srv/state"
        assert config.write_timeout_seconds == 2.0
        assert isinstance(config.write_timeout_seconds, float)

    def test_env_overrides_file(self, manager, tmp_path, monkeypatch):
        (tmp_path / "app_state.yaml").write_text("data_dir: from_file\n", encoding="utf-8")
        monkeypatch.setenv("APP_STATE_DATA_DIR", "from_env")
        monkeypatch.setenv("APP_STATE_READ_TIMEOUT", "1.5")
        config = manager.load()
        assert config.data_dir == "from_env"
        assert config.read_timeout_seconds == 1.5

    def test_dotenv_file(self, manager, tmp_path):
        (tmp_path / ".env.local").write_text("APP_STATE_LOG_LEVEL=DEBUG\n", encoding="utf-8")
        try:
            assert manager.load().log_level == "DEBUG"
        finally:
            os.environ.pop("APP_STATE_LOG_LEVEL", None)

    def test_invalid_env_number(self, manager, monkeypatch):
        monkeypatch.setenv("APP_STATE_WRITE_TIMEOUT", "soon")
        with pytest.raises(ConfigError):
            manager.load()

    def test_non_positive_timeout(self, manager, tmp_path):
        (tmp_path / "app_state.yaml").write_text("read_timeout_seconds: 0\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            manager.load()

    def test_top_level_must_be_mapping(self, manager, tmp_path):
        (tmp_path / "app_state.yaml").write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            manager.load()

    def test_config_caching(self, manager, tmp_path):
        first = manager.load()
        (tmp_path / "app_state.yaml").write_text("data_dir: changed\n", encoding="utf-8")
        assert manager.load() is first
        assert manager.load(reload=True).data_dir == "changed"
        assert manager.get_config_value("data_dir") == "changed"


class TestPaths:
    def test_paths(self):
        config = AppStateConfig(data_dir="Data", log_file="appstate.log")
        assert state_dir(config) == Path("Data") / "TempAppState"
        assert db_path(config) == Path("Data") / "app.sqlite"
        assert log_file(config) == Path("Data") / "logs" / "appstate.log"
        assert log_file(AppStateConfig()) is None


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
