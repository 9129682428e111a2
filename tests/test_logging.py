"""
单元测试：日志管理器
"""
import logging
import sys
from pathlib import Path

import pytest

# 添加项目根目录到路径
sys.path.insert(0, str(Path(__file__).parent.parent))

from appstate.infra.logging import LoggerManager, get_logger, set_log_level


class TestLoggerManager:

    @pytest.fixture(autouse=True)
    def restore_root_level(self):
        level = logging.getLogger().level
        yield
        LoggerManager.reset()
        logging.getLogger().setLevel(level)

    def test_get_logger_is_cached(self):
        assert get_logger("appstate.test") is get_logger("appstate.test")

    def test_set_level_ignores_unknown(self):
        set_log_level("debug")
        assert logging.getLogger().level == logging.DEBUG
        set_log_level("chatty")
        assert logging.getLogger().level == logging.DEBUG

    def test_configure_writes_log_file(self, tmp_path):
        log_path = tmp_path / "logs" / "appstate.log"
        LoggerManager.configure("INFO", log_path)
        get_logger("appstate.test").warning("save failed for a_b_example_com")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "save failed for a_b_example_com" in log_path.read_text(encoding="utf-8")


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
