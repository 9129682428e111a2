"""
单元测试：UserStateStore（写穿透 + 首次渲染加载）
"""
import asyncio
import json
import sys
import time
from pathlib import Path

import pytest

# 添加项目根目录到路径
sys.path.insert(0, str(Path(__file__).parent.parent))

from appstate.adapters.identity import StaticIdentity
from appstate.adapters.json_file_store import JsonFileRecordStore
from appstate.app.user_state_store import UserStateStore
from appstate.infra.config import AppStateConfig
from appstate.infra.exceptions import StateStoreError, UnknownFieldError, ValidationError
from appstate.ports.store import StateRecordStore


class _MemoryStore(StateRecordStore):
    def __init__(self, records=None, fail_read=False, fail_write=False):
        self.records = dict(records or {})
        self.fail_read = fail_read
        self.fail_write = fail_write
        self.reads = 0
        self.writes = []

    async def read(self, key):
        self.reads += 1
        if self.fail_read:
            raise StateStoreError("disk on fire", operation="read", key=key)
        return self.records.get(key)

    async def write(self, key, record):
        if self.fail_write:
            raise OSError("read-only file system")
        self.writes.append((key, dict(record)))
        self.records[key] = dict(record)

    def list_keys(self):
        return sorted(self.records)


class _BrokenIdentity:
    def is_authenticated(self):
        raise RuntimeError("auth context not ready")

    def identity_name(self):
        raise RuntimeError("auth context not ready")


EMAIL = "a.b@example.com"
KEY = "a_b_example_com"


def _store(records=None, identity=EMAIL, **kwargs):
    backing = _MemoryStore(records, **kwargs)
    return UserStateStore(StaticIdentity(identity), backing, write_timeout=5.0), backing


class TestSetFlag:
    def test_defaults(self):
        store, _ = _store()
        assert store.can_access_config_page is False
        assert store.snapshot() == {"canAccessConfigPage": False}

    def test_change_notifies_and_persists(self):
        store, backing = _store()
        seen = []
        store.subscribe(lambda s: seen.append(s.can_access_config_page))

        assert store.set_flag("canAccessConfigPage", True) is True
        assert seen == [True]
        assert store.wait_for_pending(timeout=5)
        assert backing.records[KEY] == {"canAccessConfigPage": True}

    def test_same_value_is_a_no_op(self):
        store, backing = _store()
        seen = []
        store.subscribe(lambda s: seen.append(1))

        assert store.set_flag("can_access_config_page", False) is False
        assert seen == []
        assert store.writer.stats.submitted == 0
        assert backing.writes == []

    def test_property_setter(self):
        store, backing = _store()
        store.can_access_config_page = True
        assert store.get_flag("canAccessConfigPage") is True
        assert store.wait_for_pending(timeout=5)
        assert backing.records[KEY]["canAccessConfigPage"] is True

    def test_unknown_field(self):
        store, _ = _store()
        with pytest.raises(UnknownFieldError):
            store.set_flag("isAdmin", True)
        with pytest.raises(UnknownFieldError):
            store.get_flag("isAdmin")

    @pytest.mark.parametrize("value", ["false", 1, 0, None])
    def test_rejects_non_bool_values(self, value):
        store, backing = _store()
        with pytest.raises(ValidationError):
            store.set_flag("canAccessConfigPage", value)
        assert store.can_access_config_page is False
        assert store.writer.stats.submitted == 0
        assert backing.writes == []

    def test_write_failure_is_invisible_to_caller(self):
        store, _ = _store(fail_write=True)
        assert store.set_flag("canAccessConfigPage", True) is True
        assert store.wait_for_pending(timeout=5)
        assert store.can_access_config_page is True
        assert store.writer.stats.failed == 1

    def test_listener_error_does_not_break_mutation(self):
        store, backing = _store()

        def bad_listener(_):
            raise ValueError("render failed")

        store.subscribe(bad_listener)
        store.set_flag("canAccessConfigPage", True)
        assert store.can_access_config_page is True
        assert store.wait_for_pending(timeout=5)
        assert KEY in backing.records

    def test_unsubscribe(self):
        store, _ = _store()
        seen = []
        unsubscribe = store.subscribe(lambda s: seen.append(1))
        unsubscribe()
        store.set_flag("canAccessConfigPage", True)
        assert seen == []


class TestSaveAndLoad:
    def test_round_trip(self):
        store, backing = _store()
        for value in (True, False, True):
            store.set_flag("canAccessConfigPage", value)
        assert store.wait_for_pending(timeout=5)

        fresh = UserStateStore(StaticIdentity(EMAIL), backing)
        assert asyncio.run(fresh.load()) is True
        assert fresh.snapshot() == store.snapshot()

    def test_save_returns_status(self):
        store, backing = _store()
        store.state.can_access_config_page = True
        assert asyncio.run(store.save()) is True
        assert backing.records[KEY] == {"canAccessConfigPage": True}

        failing, _ = _store(fail_write=True)
        assert asyncio.run(failing.save()) is False

    def test_load_subset_keeps_defaults(self):
        store, _ = _store({KEY: {}})
        seen = []
        store.subscribe(lambda s: seen.append(1))
        assert asyncio.run(store.load()) is True
        assert store.can_access_config_page is False
        assert seen == [1]

    def test_load_ignores_unknown_and_mistyped_fields(self):
        store, _ = _store({KEY: {"canAccessConfigPage": "yes", "theme": "dark"}})
        assert asyncio.run(store.load()) is True
        assert store.can_access_config_page is False
        assert not hasattr(store.state, "theme")

    def test_load_without_record(self):
        store, _ = _store()
        seen = []
        store.subscribe(lambda s: seen.append(1))
        assert asyncio.run(store.load()) is False
        assert store.snapshot() == {"canAccessConfigPage": False}
        assert seen == [1]

    def test_load_failure_keeps_defaults(self):
        store, _ = _store({KEY: {"canAccessConfigPage": True}}, fail_read=True)
        assert asyncio.run(store.load()) is False
        assert store.can_access_config_page is False

    def test_first_render_loads_once(self):
        store, backing = _store({KEY: {"canAccessConfigPage": True}})
        assert asyncio.run(store.on_first_render()) is True
        assert asyncio.run(store.on_first_render()) is False
        assert backing.reads == 1
        assert store.can_access_config_page is True
        assert store.first_render_done


class TestAnonymous:
    @pytest.mark.parametrize("identity", [None, "", "   "])
    def test_save_and_load_are_no_ops(self, identity):
        store, backing = _store({KEY: {"canAccessConfigPage": True}}, identity=identity)
        assert store.identity_key() is None
        assert asyncio.run(store.load()) is False
        assert asyncio.run(store.save()) is False
        assert backing.reads == 0
        assert store.can_access_config_page is False

    def test_toggle_stays_in_memory(self):
        store, backing = _store(identity=None)
        assert store.set_flag("canAccessConfigPage", True) is True
        assert store.can_access_config_page is True
        assert store.wait_for_pending(timeout=1)
        assert store.writer.stats.submitted == 0
        assert backing.writes == []

    def test_broken_identity_degrades_to_anonymous(self):
        backing = _MemoryStore()
        store = UserStateStore(_BrokenIdentity(), backing)
        assert store.identity_key() is None
        assert asyncio.run(store.load()) is False
        store.set_flag("canAccessConfigPage", True)
        assert backing.writes == []


class TestFileScenario:
    def test_restart_reloads_flag(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = AppStateConfig()

        store = UserStateStore.from_config(config, StaticIdentity(EMAIL))
        store.set_flag("canAccessConfigPage", True)
        assert store.wait_for_pending(timeout=5)

        record_path = tmp_path / "Data" / "TempAppState" / f"{KEY}.json"
        assert record_path.exists()
        assert json.loads(record_path.read_text(encoding="utf-8")) == {"canAccessConfigPage": True}

        restarted = UserStateStore(StaticIdentity(EMAIL), JsonFileRecordStore.from_config(config))
        assert restarted.can_access_config_page is False
        assert asyncio.run(restarted.on_first_render()) is True
        assert restarted.can_access_config_page is True

    def test_corrupt_record_means_defaults(self, tmp_path):
        records = JsonFileRecordStore(tmp_path / "TempAppState")
        records.root.mkdir(parents=True)
        records.path_for(KEY).write_text("{not json", encoding="utf-8")

        store = UserStateStore(StaticIdentity(EMAIL), records)
        assert asyncio.run(store.load()) is False
        assert store.can_access_config_page is False

    def test_slow_read_does_not_block_first_render(self, tmp_path):
        class _SlowRecords(JsonFileRecordStore):
            def _read_sync(self, key):
                time.sleep(2)
                return {"canAccessConfigPage": True}

        store = UserStateStore(StaticIdentity(EMAIL), _SlowRecords(tmp_path, read_timeout=0.1))
        started = time.monotonic()
        assert asyncio.run(store.on_first_render()) is False
        assert time.monotonic() - started < 1.0
        assert store.can_access_config_page is False


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
