"""
JSON file implementation of StateRecordStore.

Layout: ``<data_dir>/TempAppState/<identity_key>.json``
"""
from __future__ import annotations

import asyncio
import os
import tempfile
import threading
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from appstate.infra.config import AppStateConfig
from appstate.infra.exceptions import StateStoreError, StoreTimeoutError, handle_async_errors
from appstate.infra.logging import get_logger
from appstate.infra.paths import state_dir
from appstate.infra.serialization import dump_record, parse_record
from appstate.ports.store import StateRecordStore

logger = get_logger(__name__)

RECORD_SUFFIX = ".json"


def _run_detached(func: Callable[..., Any], *args: Any) -> Future:
    """Run ``func`` on a daemon thread the event loop never joins.

    asyncio.run() waits for its default executor on shutdown, so a read that
    outlives its timeout there would still block the page.
    """
    future: Future = Future()

    def _target() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(func(*args))
        except BaseException as e:  # noqa: BLE001  handed to the awaiting side
            future.set_exception(e)

    threading.Thread(target=_target, name="state-reader", daemon=True).start()
    return future


class JsonFileRecordStore(StateRecordStore):
    def __init__(self, root: Path, *, read_timeout: Optional[float] = None):
        self.root = Path(root)
        self.read_timeout = read_timeout

    @classmethod
    def from_config(cls, config: AppStateConfig) -> "JsonFileRecordStore":
        return cls(state_dir(config), read_timeout=config.read_timeout_seconds)

    def path_for(self, key: str) -> Path:
        if not key or os.sep in key or (os.altsep and os.altsep in key) or key in (".", ".."):
            raise StateStoreError(f"invalid identity key: {key!r}", operation="path", key=key)
        return self.root / f"{key}{RECORD_SUFFIX}"

    # ---- sync bodies (run in a worker thread) ----

    def _read_sync(self, key: str) -> Optional[Dict[str, Any]]:
        path = self.path_for(key)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StateStoreError(f"read failed: {e}", operation="read", key=key) from e
        return parse_record(text, key=key)

    def _write_sync(self, key: str, record: Dict[str, Any]) -> None:
        path = self.path_for(key)
        payload = dump_record(record, key=key)
        tmp_name = None
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            # write-then-rename so readers never see a partial record
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.root)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise StateStoreError(f"write failed: {e}", operation="write", key=key) from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.debug(f"could not remove temp file {tmp_name}")

    # ---- port ----

    @handle_async_errors("read")
    async def read(self, key: str) -> Optional[Dict[str, Any]]:
        job = asyncio.wrap_future(_run_detached(self._read_sync, key))
        if self.read_timeout is None:
            return await job
        try:
            return await asyncio.wait_for(job, timeout=self.read_timeout)
        except asyncio.TimeoutError as e:
            raise StoreTimeoutError(
                "read timed out", operation="read", key=key, timeout=self.read_timeout
            ) from e

    @handle_async_errors("write")
    async def write(self, key: str, record: Dict[str, Any]) -> None:
        await asyncio.to_thread(self._write_sync, key, record)

    def list_keys(self) -> List[str]:
        if not self.root.exists():
            return []
        return sorted(p.stem for p in self.root.glob(f"*{RECORD_SUFFIX}") if p.is_file())

    def read_all(self) -> Dict[str, Optional[Dict[str, Any]]]:
        """Blocking read of every record; unreadable ones map to None."""
        out: Dict[str, Optional[Dict[str, Any]]] = {}
        for key in self.list_keys():
            try:
                out[key] = self._read_sync(key)
            except StateStoreError as e:
                logger.warning(f"skip unreadable record {key}: {e.message}")
                out[key] = None
        return out
