"""Per-identity background writer.

``submit`` never blocks and never raises. For each identity key there is at
most one write in flight and one pending snapshot; a newer snapshot replaces
the pending one, so rapid toggles collapse into "latest state wins" and two
writes for the same key never overlap.

Background threads MUST NOT touch st.session_state; they only see the
snapshot handed to ``submit``.
"""
from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from appstate.infra.exceptions import ErrorHandler, StoreTimeoutError
from appstate.infra.logging import get_logger

logger = get_logger(__name__)

WriteSink = Callable[[str, Dict[str, Any]], Awaitable[Any]]


@dataclass
class WriteStats:
    submitted: int = 0
    superseded: int = 0
    completed: int = 0
    failed: int = 0


class KeyedWriteQueue:
    def __init__(self, sink: WriteSink, *, timeout: Optional[float] = None, name: str = "state-writer"):
        self._sink = sink
        self.timeout = timeout
        self.name = name
        self.stats = WriteStats()
        self._errors = ErrorHandler(logger)

        self._cond = threading.Condition()
        self._pending: Dict[str, Dict[str, Any]] = {}
        self._active: Dict[str, threading.Thread] = {}

    def submit(self, key: str, record: Dict[str, Any]) -> None:
        with self._cond:
            self.stats.submitted += 1
            if key in self._pending:
                self.stats.superseded += 1
                logger.debug(f"superseding pending write for {key}")
            self._pending[key] = dict(record)

            if key in self._active:
                return
            thread = threading.Thread(
                target=self._drain,
                args=(key,),
                name=f"{self.name}-{key}",
                daemon=True,
            )
            self._active[key] = thread
        try:
            thread.start()
        except RuntimeError as e:
            with self._cond:
                self._active.pop(key, None)
                self._pending.pop(key, None)
                self.stats.failed += 1
                self._cond.notify_all()
            self._errors.handle_and_log(e, {"key": key, "operation": "start writer"})

    def _drain(self, key: str) -> None:
        while True:
            with self._cond:
                record = self._pending.pop(key, None)
                if record is None:
                    self._active.pop(key, None)
                    self._cond.notify_all()
                    return
            asyncio.run(self._write_one(key, record))

    async def _write_one(self, key: str, record: Dict[str, Any]) -> None:
        try:
            if self.timeout is None:
                ok = await self._sink(key, record)
            else:
                ok = await asyncio.wait_for(self._sink(key, record), timeout=self.timeout)
        except asyncio.TimeoutError:
            self._count(failed=True)
            self._errors.handle_and_log(
                StoreTimeoutError("background write timed out", operation="write", key=key, timeout=self.timeout),
                {"key": key},
            )
            return
        except Exception as e:  # noqa: BLE001  a background write must never escape the worker
            self._count(failed=True)
            self._errors.handle_and_log(e, {"key": key, "operation": "background write"})
            return
        self._count(failed=ok is False)

    def _count(self, failed: bool) -> None:
        with self._cond:
            if failed:
                self.stats.failed += 1
            else:
                self.stats.completed += 1

    def is_idle(self, key: Optional[str] = None) -> bool:
        with self._cond:
            return self._idle_locked(key)

    def _idle_locked(self, key: Optional[str]) -> bool:
        if key is None:
            return not self._active and not self._pending
        return key not in self._active and key not in self._pending

    def wait_idle(self, key: Optional[str] = None, timeout: Optional[float] = None) -> bool:
        """Block until writes for ``key`` (or all keys) have drained."""
        with self._cond:
            return self._cond.wait_for(lambda: self._idle_locked(key), timeout=timeout)
