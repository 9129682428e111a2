"""UserStateStore: in-memory flags mirrored to a per-user durable record.

Mutations are write-through: ``set_flag`` updates memory, notifies
subscribers and hands a snapshot to the background writer without waiting
for it. ``load`` hydrates memory from the record once, on first render.
Neither ``save`` nor ``load`` ever raises; failures are logged and the
in-memory state stays usable for the session.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from appstate.adapters.json_file_store import JsonFileRecordStore
from appstate.app.write_queue import KeyedWriteQueue, WriteSink
from appstate.domain.models import UserState, lookup_field, normalize_identity_key
from appstate.infra.config import AppStateConfig
from appstate.infra.exceptions import ErrorHandler, IdentityError, UnknownFieldError, ValidationError
from appstate.infra.logging import get_logger
from appstate.ports.identity import IdentityProvider
from appstate.ports.store import StateRecordStore

logger = get_logger(__name__)

Listener = Callable[["UserStateStore"], None]


def record_sink(records: StateRecordStore) -> WriteSink:
    """Wrap ``records.write`` so it logs failures and reports success as a bool."""
    errors = ErrorHandler(logger)

    async def _persist(key: str, record: Dict[str, Any]) -> bool:
        try:
            await records.write(key, record)
        except Exception as e:  # noqa: BLE001  save() is total
            errors.handle_and_log(e, {"key": key, "operation": "save"})
            return False
        logger.debug(f"saved state for {key}: {record}")
        return True

    return _persist


class UserStateStore:
    def __init__(
        self,
        identity: IdentityProvider,
        records: StateRecordStore,
        *,
        writer: Optional[KeyedWriteQueue] = None,
        write_timeout: Optional[float] = None,
    ):
        self.identity = identity
        self.records = records
        self.state = UserState()
        self._persist = record_sink(records)
        # a writer shared between sessions also serialises writes of one user across tabs
        self.writer = writer or KeyedWriteQueue(self._persist, timeout=write_timeout)
        self._listeners: List[Listener] = []
        self._first_render_done = False
        self._errors = ErrorHandler(logger)

    @classmethod
    def from_config(
        cls,
        config: AppStateConfig,
        identity: IdentityProvider,
        writer: Optional[KeyedWriteQueue] = None,
    ) -> "UserStateStore":
        return cls(
            identity,
            JsonFileRecordStore.from_config(config),
            writer=writer,
            write_timeout=config.write_timeout_seconds,
        )

    # ---- identity ----

    def identity_key(self) -> Optional[str]:
        """Normalised key of the current caller, None when unauthenticated."""
        try:
            if not self.identity.is_authenticated():
                return None
            return normalize_identity_key(self.identity.identity_name())
        except Exception as e:  # noqa: BLE001  a broken auth context degrades to anonymous
            self._errors.handle_and_log(
                IdentityError(f"identity resolution failed: {e}", provider=type(self.identity).__name__),
            )
            return None

    # ---- observers ----

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:  # noqa: BLE001
                self._errors.handle_and_log(e, {"listener": getattr(listener, "__name__", repr(listener))})

    # ---- flags ----

    def snapshot(self) -> Dict[str, Any]:
        return self.state.to_record()

    def get_flag(self, name: str) -> Any:
        f = lookup_field(name)
        if f is None:
            raise UnknownFieldError(name)
        return getattr(self.state, f.attr)

    def set_flag(self, name: str, value: Any) -> bool:
        """Returns True when the value changed (and a background save was queued)."""
        f = lookup_field(name)
        if f is None:
            raise UnknownFieldError(name)
        if type(value) is not f.value_type:
            raise ValidationError(
                f"{f.record_name} expects {f.value_type.__name__}, got {type(value).__name__}",
                field=f.record_name,
                value=value,
            )
        if getattr(self.state, f.attr) == value:
            return False

        setattr(self.state, f.attr, value)
        self._notify()

        key = self.identity_key()
        if key is None:
            logger.debug(f"{f.record_name} changed for anonymous caller; not persisted")
        else:
            self.writer.submit(key, self.snapshot())
        return True

    @property
    def can_access_config_page(self) -> bool:
        return self.state.can_access_config_page

    @can_access_config_page.setter
    def can_access_config_page(self, value: bool) -> None:
        self.set_flag("can_access_config_page", value)

    # ---- persistence ----

    async def save(self) -> bool:
        key = self.identity_key()
        if key is None:
            return False
        return await self._persist(key, self.snapshot())

    async def load(self) -> bool:
        """Merge the stored record into memory, then notify. True when a record was applied."""
        applied = await self._load_record()
        self._notify()
        return applied

    async def _load_record(self) -> bool:
        key = self.identity_key()
        if key is None:
            return False
        try:
            record = await self.records.read(key)
        except Exception as e:  # noqa: BLE001  load() is total; keep defaults
            self._errors.handle_and_log(e, {"key": key, "operation": "load"})
            return False
        if record is None:
            logger.debug(f"no stored state for {key}")
            return False

        applied, rejected = self.state.merge_record(record)
        if rejected:
            logger.warning(f"ignored fields with unexpected types for {key}: {rejected}")
        logger.info(f"loaded state for {key}: {applied}")
        return True

    async def on_first_render(self) -> bool:
        """Load once per store; later calls do nothing."""
        if self._first_render_done:
            return False
        self._first_render_done = True
        return await self.load()

    @property
    def first_render_done(self) -> bool:
        return self._first_render_done

    def wait_for_pending(self, timeout: Optional[float] = None) -> bool:
        """Block until this caller's background writes have drained."""
        key = self.identity_key()
        if key is None:
            return True
        return self.writer.wait_idle(key, timeout=timeout)
