"""Per-session cascading app state.

Every page reads the same UserStateStore from st.session_state. A new store
is created when the signed-in identity changes, so one user's flags never
leak into another user's session.
"""
from __future__ import annotations

import asyncio
from typing import Any, Dict

import streamlit as st

from appstate.adapters.json_file_store import JsonFileRecordStore
from appstate.app.user_state_store import UserStateStore, record_sink
from appstate.app.write_queue import KeyedWriteQueue
from appstate.infra.config import get_config
from appstate.web.framework.user_context import get_identity_provider, get_user_context

APP_STATE_KEY = "app_state"
APP_STATE_OWNER_KEY = "app_state_owner"
APP_STATE_VERSION_KEY = "app_state_version"


def ensure_defaults(defaults: Dict[str, Any]) -> None:
    """Ensure session_state has default values for keys."""
    for k, v in defaults.items():
        if k not in st.session_state:
            st.session_state[k] = v


@st.cache_resource
def get_shared_writer() -> KeyedWriteQueue:
    """One writer per server process: writes for the same user are serialised across tabs."""
    config = get_config()
    return KeyedWriteQueue(
        record_sink(JsonFileRecordStore.from_config(config)),
        timeout=config.write_timeout_seconds,
    )


def _bump_version(_store: UserStateStore) -> None:
    st.session_state[APP_STATE_VERSION_KEY] = st.session_state.get(APP_STATE_VERSION_KEY, 0) + 1


def state_widget_key(name: str) -> str:
    """Widget key that changes whenever the store notifies, so widgets re-read the store."""
    return f"{name}@v{st.session_state.get(APP_STATE_VERSION_KEY, 0)}"


def get_app_state() -> UserStateStore:
    ensure_defaults({APP_STATE_VERSION_KEY: 0})
    owner = get_user_context().identity_key
    store = st.session_state.get(APP_STATE_KEY)
    if store is None or st.session_state.get(APP_STATE_OWNER_KEY) != owner:
        store = UserStateStore.from_config(get_config(), get_identity_provider(), writer=get_shared_writer())
        store.subscribe(_bump_version)
        st.session_state[APP_STATE_KEY] = store
        st.session_state[APP_STATE_OWNER_KEY] = owner
    return store


def hydrate_app_state() -> UserStateStore:
    """Return the session store, loading its record on the first render only."""
    store = get_app_state()
    if not store.first_render_done:
        if asyncio.run(store.on_first_render()):
            st.rerun()
    return store
