from __future__ import annotations

from dataclasses import asdict

import pandas as pd
import streamlit as st
import yaml

from appstate.adapters.json_file_store import JsonFileRecordStore
from appstate.domain.models import STATE_FIELDS
from appstate.infra.config import get_config
from appstate.web.framework.state import hydrate_app_state
from appstate.web.framework.user_context import get_db_context, get_user_context, render_user_context_controls


def render() -> None:
    render_user_context_controls()
    st.title("⚙️ Config")

    store = hydrate_app_state()
    if not store.can_access_config_page:
        st.warning("You do not have access to this page. Enable it on the home page first.")
        st.stop()

    ctx = get_user_context()
    st.caption(f"Identity key: `{ctx.identity_key or '(anonymous)'}`")
    st.json(store.snapshot())

    config = get_config()
    records = JsonFileRecordStore.from_config(config)

    st.subheader("Stored user state")
    rows = []
    for key, record in records.read_all().items():
        row = {"identity_key": key, "path": str(records.path_for(key))}
        for f in STATE_FIELDS:
            row[f.record_name] = (record or {}).get(f.record_name)
        row["readable"] = record is not None
        rows.append(row)
    if rows:
        st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)
    else:
        st.caption(f"No records under {records.root}")

    st.subheader("Registered users")
    users = get_db_context().list_users()
    if users:
        st.dataframe(pd.DataFrame([asdict(u) for u in users]), hide_index=True, use_container_width=True)
    else:
        st.caption("No local users.")

    with st.expander("Effective configuration", expanded=False):
        st.code(yaml.safe_dump({"app_state": asdict(config)}, allow_unicode=True, sort_keys=False), language="yaml")
