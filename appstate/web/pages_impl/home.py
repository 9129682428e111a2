from __future__ import annotations

import streamlit as st

from appstate.web.framework.state import hydrate_app_state, state_widget_key
from appstate.web.framework.user_context import get_user_context, render_user_context_controls


def render() -> None:
    render_user_context_controls()
    st.title("🧩 App State")

    store = hydrate_app_state()
    ctx = get_user_context()

    if not ctx.is_authenticated:
        st.info("Sign in to keep this setting across restarts. Changes made now last for this session only.")

    checked = st.checkbox(
        "Can access config page",
        value=store.can_access_config_page,
        key=state_widget_key("can_access_config_page"),
    )
    if checked != store.can_access_config_page:
        # saved in the background; the page does not wait for it
        store.can_access_config_page = checked

    if store.can_access_config_page:
        st.page_link("pages/1_Config.py", label="Open config page", icon="⚙️")
    else:
        st.caption("The config page is locked until the box above is ticked.")
