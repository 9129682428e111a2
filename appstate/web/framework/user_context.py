from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import streamlit as st

from appstate.adapters.identity import ChainedIdentity, SessionIdentity, StreamlitUserIdentity
from appstate.data.db_context import ApplicationDbContext
from appstate.domain.models import normalize_identity_key
from appstate.infra.config import get_config
from appstate.infra.exceptions import ValidationError
from appstate.infra.paths import db_path


@dataclass(frozen=True)
class UserContext:
    identity_name: Optional[str]
    source: str  # "oidc" | "local" | "anonymous"

    @property
    def is_authenticated(self) -> bool:
        return self.identity_name is not None

    @property
    def identity_key(self) -> Optional[str]:
        return normalize_identity_key(self.identity_name)


@st.cache_resource
def get_db_context() -> ApplicationDbContext:
    return ApplicationDbContext(db_path(get_config()))


def get_identity_provider() -> ChainedIdentity:
    """OIDC login (st.user) first, then the local session sign-in."""
    return ChainedIdentity([StreamlitUserIdentity(), SessionIdentity()])


def get_user_context() -> UserContext:
    oidc = StreamlitUserIdentity()
    if oidc.is_authenticated():
        return UserContext(oidc.identity_name(), "oidc")
    local = SessionIdentity()
    if local.is_authenticated():
        return UserContext(local.identity_name(), "local")
    return UserContext(None, "anonymous")


def _oidc_configured() -> bool:
    try:
        return "auth" in st.secrets
    except FileNotFoundError:
        return False


def render_user_context_controls() -> None:
    """Sidebar sign-in / sign-out controls."""
    ctx = get_user_context()
    local = SessionIdentity()
    db = get_db_context()

    with st.sidebar:
        st.subheader("Account")
        if ctx.source == "oidc":
            st.caption(f"Signed in as **{ctx.identity_name}**")
            if st.button("Log out", use_container_width=True):
                st.logout()
            return

        if ctx.source == "local":
            st.caption(f"Signed in locally as **{ctx.identity_name}**")
            if st.button("Sign out", use_container_width=True):
                local.sign_out()
                st.rerun()
            return

        if _oidc_configured() and st.button("Log in", type="primary", use_container_width=True):
            st.login()

        users = db.list_users()
        if users:
            email = st.selectbox("Local user", options=[u.email for u in users])
            if st.button("Sign in", use_container_width=True):
                local.sign_in(email)
                st.rerun()
        else:
            st.caption("No local users registered yet.")

        with st.expander("Register local user", expanded=not users):
            with st.form("register_user", clear_on_submit=True):
                new_email = st.text_input("Email")
                new_name = st.text_input("Display name")
                if st.form_submit_button("Register"):
                    try:
                        db.add_user(new_email, new_name)
                        st.success(f"Registered {new_email}")
                    except ValidationError as e:
                        st.error(e.message)
