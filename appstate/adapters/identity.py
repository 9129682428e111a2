"""
Identity providers.

Streamlit is imported lazily so the core store and its tests run without a
Streamlit script context.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from appstate.infra.logging import get_logger
from appstate.ports.identity import IdentityProvider

logger = get_logger(__name__)

SESSION_IDENTITY_KEY = "identity_name"


@dataclass(frozen=True)
class StaticIdentity:
    """Fixed identity; ``None`` means unauthenticated."""
    name: Optional[str] = None

    def is_authenticated(self) -> bool:
        return bool(self.name and self.name.strip())

    def identity_name(self) -> Optional[str]:
        return self.name if self.is_authenticated() else None


class StreamlitUserIdentity:
    """Identity from Streamlit's built-in OIDC login (``st.user``)."""

    def _user(self):
        import streamlit as st

        return getattr(st, "user", None)

    def is_authenticated(self) -> bool:
        try:
            user = self._user()
            return bool(user is not None and user.get("is_logged_in", False))
        except Exception as e:  # noqa: BLE001  auth not configured / no script context
            logger.debug(f"st.user unavailable: {e}")
            return False

    def identity_name(self) -> Optional[str]:
        if not self.is_authenticated():
            return None
        user = self._user()
        name = user.get("email") or user.get("name")
        return str(name) if name else None


class SessionIdentity:
    """Identity chosen through the local login controls, kept in session_state."""

    def __init__(self, session_state=None, key: str = SESSION_IDENTITY_KEY):
        self._session_state = session_state
        self.key = key

    @property
    def session_state(self):
        if self._session_state is None:
            import streamlit as st

            return st.session_state
        return self._session_state

    def is_authenticated(self) -> bool:
        return bool(self.identity_name())

    def identity_name(self) -> Optional[str]:
        value = self.session_state.get(self.key)
        value = str(value).strip() if value is not None else ""
        return value or None

    def sign_in(self, name: str) -> None:
        self.session_state[self.key] = name

    def sign_out(self) -> None:
        self.session_state[self.key] = None


class ChainedIdentity:
    """First authenticated provider wins."""

    def __init__(self, providers: Sequence[IdentityProvider]):
        self.providers = list(providers)

    def _active(self) -> Optional[IdentityProvider]:
        for p in self.providers:
            if p.is_authenticated():
                return p
        return None

    def is_authenticated(self) -> bool:
        return self._active() is not None

    def identity_name(self) -> Optional[str]:
        p = self._active()
        return p.identity_name() if p else None
