from __future__ import annotations

from dataclasses import dataclass

import streamlit as st

from appstate.infra.config import get_config
from appstate.infra.logging import LoggerManager
from appstate.infra.paths import log_file


@dataclass(frozen=True)
class PageSpec:
    title: str
    icon: str
    layout: str = "centered"
    sidebar_state: str = "expanded"


@st.cache_resource
def _bootstrap_logging() -> bool:
    config = get_config()
    LoggerManager.configure(config.log_level, log_file(config))
    return True


def init_page(spec: PageSpec) -> None:
    """Initialize a Streamlit page in a consistent way.

    NOTE: This must be called before any other Streamlit command on a page.
    """
    st.set_page_config(
        page_title=spec.title,
        page_icon=spec.icon,
        layout=spec.layout,
        initial_sidebar_state=spec.sidebar_state,
    )
    _bootstrap_logging()


__all__ = ["PageSpec", "init_page"]
