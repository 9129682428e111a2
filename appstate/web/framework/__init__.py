"""Frontend framework layer for Streamlit UI.

This package centralizes:
- page initialization (set_page_config + logging bootstrap)
- the per-session cascading app state
- identity / local sign-in controls
"""
