"""Streamlit UI layer (imports streamlit)."""
