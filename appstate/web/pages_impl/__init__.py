"""Page renderers; the files under pages/ only call init_page + render."""
