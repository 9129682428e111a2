from appstate.web.framework.page import init_page, PageSpec
from appstate.web.pages_impl.config_page import render

# MUST be the first Streamlit command on this page
init_page(PageSpec(title="Config", icon="⚙️"))

render()
