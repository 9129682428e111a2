from appstate.web.framework.page import init_page, PageSpec
from appstate.web.pages_impl.home import render

# MUST be the first Streamlit command on this page
init_page(PageSpec(title="App State", icon="🧩"))

render()
