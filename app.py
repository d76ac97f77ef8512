import logging

import streamlit as st
from src.ui.components import (
    render_header,
    render_request_panel,
    init_session_state
)
from src.ui.style_loader import load_app_styles

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Configure page
st.set_page_config(
    page_title="Авто-ТКП",
    page_icon="📄",
    layout="centered"
)

# Load CSS immediately after page config
load_app_styles()

# Initialize session state
init_session_state()

# Header
render_header()

# Request panel: query, status banners, generate button
with st.container():
    render_request_panel()
