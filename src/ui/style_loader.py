"""Style loader utility for loading CSS in Streamlit"""

import logging
import streamlit as st
from pathlib import Path

logger = logging.getLogger(__name__)

CSS_PATH = Path(__file__).resolve().parents[2] / "assets" / "css" / "main.css"


def load_app_styles(css_path: Path = CSS_PATH):
    """Load the main CSS file"""
    if css_path.exists():
        css_content = css_path.read_text(encoding="utf-8")
        st.markdown(f'<style>{css_content}</style>', unsafe_allow_html=True)
    else:
        logger.warning(f"CSS file not found: {css_path}")
