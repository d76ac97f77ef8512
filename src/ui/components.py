"""Reusable UI components"""
import streamlit as st
from src.config import Config
from src.ui.download import queue_download, render_pending_download
from src.ui.generation_client import ApiGenerationClient
from src.ui.request_panel import RequestPanel

DEFAULT_QUERY = "Лоток перфорированный 100х100, 12 метров, и 10 гаек М10"
QUERY_PLACEHOLDER = "Например: лоток 6000х200х100, 10 метров..."
BUTTON_LABEL = "Сгенерировать и скачать (.docx)"
BUTTON_LABEL_BUSY = "Генерация..."


def render_header() -> None:
    """Render the main header"""
    st.title("Авто-ТКП")
    st.caption("Интеллектуальный генератор коммерческих предложений")


def init_session_state() -> None:
    """Create the panel and the widget defaults once per browser session"""
    if 'request_panel' not in st.session_state:
        client = ApiGenerationClient(Config.API_BASE_URL, Config.GENERATION_TIMEOUT)
        st.session_state.request_panel = RequestPanel(
            generate=client.generate,
            download=queue_download,
            initial_query=DEFAULT_QUERY,
        )

    if 'client_query' not in st.session_state:
        st.session_state.client_query = st.session_state.request_panel.query


def _on_generate_clicked() -> None:
    panel: RequestPanel = st.session_state.request_panel
    panel.update_query(st.session_state.client_query)
    panel.begin_submit()


def render_request_panel() -> None:
    """Query input, status banners and the generate button"""
    panel: RequestPanel = st.session_state.request_panel

    render_pending_download()

    st.text_area(
        "Введите запрос клиента",
        key="client_query",
        height=150,
        placeholder=QUERY_PLACEHOLDER,
    )
    panel.update_query(st.session_state.client_query)

    if panel.error:
        st.error(panel.error)
    if panel.success_message:
        st.success(panel.success_message)

    st.button(
        BUTTON_LABEL_BUSY if panel.is_submitting else BUTTON_LABEL,
        key="generate_button",
        type="primary",
        disabled=panel.is_submitting,
        on_click=_on_generate_clicked,
    )

    # The button above is rendered disabled while the call runs
    if panel.is_submitting:
        with st.spinner(BUTTON_LABEL_BUSY):
            panel.complete_submit()
        st.rerun()
