"""Browser-side file download for generated documents"""
import base64
import html
import streamlit as st
import streamlit.components.v1 as components
from src.ui.request_panel import DownloadArtifact

PENDING_DOWNLOAD_KEY = "pending_download"


def build_download_html(artifact: DownloadArtifact) -> str:
    """Anchor with a data URI that clicks itself as soon as it is rendered"""
    encoded = base64.b64encode(artifact.content).decode("ascii")
    filename = html.escape(artifact.filename, quote=True)
    return f"""
    <a id="auto-download" href="data:{artifact.mime_type};base64,{encoded}" download="{filename}"></a>
    <script>
        document.getElementById("auto-download").click();
    </script>
    """


def queue_download(artifact: DownloadArtifact) -> None:
    """Keep the artifact until the next render emits the download"""
    st.session_state[PENDING_DOWNLOAD_KEY] = artifact


def render_pending_download() -> None:
    """Emit the queued download once and drop it"""
    artifact = st.session_state.pop(PENDING_DOWNLOAD_KEY, None)
    if artifact is None:
        return
    components.html(build_download_html(artifact), height=0)
