"""Request panel state machine: query in, generated ТКП out as a download

The panel knows nothing about Streamlit. The generation call and the
download trigger are injected, so the same object runs inside the page and
in tests with fakes.
"""
import base64
import time
import logging
from dataclasses import dataclass
from typing import Callable, ClassVar, Optional, Union
from src.error_messages import ErrorMessages

logger = logging.getLogger(__name__)

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
FILENAME_PREFIX = "ТКП"


@dataclass(frozen=True)
class Idle:
    kind: ClassVar[str] = "idle"


@dataclass(frozen=True)
class Submitting:
    kind: ClassVar[str] = "submitting"


@dataclass(frozen=True)
class Succeeded:
    message: str
    kind: ClassVar[str] = "succeeded"


@dataclass(frozen=True)
class Failed:
    message: str
    kind: ClassVar[str] = "failed"


RequestState = Union[Idle, Submitting, Succeeded, Failed]


@dataclass(frozen=True)
class DownloadArtifact:
    """A file handed to the browser for saving"""
    filename: str
    mime_type: str
    content: bytes


def build_artifact(payload: str, timestamp_ms: int) -> DownloadArtifact:
    """Decode a base64 DOCX payload into a download named after the timestamp"""
    if not payload:
        raise ValueError(ErrorMessages.EMPTY_PAYLOAD)
    return DownloadArtifact(
        filename=f"{FILENAME_PREFIX}_{timestamp_ms}.docx",
        mime_type=DOCX_MIME_TYPE,
        content=base64.b64decode(payload, validate=True),
    )


class RequestPanel:
    """Collects a client request, submits it and hands back the generated document

    Args:
        generate: external generation call, query -> base64 DOCX
        download: receives the artifact to save on success
        initial_query: text the textarea starts with
        clock: seconds since the epoch, used for the file name
    """

    def __init__(
        self,
        generate: Callable[[str], str],
        download: Callable[[DownloadArtifact], None],
        initial_query: str = "",
        clock: Callable[[], float] = time.time,
    ):
        self._generate = generate
        self._download = download
        self._clock = clock
        self.query = initial_query
        self.state: RequestState = Idle()

    @property
    def is_submitting(self) -> bool:
        return isinstance(self.state, Submitting)

    @property
    def error(self) -> Optional[str]:
        return self.state.message if isinstance(self.state, Failed) else None

    @property
    def success_message(self) -> Optional[str]:
        return self.state.message if isinstance(self.state, Succeeded) else None

    def update_query(self, text: str) -> None:
        self.query = text

    def submit(self) -> RequestState:
        """Validate, call the generation service and trigger the download"""
        if self.begin_submit():
            self.complete_submit()
        return self.state

    def begin_submit(self) -> bool:
        """First half of submit: validation and the switch to Submitting

        Returns True when the external call should follow.
        """
        if not self.query.strip():
            self.state = Failed(ErrorMessages.EMPTY_QUERY)
            return False

        self.state = Submitting()
        return True

    def complete_submit(self) -> RequestState:
        """Second half of submit: the external call and its outcome"""
        if not self.is_submitting:
            return self.state

        query = self.query
        logger.info("Submitting client request (%d chars)", len(query))
        try:
            payload = self._generate(query)
            artifact = build_artifact(payload, int(self._clock() * 1000))
            self._download(artifact)
        except Exception as e:
            logger.warning(f"Generation failed: {e}")
            self.state = Failed(ErrorMessages.external_error(e))
        else:
            logger.info(f"Generated {artifact.filename} ({len(artifact.content)} bytes)")
            self.state = Succeeded(ErrorMessages.GENERATION_SUCCEEDED)
        return self.state
