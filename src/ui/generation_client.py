"""HTTP client for the generation backend"""
import logging
from typing import Optional
import requests
from src.config import Config
from src.error_messages import ErrorMessages

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """Raised when the backend does not return a document"""


def parse_api_error(response: requests.Response) -> str:
    """Extract the error text from a backend error response"""
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"

    if isinstance(data, dict):
        detail = data.get('detail') or data.get('error')
        if isinstance(detail, str):
            return detail
        if detail:
            return str(detail)
    return f"HTTP {response.status_code}"


class ApiGenerationClient:
    """Calls POST /generate and returns the base64 DOCX payload"""

    def __init__(self, base_url: str = Config.API_BASE_URL, timeout: Optional[float] = Config.GENERATION_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def generate(self, query: str) -> str:
        try:
            response = requests.post(
                f"{self.base_url}/generate",
                json={"query": query},
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise GenerationError(ErrorMessages.API_TIMEOUT.format(timeout=self.timeout or 0)) from e
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Backend not reachable at {self.base_url}: {e}")
            raise GenerationError(ErrorMessages.API_CONNECTION_FAILED.format(base_url=self.base_url)) from e

        if response.status_code != 200:
            raise GenerationError(parse_api_error(response))

        try:
            return response.json()["docx_base64"]
        except (ValueError, KeyError, TypeError) as e:
            raise GenerationError(ErrorMessages.EMPTY_PAYLOAD) from e
