import re
import time
import uuid
import logging
import threading
from typing import Optional
import ollama
import requests
import urllib3
from src.config import Config, LLMSettings

logger = logging.getLogger(__name__)

# Leftmost JSON object or array in a free-form reply
JSON_EXTRACTOR = re.compile(r'({.*}|\[.*\])', re.DOTALL)

# Refresh the GigaChat token this many seconds before it expires
TOKEN_EXPIRY_MARGIN = 60


class LLMError(Exception):
    """Raised when the language model cannot produce a usable answer"""


def extract_json(raw_content: str) -> str:
    """Return the first JSON object/array found in an LLM reply"""
    match = JSON_EXTRACTOR.search(raw_content or "")
    if not match:
        raise LLMError(f"не удалось найти JSON в ответе LLM. Ответ был: {raw_content}")
    return match.group(0)


class LLMClient:
    """Chat client for GigaChat or a local Ollama model, chosen by config.json"""

    def __init__(
        self,
        settings: LLMSettings,
        temperature: float = Config.LLM_TEMPERATURE,
        verify_ssl: bool = Config.GIGACHAT_VERIFY_SSL,
        timeout: Optional[float] = Config.LLM_REQUEST_TIMEOUT,
    ):
        self.settings = settings
        self.temperature = temperature
        self.verify_ssl = verify_ssl
        self.timeout = timeout

        self._token: Optional[str] = None
        self._token_expires_at = 0.0
        self._token_lock = threading.Lock()
        self._ollama_client = None

        if settings.use_gigachat and not verify_ssl:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
            logger.warning("TLS certificate verification is disabled for GigaChat")

    @property
    def provider(self) -> str:
        return self.settings.provider

    @property
    def model_name(self) -> str:
        return self.settings.model_name

    def call_for_text(self, prompt: str) -> str:
        if self.settings.use_gigachat:
            logger.info("Используется API: GigaChat")
            return self._call_gigachat(prompt)
        logger.info("Используется API: Ollama")
        return self._call_ollama(prompt)

    def call_for_json(self, prompt: str) -> str:
        return extract_json(self.call_for_text(prompt))

    def _get_access_token(self) -> str:
        """Return a cached GigaChat token, requesting a new one when it is about to expire"""
        with self._token_lock:
            if self._token and time.time() < self._token_expires_at:
                return self._token

            logger.info("Токен GigaChat истек или отсутствует. Получение нового токена...")
            try:
                response = requests.post(
                    Config.GIGACHAT_AUTH_URL,
                    headers={
                        "Content-Type": "application/x-www-form-urlencoded",
                        "Accept": "application/json",
                        "RqUID": str(uuid.uuid4()),
                        "Authorization": f"Basic {self.settings.gigachat.api_key}",
                    },
                    data={"scope": Config.GIGACHAT_SCOPE},
                    verify=self.verify_ssl,
                    timeout=self.timeout,
                )
            except requests.exceptions.RequestException as e:
                raise LLMError(f"ошибка при запросе токена: {e}") from e

            if not response.ok:
                raise LLMError(
                    f"ошибка от API при получении токена: {response.status_code} - {response.text}"
                )

            try:
                payload = response.json()
                token = payload["access_token"]
                expires_at_ms = int(payload["expires_at"])
            except (ValueError, KeyError, TypeError) as e:
                raise LLMError(f"ошибка парсинга ответа с токеном: {e}") from e

            self._token = token
            self._token_expires_at = expires_at_ms / 1000 - TOKEN_EXPIRY_MARGIN
            logger.info("Новый токен GigaChat успешно получен.")
            return token

    def _call_gigachat(self, prompt: str) -> str:
        token = self._get_access_token()
        request_body = {
            "model": self.settings.gigachat.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
        }

        try:
            response = requests.post(
                Config.GIGACHAT_API_URL,
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                    "Authorization": f"Bearer {token}",
                },
                json=request_body,
                verify=self.verify_ssl,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise LLMError(f"сетевая ошибка при вызове GigaChat: {e}") from e

        logger.debug(f"RAW RESPONSE BODY FROM GIGACHAT:\n{response.text}")
        if not response.ok:
            raise LLMError(f"ошибка от API GigaChat: {response.status_code} - {response.text}")

        try:
            data = response.json()
        except ValueError as e:
            raise LLMError(f"ошибка парсинга ответа GigaChat: {e}") from e

        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            raise LLMError("GigaChat вернул пустой ответ")

        try:
            return choices[0]["message"]["content"]
        except (KeyError, TypeError, IndexError) as e:
            raise LLMError(f"ошибка парсинга ответа GigaChat: {e}") from e

    def _get_ollama_client(self) -> ollama.Client:
        if self._ollama_client is None:
            self._ollama_client = ollama.Client(host=self.settings.ollama.base_url, timeout=self.timeout)
        return self._ollama_client

    def _call_ollama(self, prompt: str) -> str:
        client = self._get_ollama_client()
        try:
            response = client.chat(
                model=self.settings.ollama.model,
                messages=[{"role": "user", "content": prompt}],
                stream=False,
                options={"temperature": self.temperature},
            )
        except ollama.ResponseError as e:
            raise LLMError(f"ошибка от API Ollama: {e.status_code} - {e.error}") from e
        except Exception as e:
            raise LLMError(f"сетевая ошибка при вызове Ollama: {e}") from e

        content = response["message"]["content"]
        logger.debug(f"RAW RESPONSE BODY FROM OLLAMA:\n{content}")
        return content
