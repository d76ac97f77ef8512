import os
import json
import logging
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

load_dotenv()

logger = logging.getLogger(__name__)


class GigaChatSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    api_key: str = Field(default="PASTE_YOUR_BASE64_GIGACHAT_API_KEY_HERE", alias="apiKey")
    model: str = "GigaChat:latest"


class OllamaSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    base_url: str = Field(default="http://localhost:11434", alias="baseURL")
    model: str = "llama3"


class LLMSettings(BaseModel):
    """Provider settings stored in config.json"""
    model_config = ConfigDict(populate_by_name=True)

    use_gigachat: bool = Field(default=True, alias="useGigaChat")
    gigachat: GigaChatSettings = Field(default_factory=GigaChatSettings, alias="gigaChat")
    ollama: OllamaSettings = Field(default_factory=OllamaSettings)

    @property
    def provider(self) -> str:
        return "gigachat" if self.use_gigachat else "ollama"

    @property
    def model_name(self) -> str:
        return self.gigachat.model if self.use_gigachat else self.ollama.model


class ConfigError(Exception):
    """Raised when config.json cannot be read or written"""


class Config:
    # API server
    API_HOST = os.getenv("API_HOST", "127.0.0.1")
    API_PORT = int(os.getenv("API_PORT", 8080))
    API_BASE_URL = os.getenv("API_BASE_URL", f"http://localhost:{API_PORT}")

    # Transport timeout between the panel and the backend, seconds
    GENERATION_TIMEOUT = float(os.getenv("GENERATION_TIMEOUT", 300))

    # Files next to the application
    LLM_CONFIG_PATH = Path(os.getenv("LLM_CONFIG_PATH", "./config.json"))
    MATERIALS_PATH = Path(os.getenv("MATERIALS_PATH", "./materials.csv"))
    PRODUCTS_CACHE_PATH = Path(os.getenv("PRODUCTS_CACHE_PATH", "./products.json"))
    TEMPLATE_PATH = Path(os.getenv("TEMPLATE_PATH", "./template.docx"))
    LOG_DIR = Path(os.getenv("LOG_DIR", "."))

    # Generation
    RETRIEVAL_TOP_K = int(os.getenv("RETRIEVAL_TOP_K", 50))
    MAX_QUERY_LENGTH = int(os.getenv("MAX_QUERY_LENGTH", 2000))
    LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", 0.1))
    LLM_REQUEST_TIMEOUT = float(os.getenv("LLM_REQUEST_TIMEOUT", 120))
    GENERATE_RATE_LIMIT = os.getenv("GENERATE_RATE_LIMIT", "10/minute")

    # GigaChat endpoints. Sber's certificates are not in the default CA bundle.
    GIGACHAT_AUTH_URL = os.getenv("GIGACHAT_AUTH_URL", "https://ngw.devices.sberbank.ru:9443/api/v2/oauth")
    GIGACHAT_API_URL = os.getenv(
        "GIGACHAT_API_URL", "https://gigachat.devices.sberbank.ru/api/v1/chat/completions"
    )
    GIGACHAT_SCOPE = os.getenv("GIGACHAT_SCOPE", "GIGACHAT_API_PERS")
    GIGACHAT_VERIFY_SSL = os.getenv("GIGACHAT_VERIFY_SSL", "false").lower() == "true"

    DEBUG = os.getenv("DEBUG", "false").lower() == "true"

    @classmethod
    def create_directories(cls):
        cls.LOG_DIR.mkdir(parents=True, exist_ok=True)

    @classmethod
    def load_llm_settings(cls, path: Optional[Path] = None) -> LLMSettings:
        """Load provider settings, writing a default config.json when missing"""
        path = Path(path or cls.LLM_CONFIG_PATH)

        if not path.exists():
            return cls._create_default_llm_settings(path)

        try:
            settings = LLMSettings.model_validate_json(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"не удалось прочитать {path.name}: {e}") from e
        except ValidationError as e:
            raise ConfigError(f"не удалось распарсить {path.name}: {e}") from e

        logger.info(f"Конфигурация успешно загружена из '{path}'.")
        return settings

    @staticmethod
    def _create_default_llm_settings(path: Path) -> LLMSettings:
        logger.info(f"Файл '{path}' не найден. Создаю файл с настройками по умолчанию...")
        settings = LLMSettings()
        data = settings.model_dump(by_alias=True)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"не удалось записать {path.name} на диск: {e}") from e

        logger.info(
            f"Файл '{path}' успешно создан. Пожалуйста, откройте его и вставьте ваш API ключ для GigaChat."
        )
        return settings
