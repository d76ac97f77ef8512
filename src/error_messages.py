"""Centralized user-facing messages"""
from typing import Dict, Optional


class ErrorMessages:
    """Fixed texts shown to the user and mapping of low-level failures to them"""

    # Panel
    EMPTY_QUERY = "Пожалуйста, введите запрос клиента."
    ERROR_PREFIX = "Ошибка: "
    GENERATION_SUCCEEDED = (
        "ТКП успешно сгенерировано! Файл .docx скачивается, "
        "лог-файл .json сохранен рядом с приложением."
    )
    EMPTY_PAYLOAD = "сервис генерации вернул пустой ответ"

    # Service connection errors
    API_CONNECTION_FAILED = (
        "не удалось подключиться к серверу генерации. "
        "Убедитесь, что API запущен (`python main.py`) и доступен по адресу {base_url}"
    )

    API_TIMEOUT = (
        "сервер генерации не ответил за {timeout:.0f} с. "
        "Попробуйте упростить запрос или повторить попытку позже"
    )

    OLLAMA_NOT_RUNNING = (
        "сервис Ollama не запущен. Запустите `ollama serve` и установите модель: `ollama pull {model_name}`"
    )

    OLLAMA_MODEL_NOT_FOUND = "модель '{model_name}' не найдена в Ollama. Выполните `ollama pull {model_name}`"

    GIGACHAT_UNAUTHORIZED = (
        "GigaChat отклонил авторизацию. Проверьте apiKey в config.json"
    )

    RATE_LIMIT_EXCEEDED = "слишком много запросов. Подождите минуту и повторите попытку"

    LLM_TIMEOUT = "языковая модель не ответила вовремя. Повторите попытку позже"

    @staticmethod
    def external_error(error: object) -> str:
        """Banner text for a failed generation call"""
        return f"{ErrorMessages.ERROR_PREFIX}{error}"

    @staticmethod
    def get_specific_error(error: Exception, context: Optional[Dict] = None) -> str:
        """Convert low-level exceptions to specific error messages"""
        error_str = str(error).lower()
        context = context or {}
        model_name = context.get('model_name', 'llama3')

        # Connection errors
        if "connection refused" in error_str or "failed to connect" in error_str:
            if "11434" in error_str or context.get('provider') == 'ollama':
                return ErrorMessages.OLLAMA_NOT_RUNNING.format(model_name=model_name)
            return str(error)

        # Missing Ollama model
        elif "not found" in error_str and "model" in error_str:
            return ErrorMessages.OLLAMA_MODEL_NOT_FOUND.format(model_name=model_name)

        # GigaChat auth
        elif "401" in error_str or "unauthorized" in error_str:
            return ErrorMessages.GIGACHAT_UNAUTHORIZED

        # Rate limiting
        elif "rate limit" in error_str or "429" in error_str:
            return ErrorMessages.RATE_LIMIT_EXCEEDED

        # Timeout
        elif "timeout" in error_str or "timed out" in error_str:
            return ErrorMessages.LLM_TIMEOUT

        return str(error)

