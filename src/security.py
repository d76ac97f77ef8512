"""Security utilities for the Авто-ТКП backend.

This module provides functions that keep user input and error output safe:
query sanitization, path confinement for files written next to the
application, and error messages that do not leak internals.
"""

import logging
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 2000


def validate_file_path(file_path: Union[str, Path], base_dir: Union[str, Path]) -> bool:
    """Validate that a file path is within the allowed base directory.

    Args:
        file_path: The path to validate
        base_dir: The allowed base directory

    Returns:
        True if the path is safe, False otherwise
    """
    try:
        file_path = Path(file_path).resolve()
        base_dir = Path(base_dir).resolve()

        file_path.relative_to(base_dir)
        return True
    except (ValueError, OSError):
        logger.warning(f"Path validation failed: {file_path} not within {base_dir}")
        return False


def sanitize_query_string(query: str, max_length: int = MAX_QUERY_LENGTH) -> str:
    """Sanitize a client request before it is put into LLM prompts.

    Args:
        query: The client's request text
        max_length: Maximum allowed length

    Returns:
        Sanitized query string
    """
    if not query:
        return ""

    # Remove null bytes
    query = query.replace('\x00', '')

    # Limit length
    query = query[:max_length]

    # Remove control characters except newlines and tabs
    query = ''.join(char for char in query if char == '\n' or char == '\t' or not ord(char) < 32)

    return query.strip()


def sanitize_error_message(error: Exception, show_details: bool = False) -> str:
    """Turn an unexpected exception into a safe message for the client.

    Args:
        error: The exception to sanitize
        show_details: Whether to include the exception type (for debugging)

    Returns:
        Safe error message for users
    """
    error_type = type(error).__name__

    error_map = {
        'FileNotFoundError': "необходимый файл не найден рядом с приложением",
        'PermissionError': "нет прав доступа к файлам приложения",
        'ValueError': "получены некорректные данные",
        'TimeoutError': "операция не завершилась вовремя, повторите попытку",
        'MemoryError': "недостаточно памяти для выполнения операции",
        'ConnectionError': "ошибка соединения, проверьте сеть",
    }

    user_message = error_map.get(error_type, "произошла внутренняя ошибка при генерации ТКП")

    # Log the actual error for debugging
    logger.error(f"Sanitized error: {error_type}: {str(error)}")

    if show_details:
        return f"{user_message} ({error_type}: {error})"

    return user_message
