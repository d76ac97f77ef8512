"""Async I/O utilities for file operations

This module provides async wrappers for the file operations the FastAPI
application performs outside the generation thread pool: writing proposal
logs and probing the data files for the health endpoint.
"""
import aiofiles
import asyncio
import json
from pathlib import Path
from typing import Dict, Any
import logging

logger = logging.getLogger(__name__)


async def save_json_async(path: Path, data: Dict[str, Any], indent: int = 2):
    """Save data as JSON asynchronously, keeping Cyrillic readable

    Args:
        path: Path to save the JSON file
        data: Dictionary to serialize
        indent: JSON indentation level
    """
    json_str = json.dumps(data, indent=indent, ensure_ascii=False, default=str)

    # Ensure parent directory exists
    path.parent.mkdir(parents=True, exist_ok=True)

    async with aiofiles.open(path, 'w', encoding='utf-8') as f:
        await f.write(json_str)


async def file_exists_async(path: Path) -> bool:
    """Check if a file exists asynchronously

    Args:
        path: Path to check

    Returns:
        True if file exists, False otherwise
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, path.exists)
