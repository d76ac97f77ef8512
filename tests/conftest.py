"""Pytest configuration and shared fixtures for all tests"""
import sys
from pathlib import Path
from typing import List

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.catalog import Product
from src.llm_client import extract_json


class FakeLLM:
    """Stand-in for LLMClient that replays canned replies in order"""

    provider = "ollama"
    model_name = "llama3"

    def __init__(self, replies: List = None):
        self.replies = list(replies or [])
        self.prompts = []

    def call_for_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            raise AssertionError("FakeLLM ran out of replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def call_for_json(self, prompt: str) -> str:
        return extract_json(self.call_for_text(prompt))


@pytest.fixture
def fake_llm_factory():
    return FakeLLM


@pytest.fixture
def sample_products() -> List[Product]:
    return [
        Product(id=1, name="Лоток перфорированный 100х100", price=850),
        Product(id=2, name="Крышка лотка 100", price=320),
        Product(id=3, name="Гайка М10", price=5),
        Product(id=4, name="Винт М10х20", price=7),
        Product(id=5, name="Короб 200х200", price=1200),
    ]


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "ui: marks tests as Streamlit UI tests"
    )
