"""
Shared fixtures: a scripted LLM client and test settings.
"""
import os
import sys
from typing import List, Optional

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from scenariogen.config.settings import Settings
from scenariogen.llm.client import LLMClient


class FakeLLMClient(LLMClient):
    """Returns canned responses in order and records every prompt."""

    provider = "fake"

    def __init__(self, responses: List[str]):
        super().__init__(api_key="test-key", model="fake-model")
        self.responses = list(responses)
        self.prompts: List[str] = []
        self.systems: List[Optional[str]] = []

    def _complete(self, prompt, system, max_tokens, temperature):
        self.prompts.append(prompt)
        self.systems.append(system)
        if not self.responses:
            raise RuntimeError("no more canned responses")
        return self.responses.pop(0)


@pytest.fixture
def fake_client_factory():
    return FakeLLMClient


@pytest.fixture
def settings(tmp_path):
    return Settings(
        groq_api_key="test-key",
        artifacts_dir=str(tmp_path / "logs"),
        output_path=None,
        headless=True,
    )
