"""
Shared fixtures: a scripted in-memory capability provider and an engine
wired to it.
"""

import sys
from pathlib import Path
from typing import Any, Optional

import pytest

project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from studio.llm.provider import ProviderError
from studio.services.workflow_executor import WorkflowEngine


class FakeProvider:
    """Records every call and answers from scripted responses."""

    image_model = "fake-imagen"

    def __init__(self):
        self.text_responses: list[str] = []
        self.default_text = "generated text"
        self.embeddings: dict[str, list[float]] = {}
        self.analysis: dict[str, Any] = {
            "style": "minimal",
            "lighting": "soft daylight",
            "composition": "centered subject",
            "colorPalette": "warm neutrals",
            "mood": "calm",
        }
        self.images = ["data:image/png;base64,iVBORw0KGgo="]
        self.fail_with: Optional[ProviderError] = None
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def _check_failure(self):
        if self.fail_with is not None:
            raise self.fail_with

    def prompts(self) -> list[str]:
        return [kwargs["prompt"] for name, kwargs in self.calls if name == "generate_text"]

    async def generate_text(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 2048,
    ) -> str:
        self.calls.append(("generate_text", {"prompt": prompt}))
        self._check_failure()
        if self.text_responses:
            return self.text_responses.pop(0)
        return self.default_text

    async def generate_embedding(self, text: str) -> list[float]:
        self.calls.append(("generate_embedding", {"text": text}))
        self._check_failure()
        return self.embeddings.get(text, [1.0, 0.0])

    async def analyze_image(self, image_ref: str, prompt: str) -> dict[str, Any]:
        self.calls.append(("analyze_image", {"image_ref": image_ref, "prompt": prompt}))
        self._check_failure()
        return dict(self.analysis)

    async def generate_image(
        self,
        prompt: str,
        negative_prompt: Optional[str] = None,
        count: int = 1,
        aspect_ratio: Optional[str] = None,
    ) -> list[str]:
        self.calls.append((
            "generate_image",
            {
                "prompt": prompt,
                "negative_prompt": negative_prompt,
                "count": count,
                "aspect_ratio": aspect_ratio,
            },
        ))
        self._check_failure()
        return list(self.images[:count])


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def engine(fake_provider) -> WorkflowEngine:
    return WorkflowEngine(fake_provider)
