"""
Capability provider interface.

Node operations reach every generation/analysis backend through this
protocol. Implementations raise ProviderError for transport or provider
failures; the operation registry turns those into failed results.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional, Protocol, runtime_checkable


class ProviderError(Exception):
    """Raised when a capability backend call fails or returns unusable data."""


@runtime_checkable
class CapabilityProvider(Protocol):
    async def generate_text(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 2048,
    ) -> str: ...

    async def generate_embedding(self, text: str) -> list[float]: ...

    async def analyze_image(self, image_ref: str, prompt: str) -> dict[str, Any]: ...

    async def generate_image(
        self,
        prompt: str,
        negative_prompt: Optional[str] = None,
        count: int = 1,
        aspect_ratio: Optional[str] = None,
    ) -> list[str]: ...


def strip_code_fences(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.splitlines()
        if lines:
            lines = lines[1:]
        if lines and lines[-1].strip().startswith("```"):
            lines = lines[:-1]
        cleaned = "\n".join(lines).strip()
    return cleaned


def extract_json(text: str) -> Optional[Any]:
    """
    Best-effort JSON extraction from a model response.

    Tries the whole (fence-stripped) text first, then the first embedded
    object, then the first embedded array. Returns None when nothing parses.
    """
    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    match = re.search(r"\{.*\}", cleaned, re.DOTALL)
    if match:
        try:
            return json.loads(match.group(0))
        except json.JSONDecodeError:
            pass

    match = re.search(r"\[.*\]", cleaned, re.DOTALL)
    if match:
        try:
            return json.loads(match.group(0))
        except json.JSONDecodeError:
            return None

    return None


def parse_analysis_response(text: str) -> dict[str, Any]:
    """Parse an image-analysis response as a JSON object, else wrap the raw text."""
    data = extract_json(text)
    if isinstance(data, dict):
        return data
    return {"analysis": text.strip()}
