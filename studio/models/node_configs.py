"""
Typed configuration records, one per node type.

The editor sends camelCase keys (``maxResults``, ``inputText``); snake_case
is accepted too. Unknown keys (``label``, UI state) are ignored and ``None``
values fall back to the field default.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


HookType = Literal["desire", "frustration", "discovery", "story", "result"]


class NodeConfig(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class TextInputConfig(NodeConfig):
    text: str = ""


class SmartSearchConfig(NodeConfig):
    query: str = ""
    threshold: float = Field(0.8, ge=0.0, le=1.0)
    max_results: int = Field(10, ge=1)
    # Candidate passages: plain strings or {"text", "source"} objects
    documents: list[Any] = Field(default_factory=list)


class HookGeneratorConfig(NodeConfig):
    input_text: str = ""
    frameworks: list[str] = Field(default_factory=lambda: ["AIDA", "PAS"])
    count: int = Field(5, ge=1, le=20)
    hook_type: HookType = "desire"


class BrandProfile(NodeConfig):
    """Brand constraints; also the shape of the ``brandConfig`` output object."""

    industry: str = "General"
    target_audience: str = ""
    forbidden_words: list[str] = Field(default_factory=list)
    hook_limit: int = Field(12, ge=1)
    script_limit: int = Field(250, ge=1)
    key_concepts: list[str] = Field(default_factory=list)


class HookValidatorConfig(NodeConfig):
    hooks: list[Any] = Field(default_factory=list)
    brand_config: dict[str, Any] | None = None


class BodyGeneratorConfig(NodeConfig):
    hook: str = ""
    brief: str = ""
    max_words: int = Field(250, ge=1)


class CTAGeneratorConfig(NodeConfig):
    body: str = ""


class CopyAssemblerConfig(NodeConfig):
    hook: str = ""
    body: str = ""
    cta: str = ""


class ImageInputConfig(NodeConfig):
    image_url: str = ""
    file_name: str = "uploaded-image"


class DeepAnalysisConfig(NodeConfig):
    image_url: str = ""


class EffectApplierConfig(NodeConfig):
    image_url: str = ""
    effect: str = "none"
    intensity: int = Field(50, ge=0, le=100)


class Text2ImageConfig(NodeConfig):
    prompt: str = ""
    negative_prompt: str = ""
    width: int = Field(1024, ge=64)
    height: int = Field(1024, ge=64)
    steps: int = Field(30, ge=1)


class Image2ImageConfig(NodeConfig):
    prompt: str = ""
    input_image: str = ""
    strength: float = Field(0.75, ge=0.0, le=1.0)
