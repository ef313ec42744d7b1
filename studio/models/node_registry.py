"""
Node type registry: source of truth for the node palette.

Maps editor node type strings to their label, categories, description,
default configuration and typed config model.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from studio.models.graph import Category
from studio.models.node_configs import (
    BodyGeneratorConfig,
    BrandProfile,
    CopyAssemblerConfig,
    CTAGeneratorConfig,
    DeepAnalysisConfig,
    EffectApplierConfig,
    HookGeneratorConfig,
    HookValidatorConfig,
    Image2ImageConfig,
    ImageInputConfig,
    NodeConfig,
    SmartSearchConfig,
    Text2ImageConfig,
    TextInputConfig,
)


class NodeTypeSpec(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: str
    label: str
    category: list[Category]
    icon: str
    description: str
    config_model: type[NodeConfig] = Field(exclude=True)
    default_config: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------
# Keys match the node `type` values used in the editor.

NODE_REGISTRY: dict[str, NodeTypeSpec] = {
    # ---- Copy research nodes ----
    "textInput": NodeTypeSpec(
        type="textInput",
        label="Text Input",
        category=["copy"],
        icon="📝",
        description="Input text for processing",
        config_model=TextInputConfig,
        default_config={"text": ""},
    ),
    "smartSearch": NodeTypeSpec(
        type="smartSearch",
        label="Smart Search",
        category=["copy"],
        icon="🔍",
        description="Semantic search with AI",
        config_model=SmartSearchConfig,
        default_config={"query": "", "threshold": 0.8, "maxResults": 10},
    ),
    "hookGenerator": NodeTypeSpec(
        type="hookGenerator",
        label="Hook Generator",
        category=["copy"],
        icon="🎯",
        description="Generate attention-grabbing hooks",
        config_model=HookGeneratorConfig,
        default_config={
            "inputText": "",
            "frameworks": ["AIDA", "PAS"],
            "count": 5,
            "hookType": "desire",
        },
    ),
    "brandConfig": NodeTypeSpec(
        type="brandConfig",
        label="Brand Config",
        category=["copy"],
        icon="⚙️",
        description="Configure industry/brand parameters",
        config_model=BrandProfile,
        default_config={
            "industry": "Real Estate",
            "target_audience": "Young professionals looking for their first apartment",
            "forbidden_words": ["explode", "boom", "blow up", "giant", "crazy"],
            "hook_limit": 12,
            "script_limit": 250,
            "key_concepts": [
                "Competitor analysis",
                "Automatic gap analysis",
                "Insights base",
            ],
        },
    ),
    "hookValidator": NodeTypeSpec(
        type="hookValidator",
        label="Hook Validator",
        category=["copy"],
        icon="✅",
        description="Validate and score hooks",
        config_model=HookValidatorConfig,
        default_config={"hooks": []},
    ),
    "bodyGenerator": NodeTypeSpec(
        type="bodyGenerator",
        label="Body Generator",
        category=["copy"],
        icon="📄",
        description="Generate copy body with insights",
        config_model=BodyGeneratorConfig,
        default_config={"maxWords": 250},
    ),
    "ctaGenerator": NodeTypeSpec(
        type="ctaGenerator",
        label="CTA Generator",
        category=["copy"],
        icon="🎬",
        description="Generate soft call-to-action",
        config_model=CTAGeneratorConfig,
    ),
    "copyAssembler": NodeTypeSpec(
        type="copyAssembler",
        label="Copy Assembler",
        category=["copy"],
        icon="🔗",
        description="Assemble final copy from parts",
        config_model=CopyAssemblerConfig,
    ),

    # ---- VFX nodes ----
    "imageInput": NodeTypeSpec(
        type="imageInput",
        label="Image Input",
        category=["vfx", "image"],
        icon="🖼️",
        description="Upload or input image",
        config_model=ImageInputConfig,
    ),
    "deepAnalysis": NodeTypeSpec(
        type="deepAnalysis",
        label="Deep Analysis",
        category=["vfx"],
        icon="🔬",
        description="AI-powered image analysis",
        config_model=DeepAnalysisConfig,
    ),
    "effectApplier": NodeTypeSpec(
        type="effectApplier",
        label="Effect Applier",
        category=["vfx"],
        icon="✨",
        description="Apply visual effects",
        config_model=EffectApplierConfig,
        default_config={"effect": "", "intensity": 50},
    ),

    # ---- Image generation nodes ----
    "text2image": NodeTypeSpec(
        type="text2image",
        label="Text to Image",
        category=["image"],
        icon="🎨",
        description="Generate images from text",
        config_model=Text2ImageConfig,
        default_config={"prompt": "", "width": 1024, "height": 1024, "steps": 30},
    ),
    "image2image": NodeTypeSpec(
        type="image2image",
        label="Image to Image",
        category=["image"],
        icon="🔄",
        description="Transform images with AI",
        config_model=Image2ImageConfig,
        default_config={"prompt": "", "strength": 0.75},
    ),
}


def get_node_spec(node_type: str) -> NodeTypeSpec | None:
    """Look up a node type spec, returning None if unknown."""
    return NODE_REGISTRY.get(node_type)


def node_label(node_type: str, config: dict[str, Any] | None = None) -> str:
    """Display label: the node's own ``label`` if set, else the catalog label."""
    if config:
        label = config.get("label")
        if isinstance(label, str) and label.strip():
            return label.strip()
    spec = get_node_spec(node_type)
    return spec.label if spec else node_type
