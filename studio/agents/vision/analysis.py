"""
Image analysis prompts, effect metadata and generation sizing helpers.
"""
from typing import Any, Dict

DEEP_ANALYSIS_PROMPT = """Analyze this image in detail and return ONLY a valid JSON object with this exact structure:
{
  "style": "description of visual style",
  "lighting": "lighting setup description",
  "composition": "composition analysis",
  "colorPalette": "dominant colors and mood",
  "mood": "overall atmosphere"
}"""

ANALYSIS_FIELDS = ("style", "lighting", "composition", "colorPalette", "mood")

DESCRIBE_FOR_GENERATION_PROMPT = "Describe this image in detail for image generation purposes."

EFFECT_DESCRIPTIONS = {
    "cinematic": "Widescreen aspect, color grading, vignette",
    "vintage": "Film grain, faded colors, light leaks",
    "cyberpunk": "Neon glow, chromatic aberration, digital glitch",
    "horror": "Desaturated, high contrast, grain",
    "romantic": "Soft focus, warm tones, bloom",
}
NO_EFFECT_DESCRIPTION = "No effect applied"

# Aspect ratios accepted by the image generation backend
SUPPORTED_ASPECT_RATIOS = {
    "1:1": 1.0,
    "3:4": 3 / 4,
    "4:3": 4 / 3,
    "9:16": 9 / 16,
    "16:9": 16 / 9,
}


def describe_effect(effect: str) -> str:
    return EFFECT_DESCRIPTIONS.get(effect.strip().lower(), NO_EFFECT_DESCRIPTION)


def normalize_analysis(result: Any) -> Dict[str, Any]:
    """
    Keep a structured analysis as-is; anything else becomes {"analysis": text}.

    A dict counts as structured when it carries at least one of the expected
    fields or is already the {"analysis": ...} fallback shape.
    """
    if isinstance(result, dict):
        if any(field in result for field in ANALYSIS_FIELDS) or "analysis" in result:
            return result
        return {"analysis": str(result)}
    if result is None:
        return {"analysis": ""}
    return {"analysis": str(result)}


def analysis_summary(analysis: Dict[str, Any]) -> str:
    """Flatten an analysis dict into prose usable inside a generation prompt."""
    if analysis.get("analysis"):
        return str(analysis["analysis"]).strip()
    parts = [
        f"{field}: {analysis[field]}" for field in ANALYSIS_FIELDS if analysis.get(field)
    ]
    return "; ".join(parts)


def closest_aspect_ratio(width: int, height: int) -> str:
    if width <= 0 or height <= 0:
        return "1:1"
    target = width / height
    return min(SUPPORTED_ASPECT_RATIOS, key=lambda name: abs(SUPPORTED_ASPECT_RATIOS[name] - target))
