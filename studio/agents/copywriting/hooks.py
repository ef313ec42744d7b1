"""
Hook parsing and brand-rule scoring.

Generated hooks are parsed in two stages: structured JSON first, then a
line-splitting fallback. Scoring is pure so it can be checked without a
backend; the validator node only calls the provider for corrections.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Optional

from studio.llm.provider import extract_json, strip_code_fences
from studio.models.node_configs import BrandProfile


PASS_THRESHOLD = 70

EXCEEDS_LIMIT_PENALTY = 30
FORBIDDEN_WORD_PENALTY = 40
GENERIC_CTA_PENALTY = 20
CORRECTED_OVER_LIMIT_PENALTY = 15

GENERIC_CTA_PATTERN = re.compile(
    r"\b(clic aquí|click here|más info|more info)\b", re.IGNORECASE
)

_LIST_MARKER = re.compile(r"^\s*(?:\d+[.)]\s*|[-*•]\s*)")


def count_words(text: str) -> int:
    return len(text.split())


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_structured_hooks(raw_text: str, hook_type: str) -> Optional[list[dict[str, Any]]]:
    """Stage one: read the response as JSON hook objects. None if it isn't JSON."""
    data = extract_json(raw_text)
    if data is None:
        return None

    if isinstance(data, dict):
        items = data.get("hooks") if isinstance(data.get("hooks"), list) else [data]
    elif isinstance(data, list):
        items = data
    else:
        return None

    hooks: list[dict[str, Any]] = []
    for item in items:
        if isinstance(item, dict):
            text = str(item.get("hook") or item.get("text") or "").strip()
            if not text:
                continue
            hooks.append({
                **item,
                "hook": text,
                "hookType": item.get("hookType") or hook_type,
                "wordCount": item.get("wordCount") or count_words(text),
            })
        elif isinstance(item, str) and item.strip():
            hooks.append({
                "hook": item.strip(),
                "hookType": hook_type,
                "wordCount": count_words(item),
            })
    return hooks or None


def split_hook_lines(raw_text: str, hook_type: str) -> list[dict[str, Any]]:
    """Stage two: one hook per non-empty line, list markers removed."""
    hooks: list[dict[str, Any]] = []
    for line in raw_text.splitlines():
        if not line.strip():
            continue
        text = _LIST_MARKER.sub("", line).strip()
        if not text:
            continue
        hooks.append({
            "hook": text,
            "hookType": hook_type,
            "wordCount": count_words(line),
        })
    return hooks


def _is_json(text: str) -> bool:
    try:
        json.loads(text)
    except json.JSONDecodeError:
        return False
    return True


def parse_hooks(raw_text: str, hook_type: str) -> list[dict[str, Any]]:
    """
    JSON hooks when the response has any, else one hook per line.

    A response that is valid JSON but holds no hook text yields no hooks.
    """
    cleaned = strip_code_fences(raw_text)
    structured = parse_structured_hooks(cleaned, hook_type)
    if structured:
        return structured
    if _is_json(cleaned):
        return []
    return split_hook_lines(cleaned, hook_type)


def hook_text(hook: Any) -> str:
    """Hooks arrive as plain strings or as generator objects with a ``hook`` key."""
    if isinstance(hook, str):
        return hook
    if isinstance(hook, dict):
        return str(hook.get("hook") or hook.get("text") or "")
    return ""


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


@dataclass
class HookAssessment:
    word_count: int
    exceeds_limit: bool
    has_forbidden_words: bool
    has_generic_cta: bool
    score: int

    @property
    def needs_correction(self) -> bool:
        return self.score < PASS_THRESHOLD

    def issues(self) -> dict[str, bool]:
        return {
            "exceedsLimit": self.exceeds_limit,
            "hasForbiddenWords": self.has_forbidden_words,
            "hasGenericCTA": self.has_generic_cta,
        }


def assess_hook(hook: str, brand: BrandProfile) -> HookAssessment:
    word_count = count_words(hook)
    exceeds_limit = word_count > brand.hook_limit
    lowered = hook.lower()
    has_forbidden_words = any(
        word.strip() and word.lower() in lowered for word in brand.forbidden_words
    )
    has_generic_cta = bool(GENERIC_CTA_PATTERN.search(hook))

    score = 100
    if exceeds_limit:
        score -= EXCEEDS_LIMIT_PENALTY
    if has_forbidden_words:
        score -= FORBIDDEN_WORD_PENALTY
    if has_generic_cta:
        score -= GENERIC_CTA_PENALTY

    return HookAssessment(
        word_count=word_count,
        exceeds_limit=exceeds_limit,
        has_forbidden_words=has_forbidden_words,
        has_generic_cta=has_generic_cta,
        score=score,
    )


def rescore_corrected(corrected: str, brand: BrandProfile) -> int:
    """Coarse re-score of an auto-corrected hook: only the word limit is rechecked."""
    score = 100
    if count_words(corrected) > brand.hook_limit:
        score -= CORRECTED_OVER_LIMIT_PENALTY
    return score


def clean_corrected_hook(text: str) -> str:
    return re.sub(r"^[\"']|[\"']$", "", text.strip())
