"""
Node operation registry.

Every node type maps to one async operation ``(config, inputs, provider) ->
dict``. ``run_operation`` is the boundary: it parses the raw config bag into
the node type's config model, awaits the operation and converts every
failure (validation, backend, unexpected) into a failed ExecutionResult, so
nothing raised inside an operation reaches the coordinator.

Inputs are the merged outputs of upstream nodes; operations look up the
output keys they understand (``text``, ``hooks``, ``brandConfig``,
``generatedBody``, ``imageUrl``...).
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from pydantic import ValidationError

from studio.agents.copywriting.hooks import (
    PASS_THRESHOLD,
    assess_hook,
    clean_corrected_hook,
    count_words,
    hook_text,
    parse_hooks,
    rescore_corrected,
)
from studio.agents.copywriting.prompts import (
    build_body_prompt,
    build_correction_prompt,
    build_cta_prompt,
    build_hook_prompt,
)
from studio.agents.search.semantic import normalize_documents, rank_by_similarity
from studio.agents.vision.analysis import (
    DEEP_ANALYSIS_PROMPT,
    DESCRIBE_FOR_GENERATION_PROMPT,
    analysis_summary,
    closest_aspect_ratio,
    describe_effect,
    normalize_analysis,
)
from studio.llm.provider import CapabilityProvider, ProviderError
from studio.models.graph import ExecutionResult
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
    SmartSearchConfig,
    Text2ImageConfig,
    TextInputConfig,
)
from studio.models.node_registry import get_node_spec

logger = logging.getLogger(__name__)

Operation = Callable[[Any, dict[str, Any], CapabilityProvider], Awaitable[dict[str, Any]]]

# ---------------------------------------------------------------------------
# Executor registry
# ---------------------------------------------------------------------------

_registry: dict[str, Operation] = {}


def executor(node_type: str):
    """
    Decorator that registers an async operation for a node type.

    Usage:
        @executor("myNodeType")
        async def _exec_my_node(config, inputs, provider) -> dict[str, Any]:
            return {"output_key": result}
    """
    def decorator(fn: Operation) -> Operation:
        _registry[node_type] = fn
        return fn
    return decorator


def registered_node_types() -> list[str]:
    return sorted(_registry)


async def run_operation(
    node_type: str,
    config: dict[str, Any],
    inputs: dict[str, Any],
    provider: CapabilityProvider,
) -> ExecutionResult:
    """Dispatch one node and always return a result, never raise."""
    operation = _registry.get(node_type)
    if operation is None:
        return ExecutionResult(
            success=False, error=f"No executor for node type '{node_type}'"
        )

    # Operations only ever see private copies
    raw_config = copy.deepcopy(config)
    inputs = copy.deepcopy(inputs)

    spec = get_node_spec(node_type)
    try:
        typed_config = (
            spec.config_model.model_validate(raw_config) if spec else raw_config
        )
        data = await operation(typed_config, inputs, provider)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        )
        return ExecutionResult(success=False, error=f"Invalid configuration: {problems}")
    except ValueError as e:
        return ExecutionResult(success=False, error=str(e))
    except ProviderError as e:
        logger.warning("Provider call failed for %s node: %s", node_type, e)
        return ExecutionResult(success=False, error=str(e))
    except Exception as e:
        logger.exception("Unexpected failure in %s node", node_type)
        return ExecutionResult(success=False, error=f"{type(e).__name__}: {e}")

    return ExecutionResult(success=True, data=data)


# ---------------------------------------------------------------------------
# Input helpers
# ---------------------------------------------------------------------------


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return "\n\n".join(str(item) for item in value if item is not None and str(item).strip())
    return str(value).strip()


def _brand_from(value: Any) -> BrandProfile | None:
    if isinstance(value, BrandProfile):
        return value
    if isinstance(value, dict) and value:
        return BrandProfile.model_validate(value)
    return None


def _brand_dump(brand: BrandProfile | None) -> dict[str, Any] | None:
    return brand.model_dump() if brand else None


def _upstream_hook(inputs: dict[str, Any]) -> str:
    """First corrected hook from a validator, else first raw hook from a generator."""
    validated = inputs.get("validatedHooks")
    if isinstance(validated, list) and validated and isinstance(validated[0], dict):
        corrected = _as_text(validated[0].get("corrected"))
        if corrected:
            return corrected

    hooks = inputs.get("hooks")
    if isinstance(hooks, list) and hooks:
        return hook_text(hooks[0]).strip()
    return ""


def _upstream_image(inputs: dict[str, Any]) -> str:
    return _as_text(inputs.get("imageUrl")) or _as_text(inputs.get("generatedUrl"))


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Copy research nodes
# ---------------------------------------------------------------------------


@executor("textInput")
async def _exec_text_input(
    config: TextInputConfig, inputs: dict, provider: CapabilityProvider
) -> dict[str, Any]:
    return {"text": config.text}


@executor("smartSearch")
async def _exec_smart_search(
    config: SmartSearchConfig, inputs: dict, provider: CapabilityProvider
) -> dict[str, Any]:
    """
    Semantic search over candidate passages.

    The query comes from config or upstream ``text``. Passages come from
    config ``documents`` or upstream ``documents``; each one is embedded and
    kept when its cosine similarity reaches ``threshold``.
    """
    query = config.query.strip() or _as_text(inputs.get("text"))
    if not query:
        raise ValueError("No query provided for search")

    embedding = await provider.generate_embedding(query)

    documents = normalize_documents(config.documents or inputs.get("documents"))
    document_embeddings = [await provider.generate_embedding(doc["text"]) for doc in documents]
    results = rank_by_similarity(
        embedding,
        documents,
        document_embeddings,
        threshold=config.threshold,
        max_results=config.max_results,
    )
    logger.info(
        "SmartSearch kept %d of %d passages for query: %s",
        len(results),
        len(documents),
        query[:100],
    )

    return {"query": query, "results": results, "embedding": embedding}


@executor("brandConfig")
async def _exec_brand_config(
    config: BrandProfile, inputs: dict, provider: CapabilityProvider
) -> dict[str, Any]:
    return {"brandConfig": config.model_dump()}


@executor("hookGenerator")
async def _exec_hook_generator(
    config: HookGeneratorConfig, inputs: dict, provider: CapabilityProvider
) -> dict[str, Any]:
    input_text = config.input_text.strip() or _as_text(inputs.get("text"))
    if not input_text:
        raise ValueError("No input text provided")

    brand = _brand_from(inputs.get("brandConfig"))
    prompt = build_hook_prompt(
        input_text=input_text,
        hook_type=config.hook_type,
        count=config.count,
        frameworks=config.frameworks,
        brand=brand,
    )
    response = await provider.generate_text(prompt)
    hooks = parse_hooks(response, config.hook_type)

    return {
        "hooks": hooks,
        "inputText": input_text,
        "hookType": config.hook_type,
        "brandConfig": _brand_dump(brand),
    }


@executor("hookValidator")
async def _exec_hook_validator(
    config: HookValidatorConfig, inputs: dict, provider: CapabilityProvider
) -> dict[str, Any]:
    """
    Score hooks against brand rules and auto-correct the weak ones.

    Penalties: over the word limit -30, forbidden word -40, generic CTA -20.
    Hooks under 70 are rewritten by the provider and re-scored on the word
    limit alone (-15 if still over).
    """
    raw_hooks = inputs.get("hooks") or config.hooks
    hooks = [text.strip() for text in (hook_text(h) for h in raw_hooks or []) if text.strip()]
    if not hooks:
        raise ValueError("No hooks provided for validation")

    brand = _brand_from(inputs.get("brandConfig")) or _brand_from(config.brand_config)
    if brand is None:
        raise ValueError("No brand configuration provided")

    validated_hooks = []
    for hook in hooks:
        assessment = assess_hook(hook, brand)
        corrected = hook
        score = assessment.score

        if assessment.needs_correction:
            correction_prompt = build_correction_prompt(
                hook,
                assessment.word_count,
                brand,
                exceeds_limit=assessment.exceeds_limit,
                has_forbidden_words=assessment.has_forbidden_words,
                has_generic_cta=assessment.has_generic_cta,
            )
            corrected = clean_corrected_hook(await provider.generate_text(correction_prompt))
            score = rescore_corrected(corrected, brand)
            logger.debug(
                "Corrected hook (score %d -> %d): %s", assessment.score, score, corrected
            )

        validated_hooks.append({
            "original": hook,
            "corrected": corrected,
            "initialScore": assessment.score,
            "score": score,
            "wordCount": assessment.word_count,
            "issues": assessment.issues(),
            "passed": score >= PASS_THRESHOLD,
        })

    return {
        "validatedHooks": validated_hooks,
        "totalHooks": len(hooks),
        "passedHooks": sum(1 for h in validated_hooks if h["passed"]),
        "brandConfig": brand.model_dump(),
    }


@executor("bodyGenerator")
async def _exec_body_generator(
    config: BodyGeneratorConfig, inputs: dict, provider: CapabilityProvider
) -> dict[str, Any]:
    hook = _upstream_hook(inputs) or config.hook.strip()
    # The brief is the original text input that also fed the hook generator
    brief = _as_text(inputs.get("text")) or config.brief.strip()

    if not hook:
        raise ValueError(
            "No hook provided. Connect Hook Generator or Hook Validator to this node."
        )
    if not brief:
        raise ValueError(
            "No brief/task provided. Connect the Text Input node to this Body Generator "
            "to provide the brief."
        )

    brand = _brand_from(inputs.get("brandConfig"))
    prompt = build_body_prompt(hook, brief, config.max_words, brand)
    generated_body = (await provider.generate_text(prompt)).strip()

    return {
        "generatedBody": generated_body,
        "hook": hook,
        "brief": brief,
        "wordCount": count_words(generated_body),
        "maxWords": config.max_words,
    }


@executor("ctaGenerator")
async def _exec_cta_generator(
    config: CTAGeneratorConfig, inputs: dict, provider: CapabilityProvider
) -> dict[str, Any]:
    body = _as_text(inputs.get("generatedBody")) or config.body.strip()
    if not body:
        raise ValueError("No body content provided for CTA generation")

    brand = _brand_from(inputs.get("brandConfig"))
    generated_cta = (await provider.generate_text(build_cta_prompt(body, brand))).strip()

    return {"generatedCTA": generated_cta, "body": body}


@executor("copyAssembler")
async def _exec_copy_assembler(
    config: CopyAssemblerConfig, inputs: dict, provider: CapabilityProvider
) -> dict[str, Any]:
    hook = _upstream_hook(inputs) or config.hook.strip()
    body = _as_text(inputs.get("generatedBody")) or config.body.strip()
    cta = _as_text(inputs.get("generatedCTA")) or config.cta.strip()

    if not hook and not body and not cta:
        raise ValueError("No content provided to assemble")

    final_copy = "\n\n".join(part for part in (hook, body, cta) if part)

    return {
        "finalCopy": final_copy,
        "hook": hook,
        "body": body,
        "cta": cta,
        "totalWords": count_words(final_copy),
        "structure": {
            "hasHook": bool(hook),
            "hasBody": bool(body),
            "hasCTA": bool(cta),
        },
    }


# ---------------------------------------------------------------------------
# VFX nodes
# ---------------------------------------------------------------------------


@executor("imageInput")
async def _exec_image_input(
    config: ImageInputConfig, inputs: dict, provider: CapabilityProvider
) -> dict[str, Any]:
    return {"imageUrl": config.image_url, "fileName": config.file_name}


@executor("deepAnalysis")
async def _exec_deep_analysis(
    config: DeepAnalysisConfig, inputs: dict, provider: CapabilityProvider
) -> dict[str, Any]:
    image_url = config.image_url.strip() or _upstream_image(inputs)
    if not image_url:
        raise ValueError("No image provided for analysis")

    analysis = normalize_analysis(
        await provider.analyze_image(image_url, DEEP_ANALYSIS_PROMPT)
    )
    return {"imageUrl": image_url, "analysis": analysis}


@executor("effectApplier")
async def _exec_effect_applier(
    config: EffectApplierConfig, inputs: dict, provider: CapabilityProvider
) -> dict[str, Any]:
    """Annotate an image with effect metadata; pixels are left untouched."""
    image_url = config.image_url.strip() or _upstream_image(inputs)
    if not image_url:
        raise ValueError("No image provided for effect application")

    effect = config.effect.strip() or "none"
    return {
        "imageUrl": image_url,
        "effect": effect,
        "intensity": config.intensity,
        "effectDescription": describe_effect(effect),
        "appliedAt": _now_iso(),
    }


# ---------------------------------------------------------------------------
# Image generation nodes
# ---------------------------------------------------------------------------


@executor("text2image")
async def _exec_text_to_image(
    config: Text2ImageConfig, inputs: dict, provider: CapabilityProvider
) -> dict[str, Any]:
    prompt = config.prompt.strip() or _as_text(inputs.get("text"))
    if not prompt:
        raise ValueError("No prompt provided for image generation")

    images = await provider.generate_image(
        prompt,
        negative_prompt=config.negative_prompt or None,
        count=1,
        aspect_ratio=closest_aspect_ratio(config.width, config.height),
    )
    if not images:
        raise ProviderError("Image generation returned no images")

    return {
        "generatedUrl": images[0],
        "prompt": prompt,
        "negativePrompt": config.negative_prompt,
        "width": config.width,
        "height": config.height,
        "steps": config.steps,
        "model": getattr(provider, "image_model", None),
        "generatedAt": _now_iso(),
    }


@executor("image2image")
async def _exec_image_to_image(
    config: Image2ImageConfig, inputs: dict, provider: CapabilityProvider
) -> dict[str, Any]:
    """
    Transform an image by describing it first, then generating from the
    description plus the requested change.
    """
    input_image = config.input_image.strip() or _upstream_image(inputs)
    prompt = config.prompt.strip()

    if not input_image:
        raise ValueError("No input image provided")
    if not prompt:
        raise ValueError("No transformation prompt provided")

    analysis = normalize_analysis(
        await provider.analyze_image(input_image, DESCRIBE_FOR_GENERATION_PROMPT)
    )
    description = analysis_summary(analysis) or "the input image"
    enhanced_prompt = (
        f"{prompt}. Style reference: {description}. Strength: {config.strength}"
    )

    images = await provider.generate_image(enhanced_prompt, count=1)
    if not images:
        raise ProviderError("Image generation returned no images")

    return {
        "generatedUrl": images[0],
        "inputImage": input_image,
        "prompt": prompt,
        "strength": config.strength,
        "generatedAt": _now_iso(),
    }
