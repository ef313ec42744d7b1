"""
Tests for the node operation registry and the thirteen node operations.

Operations are exercised through run_operation so the registry boundary
(config parsing, error conversion, input copying) is covered too.
"""

import copy

import pytest

from studio.llm.provider import ProviderError
from studio.services.node_executors import registered_node_types, run_operation
from studio.models.node_registry import NODE_REGISTRY


REAL_ESTATE_BRAND = {
    "industry": "Real estate",
    "targetAudience": "First-time buyers",
    "forbiddenWords": ["cheap"],
    "hookLimit": 12,
}


class TestRegistry:
    def test_every_catalog_type_has_an_operation(self):
        assert set(NODE_REGISTRY) <= set(registered_node_types())

    @pytest.mark.asyncio
    async def test_unknown_node_type_fails(self, fake_provider):
        result = await run_operation("mystery", {}, {}, fake_provider)

        assert result.success is False
        assert result.data is None
        assert result.error == "No executor for node type 'mystery'"

    @pytest.mark.asyncio
    async def test_invalid_config_becomes_failure(self, fake_provider):
        result = await run_operation(
            "smartSearch", {"query": "pricing", "threshold": 2}, {}, fake_provider
        )

        assert result.success is False
        assert result.error.startswith("Invalid configuration")
        assert "threshold" in result.error

    @pytest.mark.asyncio
    async def test_provider_error_becomes_failure(self, fake_provider):
        fake_provider.fail_with = ProviderError("Gemini API error: quota exceeded")

        result = await run_operation(
            "ctaGenerator", {}, {"generatedBody": "Some body"}, fake_provider
        )

        assert result.success is False
        assert result.error == "Gemini API error: quota exceeded"

    @pytest.mark.asyncio
    async def test_inputs_and_config_are_not_mutated(self, fake_provider):
        config = {"label": "Validator", "hooks": []}
        inputs = {
            "hooks": [{"hook": "This cheap deal is gone soon, really very soon, trust me now"}],
            "brandConfig": dict(REAL_ESTATE_BRAND),
        }
        config_before = copy.deepcopy(config)
        inputs_before = copy.deepcopy(inputs)

        result = await run_operation("hookValidator", config, inputs, fake_provider)

        assert result.success is True
        assert config == config_before
        assert inputs == inputs_before


class TestCopyNodes:
    @pytest.mark.asyncio
    async def test_text_input_passes_text_through(self, fake_provider):
        result = await run_operation("textInput", {"text": "hello"}, {}, fake_provider)

        assert result.success is True
        assert result.data == {"text": "hello"}
        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_text_input_empty_config(self, fake_provider):
        result = await run_operation("textInput", {}, {}, fake_provider)
        assert result.data == {"text": ""}

    @pytest.mark.asyncio
    async def test_brand_config_fills_defaults(self, fake_provider):
        result = await run_operation(
            "brandConfig", {"industry": "Retail", "forbiddenWords": ["cheap"]}, {}, fake_provider
        )

        brand = result.data["brandConfig"]
        assert brand["industry"] == "Retail"
        assert brand["forbidden_words"] == ["cheap"]
        assert brand["hook_limit"] == 12
        assert brand["script_limit"] == 250

    @pytest.mark.asyncio
    async def test_brand_config_empty_uses_general(self, fake_provider):
        result = await run_operation("brandConfig", {}, {}, fake_provider)
        assert result.data["brandConfig"]["industry"] == "General"

    @pytest.mark.asyncio
    async def test_smart_search_requires_query(self, fake_provider):
        result = await run_operation("smartSearch", {"query": ""}, {}, fake_provider)

        assert result.success is False
        assert "query" in result.error.lower()

    @pytest.mark.asyncio
    async def test_smart_search_ranks_and_filters(self, fake_provider):
        fake_provider.embeddings = {
            "pricing": [1.0, 0.0],
            "exact match": [1.0, 0.0],
            "unrelated": [0.6, 0.8],
            "close match": [0.9, 0.1],
        }
        config = {
            "query": "pricing",
            "documents": ["unrelated", {"text": "close match", "source": "faq"}, "exact match"],
        }

        result = await run_operation("smartSearch", config, {}, fake_provider)

        assert result.success is True
        results = result.data["results"]
        assert [r["text"] for r in results] == ["exact match", "close match"]
        assert results[0]["score"] == 1.0
        assert results[1]["source"] == "faq"
        assert result.data["embedding"] == [1.0, 0.0]
        assert result.data["query"] == "pricing"

    @pytest.mark.asyncio
    async def test_smart_search_caps_results(self, fake_provider):
        config = {"query": "q", "maxResults": 1, "documents": ["one", "two", "three"]}

        result = await run_operation("smartSearch", config, {}, fake_provider)

        assert len(result.data["results"]) == 1

    @pytest.mark.asyncio
    async def test_smart_search_query_from_upstream_without_corpus(self, fake_provider):
        result = await run_operation("smartSearch", {}, {"text": "market trends"}, fake_provider)

        assert result.success is True
        assert result.data["query"] == "market trends"
        assert result.data["results"] == []

    @pytest.mark.asyncio
    async def test_hook_generator_parses_fenced_json(self, fake_provider):
        fake_provider.text_responses = [
            '```json\n[{"hook": "Sell your home in 30 days", "hookType": "desire", "wordCount": 6}]\n```'
        ]

        result = await run_operation(
            "hookGenerator",
            {"hookType": "desire", "count": 1},
            {"text": "Spring listing campaign", "brandConfig": {"industry": "Real estate"}},
            fake_provider,
        )

        assert result.success is True
        assert result.data["hooks"] == [
            {"hook": "Sell your home in 30 days", "hookType": "desire", "wordCount": 6}
        ]
        assert result.data["inputText"] == "Spring listing campaign"
        assert result.data["hookType"] == "desire"
        assert result.data["brandConfig"]["industry"] == "Real estate"

        prompt = fake_provider.prompts()[0]
        assert "BRIEF: Spring listing campaign" in prompt
        assert "INDUSTRY: Real estate" in prompt

    @pytest.mark.asyncio
    async def test_hook_generator_falls_back_to_lines(self, fake_provider):
        fake_provider.text_responses = ["1. First hook\n\n2) Second hook\n- Third hook"]

        result = await run_operation(
            "hookGenerator", {"inputText": "brief", "hookType": "story"}, {}, fake_provider
        )

        hooks = result.data["hooks"]
        assert [h["hook"] for h in hooks] == ["First hook", "Second hook", "Third hook"]
        assert all(h["hookType"] == "story" for h in hooks)
        assert result.data["brandConfig"] is None

    @pytest.mark.asyncio
    async def test_hook_generator_fenced_plain_text(self, fake_provider):
        fake_provider.text_responses = ["```\nHook A\nHook B\n```"]

        result = await run_operation(
            "hookGenerator", {"inputText": "brief"}, {}, fake_provider
        )

        assert [h["hook"] for h in result.data["hooks"]] == ["Hook A", "Hook B"]

    @pytest.mark.asyncio
    async def test_hook_generator_empty_json_yields_no_hooks(self, fake_provider):
        fake_provider.text_responses = ["```json\n[]\n```"]

        result = await run_operation(
            "hookGenerator", {"inputText": "brief"}, {}, fake_provider
        )

        assert result.success is True
        assert result.data["hooks"] == []

    @pytest.mark.asyncio
    async def test_hook_generator_requires_text(self, fake_provider):
        result = await run_operation("hookGenerator", {}, {}, fake_provider)

        assert result.success is False
        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_hook_validator_flags_generic_cta_without_correction(self, fake_provider):
        result = await run_operation(
            "hookValidator",
            {},
            {"hooks": ["Click here now"], "brandConfig": REAL_ESTATE_BRAND},
            fake_provider,
        )

        assert result.success is True
        validated = result.data["validatedHooks"][0]
        assert validated["issues"] == {
            "exceedsLimit": False,
            "hasForbiddenWords": False,
            "hasGenericCTA": True,
        }
        assert validated["initialScore"] == 80
        assert validated["score"] == 80
        assert validated["passed"] is True
        assert validated["corrected"] == "Click here now"
        assert result.data["totalHooks"] == 1
        assert result.data["passedHooks"] == 1
        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_hook_validator_corrects_low_scores(self, fake_provider):
        fake_provider.text_responses = ['"Your first home, found faster"']
        brand = {**REAL_ESTATE_BRAND, "hookLimit": 5}

        result = await run_operation(
            "hookValidator",
            {"hooks": [{"hook": "This cheap condo deal will not last very long"}], "brandConfig": brand},
            {},
            fake_provider,
        )

        validated = result.data["validatedHooks"][0]
        assert validated["initialScore"] == 30
        assert validated["issues"]["exceedsLimit"] is True
        assert validated["issues"]["hasForbiddenWords"] is True
        assert validated["corrected"] == "Your first home, found faster"
        assert validated["score"] == 100
        assert validated["passed"] is True
        assert validated["wordCount"] == 9

        prompts = fake_provider.prompts()
        assert len(prompts) == 1
        assert "Exceeds 5 word limit (currently 9 words)" in prompts[0]
        assert "Contains forbidden words: cheap" in prompts[0]

    @pytest.mark.asyncio
    async def test_hook_validator_corrected_still_too_long(self, fake_provider):
        fake_provider.text_responses = ["one two three four five six seven"]
        brand = {"industry": "Retail", "forbiddenWords": ["cheap"], "hookLimit": 3}

        result = await run_operation(
            "hookValidator", {}, {"hooks": ["cheap stuff here today"], "brandConfig": brand}, fake_provider
        )

        validated = result.data["validatedHooks"][0]
        assert validated["initialScore"] == 30
        assert validated["score"] == 85
        assert validated["passed"] is True

    @pytest.mark.asyncio
    async def test_hook_validator_requires_hooks(self, fake_provider):
        result = await run_operation(
            "hookValidator", {}, {"brandConfig": REAL_ESTATE_BRAND}, fake_provider
        )
        assert result.error == "No hooks provided for validation"

    @pytest.mark.asyncio
    async def test_hook_validator_requires_brand(self, fake_provider):
        result = await run_operation("hookValidator", {}, {"hooks": ["A hook"]}, fake_provider)
        assert result.error == "No brand configuration provided"

    @pytest.mark.asyncio
    async def test_body_generator_prefers_corrected_hook(self, fake_provider):
        fake_provider.text_responses = ["  The body copy.  "]
        inputs = {
            "validatedHooks": [{"original": "raw", "corrected": "Corrected hook"}],
            "hooks": [{"hook": "Generator hook"}],
            "text": "Launch brief",
        }

        result = await run_operation("bodyGenerator", {"maxWords": 200}, inputs, fake_provider)

        assert result.data == {
            "generatedBody": "The body copy.",
            "hook": "Corrected hook",
            "brief": "Launch brief",
            "wordCount": 3,
            "maxWords": 200,
        }
        assert "OPENING HOOK: Corrected hook" in fake_provider.prompts()[0]

    @pytest.mark.asyncio
    async def test_body_generator_missing_hook(self, fake_provider):
        result = await run_operation("bodyGenerator", {}, {"text": "brief"}, fake_provider)

        assert result.success is False
        assert result.error.startswith("No hook provided")

    @pytest.mark.asyncio
    async def test_body_generator_missing_brief(self, fake_provider):
        result = await run_operation(
            "bodyGenerator", {}, {"hooks": [{"hook": "A hook"}]}, fake_provider
        )

        assert result.success is False
        assert result.error.startswith("No brief/task provided")

    @pytest.mark.asyncio
    async def test_cta_generator(self, fake_provider):
        fake_provider.text_responses = ["Book a viewing this weekend."]

        result = await run_operation(
            "ctaGenerator", {}, {"generatedBody": "A body"}, fake_provider
        )

        assert result.data == {"generatedCTA": "Book a viewing this weekend.", "body": "A body"}

    @pytest.mark.asyncio
    async def test_cta_generator_requires_body(self, fake_provider):
        result = await run_operation("ctaGenerator", {}, {}, fake_provider)
        assert result.error == "No body content provided for CTA generation"

    @pytest.mark.asyncio
    async def test_copy_assembler_joins_parts(self, fake_provider):
        inputs = {
            "validatedHooks": [{"corrected": "Hook line"}],
            "generatedBody": "Body text",
            "generatedCTA": "Call now",
        }

        result = await run_operation("copyAssembler", {}, inputs, fake_provider)

        assert result.data["finalCopy"] == "Hook line\n\nBody text\n\nCall now"
        assert result.data["totalWords"] == 6
        assert result.data["structure"] == {"hasHook": True, "hasBody": True, "hasCTA": True}

    @pytest.mark.asyncio
    async def test_copy_assembler_body_only(self, fake_provider):
        result = await run_operation(
            "copyAssembler", {}, {"generatedBody": "Body text here"}, fake_provider
        )

        assert result.success is True
        assert result.data["finalCopy"] == "Body text here"
        assert result.data["structure"] == {"hasHook": False, "hasBody": True, "hasCTA": False}

    @pytest.mark.asyncio
    async def test_copy_assembler_requires_content(self, fake_provider):
        result = await run_operation("copyAssembler", {}, {}, fake_provider)
        assert result.error == "No content provided to assemble"


class TestImageNodes:
    @pytest.mark.asyncio
    async def test_image_input_defaults(self, fake_provider):
        result = await run_operation(
            "imageInput", {"imageUrl": "https://example.com/a.png"}, {}, fake_provider
        )

        assert result.data == {"imageUrl": "https://example.com/a.png", "fileName": "uploaded-image"}

    @pytest.mark.asyncio
    async def test_deep_analysis_uses_upstream_image(self, fake_provider):
        result = await run_operation(
            "deepAnalysis", {}, {"imageUrl": "https://example.com/a.png"}, fake_provider
        )

        assert result.success is True
        assert result.data["imageUrl"] == "https://example.com/a.png"
        assert result.data["analysis"]["mood"] == "calm"
        name, kwargs = fake_provider.calls[0]
        assert name == "analyze_image"
        assert "colorPalette" in kwargs["prompt"]

    @pytest.mark.asyncio
    async def test_deep_analysis_wraps_unstructured(self, fake_provider):
        fake_provider.analysis = {"caption": "a house"}

        result = await run_operation(
            "deepAnalysis", {"imageUrl": "data:image/png;base64,AAAA"}, {}, fake_provider
        )

        assert set(result.data["analysis"]) == {"analysis"}

    @pytest.mark.asyncio
    async def test_deep_analysis_requires_image(self, fake_provider):
        result = await run_operation("deepAnalysis", {}, {}, fake_provider)
        assert result.error == "No image provided for analysis"

    @pytest.mark.asyncio
    async def test_effect_applier_known_effect(self, fake_provider):
        result = await run_operation(
            "effectApplier",
            {"effect": "cinematic", "intensity": 80},
            {"imageUrl": "https://example.com/a.png"},
            fake_provider,
        )

        assert result.data["effect"] == "cinematic"
        assert result.data["intensity"] == 80
        assert result.data["effectDescription"] == "Widescreen aspect, color grading, vignette"
        assert "appliedAt" in result.data

    @pytest.mark.asyncio
    async def test_effect_applier_unknown_effect(self, fake_provider):
        result = await run_operation(
            "effectApplier", {"effect": "sparkles"}, {"imageUrl": "x.png"}, fake_provider
        )

        assert result.data["effectDescription"] == "No effect applied"
        assert result.data["intensity"] == 50

    @pytest.mark.asyncio
    async def test_effect_applier_requires_image(self, fake_provider):
        result = await run_operation("effectApplier", {"effect": "vintage"}, {}, fake_provider)
        assert result.error == "No image provided for effect application"

    @pytest.mark.asyncio
    async def test_text_to_image(self, fake_provider):
        result = await run_operation(
            "text2image",
            {"negativePrompt": "blurry", "width": 1920, "height": 1080},
            {"text": "A sunlit loft"},
            fake_provider,
        )

        assert result.success is True
        assert result.data["generatedUrl"] == fake_provider.images[0]
        assert result.data["prompt"] == "A sunlit loft"
        assert result.data["negativePrompt"] == "blurry"
        assert result.data["model"] == "fake-imagen"
        assert result.data["steps"] == 30

        name, kwargs = fake_provider.calls[0]
        assert name == "generate_image"
        assert kwargs["aspect_ratio"] == "16:9"
        assert kwargs["count"] == 1
        assert kwargs["negative_prompt"] == "blurry"

    @pytest.mark.asyncio
    async def test_text_to_image_requires_prompt(self, fake_provider):
        result = await run_operation("text2image", {}, {}, fake_provider)
        assert result.error == "No prompt provided for image generation"

    @pytest.mark.asyncio
    async def test_text_to_image_no_images(self, fake_provider):
        fake_provider.images = []
        result = await run_operation("text2image", {"prompt": "x"}, {}, fake_provider)
        assert result.success is False

    @pytest.mark.asyncio
    async def test_image_to_image(self, fake_provider):
        fake_provider.analysis = {"analysis": "A red brick townhouse"}

        result = await run_operation(
            "image2image",
            {"prompt": "Make it winter"},
            {"generatedUrl": "data:image/png;base64,AAAA"},
            fake_provider,
        )

        assert result.success is True
        assert result.data["inputImage"] == "data:image/png;base64,AAAA"
        assert result.data["strength"] == 0.75
        generate_call = [kw for name, kw in fake_provider.calls if name == "generate_image"][0]
        assert generate_call["prompt"] == (
            "Make it winter. Style reference: A red brick townhouse. Strength: 0.75"
        )

    @pytest.mark.asyncio
    async def test_image_to_image_requires_image(self, fake_provider):
        result = await run_operation("image2image", {"prompt": "x"}, {}, fake_provider)
        assert result.error == "No input image provided"

    @pytest.mark.asyncio
    async def test_image_to_image_requires_prompt(self, fake_provider):
        result = await run_operation(
            "image2image", {"inputImage": "https://example.com/a.png"}, {}, fake_provider
        )
        assert result.error == "No transformation prompt provided"
