"""
Prompt builders for the copywriting nodes (hooks, corrections, body, CTA).
"""
from typing import List, Optional

from studio.models.node_configs import BrandProfile


# Hook type logic follows Alex Hormozi's hook framework
HOOK_TYPE_LOGIC = {
    "desire": (
        "Promise a fast or desired transformation. Focus on the end result they want. "
        'Example: "I created a brand in 24 hours using only AI."'
    ),
    "frustration": (
        "Expose a common mistake or problem. Make them feel understood. "
        "Example: \"Your brand doesn't need more colors. It needs this.\""
    ),
    "discovery": (
        "Reveal something new or counterintuitive. Create curiosity. "
        'Example: "AI doesn\'t replace creatives, it replaces processes."'
    ),
    "story": (
        "Use a brief narrative or real case. Make it relatable. "
        'Example: "Two years ago my client couldn\'t sell a single brownie..."'
    ),
    "result": (
        "Show evidence or before/after. Use specific numbers. "
        'Example: "This video was 100% AI-generated."'
    ),
}

GENERIC_CTA_EXAMPLES = ["clic aquí", "click here", "más info", "more info"]


def _join(values: List[str]) -> str:
    return ", ".join(values) if values else "none"


def build_hook_prompt(
    input_text: str,
    hook_type: str,
    count: int,
    frameworks: List[str],
    brand: Optional[BrandProfile] = None,
) -> str:
    prompt = (
        "You are a world-class copywriter inspired by Alex Hormozi's framework.\n\n"
        "INPUTS:\n"
        f"1. BRIEF: {input_text}"
    )

    if brand:
        prompt += (
            f"\n2. INDUSTRY: {brand.industry}"
            f"\n3. TARGET AUDIENCE: {brand.target_audience}"
            f"\n4. FORBIDDEN WORDS (NEVER USE): {_join(brand.forbidden_words)}"
            f"\n5. WORD LIMIT PER HOOK: {brand.hook_limit} words"
            f"\n6. KEY CONCEPTS: {_join(brand.key_concepts)}"
        )

    prompt += (
        f"\n7. SELECTED HOOK TYPE: {hook_type}"
        f"\n8. COPY FRAMEWORKS: {_join(frameworks)}"
        "\n\nTASK:\n"
        f"Generate {count} hooks for the BRIEF above.\n"
        "Follow STRICTLY the logic of the SELECTED HOOK TYPE.\n\n"
        "HOOK TYPE LOGIC:\n"
        f"{HOOK_TYPE_LOGIC.get(hook_type, HOOK_TYPE_LOGIC['desire'])}\n\n"
        f"Apply this logic to the BRIEF{' and INDUSTRY' if brand else ''}."
    )

    if brand:
        prompt += (
            "\n\nSTRICT RULES:"
            f"\n1. NEVER use forbidden words: {_join(brand.forbidden_words)}"
            f"\n2. Keep each hook under {brand.hook_limit} words"
            f"\n3. Speak directly to: {brand.target_audience}"
            f"\n4. Incorporate concepts from: {_join(brand.key_concepts)}"
            f"\n5. Make it specific and compelling for {brand.industry} industry"
        )

    prompt += (
        f"\n\nGenerate {count} unique, compelling hooks. Format as a JSON array of "
        'objects with "hook", "hookType", and "wordCount" properties.'
    )
    return prompt


def build_correction_prompt(
    hook: str,
    word_count: int,
    brand: BrandProfile,
    exceeds_limit: bool,
    has_forbidden_words: bool,
    has_generic_cta: bool,
) -> str:
    issues = []
    if exceeds_limit:
        issues.append(
            f"- Exceeds {brand.hook_limit} word limit (currently {word_count} words)"
        )
    if has_forbidden_words:
        issues.append(f"- Contains forbidden words: {_join(brand.forbidden_words)}")
    if has_generic_cta:
        issues.append("- Has generic CTA (replace with something specific)")

    return (
        "Fix this hook according to brand guidelines:\n\n"
        f'Hook: "{hook}"\n\n'
        "Issues:\n"
        + "\n".join(issues)
        + "\n\nBrand Config:\n"
        f"- Industry: {brand.industry}\n"
        f"- Target: {brand.target_audience}\n"
        f"- Max words: {brand.hook_limit}\n\n"
        "Return ONLY the corrected hook text, no explanations."
    )


def build_body_prompt(
    hook: str,
    brief: str,
    max_words: int,
    brand: Optional[BrandProfile] = None,
) -> str:
    prompt = (
        "You are an expert copywriter following Alex Hormozi's framework.\n\n"
        "TASK: Write the body content (Development + Key Insight) for a post.\n\n"
        f"ORIGINAL BRIEF: {brief}\n"
        f"OPENING HOOK: {hook}\n\n"
        "STRUCTURE:\n"
        "1. Brief Development (2-3 sentences expanding on the hook)\n"
        '2. Key Insight or Lesson (the "aha" moment or valuable takeaway)\n\n'
        f"WORD COUNT: Keep total between 200-{max_words} words.\n"
        "Be concise, valuable, and maintain the energy from the hook."
    )

    if brand:
        prompt += (
            "\n\nBRAND CONTEXT:"
            f"\n- Industry: {brand.industry}"
            f"\n- Target Audience: {brand.target_audience}"
            f"\n- Key Concepts to incorporate: {_join(brand.key_concepts)}"
            f"\n- FORBIDDEN WORDS (avoid): {_join(brand.forbidden_words)}"
            f"\n\nWrite in a way that resonates with {brand.target_audience} "
            f"in the {brand.industry} industry."
        )
    return prompt


def build_cta_prompt(body: str, brand: Optional[BrandProfile] = None) -> str:
    generic = ", ".join(f'"{phrase}"' for phrase in GENERIC_CTA_EXAMPLES)
    prompt = (
        "Based on this copy body:\n\n"
        f'"{body}"\n\n'
        "Generate a soft, non-pushy Call-To-Action (CTA) that:\n"
        "1. Feels natural and conversational\n"
        "2. Invites engagement without being aggressive\n"
        f"3. Is specific and actionable (NOT generic like {generic})\n"
        "4. Maintains the tone and energy of the content\n\n"
        "Keep it to 1-2 sentences maximum."
    )

    if brand:
        prompt += (
            "\n\nBRAND RULES:"
            f"\n- Target Audience: {brand.target_audience}"
            f"\n- FORBIDDEN: Generic CTAs, phrases like {generic}"
            f"\n- Industry: {brand.industry}"
            f"\n\nThe CTA must feel authentic to {brand.target_audience}."
        )
    return prompt
