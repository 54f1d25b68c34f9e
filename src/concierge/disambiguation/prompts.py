"""
Disambiguation Prompt Renderer

Deterministic {{placeholder}} rendering of the per-locale prompt templates.
No branching logic, no fallback text: a template that cannot be filled is
an error.
"""
import re
from typing import Any, Dict, Mapping

from ..config.policy import FALLBACK_TIER, PROMPT_TIERS
from ..errors import TemplateRenderError

# Placeholders each tier must be given data for
REQUIRED_FIELDS = {
    "polite": ("on_file", "requested"),
    "explicit": ("on_file", "requested"),
    "final": ("on_file", "requested"),
    FALLBACK_TIER: ("requested",),
}

_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


def prompt_data(pending) -> Dict[str, Any]:
    """Template data for a PendingDisambiguation."""
    return {"on_file": pending.candidate_a, "requested": pending.candidate_b}


def render_prompt(templates: Mapping[str, str], tier: str, data: Mapping[str, Any]) -> str:
    """
    Render one prompt tier.

    Rules:
    - Look up the template by tier
    - Validate the tier's required fields are present in data
    - Replace {{placeholders}} deterministically

    Args:
        templates: Locale prompt templates (LocaleTables.prompts)
        tier: One of polite, explicit, final, fallback
        data: Placeholder values

    Returns:
        Rendered prompt

    Raises:
        TemplateRenderError: If the tier is unknown, has no template, or a
            placeholder has no data
    """
    if tier not in PROMPT_TIERS and tier != FALLBACK_TIER:
        raise TemplateRenderError(
            f"Unknown prompt tier: {tier}. Available tiers: {list(PROMPT_TIERS) + [FALLBACK_TIER]}")

    template = templates.get(tier)
    if not template:
        raise TemplateRenderError(f"No template found for prompt tier: {tier}")

    missing_fields = [f for f in REQUIRED_FIELDS[tier] if data.get(f) in (None, "")]
    if missing_fields:
        raise TemplateRenderError(
            f"Missing required fields for {tier}: {missing_fields}. "
            f"Provided fields: {sorted(data)}"
        )

    def substitute(match) -> str:
        name = match.group(1)
        if name not in data:
            raise TemplateRenderError(
                f"Placeholder '{name}' found in {tier} template but missing from data. "
                f"Required fields: {list(REQUIRED_FIELDS[tier])}"
            )
        return str(data[name])

    return _PLACEHOLDER.sub(substitute, template)
