"""Generation stage: ResumeRecord + StyleConfig -> website source."""

from __future__ import annotations

import json
import logging
from typing import Any

from cv2site.clients.llm_client import LLMClient, LLMError
from cv2site.models.resume import ResumeRecord
from cv2site.models.style import StyleConfig
from cv2site.models.website import (
    DEFAULT_DESCRIPTION,
    DEFAULT_TITLE,
    GeneratedArtifact,
    GenerationTier,
    SiteMetadata,
)
from cv2site.pipeline.fallback_site import render_fallback_site
from cv2site.utils.json_parser import extract_json, parse_json_object

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are an expert web developer creating professional portfolio websites. Generate a complete, \
modern website based on CV data and style preferences.

CRITICAL: Respond with ONLY valid JSON in this exact structure:
{
  "html": "complete HTML document with all content",
  "css": "modern CSS styles",
  "javascript": "JavaScript for interactivity",
  "metadata": {
    "title": "page title",
    "description": "page description",
    "keywords": ["keyword1", "keyword2"]
  }
}

IMPORTANT RULES:
1. Start with { and end with }
2. Escape quotes with \\"
3. Use \\n for line breaks
4. Generate a complete, standalone HTML website without inline scripts, forms or event handler attributes
5. Put all styles in "css" and all scripts in "javascript"
6. Include responsive design
7. Apply the exact colors and fonts specified
8. Include all sections: hero, about, experience, skills, contact"""


class ArtifactValidationError(ValueError):
    """Parsed model output does not have the website artifact shape."""


def build_prompt(record: ResumeRecord, style: StyleConfig) -> str:
    cv_data = record.model_dump(include={"personal_info", "experience", "education", "skills"})
    summary = style.prompt_summary()
    palette = summary["colors"]
    return f"""Create a professional portfolio website for this person:

CV DATA:
{json.dumps(cv_data, indent=2, ensure_ascii=False)}

STYLE CONFIGURATION:
{json.dumps(summary, indent=2)}

REQUIREMENTS:
- Layout Style: {summary["layout"]}
- Primary Color: {palette["primary"]}
- Secondary Color: {palette["secondary"]}
- Accent Color: {palette["accent"]}
- Heading Font: {summary["heading_font"]}
- Body Font: {summary["body_font"]}
- Spacing: {summary["spacing"]}

CREATE A WEBSITE WITH:
1. Hero section with name, title, and call-to-action
2. About section with professional summary
3. Experience section with job history
4. Skills section with technical and soft skills
5. Contact section with contact information
6. Modern, responsive, mobile-friendly layout"""


class GenerationStage:
    """Produces website source with a three-tier fallback. Never raises.

    1. Parse the model response as JSON.
    2. Pull a fenced block or brace span out of the response and repair it.
    3. Render the deterministic template from the record alone.
    """

    def __init__(self, llm: LLMClient, *, max_tokens: int = 8000):
        self.llm = llm
        self.max_tokens = max_tokens

    async def generate(self, record: ResumeRecord, style: StyleConfig | None = None) -> GeneratedArtifact:
        style = style or StyleConfig()
        try:
            raw = await self.llm.invoke(SYSTEM_PROMPT, build_prompt(record, style), self.max_tokens)
        except LLMError as exc:
            logger.warning("Website generation call failed, using template: %s", exc)
            return render_fallback_site(record, style)

        artifact = artifact_from_response(raw)
        if artifact is None:
            logger.warning("Website response unrecoverable (%d chars), using template", len(raw))
            return render_fallback_site(record, style)

        logger.info("Website generated (tier=%s)", artifact.tier.value)
        return artifact


def artifact_from_response(raw: str) -> GeneratedArtifact | None:
    """Run tiers 1 and 2 over one model response. ``None`` means use tier 3."""
    try:
        data = parse_json_object(raw)
    except ValueError as exc:
        logger.debug("Direct JSON parse failed: %s", exc)
    else:
        try:
            return validate_artifact(data, GenerationTier.DIRECT)
        except ArtifactValidationError as exc:
            logger.warning("Invalid website JSON: %s", exc)
            return None

    try:
        data = extract_json(raw)
        return validate_artifact(data, GenerationTier.REPAIRED)
    except ValueError as exc:
        logger.debug("JSON extraction/repair failed: %s", exc)
        return None


def validate_artifact(data: Any, tier: GenerationTier) -> GeneratedArtifact:
    if not isinstance(data, dict):
        raise ArtifactValidationError("Generated website must be a JSON object")

    html = data.get("html")
    if not isinstance(html, str) or not html.strip():
        raise ArtifactValidationError("Invalid HTML in generated website")
    css = data.get("css")
    if not isinstance(css, str) or not css.strip():
        raise ArtifactValidationError("Invalid CSS in generated website")

    javascript = data.get("javascript")
    if not isinstance(javascript, str):
        javascript = ""

    meta = data.get("metadata")
    if not isinstance(meta, dict):
        meta = {}
    title = meta.get("title")
    description = meta.get("description")
    keywords = meta.get("keywords")

    return GeneratedArtifact(
        html=html,
        css=css,
        javascript=javascript,
        metadata=SiteMetadata(
            title=title if isinstance(title, str) and title.strip() else DEFAULT_TITLE,
            description=(
                description if isinstance(description, str) and description.strip() else DEFAULT_DESCRIPTION
            ),
            keywords=[k for k in keywords if isinstance(k, str)] if isinstance(keywords, list) else [],
        ),
        tier=tier,
    )
