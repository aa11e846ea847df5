"""Deterministic portfolio site rendered from a ResumeRecord alone.

Used when the model's website output cannot be recovered. Rendering depends
only on the record and the style, so it cannot fail for a valid record.
"""

from __future__ import annotations

import re
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from cv2site.models.resume import ResumeRecord, is_known
from cv2site.models.style import FontSize, LayoutStyle, Spacing, StyleConfig
from cv2site.models.website import GeneratedArtifact, GenerationTier, SiteMetadata

SITE_TEMPLATES_DIR = Path(__file__).parent / "site_templates"

_FONT_SIZES = {FontSize.SMALL: "15px", FontSize.MEDIUM: "16px", FontSize.LARGE: "18px"}
_SECTION_PADDING = {Spacing.COMPACT: "3rem", Spacing.COMFORTABLE: "5rem", Spacing.SPACIOUS: "7rem"}
_CONTENT_WIDTH = {
    LayoutStyle.MINIMAL: "800px",
    LayoutStyle.MODERN: "1100px",
    LayoutStyle.CREATIVE: "1200px",
    LayoutStyle.PROFESSIONAL: "1000px",
}
_RADIUS = {
    LayoutStyle.MINIMAL: "2px",
    LayoutStyle.MODERN: "12px",
    LayoutStyle.CREATIVE: "20px",
    LayoutStyle.PROFESSIONAL: "6px",
}
_SAFE_URL_RE = re.compile(r"^https?://", re.IGNORECASE)

_env = Environment(
    loader=FileSystemLoader(str(SITE_TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
    undefined=StrictUndefined,
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.globals["is_known"] = is_known


def render_fallback_site(record: ResumeRecord, style: StyleConfig | None = None) -> GeneratedArtifact:
    style = style or StyleConfig()
    info = record.personal_info
    name = info.name if is_known(info.name) else "Professional"
    summary = (
        info.summary
        if is_known(info.summary)
        else "Experienced professional with a strong track record of success"
    )
    meta = SiteMetadata(
        title=f"{name}'s Portfolio",
        description=f"Professional portfolio of {name} - {summary}",
        keywords=["portfolio", "professional", name, *record.skills.technical[:5]],
    )

    html = _env.get_template("portfolio.html").render(
        record=record,
        info=info.model_copy(update={"name": name}),
        summary=summary,
        headline=_headline(record),
        meta=meta,
        style=style,
        skill_groups=_skill_groups(record),
        linkedin_url=_safe_url(info.linkedin),
        website_url=_safe_url(info.website),
    )
    css = render_fallback_css(style)
    javascript = (SITE_TEMPLATES_DIR / "portfolio.js").read_text(encoding="utf-8")

    return GeneratedArtifact(
        html=html,
        css=css,
        javascript=javascript,
        metadata=meta,
        tier=GenerationTier.TEMPLATE,
    )


def render_fallback_css(style: StyleConfig) -> str:
    return _env.get_template("portfolio.css").render(
        style=style,
        palette=style.palette,
        heading_font=_css_font(style.typography.heading_font),
        body_font=_css_font(style.typography.body_font),
        base_font_size=_FONT_SIZES[style.typography.font_size],
        section_padding=_SECTION_PADDING[style.spacing],
        content_width=_CONTENT_WIDTH[style.layout],
        radius=_RADIUS[style.layout],
    )


def _headline(record: ResumeRecord) -> str:
    if record.experience and is_known(record.experience[0].title):
        return record.experience[0].title
    return ""


def _skill_groups(record: ResumeRecord) -> list[tuple[str, list[str]]]:
    groups = [
        ("Technical Skills", record.skills.technical),
        ("Soft Skills", record.skills.soft_skills),
        ("Languages", record.skills.languages),
        ("Certifications", record.skills.certifications),
    ]
    return [(heading, items) for heading, items in groups if items]


def _css_font(name: str) -> str:
    cleaned = re.sub(r"[^\w \-]", "", name).strip() or "Inter"
    return f"'{cleaned}'"


def _safe_url(value: str) -> str:
    """Profile links from the résumé, normalized to http(s) or dropped."""
    if not is_known(value):
        return ""
    url = value.strip()
    if not _SAFE_URL_RE.match(url):
        if ":" in url.split("/", 1)[0]:
            return ""
        url = f"https://{url}"
    return url
