"""Sanitization of model-authored HTML, CSS and JavaScript.

HTML goes through an allow-list parse with BeautifulSoup. CSS and JavaScript
are filtered with patterns, which is best-effort: it removes the usual
script-execution vectors but is not a security boundary on its own.

Every function here is idempotent: ``f(f(x)) == f(x)``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from typing import Any

from bs4 import BeautifulSoup
from bs4.element import CData, Comment, Declaration, ProcessingInstruction, Tag

from cv2site.models.website import GeneratedArtifact, SanitizedContent

logger = logging.getLogger(__name__)

# Removed together with everything inside them
DROPPED_TAGS = frozenset({
    "script",
    "style",
    "iframe",
    "frame",
    "frameset",
    "object",
    "embed",
    "applet",
    "form",
    "input",
    "textarea",
    "select",
    "button",
    "noscript",
    "template",
    "base",
    "link",
    "svg",
    "math",
})

ALLOWED_TAGS = frozenset({
    # content
    "h1", "h2", "h3", "h4", "h5", "h6",
    "p", "br", "hr",
    "strong", "b", "em", "i", "u", "s", "small",
    "blockquote", "code", "pre",
    "ul", "ol", "li",
    "table", "thead", "tbody", "tr", "td", "th",
    "div", "span",
    "a", "img",
    # document structure
    "html", "head", "body", "title", "meta",
    "header", "nav", "main", "section", "article", "aside", "footer",
    "figure", "figcaption", "time", "address",
})

ALLOWED_ATTRS = frozenset({
    "href", "src", "alt", "title", "class", "id", "width", "height", "target",
    "lang", "rel", "aria-label",
})
META_ATTRS = frozenset({"charset", "name", "content"})
URL_ATTRS = frozenset({"href", "src"})

_BLOCKED_SCHEMES = ("javascript:", "vbscript:", "data:")
_URL_NOISE_RE = re.compile(r"[\s\x00-\x1f\x7f]+")


def sanitize_html(html: str) -> str:
    if not html:
        return ""
    return _until_stable(_sanitize_html_once, html)


def sanitize_css(css: str) -> str:
    if not css:
        return ""
    return _until_stable(_sanitize_css_once, css)


def sanitize_javascript(js: str) -> str:
    if not js:
        return ""
    return _until_stable(_sanitize_javascript_once, js)


def sanitize_website_content(content: Mapping[str, Any]) -> SanitizedContent:
    """Sanitize an ``{html?, css?, javascript?}`` fragment.

    Missing or non-string fields come back as empty strings.
    """

    def field(name: str) -> str:
        value = content.get(name)
        return value if isinstance(value, str) else ""

    return SanitizedContent(
        html=sanitize_html(field("html")),
        css=sanitize_css(field("css")),
        javascript=sanitize_javascript(field("javascript")),
    )


def sanitize_artifact(artifact: GeneratedArtifact) -> GeneratedArtifact:
    cleaned = sanitize_website_content(artifact.model_dump(include={"html", "css", "javascript"}))
    return artifact.model_copy(update=cleaned.model_dump())


def _until_stable(step: Callable[[str], str], text: str) -> str:
    """Apply ``step`` until it no longer changes the text.

    A removal can splice its neighbours into a new match, so one pass is not
    always enough.
    """
    passes = 1
    while True:
        cleaned = step(text)
        if cleaned == text:
            if passes > 2:
                logger.debug("%s needed %d passes", step.__name__, passes)
            return cleaned
        text = cleaned
        passes += 1


# --- HTML -------------------------------------------------------------------


def _sanitize_html_once(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")

    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    for tag in soup.find_all(True):
        if tag.decomposed:
            continue
        if tag.name in DROPPED_TAGS:
            tag.decompose()
        elif tag.name not in ALLOWED_TAGS:
            tag.unwrap()
        else:
            _clean_attributes(tag)

    # Doctype stays; CDATA, processing instructions and other declarations go
    for node in soup.find_all(string=lambda text: isinstance(text, (CData, ProcessingInstruction, Declaration))):
        node.extract()

    return str(soup)


def _clean_attributes(tag: Tag) -> None:
    allowed = ALLOWED_ATTRS | META_ATTRS if tag.name == "meta" else ALLOWED_ATTRS
    kept = {}
    for attr, value in tag.attrs.items():
        name = attr.lower()
        if name not in allowed:
            continue
        if name in URL_ATTRS and not _is_safe_url(value, allow_image_data=name == "src"):
            continue
        kept[attr] = value
    tag.attrs = kept


def _is_safe_url(value: Any, *, allow_image_data: bool) -> bool:
    if not isinstance(value, str):
        return False
    compact = _URL_NOISE_RE.sub("", value).lower()
    if allow_image_data and compact.startswith("data:image/"):
        return True
    return not compact.startswith(_BLOCKED_SCHEMES)


# --- CSS --------------------------------------------------------------------

_CSS_AT_RULES_RE = re.compile(r"@(?:import|charset)\b[^;{}]*;?", re.IGNORECASE)
_CSS_BLOCKED_PROPERTY_RE = re.compile(
    r"(?<![\w.#-])(?:-moz-binding|behavior|binding|filter|zoom)\s*:[^;{}]*;?",
    re.IGNORECASE,
)
_CSS_BLOCKED_VALUE_RE = re.compile(
    r"(?<![\w-])[\w-]+\s*:[^;{}]*?(?:expression\s*\(|javascript\s*:|vbscript\s*:|progid\s*:)[^;{}]*;?",
    re.IGNORECASE,
)
_CSS_LEFTOVER_RE = re.compile(r"expression\s*\(|javascript\s*:|vbscript\s*:|progid\s*:", re.IGNORECASE)
_CSS_DATA_URL_RE = re.compile(r"url\s*\(\s*['\"]?\s*data:(?!image/)[^)]*\)", re.IGNORECASE)


def _sanitize_css_once(css: str) -> str:
    css = _CSS_AT_RULES_RE.sub("", css)
    css = _CSS_BLOCKED_PROPERTY_RE.sub("", css)
    css = _CSS_BLOCKED_VALUE_RE.sub("", css)
    # Anything left outside a declaration (selectors, comments)
    css = _CSS_LEFTOVER_RE.sub("", css)
    css = _CSS_DATA_URL_RE.sub("url(#blocked)", css)
    return css


# --- JavaScript -------------------------------------------------------------

_JS_STRING = r"""(?:"(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*'|`(?:\\.|[^`\\])*`)"""

_JS_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\beval\s*\("), "/* eval blocked */("),
    (re.compile(r"(?:\bnew\s+)?\bFunction\s*\("), "/* Function constructor blocked */("),
    (
        re.compile(r"\b(setTimeout|setInterval)\s*\(\s*" + _JS_STRING),
        r"\1(function () {} /* string argument blocked */",
    ),
    (re.compile(r"\bdocument\s*\.\s*write(?:ln)?\s*\("), "/* document.write blocked */("),
    (re.compile(r"\.\s*(?:inner|outer)HTML\s*(\+?=)(?!=)"), r".textContent \1"),
    (re.compile(r"\bnew\s+ActiveXObject\b"), "/* ActiveXObject blocked */"),
    (re.compile(r"\.\s*execScript\b"), "/* execScript blocked */"),
]


def _sanitize_javascript_once(js: str) -> str:
    for pattern, replacement in _JS_RULES:
        js = pattern.sub(replacement, js)
    return js
