"""Standalone page assembly and file bundles for generated websites."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from pathlib import Path

from markupsafe import escape

from cv2site.models.website import GeneratedArtifact

logger = logging.getLogger(__name__)

_FULL_DOCUMENT_RE = re.compile(r"^\s*(?:<!doctype\s+html|<html)", re.IGNORECASE)
_CLOSING_TAG_RE = re.compile(r"</(?=style|script)", re.IGNORECASE)


def assemble_page(artifact: GeneratedArtifact) -> str:
    """Combine html, css and javascript into one self-contained HTML file."""
    css = _guard_closing_tags(artifact.css)
    js = _guard_closing_tags(artifact.javascript)

    if _FULL_DOCUMENT_RE.match(artifact.html):
        page = _insert_before(artifact.html, "</head>", f"<style>{css}</style>")
        return _insert_before(page, "</body>", f"<script>{js}</script>")

    meta = artifact.metadata
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{escape(meta.title)}</title>
    <meta name="description" content="{escape(meta.description)}">
    <meta name="keywords" content="{escape(', '.join(meta.keywords))}">
    <style>
{css}
    </style>
</head>
<body>
{artifact.html}
    <script>
{js}
    </script>
</body>
</html>"""


def bundle_files(artifact: GeneratedArtifact) -> dict[str, str]:
    """Files for a downloadable site archive, keyed by filename."""
    generated_on = datetime.now(timezone.utc).isoformat()
    return {
        "index.html": assemble_page(artifact),
        "styles.css": artifact.css,
        "script.js": artifact.javascript,
        "README.md": f"""# {artifact.metadata.title}

{artifact.metadata.description}

## Files

- index.html - complete page with styles and scripts inlined
- styles.css - stylesheet
- script.js - scripts

Generated on: {generated_on}
""",
    }


def write_bundle(artifact: GeneratedArtifact, directory: str | Path) -> list[Path]:
    """Write ``bundle_files`` into ``directory`` and return the written paths."""
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for name, content in bundle_files(artifact).items():
        path = out_dir / name
        path.write_text(content, encoding="utf-8")
        written.append(path)
    logger.info("Wrote %d files to %s", len(written), out_dir)
    return written


def _insert_before(html: str, marker: str, snippet: str) -> str:
    index = html.lower().rfind(marker)
    if index == -1:
        return html + snippet
    return html[:index] + snippet + html[index:]


def _guard_closing_tags(code: str) -> str:
    # inlined code must not terminate its own <style>/<script> element
    return _CLOSING_TAG_RE.sub(r"<\\/", code)
