"""Pydantic models for generated website source."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

DEFAULT_TITLE = "Professional Portfolio"
DEFAULT_DESCRIPTION = "Professional portfolio website"


class GenerationTier(str, Enum):
    DIRECT = "direct"  # model output parsed as-is
    REPAIRED = "repaired"  # extracted from prose/fences and repaired
    TEMPLATE = "template"  # deterministic fallback


class SiteMetadata(BaseModel):
    title: str = DEFAULT_TITLE
    description: str = DEFAULT_DESCRIPTION
    keywords: list[str] = Field(default_factory=list)


class GeneratedArtifact(BaseModel):
    html: str
    css: str
    javascript: str = ""
    metadata: SiteMetadata = Field(default_factory=SiteMetadata)
    tier: GenerationTier = GenerationTier.DIRECT


class SanitizedContent(BaseModel):
    html: str = ""
    css: str = ""
    javascript: str = ""
