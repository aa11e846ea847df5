"""Data models for the résumé-to-website pipeline."""

from cv2site.models.document import ExtractedText, ExtractionOutcome, RawDocument
from cv2site.models.resume import (
    FAILED_NAME,
    UNKNOWN,
    Education,
    Experience,
    PersonalInfo,
    ResumeRecord,
    Skills,
)
from cv2site.models.style import (
    ColorOverrides,
    ColorScheme,
    Features,
    LayoutStyle,
    Palette,
    StyleConfig,
    Typography,
)
from cv2site.models.website import (
    GeneratedArtifact,
    GenerationTier,
    SanitizedContent,
    SiteMetadata,
)

__all__ = [
    "FAILED_NAME",
    "UNKNOWN",
    "ColorOverrides",
    "ColorScheme",
    "Education",
    "Experience",
    "ExtractedText",
    "ExtractionOutcome",
    "Features",
    "GeneratedArtifact",
    "GenerationTier",
    "LayoutStyle",
    "Palette",
    "PersonalInfo",
    "RawDocument",
    "ResumeRecord",
    "SanitizedContent",
    "SiteMetadata",
    "Skills",
    "StyleConfig",
    "Typography",
]
