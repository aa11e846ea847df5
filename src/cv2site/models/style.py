"""Pydantic models for the caller-supplied website style configuration."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class LayoutStyle(str, Enum):
    MINIMAL = "minimal"
    MODERN = "modern"
    CREATIVE = "creative"
    PROFESSIONAL = "professional"


class ColorScheme(str, Enum):
    BLUE = "blue"
    GREEN = "green"
    PURPLE = "purple"
    ORANGE = "orange"
    CUSTOM = "custom"


class FontSize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class Spacing(str, Enum):
    COMPACT = "compact"
    COMFORTABLE = "comfortable"
    SPACIOUS = "spacious"


class Palette(BaseModel):
    primary: str
    secondary: str
    accent: str
    background: str = "#ffffff"
    text: str = "#1f2937"


PRESET_PALETTES: dict[ColorScheme, Palette] = {
    ColorScheme.BLUE: Palette(primary="#2563eb", secondary="#1e40af", accent="#3b82f6"),
    ColorScheme.PURPLE: Palette(primary="#7c3aed", secondary="#5b21b6", accent="#a855f7"),
    ColorScheme.GREEN: Palette(primary="#059669", secondary="#047857", accent="#10b981"),
    ColorScheme.ORANGE: Palette(primary="#ea580c", secondary="#c2410c", accent="#f97316"),
}


class ColorOverrides(BaseModel):
    primary: str | None = None
    secondary: str | None = None
    accent: str | None = None
    background: str | None = None
    text: str | None = None


class Typography(BaseModel):
    heading_font: str = "Inter"
    body_font: str = "Inter"
    font_size: FontSize = FontSize.MEDIUM


class Features(BaseModel):
    contact_form: bool = False
    social_links: bool = True
    analytics: bool = False
    blog: bool = False


class StyleConfig(BaseModel):
    """Website look-and-feel. Every enumerated dimension has a default."""

    layout: LayoutStyle = LayoutStyle.MODERN
    color_scheme: ColorScheme = ColorScheme.BLUE
    colors: ColorOverrides = Field(default_factory=ColorOverrides)
    typography: Typography = Field(default_factory=Typography)
    spacing: Spacing = Spacing.COMFORTABLE
    features: Features = Field(default_factory=Features)

    @property
    def palette(self) -> Palette:
        # "custom" without overrides falls back to the blue preset
        base = PRESET_PALETTES.get(self.color_scheme, PRESET_PALETTES[ColorScheme.BLUE])
        overrides = self.colors.model_dump(exclude_none=True)
        return base.model_copy(update=overrides)

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> StyleConfig:
        """Build from a caller dict, dropping ``None`` values so defaults apply."""
        if not raw:
            return cls()
        return cls.model_validate(_drop_none(raw))

    def prompt_summary(self) -> dict[str, Any]:
        """Flat view of the resolved style for the generation prompt."""
        return {
            "layout": self.layout.value,
            "color_scheme": self.color_scheme.value,
            "colors": self.palette.model_dump(),
            "heading_font": self.typography.heading_font,
            "body_font": self.typography.body_font,
            "font_size": self.typography.font_size.value,
            "spacing": self.spacing.value,
            "features": self.features.model_dump(),
        }


def _drop_none(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _drop_none(v) for k, v in value.items() if v is not None}
    return value
