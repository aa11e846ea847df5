"""Pydantic models for uploaded documents and extracted text."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class RawDocument(BaseModel):
    content: bytes
    mime_type: str = "application/octet-stream"
    filename: str = ""


class ExtractionOutcome(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"


class ExtractedText(BaseModel):
    content: str
    outcome: ExtractionOutcome = ExtractionOutcome.OK
    reason: str | None = None  # set only when degraded

    @property
    def degraded(self) -> bool:
        return self.outcome is ExtractionOutcome.DEGRADED

    @classmethod
    def ok(cls, content: str) -> ExtractedText:
        return cls(content=content)

    @classmethod
    def degraded_with(cls, reason: str) -> ExtractedText:
        return cls(content="", outcome=ExtractionOutcome.DEGRADED, reason=reason)
