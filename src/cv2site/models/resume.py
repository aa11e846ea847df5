"""Pydantic models for the structured résumé record."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN = "N/A"  # sentinel for values the résumé did not provide
FAILED_NAME = "CV Processing Failed"


def is_known(value: str | None) -> bool:
    return bool(value) and value != UNKNOWN


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class PersonalInfo(_Frozen):
    name: str = UNKNOWN
    email: str = UNKNOWN
    phone: str = UNKNOWN
    location: str = UNKNOWN
    linkedin: str = UNKNOWN
    website: str = UNKNOWN
    summary: str = UNKNOWN


class Experience(_Frozen):
    title: str = UNKNOWN
    company: str = UNKNOWN
    duration: str = UNKNOWN
    description: str = UNKNOWN
    achievements: list[str] = Field(default_factory=list)
    start_date: str = UNKNOWN  # YYYY-MM when the model could infer it
    end_date: str = UNKNOWN


class Education(_Frozen):
    degree: str = UNKNOWN
    institution: str = UNKNOWN
    year: str = UNKNOWN
    gpa: str = UNKNOWN
    description: str = UNKNOWN


class Skills(_Frozen):
    technical: list[str] = Field(default_factory=list)
    soft_skills: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.technical or self.soft_skills or self.languages or self.certifications)


class ResumeRecord(_Frozen):
    """Structured résumé produced by the structuring stage.

    Every field is always present. A record that could not be built from real
    data is still a valid record, flagged by ``metadata["processing_status"]``.
    """

    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    experience: list[Experience] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    skills: Skills = Field(default_factory=Skills)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_failed(self) -> bool:
        return self.metadata.get("processing_status") == "failed"

    @classmethod
    def failure_placeholder(cls, error_message: str) -> ResumeRecord:
        return cls(
            personal_info=PersonalInfo(
                name=FAILED_NAME,
                email=UNKNOWN,
                summary=(
                    "CV processing failed. Please try uploading a different file "
                    "format or check if the file is corrupted."
                ),
            ),
            metadata={
                "processing_status": "failed",
                "error_message": error_message or "Unknown error",
                "extracted_at": utc_now_iso(),
            },
        )


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
