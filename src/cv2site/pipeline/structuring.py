"""Structuring stage: résumé text -> ResumeRecord via the model."""

from __future__ import annotations

import logging
from typing import Any

from cv2site.clients.llm_client import LLMClient, LLMError
from cv2site.models.document import ExtractedText
from cv2site.models.resume import (
    UNKNOWN,
    Education,
    Experience,
    PersonalInfo,
    ResumeRecord,
    Skills,
    utc_now_iso,
)
from cv2site.utils.json_parser import parse_json_object

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 50

SYSTEM_PROMPT = """\
You are an expert CV parser. Extract structured data from CV content and return it as valid JSON.

Your response must be a JSON object with the following structure:
{
  "personal_info": {
    "name": "string",
    "email": "string",
    "phone": "string (optional)",
    "location": "string (optional)",
    "linkedin": "string (optional)",
    "website": "string (optional)",
    "summary": "string (optional)"
  },
  "experience": [
    {
      "title": "string",
      "company": "string",
      "duration": "string",
      "description": "string",
      "achievements": ["string"],
      "start_date": "string (YYYY-MM format, optional)",
      "end_date": "string (YYYY-MM format, optional)"
    }
  ],
  "education": [
    {
      "degree": "string",
      "institution": "string",
      "year": "string",
      "gpa": "string (optional)",
      "description": "string (optional)"
    }
  ],
  "skills": {
    "technical": ["string"],
    "soft_skills": ["string"],
    "languages": ["string"],
    "certifications": ["string"]
  }
}

Rules:
- Respond with the JSON object only. Start with { and end with }. No prose, no markdown fences.
- Use "N/A" for missing optional fields.
- Keep experience and education in the order they appear in the CV.
- For dates, use YYYY-MM format when possible.
- Clean and normalize text but preserve the original meaning."""


def build_prompt(cv_content: str) -> str:
    return f"""Please parse the following CV content and extract structured data.

CV Content:
{cv_content}

Extract all available information and return it in the specified JSON format."""


class StructuringStage:
    """Turns free résumé text into a ``ResumeRecord``. Never raises."""

    def __init__(
        self,
        llm: LLMClient,
        *,
        min_text_length: int = MIN_TEXT_LENGTH,
        max_tokens: int = 4000,
    ):
        self.llm = llm
        self.min_text_length = min_text_length
        self.max_tokens = max_tokens

    async def structure(self, text: str | ExtractedText) -> ResumeRecord:
        if isinstance(text, ExtractedText):
            if text.degraded:
                logger.warning("Refusing degraded extraction: %s", text.reason)
                return ResumeRecord.failure_placeholder(
                    f"Invalid CV content: {text.reason}. "
                    "Please try uploading a different file or format."
                )
            text = text.content

        if len(text.strip()) < self.min_text_length:
            logger.warning(
                "CV text too short (%d < %d chars), skipping model call",
                len(text.strip()),
                self.min_text_length,
            )
            return ResumeRecord.failure_placeholder(
                "Invalid CV content: text is too short to process. "
                "Please try uploading a different file or format."
            )

        try:
            record = await self.llm.invoke(
                SYSTEM_PROMPT,
                build_prompt(text),
                self.max_tokens,
                accept=parse_resume_record,
            )
        except (LLMError, ValueError) as exc:
            logger.warning("CV structuring failed, returning placeholder: %s", exc)
            return ResumeRecord.failure_placeholder(str(exc))

        logger.info(
            "Structured CV for %r: %d experience, %d education entries",
            record.personal_info.name,
            len(record.experience),
            len(record.education),
        )
        return record


def parse_resume_record(raw: str) -> ResumeRecord:
    """Parse one raw model response. Raises ``ValueError`` on any problem."""
    text = raw.strip()
    if not text.startswith("{"):
        # apology, refusal or explanation instead of data
        raise ValueError(f"Model returned a non-JSON response: {text[:200]!r}")
    return validate_resume_data(parse_json_object(text))


def validate_resume_data(data: Any) -> ResumeRecord:
    """Coerce parsed model output into a fully populated ``ResumeRecord``.

    Missing optional values become ``"N/A"`` and missing lists become empty.
    Wrong container types for the top-level sections are rejected.
    """
    if not isinstance(data, dict):
        raise ValueError("CV data must be a JSON object")

    personal = data.get("personal_info")
    if not isinstance(personal, dict):
        raise ValueError("Invalid personal_info in CV data")
    experience = data.get("experience")
    if not isinstance(experience, list):
        raise ValueError("Invalid experience array in CV data")
    education = data.get("education")
    if not isinstance(education, list):
        raise ValueError("Invalid education array in CV data")
    skills = data.get("skills")
    if not isinstance(skills, dict):
        raise ValueError("Invalid skills object in CV data")

    metadata = data.get("metadata")
    metadata = dict(metadata) if isinstance(metadata, dict) else {}
    metadata.update(processing_status="completed", extracted_at=utc_now_iso())

    return ResumeRecord(
        personal_info=PersonalInfo(**_text_fields(personal, PersonalInfo)),
        experience=[
            Experience(
                **_text_fields(entry, Experience, exclude={"achievements"}),
                achievements=_string_list(entry.get("achievements")),
            )
            for entry in experience
            if isinstance(entry, dict)
        ],
        education=[
            Education(**_text_fields(entry, Education)) for entry in education if isinstance(entry, dict)
        ],
        skills=Skills(
            technical=_string_list(skills.get("technical"), unique=True),
            soft_skills=_string_list(skills.get("soft_skills"), unique=True),
            languages=_string_list(skills.get("languages"), unique=True),
            certifications=_string_list(skills.get("certifications"), unique=True),
        ),
        metadata=metadata,
    )


def _text_fields(source: dict, model: type, exclude: frozenset | set = frozenset()) -> dict[str, str]:
    return {
        name: _text(source.get(name))
        for name in model.model_fields
        if name not in exclude
    }


def _text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return UNKNOWN
    text = str(value).strip()
    return text or UNKNOWN


def _string_list(value: Any, *, unique: bool = False) -> list[str]:
    if not isinstance(value, list):
        return []
    items = [item.strip() for item in value if isinstance(item, str) and item.strip()]
    if unique:
        items = list(dict.fromkeys(items))
    return items
