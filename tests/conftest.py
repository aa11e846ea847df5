"""Shared test fixtures."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from cv2site.clients.llm_client import LLMClient
from cv2site.models.resume import (
    Education,
    Experience,
    PersonalInfo,
    ResumeRecord,
    Skills,
)
from cv2site.models.style import StyleConfig
from cv2site.utils.retry import RetryPolicy


def make_api_message(text: str, input_tokens: int = 100, output_tokens: int = 50) -> MagicMock:
    """Build a mock anthropic Message-like object."""
    message = MagicMock()
    message.usage.input_tokens = input_tokens
    message.usage.output_tokens = output_tokens
    message.content = [MagicMock(text=text)]
    return message


@pytest.fixture
def sample_resume_text() -> str:
    return """Jane Doe
jane.doe@example.com | +1 555 0100 | Berlin, Germany
linkedin.com/in/janedoe

Summary
Backend engineer with six years of experience building data-heavy services.

Experience
Senior Engineer, Acme Corp (2021-03 - present)
- Led migration of billing to event sourcing
- Cut p99 latency by 40%

Engineer, Widget GmbH (2018-01 - 2021-02)
- Built the public REST API

Education
BSc Computer Science, TU Berlin, 2017

Skills
Python, Go, PostgreSQL, Kafka
"""


@pytest.fixture
def structured_cv_json() -> dict:
    """What a well-behaved model returns for ``sample_resume_text``."""
    return {
        "personal_info": {
            "name": "Jane Doe",
            "email": "jane.doe@example.com",
            "phone": "+1 555 0100",
            "location": "Berlin, Germany",
            "linkedin": "linkedin.com/in/janedoe",
            "website": "N/A",
            "summary": "Backend engineer with six years of experience building data-heavy services.",
        },
        "experience": [
            {
                "title": "Senior Engineer",
                "company": "Acme Corp",
                "duration": "2021-03 - present",
                "description": "Backend services",
                "achievements": ["Led migration of billing to event sourcing", "Cut p99 latency by 40%"],
                "start_date": "2021-03",
                "end_date": "N/A",
            },
            {
                "title": "Engineer",
                "company": "Widget GmbH",
                "duration": "2018-01 - 2021-02",
                "description": "API development",
                "achievements": ["Built the public REST API"],
            },
        ],
        "education": [
            {"degree": "BSc Computer Science", "institution": "TU Berlin", "year": "2017"},
        ],
        "skills": {
            "technical": ["Python", "Go", "PostgreSQL", "Kafka"],
            "soft_skills": [],
            "languages": ["English", "German"],
            "certifications": [],
        },
    }


@pytest.fixture
def website_json() -> dict:
    return {
        "html": "<section id=\"home\"><h1>Jane Doe</h1><p>Backend engineer</p></section>",
        "css": "body { color: #1f2937; }\nh1 { color: #2563eb; }",
        "javascript": "console.log('ready');",
        "metadata": {
            "title": "Jane Doe - Portfolio",
            "description": "Portfolio of Jane Doe",
            "keywords": ["portfolio", "backend"],
        },
    }


@pytest.fixture
def sample_record() -> ResumeRecord:
    return ResumeRecord(
        personal_info=PersonalInfo(
            name="Jane Doe",
            email="jane.doe@example.com",
            location="Berlin, Germany",
            linkedin="linkedin.com/in/janedoe",
            summary="Backend engineer with six years of experience.",
        ),
        experience=[
            Experience(
                title="Engineer",
                company="Acme",
                duration="2021 - present",
                description="Builds backend services",
                achievements=["Cut p99 latency by 40%"],
            ),
        ],
        education=[Education(degree="BSc Computer Science", institution="TU Berlin", year="2017")],
        skills=Skills(technical=["Python", "Go"], languages=["English"]),
        metadata={"processing_status": "completed"},
    )


@pytest.fixture
def sample_style() -> StyleConfig:
    return StyleConfig.from_dict({
        "layout": "minimal",
        "color_scheme": "custom",
        "colors": {"primary": "#ff0000"},
        "typography": {"heading_font": "Merriweather", "body_font": "Open Sans"},
    })


@pytest.fixture
def no_sleep() -> AsyncMock:
    """Zero-delay replacement for asyncio.sleep; records requested delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def make_llm(no_sleep):
    """Build a real LLMClient over a fake SDK client.

    Each item in ``responses`` is either a response text or an exception to
    raise; a callable is used as the ``messages.create`` side effect directly.
    """

    def _make(*responses, max_attempts: int = 3) -> LLMClient:
        sdk = MagicMock()
        if len(responses) == 1 and callable(responses[0]):
            side_effect = responses[0]
        else:
            side_effect = [
                item if isinstance(item, BaseException) else make_api_message(item)
                for item in responses
            ]
        sdk.messages.create = AsyncMock(side_effect=side_effect)
        return LLMClient(
            client=sdk,
            sleep=no_sleep,
            retry_policy=RetryPolicy(max_attempts=max_attempts),
        )

    return _make


@pytest.fixture
def mock_llm_client() -> LLMClient:
    """Create a mock LLM client."""
    client = AsyncMock(spec=LLMClient)
    client.invoke = AsyncMock(return_value="{}")
    client.get_token_summary = MagicMock(return_value={"input": 0, "output": 0, "calls": []})
    return client


@pytest.fixture
def structured_cv_response(structured_cv_json) -> str:
    return json.dumps(structured_cv_json)
