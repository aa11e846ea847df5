"""Tests for the structuring stage."""

import json

import anthropic
import httpx
import pytest

from cv2site.models.document import ExtractedText
from cv2site.models.resume import FAILED_NAME, UNKNOWN
from cv2site.pipeline.structuring import (
    StructuringStage,
    parse_resume_record,
    validate_resume_data,
)

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


class TestStructuringStage:
    async def test_structures_valid_response(self, make_llm, sample_resume_text, structured_cv_response):
        llm = make_llm(structured_cv_response)
        record = await StructuringStage(llm).structure(sample_resume_text)

        assert record.personal_info.name == "Jane Doe"
        assert [e.company for e in record.experience] == ["Acme Corp", "Widget GmbH"]
        assert record.experience[1].start_date == UNKNOWN
        assert record.education[0].institution == "TU Berlin"
        assert record.metadata["processing_status"] == "completed"
        assert not record.is_failed

    async def test_prompt_carries_cv_text(self, make_llm, sample_resume_text, structured_cv_response):
        llm = make_llm(structured_cv_response)
        await StructuringStage(llm, max_tokens=1234).structure(sample_resume_text)

        kwargs = llm.client.messages.create.await_args.kwargs
        assert "Widget GmbH" in kwargs["messages"][0]["content"]
        assert kwargs["max_tokens"] == 1234
        assert "JSON" in kwargs["system"]

    async def test_short_text_skips_model(self, make_llm):
        llm = make_llm()
        record = await StructuringStage(llm).structure("0123456789")

        assert record.personal_info.name == FAILED_NAME
        assert record.experience == []
        assert record.education == []
        assert record.skills.is_empty()
        llm.client.messages.create.assert_not_awaited()

    async def test_whitespace_padding_does_not_count(self, make_llm):
        llm = make_llm()
        record = await StructuringStage(llm).structure("   short   " + " " * 100)
        assert record.is_failed
        llm.client.messages.create.assert_not_awaited()

    async def test_degraded_extraction_skips_model(self, make_llm):
        llm = make_llm()
        extracted = ExtractedText.degraded_with("unsupported file format: application/pdf")

        record = await StructuringStage(llm).structure(extracted)

        assert record.is_failed
        assert "unsupported file format" in record.metadata["error_message"]
        llm.client.messages.create.assert_not_awaited()

    async def test_extracted_text_accepted(self, make_llm, sample_resume_text, structured_cv_response):
        llm = make_llm(structured_cv_response)
        record = await StructuringStage(llm).structure(ExtractedText.ok(sample_resume_text))
        assert record.personal_info.name == "Jane Doe"

    async def test_prose_response_retried_then_placeholder(self, make_llm, sample_resume_text, no_sleep):
        prose = "I'm sorry, but I cannot parse this document."
        llm = make_llm(prose, prose, prose)

        record = await StructuringStage(llm).structure(sample_resume_text)

        assert record.personal_info.name == FAILED_NAME
        assert "non-JSON" in record.metadata["error_message"]
        assert llm.client.messages.create.await_count == 3
        assert no_sleep.await_count == 2

    async def test_deeply_nested_response_returns_placeholder(self, make_llm, sample_resume_text, no_sleep):
        deep = '{"personal_info": ' + "[" * 100_000 + "]" * 100_000 + "}"
        llm = make_llm(deep, deep, deep)

        record = await StructuringStage(llm).structure(sample_resume_text)

        assert record.is_failed
        assert "too deep" in record.metadata["error_message"]
        assert llm.client.messages.create.await_count == 3

    async def test_recovers_after_bad_attempt(self, make_llm, sample_resume_text, structured_cv_response):
        llm = make_llm('{"personal_info": "oops"}', structured_cv_response)

        record = await StructuringStage(llm).structure(sample_resume_text)

        assert record.personal_info.name == "Jane Doe"
        assert llm.client.messages.create.await_count == 2

    async def test_fatal_error_returns_placeholder_without_retry(self, make_llm, sample_resume_text):
        error = anthropic.AuthenticationError(
            "invalid x-api-key", response=httpx.Response(401, request=_REQUEST), body=None
        )
        llm = make_llm(error)

        record = await StructuringStage(llm).structure(sample_resume_text)

        assert record.is_failed
        assert llm.client.messages.create.await_count == 1

    async def test_input_with_braces(self, make_llm, structured_cv_response):
        text = "Jane Doe - skills: {Python, Go} and templates like {{ name }}\n" * 3
        llm = make_llm(structured_cv_response)

        record = await StructuringStage(llm).structure(text)

        assert not record.is_failed
        assert "{{ name }}" in llm.client.messages.create.await_args.kwargs["messages"][0]["content"]

    async def test_custom_threshold(self, make_llm, structured_cv_response):
        llm = make_llm(structured_cv_response)
        record = await StructuringStage(llm, min_text_length=5).structure("Jane Doe")
        assert not record.is_failed


class TestParseResumeRecord:
    def test_rejects_prose(self):
        with pytest.raises(ValueError, match="non-JSON"):
            parse_resume_record("Here is the data: {}")

    def test_rejects_fenced_json(self):
        with pytest.raises(ValueError):
            parse_resume_record('```json\n{"personal_info": {}}\n```')

    def test_rejects_malformed_json(self):
        with pytest.raises(ValueError):
            parse_resume_record('{"personal_info": ')

    def test_leading_whitespace_allowed(self, structured_cv_json):
        record = parse_resume_record("\n  " + json.dumps(structured_cv_json))
        assert record.personal_info.name == "Jane Doe"


class TestValidateResumeData:
    def _minimal(self, **overrides):
        data = {"personal_info": {}, "experience": [], "education": [], "skills": {}}
        data.update(overrides)
        return data

    def test_missing_fields_become_sentinel(self):
        record = validate_resume_data(self._minimal(personal_info={"name": "  Jane  ", "email": ""}))
        assert record.personal_info.name == "Jane"
        assert record.personal_info.email == UNKNOWN
        assert record.personal_info.phone == UNKNOWN
        assert record.skills.technical == []

    @pytest.mark.parametrize("field", ["personal_info", "experience", "education", "skills"])
    def test_wrong_container_type_rejected(self, field):
        with pytest.raises(ValueError, match=field):
            validate_resume_data(self._minimal(**{field: "nope"}))

    def test_non_object_rejected(self):
        with pytest.raises(ValueError):
            validate_resume_data(["not", "a", "dict"])

    def test_entries_are_coerced(self):
        data = self._minimal(
            experience=[
                {"title": "Engineer", "company": "Acme", "achievements": ["Shipped", "", 42, "  Led  "]},
                "not an entry",
                {"title": {"nested": True}},
            ],
            education=[{"degree": "BSc", "year": 2017}],
        )
        record = validate_resume_data(data)

        assert len(record.experience) == 2
        assert record.experience[0].achievements == ["Shipped", "Led"]
        assert record.experience[0].duration == UNKNOWN
        assert record.experience[1].title == UNKNOWN
        assert record.education[0].year == "2017"

    def test_skills_deduplicated_in_order(self):
        record = validate_resume_data(self._minimal(skills={"technical": ["Go", "Python", "Go"], "languages": "English"}))
        assert record.skills.technical == ["Go", "Python"]
        assert record.skills.languages == []

    def test_metadata_marked_completed(self):
        record = validate_resume_data(self._minimal(metadata={"source": "upload", "processing_status": "failed"}))
        assert record.metadata["source"] == "upload"
        assert record.metadata["processing_status"] == "completed"
        assert "extracted_at" in record.metadata
