"""Main pipeline orchestrator - extract, structure, generate, sanitize."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from cv2site.clients.llm_client import LLMClient
from cv2site.config import AppConfig
from cv2site.models.document import ExtractedText, RawDocument
from cv2site.models.resume import ResumeRecord
from cv2site.models.style import StyleConfig
from cv2site.models.website import GeneratedArtifact
from cv2site.parsers.document_parser import extract
from cv2site.pipeline.generation import GenerationStage
from cv2site.pipeline.structuring import StructuringStage
from cv2site.utils.content_sanitizer import sanitize_artifact

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Complete result from one document run."""

    extracted: ExtractedText
    record: ResumeRecord
    artifact: GeneratedArtifact | None = None  # None when structuring failed
    elapsed_seconds: float = 0.0
    metadata: dict = field(default_factory=dict)


class ResumeSitePipeline:
    """Runs one document through the whole pipeline, sequentially.

    A pipeline instance holds no per-run state, but callers must not run the
    same document through it twice concurrently.
    """

    def __init__(self, llm: LLMClient, *, config: AppConfig | None = None):
        config = config or AppConfig()
        self.llm = llm
        self.max_bytes = config.extraction.max_bytes
        self.structuring = StructuringStage(
            llm,
            min_text_length=config.structuring.min_text_length,
            max_tokens=config.llm.structuring_max_tokens,
        )
        self.generation = GenerationStage(llm, max_tokens=config.llm.generation_max_tokens)

    async def process_document(self, document: RawDocument) -> ResumeRecord:
        """Extract and structure one document."""
        extracted = extract(document, max_bytes=self.max_bytes)
        return await self.structuring.structure(extracted)

    async def build_site(self, record: ResumeRecord, style: StyleConfig | None = None) -> GeneratedArtifact:
        """Generate website source and sanitize it, whichever tier produced it."""
        artifact = await self.generation.generate(record, style)
        return sanitize_artifact(artifact)

    async def run(
        self,
        document: RawDocument,
        style: StyleConfig | None = None,
        *,
        on_phase: Callable[[str, str], None] | None = None,
    ) -> PipelineResult:
        """Run the full pipeline.

        Args:
            document: Uploaded résumé.
            style: Website style; defaults apply when omitted.
            on_phase: Optional callback(phase_name, detail) for progress.
        """
        start = time.monotonic()

        def _notify(phase: str, detail: str = "") -> None:
            if on_phase:
                on_phase(phase, detail)

        _notify("extract", f"Extracting text from {document.filename or 'document'}")
        extracted = extract(document, max_bytes=self.max_bytes)

        _notify("structure", "Structuring CV data")
        record = await self.structuring.structure(extracted)

        artifact = None
        if record.is_failed:
            _notify("failed", record.metadata.get("error_message", ""))
        else:
            _notify("generate", "Generating website")
            artifact = await self.build_site(record, style)

        elapsed = time.monotonic() - start
        metadata: dict = {"tokens": self.llm.get_token_summary()}
        if artifact is not None:
            metadata["generation_tier"] = artifact.tier.value
            _notify("done", f"Done in {elapsed:.1f}s (tier: {artifact.tier.value})")

        logger.info("Pipeline finished for %r in %.1fs", document.filename, elapsed)
        return PipelineResult(
            extracted=extracted,
            record=record,
            artifact=artifact,
            elapsed_seconds=elapsed,
            metadata=metadata,
        )
