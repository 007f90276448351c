"""
Extraction Pipeline.

Wires the segmenter, field extractor and schema normalizer together and
reports every run to an ExtractionMetrics sink:

    raw text -> BlockSegmenter -> FieldExtractor -> ExtractedEvent
    payload  -> SchemaNormalizer -> NormalizationResult

Records are scored by the RecordValidator on the way: extracted events
before conversion (events without a title are dropped) and converted
records after it. Both scores land on ``NormalizationResult.diagnostics``.

The module-level ``extract`` / ``normalize`` / ``extract_and_normalize``
functions use a default pipeline bound to the process-wide metrics sink.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from family_activities.configs.settings import Settings, get_settings
from family_activities.exceptions import ActivityExtractionError
from family_activities.ingestion.normalization.field_extractor import ExtractionStats, FieldExtractor
from family_activities.ingestion.normalization.schema_normalizer import SchemaNormalizer
from family_activities.ingestion.segmentation import BlockSegmenter, SegmentationStats
from family_activities.monitoring.logging import with_context
from family_activities.monitoring.metrics import (
    ExtractionMetrics,
    conversion_quality,
    get_extraction_metrics,
)
from family_activities.schemas.extraction import ExtractedEvent, NormalizationResult, ValidationResult
from family_activities.validation.confidence import extraction_quality_score
from family_activities.validation.validator import RecordValidator, ValidationMode

logger = logging.getLogger(__name__)

INLINE_SOURCE = "inline"


@dataclass
class ExtractionRun:
    """Events pulled from one document plus the counters gathered on the way."""

    events: List[ExtractedEvent] = field(default_factory=list)
    # Pre-conversion score per event, same order as ``events``
    validations: List[ValidationResult] = field(default_factory=list)
    segmentation: SegmentationStats = field(default_factory=SegmentationStats)
    extraction: ExtractionStats = field(default_factory=ExtractionStats)
    processing_time_ms: float = 0.0

    def accepted(self) -> List[Tuple[ExtractedEvent, ValidationResult]]:
        """Events that passed pre-conversion validation, with their scores."""
        return [(event, check) for event, check in zip(self.events, self.validations) if check.is_valid]

    def stats(self) -> Dict[str, Any]:
        return {
            **self.segmentation.as_dict(),
            **self.extraction.as_dict(),
            "events_rejected": len(self.events) - len(self.accepted()),
            "processing_time_ms": self.processing_time_ms,
        }


class ExtractionPipeline:
    """
    Text extraction and payload normalization with metrics reporting.

    Components are injectable; anything omitted is built from settings and
    the packaged extraction.yaml.
    """

    def __init__(
        self,
        metrics: Optional[ExtractionMetrics] = None,
        settings: Optional[Settings] = None,
        segmenter: Optional[BlockSegmenter] = None,
        extractor: Optional[FieldExtractor] = None,
        normalizer: Optional[SchemaNormalizer] = None,
        validator: Optional[RecordValidator] = None,
        reference_date: Optional[date] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            metrics: Sink for run counters. Defaults to the process-wide sink.
            settings: Shared settings for all default components
            segmenter: Block segmenter
            extractor: Field extractor
            normalizer: Schema normalizer
            validator: Record scorer. Defaults to the normalizer's validator.
            reference_date: "Today" for the default normalizer's past-date checks
        """
        self.settings = settings or get_settings()
        self.metrics = metrics if metrics is not None else get_extraction_metrics()
        self.segmenter = segmenter or BlockSegmenter(max_blocks=self.settings.MAX_EVENT_BLOCKS)
        self.extractor = extractor or FieldExtractor()
        self.normalizer = normalizer or SchemaNormalizer(
            settings=self.settings, reference_date=reference_date
        )
        self.validator = validator or self.normalizer.validator

    # ========================================================================
    # Text extraction
    # ========================================================================

    def extract(self, raw_text: Optional[str], source_url: str = INLINE_SOURCE) -> List[ExtractedEvent]:
        """
        Segment ``raw_text`` and extract one event per block.

        Args:
            raw_text: Page text (markdown or plain). None and blank give [].
            source_url: Where the text came from, for metrics

        Returns:
            Extracted events in document order
        """
        run = self.run_extraction(raw_text, source_url)
        self.metrics.record_extraction_attempt(
            source_url,
            success=True,
            activities_found=len(run.events),
            processing_time_ms=run.processing_time_ms,
        )
        return run.events

    def run_extraction(self, raw_text: Optional[str], source_url: str = INLINE_SOURCE) -> ExtractionRun:
        """Like ``extract`` but returns the counters too and records no metrics."""
        log = with_context(logger, source_url=source_url, stage="extract")
        run = ExtractionRun()

        with self.metrics.time() as timing:
            blocks, run.segmentation = self.segmenter.segment_with_stats(raw_text or "")
            run.events = [self.extractor.extract(block, run.extraction) for block in blocks]
            run.validations = [self.validator.validate(event) for event in run.events]
        run.processing_time_ms = timing["ms"]

        log.info(
            f"Extracted {len(run.events)} events from {run.segmentation.total_lines} lines "
            f"({run.segmentation.blocks_dropped} blocks over cap dropped)"
        )
        return run

    # ========================================================================
    # Normalization
    # ========================================================================

    def normalize(
        self,
        payload: Any,
        schema_type: str,
        source_url: str,
        scraped_at: Optional[datetime] = None,
    ) -> NormalizationResult:
        """
        Normalize one payload and record the attempt.

        Input errors are recorded as failed attempts and re-raised.
        """
        log = with_context(logger, source_url=source_url, schema_type=schema_type, stage="normalize")

        timing = {"ms": 0.0}
        try:
            with self.metrics.time() as timing:
                result = self.normalizer.normalize(payload, schema_type, source_url, scraped_at)
        except ActivityExtractionError as e:
            log.warning(f"Normalization failed: {e}")
            self.metrics.record_conversion_attempt(False)
            self.metrics.record_extraction_attempt(
                source_url, success=False, processing_time_ms=timing["ms"]
            )
            raise

        self.score_record(result, log)
        records = [result.record] if result.record is not None else []
        self.metrics.record_conversion_attempt(
            result.record is not None, conversion_quality(result.record)
        )
        self.metrics.record_extraction_attempt(
            source_url,
            success=True,
            activities_found=len(records),
            processing_time_ms=timing["ms"],
            quality_score=extraction_quality_score(records),
        )
        log.info(f"Normalized payload: confidence={result.confidence:.1f} issues={len(result.issues)}")
        return result

    def extract_and_normalize(
        self,
        raw_text: Optional[str],
        source_url: str,
        scraped_at: Optional[datetime] = None,
    ) -> List[NormalizationResult]:
        """
        Extract events from text and convert each through the normalizer.

        Extracted events are fed as an ``events`` payload. Events failing
        pre-conversion validation (no title) are dropped and logged.

        Returns:
            One NormalizationResult per accepted event; [] when the text
            holds none
        """
        log = with_context(logger, source_url=source_url, schema_type="events", stage="extract_and_normalize")

        with self.metrics.time() as timing:
            run = self.run_extraction(raw_text, source_url)
            accepted = run.accepted()
            for index, check in enumerate(run.validations):
                if not check.is_valid:
                    log.warning(
                        f"Event {index + 1} failed validation: {', '.join(check.issues)}",
                        extra={"block_index": index},
                    )

            results: List[NormalizationResult] = []
            if accepted:
                payload = {"events": [event.to_payload() for event, _ in accepted]}
                results = self.normalizer.normalize_all(payload, "events", source_url, scraped_at)
                for result, (_, check) in zip(results, accepted):
                    result.diagnostics.event_validation = check
                    self.score_record(result, log)

        records = [result.record for result in results if result.record is not None]
        for result in results:
            self.metrics.record_conversion_attempt(
                result.record is not None, conversion_quality(result.record)
            )
        self.metrics.record_extraction_attempt(
            source_url,
            success=True,
            activities_found=len(records),
            processing_time_ms=timing["ms"],
            quality_score=extraction_quality_score(records),
        )

        log.info(f"Extracted and normalized {len(records)} activities")
        return results

    def score_record(self, result: NormalizationResult, log: Any = logger) -> None:
        """Attach the post-conversion score of ``result.record`` to its diagnostics."""
        if result.record is None:
            return
        check = self.validator.validate(result.record, ValidationMode.POST_CONVERSION)
        result.diagnostics.record_validation = check
        if not check.is_valid:
            log.warning(
                f"Record '{result.record.title}' failed post-conversion validation: "
                f"{', '.join(check.issues)}"
            )


# ============================================================================
# DEFAULT PIPELINE
# ============================================================================

_default_pipeline: Optional[ExtractionPipeline] = None
_default_lock = threading.Lock()


def get_default_pipeline() -> ExtractionPipeline:
    global _default_pipeline
    if _default_pipeline is None:
        with _default_lock:
            if _default_pipeline is None:
                _default_pipeline = ExtractionPipeline()
    return _default_pipeline


def extract(raw_text: Optional[str]) -> List[ExtractedEvent]:
    """Extract events from raw page text."""
    return get_default_pipeline().extract(raw_text)


def normalize(
    payload: Any,
    schema_type: str,
    source_url: str,
    scraped_at: Optional[datetime] = None,
) -> NormalizationResult:
    """Normalize an extracted payload into a canonical record."""
    return get_default_pipeline().normalize(payload, schema_type, source_url, scraped_at)


def extract_and_normalize(
    raw_text: Optional[str],
    source_url: str,
    scraped_at: Optional[datetime] = None,
) -> List[NormalizationResult]:
    """Extract events from raw text and normalize each one."""
    return get_default_pipeline().extract_and_normalize(raw_text, source_url, scraped_at)
