"""Extraction metrics sink with success rates, quality coverage and alert checks.

One ``ExtractionMetrics`` instance is created explicitly and passed to the
pipeline; ``get_extraction_metrics()`` lazily builds a process default for
callers that do not care. Every read-modify-write happens under the lock.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from family_activities.schemas.activity import CanonicalActivity

logger = logging.getLogger(__name__)

# Weight of the previous average in the processing-time EMA
EMA_DECAY = 0.8

# Minimum attempts before success-rate alerts fire
MIN_GLOBAL_ATTEMPTS = 10
MIN_SOURCE_ATTEMPTS = 5

RECENT_FAILURE_WINDOW = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------


@dataclass
class SourceMetric:
    """Per-source extraction counters."""

    source_url: str
    total_attempts: int = 0
    successful_extractions: int = 0
    failed_extractions: int = 0
    consecutive_failures: int = 0
    total_activities_found: int = 0
    avg_activities_per_run: float = 0.0
    avg_processing_time_ms: float = 0.0
    last_successful_run: datetime | None = None
    last_failed_run: datetime | None = None
    success_rate: float = 0.0
    quality_score: float = 0.0


@dataclass
class QualityMetrics:
    """Field coverage across converted records."""

    overall_quality_score: float = 0.0
    avg_completion_rate: float = 0.0
    avg_field_coverage: float = 0.0
    activities_with_dates: int = 0
    activities_with_locations: int = 0
    activities_with_pricing: int = 0
    total_activities_processed: int = 0


@dataclass(frozen=True)
class AlertThresholds:
    """When ``check_alerts`` reports a problem."""

    min_success_rate: float = 0.8
    min_quality_score: float = 0.7
    max_failure_streak: int = 3
    max_processing_time_ms: float = 30_000.0


@dataclass
class ExtractionAlert:
    type: str  # success_rate | quality_score | processing_time | recent_failure | failure_streak
    severity: str  # warning | error
    message: str
    metric: str
    value: float
    threshold: float
    timestamp: datetime
    source_url: str | None = None
    acknowledged: bool = False


def conversion_quality(record: CanonicalActivity | None) -> QualityMetrics:
    """Coverage flags (0/1) for one converted record, fed to ``record_conversion_attempt``."""
    metrics = QualityMetrics()
    if record is None:
        return metrics
    if record.schedule.start_date or record.schedule.start_time:
        metrics.activities_with_dates = 1
    if record.location.name:
        metrics.activities_with_locations = 1
    if record.pricing.type or record.pricing.description:
        metrics.activities_with_pricing = 1
    return metrics


# ---------------------------------------------------------------------
# Sink
# ---------------------------------------------------------------------


class ExtractionMetrics:
    """Thread-safe counters for extraction and conversion runs."""

    def __init__(
        self,
        thresholds: AlertThresholds | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Args:
            thresholds: Alert limits; defaults to AlertThresholds()
            clock: Returns the current aware datetime. Injected in tests.
        """
        self.thresholds = thresholds or AlertThresholds()
        self._clock = clock
        self._lock = threading.Lock()
        self._reset_state()

    def _reset_state(self) -> None:
        self.total_extractions = 0
        self.successful_extractions = 0
        self.failed_extractions = 0
        self.total_conversions = 0
        self.successful_conversions = 0
        self.failed_conversions = 0
        self.sources: dict[str, SourceMetric] = {}
        self.quality = QualityMetrics()
        self.last_updated = self._clock()

    # -----------------------------------------------------------------
    # Recording
    # -----------------------------------------------------------------

    def record_extraction_attempt(
        self,
        source_url: str,
        success: bool,
        activities_found: int = 0,
        processing_time_ms: float = 0.0,
        quality_score: float = 0.0,
    ) -> None:
        """Count one extraction run for ``source_url``."""
        with self._lock:
            now = self._clock()
            self.total_extractions += 1
            if success:
                self.successful_extractions += 1
            else:
                self.failed_extractions += 1

            source = self.sources.get(source_url)
            if source is None:
                source = SourceMetric(source_url=source_url)
                self.sources[source_url] = source

            source.total_attempts += 1
            if success:
                source.successful_extractions += 1
                source.consecutive_failures = 0
                source.total_activities_found += activities_found
                source.last_successful_run = now
                source.avg_activities_per_run = (
                    source.total_activities_found / source.successful_extractions
                )
            else:
                source.failed_extractions += 1
                source.consecutive_failures += 1
                source.last_failed_run = now

            source.success_rate = source.successful_extractions / source.total_attempts

            if source.avg_processing_time_ms == 0:
                source.avg_processing_time_ms = processing_time_ms
            else:
                source.avg_processing_time_ms = (
                    EMA_DECAY * source.avg_processing_time_ms
                    + (1 - EMA_DECAY) * processing_time_ms
                )

            if quality_score > 0:
                source.quality_score = quality_score

            self.last_updated = now

        logger.info(
            f"Recorded extraction: url={source_url} success={success} "
            f"activities={activities_found} time={processing_time_ms:.1f}ms "
            f"quality={quality_score:.2f}"
        )

    def record_conversion_attempt(self, success: bool, quality: QualityMetrics | None = None) -> None:
        """Count one normalization and fold its field coverage into the totals."""
        quality = quality or QualityMetrics()
        with self._lock:
            self.total_conversions += 1
            if success:
                self.successful_conversions += 1
            else:
                self.failed_conversions += 1

            totals = self.quality
            totals.total_activities_processed += 1
            totals.activities_with_dates += max(0, quality.activities_with_dates)
            totals.activities_with_locations += max(0, quality.activities_with_locations)
            totals.activities_with_pricing += max(0, quality.activities_with_pricing)

            processed = totals.total_activities_processed
            totals.avg_completion_rate = self.successful_conversions / self.total_conversions
            date_rate = totals.activities_with_dates / processed
            location_rate = totals.activities_with_locations / processed
            pricing_rate = totals.activities_with_pricing / processed

            totals.avg_field_coverage = (date_rate + location_rate + pricing_rate) / 3.0
            totals.overall_quality_score = (
                totals.avg_completion_rate * 0.4
                + location_rate * 0.3
                + date_rate * 0.2
                + pricing_rate * 0.1
            )
            self.last_updated = self._clock()
            overall = totals.overall_quality_score

        logger.info(f"Recorded conversion: success={success} overall_quality={overall:.2f}")

    @contextmanager
    def time(self) -> Iterator[dict[str, float]]:
        """Time a block; the elapsed milliseconds land in the yielded dict under ``ms``."""
        timing = {"ms": 0.0}
        t0 = time.perf_counter()
        try:
            yield timing
        finally:
            timing["ms"] = (time.perf_counter() - t0) * 1000

    # -----------------------------------------------------------------
    # Reading
    # -----------------------------------------------------------------

    def check_alerts(self) -> list[ExtractionAlert]:
        """Active alert conditions at the current clock time."""
        with self._lock:
            return self._check_alerts_locked()

    def _check_alerts_locked(self) -> list[ExtractionAlert]:
        alerts: list[ExtractionAlert] = []
        now = self._clock()
        limits = self.thresholds

        if self.total_extractions > MIN_GLOBAL_ATTEMPTS:
            rate = self.successful_extractions / self.total_extractions
            if rate < limits.min_success_rate:
                alerts.append(
                    ExtractionAlert(
                        type="success_rate",
                        severity="warning",
                        message=(
                            f"Global extraction success rate ({rate * 100:.1f}%) is below "
                            f"threshold ({limits.min_success_rate * 100:.1f}%)"
                        ),
                        metric="global_success_rate",
                        value=rate,
                        threshold=limits.min_success_rate,
                        timestamp=now,
                    )
                )

        overall = self.quality.overall_quality_score
        if 0 < overall < limits.min_quality_score:
            alerts.append(
                ExtractionAlert(
                    type="quality_score",
                    severity="warning",
                    message=(
                        f"Overall quality score ({overall:.2f}) is below "
                        f"threshold ({limits.min_quality_score:.2f})"
                    ),
                    metric="overall_quality_score",
                    value=overall,
                    threshold=limits.min_quality_score,
                    timestamp=now,
                )
            )

        for url, source in self.sources.items():
            if source.total_attempts > MIN_SOURCE_ATTEMPTS and source.success_rate < limits.min_success_rate:
                alerts.append(
                    ExtractionAlert(
                        type="success_rate",
                        severity="error",
                        message=(
                            f"Source {url} success rate ({source.success_rate * 100:.1f}%) is below "
                            f"threshold ({limits.min_success_rate * 100:.1f}%)"
                        ),
                        metric="source_success_rate",
                        value=source.success_rate,
                        threshold=limits.min_success_rate,
                        timestamp=now,
                        source_url=url,
                    )
                )

            if source.avg_processing_time_ms > limits.max_processing_time_ms:
                alerts.append(
                    ExtractionAlert(
                        type="processing_time",
                        severity="warning",
                        message=(
                            f"Source {url} average processing time "
                            f"({source.avg_processing_time_ms:.1f}ms) exceeds threshold "
                            f"({limits.max_processing_time_ms:.0f}ms)"
                        ),
                        metric="avg_processing_time",
                        value=source.avg_processing_time_ms,
                        threshold=limits.max_processing_time_ms,
                        timestamp=now,
                        source_url=url,
                    )
                )

            failed_at = source.last_failed_run
            succeeded_at = source.last_successful_run
            if failed_at is not None and (succeeded_at is None or failed_at > succeeded_at):
                since = now - failed_at
                if since < RECENT_FAILURE_WINDOW:
                    alerts.append(
                        ExtractionAlert(
                            type="recent_failure",
                            severity="error",
                            message=f"Source {url} had a recent failure {int(since.total_seconds() // 60)}m ago",
                            metric="recent_failure",
                            value=since.total_seconds() / 60,
                            threshold=0.0,
                            timestamp=now,
                            source_url=url,
                        )
                    )

            if source.consecutive_failures >= limits.max_failure_streak:
                alerts.append(
                    ExtractionAlert(
                        type="failure_streak",
                        severity="error",
                        message=(
                            f"Source {url} failed {source.consecutive_failures} times in a row "
                            f"(threshold {limits.max_failure_streak})"
                        ),
                        metric="consecutive_failures",
                        value=source.consecutive_failures,
                        threshold=limits.max_failure_streak,
                        timestamp=now,
                        source_url=url,
                    )
                )

        return alerts

    def dashboard(self) -> dict[str, Any]:
        """Export all metrics as a JSON-friendly dictionary."""
        with self._lock:
            extraction_rate = (
                self.successful_extractions / self.total_extractions if self.total_extractions else 0.0
            )
            conversion_rate = (
                self.successful_conversions / self.total_conversions if self.total_conversions else 0.0
            )
            sources = [
                {
                    "url": source.source_url,
                    "success_rate": source.success_rate,
                    "avg_activities": source.avg_activities_per_run,
                    "total_attempts": source.total_attempts,
                    "consecutive_failures": source.consecutive_failures,
                    "last_successful": (
                        source.last_successful_run.isoformat() if source.last_successful_run else None
                    ),
                    "avg_processing_time_ms": source.avg_processing_time_ms,
                }
                for source in self.sources.values()
                if source.total_attempts > 0
            ]
            alerts = [
                {**asdict(alert), "timestamp": alert.timestamp.isoformat()}
                for alert in self._check_alerts_locked()
            ]
            quality = self.quality
            return {
                "extraction": {
                    "total_attempts": self.total_extractions,
                    "successful": self.successful_extractions,
                    "failed": self.failed_extractions,
                    "success_rate": extraction_rate,
                },
                "conversion": {
                    "total_attempts": self.total_conversions,
                    "successful": self.successful_conversions,
                    "failed": self.failed_conversions,
                    "success_rate": conversion_rate,
                },
                "quality": {
                    "overall_score": quality.overall_quality_score,
                    "completion_rate": quality.avg_completion_rate,
                    "field_coverage": quality.avg_field_coverage,
                    "activities_with_dates": quality.activities_with_dates,
                    "activities_with_locations": quality.activities_with_locations,
                    "activities_with_pricing": quality.activities_with_pricing,
                    "total_processed": quality.total_activities_processed,
                },
                "sources": sources,
                "alerts": alerts,
                "last_updated": self.last_updated.isoformat(),
            }

    def reset(self) -> None:
        with self._lock:
            self._reset_state()
        logger.info("Extraction metrics reset")

    def log_summary(self) -> None:
        """Log a multi-line summary, including any active alerts."""
        with self._lock:
            rate = (
                self.successful_extractions / self.total_extractions if self.total_extractions else 0.0
            )
            quality = self.quality
            alerts = self._check_alerts_locked()

            logger.info("=== EXTRACTION METRICS SUMMARY ===")
            logger.info(
                f"Extractions: {self.total_extractions} (success={self.successful_extractions}, "
                f"failed={self.failed_extractions}, rate={rate * 100:.1f}%)"
            )
            logger.info(
                f"Conversions: {self.total_conversions} (success={self.successful_conversions}, "
                f"failed={self.failed_conversions})"
            )
            logger.info(
                f"Quality score: {quality.overall_quality_score:.2f}, "
                f"completion rate: {quality.avg_completion_rate * 100:.1f}%, "
                f"field coverage: {quality.avg_field_coverage * 100:.1f}%"
            )
            logger.info(f"Active sources: {len(self.sources)}")

        if alerts:
            logger.warning(f"Active alerts: {len(alerts)}")
            for alert in alerts:
                logger.warning(f"ALERT [{alert.severity}]: {alert.message}")


# ---------------------------------------------------------------------
# Process default
# ---------------------------------------------------------------------

_default_metrics: ExtractionMetrics | None = None
_default_lock = threading.Lock()


def get_extraction_metrics() -> ExtractionMetrics:
    """Return the lazily created process-wide sink."""
    global _default_metrics
    if _default_metrics is None:
        with _default_lock:
            if _default_metrics is None:
                _default_metrics = ExtractionMetrics()
    return _default_metrics
