"""
Monitoring: extraction metrics sink and structured logging setup.
"""

from .logging import ContextAdapter, JsonFormatter, LoggingOptions, TextFormatter, configure_logging, with_context
from .metrics import (
    AlertThresholds,
    ExtractionAlert,
    ExtractionMetrics,
    QualityMetrics,
    SourceMetric,
    conversion_quality,
    get_extraction_metrics,
)

__all__ = [
    # Metrics
    "AlertThresholds",
    "ExtractionAlert",
    "ExtractionMetrics",
    "QualityMetrics",
    "SourceMetric",
    "conversion_quality",
    "get_extraction_metrics",
    # Logging
    "ContextAdapter",
    "JsonFormatter",
    "LoggingOptions",
    "TextFormatter",
    "configure_logging",
    "with_context",
]
