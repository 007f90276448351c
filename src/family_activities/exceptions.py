"""
Error taxonomy for the extraction and normalization core.

Input errors are raised to the caller. Data-quality problems never raise;
they are recorded as issues on the normalization result instead.
"""


class ActivityExtractionError(ValueError):
    """Base class for unusable input handed to the core."""


class InvalidPayloadError(ActivityExtractionError):
    """Payload is null, not a mapping, or has no keys."""


class UnknownSchemaTypeError(ActivityExtractionError):
    """Schema type is not one of the supported values."""

    def __init__(self, schema_type: str, allowed: tuple[str, ...]):
        self.schema_type = schema_type
        self.allowed = allowed
        super().__init__(
            f"Unknown schema type '{schema_type}'. Use one of: {', '.join(allowed)}"
        )


class PayloadShapeError(ActivityExtractionError):
    """No usable array of items could be located in the payload."""

    def __init__(self, message: str, key: str | None = None):
        self.key = key
        super().__init__(message)
