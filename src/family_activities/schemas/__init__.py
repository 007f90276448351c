from family_activities.schemas.activity import (
    ActivityCategory,
    ActivityStatus,
    ActivityType,
    AgeCategory,
    AgeGroup,
    CanonicalActivity,
    LocationInfo,
    PricingInfo,
    PricingType,
    ProviderInfo,
    RegistrationInfo,
    RegistrationStatus,
    Schedule,
    ScheduleType,
    SourceInfo,
    VenueType,
)
from family_activities.schemas.extraction import (
    ConversionDiagnostics,
    ConversionIssue,
    ExtractedEvent,
    FieldMapping,
    FieldValidationResult,
    IssueSeverity,
    IssueType,
    MappingKind,
    NormalizationResult,
    ValidationResult,
    ValidationStatus,
)

__all__ = [
    "ActivityCategory",
    "ActivityStatus",
    "ActivityType",
    "AgeCategory",
    "AgeGroup",
    "CanonicalActivity",
    "ConversionDiagnostics",
    "ConversionIssue",
    "ExtractedEvent",
    "FieldMapping",
    "FieldValidationResult",
    "IssueSeverity",
    "IssueType",
    "LocationInfo",
    "MappingKind",
    "NormalizationResult",
    "PricingInfo",
    "PricingType",
    "ProviderInfo",
    "RegistrationInfo",
    "RegistrationStatus",
    "Schedule",
    "ScheduleType",
    "SourceInfo",
    "ValidationResult",
    "ValidationStatus",
    "VenueType",
]
