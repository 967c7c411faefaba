"""
Data Quality Module
"""
from .validators import (
    DataValidator,
    Invalid,
    Valid,
    ValidationResult,
    ValidationStatus,
    create_telecom_validator,
    validate_booking,
    validate_checkin,
)

__all__ = [
    "DataValidator",
    "Invalid",
    "Valid",
    "ValidationResult",
    "ValidationStatus",
    "create_telecom_validator",
    "validate_booking",
    "validate_checkin",
]
