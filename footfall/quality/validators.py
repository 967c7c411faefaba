"""
Data Validation Module

Two kinds of validation live here:

- Request validation for bookings, QR check-ins and hotel entries. Each
  validator returns a tagged result, ``Valid(record)`` or ``Invalid(reasons)``,
  and never touches storage; the service decides what an ``Invalid`` means.
- Rule-based batch validation of telecom aggregate files (polars), used by
  the batch loader before anything is written.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, Tuple, TypeVar, Union

import polars as pl
import structlog

from footfall.domain.models import (
    DataSource,
    EntryDraft,
    EntryEventType,
    EntrySource,
    GeoLocation,
    Hotel,
    TicketDraft,
    TouristType,
    VerificationLevel,
    VisitorType,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")


# =============================================================================
# TAGGED RESULT
# =============================================================================

@dataclass(frozen=True)
class Valid(Generic[T]):
    """Validation passed; carries the normalized record"""
    record: T


@dataclass(frozen=True)
class Invalid:
    """Validation failed; carries every reason found"""
    reasons: Tuple[str, ...]


ValidationOutcome = Union[Valid, Invalid]


def _text(fields: Mapping[str, Any], name: str) -> Optional[str]:
    value = fields.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    value = value.strip()
    return value or None


def _enum(enum_cls, value: Any, name: str, reasons: List[str], default=None):
    if value is None or value == "":
        if default is None:
            reasons.append(f"{name} is required")
        return default
    try:
        return enum_cls(str(value).upper())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        reasons.append(f"{name} must be one of: {allowed}")
        return default


def validate_booking(fields: Mapping[str, Any]) -> ValidationOutcome:
    """
    Validate a ticket booking request.

    Domestic bookings need ``from_city`` and drop ``country``; international
    bookings need ``country`` and drop ``from_city``.
    Visitors must be a whole number of at least 1.
    """
    reasons: List[str] = []

    tourist_type = _enum(TouristType, fields.get("tourist_type"), "tourist_type", reasons)

    phone = _text(fields, "phone")
    if phone is None:
        reasons.append("phone is required")

    visitors = fields.get("visitors")
    if isinstance(visitors, bool) or not isinstance(visitors, int):
        reasons.append("visitors must be an integer")
    elif visitors < 1:
        reasons.append("visitors must be at least 1")

    location = {}
    for name in ("state", "city", "place"):
        location[name] = _text(fields, name)
        if location[name] is None:
            reasons.append(f"{name} is required")

    # exactly one origin field survives, chosen by tourist type
    from_city = _text(fields, "from_city")
    country = _text(fields, "country")
    if tourist_type is TouristType.DOMESTIC:
        country = None
        if from_city is None:
            reasons.append("from_city is required for DOMESTIC bookings")
    elif tourist_type is TouristType.INTERNATIONAL:
        from_city = None
        if country is None:
            reasons.append("country is required for INTERNATIONAL bookings")

    if reasons:
        return Invalid(tuple(reasons))

    return Valid(TicketDraft(
        tourist_type=tourist_type,
        phone=phone,
        visitors=visitors,
        state=location["state"],
        city=location["city"],
        place=location["place"],
        country_code=_text(fields, "country_code"),
        from_city=from_city,
        country=country,
    ))


def _geo_location(raw: Any, reasons: List[str]) -> Optional[GeoLocation]:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        reasons.append("geo_location must be an object")
        return None

    try:
        latitude = float(raw["latitude"])
        longitude = float(raw["longitude"])
        accuracy = None if raw.get("accuracy") is None else float(raw["accuracy"])
    except (KeyError, TypeError, ValueError):
        reasons.append("geo_location needs numeric latitude and longitude")
        return None

    if not -90 <= latitude <= 90:
        reasons.append("latitude must be within [-90, 90]")
    if not -180 <= longitude <= 180:
        reasons.append("longitude must be within [-180, 180]")
    if accuracy is not None and accuracy < 0:
        reasons.append("accuracy must not be negative")

    return GeoLocation(latitude=latitude, longitude=longitude, accuracy=accuracy)


def validate_checkin(fields: Mapping[str, Any]) -> ValidationOutcome:
    """Validate a QR check-in request."""
    reasons: List[str] = []

    ticket_id = _text(fields, "ticket_id")
    if ticket_id is None:
        reasons.append("ticket_id is required")
    location_id = _text(fields, "location_id")
    if location_id is None:
        reasons.append("location_id is required")

    visitor_type = _enum(VisitorType, fields.get("visitor_type"), "visitor_type", reasons)
    event_type = _enum(EntryEventType, fields.get("event_type"), "event_type", reasons, EntryEventType.ENTRY)
    source = _enum(EntrySource, fields.get("source"), "source", reasons, EntrySource.QR_CHECKIN)
    verification = _enum(
        VerificationLevel,
        fields.get("verification_level"),
        "verification_level",
        reasons,
        VerificationLevel.SELF_DECLARED,
    )

    geo_opted_in = fields.get("geo_opted_in", False)
    if geo_opted_in is None:
        geo_opted_in = False
    if not isinstance(geo_opted_in, bool):
        reasons.append("geo_opted_in must be a boolean")

    geo = _geo_location(fields.get("geo_location"), reasons)

    if reasons:
        return Invalid(tuple(reasons))

    return Valid(EntryDraft(
        ticket_id=ticket_id,
        location_id=location_id,
        visitor_type=visitor_type,
        event_type=event_type,
        source=source,
        verification_level=verification,
        geo_opted_in=geo_opted_in,
        geo_location=geo,
    ))


def _count(fields: Mapping[str, Any], name: str, reasons: List[str], required: bool = True) -> Optional[int]:
    value = fields.get(name)
    if value is None:
        if required:
            reasons.append(f"{name} is required")
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        reasons.append(f"{name} must be an integer")
        return None
    if value < 0:
        reasons.append(f"{name} must not be negative")
        return None
    return value


def validate_hotel(fields: Mapping[str, Any]) -> ValidationOutcome:
    """
    Validate a hotel inventory entry.

    Rooms and vacancy are non-negative whole numbers and vacancy cannot exceed
    total rooms. Rating, when given, is within [0, 5].
    """
    reasons: List[str] = []

    serial_no = _count(fields, "serial_no", reasons)

    text = {}
    for name in ("name", "address", "city"):
        text[name] = _text(fields, name)
        if text[name] is None:
            reasons.append(f"{name} is required")

    total_rooms = _count(fields, "total_rooms", reasons)
    vacancy = _count(fields, "vacancy", reasons)
    if total_rooms is not None and vacancy is not None and vacancy > total_rooms:
        reasons.append("vacancy cannot exceed total rooms")

    reviews = _count(fields, "reviews", reasons, required=False)

    rating = fields.get("rating")
    if rating is not None:
        if isinstance(rating, bool) or not isinstance(rating, (int, float)):
            reasons.append("rating must be a number")
        elif not 0 <= rating <= 5:
            reasons.append("rating must be within [0, 5]")

    nearby = fields.get("nearby_places") or []
    if not isinstance(nearby, (list, tuple)) or not all(isinstance(p, str) for p in nearby):
        reasons.append("nearby_places must be a list of names")

    if reasons:
        return Invalid(tuple(reasons))

    return Valid(Hotel(
        serial_no=serial_no,
        name=text["name"],
        address=text["address"],
        city=text["city"],
        total_rooms=total_rooms,
        vacancy=vacancy,
        rating=float(rating) if rating is not None else None,
        reviews=reviews,
        category=_text(fields, "category") or "Hotel",
        nearby_places=tuple(p.strip() for p in nearby if p.strip()),
    ))


# =============================================================================
# BATCH VALIDATION
# =============================================================================

class ValidationSeverity(str, Enum):
    ERROR = "error"  # rejects the batch
    WARNING = "warning"  # logged only


class ValidationStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass
class ValidationCheck:
    """Outcome of one rule over one frame"""
    name: str
    passed: bool
    severity: ValidationSeverity
    message: str
    details: Optional[Dict[str, Any]] = None
    failed_rows: int = 0
    total_rows: int = 0

    @property
    def is_error(self) -> bool:
        return not self.passed and self.severity == ValidationSeverity.ERROR

    @property
    def is_warning(self) -> bool:
        return not self.passed and self.severity == ValidationSeverity.WARNING


@dataclass
class ValidationResult:
    status: ValidationStatus
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    checks: List[ValidationCheck] = field(default_factory=list)

    @property
    def errors(self) -> List[str]:
        return [c.message for c in self.checks if c.is_error]


Rule = Callable[[pl.DataFrame], ValidationCheck]


class DataValidator:
    """
    Rule-based validator for flat polars frames.

    Column rules are expressed as a predicate selecting offending rows; the
    rule passes when no row matches. A rule on a column the frame lacks
    fails outright. Builder methods return the validator so rules chain:

        validator = DataValidator().add_not_null_check("state").add_range_check("confidence_score", 0, 1)
    """

    def __init__(self, strict_mode: bool = False):
        self.strict_mode = strict_mode  # warnings fail the batch too
        self._rules: List[Rule] = []

    def _add_column_rule(
        self,
        name: str,
        column: str,
        offending: pl.Expr,
        describe: Callable[[int], str],
        severity: ValidationSeverity,
        details: Optional[Dict[str, Any]] = None,
    ) -> "DataValidator":
        def rule(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return ValidationCheck(name, False, severity, f"Column '{column}' not found")

            bad = df.select(offending.sum()).item() or 0
            return ValidationCheck(
                name=name,
                passed=bad == 0,
                severity=severity,
                message=describe(bad),
                details={**(details or {}), "failed_rows": bad},
                failed_rows=bad,
                total_rows=df.height,
            )

        self._rules.append(rule)
        return self

    def add_not_null_check(
        self, column: str, severity: ValidationSeverity = ValidationSeverity.ERROR
    ) -> "DataValidator":
        return self._add_column_rule(
            f"not_null_{column}",
            column,
            pl.col(column).is_null(),
            lambda n: f"Column '{column}' has {n} null values",
            severity,
        )

    def add_range_check(
        self,
        column: str,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Values outside [min_value, max_value] fail; either bound may be open, nulls are ignored."""
        offending = pl.lit(False)
        if min_value is not None:
            offending = offending | (pl.col(column) < min_value)
        if max_value is not None:
            offending = offending | (pl.col(column) > max_value)

        return self._add_column_rule(
            f"range_{column}",
            column,
            offending.fill_null(False),
            lambda n: f"Column '{column}' has {n} values outside [{min_value}, {max_value}]",
            severity,
            {"min": min_value, "max": max_value},
        )

    def add_non_negative_check(
        self, column: str, severity: ValidationSeverity = ValidationSeverity.ERROR
    ) -> "DataValidator":
        return self.add_range_check(column, min_value=0, severity=severity)

    def add_enum_check(
        self,
        column: str,
        allowed_values: List[Any],
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        return self._add_column_rule(
            f"enum_{column}",
            column,
            pl.col(column).is_not_null() & ~pl.col(column).is_in(allowed_values),
            lambda n: f"Column '{column}' has {n} values outside {allowed_values}",
            severity,
            {"allowed_values": allowed_values},
        )

    def add_custom_check(
        self,
        name: str,
        check_func: Callable[[pl.DataFrame], bool],
        message_on_fail: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Frame-level rule; a predicate that raises a polars error counts as failed."""
        def rule(df: pl.DataFrame) -> ValidationCheck:
            try:
                passed = bool(check_func(df))
            except pl.exceptions.PolarsError as e:
                return ValidationCheck(name, False, severity, f"Check failed with error: {e}")
            return ValidationCheck(
                name, passed, severity, "ok" if passed else message_on_fail, total_rows=df.height
            )

        self._rules.append(rule)
        return self

    def _status(self, errors: int, warnings: int) -> ValidationStatus:
        if errors or (warnings and self.strict_mode):
            return ValidationStatus.FAILED
        return ValidationStatus.PARTIAL if warnings else ValidationStatus.PASSED

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        checks = [rule(df) for rule in self._rules]

        for check in checks:
            if not check.passed:
                logger.warning(
                    "Validation check failed",
                    check=check.name,
                    message=check.message,
                    severity=check.severity.value,
                )

        errors = sum(c.is_error for c in checks)
        warnings = sum(c.is_warning for c in checks)
        status = self._status(errors, warnings)
        logger.info("Validation complete", status=status.value, rows=df.height, errors=errors, warnings=warnings)

        return ValidationResult(
            status=status,
            total_checks=len(checks),
            passed_checks=sum(c.passed for c in checks),
            failed_checks=errors,
            warning_count=warnings,
            checks=checks,
        )


def _window_order_holds(df: pl.DataFrame) -> bool:
    return df.filter(pl.col("window_end") < pl.col("window_start")).height == 0


def create_telecom_validator() -> DataValidator:
    """Create pre-configured validator for flat telecom aggregate frames"""
    return (
        DataValidator()
        .add_not_null_check("window_start")
        .add_not_null_check("window_end")
        .add_not_null_check("state")
        .add_not_null_check("total_devices")
        .add_not_null_check("confidence_score")
        .add_non_negative_check("total_devices")
        .add_non_negative_check("domestic_devices")
        .add_non_negative_check("international_devices")
        .add_range_check("window_minutes", min_value=1)
        .add_range_check("confidence_score", min_value=0, max_value=1)
        .add_enum_check("data_source", [s.value for s in DataSource])
        .add_not_null_check("tourist_place", severity=ValidationSeverity.WARNING)
        .add_custom_check(
            "window_order",
            _window_order_holds,
            "Some windows end before they start",
        )
    )
