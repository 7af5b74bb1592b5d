class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class RoutineValidationError(AppError):
    """Raised when a proposed assignment is malformed and cannot be evaluated."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)

class SpanInvalidError(AppError):
    """Raised when a multi-period request cannot be planned or one of its periods conflicts."""

    CROSSES_BREAK = "crosses_break"
    EXCEEDS_DAY = "exceeds_day"
    INVALID_LENGTH = "invalid_length"
    UNKNOWN_SLOT = "unknown_slot"
    PERIOD_CONFLICT = "period_conflict"

    def __init__(self, message: str, reason: str, periods: list[int] = None, conflicts: list = None):
        self.reason = reason
        self.periods = list(periods or [])
        self.conflicts = list(conflicts or [])
        status_code = 409 if reason == self.PERIOD_CONFLICT else 400
        details = {
            "reason": reason,
            "periods": self.periods,
            "conflicts": [conflict.model_dump(mode="json") for conflict in self.conflicts],
        }
        super().__init__(message, status_code=status_code, details=details)

class SpanIntegrityError(AppError):
    """Raised when span members are found in an inconsistent state. Never repaired automatically."""
    def __init__(self, message: str, defects: list = None):
        self.defects = list(defects or [])
        super().__init__(
            message,
            status_code=500,
            details={"defects": [defect.model_dump(mode="json") for defect in self.defects]},
        )

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)

class ScheduleBusyError(AppError):
    """Raised when another request is creating the same schedule lock. Safe to retry."""
    def __init__(self, academic_year_id: str, day_index: int):
        super().__init__(
            "Schedule is being updated by another request, retry shortly",
            status_code=409,
            details={"academic_year_id": academic_year_id, "day_index": day_index},
        )

class TimeSlotConflictError(AppError):
    """Raised when a period catalog change would break spans that are already committed."""
    def __init__(self, message: str, defects: list = None):
        self.defects = list(defects or [])
        super().__init__(
            message,
            status_code=409,
            details={"defects": [defect.model_dump(mode="json") for defect in self.defects]},
        )
