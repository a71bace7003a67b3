"""Error taxonomy for the diabetes risk session."""


class SessionError(Exception):
    """Base class for all session errors."""


class ValidationError(SessionError):
    """Input rejected locally; never reaches the scoring service."""

    def __init__(self, field, message):
        super().__init__(message)
        self.field = field


class MissingField(ValidationError):
    """A required feature was not supplied."""

    def __init__(self, field):
        super().__init__(field, f"Missing required field: {field}")


class InvalidType(ValidationError):
    """A feature value is not a usable number."""

    def __init__(self, field, value, expected="number"):
        super().__init__(field, f"Field '{field}' must be a {expected}, got {value!r}")
        self.value = value


class OutOfRange(ValidationError):
    """A feature value lies outside its closed range."""

    def __init__(self, field, value, low, high):
        super().__init__(
            field, f"{field} must be between {low} and {high}, got {value}"
        )
        self.value = value
        self.low = low
        self.high = high


class InvalidFeature(ValidationError):
    """A what-if override names a feature the model does not use."""

    def __init__(self, field, allowed):
        super().__init__(field, f"Invalid feature '{field}'. Must be one of: {allowed}")
        self.allowed = list(allowed)


class ScoringError(SessionError):
    """Base class for failures talking to the scoring service."""


class TransportError(ScoringError):
    """No response was received (connection failure or timeout)."""


class ServiceError(ScoringError):
    """The scoring service answered with a failure."""

    def __init__(self, message, status_code=None):
        super().__init__(message if status_code is None else f"{status_code}: {message}")
        self.message = message
        self.status_code = status_code


class EmptyInput(SessionError):
    """An aggregate was requested over zero records."""
