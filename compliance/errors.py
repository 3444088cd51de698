# compliance/errors.py


class ComplianceError(Exception):
    """Base class for every failure raised by the audit layer."""


class ValidationError(ComplianceError):
    """Query rejected before anything is sent (empty or whitespace-only)."""


class ConfigurationError(ComplianceError):
    """Missing or unusable configuration, e.g. no API key."""


class TransportError(ComplianceError):
    """
    The AI backend could not answer.
    `reason` is one of: "auth", "rate_limit", "network".
    """

    def __init__(self, message: str, reason: str = "network"):
        super().__init__(message)
        self.reason = reason


class MalformedResponseError(ComplianceError, ValueError):
    """Model output could not be coerced into JSON."""
