from __future__ import annotations


class GenMediaError(Exception):
    """Base class for all errors raised by genmedia."""


class FatalError(GenMediaError):
    """Errors that abort the current spec element without another attempt."""


class SpecValidationError(FatalError, ValueError):
    pass


class MissingCredentialError(FatalError, ValueError):
    pass


class MaterializeError(FatalError):
    """The result handed to the writer violates its contract."""


class AdmissionTimeoutError(FatalError):
    """Quota headroom did not appear within the configured maximum wait."""


class RetryableError(GenMediaError):
    """A failed attempt that the executor may repeat."""


class ResponseValidationError(RetryableError):
    pass


class ComplianceError(ResponseValidationError):
    """The model reported that it did not follow the instructions (check=false)."""


class OperationTimeoutError(RetryableError):
    pass


class OperationFailedError(RetryableError):
    pass


class RetriesExhaustedError(GenMediaError):
    def __init__(self, label: str, attempts: int) -> None:
        super().__init__(f"Failed to generate {label} after {attempts} attempts")
        self.label = label
        self.attempts = attempts
