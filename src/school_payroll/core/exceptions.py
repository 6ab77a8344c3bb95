class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class ComputationInvariantViolation(DomainError):
    """Raised when a single computation step gets data it cannot use (e.g. a malformed date).

    Callers skip the offending day or record instead of failing the whole run.
    """


class MissingReferenceWarning(UserWarning):
    """A referenced teacher or student could not be resolved and was skipped."""
