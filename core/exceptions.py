class TabulationError(Exception):
    """Base class for every failure raised by the tabulation services."""


class RetrievalFailure(TabulationError):
    """A read against the score store failed."""

    def __init__(self, operation, cause):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Failed to {operation}: {cause}")


class DataIntegrityFailure(TabulationError):
    """Stored data cannot produce a meaningful result (missing entity, zero denominator)."""

    def __init__(self, message, candidate_id=None):
        self.candidate_id = candidate_id
        super().__init__(message)


class RenderFailure(TabulationError):
    """Writing the workbook or the delimited export failed."""
