"""
Error taxonomy shared by the report services and the podcast pipeline.

Each error carries the machine readable code and HTTP status used by the
API exception handlers in ``sentinel.main``.
"""

from typing import Optional


class SentinelError(Exception):
    """Base class for every expected failure raised by the service layer."""

    code: str = "SENTINEL_ERROR"
    status_code: int = 500

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


# Caller input

class ValidationError(SentinelError):
    """Raised when caller input is missing or malformed."""
    code = "VALIDATION_ERROR"
    status_code = 400


class InvalidRequestError(ValidationError):
    """Raised when a podcast request names an empty or unknown scope/option set."""
    code = "INVALID_REQUEST"


# Missing or unready sources

class ReportNotFoundError(SentinelError):
    """Raised when a report id does not exist in the store."""
    code = "REPORT_NOT_FOUND"
    status_code = 404


class SourceNotFoundError(ReportNotFoundError):
    """Raised when the report a derivative artifact is built from does not exist."""
    code = "SOURCE_NOT_FOUND"


class SourceNotReadyError(SentinelError):
    """Raised when a prerequisite exists but is not in an eligible state."""
    code = "SOURCE_NOT_READY"
    status_code = 409


class MissingOriginalContentError(SourceNotReadyError):
    """Raised when a report has no retained original content to re-analyze."""
    code = "MISSING_ORIGINAL_CONTENT"


class NoArtifactError(SourceNotReadyError):
    """Raised when an export is requested before any audio has been generated."""
    code = "NO_ARTIFACT"


# State machine conflicts

class StateConflictError(SentinelError):
    """Raised when the podcast state machine is not in an eligible state."""
    code = "STATE_CONFLICT"
    status_code = 409


class AlreadyGeneratedError(StateConflictError):
    code = "ALREADY_GENERATED"


class AlreadyExportedError(StateConflictError):
    code = "ALREADY_EXPORTED"


class OperationInProgressError(StateConflictError):
    code = "OPERATION_IN_PROGRESS"


class IllegalTransitionError(StateConflictError):
    code = "ILLEGAL_TRANSITION"


# External collaborators

class CollaboratorError(SentinelError):
    """Raised when an external service (model, synthesis, export) fails."""
    code = "COLLABORATOR_FAILURE"
    status_code = 502


class AnalysisModelError(CollaboratorError):
    code = "ANALYSIS_MODEL_FAILURE"


class SynthesisError(CollaboratorError):
    code = "SYNTHESIS_FAILURE"


class ExportError(CollaboratorError):
    code = "EXPORT_FAILURE"
