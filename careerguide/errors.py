# careerguide/errors.py
# Error taxonomy for the assessment flow.


class AssessmentError(Exception):
    """Base class for every error the assessment flow raises on purpose."""


class ValidationError(AssessmentError):
    """Blank or otherwise unusable input. Nothing was changed."""


class StageError(ValidationError):
    """The requested operation is not allowed in the session's current stage."""


class GenerationError(AssessmentError):
    """The text generator failed or returned content we could not validate."""


class PersistenceError(AssessmentError):
    """Reading from or writing to the session store failed."""


class NotFoundError(AssessmentError):
    """No session exists for the given id."""


class SessionBusyError(AssessmentError):
    """Another operation on the same session is still in flight."""
