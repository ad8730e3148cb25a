class StudyCompanionError(Exception):
    """Base class for errors raised by the study companion services."""


class NotFoundError(StudyCompanionError):
    """A requested note, session or timer does not exist."""


class PermissionDeniedError(StudyCompanionError):
    """The acting user may not perform the operation (e.g. non-host starts a live quiz)."""


class InvalidStateError(StudyCompanionError):
    """The operation conflicts with the current state of the resource."""


class ValidationError(StudyCompanionError):
    """Client-supplied input is unusable."""
