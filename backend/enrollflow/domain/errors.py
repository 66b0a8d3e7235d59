"""Error taxonomy shared by services and the HTTP layer.

Services raise these; main.py maps each class to an HTTP status code.
DependencyFailure is raised by adapters (blob store, notification sink) and
is caught by the services on approve/reject/upload side-effect paths.
"""


class EnrollmentError(Exception):
    """Base class for all domain errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(EnrollmentError):
    """Request input is invalid (blank reason, missing file, unsupported MIME type)."""

    status_code = 400


class NotFoundError(EnrollmentError):
    """Document, registration, deadline or user does not exist."""

    status_code = 404


class UnauthorizedError(EnrollmentError):
    """Actor is not associated with the registration it tries to act on."""

    status_code = 403


class ConflictError(EnrollmentError):
    """Operation conflicts with current state (e.g. deleting an approved document)."""

    status_code = 409


class DependencyFailure(EnrollmentError):
    """Blob store or notification sink failed."""

    status_code = 503
