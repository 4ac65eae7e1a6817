"""Failure taxonomy shared by the accounting engine, the stores and the API."""


class PointsError(Exception):
    """Base class; status_code is what the API answers with."""
    status_code = 400
    default_message = "Request failed"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)

    @property
    def message(self):
        return str(self)


class InvalidDelta(PointsError):
    default_message = "Invalid delta"


class NotFound(PointsError):
    status_code = 404
    default_message = "Not found"


class StorageFailure(PointsError):
    status_code = 503
    default_message = "Storage unavailable"


class ValidationFailure(PointsError):
    default_message = "Missing required fields"


class AuthenticationFailure(PointsError):
    status_code = 401
    default_message = "Invalid credentials"
