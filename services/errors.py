"""
Service Errors

Exceptions raised by the service layer. Each carries the HTTP status the
application-level error handler responds with.
"""


class ServiceError(Exception):
    """Base class for errors surfaced to API clients"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Malformed or missing required input"""
    status_code = 400


class InvalidWarningTarget(ValidationError):
    """Both or neither of driverId/staffId were supplied"""


class NotFoundError(ServiceError):
    """Referenced driver, staff, warning, complaint or activity does not exist"""
    status_code = 404
