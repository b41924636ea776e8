"""Service-level error taxonomy.

Services raise these; the API layer renders them into the response envelope
using ``status_code`` as both the HTTP status and the envelope ``code``.
"""

from __future__ import annotations


class ServiceError(Exception):
    status_code = 500
    default_message = "internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequestError(ServiceError):
    status_code = 400
    default_message = "bad request"


class UnauthorizedError(ServiceError):
    status_code = 401
    default_message = "unauthorized"


class ForbiddenError(ServiceError):
    status_code = 403
    default_message = "forbidden"


class NotFoundError(ServiceError):
    status_code = 404
    default_message = "not found"


class ConflictError(ServiceError):
    status_code = 409
    default_message = "conflict"


class InternalError(ServiceError):
    status_code = 500
    default_message = "internal server error, please retry later"
