"""Error taxonomy shared by the domain server and the device client.

Every error carries the wire ``code`` rendered in ``{"success": false, "msg": code}``
responses and the HTTP status the server answers with.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class AttendanceError(RuntimeError):
    """Base class for protocol and attendance failures."""

    code: str = "srv_error"
    status_code: int = 500

    def __init__(self, message: str | None = None, *, code: str | None = None) -> None:
        if code is not None:
            self.code = code
        super().__init__(message or self.code)


class NotPaired(AttendanceError):
    """Raised on the device when no identity exists for the target domain."""

    code = "app_not_paired"
    status_code = 400

    def __init__(self, domain: str) -> None:
        self.domain = domain
        super().__init__(f"Device is not paired with {domain}")


class TokenExpired(AttendanceError):
    """The registration token is past its expiry."""

    code = "srv_registration_expired"
    status_code = 410


class TokenConsumed(AttendanceError):
    """The registration token has already been used."""

    code = "srv_registration_consumed"
    status_code = 409


class Unauthorized(AttendanceError):
    """Authentication failed.

    Clients only ever see this generic form; the server raises one of the
    subclasses so the specific reason can be logged.
    """

    code = "srv_unauthorized"
    status_code = 401


class InvalidSignature(Unauthorized):
    """The envelope signature does not verify under the stored key."""


class ReplayDetected(Unauthorized):
    """The nonce was already seen or the timestamp is outside the window."""


class AmbiguousLocalDevice(AttendanceError):
    """A register has zero or several local devices and none was selected."""

    code = "srv_local_device_required"
    status_code = 409

    def __init__(self, candidates: Sequence[Any], message: str | None = None) -> None:
        self.candidates = list(candidates)
        super().__init__(message)


class DomainUnreachable(AttendanceError):
    """Transient failure talking to a domain (timeout or transport error)."""

    code = "app_domain_unreachable"
    status_code = 503

    def __init__(self, domain: str, reason: str | None = None) -> None:
        self.domain = domain
        self.reason = reason
        super().__init__(f"{domain} is unreachable: {reason}" if reason else f"{domain} is unreachable")


class ValidationError(AttendanceError):
    """A request field failed validation."""

    code = "srv_invalid_request"
    status_code = 400

    def __init__(
        self,
        message: str | None = None,
        *,
        field: str | None = None,
        code: str | None = None,
    ) -> None:
        self.field = field
        super().__init__(message, code=code)


class NotFound(AttendanceError):
    code = "srv_not_found"
    status_code = 404


class Conflict(AttendanceError):
    code = "srv_duplicate"
    status_code = 409


class ServiceUnavailable(AttendanceError):
    """A backing service of the domain cannot be reached."""

    code = "srv_service_unavailable"
    status_code = 503


_BY_CODE: dict[str, type[AttendanceError]] = {
    TokenExpired.code: TokenExpired,
    TokenConsumed.code: TokenConsumed,
    Unauthorized.code: Unauthorized,
}

_BY_STATUS: dict[int, type[AttendanceError]] = {
    400: ValidationError,
    401: Unauthorized,
    404: NotFound,
    409: Conflict,
    410: TokenExpired,
    503: ServiceUnavailable,
}


def error_from_response(status_code: int, code: str | None) -> AttendanceError:
    """Rebuild the error a domain answered with from its status and ``msg`` code."""
    error_type = _BY_CODE.get(code or "") or _BY_STATUS.get(status_code, AttendanceError)
    return error_type(code=code) if code else error_type()
