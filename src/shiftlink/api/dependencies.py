"""Shared API dependencies for device identification and admin authentication."""

from typing import Annotated

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from shiftlink.core.errors import Unauthorized, ValidationError
from shiftlink.core.security import decode_access_token
from shiftlink.db.session import get_db
from shiftlink.models import Employee, Retail
from shiftlink.services.attendance import AttendanceService, get_attendance_service
from shiftlink.services.local_devices import LocalDeviceResolver, get_local_device_resolver
from shiftlink.services.registration import RegistrationService, get_registration_service
from shiftlink.services.verifier import EnvelopeVerifier, get_verifier
from shiftlink.services.workplaces import WorkplaceService, get_workplace_service

# HTTP Bearer scheme for admin JWT authentication
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]

VerifierDep = Annotated[EnvelopeVerifier, Depends(get_verifier)]
RegistrationServiceDep = Annotated[RegistrationService, Depends(get_registration_service)]
AttendanceServiceDep = Annotated[AttendanceService, Depends(get_attendance_service)]
ResolverDep = Annotated[LocalDeviceResolver, Depends(get_local_device_resolver)]
WorkplaceServiceDep = Annotated[WorkplaceService, Depends(get_workplace_service)]


def get_app_id(app_id: Annotated[str | None, Header(alias="App-Id")] = None) -> str:
    """Return the calling device's ``App-Id`` header.

    Raises:
        ValidationError: If the header is missing or blank.
    """
    if app_id is None or not app_id.strip():
        raise ValidationError("Missing App-Id header", field="App-Id", code="srv_missing_app_id")
    return app_id.strip()


AppIdDep = Annotated[str, Depends(get_app_id)]


def get_device_employee(
    db: SessionDep,
    app_id: AppIdDep,
    employee_id: Annotated[str | None, Header(alias="Employee-Id")] = None,
) -> Employee:
    """Resolve the employee a read-only call acts for.

    Read-only calls are not signed; they only declare the identity through the
    ``App-Id`` and ``Employee-Id`` headers, which must match a current pairing.
    """
    query = db.query(Employee).filter(
        Employee.device_id == app_id,
        Employee.public_key.is_not(None),
        Employee.is_active.is_(True),
    )
    if employee_id:
        query = query.filter(Employee.id == employee_id)
    employee = query.order_by(Employee.paired_at.desc()).first()
    if employee is None:
        raise Unauthorized("Device is not paired with this domain")
    return employee


DeviceEmployeeDep = Annotated[Employee, Depends(get_device_employee)]


def get_current_retail(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> Retail:
    """Get the retail an admin JWT was issued for.

    Raises:
        Unauthorized: If the token is missing, invalid or names an unknown retail.
    """
    if credentials is None:
        raise Unauthorized("Missing bearer token")
    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError as err:
        raise Unauthorized("Could not validate credentials") from err

    subject = payload.get("sub")
    if not isinstance(subject, str):
        raise Unauthorized("Could not validate credentials")
    retail = db.get(Retail, subject)
    if retail is None:
        raise Unauthorized("Token names an unknown retail")
    return retail


CurrentRetailDep = Annotated[Retail, Depends(get_current_retail)]
