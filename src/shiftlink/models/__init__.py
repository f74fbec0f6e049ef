# src/shiftlink/models/__init__.py
"""SQLAlchemy models for a ShiftLink domain."""

from .attendance import AttendanceEvent, AttendanceEventType, LocalDeviceConfirmation
from .employee import Employee
from .local_device import LocalDevice
from .registration import RegistrationState, RegistrationToken
from .retail import Register, Retail, employee_register
from .schedule import WEEKDAYS, EmployeeWorkday, RegisterWorkingHours

__all__ = [
    "AttendanceEvent", "AttendanceEventType", "LocalDeviceConfirmation",
    "Employee",
    "LocalDevice",
    "RegistrationState", "RegistrationToken",
    "Register", "Retail", "employee_register",
    "WEEKDAYS", "EmployeeWorkday", "RegisterWorkingHours",
]
