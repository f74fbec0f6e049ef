# src/shiftlink/api/__init__.py
"""HTTP API of a ShiftLink domain."""

from .endpoints import (
    attendance_router,
    employee_router,
    intent_router,
    local_device_router,
    mod_router,
    registration_router,
    system_router,
    workplaces_router,
)

__all__ = [
    "attendance_router",
    "employee_router",
    "intent_router",
    "local_device_router",
    "mod_router",
    "registration_router",
    "system_router",
    "workplaces_router",
]
