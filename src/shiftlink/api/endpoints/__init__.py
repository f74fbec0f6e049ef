# src/shiftlink/api/endpoints/__init__.py
"""API endpoint modules."""

from .attendance import router as attendance_router
from .employee import router as employee_router
from .intent import router as intent_router
from .local_device import router as local_device_router
from .mod import router as mod_router
from .registration import router as registration_router
from .system import router as system_router
from .workplaces import router as workplaces_router

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
