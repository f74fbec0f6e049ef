# src/shiftlink/services/__init__.py
"""Business logic services for a ShiftLink domain.

Submodules are imported explicitly: ``crypto`` is shared with the device
client, which must not pull in the server settings and database layer.
"""
