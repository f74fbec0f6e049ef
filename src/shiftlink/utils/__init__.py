"""Shared helpers used by both the domain server and the device client."""
