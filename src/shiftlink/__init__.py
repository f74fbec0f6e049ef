"""ShiftLink: device-signed attendance tracking across employer backends."""

__version__ = "0.1.0"
