"""Device-side ShiftLink client: key vault, signed requests and multi-domain sessions.

Nothing in this package imports the server settings or database layer.
"""

from shiftlink.utils.deeplink import PairingLink, build_pairing_link, parse_pairing_link

from .attendance import ActionResult, AttendanceClient
from .directory import AggregateResult, SessionDirectory
from .envelope import Envelope, SignedRequestBuilder
from .models import DeviceIdentity, Domain, PairingState, PendingIdentity
from .settings import ClientSettings
from .storage import FileSecureStorage, MemorySecureStorage, SecureStorage, StorageError
from .transport import DomainClient
from .vault import KeyVault

__all__ = [
    "ActionResult",
    "AggregateResult",
    "AttendanceClient",
    "ClientSettings",
    "DeviceIdentity",
    "Domain",
    "DomainClient",
    "Envelope",
    "FileSecureStorage",
    "KeyVault",
    "MemorySecureStorage",
    "PairingLink",
    "PairingState",
    "PendingIdentity",
    "SecureStorage",
    "SessionDirectory",
    "SignedRequestBuilder",
    "StorageError",
    "build_pairing_link",
    "parse_pairing_link",
]
