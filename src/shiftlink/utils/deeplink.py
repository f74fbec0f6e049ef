"""Pairing deep links shared by the domain server and the device."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import parse_qs, urlencode, urlsplit

from shiftlink.core.errors import ValidationError

DEFAULT_SCHEME = "attendance"
PAIRING_HOST = "registration"


@dataclass(frozen=True)
class PairingLink:
    """The ``{domain, tokenId}`` pair encoded in a QR code or deep link."""

    domain: str
    token_id: str


def normalize_domain(domain: str) -> str:
    """Return ``domain`` as a scheme-qualified base URL without trailing slash."""
    cleaned = domain.strip().rstrip("/")
    if not cleaned:
        raise ValidationError("Domain must not be empty", field="domain")
    if "://" not in cleaned:
        cleaned = f"https://{cleaned}"
    parts = urlsplit(cleaned)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValidationError(f"Invalid domain {domain!r}", field="domain")
    return cleaned


def build_pairing_link(domain: str, token_id: str, *, scheme: str = DEFAULT_SCHEME) -> str:
    query = urlencode({"domain": normalize_domain(domain), "tokenId": token_id})
    return f"{scheme}://{PAIRING_HOST}?{query}"


def build_intent_link(domain: str, token_id: str) -> str:
    """Return the web URL that forwards to the app, or to the store when it is missing."""
    base = normalize_domain(domain)
    query = urlencode({"domain": base, "tokenId": token_id})
    return f"{base}/intent/registration?{query}"


def parse_pairing_link(link: str, *, scheme: str = DEFAULT_SCHEME) -> PairingLink:
    """Parse an app deep link or its intent-bridge URL into a :class:`PairingLink`.

    Raises:
        ValidationError: If the link is not a pairing link or lacks a parameter.
    """
    parts = urlsplit(link.strip())
    is_app_link = parts.scheme == scheme and parts.netloc == PAIRING_HOST
    is_intent_link = parts.scheme in ("http", "https") and parts.path.rstrip("/") == "/intent/registration"
    if not (is_app_link or is_intent_link):
        raise ValidationError(f"Not a pairing link: {link!r}", field="link")

    params = parse_qs(parts.query)
    domain = (params.get("domain") or [""])[0]
    token_id = (params.get("tokenId") or [""])[0]
    if not token_id:
        raise ValidationError("Pairing link has no tokenId", field="tokenId")
    return PairingLink(domain=normalize_domain(domain), token_id=token_id)
