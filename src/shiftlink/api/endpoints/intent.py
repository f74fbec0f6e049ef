# src/shiftlink/api/endpoints/intent.py
"""Intent bridge: forwards pairing QR codes into the mobile app."""

from html import escape
from typing import Annotated

from fastapi import APIRouter, Query
from fastapi.responses import HTMLResponse

from shiftlink.core.settings import settings
from shiftlink.utils.deeplink import build_pairing_link

router = APIRouter(prefix="/intent", tags=["intent"])

_PAGE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{title}</title>
<script>window.location.replace({link_js});</script>
</head>
<body>
<p><a href="{link}">Open in the app</a></p>
{store}
</body>
</html>
"""


@router.get("/registration", response_class=HTMLResponse)
async def registration_intent(
    domain: Annotated[str, Query(min_length=1)],
    token_id: Annotated[str, Query(alias="tokenId", min_length=1)],
) -> HTMLResponse:
    """Redirect a scanned pairing code to the app, offering the store when it is missing."""
    link = build_pairing_link(domain, token_id, scheme=settings.app_scheme)
    store = ""
    if settings.app_store_url:
        store = f'<p><a href="{escape(settings.app_store_url)}">Install the app</a></p>'
    page = _PAGE.format(
        title=escape(settings.app_name),
        link=escape(link),
        link_js=_js_string(link),
        store=store,
    )
    return HTMLResponse(page)


def _js_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("<", "\\u003c")
    return f'"{escaped}"'
