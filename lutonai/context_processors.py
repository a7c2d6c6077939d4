from __future__ import annotations

from django.conf import settings
from django.http import HttpRequest

DEFAULT_SITE_TITLE = "Luton AI"
DEFAULT_SITE_DESCRIPTION = "Luton AI Community Platform"


def site_metadata(request: HttpRequest) -> dict[str, str]:
    site_title = str(getattr(settings, "SITE_TITLE", "") or DEFAULT_SITE_TITLE)
    return {
        "site_title": site_title,
        "site_description": str(getattr(settings, "SITE_DESCRIPTION", "") or DEFAULT_SITE_DESCRIPTION),
        "admin_section": _admin_section(request.path),
    }


def _admin_section(path: str) -> str:
    if path.startswith("/admin/sponsors"):
        return "sponsors"
    if path.startswith("/admin/events"):
        return "events"
    return ""
