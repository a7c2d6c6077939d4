from __future__ import annotations

from urllib.parse import urljoin, urlparse


def is_absolute_web_url(candidate: object) -> bool:
    normalized = str(candidate or "").strip()
    if not normalized:
        return False

    parsed = urlparse(normalized)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def _is_web_usable_url(candidate: str) -> bool:
    if candidate.startswith("/"):
        return True
    return is_absolute_web_url(candidate)


def absolutize_url(candidate: str, *, base_url: str) -> str:
    normalized = str(candidate or "").strip()
    if not normalized or is_absolute_web_url(normalized):
        return normalized

    base = str(base_url or "").strip()
    if not base:
        return normalized
    return urljoin(f"{base.rstrip('/')}/", normalized.lstrip("/"))


def resolve_reference_url(reference: object, *, fallback: str = "") -> str:
    """
    Return a stored media reference when it is usable in an `src`/`href`, else the fallback.
    """

    normalized = str(reference or "").strip()
    if normalized and _is_web_usable_url(normalized):
        return normalized
    return str(fallback or "").strip()
