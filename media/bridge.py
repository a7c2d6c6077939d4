from __future__ import annotations

import logging
import mimetypes
import threading
from typing import IO, Final, Union

from asgiref.sync import async_to_sync, sync_to_async

from lutonai.storage_urls import is_absolute_web_url

from .hosts import MediaHost, MediaHostConfig, MediaHostError, load_media_host

logger = logging.getLogger(__name__)

SPONSOR_LOGO_CATEGORY: Final[str] = "project-logos"
EVENT_THUMBNAIL_CATEGORY: Final[str] = "event-thumbnails"

PayloadSource = Union[bytes, bytearray, memoryview, IO[bytes]]


def _payload_filename(payload: PayloadSource) -> str:
    return str(getattr(payload, "name", "") or "").strip()


def _payload_content_type(payload: PayloadSource) -> str:
    declared = str(getattr(payload, "content_type", "") or "").split(";", 1)[0].strip().lower()
    if declared:
        return declared

    guessed, _encoding = mimetypes.guess_type(_payload_filename(payload))
    return str(guessed or "").strip().lower()


def read_payload(payload: PayloadSource) -> bytes:
    """
    Buffer the whole payload in memory; the host API takes one complete byte string.
    """

    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)

    seek = getattr(payload, "seek", None)
    if callable(seek):
        seek(0)
    return bytes(payload.read())


class UploadBridge:
    """
    Turns one in-memory payload into a public reference on the media host.

    Every call reaches the host exactly once. Host errors propagate unchanged: no retry,
    no timeout, and no deduplication of byte-identical payloads. Size and type checks
    belong to the form layer; the bridge trusts its caller.
    """

    def __init__(self, host: MediaHost, *, category: str = SPONSOR_LOGO_CATEGORY) -> None:
        self.host = host
        self.category = category

    async def upload(self, payload: PayloadSource, category: str | None = None) -> str:
        destination = category or self.category
        filename = _payload_filename(payload)
        content_type = _payload_content_type(payload)

        content = await sync_to_async(read_payload, thread_sensitive=False)(payload)
        logger.debug(
            "Uploading %s bytes to media host category=%s filename=%s",
            len(content),
            destination,
            filename or "n/a",
        )
        reference = await sync_to_async(self.host.store, thread_sensitive=False)(
            content,
            destination,
            filename=filename,
            content_type=content_type,
        )

        if not is_absolute_web_url(reference):
            raise MediaHostError(f"Media host returned a non-absolute reference: {reference!r}")

        logger.info("Stored upload category=%s reference=%s", destination, reference)
        return str(reference).strip()

    def upload_sync(self, payload: PayloadSource, category: str | None = None) -> str:
        return async_to_sync(self.upload)(payload, category)


_host_lock = threading.Lock()
_process_host: MediaHost | None = None


def get_media_host() -> MediaHost:
    global _process_host
    with _host_lock:
        if _process_host is None:
            _process_host = load_media_host(MediaHostConfig.from_settings())
        return _process_host


def reset_media_host() -> None:
    global _process_host
    with _host_lock:
        _process_host = None


def get_upload_bridge(category: str = SPONSOR_LOGO_CATEGORY) -> UploadBridge:
    return UploadBridge(get_media_host(), category=category)
