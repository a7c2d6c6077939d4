from __future__ import annotations

import logging
import mimetypes

from django.core.exceptions import SuspiciousFileOperation
from django.core.files.storage import default_storage
from django.http import FileResponse, HttpRequest, HttpResponse, HttpResponseNotFound
from django.views.decorators.http import require_http_methods

logger = logging.getLogger(__name__)


@require_http_methods(["GET", "HEAD"])
def stored_media_view(request: HttpRequest, object_name: str) -> HttpResponse | FileResponse:
    """
    Serve an object written by `StorageHost` so its public reference resolves.

    Hosted logos and thumbnails are public, so no login is required.
    """

    normalized_name = str(object_name or "").strip().lstrip("/")
    if not normalized_name:
        return HttpResponseNotFound()

    try:
        if not default_storage.exists(normalized_name):
            return HttpResponseNotFound()
        stored_file = default_storage.open(normalized_name, "rb")
    except (SuspiciousFileOperation, OSError):
        logger.info("Refused stored media lookup name=%r", normalized_name)
        return HttpResponseNotFound()

    content_type, _encoding = mimetypes.guess_type(normalized_name)
    response = FileResponse(stored_file, content_type=content_type or "application/octet-stream")
    response["Cache-Control"] = "public, max-age=300"
    return response
