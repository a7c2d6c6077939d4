from __future__ import annotations

import io
import mimetypes
import threading
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, Protocol, TypedDict, cast

import cloudinary.uploader
from PIL import Image, UnidentifiedImageError
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.core.files.base import ContentFile
from django.core.files.storage import Storage, default_storage
from django.utils.module_loading import import_string

from lutonai.storage_urls import absolutize_url

DEFAULT_MEDIA_HOST_BACKEND: Final[str] = "media.hosts.StorageHost"
DEFAULT_PUBLIC_BASE_URL: Final[str] = "http://localhost:8000"
LOCMEM_PUBLIC_BASE_URL: Final[str] = "https://media.invalid"
LOCMEM_MAX_STORED: Final[int] = 200
PILLOW_FORMAT_EXTENSIONS: Final[dict[str, str]] = {"JPEG": ".jpg", "PNG": ".png", "GIF": ".gif", "WEBP": ".webp"}


class MediaHostError(Exception):
    """Raised when a media host answers without a usable reference."""


class MediaHost(Protocol):
    def store(
        self,
        payload: bytes,
        category: str,
        *,
        filename: str = "",
        content_type: str = "",
    ) -> str: ...


@dataclass(frozen=True)
class MediaHostConfig:
    """
    Immutable host settings, read once from `LUTON_MEDIA_HOST` at startup.
    """

    backend: str = DEFAULT_MEDIA_HOST_BACKEND
    cloud_name: str = ""
    api_key: str = ""
    api_secret: str = ""
    public_base_url: str = DEFAULT_PUBLIC_BASE_URL
    extra_options: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_settings(cls) -> MediaHostConfig:
        raw_setting: object = getattr(settings, "LUTON_MEDIA_HOST", {}) or {}
        if not isinstance(raw_setting, dict):
            raise ImproperlyConfigured("LUTON_MEDIA_HOST must be a dict with BACKEND and OPTIONS keys.")

        typed_setting = cast(dict[str, Any], raw_setting)
        backend = str(typed_setting.get("BACKEND", "") or DEFAULT_MEDIA_HOST_BACKEND).strip()
        options = dict(cast(dict[str, Any], typed_setting.get("OPTIONS", {}) or {}))

        return cls(
            backend=backend,
            cloud_name=str(options.pop("cloud_name", "") or "").strip(),
            api_key=str(options.pop("api_key", "") or "").strip(),
            api_secret=str(options.pop("api_secret", "") or "").strip(),
            public_base_url=str(options.pop("public_base_url", "") or DEFAULT_PUBLIC_BASE_URL).rstrip("/"),
            extra_options=options,
        )

    @property
    def backend_label(self) -> str:
        return self.backend.rsplit(".", 1)[-1]


def _sniff_image_extension(payload: bytes) -> str:
    try:
        with Image.open(io.BytesIO(payload)) as image:
            image_format = str(image.format or "").upper()
    except (UnidentifiedImageError, OSError, ValueError):
        return ""
    return PILLOW_FORMAT_EXTENSIONS.get(image_format, "")


def _extension_for(filename: str, content_type: str, payload: bytes = b"") -> str:
    extension = Path(str(filename or "")).suffix.lower()
    if extension:
        return extension

    normalized_type = str(content_type or "").split(";", 1)[0].strip().lower()
    guessed = mimetypes.guess_extension(normalized_type) if normalized_type else None
    if guessed:
        return str(guessed)

    # Bare bytes: name the object after its decoded image format so it is served with an image type.
    return _sniff_image_extension(payload)


def _object_name(category: str, filename: str, content_type: str, payload: bytes = b"") -> str:
    normalized_category = str(category or "").strip().strip("/")
    object_name = f"{uuid.uuid4().hex}{_extension_for(filename, content_type, payload)}"
    if normalized_category:
        return f"{normalized_category}/{object_name}"
    return object_name


class CloudinaryHost:
    """
    Cloudinary upload API. Credentials travel with every call so no global SDK config is mutated.
    """

    def __init__(self, config: MediaHostConfig) -> None:
        if not (config.cloud_name and config.api_key and config.api_secret):
            raise ImproperlyConfigured(
                "Cloudinary media host needs CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET."
            )
        self.config = config

    def store(
        self,
        payload: bytes,
        category: str,
        *,
        filename: str = "",
        content_type: str = "",
    ) -> str:
        result = cloudinary.uploader.upload(
            io.BytesIO(payload),
            folder=category,
            resource_type="image",
            cloud_name=self.config.cloud_name,
            api_key=self.config.api_key,
            api_secret=self.config.api_secret,
            **self.config.extra_options,
        )
        secure_url = str((result or {}).get("secure_url", "") or "").strip()
        if not secure_url:
            raise MediaHostError("Cloudinary upload response did not include a secure_url.")
        return secure_url


class StorageHost:
    """
    Django storage backend (filesystem, or S3/MinIO through django-storages).
    """

    def __init__(self, config: MediaHostConfig, storage: Storage | None = None) -> None:
        self.config = config
        self.storage = storage or default_storage

    def store(
        self,
        payload: bytes,
        category: str,
        *,
        filename: str = "",
        content_type: str = "",
    ) -> str:
        saved_name = self.storage.save(_object_name(category, filename, content_type, payload), ContentFile(payload))
        return absolutize_url(self.storage.url(saved_name), base_url=self.config.public_base_url)


class StoredUpload(TypedDict):
    reference: str
    category: str
    filename: str
    content_type: str
    size_bytes: int


# Most recent uploads captured by LocMemHost, oldest first. Bounded by LOCMEM_MAX_STORED.
stored: list[StoredUpload] = []
_stored_lock = threading.Lock()


class LocMemHost:
    """
    In-process host for local development and tests; nothing leaves memory.

    References do not resolve over HTTP. Only the latest `LOCMEM_MAX_STORED` uploads are kept in `stored`.
    """

    def __init__(self, config: MediaHostConfig) -> None:
        self.config = config
        self.base_url = (
            config.public_base_url
            if config.public_base_url != DEFAULT_PUBLIC_BASE_URL
            else LOCMEM_PUBLIC_BASE_URL
        )

    def store(
        self,
        payload: bytes,
        category: str,
        *,
        filename: str = "",
        content_type: str = "",
    ) -> str:
        reference = f"{self.base_url}/{_object_name(category, filename, content_type, payload)}"
        with _stored_lock:
            stored.append(
                {
                    "reference": reference,
                    "category": category,
                    "filename": filename,
                    "content_type": content_type,
                    "size_bytes": len(payload),
                }
            )
            overflow = len(stored) - LOCMEM_MAX_STORED
            if overflow > 0:
                del stored[:overflow]
        return reference


def load_media_host(config: MediaHostConfig) -> MediaHost:
    try:
        host_class = import_string(config.backend)
    except ImportError as exc:
        raise ImproperlyConfigured(f"Could not import media host backend '{config.backend}'.") from exc
    return cast(MediaHost, host_class(config))
