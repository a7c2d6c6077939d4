from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Final, cast

from PIL import Image, UnidentifiedImageError
from django import forms
from django.conf import settings
from django.core.files.uploadedfile import UploadedFile

DEFAULT_ALLOWED_IMAGE_MIME_TYPES: Final[tuple[str, ...]] = (
    "image/jpeg",
    "image/jpg",
    "image/png",
)
DEFAULT_ALLOWED_IMAGE_EXTENSIONS: Final[tuple[str, ...]] = (
    ".jpg",
    ".jpeg",
    ".png",
)
DEFAULT_IMAGE_MAX_MB: Final[int] = 2
OCTET_STREAM_TYPES: Final[set[str]] = {"application/octet-stream", "binary/octet-stream"}


def _read_str_tuple_setting(setting_name: str, default_values: tuple[str, ...]) -> tuple[str, ...]:
    raw_value: object = getattr(settings, setting_name, default_values)
    candidates: list[str]

    if isinstance(raw_value, str):
        candidates = raw_value.split(",")
    elif isinstance(raw_value, (list, tuple, set)):
        typed_values = cast(list[object] | tuple[object, ...] | set[object], raw_value)
        candidates = [("" if value is None else str(value)) for value in typed_values]
    else:
        candidates = list(default_values)

    # Ordered de-duplication keeps the configured order for error messages.
    normalized = tuple(
        dict.fromkeys(
            item.strip().lower()
            for item in candidates
            if item.strip()
        )
    )
    if normalized:
        return normalized

    return tuple(value.lower() for value in default_values)


def _read_megabytes_setting(setting_name: str, default_value: int) -> int:
    raw_value = getattr(settings, setting_name, default_value)
    try:
        parsed = int(raw_value)
    except (TypeError, ValueError):
        parsed = int(default_value)
    return max(1, parsed)


def image_max_megabytes() -> int:
    return _read_megabytes_setting("LUTON_MEDIA_IMAGE_MAX_MB", DEFAULT_IMAGE_MAX_MB)


def image_max_bytes() -> int:
    return image_max_megabytes() * 1024 * 1024


def allowed_image_mime_types() -> tuple[str, ...]:
    return _read_str_tuple_setting("LUTON_MEDIA_ALLOWED_IMAGE_MIME_TYPES", DEFAULT_ALLOWED_IMAGE_MIME_TYPES)


def allowed_image_extensions() -> tuple[str, ...]:
    return _read_str_tuple_setting("LUTON_MEDIA_ALLOWED_IMAGE_EXTENSIONS", DEFAULT_ALLOWED_IMAGE_EXTENSIONS)


def image_accept_attr() -> str:
    return ",".join(allowed_image_extensions())


def allowed_types_message() -> str:
    extensions = allowed_image_extensions()
    if len(extensions) == 1:
        return f"Only {extensions[0]} files are allowed"
    return f"Only {', '.join(extensions[:-1])}, and {extensions[-1]} files are allowed"


def _declared_or_guessed_content_type(uploaded_file: UploadedFile) -> str:
    declared = str(getattr(uploaded_file, "content_type", "") or "").split(";", 1)[0].strip().lower()
    if declared and declared not in OCTET_STREAM_TYPES:
        return declared

    guessed, _encoding = mimetypes.guess_type(str(getattr(uploaded_file, "name", "") or ""))
    return str(guessed or "").strip().lower()


def _is_decodable_image(uploaded_file: UploadedFile) -> bool:
    try:
        position = uploaded_file.tell()
    except (AttributeError, OSError, ValueError):
        position = None

    try:
        uploaded_file.seek(0)
        with Image.open(uploaded_file) as image:
            image.verify()
        return True
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError):
        return False
    finally:
        if position is not None:
            uploaded_file.seek(position)


def validate_image_upload(uploaded_file: UploadedFile, *, label: str = "Image") -> UploadedFile:
    """
    Form-layer gate for attachments headed to the upload bridge.

    Raises `forms.ValidationError` for empty, oversized, wrongly typed, or undecodable files.
    """

    size_bytes = int(getattr(uploaded_file, "size", 0) or 0)
    if size_bytes <= 0:
        raise forms.ValidationError(f"{label} file is empty.", code="empty")

    if size_bytes > image_max_bytes():
        raise forms.ValidationError(
            f"{label} must be less than {image_max_megabytes()}MB",
            code="file_too_large",
        )

    extension = Path(str(getattr(uploaded_file, "name", "") or "")).suffix.lower()
    content_type = _declared_or_guessed_content_type(uploaded_file)
    if extension not in allowed_image_extensions() or content_type not in allowed_image_mime_types():
        raise forms.ValidationError(allowed_types_message(), code="invalid_content_type")

    if not _is_decodable_image(uploaded_file):
        raise forms.ValidationError(f"{label} is not a valid image file.", code="invalid_image")

    return uploaded_file
