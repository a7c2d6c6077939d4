from __future__ import annotations

from typing import Any

from django.core.signals import setting_changed
from django.dispatch import receiver

from .bridge import reset_media_host


@receiver(setting_changed)
def reset_media_host_on_setting_change(sender: object, setting: str, **kwargs: Any) -> None:
    if setting in {"LUTON_MEDIA_HOST", "STORAGES", "MEDIA_ROOT", "MEDIA_URL"}:
        reset_media_host()
