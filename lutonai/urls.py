# pyright: reportMissingImports=false, reportMissingModuleSource=false
from __future__ import annotations

from django.conf import settings
from django.contrib import admin
from django.http import HttpRequest, JsonResponse
from django.urls import URLPattern, URLResolver, include, path
from django.views.generic import RedirectView

from media.hosts import MediaHostConfig
from media.views import stored_media_view


def health(_request: HttpRequest) -> JsonResponse:
    host_config = MediaHostConfig.from_settings()
    return JsonResponse(
        {
            "status": "ok",
            "service": "lutonai-admin",
            "media_host": host_config.backend_label,
        }
    )


urlpatterns: list[URLPattern | URLResolver] = [
    path("", RedirectView.as_view(pattern_name="events:list", permanent=False), name="home"),
    path("health/", health, name="health"),
    path("admin/events/", include("events.urls")),
    path("admin/sponsors/", include("sponsors.urls")),
    path("api/", include("events.api_urls")),
    path("api/", include("sponsors.api_urls")),
    path("django-admin/", admin.site.urls),
]

# Local MEDIA_URL paths are served from default storage; S3/MinIO URLs point at the bucket instead.
media_url_prefix = str(settings.MEDIA_URL or "").strip().strip("/")
if media_url_prefix and "://" not in str(settings.MEDIA_URL):
    urlpatterns.append(
        path(f"{media_url_prefix}/<path:object_name>", stored_media_view, name="stored-media"),
    )
