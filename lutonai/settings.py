# pyright: reportMissingImports=false, reportMissingModuleSource=false, reportUnknownMemberType=false
"""
Settings for the Luton AI staff admin.

Everything is env-driven so the same module serves local runs and deployments:
- PostgreSQL via DATABASE_URL (SQLite when no database host is configured)
- WhiteNoise static serving
- MinIO-compatible S3 storage for the storage media host
- Cloudinary credentials for the default media host
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, cast

import dj_database_url

from .logging_config import get_logging_config


def env_bool(key: str, default: bool = False) -> bool:
    value = os.getenv(key, str(default))
    return value.strip().lower() in {"1", "true", "yes", "on"}


def env_int(key: str, default: int) -> int:
    raw_value = os.getenv(key, str(default))
    try:
        parsed = int(raw_value)
    except (TypeError, ValueError):
        parsed = int(default)
    return parsed


def env_csv(key: str, default: str) -> tuple[str, ...]:
    raw_value = os.getenv(key, default)
    values = [item.strip().lower() for item in raw_value.split(",") if item.strip()]
    return tuple(values)


def strip_url_scheme(url: str) -> str:
    normalized = url.strip()
    lowered = normalized.lower()
    if lowered.startswith("http://"):
        return normalized[7:]
    if lowered.startswith("https://"):
        return normalized[8:]
    return normalized


BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv("SECRET_KEY", "dev-placeholder-secret")
DEBUG = env_bool("DEBUG", True)
ALLOWED_HOSTS = [
    host.strip()
    for host in os.getenv("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",")
    if host.strip()
]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "media",
    "events",
    "sponsors",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "lutonai.urls"
WSGI_APPLICATION = "lutonai.wsgi.application"
ASGI_APPLICATION = "lutonai.asgi.application"

TEMPLATES: list[dict[str, Any]] = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
                "lutonai.context_processors.site_metadata",
            ],
        }
    }
]

if os.getenv("DB_HOST"):
    default_database_url: str = (
        os.getenv("DATABASE_URL")
        or "postgresql://{user}:{password}@{host}:{port}/{name}".format(
            user=os.getenv("DB_USER", "lutonai"),
            password=os.getenv("DB_PASSWORD", "lutonai_password"),
            host=os.getenv("DB_HOST", "db"),
            port=os.getenv("DB_PORT", "5432"),
            name=os.getenv("DB_NAME", "lutonai_db"),
        )
    )
else:
    default_database_url = os.getenv("DATABASE_URL") or f"sqlite:///{BASE_DIR / 'db.sqlite3'}"

DATABASES: dict[str, dict[str, Any]] = {
    "default": cast(
        dict[str, Any],
        dj_database_url.parse(default_database_url, conn_max_age=600, ssl_require=False),
    )
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.getenv("TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"
STATICFILES_DIRS = [BASE_DIR / "static"]
MEDIA_URL = "/media/"
# Keep filesystem uploads out of the `media/` Django app package.
MEDIA_ROOT = BASE_DIR / "mediafiles"

STORAGES: dict[str, dict[str, Any]] = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    # Manifest storage requires collectstatic output, so DEBUG/test runs use plain storage.
    "staticfiles": {
        "BACKEND": (
            "django.contrib.staticfiles.storage.StaticFilesStorage"
            if DEBUG
            else "whitenoise.storage.CompressedManifestStaticFilesStorage"
        )
    },
}

storage_backend = os.getenv("STORAGE_BACKEND", "filesystem").strip().lower()
if storage_backend == "minio":
    minio_bucket_name = os.getenv("AWS_STORAGE_BUCKET_NAME", os.getenv("MINIO_BUCKET", "lutonai-local"))
    minio_internal_endpoint = os.getenv(
        "AWS_S3_ENDPOINT_URL",
        os.getenv("MINIO_ENDPOINT", "http://minio:9000"),
    )
    minio_public_endpoint = os.getenv(
        "MEDIA_PUBLIC_ENDPOINT",
        f"http://localhost:{os.getenv('MINIO_PORT', '9000')}",
    ).rstrip("/")
    default_custom_domain = f"{strip_url_scheme(minio_public_endpoint)}/{minio_bucket_name}"
    custom_domain = os.getenv("AWS_S3_CUSTOM_DOMAIN", default_custom_domain).strip().strip("/")
    if not custom_domain:
        custom_domain = default_custom_domain

    default_url_protocol = "https:" if minio_public_endpoint.lower().startswith("https://") else "http:"

    STORAGES["default"] = {
        "BACKEND": "storages.backends.s3.S3Storage",
        "OPTIONS": {
            "access_key": os.getenv("AWS_ACCESS_KEY_ID", os.getenv("MINIO_ROOT_USER", "minioadmin")),
            "secret_key": os.getenv("AWS_SECRET_ACCESS_KEY", os.getenv("MINIO_ROOT_PASSWORD", "minioadmin")),
            "bucket_name": minio_bucket_name,
            "endpoint_url": minio_internal_endpoint,
            "region_name": os.getenv("AWS_S3_REGION_NAME", "us-east-1"),
            "default_acl": None,
            "querystring_auth": env_bool("AWS_QUERYSTRING_AUTH", False),
            "addressing_style": os.getenv("AWS_S3_ADDRESSING_STYLE", "path"),
            "signature_version": os.getenv("AWS_S3_SIGNATURE_VERSION", "s3v4"),
            "custom_domain": custom_domain,
            "url_protocol": os.getenv("AWS_S3_URL_PROTOCOL", default_url_protocol),
        },
    }

csrf_trusted_origins = os.getenv("CSRF_TRUSTED_ORIGINS", "")
CSRF_TRUSTED_ORIGINS: list[str] = [item.strip() for item in csrf_trusted_origins.split(",") if item.strip()]
LOGIN_URL = "admin:login"
LOGIN_REDIRECT_URL = "/admin/events/"
LOGOUT_REDIRECT_URL = "/"

if env_bool("USE_X_FORWARDED_PROTO", False):
    SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

SECURE_SSL_REDIRECT = env_bool("SECURE_SSL_REDIRECT", False)
SESSION_COOKIE_SECURE = env_bool("SESSION_COOKIE_SECURE", False)
CSRF_COOKIE_SECURE = env_bool("CSRF_COOKIE_SECURE", False)

LOGGING = get_logging_config(debug=DEBUG)

SITE_TITLE = os.getenv("SITE_TITLE", "Luton AI")
SITE_DESCRIPTION = os.getenv("SITE_DESCRIPTION", "Luton AI Community Platform")
# Public origin used to absolutize storage paths returned by the storage media host.
SITE_URL = os.getenv("SITE_URL", "http://localhost:8000").rstrip("/")

# Media host used by the upload bridge. Credentials are read once at startup.
cloudinary_cloud_name = os.getenv("CLOUDINARY_CLOUD_NAME", "").strip()
media_host_backend = os.getenv(
    "MEDIA_HOST_BACKEND",
    "cloudinary" if cloudinary_cloud_name else "storage",
).strip().lower()
MEDIA_HOST_BACKENDS: dict[str, str] = {
    "cloudinary": "media.hosts.CloudinaryHost",
    "storage": "media.hosts.StorageHost",
    "locmem": "media.hosts.LocMemHost",
}
LUTON_MEDIA_HOST: dict[str, Any] = {
    "BACKEND": MEDIA_HOST_BACKENDS.get(media_host_backend, media_host_backend),
    "OPTIONS": {
        "cloud_name": cloudinary_cloud_name,
        "api_key": os.getenv("CLOUDINARY_API_KEY", "").strip(),
        "api_secret": os.getenv("CLOUDINARY_API_SECRET", "").strip(),
        "public_base_url": os.getenv("MEDIA_HOST_PUBLIC_BASE_URL", SITE_URL).rstrip("/"),
    },
}

# Attachment validation defaults (used by media.validators, env-overridable).
LUTON_MEDIA_IMAGE_MAX_MB = max(1, env_int("LUTON_MEDIA_IMAGE_MAX_MB", 2))
LUTON_MEDIA_ALLOWED_IMAGE_MIME_TYPES = env_csv(
    "LUTON_MEDIA_ALLOWED_IMAGE_MIME_TYPES",
    "image/jpeg,image/jpg,image/png",
)
LUTON_MEDIA_ALLOWED_IMAGE_EXTENSIONS = env_csv(
    "LUTON_MEDIA_ALLOWED_IMAGE_EXTENSIONS",
    ".jpg,.jpeg,.png",
)

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
