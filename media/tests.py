from __future__ import annotations

import tempfile
from io import BytesIO
from pathlib import Path
from unittest.mock import patch
from urllib.parse import urlparse

from PIL import Image
from django import forms
from django.core.exceptions import ImproperlyConfigured
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import SimpleTestCase, TestCase, override_settings

from . import hosts
from .bridge import SPONSOR_LOGO_CATEGORY, UploadBridge, get_media_host, get_upload_bridge, read_payload
from .hosts import CloudinaryHost, LocMemHost, MediaHostConfig, MediaHostError, StorageHost, load_media_host
from .validators import allowed_types_message, validate_image_upload

CDN_REFERENCE = "https://cdn.example/project-logos/abc123.png"
CLOUDINARY_CONFIG = MediaHostConfig(
    backend="media.hosts.CloudinaryHost",
    cloud_name="demo-cloud",
    api_key="demo-key",
    api_secret="demo-secret",
)


def _build_sample_png_bytes() -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (2, 2), color=(239, 68, 68)).save(buffer, format="PNG")
    return buffer.getvalue()


SAMPLE_PNG_BYTES = _build_sample_png_bytes()


class RecordingHost:
    def __init__(self, *, reference: str = CDN_REFERENCE, error: BaseException | None = None) -> None:
        self.reference = reference
        self.error = error
        self.calls: list[tuple[bytes, str, str, str]] = []

    def store(self, payload: bytes, category: str, *, filename: str = "", content_type: str = "") -> str:
        self.calls.append((payload, category, filename, content_type))
        if self.error is not None:
            raise self.error
        return self.reference


class UploadBridgeTests(SimpleTestCase):
    def test_resolves_with_cloudinary_secure_url(self) -> None:
        bridge = UploadBridge(CloudinaryHost(CLOUDINARY_CONFIG), category=SPONSOR_LOGO_CATEGORY)

        with patch("cloudinary.uploader.upload", return_value={"secure_url": CDN_REFERENCE}) as upload_mock:
            reference = bridge.upload_sync(b"0123456789")

        self.assertEqual(reference, CDN_REFERENCE)
        upload_mock.assert_called_once()
        sent_file = upload_mock.call_args.args[0]
        self.assertEqual(sent_file.getvalue(), b"0123456789")
        self.assertEqual(upload_mock.call_args.kwargs["folder"], "project-logos")
        self.assertEqual(upload_mock.call_args.kwargs["api_key"], "demo-key")
        self.assertEqual(upload_mock.call_args.kwargs["api_secret"], "demo-secret")
        self.assertEqual(upload_mock.call_args.kwargs["cloud_name"], "demo-cloud")

    async def test_upload_is_awaitable_and_resolves_once(self) -> None:
        host = RecordingHost()
        bridge = UploadBridge(host)

        reference = await bridge.upload(b"0123456789", "project-logos")

        self.assertEqual(reference, CDN_REFERENCE)
        self.assertEqual(len(host.calls), 1)
        self.assertEqual(host.calls[0][:2], (b"0123456789", "project-logos"))

    def test_identical_payloads_produce_distinct_references(self) -> None:
        bridge = UploadBridge(LocMemHost(MediaHostConfig(backend="media.hosts.LocMemHost")))

        first = bridge.upload_sync(b"same-bytes")
        second = bridge.upload_sync(b"same-bytes")

        self.assertNotEqual(first, second)
        self.assertTrue(first.startswith("https://"))
        self.assertTrue(second.startswith("https://"))

    def test_host_error_propagates_unchanged(self) -> None:
        failure = RuntimeError("quota exceeded")
        host = RecordingHost(error=failure)
        bridge = UploadBridge(host)

        with self.assertRaises(RuntimeError) as raised:
            bridge.upload_sync(b"0123456789")

        self.assertIs(raised.exception, failure)
        self.assertEqual(len(host.calls), 1)

    def test_host_timeout_rejects_without_retry(self) -> None:
        host = RecordingHost(error=TimeoutError("upload timed out"))
        bridge = UploadBridge(host)
        outcomes: list[str] = []

        with self.assertRaises(TimeoutError):
            outcomes.append(bridge.upload_sync(b"0123456789", "project-logos"))

        self.assertEqual(outcomes, [])
        self.assertEqual(len(host.calls), 1)

    def test_cloudinary_error_propagates_unchanged(self) -> None:
        bridge = UploadBridge(CloudinaryHost(CLOUDINARY_CONFIG))
        failure = ConnectionError("network unreachable")

        with patch("cloudinary.uploader.upload", side_effect=failure):
            with self.assertRaises(ConnectionError) as raised:
                bridge.upload_sync(b"0123456789")

        self.assertIs(raised.exception, failure)

    def test_non_absolute_reference_is_rejected(self) -> None:
        bridge = UploadBridge(RecordingHost(reference="/media/project-logos/abc.png"))

        with self.assertRaises(MediaHostError):
            bridge.upload_sync(b"0123456789")

    def test_file_payload_is_read_fully_from_the_start(self) -> None:
        host = RecordingHost()
        uploaded = SimpleUploadedFile("logo.png", SAMPLE_PNG_BYTES, content_type="image/png")
        uploaded.read(4)

        UploadBridge(host).upload_sync(uploaded)

        payload, category, filename, content_type = host.calls[0]
        self.assertEqual(payload, SAMPLE_PNG_BYTES)
        self.assertEqual(category, SPONSOR_LOGO_CATEGORY)
        self.assertEqual(filename, "logo.png")
        self.assertEqual(content_type, "image/png")

    def test_read_payload_accepts_byte_buffers(self) -> None:
        self.assertEqual(read_payload(bytearray(b"abc")), b"abc")
        self.assertEqual(read_payload(memoryview(b"xyz")), b"xyz")
        self.assertEqual(read_payload(BytesIO(b"stream")), b"stream")


class MediaHostTests(SimpleTestCase):
    def setUp(self) -> None:
        hosts.stored.clear()
        self.addCleanup(hosts.stored.clear)

    @override_settings(
        LUTON_MEDIA_HOST={
            "BACKEND": "media.hosts.CloudinaryHost",
            "OPTIONS": {
                "cloud_name": "demo-cloud",
                "api_key": "demo-key",
                "api_secret": "demo-secret",
                "public_base_url": "https://admin.example/",
                "timeout": 30,
            },
        }
    )
    def test_config_from_settings_is_immutable(self) -> None:
        config = MediaHostConfig.from_settings()

        self.assertEqual(config.cloud_name, "demo-cloud")
        self.assertEqual(config.public_base_url, "https://admin.example")
        self.assertEqual(config.extra_options, {"timeout": 30})
        self.assertEqual(config.backend_label, "CloudinaryHost")
        with self.assertRaises(AttributeError):
            config.api_key = "other"  # type: ignore[misc]

    @override_settings(LUTON_MEDIA_HOST="media.hosts.LocMemHost")
    def test_config_rejects_non_dict_setting(self) -> None:
        with self.assertRaises(ImproperlyConfigured):
            MediaHostConfig.from_settings()

    def test_cloudinary_host_requires_credentials(self) -> None:
        with self.assertRaises(ImproperlyConfigured):
            CloudinaryHost(MediaHostConfig(backend="media.hosts.CloudinaryHost", cloud_name="demo-cloud"))

    def test_cloudinary_host_rejects_response_without_secure_url(self) -> None:
        host = CloudinaryHost(CLOUDINARY_CONFIG)

        with patch("cloudinary.uploader.upload", return_value={"public_id": "abc123"}):
            with self.assertRaises(MediaHostError):
                host.store(b"0123456789", "project-logos")

    def test_locmem_host_records_each_upload(self) -> None:
        host = LocMemHost(MediaHostConfig(backend="media.hosts.LocMemHost"))

        reference = host.store(b"0123456789", "project-logos", filename="logo.png", content_type="image/png")

        self.assertTrue(reference.startswith("https://media.invalid/project-logos/"))
        self.assertTrue(reference.endswith(".png"))
        self.assertEqual(len(hosts.stored), 1)
        self.assertEqual(hosts.stored[0]["size_bytes"], 10)
        self.assertEqual(hosts.stored[0]["reference"], reference)

    def test_locmem_host_keeps_only_latest_uploads(self) -> None:
        host = LocMemHost(MediaHostConfig(backend="media.hosts.LocMemHost"))

        with patch.object(hosts, "LOCMEM_MAX_STORED", 3):
            references = [host.store(b"0123456789", "project-logos") for _ in range(5)]

        self.assertEqual([row["reference"] for row in hosts.stored], references[-3:])

    def test_bare_image_bytes_are_named_after_decoded_format(self) -> None:
        host = LocMemHost(MediaHostConfig(backend="media.hosts.LocMemHost"))

        png_reference = host.store(SAMPLE_PNG_BYTES, "project-logos")
        opaque_reference = host.store(b"0123456789", "project-logos")

        self.assertTrue(png_reference.endswith(".png"))
        self.assertNotIn(".", opaque_reference.rsplit("/", 1)[-1])

    def test_storage_host_saves_under_category_and_returns_absolute_url(self) -> None:
        with tempfile.TemporaryDirectory() as temp_media_root, override_settings(
            MEDIA_ROOT=temp_media_root,
            MEDIA_URL="/media/",
            STORAGES={
                "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
                "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
            },
        ):
            host = StorageHost(
                MediaHostConfig(backend="media.hosts.StorageHost", public_base_url="https://admin.example")
            )
            reference = host.store(SAMPLE_PNG_BYTES, "project-logos", content_type="image/png")
            stored_files = list((Path(temp_media_root) / "project-logos").iterdir())
            self.assertEqual(len(stored_files), 1)
            self.assertEqual(stored_files[0].read_bytes(), SAMPLE_PNG_BYTES)

        self.assertTrue(reference.startswith("https://admin.example/media/project-logos/"))

    def test_load_media_host_rejects_unknown_backend(self) -> None:
        with self.assertRaises(ImproperlyConfigured):
            load_media_host(MediaHostConfig(backend="media.hosts.MissingHost"))

    def test_process_host_follows_setting_overrides(self) -> None:
        with override_settings(LUTON_MEDIA_HOST={"BACKEND": "media.hosts.LocMemHost", "OPTIONS": {}}):
            self.assertIsInstance(get_media_host(), LocMemHost)
            self.assertIs(get_media_host(), get_media_host())
            reference = get_upload_bridge("event-thumbnails").upload_sync(b"0123456789")

        self.assertIn("/event-thumbnails/", reference)
        self.assertEqual(hosts.stored[0]["category"], "event-thumbnails")


class ImageValidatorTests(SimpleTestCase):
    def _png(self, name: str = "logo.png", content: bytes = SAMPLE_PNG_BYTES) -> SimpleUploadedFile:
        return SimpleUploadedFile(name, content, content_type="image/png")

    def test_accepts_small_png(self) -> None:
        uploaded = self._png()
        self.assertIs(validate_image_upload(uploaded, label="Logo"), uploaded)

    def test_accepts_jpeg_declared_as_jpg(self) -> None:
        buffer = BytesIO()
        Image.new("RGB", (2, 2), color=(0, 0, 0)).save(buffer, format="JPEG")
        uploaded = SimpleUploadedFile("logo.jpeg", buffer.getvalue(), content_type="image/jpg")

        self.assertIs(validate_image_upload(uploaded), uploaded)

    @override_settings(LUTON_MEDIA_IMAGE_MAX_MB=1)
    def test_rejects_file_over_size_ceiling(self) -> None:
        oversized = self._png(content=b"0" * (1024 * 1024 + 1))

        with self.assertRaises(forms.ValidationError) as raised:
            validate_image_upload(oversized, label="Logo")

        self.assertEqual(raised.exception.messages, ["Logo must be less than 1MB"])

    @override_settings(LUTON_MEDIA_IMAGE_MAX_MB=1)
    def test_accepts_file_exactly_at_size_ceiling(self) -> None:
        padded_png = SAMPLE_PNG_BYTES + b"\0" * (1024 * 1024 - len(SAMPLE_PNG_BYTES))
        uploaded = self._png(content=padded_png)

        self.assertEqual(uploaded.size, 1024 * 1024)
        self.assertIs(validate_image_upload(uploaded, label="Logo"), uploaded)

    def test_rejects_disallowed_type(self) -> None:
        gif = SimpleUploadedFile("logo.gif", b"GIF89a0000", content_type="image/gif")

        with self.assertRaises(forms.ValidationError) as raised:
            validate_image_upload(gif)

        self.assertEqual(raised.exception.messages, ["Only .jpg, .jpeg, and .png files are allowed"])
        self.assertEqual(allowed_types_message(), "Only .jpg, .jpeg, and .png files are allowed")

    def test_rejects_bytes_that_are_not_an_image(self) -> None:
        with self.assertRaises(forms.ValidationError) as raised:
            validate_image_upload(self._png(content=b"not really a png"), label="Logo")

        self.assertEqual(raised.exception.code, "invalid_image")


class StoredMediaViewTests(TestCase):
    def test_storage_host_reference_resolves_over_http(self) -> None:
        with tempfile.TemporaryDirectory() as temp_media_root, override_settings(
            MEDIA_ROOT=temp_media_root,
            STORAGES={
                "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
                "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
            },
        ):
            host = StorageHost(MediaHostConfig(backend="media.hosts.StorageHost", public_base_url="http://testserver"))
            reference = host.store(SAMPLE_PNG_BYTES, "project-logos")

            response = self.client.get(urlparse(reference).path)
            body = b"".join(response.streaming_content)
            response.close()

        self.assertTrue(reference.startswith("http://testserver/media/project-logos/"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Type"], "image/png")
        self.assertEqual(body, SAMPLE_PNG_BYTES)

    def test_missing_or_escaping_names_are_not_found(self) -> None:
        with tempfile.TemporaryDirectory() as temp_media_root, override_settings(MEDIA_ROOT=temp_media_root):
            missing = self.client.get("/media/project-logos/does-not-exist.png")
            escaping = self.client.get("/media/../lutonai/settings.py")

        self.assertEqual(missing.status_code, 404)
        self.assertEqual(escaping.status_code, 404)
