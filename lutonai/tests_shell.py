from __future__ import annotations

import json
import logging

from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.http import HttpRequest, JsonResponse
from django.test import RequestFactory, SimpleTestCase, TestCase, override_settings
from django.urls import reverse

from .access import is_active_staff, staff_api_required
from .context_processors import site_metadata
from .logging_config import APP_LOGGERS, JsonFormatter, get_logging_config
from .storage_urls import absolutize_url, is_absolute_web_url, resolve_reference_url

UserModel = get_user_model()


class StorageUrlTests(SimpleTestCase):
    def test_absolute_web_urls_need_http_scheme_and_host(self) -> None:
        self.assertTrue(is_absolute_web_url("https://cdn.example/project-logos/abc123.png"))
        self.assertTrue(is_absolute_web_url(" http://localhost:8000/media/a.png "))
        self.assertFalse(is_absolute_web_url("/media/a.png"))
        self.assertFalse(is_absolute_web_url("ftp://files.example/a.png"))
        self.assertFalse(is_absolute_web_url(""))
        self.assertFalse(is_absolute_web_url(None))

    def test_absolutize_joins_relative_paths_onto_base(self) -> None:
        self.assertEqual(
            absolutize_url("/media/project-logos/a.png", base_url="https://admin.example/"),
            "https://admin.example/media/project-logos/a.png",
        )
        self.assertEqual(
            absolutize_url("https://cdn.example/a.png", base_url="https://admin.example"),
            "https://cdn.example/a.png",
        )

    def test_resolve_reference_falls_back_for_unusable_values(self) -> None:
        self.assertEqual(resolve_reference_url("", fallback="/static/x.svg"), "/static/x.svg")
        self.assertEqual(resolve_reference_url("javascript:alert(1)", fallback="/static/x.svg"), "/static/x.svg")
        self.assertEqual(resolve_reference_url("/media/a.png"), "/media/a.png")


class SiteMetadataTests(SimpleTestCase):
    def setUp(self) -> None:
        self.factory = RequestFactory()

    def test_defaults_and_section_detection(self) -> None:
        context = site_metadata(self.factory.get("/admin/sponsors/3/"))

        self.assertEqual(context["site_title"], "Luton AI")
        self.assertEqual(context["site_description"], "Luton AI Community Platform")
        self.assertEqual(context["admin_section"], "sponsors")
        self.assertEqual(site_metadata(self.factory.get("/admin/events/"))["admin_section"], "events")
        self.assertEqual(site_metadata(self.factory.get("/health/"))["admin_section"], "")

    @override_settings(SITE_TITLE="Luton AI Staging")
    def test_site_title_setting_override(self) -> None:
        self.assertEqual(site_metadata(self.factory.get("/"))["site_title"], "Luton AI Staging")


class StaffApiRequiredTests(TestCase):
    def setUp(self) -> None:
        self.factory = RequestFactory()

        @staff_api_required
        def protected(_request: HttpRequest) -> JsonResponse:
            return JsonResponse({"ok": True})

        self.protected = protected

    def test_anonymous_and_non_staff_get_json_403(self) -> None:
        request = self.factory.get("/api/events")
        request.user = AnonymousUser()
        response = self.protected(request)
        self.assertEqual(response.status_code, 403)
        self.assertEqual(json.loads(response.content), {"error": "Staff access required."})

        member = UserModel.objects.create_user(username="member", password="MemberPass!123456")
        request.user = member
        self.assertEqual(self.protected(request).status_code, 403)

    def test_inactive_staff_is_rejected(self) -> None:
        staff = UserModel.objects.create_user(username="staff", password="StaffPass!123456", is_staff=True)
        self.assertTrue(is_active_staff(staff))

        staff.is_active = False
        self.assertFalse(is_active_staff(staff))

        request = self.factory.get("/api/events")
        request.user = staff
        self.assertEqual(self.protected(request).status_code, 403)


class ProjectRoutesTests(TestCase):
    @override_settings(LUTON_MEDIA_HOST={"BACKEND": "media.hosts.LocMemHost", "OPTIONS": {}})
    def test_health_reports_media_host_backend(self) -> None:
        response = self.client.get(reverse("health"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {"status": "ok", "service": "lutonai-admin", "media_host": "LocMemHost"},
        )

    def test_home_redirects_to_event_list(self) -> None:
        response = self.client.get(reverse("home"))

        self.assertRedirects(response, reverse("events:list"), fetch_redirect_response=False)


class LoggingConfigTests(SimpleTestCase):
    def test_app_loggers_share_console_handler(self) -> None:
        config = get_logging_config(debug=True)

        for logger_name in APP_LOGGERS:
            self.assertEqual(config["loggers"][logger_name]["handlers"], ["console"])

    def test_json_formatter_emits_one_object_with_extras(self) -> None:
        record = logging.LogRecord(
            name="media.bridge",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="Stored upload category=%s",
            args=("project-logos",),
            exc_info=None,
        )
        record.reference = "https://cdn.example/project-logos/abc123.png"

        payload = json.loads(JsonFormatter().format(record))

        self.assertEqual(payload["level"], "INFO")
        self.assertEqual(payload["logger"], "media.bridge")
        self.assertEqual(payload["message"], "Stored upload category=project-logos")
        self.assertEqual(payload["extra"], {"reference": "https://cdn.example/project-logos/abc123.png"})
