from __future__ import annotations

import json
from datetime import datetime, timedelta
from io import BytesIO, StringIO
from unittest.mock import patch

from PIL import Image
from django.contrib.auth import get_user_model
from django.contrib.messages import get_messages
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from django.utils import timezone

from lutonai.listing import filter_records
from media import hosts

from .forms import EventForm
from .models import DEFAULT_EVENT_THUMBNAIL_URL, Event, build_event_list_payload

UserModel = get_user_model()

LOCMEM_MEDIA_HOST = {"BACKEND": "media.hosts.LocMemHost", "OPTIONS": {}}


def _datetime_local(value: datetime) -> str:
    return timezone.localtime(value).strftime("%Y-%m-%dT%H:%M")


def _png_bytes() -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (4, 3), color=(37, 99, 235)).save(buffer, format="PNG")
    return buffer.getvalue()


def _create_event(**overrides: object) -> Event:
    starts_at = timezone.now() + timedelta(days=7)
    values: dict[str, object] = {
        "title": "ML reading group",
        "description": "Monthly paper discussion for practitioners.",
        "start_datetime": starts_at,
        "end_datetime": starts_at + timedelta(hours=2),
        "event_type": "Meetup",
        "venue": "Luton Library",
        "status": Event.Status.PUBLISHED,
    }
    values.update(overrides)
    return Event.objects.create(**values)


def _flashed(response) -> list[str]:  # type: ignore[no-untyped-def]
    return [str(message) for message in get_messages(response.wsgi_request)]


class EventListFilterTests(SimpleTestCase):
    def setUp(self) -> None:
        self.records = [
            {"title": "Intro to Machine Learning", "description": "Beginner friendly"},
            {"title": "Hack night", "description": "Bring your LEARNING projects"},
            {"title": "Pub quiz", "description": "Trivia and snacks"},
        ]

    def test_empty_query_keeps_every_record_in_order(self) -> None:
        self.assertEqual(filter_records(self.records, "", ("title", "description")), self.records)

    def test_matches_title_or_description_case_insensitively(self) -> None:
        matched = filter_records(self.records, "learning", ("title", "description"))

        self.assertEqual([record["title"] for record in matched], ["Intro to Machine Learning", "Hack night"])

    def test_filtered_rows_are_a_subset_that_all_match(self) -> None:
        for query in ("a", "QUIZ", "zzz", "night"):
            matched = filter_records(self.records, query, ("title", "description"))
            self.assertLessEqual(len(matched), len(self.records))
            for record in matched:
                self.assertTrue(
                    query.lower() in record["title"].lower() or query.lower() in record["description"].lower()
                )


@override_settings(LUTON_MEDIA_HOST=LOCMEM_MEDIA_HOST)
class EventViewsTests(TestCase):
    def setUp(self) -> None:
        hosts.stored.clear()
        self.addCleanup(hosts.stored.clear)
        self.password = "EventsPass!123456"
        self.staff_user = UserModel.objects.create_user(
            username="events-staff",
            email="events-staff@example.com",
            password=self.password,
            is_staff=True,
        )
        self.member_user = UserModel.objects.create_user(
            username="events-member",
            email="events-member@example.com",
            password=self.password,
        )

    def _login_staff(self) -> None:
        self.client.login(username=self.staff_user.username, password=self.password)

    def _create_payload(self, **overrides: object) -> dict[str, object]:
        starts_at = timezone.now() + timedelta(days=10)
        payload: dict[str, object] = {
            "title": "  Prompt engineering workshop  ",
            "description": "Hands-on prompts.",
            "start_datetime": _datetime_local(starts_at),
            "end_datetime": _datetime_local(starts_at + timedelta(hours=3)),
            "event_type": "Workshop",
            "venue": " Hat Factory ",
            "contact_email": "",
            "capacity": "40",
            "price": "",
            "registration_deadline": "",
            "status": Event.Status.DRAFT,
        }
        payload.update(overrides)
        return payload

    def test_event_list_requires_staff_login(self) -> None:
        response = self.client.get(reverse("events:list"))
        self.assertEqual(response.status_code, 302)
        self.assertIn(reverse("admin:login"), response["Location"])

        self.client.login(username=self.member_user.username, password=self.password)
        response = self.client.get(reverse("events:list"))
        self.assertEqual(response.status_code, 302)

    def test_event_list_shows_empty_state(self) -> None:
        self._login_staff()
        response = self.client.get(reverse("events:list"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context["events"], [])
        self.assertContains(response, "No events found")

    def test_event_list_filters_by_query_and_reports_counts(self) -> None:
        _create_event(title="Intro to machine learning")
        _create_event(title="Pub quiz", description="Trivia night")
        self._login_staff()

        response = self.client.get(reverse("events:list"), {"q": "MACHINE"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context["event_query"], "MACHINE")
        self.assertEqual(response.context["event_total_count"], 2)
        self.assertEqual(response.context["event_filtered_count"], 1)
        self.assertEqual(response.context["events"][0]["title"], "Intro to machine learning")
        self.assertContains(response, "Showing 1 of 2 events")

    def test_event_list_query_keeps_leading_whitespace(self) -> None:
        _create_event(title="Maintainers night", description="Release planning")
        _create_event(title="Open ai talk", description="Lightning talks")
        self._login_staff()

        response = self.client.get(reverse("events:list"), {"q": " ai"})

        self.assertEqual([row["title"] for row in response.context["events"]], ["Open ai talk"])
        self.assertEqual(response.context["event_filtered_count"], 1)

        blank = self.client.get(reverse("events:list"), {"q": "   "})
        self.assertEqual(blank.context["events"], [])
        self.assertContains(blank, "No events found")

    def test_event_card_badge_shows_type_in_status_colour(self) -> None:
        _create_event(event_type="Meetup", status=Event.Status.PUBLISHED)
        self._login_staff()

        response = self.client.get(reverse("events:list"))

        self.assertContains(response, '<span class="badge-published" title="Published">Meetup</span>', html=True)

    def test_event_cards_fall_back_to_default_thumbnail(self) -> None:
        _create_event(thumbnail="")
        payload = build_event_list_payload("")

        self.assertEqual(payload["events"][0]["thumbnail_url"], DEFAULT_EVENT_THUMBNAIL_URL)
        self.assertEqual(payload["events"][0]["status_badge_class"], "badge-published")

    def test_event_detail_renders_and_missing_event_is_404(self) -> None:
        event = _create_event()
        self._login_staff()

        response = self.client.get(reverse("events:detail", kwargs={"event_id": event.pk}))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, event.title)

        missing = self.client.get(reverse("events:detail", kwargs={"event_id": event.pk + 100}))
        self.assertEqual(missing.status_code, 404)

    def test_event_create_uploads_thumbnail_then_saves(self) -> None:
        self._login_staff()
        payload = self._create_payload(
            thumbnail_file=SimpleUploadedFile("cover.png", _png_bytes(), content_type="image/png"),
        )

        response = self.client.post(reverse("events:create"), payload)

        self.assertRedirects(response, reverse("events:list"), fetch_redirect_response=False)
        event = Event.objects.get()
        self.assertEqual(event.title, "Prompt engineering workshop")
        self.assertEqual(event.venue, "Hat Factory")
        self.assertEqual(len(hosts.stored), 1)
        self.assertEqual(hosts.stored[0]["category"], "event-thumbnails")
        self.assertEqual(event.thumbnail, hosts.stored[0]["reference"])
        self.assertIn("Event created successfully!", _flashed(response))

    def test_event_create_without_thumbnail_skips_upload(self) -> None:
        self._login_staff()

        response = self.client.post(reverse("events:create"), self._create_payload())

        self.assertEqual(response.status_code, 302)
        self.assertEqual(Event.objects.get().thumbnail, "")
        self.assertEqual(hosts.stored, [])

    def test_event_create_upload_failure_saves_nothing(self) -> None:
        self._login_staff()
        payload = self._create_payload(
            thumbnail_file=SimpleUploadedFile("cover.png", _png_bytes(), content_type="image/png"),
        )

        with patch("media.hosts.LocMemHost.store", side_effect=RuntimeError("host unavailable")):
            response = self.client.post(reverse("events:create"), payload)

        self.assertEqual(response.status_code, 200)
        self.assertFalse(Event.objects.exists())
        self.assertIn("Error uploading thumbnail", response.context["form"].errors["thumbnail_file"])
        self.assertIn("Error uploading thumbnail", _flashed(response))

    def test_event_create_rejects_invalid_input_without_upload(self) -> None:
        self._login_staff()
        starts_at = timezone.now() + timedelta(days=3)
        payload = self._create_payload(
            title="   ",
            start_datetime=_datetime_local(starts_at),
            end_datetime=_datetime_local(starts_at - timedelta(hours=1)),
            contact_email="not-an-email",
            thumbnail_file=SimpleUploadedFile("cover.gif", b"GIF89a", content_type="image/gif"),
        )

        response = self.client.post(reverse("events:create"), payload)

        self.assertEqual(response.status_code, 200)
        errors = response.context["form"].errors
        self.assertIn("Title is required", errors["title"])
        self.assertIn("Invalid email address", errors["contact_email"])
        self.assertIn("end_datetime", errors)
        self.assertIn("thumbnail_file", errors)
        self.assertFalse(Event.objects.exists())
        self.assertEqual(hosts.stored, [])

    def test_event_edit_keeps_thumbnail_when_no_new_file(self) -> None:
        event = _create_event(thumbnail="https://cdn.example/event-thumbnails/original.png")
        self._login_staff()

        response = self.client.post(
            reverse("events:edit", kwargs={"event_id": event.pk}),
            self._create_payload(title="Renamed reading group", status=Event.Status.CANCELLED),
        )

        self.assertRedirects(
            response,
            reverse("events:detail", kwargs={"event_id": event.pk}),
            fetch_redirect_response=False,
        )
        event.refresh_from_db()
        self.assertEqual(event.title, "Renamed reading group")
        self.assertEqual(event.status, Event.Status.CANCELLED)
        self.assertEqual(event.thumbnail, "https://cdn.example/event-thumbnails/original.png")

    def test_event_delete_get_asks_for_confirmation_without_deleting(self) -> None:
        event = _create_event()
        self._login_staff()

        response = self.client.get(reverse("events:delete", kwargs={"event_id": event.pk}))

        self.assertEqual(response.status_code, 200)
        self.assertTemplateUsed(response, "pages/confirm_delete.html")
        self.assertContains(response, "This action cannot be undone.")
        self.assertTrue(Event.objects.filter(pk=event.pk).exists())

    def test_event_delete_post_removes_row(self) -> None:
        event = _create_event()
        self._login_staff()

        response = self.client.post(reverse("events:delete", kwargs={"event_id": event.pk}))

        self.assertRedirects(response, reverse("events:list"), fetch_redirect_response=False)
        self.assertFalse(Event.objects.filter(pk=event.pk).exists())
        self.assertIn("Event deleted successfully", _flashed(response))

    def test_event_delete_missing_row_flashes_error(self) -> None:
        self._login_staff()

        response = self.client.post(reverse("events:delete", kwargs={"event_id": 999}))

        self.assertRedirects(response, reverse("events:list"), fetch_redirect_response=False)
        self.assertIn("Error deleting event", _flashed(response))

    def test_event_list_verbose_query_prints_debug_lines(self) -> None:
        self._login_staff()
        with patch("builtins.print") as print_mock:
            response = self.client.get(reverse("events:list"), {"verbose": "1"})

        self.assertEqual(response.status_code, 200)
        printed = " ".join(str(call.args[0]) for call in print_mock.call_args_list if call.args)
        self.assertIn("[events][verbose]", printed)


class EventFormTests(TestCase):
    def test_registration_deadline_after_start_is_rejected(self) -> None:
        starts_at = timezone.now() + timedelta(days=5)
        form = EventForm(
            data={
                "title": "Deadline check",
                "description": "Registration window test.",
                "start_datetime": _datetime_local(starts_at),
                "end_datetime": _datetime_local(starts_at + timedelta(hours=1)),
                "event_type": "Talk",
                "registration_deadline": _datetime_local(starts_at + timedelta(days=1)),
                "status": Event.Status.DRAFT,
            }
        )

        self.assertFalse(form.is_valid())
        self.assertIn("registration_deadline", form.errors)

    def test_end_before_start_is_rejected(self) -> None:
        starts_at = timezone.now() + timedelta(days=5)
        form = EventForm(
            data={
                "title": "Order check",
                "description": "End precedes start.",
                "start_datetime": _datetime_local(starts_at),
                "end_datetime": _datetime_local(starts_at - timedelta(minutes=30)),
                "event_type": "Talk",
                "status": Event.Status.DRAFT,
            }
        )

        self.assertFalse(form.is_valid())
        self.assertEqual(form.errors["end_datetime"], ["End time must be after the start time."])

    def test_end_equal_to_start_is_accepted(self) -> None:
        starts_at = timezone.now() + timedelta(days=5)
        form = EventForm(
            data={
                "title": "Instant check",
                "description": "Zero-length event.",
                "start_datetime": _datetime_local(starts_at),
                "end_datetime": _datetime_local(starts_at),
                "event_type": "Talk",
                "status": Event.Status.DRAFT,
            }
        )

        self.assertTrue(form.is_valid(), form.errors)

    def test_thumbnail_input_advertises_allowed_extensions(self) -> None:
        form = EventForm()
        self.assertEqual(form.fields["thumbnail_file"].widget.attrs["accept"], ".jpg,.jpeg,.png")


@override_settings(LUTON_MEDIA_HOST=LOCMEM_MEDIA_HOST)
class EventApiTests(TestCase):
    def setUp(self) -> None:
        hosts.stored.clear()
        self.addCleanup(hosts.stored.clear)
        self.staff_user = UserModel.objects.create_user(
            username="api-staff",
            email="api-staff@example.com",
            password="ApiPass!123456",
            is_staff=True,
        )
        self.client.force_login(self.staff_user)

    def _json_payload(self, **overrides: object) -> dict[str, object]:
        starts_at = timezone.now() + timedelta(days=20)
        payload: dict[str, object] = {
            "title": "Replaced title",
            "description": "Replaced description.",
            "start_datetime": starts_at.isoformat(),
            "end_datetime": (starts_at + timedelta(hours=2)).isoformat(),
            "event_type": "Conference",
            "status": Event.Status.PUBLISHED,
        }
        payload.update(overrides)
        return payload

    def test_api_requires_staff(self) -> None:
        self.client.logout()

        response = self.client.get(reverse("events-api:collection"))

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"error": "Staff access required."})

    def test_collection_get_lists_and_filters(self) -> None:
        _create_event(title="Vision transformers")
        _create_event(title="Pub quiz", description="Trivia")

        response = self.client.get(reverse("events-api:collection"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), 2)

        filtered = self.client.get(reverse("events-api:admin-collection"), {"q": "vision"})
        self.assertEqual([row["title"] for row in filtered.json()], ["Vision transformers"])

    def test_admin_collection_matches_query_with_leading_space_exactly(self) -> None:
        _create_event(title="Maintainers night", description="Release planning")
        _create_event(title="Open ai talk", description="Lightning talks")

        response = self.client.get(reverse("events-api:admin-collection"), {"q": " ai"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual([row["title"] for row in response.json()], ["Open ai talk"])

    def test_collection_post_creates_event_with_thumbnail(self) -> None:
        starts_at = timezone.now() + timedelta(days=4)
        response = self.client.post(
            reverse("events-api:collection"),
            {
                "title": "API event",
                "description": "Created through the API.",
                "start_datetime": _datetime_local(starts_at),
                "end_datetime": _datetime_local(starts_at + timedelta(hours=1)),
                "event_type": "Talk",
                "status": Event.Status.DRAFT,
                "thumbnail_file": SimpleUploadedFile("cover.png", _png_bytes(), content_type="image/png"),
            },
        )

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["title"], "API event")
        self.assertEqual(body["thumbnail"], hosts.stored[0]["reference"])
        self.assertTrue(Event.objects.filter(pk=body["id"]).exists())

    def test_collection_post_reports_validation_errors(self) -> None:
        response = self.client.post(reverse("events-api:collection"), {"title": ""})

        self.assertEqual(response.status_code, 400)
        self.assertIn("Title is required", response.json()["errors"]["title"])

    def test_collection_post_upload_failure_returns_502(self) -> None:
        starts_at = timezone.now() + timedelta(days=4)
        with patch("media.hosts.LocMemHost.store", side_effect=TimeoutError("upload timed out")):
            response = self.client.post(
                reverse("events-api:collection"),
                {
                    "title": "API event",
                    "description": "Created through the API.",
                    "start_datetime": _datetime_local(starts_at),
                    "end_datetime": _datetime_local(starts_at + timedelta(hours=1)),
                    "event_type": "Talk",
                    "status": Event.Status.DRAFT,
                    "thumbnail_file": SimpleUploadedFile("cover.png", _png_bytes(), content_type="image/png"),
                },
            )

        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["error"], "Failed to upload thumbnail")
        self.assertFalse(Event.objects.exists())

    def test_item_get_and_missing_item(self) -> None:
        event = _create_event()

        response = self.client.get(reverse("events-api:item", kwargs={"event_id": event.pk}))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["id"], event.pk)

        missing = self.client.get(reverse("events-api:item", kwargs={"event_id": event.pk + 50}))
        self.assertEqual(missing.status_code, 404)

    def test_item_put_replaces_whole_record(self) -> None:
        event = _create_event(
            venue="Old venue",
            capacity=50,
            thumbnail="https://cdn.example/event-thumbnails/old.png",
        )

        response = self.client.put(
            reverse("events-api:item", kwargs={"event_id": event.pk}),
            data=json.dumps(self._json_payload(thumbnail="https://cdn.example/event-thumbnails/new.png")),
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 200)
        event.refresh_from_db()
        self.assertEqual(event.title, "Replaced title")
        self.assertEqual(event.venue, "")
        self.assertIsNone(event.capacity)
        self.assertEqual(event.thumbnail, "https://cdn.example/event-thumbnails/new.png")

    def test_item_put_rejects_relative_thumbnail_and_bad_json(self) -> None:
        event = _create_event()
        url = reverse("events-api:item", kwargs={"event_id": event.pk})

        relative = self.client.put(
            url,
            data=json.dumps(self._json_payload(thumbnail="/media/cover.png")),
            content_type="application/json",
        )
        self.assertEqual(relative.status_code, 400)
        self.assertIn("thumbnail", relative.json()["errors"])

        malformed = self.client.put(url, data="[1, 2]", content_type="application/json")
        self.assertEqual(malformed.status_code, 400)

    def test_item_delete_returns_204(self) -> None:
        event = _create_event()

        response = self.client.delete(reverse("events-api:item", kwargs={"event_id": event.pk}))

        self.assertEqual(response.status_code, 204)
        self.assertFalse(Event.objects.exists())


class EventsBootstrapCommandTests(TestCase):
    def test_bootstrap_events_seeds_rows_with_verbose_output(self) -> None:
        output = StringIO()
        call_command("bootstrap_events", "--verbose", stdout=output)

        rendered = output.getvalue()
        self.assertIn("Bootstrapping demo events...", rendered)
        self.assertIn("[events][verbose]", rendered)
        self.assertIn("created=3", rendered)
        self.assertEqual(Event.objects.count(), 3)

    def test_bootstrap_events_is_idempotent(self) -> None:
        call_command("bootstrap_events", stdout=StringIO())
        output = StringIO()
        call_command("bootstrap_events", stdout=output)

        self.assertIn("created=0, updated=3, total=3", output.getvalue())
        self.assertEqual(Event.objects.count(), 3)
