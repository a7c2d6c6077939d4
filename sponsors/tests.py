from __future__ import annotations

from io import BytesIO, StringIO
from unittest.mock import patch

from PIL import Image
from django.contrib.auth import get_user_model
from django.contrib.messages import get_messages
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.urls import reverse

from media import hosts

from .forms import SponsorForm
from .models import Sponsor, build_sponsor_list_payload

UserModel = get_user_model()

LOCMEM_MEDIA_HOST = {"BACKEND": "media.hosts.LocMemHost", "OPTIONS": {}}


def _png_upload(name: str = "logo.png") -> SimpleUploadedFile:
    buffer = BytesIO()
    Image.new("RGB", (6, 3), color=(250, 204, 21)).save(buffer, format="PNG")
    return SimpleUploadedFile(name, buffer.getvalue(), content_type="image/png")


def _sponsor_payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "name": "Chiltern Cloud",
        "description": "Regional hosting provider.",
        "email": "partners@chilterncloud.example",
        "phone": " 01582 000000 ",
        "website": " https://chilterncloud.example ",
        "sponsorship_level": Sponsor.Level.GOLD,
    }
    payload.update(overrides)
    return payload


def _create_sponsor(**overrides: object) -> Sponsor:
    values: dict[str, object] = {
        "name": "Bedfordshire Data Lab",
        "description": "Analytics consultancy.",
        "email": "hello@bedsdatalab.example",
        "sponsorship_level": Sponsor.Level.SILVER,
        "logo": "https://cdn.example/project-logos/beds.png",
    }
    values.update(overrides)
    return Sponsor.objects.create(**values)


def _flashed(response) -> list[str]:  # type: ignore[no-untyped-def]
    return [str(message) for message in get_messages(response.wsgi_request)]


class SponsorFormTests(TestCase):
    def test_blank_submission_reports_every_required_field(self) -> None:
        form = SponsorForm(data={"name": "", "description": "", "email": "", "sponsorship_level": ""})

        self.assertFalse(form.is_valid())
        self.assertEqual(form.errors["name"], ["Name is required"])
        self.assertEqual(form.errors["description"], ["Description is required"])
        self.assertEqual(form.errors["email"], ["Email is required"])
        self.assertEqual(form.errors["sponsorship_level"], ["Sponsorship level is required"])
        self.assertEqual(form.errors["logo_file"], ["Logo is required"])

    def test_length_email_and_level_messages(self) -> None:
        form = SponsorForm(
            data=_sponsor_payload(
                name="n" * 101,
                description="d" * 1001,
                email="not-an-email",
                sponsorship_level="Diamond",
            ),
            files={"logo_file": _png_upload()},
        )

        self.assertFalse(form.is_valid())
        self.assertEqual(form.errors["name"], ["Name cannot exceed 100 characters"])
        self.assertEqual(form.errors["description"], ["Description cannot exceed 1000 characters"])
        self.assertEqual(form.errors["email"], ["Invalid email address"])
        self.assertEqual(form.errors["sponsorship_level"], ["Sponsorship level is required"])

    @override_settings(LUTON_MEDIA_IMAGE_MAX_MB=1)
    def test_logo_size_and_type_are_checked(self) -> None:
        oversized = SimpleUploadedFile("logo.png", b"0" * (1024 * 1024 + 1), content_type="image/png")
        too_big = SponsorForm(data=_sponsor_payload(), files={"logo_file": oversized})
        self.assertFalse(too_big.is_valid())
        self.assertEqual(too_big.errors["logo_file"], ["Logo must be less than 1MB"])

        webp = SimpleUploadedFile("logo.webp", b"RIFF0000WEBP", content_type="image/webp")
        wrong_type = SponsorForm(data=_sponsor_payload(), files={"logo_file": webp})
        self.assertFalse(wrong_type.is_valid())
        self.assertEqual(wrong_type.errors["logo_file"], ["Only .jpg, .jpeg, and .png files are allowed"])

    def test_edit_form_keeps_logo_optional(self) -> None:
        sponsor = _create_sponsor()
        form = SponsorForm(data=_sponsor_payload(), instance=sponsor)

        self.assertTrue(form.is_valid(), form.errors)
        self.assertIsNone(form.cleaned_data["logo_file"])

    def test_level_select_starts_with_placeholder(self) -> None:
        choices = list(SponsorForm().fields["sponsorship_level"].choices)

        self.assertEqual(choices[0], ("", "Select sponsorship level"))
        self.assertEqual([value for value, _label in choices[1:]], ["Platinum", "Gold", "Silver", "Bronze", "Partner"])


@override_settings(LUTON_MEDIA_HOST=LOCMEM_MEDIA_HOST)
class SponsorViewsTests(TestCase):
    def setUp(self) -> None:
        hosts.stored.clear()
        self.addCleanup(hosts.stored.clear)
        self.staff_user = UserModel.objects.create_user(
            username="sponsors-staff",
            email="sponsors-staff@example.com",
            password="SponsorsPass!123456",
            is_staff=True,
        )
        self.client.force_login(self.staff_user)

    def test_sponsor_list_requires_staff(self) -> None:
        self.client.logout()

        response = self.client.get(reverse("sponsors:list"))

        self.assertEqual(response.status_code, 302)
        self.assertIn(reverse("admin:login"), response["Location"])

    def test_sponsor_list_filters_name_and_description(self) -> None:
        _create_sponsor(name="Chiltern Cloud", description="GPU credits")
        _create_sponsor(name="Hatters Robotics", description="Student society")

        response = self.client.get(reverse("sponsors:list"), {"q": "gpu"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual([row["name"] for row in response.context["sponsors"]], ["Chiltern Cloud"])
        self.assertEqual(response.context["sponsor_total_count"], 2)

        empty = self.client.get(reverse("sponsors:list"), {"q": "nothing matches"})
        self.assertContains(empty, "No sponsors found")

    def test_sponsor_cards_carry_level_badge(self) -> None:
        _create_sponsor(sponsorship_level=Sponsor.Level.PLATINUM)

        payload = build_sponsor_list_payload("")

        self.assertEqual(payload["sponsors"][0]["level_badge_class"], "badge-level-platinum")

    def test_sponsor_create_uploads_logo_to_project_logos(self) -> None:
        response = self.client.post(
            reverse("sponsors:create"),
            {**_sponsor_payload(), "logo_file": _png_upload()},
        )

        self.assertRedirects(response, reverse("sponsors:list"), fetch_redirect_response=False)
        sponsor = Sponsor.objects.get()
        self.assertEqual(len(hosts.stored), 1)
        self.assertEqual(hosts.stored[0]["category"], "project-logos")
        self.assertEqual(sponsor.logo, hosts.stored[0]["reference"])
        self.assertEqual(sponsor.phone, "01582 000000")
        self.assertEqual(sponsor.website, "https://chilterncloud.example")
        self.assertIn("Sponsor created successfully!", _flashed(response))

    def test_sponsor_create_failure_keeps_form_and_saves_nothing(self) -> None:
        with patch("media.hosts.LocMemHost.store", side_effect=RuntimeError("quota exceeded")):
            response = self.client.post(
                reverse("sponsors:create"),
                {**_sponsor_payload(), "logo_file": _png_upload()},
            )

        self.assertEqual(response.status_code, 200)
        self.assertFalse(Sponsor.objects.exists())
        self.assertEqual(response.context["form"]["name"].value(), "Chiltern Cloud")
        self.assertIn("Error creating sponsor", _flashed(response))

    def test_sponsor_create_invalid_input_never_reaches_host(self) -> None:
        response = self.client.post(reverse("sponsors:create"), _sponsor_payload(email="bad"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(hosts.stored, [])
        self.assertFalse(Sponsor.objects.exists())

    def test_sponsor_edit_without_new_logo_keeps_reference(self) -> None:
        sponsor = _create_sponsor()

        response = self.client.post(
            reverse("sponsors:edit", kwargs={"sponsor_id": sponsor.pk}),
            _sponsor_payload(name="Renamed lab"),
        )

        self.assertRedirects(
            response,
            reverse("sponsors:detail", kwargs={"sponsor_id": sponsor.pk}),
            fetch_redirect_response=False,
        )
        sponsor.refresh_from_db()
        self.assertEqual(sponsor.name, "Renamed lab")
        self.assertEqual(sponsor.logo, "https://cdn.example/project-logos/beds.png")
        self.assertEqual(hosts.stored, [])

    def test_sponsor_delete_confirms_before_removing(self) -> None:
        sponsor = _create_sponsor()
        url = reverse("sponsors:delete", kwargs={"sponsor_id": sponsor.pk})

        confirm = self.client.get(url)
        self.assertEqual(confirm.status_code, 200)
        self.assertContains(confirm, sponsor.name)
        self.assertTrue(Sponsor.objects.exists())

        response = self.client.post(url)
        self.assertRedirects(response, reverse("sponsors:list"), fetch_redirect_response=False)
        self.assertFalse(Sponsor.objects.exists())
        self.assertIn("Sponsor deleted successfully", _flashed(response))


@override_settings(LUTON_MEDIA_HOST=LOCMEM_MEDIA_HOST)
class SponsorApiTests(TestCase):
    def setUp(self) -> None:
        hosts.stored.clear()
        self.addCleanup(hosts.stored.clear)
        self.staff_user = UserModel.objects.create_user(
            username="sponsors-api",
            email="sponsors-api@example.com",
            password="SponsorsApi!123456",
            is_staff=True,
        )
        self.client.force_login(self.staff_user)

    def test_api_rejects_non_staff(self) -> None:
        self.client.logout()

        response = self.client.post(reverse("sponsors-api:collection"), _sponsor_payload())

        self.assertEqual(response.status_code, 403)

    def test_collection_get_lists_sponsors(self) -> None:
        _create_sponsor()

        response = self.client.get(reverse("sponsors-api:collection"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()[0]["logo"], "https://cdn.example/project-logos/beds.png")

    def test_collection_get_query_is_matched_verbatim(self) -> None:
        _create_sponsor(name="Chiltern Cloud", description="Regional hosting")
        _create_sponsor(name="Open ai lab", description="Research partner")

        response = self.client.get(reverse("sponsors-api:collection"), {"q": " ai"})

        self.assertEqual([row["name"] for row in response.json()], ["Open ai lab"])

    def test_collection_post_creates_sponsor(self) -> None:
        response = self.client.post(
            reverse("sponsors-api:collection"),
            {**_sponsor_payload(), "logo_file": _png_upload()},
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["logo"], hosts.stored[0]["reference"])

    def test_collection_post_validation_errors_return_400(self) -> None:
        response = self.client.post(reverse("sponsors-api:collection"), _sponsor_payload(name=""))

        self.assertEqual(response.status_code, 400)
        errors = response.json()["errors"]
        self.assertEqual(errors["name"], ["Name is required"])
        self.assertEqual(errors["logo_file"], ["Logo is required"])

    def test_collection_post_host_failure_returns_502(self) -> None:
        with patch("media.hosts.LocMemHost.store", side_effect=ConnectionError("network unreachable")):
            response = self.client.post(
                reverse("sponsors-api:collection"),
                {**_sponsor_payload(), "logo_file": _png_upload()},
            )

        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["error"], "Failed to create sponsor")
        self.assertFalse(Sponsor.objects.exists())

    def test_item_get_delete_and_missing(self) -> None:
        sponsor = _create_sponsor()
        url = reverse("sponsors-api:item", kwargs={"sponsor_id": sponsor.pk})

        self.assertEqual(self.client.get(url).json()["name"], sponsor.name)
        self.assertEqual(self.client.delete(url).status_code, 204)
        self.assertEqual(self.client.get(url).status_code, 404)


class SponsorsBootstrapCommandTests(TestCase):
    def test_bootstrap_sponsors_uses_logo_base_url(self) -> None:
        output = StringIO()
        call_command("bootstrap_sponsors", "--logo-base-url", "https://img.example/logos/", "--verbose", stdout=output)

        self.assertIn("Sponsors ready: created=3", output.getvalue())
        self.assertIn("[sponsors][verbose]", output.getvalue())
        for sponsor in Sponsor.objects.all():
            self.assertTrue(sponsor.logo.startswith("https://img.example/logos?text="))
