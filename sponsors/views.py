from __future__ import annotations

import logging
from typing import Final

from django.contrib import messages
from django.contrib.admin.views.decorators import staff_member_required
from django.core.files.uploadedfile import UploadedFile
from django.http import HttpRequest, HttpResponse
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import reverse
from django.views.decorators.http import require_http_methods

from media.bridge import SPONSOR_LOGO_CATEGORY, get_upload_bridge

from .forms import SponsorForm
from .models import Sponsor, build_sponsor_list_payload

logger = logging.getLogger(__name__)

VERBOSE_FLAGS: Final[set[str]] = {"1", "true", "yes", "on"}


def _is_verbose_request(request: HttpRequest) -> bool:
    candidate = (
        request.GET.get("verbose")
        or request.POST.get("verbose")
        or request.headers.get("X-Luton-Verbose")
        or ""
    )
    return candidate.strip().lower() in VERBOSE_FLAGS


def _vprint(request: HttpRequest, message: str) -> None:
    if _is_verbose_request(request):
        print(f"[sponsors][verbose] {message}", flush=True)


def upload_sponsor_logo(uploaded_file: UploadedFile) -> str:
    return get_upload_bridge(SPONSOR_LOGO_CATEGORY).upload_sync(uploaded_file)


def save_sponsor_form(form: SponsorForm) -> Sponsor:
    """
    Persist a validated sponsor form, uploading a new logo first when one was given.

    Upload errors from the media host propagate to the caller before anything is saved.
    """

    sponsor = form.save(commit=False)
    uploaded_file = form.cleaned_data.get("logo_file")
    if uploaded_file:
        sponsor.logo = upload_sponsor_logo(uploaded_file)
    sponsor.save()
    return sponsor


@staff_member_required
@require_http_methods(["GET"])
def sponsor_list_view(request: HttpRequest) -> HttpResponse:
    payload = build_sponsor_list_payload(request.GET.get("q", ""))
    _vprint(
        request,
        "Sponsor list query={query!r}; total={total}; filtered={filtered}".format(
            query=payload["query"],
            total=payload["total_count"],
            filtered=payload["filtered_count"],
        ),
    )

    context: dict[str, object] = {
        "sponsors": payload["sponsors"],
        "sponsor_query": payload["query"],
        "sponsor_total_count": payload["total_count"],
        "sponsor_filtered_count": payload["filtered_count"],
    }
    return render(request, "pages/sponsors/list.html", context)


@staff_member_required
@require_http_methods(["GET"])
def sponsor_detail_view(request: HttpRequest, sponsor_id: int) -> HttpResponse:
    sponsor = get_object_or_404(Sponsor, pk=sponsor_id)
    return render(request, "pages/sponsors/detail.html", {"sponsor": sponsor})


@staff_member_required
@require_http_methods(["GET", "POST"])
def sponsor_create_view(request: HttpRequest) -> HttpResponse:
    if request.method == "POST":
        form = SponsorForm(request.POST, request.FILES)
        if form.is_valid():
            try:
                sponsor = save_sponsor_form(form)
            except Exception:
                logger.exception("Error creating sponsor name=%r", form.cleaned_data.get("name"))
                messages.error(request, "Error creating sponsor")
                _vprint(request, "Sponsor create failed while uploading the logo")
            else:
                messages.success(request, "Sponsor created successfully!")
                _vprint(request, f"Created sponsor id={sponsor.pk}; logo={sponsor.logo}")
                return redirect(reverse("sponsors:list"))
        else:
            messages.error(request, "Please fix the highlighted fields.")
            _vprint(request, "Sponsor create failed due to form validation errors")
    else:
        form = SponsorForm()

    context: dict[str, object] = {
        "form": form,
        "form_mode": "create",
        "page_title": "Add New Sponsor",
        "submit_label": "Create Sponsor",
    }
    return render(request, "pages/sponsors/form.html", context)


@staff_member_required
@require_http_methods(["GET", "POST"])
def sponsor_edit_view(request: HttpRequest, sponsor_id: int) -> HttpResponse:
    sponsor = get_object_or_404(Sponsor, pk=sponsor_id)

    if request.method == "POST":
        form = SponsorForm(request.POST, request.FILES, instance=sponsor)
        if form.is_valid():
            try:
                saved_sponsor = save_sponsor_form(form)
            except Exception:
                logger.exception("Error updating sponsor id=%s", sponsor_id)
                messages.error(request, "Error updating sponsor")
            else:
                messages.success(request, "Sponsor updated successfully!")
                _vprint(request, f"Updated sponsor id={saved_sponsor.pk}")
                return redirect(reverse("sponsors:detail", kwargs={"sponsor_id": saved_sponsor.pk}))
        else:
            messages.error(request, "Please fix the highlighted fields.")
            _vprint(request, f"Sponsor edit failed for id={sponsor_id} due to form validation errors")
    else:
        form = SponsorForm(instance=sponsor)

    context: dict[str, object] = {
        "form": form,
        "form_mode": "edit",
        "sponsor": sponsor,
        "page_title": "Edit Sponsor",
        "submit_label": "Save Changes",
        "current_logo_url": sponsor.logo_url,
    }
    return render(request, "pages/sponsors/form.html", context)


@staff_member_required
@require_http_methods(["GET", "POST"])
def sponsor_delete_view(request: HttpRequest, sponsor_id: int) -> HttpResponse:
    sponsor = Sponsor.objects.filter(pk=sponsor_id).first()
    if sponsor is None:
        messages.error(request, "Error deleting sponsor")
        return redirect(reverse("sponsors:list"))

    if request.method == "POST":
        sponsor_name = sponsor.name
        sponsor.delete()
        messages.success(request, "Sponsor deleted successfully")
        _vprint(request, f"Deleted sponsor id={sponsor_id}; name={sponsor_name!r}")
        return redirect(reverse("sponsors:list"))

    context: dict[str, object] = {
        "object_label": "sponsor",
        "object_title": sponsor.name,
        "confirm_url": reverse("sponsors:delete", kwargs={"sponsor_id": sponsor_id}),
        "cancel_url": reverse("sponsors:list"),
    }
    return render(request, "pages/confirm_delete.html", context)
