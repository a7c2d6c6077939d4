from __future__ import annotations

import logging
from datetime import timedelta
from typing import Final

from django.contrib import messages
from django.contrib.admin.views.decorators import staff_member_required
from django.core.files.uploadedfile import UploadedFile
from django.http import HttpRequest, HttpResponse
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import reverse
from django.utils import timezone
from django.views.decorators.http import require_http_methods

from media.bridge import EVENT_THUMBNAIL_CATEGORY, get_upload_bridge

from .forms import EventForm
from .models import Event, build_event_list_payload

logger = logging.getLogger(__name__)

VERBOSE_FLAGS: Final[set[str]] = {"1", "true", "yes", "on"}
THUMBNAIL_UPLOAD_ERROR: Final[str] = "Error uploading thumbnail"


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
        print(f"[events][verbose] {message}", flush=True)


def upload_event_thumbnail(uploaded_file: UploadedFile) -> str:
    return get_upload_bridge(EVENT_THUMBNAIL_CATEGORY).upload_sync(uploaded_file)


def _save_event_form(request: HttpRequest, form: EventForm) -> Event | None:
    """
    Upload the optional thumbnail first, then persist the whole record.

    Returns None when the media host rejected the thumbnail; nothing is saved then.
    """

    event = form.save(commit=False)
    uploaded_file = form.cleaned_data.get("thumbnail_file")
    if uploaded_file:
        try:
            event.thumbnail = upload_event_thumbnail(uploaded_file)
        except Exception:
            logger.exception("Thumbnail upload failed for event title=%r", event.title)
            form.add_error("thumbnail_file", THUMBNAIL_UPLOAD_ERROR)
            messages.error(request, THUMBNAIL_UPLOAD_ERROR)
            return None

    event.save()
    return event


@staff_member_required
@require_http_methods(["GET"])
def event_list_view(request: HttpRequest) -> HttpResponse:
    payload = build_event_list_payload(request.GET.get("q", ""))
    _vprint(
        request,
        "Event list query={query!r}; total={total}; filtered={filtered}".format(
            query=payload["query"],
            total=payload["total_count"],
            filtered=payload["filtered_count"],
        ),
    )

    context: dict[str, object] = {
        "events": payload["events"],
        "event_query": payload["query"],
        "event_total_count": payload["total_count"],
        "event_filtered_count": payload["filtered_count"],
    }
    return render(request, "pages/events/list.html", context)


@staff_member_required
@require_http_methods(["GET"])
def event_detail_view(request: HttpRequest, event_id: int) -> HttpResponse:
    event = get_object_or_404(Event, pk=event_id)
    _vprint(request, f"Rendering event detail id={event_id}; status={event.status}")
    return render(request, "pages/events/detail.html", {"event": event})


@staff_member_required
@require_http_methods(["GET", "POST"])
def event_create_view(request: HttpRequest) -> HttpResponse:
    if request.method == "POST":
        form = EventForm(request.POST, request.FILES)
        if form.is_valid():
            event = _save_event_form(request, form)
            if event is not None:
                messages.success(request, "Event created successfully!")
                _vprint(request, f"Created event id={event.pk}; thumbnail={event.thumbnail or 'default'}")
                return redirect(reverse("events:list"))
        else:
            messages.error(request, "Please fix the highlighted fields.")
            _vprint(request, "Event create failed due to form validation errors")
    else:
        suggested_start = timezone.localtime(timezone.now() + timedelta(days=14)).replace(
            minute=0,
            second=0,
            microsecond=0,
        )
        form = EventForm(
            initial={
                "start_datetime": suggested_start,
                "end_datetime": suggested_start + timedelta(hours=2),
                "status": Event.Status.DRAFT,
            }
        )

    context: dict[str, object] = {
        "form": form,
        "form_mode": "create",
        "page_title": "Add New Event",
        "submit_label": "Create Event",
        "form_timezone_label": timezone.get_current_timezone_name(),
    }
    return render(request, "pages/events/form.html", context)


@staff_member_required
@require_http_methods(["GET", "POST"])
def event_edit_view(request: HttpRequest, event_id: int) -> HttpResponse:
    event = get_object_or_404(Event, pk=event_id)

    if request.method == "POST":
        form = EventForm(request.POST, request.FILES, instance=event)
        if form.is_valid():
            saved_event = _save_event_form(request, form)
            if saved_event is not None:
                messages.success(request, "Event updated successfully!")
                _vprint(request, f"Updated event id={saved_event.pk}")
                return redirect(reverse("events:detail", kwargs={"event_id": saved_event.pk}))
        else:
            messages.error(request, "Please fix the highlighted fields.")
            _vprint(request, f"Event edit failed for id={event_id} due to form validation errors")
    else:
        form = EventForm(instance=event)

    context: dict[str, object] = {
        "form": form,
        "form_mode": "edit",
        "event": event,
        "page_title": "Edit Event",
        "submit_label": "Save Changes",
        "form_timezone_label": timezone.get_current_timezone_name(),
        "current_thumbnail_url": event.thumbnail_url,
    }
    return render(request, "pages/events/form.html", context)


@staff_member_required
@require_http_methods(["GET", "POST"])
def event_delete_view(request: HttpRequest, event_id: int) -> HttpResponse:
    event = Event.objects.filter(pk=event_id).first()
    if event is None:
        messages.error(request, "Error deleting event")
        _vprint(request, f"Delete requested for missing event id={event_id}")
        return redirect(reverse("events:list"))

    if request.method == "POST":
        event_title = event.title
        event.delete()
        messages.success(request, "Event deleted successfully")
        _vprint(request, f"Deleted event id={event_id}; title={event_title!r}")
        return redirect(reverse("events:list"))

    context: dict[str, object] = {
        "object_label": "event",
        "object_title": event.title,
        "confirm_url": reverse("events:delete", kwargs={"event_id": event_id}),
        "cancel_url": reverse("events:list"),
    }
    return render(request, "pages/confirm_delete.html", context)
