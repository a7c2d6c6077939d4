from __future__ import annotations

import logging

from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.http import require_http_methods

from lutonai.access import staff_api_required
from lutonai.api import form_errors_payload, parse_json_object
from lutonai.storage_urls import is_absolute_web_url

from .forms import EventForm
from .models import Event, list_event_data
from .views import upload_event_thumbnail

logger = logging.getLogger(__name__)


@staff_api_required
@require_http_methods(["GET"])
def admin_event_collection_api(request: HttpRequest) -> JsonResponse:
    return JsonResponse(list_event_data(request.GET.get("q", "")), safe=False)


@staff_api_required
@require_http_methods(["GET", "POST"])
def event_collection_api(request: HttpRequest) -> JsonResponse:
    if request.method == "GET":
        return JsonResponse(list_event_data(request.GET.get("q", "")), safe=False)

    form = EventForm(request.POST, request.FILES)
    if not form.is_valid():
        return JsonResponse({"errors": form_errors_payload(form)}, status=400)

    event = form.save(commit=False)
    uploaded_file = form.cleaned_data.get("thumbnail_file")
    if uploaded_file:
        try:
            event.thumbnail = upload_event_thumbnail(uploaded_file)
        except Exception as exc:
            logger.exception("Thumbnail upload failed for API event title=%r", event.title)
            return JsonResponse({"error": "Failed to upload thumbnail", "detail": str(exc)}, status=502)

    event.save()
    return JsonResponse(event.to_event_data(), status=201)


@staff_api_required
@require_http_methods(["GET", "PUT", "DELETE"])
def event_item_api(request: HttpRequest, event_id: int) -> HttpResponse:
    event = Event.objects.filter(pk=event_id).first()
    if event is None:
        return JsonResponse({"error": "Event not found"}, status=404)

    if request.method == "GET":
        return JsonResponse(event.to_event_data())

    if request.method == "DELETE":
        event.delete()
        logger.info("Deleted event id=%s via API", event_id)
        return HttpResponse(status=204)

    body = parse_json_object(request)
    if body is None:
        return JsonResponse({"error": "Request body must be a JSON object"}, status=400)

    form = EventForm(data=body, instance=event)
    if not form.is_valid():
        return JsonResponse({"errors": form_errors_payload(form)}, status=400)

    thumbnail = str(body.get("thumbnail", "") or "").strip()
    if thumbnail and not is_absolute_web_url(thumbnail):
        return JsonResponse({"errors": {"thumbnail": ["Enter a valid absolute URL."]}}, status=400)

    replaced = form.save(commit=False)
    replaced.thumbnail = thumbnail
    replaced.save()
    return JsonResponse(replaced.to_event_data())
