from __future__ import annotations

import logging

from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.http import require_http_methods

from lutonai.access import staff_api_required
from lutonai.api import form_errors_payload

from .forms import SponsorForm
from .models import Sponsor, list_sponsor_data
from .views import save_sponsor_form

logger = logging.getLogger(__name__)


@staff_api_required
@require_http_methods(["GET", "POST"])
def sponsor_collection_api(request: HttpRequest) -> JsonResponse:
    if request.method == "GET":
        return JsonResponse(list_sponsor_data(request.GET.get("q", "")), safe=False)

    form = SponsorForm(request.POST, request.FILES)
    if not form.is_valid():
        return JsonResponse({"errors": form_errors_payload(form)}, status=400)

    try:
        sponsor = save_sponsor_form(form)
    except Exception as exc:
        logger.exception("Logo upload failed for API sponsor name=%r", form.cleaned_data.get("name"))
        return JsonResponse({"error": "Failed to create sponsor", "detail": str(exc)}, status=502)

    return JsonResponse(sponsor.to_sponsor_data(), status=201)


@staff_api_required
@require_http_methods(["GET", "DELETE"])
def sponsor_item_api(request: HttpRequest, sponsor_id: int) -> HttpResponse:
    sponsor = Sponsor.objects.filter(pk=sponsor_id).first()
    if sponsor is None:
        return JsonResponse({"error": "Sponsor not found"}, status=404)

    if request.method == "DELETE":
        sponsor.delete()
        logger.info("Deleted sponsor id=%s via API", sponsor_id)
        return HttpResponse(status=204)

    return JsonResponse(sponsor.to_sponsor_data())
