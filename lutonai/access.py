from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import Any

from django.http import HttpRequest, HttpResponse, JsonResponse

ViewFn = Callable[..., HttpResponse]


def is_active_staff(user: object) -> bool:
    return bool(getattr(user, "is_active", False)) and bool(getattr(user, "is_staff", False))


def staff_api_required(view_fn: ViewFn) -> ViewFn:
    """
    JSON counterpart of `staff_member_required`: API clients get a 403 body instead of a login redirect.
    """

    @wraps(view_fn)
    def _wrapped(request: HttpRequest, *args: Any, **kwargs: Any) -> HttpResponse:
        if not is_active_staff(request.user):
            return JsonResponse({"error": "Staff access required."}, status=403)
        return view_fn(request, *args, **kwargs)

    return _wrapped
