from __future__ import annotations

import json
from typing import Any, cast

from django.forms import BaseForm
from django.http import HttpRequest


def form_errors_payload(form: BaseForm) -> dict[str, list[str]]:
    return {field_name: [str(message) for message in messages] for field_name, messages in form.errors.items()}


def parse_json_object(request: HttpRequest) -> dict[str, Any] | None:
    try:
        parsed = json.loads(request.body or b"{}")
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    if not isinstance(parsed, dict):
        return None
    return cast(dict[str, Any], parsed)
