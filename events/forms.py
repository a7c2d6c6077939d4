from __future__ import annotations

from typing import Any, cast

from django import forms
from django.core.files.uploadedfile import UploadedFile
from django.utils import timezone

from media.validators import image_accept_attr, validate_image_upload

from .models import Event

DATETIME_FIELDS = ("start_datetime", "end_datetime", "registration_deadline")
DATETIME_LOCAL_FORMAT = "%Y-%m-%dT%H:%M"


def _add_input_css_classes(form: forms.BaseForm) -> None:
    for field in form.fields.values():
        input_type = str(getattr(field.widget, "input_type", "") or "").strip().lower()
        if input_type in {"checkbox", "radio"}:
            continue
        existing = str(field.widget.attrs.get("class", "")).strip()
        merged = f"{existing} form-input".strip()
        field.widget.attrs["class"] = merged


class EventForm(forms.ModelForm):
    thumbnail_file = forms.FileField(
        required=False,
        label="Thumbnail",
        help_text="Optional. JPG or PNG under the upload size limit.",
    )

    class Meta:
        model = Event
        fields = (
            "title",
            "description",
            "start_datetime",
            "end_datetime",
            "event_type",
            "venue",
            "address",
            "city",
            "country",
            "organizers",
            "contact_email",
            "contact_phone",
            "capacity",
            "price",
            "registration_deadline",
            "status",
        )
        widgets: dict[str, forms.Widget] = cast(
            dict[str, forms.Widget],
            {
                "description": forms.Textarea(attrs={"rows": 6}),
                "start_datetime": forms.DateTimeInput(attrs={"type": "datetime-local"}, format=DATETIME_LOCAL_FORMAT),
                "end_datetime": forms.DateTimeInput(attrs={"type": "datetime-local"}, format=DATETIME_LOCAL_FORMAT),
                "registration_deadline": forms.DateTimeInput(
                    attrs={"type": "datetime-local"},
                    format=DATETIME_LOCAL_FORMAT,
                ),
            },
        )
        error_messages = {
            "title": {"required": "Title is required"},
            "description": {"required": "Description is required"},
            "start_datetime": {"required": "Start date and time are required"},
            "end_datetime": {"required": "End date and time are required"},
            "event_type": {"required": "Event type is required"},
            "contact_email": {"invalid": "Invalid email address"},
        }

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        _add_input_css_classes(self)
        self.fields["thumbnail_file"].widget.attrs["accept"] = image_accept_attr()

        for field_name in DATETIME_FIELDS:
            value = self.initial.get(field_name)
            if value and not isinstance(value, str):
                try:
                    self.initial[field_name] = timezone.localtime(value).strftime(DATETIME_LOCAL_FORMAT)
                except (TypeError, ValueError, OverflowError):
                    # Naive or odd values still render through the widget format.
                    pass

    def clean_title(self) -> str:
        title = str(self.cleaned_data.get("title", "")).strip()
        if not title:
            raise forms.ValidationError("Title is required")
        return title

    def clean_description(self) -> str:
        description = str(self.cleaned_data.get("description", "")).strip()
        if not description:
            raise forms.ValidationError("Description is required")
        return description

    def clean_event_type(self) -> str:
        event_type = str(self.cleaned_data.get("event_type", "")).strip()
        if not event_type:
            raise forms.ValidationError("Event type is required")
        return event_type

    def clean_thumbnail_file(self) -> UploadedFile | None:
        uploaded_file = self.cleaned_data.get("thumbnail_file")
        if not uploaded_file:
            return None
        return validate_image_upload(uploaded_file, label="Thumbnail")

    def save(self, commit: bool = True) -> Event:  # type: ignore[override]
        event = super().save(commit=False)
        for field_name in ("venue", "address", "city", "country", "organizers", "contact_email", "contact_phone"):
            setattr(event, field_name, str(getattr(event, field_name, "") or "").strip())

        if commit:
            event.save()
        return event
