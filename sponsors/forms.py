from __future__ import annotations

from typing import Any, cast

from django import forms
from django.core.files.uploadedfile import UploadedFile

from media.validators import image_accept_attr, validate_image_upload

from .models import SPONSOR_DESCRIPTION_MAX_LENGTH, SPONSOR_NAME_MAX_LENGTH, Sponsor


def _add_input_css_classes(form: forms.BaseForm) -> None:
    for field in form.fields.values():
        input_type = str(getattr(field.widget, "input_type", "") or "").strip().lower()
        if input_type in {"checkbox", "radio"}:
            continue
        existing = str(field.widget.attrs.get("class", "")).strip()
        merged = f"{existing} form-input".strip()
        field.widget.attrs["class"] = merged


class SponsorForm(forms.ModelForm):
    logo_file = forms.FileField(required=False, label="Logo")

    class Meta:
        model = Sponsor
        fields = (
            "name",
            "description",
            "email",
            "phone",
            "website",
            "sponsorship_level",
        )
        labels = {
            "phone": "Phone (Optional)",
            "website": "Website (Optional)",
        }
        widgets: dict[str, forms.Widget] = cast(
            dict[str, forms.Widget],
            {
                "name": forms.TextInput(attrs={"placeholder": "Enter sponsor name"}),
                "description": forms.Textarea(attrs={"rows": 5, "placeholder": "Enter sponsor description"}),
                "email": forms.EmailInput(attrs={"placeholder": "Enter contact email"}),
                "phone": forms.TextInput(attrs={"placeholder": "Enter contact phone"}),
                "website": forms.TextInput(attrs={"placeholder": "Enter website URL"}),
            },
        )
        error_messages = {
            "name": {
                "required": "Name is required",
                "max_length": f"Name cannot exceed {SPONSOR_NAME_MAX_LENGTH} characters",
            },
            "description": {
                "required": "Description is required",
                "max_length": f"Description cannot exceed {SPONSOR_DESCRIPTION_MAX_LENGTH} characters",
            },
            "email": {
                "required": "Email is required",
                "invalid": "Invalid email address",
            },
            "sponsorship_level": {
                "required": "Sponsorship level is required",
                "invalid_choice": "Sponsorship level is required",
            },
        }

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        _add_input_css_classes(self)

        level_field = cast(forms.ChoiceField, self.fields["sponsorship_level"])
        level_field.choices = [("", "Select sponsorship level"), *Sponsor.Level.choices]

        logo_field = self.fields["logo_file"]
        logo_field.widget.attrs["accept"] = image_accept_attr()
        if self.is_editing:
            logo_field.help_text = "Optional. Leave empty to keep the current logo."

    @property
    def is_editing(self) -> bool:
        return bool(getattr(self.instance, "pk", None))

    def clean_name(self) -> str:
        name = str(self.cleaned_data.get("name", "")).strip()
        if not name:
            raise forms.ValidationError("Name is required")
        return name

    def clean_description(self) -> str:
        description = str(self.cleaned_data.get("description", "")).strip()
        if not description:
            raise forms.ValidationError("Description is required")
        return description

    def clean_phone(self) -> str:
        return str(self.cleaned_data.get("phone", "") or "").strip()

    def clean_website(self) -> str:
        return str(self.cleaned_data.get("website", "") or "").strip()

    def clean_logo_file(self) -> UploadedFile | None:
        uploaded_file = self.cleaned_data.get("logo_file")
        if not uploaded_file:
            if self.is_editing:
                return None
            raise forms.ValidationError("Logo is required", code="required")
        return validate_image_upload(uploaded_file, label="Logo")
