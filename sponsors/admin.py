from typing import TYPE_CHECKING

from django.contrib import admin

from .models import Sponsor

if TYPE_CHECKING:
    _BaseSponsorAdmin = admin.ModelAdmin[Sponsor]
else:
    _BaseSponsorAdmin = admin.ModelAdmin


@admin.register(Sponsor)
class SponsorAdmin(_BaseSponsorAdmin):
    list_display = (
        "id",
        "name",
        "sponsorship_level",
        "email",
        "website",
        "updated_at",
    )
    list_filter = ("sponsorship_level", "created_at")
    search_fields = ("name", "description", "email", "website")
    readonly_fields = ("created_at", "updated_at")
    ordering = ("-created_at", "-id")
