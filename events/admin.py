from typing import TYPE_CHECKING

from django.contrib import admin

from .models import Event

if TYPE_CHECKING:
    _BaseEventAdmin = admin.ModelAdmin[Event]
else:
    _BaseEventAdmin = admin.ModelAdmin


@admin.register(Event)
class EventAdmin(_BaseEventAdmin):
    list_display = (
        "id",
        "title",
        "event_type",
        "status",
        "start_datetime",
        "city",
        "capacity",
        "updated_at",
    )
    list_filter = ("status", "event_type", "start_datetime")
    search_fields = ("title", "description", "venue", "city", "organizers")
    readonly_fields = ("created_at", "updated_at")
    ordering = ("-created_at", "-id")
