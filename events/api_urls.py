from __future__ import annotations

from django.urls import path

from . import api

app_name = "events-api"

urlpatterns = [
    path("admin/events", api.admin_event_collection_api, name="admin-collection"),
    path("events", api.event_collection_api, name="collection"),
    path("events/<int:event_id>", api.event_item_api, name="item"),
]
