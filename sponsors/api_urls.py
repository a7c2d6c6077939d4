from __future__ import annotations

from django.urls import path

from . import api

app_name = "sponsors-api"

urlpatterns = [
    path("sponsors", api.sponsor_collection_api, name="collection"),
    path("sponsors/<int:sponsor_id>", api.sponsor_item_api, name="item"),
]
