from __future__ import annotations

from django.urls import path

from . import views

app_name = "events"

urlpatterns = [
    path("", views.event_list_view, name="list"),
    path("create/", views.event_create_view, name="create"),
    path("<int:event_id>/", views.event_detail_view, name="detail"),
    path("<int:event_id>/edit/", views.event_edit_view, name="edit"),
    path("<int:event_id>/delete/", views.event_delete_view, name="delete"),
]
