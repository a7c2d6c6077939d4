from __future__ import annotations

from django.urls import path

from . import views

app_name = "sponsors"

urlpatterns = [
    path("", views.sponsor_list_view, name="list"),
    path("create/", views.sponsor_create_view, name="create"),
    path("<int:sponsor_id>/", views.sponsor_detail_view, name="detail"),
    path("<int:sponsor_id>/edit/", views.sponsor_edit_view, name="edit"),
    path("<int:sponsor_id>/delete/", views.sponsor_delete_view, name="delete"),
]
