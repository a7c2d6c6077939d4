from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Final, TypedDict

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.urls import reverse
from django.utils import timezone

from lutonai.listing import filter_records, normalize_search_query
from lutonai.storage_urls import resolve_reference_url

DEFAULT_EVENT_THUMBNAIL_URL: Final[str] = "/static/events/default-event.svg"
EVENT_SEARCH_FIELDS: Final[tuple[str, ...]] = ("title", "description")
STATUS_BADGE_CLASSES: Final[dict[str, str]] = {
    "PUBLISHED": "badge-published",
    "DRAFT": "badge-draft",
    "CANCELLED": "badge-cancelled",
}


class EventData(TypedDict):
    id: int
    title: str
    description: str
    start_datetime: str
    end_datetime: str
    event_type: str
    venue: str
    address: str
    city: str
    country: str
    organizers: str
    contact_email: str
    contact_phone: str
    capacity: int | None
    price: str | None
    registration_deadline: str | None
    thumbnail: str
    status: str
    created_at: str
    updated_at: str


class EventCardData(TypedDict):
    id: int
    title: str
    description: str
    event_type: str
    venue: str
    capacity: int | None
    status: str
    status_label: str
    status_badge_class: str
    starts_at: datetime
    thumbnail_url: str
    detail_url: str
    edit_url: str
    delete_url: str


class EventListPayload(TypedDict):
    events: list[EventCardData]
    query: str
    total_count: int
    filtered_count: int


class Event(models.Model):
    """
    Community event managed by staff from the admin pages and the JSON API.

    Rows are always written as whole records; `thumbnail` holds the media host reference.
    """

    class Status(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        PUBLISHED = "PUBLISHED", "Published"
        CANCELLED = "CANCELLED", "Cancelled"

    title = models.CharField(max_length=180)
    description = models.TextField()
    start_datetime = models.DateTimeField(db_index=True)
    end_datetime = models.DateTimeField()
    event_type = models.CharField(max_length=60)
    venue = models.CharField(max_length=160, blank=True)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=120, blank=True)
    country = models.CharField(max_length=120, blank=True)
    organizers = models.CharField(max_length=255, blank=True)
    contact_email = models.EmailField(blank=True)
    contact_phone = models.CharField(max_length=40, blank=True)
    capacity = models.PositiveIntegerField(blank=True, null=True, validators=[MinValueValidator(1)])
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        blank=True,
        null=True,
        validators=[MinValueValidator(Decimal("0"))],
    )
    registration_deadline = models.DateTimeField(blank=True, null=True)
    thumbnail = models.URLField(max_length=500, blank=True)
    status = models.CharField(max_length=12, choices=Status.choices, default=Status.DRAFT, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at", "-id")
        indexes = [
            models.Index(fields=["status", "start_datetime"], name="event_status_start_idx"),
        ]

    def __str__(self) -> str:
        return f"Event #{self.pk or 'new'}: {self.title}"

    def clean(self) -> None:
        super().clean()
        errors: dict[str, str] = {}
        if self.start_datetime and self.end_datetime and self.end_datetime < self.start_datetime:
            errors["end_datetime"] = "End time must be after the start time."
        if (
            self.start_datetime
            and self.registration_deadline
            and self.registration_deadline > self.start_datetime
        ):
            errors["registration_deadline"] = "Registration must close before the event starts."
        if errors:
            raise ValidationError(errors)

    def get_absolute_url(self) -> str:
        return reverse("events:detail", kwargs={"event_id": self.pk})

    @property
    def thumbnail_url(self) -> str:
        return resolve_reference_url(self.thumbnail, fallback=DEFAULT_EVENT_THUMBNAIL_URL)

    def to_event_data(self) -> EventData:
        return {
            "id": int(self.pk or 0),
            "title": self.title,
            "description": self.description,
            "start_datetime": _isoformat(self.start_datetime) or "",
            "end_datetime": _isoformat(self.end_datetime) or "",
            "event_type": self.event_type,
            "venue": self.venue,
            "address": self.address,
            "city": self.city,
            "country": self.country,
            "organizers": self.organizers,
            "contact_email": self.contact_email,
            "contact_phone": self.contact_phone,
            "capacity": self.capacity,
            "price": (None if self.price is None else str(self.price)),
            "registration_deadline": _isoformat(self.registration_deadline),
            "thumbnail": self.thumbnail,
            "status": self.status,
            "created_at": _isoformat(self.created_at) or "",
            "updated_at": _isoformat(self.updated_at) or "",
        }

    def to_card_data(self) -> EventCardData:
        return {
            "id": int(self.pk or 0),
            "title": self.title,
            "description": self.description,
            "event_type": self.event_type,
            "venue": self.venue,
            "capacity": self.capacity,
            "status": self.status,
            "status_label": self.get_status_display(),
            "status_badge_class": STATUS_BADGE_CLASSES.get(self.status, "badge-cancelled"),
            "starts_at": self.start_datetime,
            "thumbnail_url": self.thumbnail_url,
            "detail_url": self.get_absolute_url(),
            "edit_url": reverse("events:edit", kwargs={"event_id": self.pk}),
            "delete_url": reverse("events:delete", kwargs={"event_id": self.pk}),
        }


def _isoformat(value: datetime | None) -> str | None:
    if value is None:
        return None
    if timezone.is_aware(value):
        value = timezone.localtime(value)
    return value.isoformat()


def filter_events(events: list[EventCardData], query: object) -> list[EventCardData]:
    return filter_records(events, query, EVENT_SEARCH_FIELDS)


def build_event_list_payload(raw_query: object = "") -> EventListPayload:
    query = normalize_search_query(raw_query)
    events = [event.to_card_data() for event in Event.objects.all()]
    filtered = filter_events(events, query)
    return {
        "events": filtered,
        "query": query,
        "total_count": len(events),
        "filtered_count": len(filtered),
    }


def list_event_data(raw_query: object = "") -> list[EventData]:
    query = normalize_search_query(raw_query)
    rows = [event.to_event_data() for event in Event.objects.all()]
    return filter_records(rows, query, EVENT_SEARCH_FIELDS)
