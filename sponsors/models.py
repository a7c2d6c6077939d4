from __future__ import annotations

from typing import Final, TypedDict

from django.db import models
from django.urls import reverse
from django.utils import timezone

from lutonai.listing import filter_records, normalize_search_query
from lutonai.storage_urls import resolve_reference_url

SPONSOR_SEARCH_FIELDS: Final[tuple[str, ...]] = ("name", "description")
SPONSOR_NAME_MAX_LENGTH: Final[int] = 100
SPONSOR_DESCRIPTION_MAX_LENGTH: Final[int] = 1000


class SponsorData(TypedDict):
    id: int
    name: str
    description: str
    logo: str
    email: str
    phone: str
    website: str
    sponsorship_level: str
    created_at: str
    updated_at: str


class SponsorCardData(TypedDict):
    id: int
    name: str
    description: str
    logo_url: str
    email: str
    website: str
    sponsorship_level: str
    level_badge_class: str
    detail_url: str
    edit_url: str
    delete_url: str


class SponsorListPayload(TypedDict):
    sponsors: list[SponsorCardData]
    query: str
    total_count: int
    filtered_count: int


class Sponsor(models.Model):
    class Level(models.TextChoices):
        PLATINUM = "Platinum", "Platinum"
        GOLD = "Gold", "Gold"
        SILVER = "Silver", "Silver"
        BRONZE = "Bronze", "Bronze"
        PARTNER = "Partner", "Partner"

    name = models.CharField(max_length=SPONSOR_NAME_MAX_LENGTH)
    description = models.TextField(max_length=SPONSOR_DESCRIPTION_MAX_LENGTH)
    logo = models.URLField(max_length=500)
    email = models.EmailField()
    phone = models.CharField(max_length=40, blank=True)
    website = models.CharField(max_length=255, blank=True)
    sponsorship_level = models.CharField(max_length=12, choices=Level.choices, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at", "-id")

    def __str__(self) -> str:
        return f"Sponsor #{self.pk or 'new'}: {self.name}"

    def get_absolute_url(self) -> str:
        return reverse("sponsors:detail", kwargs={"sponsor_id": self.pk})

    @property
    def logo_url(self) -> str:
        return resolve_reference_url(self.logo)

    def to_sponsor_data(self) -> SponsorData:
        return {
            "id": int(self.pk or 0),
            "name": self.name,
            "description": self.description,
            "logo": self.logo,
            "email": self.email,
            "phone": self.phone,
            "website": self.website,
            "sponsorship_level": self.sponsorship_level,
            "created_at": timezone.localtime(self.created_at).isoformat() if self.created_at else "",
            "updated_at": timezone.localtime(self.updated_at).isoformat() if self.updated_at else "",
        }

    def to_card_data(self) -> SponsorCardData:
        return {
            "id": int(self.pk or 0),
            "name": self.name,
            "description": self.description,
            "logo_url": self.logo_url,
            "email": self.email,
            "website": self.website,
            "sponsorship_level": self.sponsorship_level,
            "level_badge_class": f"badge-level-{str(self.sponsorship_level or '').lower()}",
            "detail_url": self.get_absolute_url(),
            "edit_url": reverse("sponsors:edit", kwargs={"sponsor_id": self.pk}),
            "delete_url": reverse("sponsors:delete", kwargs={"sponsor_id": self.pk}),
        }


def filter_sponsors(sponsors: list[SponsorCardData], query: object) -> list[SponsorCardData]:
    return filter_records(sponsors, query, SPONSOR_SEARCH_FIELDS)


def build_sponsor_list_payload(raw_query: object = "") -> SponsorListPayload:
    query = normalize_search_query(raw_query)
    sponsors = [sponsor.to_card_data() for sponsor in Sponsor.objects.all()]
    filtered = filter_sponsors(sponsors, query)
    return {
        "sponsors": filtered,
        "query": query,
        "total_count": len(sponsors),
        "filtered_count": len(filtered),
    }


def list_sponsor_data(raw_query: object = "") -> list[SponsorData]:
    query = normalize_search_query(raw_query)
    rows = [sponsor.to_sponsor_data() for sponsor in Sponsor.objects.all()]
    return filter_records(rows, query, SPONSOR_SEARCH_FIELDS)
