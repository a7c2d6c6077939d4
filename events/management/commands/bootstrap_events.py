from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand, CommandParser
from django.utils import timezone

from events.models import Event


@dataclass(frozen=True)
class EventSeed:
    title: str
    description: str
    event_type: str
    venue: str
    city: str
    status: str
    starts_in_days: int
    duration_hours: int = 3
    capacity: int | None = None
    price: Decimal | None = None


DEMO_EVENT_SEEDS: tuple[EventSeed, ...] = (
    EventSeed(
        title="Intro to machine learning meetup",
        description="An evening of short talks on getting started with ML, followed by open networking.",
        event_type="Meetup",
        venue="University of Bedfordshire",
        city="Luton",
        status=Event.Status.PUBLISHED,
        starts_in_days=10,
        capacity=80,
        price=Decimal("0.00"),
    ),
    EventSeed(
        title="Prompt engineering workshop",
        description="Hands-on session building and evaluating prompts for real community projects.",
        event_type="Workshop",
        venue="Luton Central Library",
        city="Luton",
        status=Event.Status.DRAFT,
        starts_in_days=24,
        duration_hours=4,
        capacity=30,
        price=Decimal("15.00"),
    ),
    EventSeed(
        title="Community hack night",
        description="Bring a project or join a team. Mentors on hand for data and deployment questions.",
        event_type="Hackathon",
        venue="The Hat Factory",
        city="Luton",
        status=Event.Status.CANCELLED,
        starts_in_days=-5,
        duration_hours=6,
    ),
)


class Command(BaseCommand):
    help = "Create or refresh demo event rows used by the admin list and detail pages."

    def add_arguments(self, parser: CommandParser) -> None:
        parser.add_argument(
            "--verbose",
            action="store_true",
            help="Print detailed progress lines for each seeded event.",
        )

    def _vprint(self, verbose_enabled: bool, message: str) -> None:
        if verbose_enabled:
            self.stdout.write(f"[events][verbose] {message}")

    def handle(self, *args, **options):  # type: ignore[no-untyped-def]
        verbose_enabled = bool(options.get("verbose"))

        self.stdout.write("Bootstrapping demo events...")

        created_count = 0
        updated_count = 0
        now = timezone.localtime(timezone.now()).replace(minute=0, second=0, microsecond=0)

        for seed in DEMO_EVENT_SEEDS:
            starts_at = now + timedelta(days=seed.starts_in_days)
            event, created = Event.objects.update_or_create(
                title=seed.title,
                defaults={
                    "description": seed.description,
                    "event_type": seed.event_type,
                    "venue": seed.venue,
                    "city": seed.city,
                    "country": "United Kingdom",
                    "organizers": "Luton AI",
                    "status": seed.status,
                    "start_datetime": starts_at,
                    "end_datetime": starts_at + timedelta(hours=max(1, seed.duration_hours)),
                    "registration_deadline": starts_at - timedelta(days=1),
                    "capacity": seed.capacity,
                    "price": seed.price,
                },
            )
            if created:
                created_count += 1
            else:
                updated_count += 1
            self._vprint(
                verbose_enabled,
                f"{'Created' if created else 'Updated'} event id={event.pk}; title={event.title!r}; status={event.status}",
            )

        self.stdout.write(
            self.style.SUCCESS(
                f"Events ready: created={created_count}, updated={updated_count}, total={Event.objects.count()}"
            )
        )
