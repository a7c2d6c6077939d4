from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from django.core.management.base import BaseCommand, CommandParser

from sponsors.models import Sponsor


@dataclass(frozen=True)
class SponsorSeed:
    name: str
    description: str
    email: str
    website: str
    sponsorship_level: str


DEMO_SPONSOR_SEEDS: tuple[SponsorSeed, ...] = (
    SponsorSeed(
        name="Chiltern Cloud",
        description="Regional hosting provider backing the community GPU credits programme.",
        email="partners@chilterncloud.example",
        website="https://chilterncloud.example",
        sponsorship_level=Sponsor.Level.PLATINUM,
    ),
    SponsorSeed(
        name="Bedfordshire Data Lab",
        description="Applied analytics consultancy sponsoring the monthly meetup venue.",
        email="hello@bedsdatalab.example",
        website="https://bedsdatalab.example",
        sponsorship_level=Sponsor.Level.GOLD,
    ),
    SponsorSeed(
        name="Hatters Robotics Club",
        description="Student robotics society and long-running community partner.",
        email="team@hattersrobotics.example",
        website="",
        sponsorship_level=Sponsor.Level.PARTNER,
    ),
)


class Command(BaseCommand):
    help = "Create or refresh demo sponsor rows with placeholder logo references."

    def add_arguments(self, parser: CommandParser) -> None:
        parser.add_argument(
            "--logo-base-url",
            default="https://placehold.co/240x120/png",
            help="Absolute URL used to build placeholder logo references.",
        )
        parser.add_argument(
            "--verbose",
            action="store_true",
            help="Print detailed progress lines for each seeded sponsor.",
        )

    def _vprint(self, verbose_enabled: bool, message: str) -> None:
        if verbose_enabled:
            self.stdout.write(f"[sponsors][verbose] {message}")

    def handle(self, *args, **options):  # type: ignore[no-untyped-def]
        verbose_enabled = bool(options.get("verbose"))
        logo_base_url = str(options.get("logo_base_url") or "").rstrip("/")

        self.stdout.write("Bootstrapping demo sponsors...")

        created_count = 0
        updated_count = 0
        for seed in DEMO_SPONSOR_SEEDS:
            sponsor, created = Sponsor.objects.update_or_create(
                name=seed.name,
                defaults={
                    "description": seed.description,
                    "email": seed.email,
                    "website": seed.website,
                    "sponsorship_level": seed.sponsorship_level,
                    "logo": f"{logo_base_url}?text={quote(seed.name)}",
                },
            )
            if created:
                created_count += 1
            else:
                updated_count += 1
            self._vprint(
                verbose_enabled,
                f"{'Created' if created else 'Updated'} sponsor id={sponsor.pk}; level={sponsor.sponsorship_level}",
            )

        self.stdout.write(
            self.style.SUCCESS(
                f"Sponsors ready: created={created_count}, updated={updated_count}, total={Sponsor.objects.count()}"
            )
        )
