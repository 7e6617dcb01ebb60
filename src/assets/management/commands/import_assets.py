"""Management command to import assets from a CSV file.

The file needs a ``title`` column; ``description`` and ``location`` are
optional. Locations that do not exist yet are created.
"""

import csv

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from accounts.models import CustomUser, Organization
from assets.models import Asset
from assets.services.locations import create_locations_if_not_exists
from stockroom.errors import AppError


class Command(BaseCommand):
    help = "Import assets from a CSV file into an organization"

    def add_arguments(self, parser):
        parser.add_argument("csv_file", help="Path to the CSV file.")
        parser.add_argument(
            "--organization",
            type=int,
            required=True,
            help="Primary key of the target organization.",
        )
        parser.add_argument(
            "--user",
            required=True,
            help="Username recorded as creator of the assets.",
        )

    def handle(self, *args, **options):
        try:
            organization = Organization.objects.get(
                pk=options["organization"]
            )
        except Organization.DoesNotExist as exc:
            raise CommandError("Organization not found.") from exc
        try:
            user = CustomUser.objects.get(username=options["user"])
        except CustomUser.DoesNotExist as exc:
            raise CommandError("User not found.") from exc

        try:
            with open(options["csv_file"], newline="", encoding="utf-8") as fh:
                rows = list(csv.DictReader(fh))
        except OSError as exc:
            raise CommandError(f"Cannot read CSV file: {exc}") from exc

        if not rows:
            self.stdout.write(self.style.WARNING("No rows to import."))
            return
        if any(not (row.get("title") or "").strip() for row in rows):
            raise CommandError("Every row needs a title.")

        try:
            with transaction.atomic():
                location_ids = create_locations_if_not_exists(
                    rows, user, organization
                )
                assets = [
                    Asset(
                        title=row["title"].strip(),
                        description=(row.get("description") or "").strip(),
                        location_id=location_ids.get(row.get("location")),
                        organization=organization,
                        created_by=user,
                    )
                    for row in rows
                ]
                Asset.objects.bulk_create(assets)
        except AppError as exc:
            raise CommandError(exc.message) from exc

        self.stdout.write(
            self.style.SUCCESS(
                f"Imported {len(assets)} asset(s) with "
                f"{len(location_ids)} location(s)."
            )
        )
