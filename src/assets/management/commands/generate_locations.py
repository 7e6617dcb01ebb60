"""Management command to seed an organization with pictured locations."""

from django.core.files import File
from django.core.management.base import BaseCommand, CommandError

from accounts.models import CustomUser, Organization
from assets.services.locations import generate_location_with_images
from stockroom.errors import AppError


class Command(BaseCommand):
    help = "Generate test locations that all share one image"

    def add_arguments(self, parser):
        parser.add_argument("image", help="Path to the image to attach.")
        parser.add_argument(
            "--organization",
            type=int,
            required=True,
            help="Primary key of the target organization.",
        )
        parser.add_argument(
            "--user",
            required=True,
            help="Username recorded as creator of the locations.",
        )
        parser.add_argument(
            "--count",
            type=int,
            default=10,
            help="Number of locations to create (default 10).",
        )

    def handle(self, *args, **options):
        if options["count"] < 1:
            raise CommandError("--count must be at least 1.")
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
            with open(options["image"], "rb") as fh:
                locations = generate_location_with_images(
                    organization, options["count"], File(fh), user
                )
        except OSError as exc:
            raise CommandError(f"Cannot read image: {exc}") from exc
        except AppError as exc:
            raise CommandError(exc.message) from exc

        self.stdout.write(
            self.style.SUCCESS(f"Created {len(locations)} location(s).")
        )
