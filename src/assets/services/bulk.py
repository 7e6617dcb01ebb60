"""Bulk operations service for assets."""

import logging

from django.db import transaction as db_transaction
from django.utils import timezone

from stockroom.errors import AppError

from ..models import Asset, Location, Note

logger = logging.getLogger(__name__)

# Stands in for "every row matching the current filters". When present
# it wins over any explicit ids sent alongside it.
ALL_SELECTED_KEY = "all-selected"


def parse_ids(values) -> list[int]:
    """Return the integer ids in ``values``, skipping anything else."""
    ids = []
    for value in values:
        try:
            ids.append(int(value))
        except (TypeError, ValueError):
            continue
    return ids


def _describe_location(location):
    return f"**{location.name}**" if location is not None else "no location"


def build_bulk_queryset(asset_ids, organization, search=None):
    """Build the queryset a bulk action applies to.

    With :data:`ALL_SELECTED_KEY` the current ``search`` filter selects
    the assets; otherwise the explicit ``asset_ids`` do. Both are
    limited to ``organization``.
    """
    queryset = Asset.objects.filter(organization=organization)
    if ALL_SELECTED_KEY in asset_ids:
        if search:
            queryset = queryset.filter(title__icontains=search)
        return queryset
    return queryset.filter(pk__in=parse_ids(asset_ids))


def bulk_update_location(
    asset_ids, location_id, organization, user, search=None
) -> int:
    """Move the selected assets to a location.

    An empty ``location_id`` removes the assets from their location.
    Assets already at the target are left alone. Every moved asset
    gets an UPDATE note on its timeline.

    Returns the number of assets moved.
    """
    location = None
    if location_id:
        try:
            location = Location.objects.get(
                pk=location_id, organization=organization
            )
        except (Location.DoesNotExist, ValueError, TypeError) as cause:
            raise AppError(
                "The location you are trying to use does not exist.",
                cause=cause,
                title="Location not found",
                label="Bulk",
                status=404,
                should_be_captured=False,
                additional_data={
                    "locationId": location_id,
                    "organizationId": organization.pk,
                },
            ) from cause

    queryset = build_bulk_queryset(asset_ids, organization, search=search)
    if location is None:
        queryset = queryset.exclude(location__isnull=True)
    else:
        queryset = queryset.exclude(location=location)

    assets = list(queryset.select_related("location"))
    if not assets:
        return 0

    actor = user.get_display_name()
    notes = [
        Note(
            asset=asset,
            user=user,
            type=Note.TYPE_UPDATE,
            content=(
                f"**{actor}** updated the location of **{asset.title}** "
                f"from {_describe_location(asset.location)} "
                f"to {_describe_location(location)}."
            ),
        )
        for asset in assets
    ]

    with db_transaction.atomic():
        Note.objects.bulk_create(notes)
        Asset.objects.filter(pk__in=[a.pk for a in assets]).update(
            location=location, updated_at=timezone.now()
        )

    logger.info(
        "User %s moved %d assets to location %s",
        user.pk,
        len(assets),
        location.pk if location else None,
    )
    return len(assets)
