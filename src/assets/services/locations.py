"""Location data service.

Every function is scoped to one organization. Records that live in
another organization are reported as not found so their existence does
not leak across the boundary.
"""

import logging
import uuid

from django.conf import settings
from django.core.files.base import ContentFile
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Count

from stockroom.errors import AppError, maybe_unique_constraint_violation

from ..models import Image, Location
from .bulk import ALL_SELECTED_KEY, parse_ids
from .images import jpeg_name, resize_image
from .pagination import page_bounds

logger = logging.getLogger(__name__)

LABEL = "Location"

NOT_FOUND_MESSAGE = (
    "The location you are trying to access does not exist or you do not "
    "have permission to access it."
)

# Fields the asset table inside a location may be sorted by
ASSET_ORDER_FIELDS = {"created_at", "updated_at", "title", "status"}


def _not_found(cause=None, additional_data=None):
    return AppError(
        NOT_FOUND_MESSAGE,
        cause=cause,
        title="Location not found",
        label=LABEL,
        status=404,
        should_be_captured=False,
        additional_data=additional_data,
    )


def _get_for_organization(id, organization):
    try:
        return Location.objects.select_related("image").get(
            pk=id, organization=organization
        )
    except (Location.DoesNotExist, ValueError, TypeError) as cause:
        raise _not_found(
            cause, {"id": id, "organizationId": organization.pk}
        ) from cause


def get_location(
    id,
    organization,
    page=1,
    per_page=8,
    search=None,
    order_by="created_at",
    order_direction="desc",
    user_organizations=None,
    request=None,
):
    """Fetch a location with one page of the assets it holds.

    ``user_organizations`` are the caller's memberships. When the
    location exists in one of the caller's *other* organizations a 404
    is raised whose ``additional_data`` names that organization and the
    URL to come back to after switching.

    Returns ``(location, assets_page, total_assets)`` where
    ``total_assets`` counts every asset at the location. The number
    matching ``search``, which drives pagination, is set on the location
    as ``matching_asset_count``.
    """
    skip, take = page_bounds(page, per_page)
    memberships = list(user_organizations or [])
    organization_ids = {organization.pk} | {
        m.organization_id for m in memberships
    }

    try:
        location = Location.objects.select_related(
            "image", "organization"
        ).get(pk=id, organization_id__in=organization_ids)
    except (Location.DoesNotExist, ValueError, TypeError) as cause:
        raise _not_found(
            cause, {"id": id, "organizationId": organization.pk}
        ) from cause

    if location.organization_id != organization.pk:
        membership = next(
            m
            for m in memberships
            if m.organization_id == location.organization_id
        )
        raise _not_found(
            additional_data={
                "id": id,
                "organizationId": organization.pk,
                "model": "location",
                "organization": {
                    "id": membership.organization_id,
                    "name": membership.organization.name,
                },
                "redirectTo": (
                    request.get_full_path() if request is not None else None
                ),
            }
        )

    if order_by not in ASSET_ORDER_FIELDS:
        order_by = "created_at"
    ordering = order_by if order_direction == "asc" else f"-{order_by}"

    total_assets = location.assets.count()
    assets = location.assets.select_related("category").prefetch_related(
        "tags"
    )
    if search:
        assets = assets.filter(title__icontains=search)
        location.matching_asset_count = assets.count()
    else:
        location.matching_asset_count = total_assets

    assets_page = list(assets.order_by(ordering, "-pk")[skip : skip + take])
    return location, assets_page, total_assets


def get_locations(organization, page=1, per_page=8, search=None):
    """Return ``(locations, total)`` for one page of the organization.

    Newest updates come first; ``search`` is a case-insensitive
    substring match on the name.
    """
    skip, take = page_bounds(page, per_page)
    try:
        queryset = Location.objects.filter(organization=organization)
        if search:
            queryset = queryset.filter(name__icontains=search)

        total = queryset.count()
        locations = list(
            queryset.select_related("image")
            .annotate(asset_count=Count("assets"))
            .order_by("-updated_at", "-pk")[skip : skip + take]
        )
    except DatabaseError as cause:
        raise AppError(
            "Something went wrong while fetching the locations",
            cause=cause,
            label=LABEL,
            additional_data={
                "organizationId": organization.pk,
                "page": page,
                "perPage": per_page,
                "search": search,
            },
        ) from cause
    return locations, total


def create_location(name, description, address, user, organization):
    """Create a location; duplicate names raise a 400 :class:`AppError`."""
    try:
        with transaction.atomic():
            location = Location.objects.create(
                name=name,
                description=description or "",
                address=address or "",
                created_by=user,
                organization=organization,
            )
    except IntegrityError as cause:
        raise maybe_unique_constraint_violation(
            cause,
            LABEL,
            additional_data={
                "userId": user.pk,
                "organizationId": organization.pk,
            },
        ) from cause

    logger.info(
        "Location %s created in organization %s", location.pk, organization.pk
    )
    return location


def update_location(
    id, organization, user, name=None, address=None, description=None
):
    """Update the given fields of a location; ``None`` leaves a field as is."""
    location = _get_for_organization(id, organization)

    if name is not None:
        location.name = name
    if address is not None:
        location.address = address
    if description is not None:
        location.description = description

    try:
        with transaction.atomic():
            location.save()
    except IntegrityError as cause:
        raise maybe_unique_constraint_violation(
            cause,
            LABEL,
            additional_data={
                "id": id,
                "userId": user.pk,
                "organizationId": organization.pk,
            },
        ) from cause
    return location


def delete_location(id, organization):
    """Delete a location and its image. Assets keep existing unplaced."""
    location = _get_for_organization(id, organization)
    image = location.image

    try:
        with transaction.atomic():
            location.delete()
            if image is not None:
                image.delete()
    except DatabaseError as cause:
        raise AppError(
            "Something went wrong while deleting the location",
            cause=cause,
            label=LABEL,
            additional_data={"id": id},
        ) from cause

    if image is not None:
        image.delete_files()

    logger.info("Location %s deleted", id)
    return location


def bulk_delete_locations(location_ids, organization) -> int:
    """Delete many locations of ``organization`` along with their images.

    When ``location_ids`` contains :data:`ALL_SELECTED_KEY` every
    location of the organization is deleted, whatever other ids were
    sent. Returns the number of locations deleted.
    """
    queryset = Location.objects.filter(organization=organization)
    if ALL_SELECTED_KEY not in location_ids:
        queryset = queryset.filter(pk__in=parse_ids(location_ids))

    try:
        rows = list(queryset.values_list("pk", "image_id"))
        ids = [pk for pk, _ in rows]
        image_ids = [image_id for _, image_id in rows if image_id]
        images = list(Image.objects.filter(pk__in=image_ids))

        with transaction.atomic():
            Location.objects.filter(pk__in=ids).delete()
            Image.objects.filter(pk__in=image_ids).delete()
    except DatabaseError as cause:
        raise AppError(
            "Something went wrong while bulk deleting locations.",
            cause=cause,
            label=LABEL,
            additional_data={
                "locationIds": list(location_ids),
                "organizationId": organization.pk,
            },
        ) from cause

    for image in images:
        image.delete_files()

    logger.info(
        "Bulk deleted %d locations in organization %s",
        len(ids),
        organization.pk,
    )
    return len(ids)


def create_locations_if_not_exists(data, user, organization) -> dict:
    """Resolve the ``location`` column of imported rows to location ids.

    Existing locations are matched case-insensitively; missing ones are
    created with the trimmed name. Returns ``{name: id}`` keyed by the
    name as it appears in ``data``, or ``{}`` when a row has no
    ``location`` key at all.
    """
    names = []
    for row in data:
        name = row.get("location")
        if name is None:
            return {}
        if name != "" and name not in names:
            names.append(name)

    result = {}
    try:
        for name in names:
            existing = Location.objects.filter(
                organization=organization, name__iexact=name.strip()
            ).first()
            if existing is None:
                with transaction.atomic():
                    existing = Location.objects.create(
                        name=name.strip(),
                        created_by=user,
                        organization=organization,
                    )
            result[name] = existing.pk
    except (DatabaseError, AttributeError) as cause:
        # Mostly malformed import data
        raise AppError(
            "Something went wrong while creating locations. Seems like "
            "some of the location data in your import file is invalid. "
            "Please check and try again.",
            cause=cause,
            label=LABEL,
            should_be_captured=False,
            additional_data={
                "userId": user.pk,
                "organizationId": organization.pk,
            },
        ) from cause
    return result


def update_location_image(organization, location, uploaded_file, user=None):
    """Replace the picture of ``location`` with ``uploaded_file``.

    The upload is shrunk to ``LOCATION_IMAGE_MAX_WIDTH`` without being
    enlarged and stored under ``<org>/locations/<id>/``. The thumbnail
    is generated by a Celery task. The previous image and its files
    are removed.
    """
    from ..tasks import generate_location_thumbnail

    if location.organization_id != organization.pk:
        raise _not_found(
            additional_data={
                "id": location.pk,
                "organizationId": organization.pk,
            }
        )

    max_width = getattr(settings, "LOCATION_IMAGE_MAX_WIDTH", 1200)
    content = resize_image(uploaded_file, max_width)
    previous = location.image

    try:
        with transaction.atomic():
            image = Image(
                organization=organization,
                kind="locations",
                owner_id=location.pk,
                uploaded_by=user,
                content_type="image/jpeg",
            )
            image.file.save(
                jpeg_name(uploaded_file.name), content, save=False
            )
            image.save()
            location.image = image
            location.save(update_fields=["image", "updated_at"])
            if previous is not None:
                previous.delete()
    except (DatabaseError, OSError) as cause:
        raise AppError(
            "Something went wrong while updating the location image.",
            cause=cause,
            label="Image",
            additional_data={"locationId": location.pk},
        ) from cause

    if previous is not None:
        previous.delete_files()

    generate_location_thumbnail.delay(image.pk)
    return image


def generate_location_with_images(
    organization, number_of_locations, image, user
):
    """Create ``number_of_locations`` locations sharing a copy of ``image``.

    Used to seed test data; names are random because they must be
    unique within the organization.
    """
    image.seek(0)
    data = image.read()
    content_type = getattr(image, "content_type", None) or "image/jpeg"
    filename = image.name.split("/")[-1]

    created = []
    try:
        with transaction.atomic():
            for _ in range(number_of_locations):
                location = Location.objects.create(
                    name=uuid.uuid4().hex,
                    created_by=user,
                    organization=organization,
                )
                stored = Image(
                    organization=organization,
                    kind="locations",
                    owner_id=location.pk,
                    uploaded_by=user,
                    content_type=content_type,
                )
                stored.file.save(filename, ContentFile(data), save=False)
                stored.save()
                location.image = stored
                location.save(update_fields=["image"])
                created.append(location)
    except (DatabaseError, OSError) as cause:
        raise AppError(
            "Something went wrong while generating locations.",
            cause=cause,
            label=LABEL,
            additional_data={
                "organizationId": organization.pk,
                "numberOfLocations": number_of_locations,
            },
        ) from cause
    return created
