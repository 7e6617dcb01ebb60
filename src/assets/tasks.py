"""Celery tasks for the assets app."""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task
def generate_location_thumbnail(image_id: int):
    """Generate the square thumbnail for a location :class:`Image`."""
    from django.conf import settings

    from .models import Image
    from .services.images import jpeg_name, make_thumbnail

    try:
        image = Image.objects.get(pk=image_id)
    except Image.DoesNotExist:
        # Replaced by a newer upload before the task ran
        return None

    if not image.file:
        return None

    size = getattr(settings, "LOCATION_THUMBNAIL_SIZE", 108)
    try:
        with image.file.open("rb") as fh:
            content = make_thumbnail(fh, size)
        image.thumbnail.save(
            jpeg_name(image.file.name, prefix="thumb_"), content, save=True
        )
    except Exception:
        logger.exception("Thumbnail generation failed for image %s", image_id)
        raise

    logger.info("Generated %spx thumbnail for image %s", size, image_id)
    return image.thumbnail.name
