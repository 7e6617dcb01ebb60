"""QR code images and scan records."""

from decimal import Decimal, InvalidOperation
from io import BytesIO

import qrcode

from django.core.files.base import ContentFile
from django.utils import formats, timezone

from stockroom.errors import AppError

from ..models import Qr, Scan

UNKNOWN_LOCATION = "Unknown location"


def generate_qr_image(
    data: str, box_size: int = 6, border: int = 2
) -> ContentFile:
    """Generate a QR code image (PNG) encoding the given data.

    Returns a ContentFile suitable for saving or serving.
    """
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)

    buffer = BytesIO()
    img = qr.make_image(fill_color="black", back_color="white")
    img.save(buffer, format="PNG")
    return ContentFile(buffer.getvalue())


def get_or_create_qr(asset) -> Qr:
    """Return the asset's first QR code, creating it if needed."""
    qr = asset.qr_codes.order_by("created_at").first()
    if qr is None:
        qr = Qr.objects.create(asset=asset, organization=asset.organization)
    return qr


def get_qr(qr_id) -> Qr:
    try:
        return Qr.objects.select_related("asset").get(pk=qr_id)
    except (Qr.DoesNotExist, ValueError) as cause:
        raise AppError(
            "This QR code does not exist.",
            cause=cause,
            title="QR not found",
            label="Scan",
            status=404,
            should_be_captured=False,
            additional_data={"qrId": str(qr_id)},
        ) from cause


def get_scan_by_qr_id(qr_id):
    """Return the most recent scan of ``qr_id`` or None."""
    return (
        Scan.objects.filter(qr_id=qr_id)
        .select_related("user")
        .order_by("-created_at", "-pk")
        .first()
    )


def _coordinate(value):
    if value in (None, ""):
        return None
    try:
        return Decimal(str(value)).quantize(Decimal("0.000001"))
    except InvalidOperation:
        return None


def record_scan(qr, user=None, latitude=None, longitude=None, user_agent=""):
    """Store a scan of ``qr``; anonymous scans have no user."""
    return Scan.objects.create(
        qr=qr,
        user=user if user is not None and user.is_authenticated else None,
        latitude=_coordinate(latitude),
        longitude=_coordinate(longitude),
        user_agent=(user_agent or "")[:500],
    )


def parse_scan_data(scan, user):
    """Shape a :class:`Scan` for the scan details panel."""
    if scan is None:
        return None

    if scan.user_id is None:
        scanned_by = "Anonymous"
    elif user is not None and scan.user_id == user.pk:
        scanned_by = "You"
    else:
        scanned_by = scan.user.get_display_name()

    if scan.latitude is not None and scan.longitude is not None:
        coordinates = f"{scan.latitude}, {scan.longitude}"
    else:
        coordinates = UNKNOWN_LOCATION

    return {
        "scanned_by": scanned_by,
        "coordinates": coordinates,
        "has_coordinates": coordinates != UNKNOWN_LOCATION,
        "date_display": formats.date_format(
            timezone.localtime(scan.created_at), "SHORT_DATETIME_FORMAT"
        ),
        "user_agent": scan.user_agent,
        "manual_update": scan.manual_update,
    }
