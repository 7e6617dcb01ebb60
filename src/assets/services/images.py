"""Image resizing for uploaded location pictures."""

from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

from django.core.files.base import ContentFile

from stockroom.errors import AppError

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp"}


def _to_rgb(img):
    if img.mode in ("RGBA", "P", "LA"):
        return img.convert("RGB")
    return img


def _open(file):
    try:
        img = Image.open(file)
        img.load()
    except (UnidentifiedImageError, OSError) as cause:
        raise AppError(
            "The uploaded file is not a valid image.",
            cause=cause,
            title="Invalid image",
            label="Image",
            status=400,
            should_be_captured=False,
        ) from cause
    # Honour camera orientation before measuring
    return ImageOps.exif_transpose(img)


def resize_image(file, max_width: int) -> ContentFile:
    """Shrink ``file`` to at most ``max_width`` pixels wide as JPEG.

    Smaller images are re-encoded at their original size.
    """
    img = _open(file)
    width, height = img.size
    if width > max_width:
        new_size = (max_width, round(height * max_width / width))
        img = img.resize(new_size, Image.LANCZOS)

    img = _to_rgb(img)
    buf = BytesIO()
    img.save(buf, format="JPEG", quality=85)
    return ContentFile(buf.getvalue())


def make_thumbnail(file, size: int) -> ContentFile:
    """Crop and scale ``file`` to a ``size`` x ``size`` JPEG square."""
    img = _open(file)
    img = ImageOps.fit(img, (size, size), Image.LANCZOS)
    img = _to_rgb(img)
    buf = BytesIO()
    img.save(buf, format="JPEG", quality=80)
    return ContentFile(buf.getvalue())


def jpeg_name(filename: str, prefix: str = "") -> str:
    """Return ``filename`` with a ``.jpg`` extension and optional prefix."""
    base = filename.split("/")[-1].rsplit(".", 1)[0] or "image"
    return f"{prefix}{base}.jpg"
