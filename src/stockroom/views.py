"""Project-level views for Stockroom."""

import mimetypes

from django.core.files.storage import default_storage
from django.http import FileResponse, Http404, JsonResponse

from .errors import AppError, error_payload


def media_proxy(request, path):
    """Stream a stored image from S3 through Django."""
    if not default_storage.exists(path):
        raise Http404
    f = default_storage.open(path)

    content_type, _ = mimetypes.guess_type(path)
    return FileResponse(
        f, content_type=content_type or "application/octet-stream"
    )


def ratelimited_view(request, exception=None):
    """Return 429 with the error envelope and a Retry-After header."""
    reason = AppError(
        "Too many requests. Please try again later.",
        label="Request validation",
        status=429,
        should_be_captured=False,
    )
    response = JsonResponse(error_payload(reason), status=429)
    response["Retry-After"] = "60"
    return response


def health_check(request):
    """Health check endpoint for monitoring and load balancers."""
    from django.core.cache import cache
    from django.db import DatabaseError, connection

    db_ok = True
    try:
        connection.ensure_connection()
    except DatabaseError:
        db_ok = False

    cache.set("_health_check", "1", timeout=10)
    cache_ok = cache.get("_health_check") == "1"

    status = "ok" if db_ok and cache_ok else "degraded"
    return JsonResponse(
        {"status": status, "db": db_ok, "cache": cache_ok},
        status=200 if db_ok else 503,
    )
