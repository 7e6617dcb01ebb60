"""Request middleware for Stockroom."""

from django.http import JsonResponse
from django.shortcuts import render

from .errors import AppError, error_payload, log_app_error


def wants_json(request) -> bool:
    """True for htmx, fetch and other JSON-accepting requests."""
    if getattr(request, "htmx", False):
        return True
    accept = request.headers.get("Accept", "")
    return "application/json" in accept


class AppErrorMiddleware:
    """Render uncaught :class:`AppError` as the uniform error envelope.

    JSON/htmx callers receive ``{"error": {...}}``; browsers get the
    ``errors/error.html`` page with the same status code.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if not isinstance(exception, AppError):
            return None

        log_app_error(exception)
        if wants_json(request):
            return JsonResponse(
                error_payload(exception), status=exception.status
            )
        return render(
            request,
            "errors/error.html",
            {"error": exception},
            status=exception.status,
        )
