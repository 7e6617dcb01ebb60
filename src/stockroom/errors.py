"""Domain error type shared by every Stockroom service and view.

Services wrap whatever went wrong in an :class:`AppError` carrying a
user-facing message, a label naming the subsystem, an HTTP status and a
flag saying whether the error deserves a traceback in the logs. Views
and :class:`stockroom.middleware.AppErrorMiddleware` turn it into the
``{"error": {...}}`` envelope.
"""

import logging

from django.core.exceptions import ObjectDoesNotExist, PermissionDenied
from django.db import IntegrityError
from django.http import Http404

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = (
    "Something went wrong. Please try again. If the issue persists, "
    "please contact support."
)


class AppError(Exception):
    """Normalized application error.

    ``status`` and ``should_be_captured`` are inherited from ``cause``
    when it is itself an :class:`AppError` and no explicit value is
    given.
    """

    def __init__(
        self,
        message=DEFAULT_MESSAGE,
        *,
        cause=None,
        title=None,
        label="Unknown",
        status=None,
        should_be_captured=None,
        additional_data=None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.title = title
        self.label = label
        self.additional_data = dict(additional_data or {})

        if status is None:
            status = cause.status if isinstance(cause, AppError) else 500
        self.status = status

        if should_be_captured is None:
            should_be_captured = (
                cause.should_be_captured
                if isinstance(cause, AppError)
                else True
            )
        self.should_be_captured = should_be_captured

    def __repr__(self):
        return (
            f"AppError(label={self.label!r}, status={self.status}, "
            f"message={self.message!r})"
        )

    def as_dict(self):
        return {
            "message": self.message,
            "title": self.title,
            "label": self.label,
            "status": self.status,
            "additionalData": self.additional_data,
        }


def is_not_found_error(cause) -> bool:
    """Return True when ``cause`` means the record does not exist."""
    if isinstance(cause, AppError):
        return cause.status == 404
    return isinstance(cause, (ObjectDoesNotExist, Http404))


def maybe_unique_constraint_violation(
    cause, model_name: str, additional_data=None
) -> AppError:
    """Translate a unique-constraint violation into a duplicate-name error.

    Anything else becomes a generic captured error for ``model_name``.
    """
    if isinstance(cause, IntegrityError) and "unique" in str(cause).lower():
        return AppError(
            f"{model_name} name is already taken. "
            "Please choose a different name.",
            cause=cause,
            title="Duplicate name",
            label=model_name,
            status=400,
            should_be_captured=False,
            additional_data=additional_data,
        )
    return AppError(
        f"Something went wrong while saving the {model_name.lower()}.",
        cause=cause,
        label=model_name,
        additional_data=additional_data,
    )


def make_app_error(cause, additional_data=None) -> AppError:
    """Coerce any exception into an :class:`AppError`."""
    if isinstance(cause, AppError):
        if additional_data:
            cause.additional_data = {**additional_data, **cause.additional_data}
        return cause

    if isinstance(cause, PermissionDenied):
        return AppError(
            "You do not have permission to perform this action.",
            cause=cause,
            title="Forbidden",
            label="Permission",
            status=403,
            should_be_captured=False,
            additional_data=additional_data,
        )

    if is_not_found_error(cause):
        return AppError(
            "The record you are looking for does not exist.",
            cause=cause,
            title="Not found",
            status=404,
            should_be_captured=False,
            additional_data=additional_data,
        )

    return AppError(
        cause=cause,
        additional_data=additional_data,
    )


def log_app_error(reason: AppError):
    """Log ``reason`` with a traceback if it should be captured."""
    if reason.should_be_captured:
        logger.error(
            "[%s] %s (status=%s) %s",
            reason.label,
            reason.message,
            reason.status,
            reason.additional_data,
            exc_info=reason.cause or reason,
        )
    else:
        logger.info(
            "[%s] %s (status=%s)",
            reason.label,
            reason.message,
            reason.status,
        )


def error_payload(reason: AppError) -> dict:
    """Envelope returned to clients for a failed request."""
    return {"error": reason.as_dict()}


def data_payload(**data) -> dict:
    """Envelope returned to clients for a successful request."""
    return {"error": None, **data}
