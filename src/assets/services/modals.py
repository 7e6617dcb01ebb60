"""Lifecycle of the bulk-action modals.

A :class:`BulkModal` pairs a trigger button with a dialog and tracks
whether the dialog is open and whether its form is being submitted.
While a submission is in flight every control is disabled and the
dialog refuses to close; the view that performs the work signals
completion through :meth:`BulkModal.on_submit_end`.

State lives in the cache keyed by session and modal key so that the
request carrying the submission and any concurrent request from the
same browser see the same flags. Only the open flag is persisted; a
modal is submitting exactly while its submission lock is held.
"""

import logging
from contextlib import contextmanager

from django.conf import settings
from django.core.cache import cache

from stockroom.errors import AppError

logger = logging.getLogger(__name__)

STATE_IDLE = "idle"
STATE_OPEN = "open"
STATE_SUBMITTING = "submitting"


def already_submitting(key) -> AppError:
    return AppError(
        "This action is already being processed. Please wait.",
        title="Already submitting",
        label="Bulk",
        status=409,
        should_be_captured=False,
        additional_data={"modal": key},
    )


class BulkModal:
    """Open/closed and in-flight state of one bulk-action modal."""

    def __init__(self, key, on_click=None, is_open=False, is_submitting=False):
        self.key = key
        self.on_click = on_click
        self.is_open = is_open
        self.is_submitting = is_submitting

    def __repr__(self):
        return f"BulkModal(key={self.key!r}, state={self.state!r})"

    @property
    def disabled(self) -> bool:
        return self.is_submitting

    @property
    def state(self) -> str:
        if self.is_submitting:
            return STATE_SUBMITTING
        if self.is_open:
            return STATE_OPEN
        return STATE_IDLE

    def open(self) -> bool:
        """Open the modal. Returns whether its state changed."""
        if self.is_open:
            return False
        self.is_open = True
        return True

    def close(self) -> bool:
        """Close the modal unless a submission is in flight.

        Returns whether the modal was closed.
        """
        if self.is_submitting:
            return False
        self.is_open = False
        return True

    def on_submit_start(self):
        """Run the click callback, then lock the modal for submission."""
        if self.is_submitting:
            raise already_submitting(self.key)
        if self.on_click is not None:
            self.on_click()
        self.is_open = True
        self.is_submitting = True

    def on_submit_end(self):
        self.is_submitting = False
        self.is_open = False

    def as_dict(self) -> dict:
        return {"is_open": self.is_open, "is_submitting": self.is_submitting}


class BulkModalStore:
    """Per-session persistence of :class:`BulkModal` state."""

    def __init__(self, request):
        if request.session.session_key is None:
            request.session.save()
        self.session_key = request.session.session_key
        self.timeout = getattr(settings, "BULK_MODAL_TIMEOUT", 300)

    def _cache_key(self, key):
        return f"bulk-modal:{self.session_key}:{key}"

    def _lock_key(self, key):
        return f"{self._cache_key(key)}:lock"

    def get(self, key, on_click=None) -> BulkModal:
        state = cache.get(self._cache_key(key)) or {}
        return BulkModal(
            key,
            on_click=on_click,
            is_open=state.get("is_open", False),
            is_submitting=cache.get(self._lock_key(key)) is not None,
        )

    def save(self, modal: BulkModal):
        cache.set(
            self._cache_key(modal.key),
            {"is_open": modal.is_open},
            self.timeout,
        )

    @contextmanager
    def submission(self, modal: BulkModal):
        """Hold ``modal`` in the submitting state around the wrapped work.

        A second submission for the same session and key while the
        first is running is rejected with a 409 :class:`AppError`. On
        success the modal closes; on failure it stays open so the user
        can try again.
        """
        lock_key = self._lock_key(modal.key)
        if not cache.add(lock_key, True, self.timeout):
            raise already_submitting(modal.key)

        try:
            modal.on_submit_start()
            self.save(modal)
            try:
                yield modal
            except Exception:
                modal.is_submitting = False
                self.save(modal)
                logger.info("Submission of modal %r failed", modal.key)
                raise
            modal.on_submit_end()
            self.save(modal)
        finally:
            cache.delete(lock_key)
