"""Tests for the bulk-action modal lifecycle."""

from unittest.mock import Mock

import pytest

from django.contrib.sessions.backends.cache import SessionStore
from django.urls import reverse

from assets.services.modals import (
    STATE_IDLE,
    STATE_OPEN,
    STATE_SUBMITTING,
    BulkModal,
    BulkModalStore,
)
from stockroom.errors import AppError


class TestBulkModal:
    def test_starts_idle(self):
        modal = BulkModal("location")

        assert modal.state == STATE_IDLE
        assert modal.disabled is False

    def test_open_and_close(self):
        modal = BulkModal("location")

        modal.open()
        assert modal.state == STATE_OPEN

        assert modal.close() is True
        assert modal.state == STATE_IDLE

    def test_submit_start_runs_callback_and_disables(self):
        on_click = Mock()
        modal = BulkModal("location", on_click=on_click, is_open=True)

        modal.on_submit_start()

        on_click.assert_called_once_with()
        assert modal.is_open is True
        assert modal.disabled is True
        assert modal.state == STATE_SUBMITTING

    def test_close_is_ignored_while_submitting(self):
        modal = BulkModal("location", is_open=True)
        modal.on_submit_start()

        assert modal.close() is False
        assert modal.is_open is True
        assert modal.is_submitting is True

    def test_submit_end_closes_and_enables(self):
        modal = BulkModal("location", is_open=True)
        modal.on_submit_start()

        modal.on_submit_end()

        assert modal.is_open is False
        assert modal.disabled is False
        assert modal.close() is True

    def test_second_submit_start_is_rejected(self):
        on_click = Mock()
        modal = BulkModal("location", on_click=on_click)
        modal.on_submit_start()

        with pytest.raises(AppError) as exc_info:
            modal.on_submit_start()

        assert exc_info.value.status == 409
        assert on_click.call_count == 1


@pytest.fixture
def session_request(rf):
    request = rf.get("/")
    request.session = SessionStore()
    return request


class TestBulkModalStore:
    def test_missing_state_is_idle(self, session_request):
        store = BulkModalStore(session_request)

        assert store.get("location").state == STATE_IDLE

    def test_saves_state_per_key(self, session_request):
        store = BulkModalStore(session_request)
        modal = store.get("location")
        modal.open()
        store.save(modal)

        assert store.get("location").is_open is True
        assert store.get("category").is_open is False

    def test_state_is_per_session(self, rf, session_request):
        store = BulkModalStore(session_request)
        modal = store.get("location")
        modal.open()
        store.save(modal)

        other = rf.get("/")
        other.session = SessionStore()

        assert BulkModalStore(other).get("location").is_open is False

    def test_submission_closes_on_success(self, session_request):
        store = BulkModalStore(session_request)
        modal = store.get("location")
        modal.open()

        with store.submission(modal):
            stored = store.get("location")
            assert stored.is_submitting is True
            assert stored.close() is False

        stored = store.get("location")
        assert stored.is_open is False
        assert stored.is_submitting is False

    def test_submission_stays_open_on_failure(self, session_request):
        store = BulkModalStore(session_request)
        modal = store.get("location")
        modal.open()

        with pytest.raises(RuntimeError):
            with store.submission(modal):
                raise RuntimeError("boom")

        stored = store.get("location")
        assert stored.is_open is True
        assert stored.is_submitting is False

    def test_concurrent_submission_is_rejected(self, session_request):
        store = BulkModalStore(session_request)
        first = store.get("location")

        with store.submission(first):
            second = store.get("location")
            with pytest.raises(AppError) as exc_info:
                with store.submission(second):
                    pass  # pragma: no cover

        assert exc_info.value.status == 409

    def test_lock_is_released_after_failure(self, session_request):
        store = BulkModalStore(session_request)

        with pytest.raises(RuntimeError):
            with store.submission(store.get("location")):
                raise RuntimeError("boom")

        with store.submission(store.get("location")):
            pass
        assert store.get("location").state == STATE_IDLE


class TestStaleModalWrites:
    def test_modal_read_mid_submission_cannot_keep_it_submitting(
        self, session_request
    ):
        store = BulkModalStore(session_request)
        modal = store.get("location")
        modal.open()
        store.save(modal)

        with store.submission(modal):
            stale = store.get("location")
            assert stale.close() is False

        store.save(stale)

        stored = store.get("location")
        assert stored.is_submitting is False
        assert stored.state != STATE_SUBMITTING
        with store.submission(stored):
            pass
        assert store.get("location").state == STATE_IDLE

    def test_open_reports_no_change_when_already_open(self):
        modal = BulkModal("location", is_open=True)

        assert modal.open() is False
        assert modal.is_open is True


class TestBulkModalView:
    def url(self, key="location"):
        return reverse("assets:bulk_modal", args=[key])

    def test_open_renders_dialog(self, client_logged_in, location):
        response = client_logged_in.post(self.url(), {"action": "open"})

        content = response.content.decode()
        assert response.status_code == 200
        assert 'data-state="open"' in content
        assert 'role="dialog"' in content
        assert location.name in content

    def test_close_renders_trigger_only(self, client_logged_in):
        client_logged_in.post(self.url(), {"action": "open"})

        response = client_logged_in.post(self.url(), {"action": "close"})

        content = response.content.decode()
        assert 'data-state="idle"' in content
        assert 'role="dialog"' not in content

    def test_close_while_submitting_keeps_dialog(self, client_logged_in):
        client_logged_in.post(self.url(), {"action": "open"})
        store = BulkModalStore(Mock(session=client_logged_in.session))

        with store.submission(store.get("location")):
            response = client_logged_in.post(
                self.url(), {"action": "close"}
            )

        content = response.content.decode()
        assert 'data-state="submitting"' in content
        assert 'role="dialog"' in content
        assert "disabled" in content

    def test_ignored_close_does_not_outlive_submission(
        self, client_logged_in
    ):
        client_logged_in.post(self.url(), {"action": "open"})
        store = BulkModalStore(Mock(session=client_logged_in.session))

        with store.submission(store.get("location")):
            client_logged_in.post(self.url(), {"action": "close"})

        modal = store.get("location")
        assert modal.is_open is False
        assert modal.is_submitting is False

    def test_get_is_not_allowed(self, client_logged_in):
        response = client_logged_in.get(self.url(), {"action": "open"})

        assert response.status_code == 405

    def test_unknown_key_is_not_found(self, client_logged_in):
        response = client_logged_in.post(
            self.url("colour"), {"action": "open"}
        )

        assert response.status_code == 404

    def test_base_member_is_forbidden(self, base_client):
        response = base_client.post(
            self.url(),
            {"action": "open"},
            HTTP_ACCEPT="application/json",
        )

        assert response.status_code == 403
        assert response.json()["error"]["label"] == "Permission"
