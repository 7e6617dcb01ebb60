"""Tests for project-level views, middleware and context processors."""

import pytest

from django.http import HttpResponse
from django.urls import reverse

from stockroom.context_processors import current_organization, site_settings
from stockroom.errors import AppError
from stockroom.middleware import AppErrorMiddleware, wants_json
from stockroom.views import ratelimited_view


class TestWantsJson:
    def test_accept_header(self, rf):
        request = rf.get("/", HTTP_ACCEPT="application/json")

        assert wants_json(request)

    def test_htmx(self, rf):
        request = rf.get("/")
        request.htmx = True

        assert wants_json(request)

    def test_browser(self, rf):
        request = rf.get("/", HTTP_ACCEPT="text/html")

        assert not wants_json(request)


class TestAppErrorMiddleware:
    def middleware(self):
        return AppErrorMiddleware(lambda request: HttpResponse("ok"))

    def test_ignores_other_exceptions(self, rf):
        assert (
            self.middleware().process_exception(rf.get("/"), ValueError())
            is None
        )

    def test_json_envelope(self, rf):
        request = rf.get("/", HTTP_ACCEPT="application/json")
        error = AppError(
            "Gone", label="Location", status=404, should_be_captured=False
        )

        response = self.middleware().process_exception(request, error)

        assert response.status_code == 404
        assert b'"label": "Location"' in response.content

    def test_html_page(self, client_logged_in):
        response = client_logged_in.get(
            reverse("assets:location_detail", args=[999999])
        )

        assert response.status_code == 404
        assert "Location not found" in response.content.decode()


class TestRatelimitedView:
    def test_returns_429_envelope(self, rf):
        response = ratelimited_view(rf.get("/"))

        assert response.status_code == 429
        assert response["Retry-After"] == "60"
        assert b"Too many requests" in response.content

    def test_login_is_rate_limited(self, client, user):
        url = reverse("accounts:login")
        for _ in range(5):
            client.post(url, {"username": user.username, "password": "x"})

        response = client.post(
            url, {"username": user.username, "password": "x"}
        )

        assert response.status_code == 200
        assert "Too many login attempts" in response.content.decode()


def test_health_check(client, db):
    response = client.get(reverse("health_check"))

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


class TestContextProcessors:
    def test_site_settings(self, rf, settings):
        settings.SITE_NAME = "Backstage"

        assert site_settings(rf.get("/"))["SITE_NAME"] == "Backstage"

    def test_current_organization(self, rf, self_service_user, organization):
        request = rf.get("/")
        request.user = self_service_user
        request.session = {}

        context = current_organization(request)

        assert context["current_organization"] == organization
        assert context["is_self_service"] is True
        assert len(context["user_memberships"]) == 1

    def test_anonymous(self, rf):
        from django.contrib.auth.models import AnonymousUser

        request = rf.get("/")
        request.user = AnonymousUser()

        assert current_organization(request) == {}


@pytest.mark.parametrize(
    "setting", ["CELERY_BROKER_URL", "BULK_MODAL_TIMEOUT", "RATELIMIT_VIEW"]
)
def test_settings_present(settings, setting):
    assert getattr(settings, setting)


class TestInstalledApps:
    def test_apps_load_their_configs(self):
        from django.apps import apps

        from accounts.apps import AccountsConfig
        from assets.apps import AssetsConfig

        assert isinstance(apps.get_app_config("accounts"), AccountsConfig)
        assert isinstance(apps.get_app_config("assets"), AssetsConfig)

    @pytest.mark.parametrize("label", ["accounts", "assets"])
    def test_apps_have_migrations(self, label):
        from django.db.migrations.loader import MigrationLoader

        loader = MigrationLoader(None, ignore_no_migrations=True)

        assert label in loader.migrated_apps
