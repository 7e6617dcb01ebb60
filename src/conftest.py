"""Shared pytest fixtures for Stockroom tests."""

import pytest

from django.conf import settings

# Use local filesystem storage for tests (avoids S3 credential errors)
settings.STORAGES["default"] = {
    "BACKEND": "django.core.files.storage.FileSystemStorage",
}
settings.STORAGES["staticfiles"] = {
    "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
}

# Run Celery tasks synchronously in tests
settings.CELERY_TASK_ALWAYS_EAGER = True
settings.CELERY_TASK_EAGER_PROPAGATES = True

# Use in-memory cache for tests (avoids Redis connection errors)
settings.CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

# Use in-memory channel layer for tests (avoids Redis for WS tests)
settings.CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels.layers.InMemoryChannelLayer",
    }
}

from accounts.models import UserOrganization  # noqa: E402
from assets.factories import (  # noqa: E402
    AssetFactory,
    CategoryFactory,
    LocationFactory,
    OrganizationFactory,
    UserFactory,
    UserOrganizationFactory,
)


@pytest.fixture(autouse=True)
def _clear_cache():
    """Clear the in-memory cache before each test.

    Prevents rate-limit counters and bulk modal state from bleeding
    across tests.
    """
    from django.core.cache import cache

    cache.clear()


@pytest.fixture(autouse=True)
def _media_root(settings, tmp_path):
    """Write uploaded and generated files to a per-test directory."""
    settings.MEDIA_ROOT = tmp_path / "media"


# --- Organization fixtures ---


@pytest.fixture
def organization(db):
    return OrganizationFactory(name="Acme Studios")


@pytest.fixture
def other_organization(db):
    return OrganizationFactory(name="Other Org")


# --- User fixtures ---


@pytest.fixture
def password():
    return "testpass123!"


def _member(organization, role, username, password):
    user = UserFactory(
        username=username,
        email=f"{username}@example.com",
        password=password,
        display_name=username.replace("_", " ").title(),
    )
    UserOrganizationFactory(user=user, organization=organization, role=role)
    return user


@pytest.fixture
def user(organization, password):
    """Owner of ``organization``."""
    return _member(
        organization, UserOrganization.ROLE_OWNER, "testuser", password
    )


@pytest.fixture
def admin_user(organization, password):
    return _member(
        organization, UserOrganization.ROLE_ADMIN, "orgadmin", password
    )


@pytest.fixture
def base_user(organization, password):
    return _member(
        organization, UserOrganization.ROLE_BASE, "base_user", password
    )


@pytest.fixture
def self_service_user(organization, password):
    return _member(
        organization,
        UserOrganization.ROLE_SELF_SERVICE,
        "self_service",
        password,
    )


@pytest.fixture
def outsider(other_organization, password):
    """Owner of a different organization only."""
    return _member(
        other_organization, UserOrganization.ROLE_OWNER, "outsider", password
    )


@pytest.fixture
def client_logged_in(client, user, password):
    client.login(username=user.username, password=password)
    return client


@pytest.fixture
def base_client(client, base_user, password):
    client.login(username=base_user.username, password=password)
    return client


@pytest.fixture
def self_service_client(client, self_service_user, password):
    client.login(username=self_service_user.username, password=password)
    return client


@pytest.fixture
def outsider_client(client, outsider, password):
    client.login(username=outsider.username, password=password)
    return client


# --- Core model fixtures ---


@pytest.fixture
def category(organization):
    return CategoryFactory(name="Props", organization=organization)


@pytest.fixture
def location(organization):
    return LocationFactory(
        name="Main Store",
        address="1 Warehouse Way",
        organization=organization,
    )


@pytest.fixture
def other_location(organization):
    return LocationFactory(name="Annex", organization=organization)


@pytest.fixture
def asset(organization, category, location, user):
    return AssetFactory(
        title="Test Prop",
        organization=organization,
        category=category,
        location=location,
        created_by=user,
    )


@pytest.fixture
def htmx_headers():
    return {"HTTP_HX_REQUEST": "true"}


@pytest.fixture
def image_upload():
    """Build an uploaded image file of the given size and format."""
    from io import BytesIO

    from PIL import Image as PILImage

    from django.core.files.uploadedfile import SimpleUploadedFile

    def _make(
        name="photo.png",
        size=(1600, 900),
        fmt="PNG",
        content_type="image/png",
    ):
        buf = BytesIO()
        PILImage.new("RGB", size, "red").save(buf, format=fmt)
        return SimpleUploadedFile(
            name, buf.getvalue(), content_type=content_type
        )

    return _make
