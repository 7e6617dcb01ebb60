"""Tests for the assets admin."""

import pytest

from django.urls import reverse

from assets.factories import LocationFactory, UserFactory
from assets.models import Location


@pytest.fixture
def superuser_client(client, db, password):
    user = UserFactory(
        username="root", password=password, is_staff=True, is_superuser=True
    )
    client.login(username=user.username, password=password)
    return client


class TestLocationAdmin:
    def test_changelist_loads(self, superuser_client, location, asset):
        response = superuser_client.get(
            reverse("admin:assets_location_changelist")
        )

        assert response.status_code == 200
        assert "Main Store" in response.content.decode()

    def test_delete_with_images_action(
        self, superuser_client, organization, other_organization
    ):
        ours = LocationFactory(organization=organization)
        theirs = LocationFactory(organization=other_organization)
        keep = LocationFactory(organization=organization)

        response = superuser_client.post(
            reverse("admin:assets_location_changelist"),
            {
                "action": "delete_with_images",
                "_selected_action": [ours.pk, theirs.pk],
            },
        )

        assert response.status_code == 302
        assert list(Location.objects.all()) == [keep]


class TestAssetAdmin:
    def test_changelist_loads(self, superuser_client, asset):
        response = superuser_client.get(
            reverse("admin:assets_asset_changelist")
        )

        assert response.status_code == 200

    def test_mark_unbookable(self, superuser_client, asset):
        superuser_client.post(
            reverse("admin:assets_asset_changelist"),
            {"action": "mark_unbookable", "_selected_action": [asset.pk]},
        )

        asset.refresh_from_db()
        assert asset.available_to_book is False
