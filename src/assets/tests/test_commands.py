"""Tests for the assets management commands."""

import pytest

from django.core.management import CommandError, call_command

from assets.models import Asset, Location


@pytest.fixture
def csv_file(tmp_path):
    def _write(content):
        path = tmp_path / "assets.csv"
        path.write_text(content, encoding="utf-8")
        return str(path)

    return _write


class TestImportAssets:
    def test_imports_assets_and_locations(
        self, csv_file, organization, user, location
    ):
        path = csv_file(
            "title,description,location\n"
            "Chair,Wooden,main store\n"
            "Lamp,,Attic\n"
            "Rug,,\n"
        )

        call_command(
            "import_assets",
            path,
            organization=organization.pk,
            user=user.username,
        )

        assert Asset.objects.get(title="Chair").location == location
        attic = Location.objects.get(organization=organization, name="Attic")
        assert Asset.objects.get(title="Lamp").location == attic
        assert Asset.objects.get(title="Rug").location is None

    def test_without_location_column(self, csv_file, organization, user):
        path = csv_file("title\nChair\n")

        call_command(
            "import_assets",
            path,
            organization=organization.pk,
            user=user.username,
        )

        assert Asset.objects.get(title="Chair").location is None

    def test_missing_title(self, csv_file, organization, user):
        path = csv_file("title,location\n,Attic\n")

        with pytest.raises(CommandError, match="title"):
            call_command(
                "import_assets",
                path,
                organization=organization.pk,
                user=user.username,
            )

        assert not Location.objects.filter(name="Attic").exists()

    def test_unknown_organization(self, csv_file, user):
        with pytest.raises(CommandError, match="Organization not found"):
            call_command(
                "import_assets",
                csv_file("title\nChair\n"),
                organization=999999,
                user=user.username,
            )


class TestGenerateLocations:
    def test_generates_locations(self, tmp_path, organization, user):
        from PIL import Image as PILImage

        path = tmp_path / "seed.jpg"
        PILImage.new("RGB", (20, 20), "blue").save(path, format="JPEG")

        call_command(
            "generate_locations",
            str(path),
            organization=organization.pk,
            user=user.username,
            count=3,
        )

        locations = Location.objects.filter(organization=organization)
        assert locations.count() == 3
        assert all(loc.image_id for loc in locations)

    def test_missing_image_file(self, tmp_path, organization, user):
        with pytest.raises(CommandError, match="Cannot read image"):
            call_command(
                "generate_locations",
                str(tmp_path / "missing.jpg"),
                organization=organization.pk,
                user=user.username,
            )

    def test_count_must_be_positive(self, tmp_path, organization, user):
        with pytest.raises(CommandError):
            call_command(
                "generate_locations",
                str(tmp_path / "seed.jpg"),
                organization=organization.pk,
                user=user.username,
                count=0,
            )
