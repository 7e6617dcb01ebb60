"""Tests for QR codes and scans."""

import uuid
from decimal import Decimal

import pytest

from django.contrib.auth.models import AnonymousUser
from django.urls import reverse

from assets.factories import QrFactory, ScanFactory, UserFactory
from assets.models import Scan
from assets.services.scans import (
    UNKNOWN_LOCATION,
    generate_qr_image,
    get_or_create_qr,
    get_qr,
    get_scan_by_qr_id,
    parse_scan_data,
    record_scan,
)
from stockroom.errors import AppError


class TestQrCodes:
    def test_generate_qr_image_is_png(self):
        image = generate_qr_image("https://example.com/qr/1/")

        assert image.read().startswith(b"\x89PNG")

    def test_get_or_create_qr(self, asset):
        first = get_or_create_qr(asset)
        second = get_or_create_qr(asset)

        assert first == second
        assert first.organization == asset.organization

    def test_get_qr_unknown_id(self, db):
        with pytest.raises(AppError) as exc_info:
            get_qr(uuid.uuid4())

        assert exc_info.value.status == 404
        assert exc_info.value.label == "Scan"


class TestRecordScan:
    def test_anonymous_scan_has_no_user(self, asset):
        qr = QrFactory(asset=asset)

        scan = record_scan(qr, user=AnonymousUser(), user_agent="Phone")

        assert scan.user is None
        assert scan.user_agent == "Phone"

    def test_coordinates_are_stored(self, asset, user):
        qr = QrFactory(asset=asset)

        scan = record_scan(qr, user=user, latitude="51.5", longitude="x")

        scan.refresh_from_db()
        assert scan.latitude == Decimal("51.500000")
        assert scan.longitude is None

    def test_latest_scan_wins(self, asset):
        qr = QrFactory(asset=asset)
        ScanFactory(qr=qr, user_agent="old")
        newest = ScanFactory(qr=qr, user_agent="new")

        assert get_scan_by_qr_id(qr.pk) == newest

    def test_no_scans(self, asset):
        qr = QrFactory(asset=asset)

        assert get_scan_by_qr_id(qr.pk) is None


class TestParseScanData:
    def test_none(self, db):
        assert parse_scan_data(None, None) is None

    def test_scanned_by_current_user(self, asset, user):
        scan = ScanFactory(qr=QrFactory(asset=asset), user=user)

        data = parse_scan_data(scan, user)

        assert data["scanned_by"] == "You"
        assert data["coordinates"] == UNKNOWN_LOCATION
        assert data["has_coordinates"] is False

    def test_scanned_by_someone_else(self, asset, user):
        other = UserFactory(display_name="Sam Scanner")
        scan = ScanFactory(
            qr=QrFactory(asset=asset),
            user=other,
            latitude=Decimal("1.5"),
            longitude=Decimal("2.25"),
        )
        scan.refresh_from_db()

        data = parse_scan_data(scan, user)

        assert data["scanned_by"] == "Sam Scanner"
        assert data["coordinates"] == "1.500000, 2.250000"
        assert data["has_coordinates"] is True

    def test_anonymous(self, asset, user):
        scan = ScanFactory(qr=QrFactory(asset=asset))

        assert parse_scan_data(scan, user)["scanned_by"] == "Anonymous"


class TestScanView:
    def test_logged_in_user_is_sent_to_asset(self, client_logged_in, asset):
        qr = QrFactory(asset=asset)

        response = client_logged_in.get(
            reverse("assets:scan_qr", args=[qr.pk]),
            {"latitude": "10.1", "longitude": "20.2"},
            HTTP_USER_AGENT="ScannerApp/1.0",
        )

        assert response.status_code == 302
        assert response["Location"] == asset.get_absolute_url()
        scan = Scan.objects.get(qr=qr)
        assert scan.user_agent == "ScannerApp/1.0"
        assert scan.latitude == Decimal("10.100000")

    def test_anonymous_user_is_sent_to_login(self, client, asset):
        qr = QrFactory(asset=asset)

        response = client.get(reverse("assets:scan_qr", args=[qr.pk]))

        assert response.status_code == 302
        assert reverse("accounts:login") in response["Location"]
        assert Scan.objects.get(qr=qr).user is None

    def test_unknown_code(self, client, db):
        response = client.get(
            reverse("assets:scan_qr", args=[uuid.uuid4()]),
            HTTP_ACCEPT="application/json",
        )

        assert response.status_code == 404
        assert response.json()["error"]["label"] == "Scan"
