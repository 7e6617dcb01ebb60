"""Tests for the asset list and asset detail page."""

from decimal import Decimal

from django.urls import reverse

from assets.factories import (
    AssetCustomFieldValueFactory,
    AssetFactory,
    CustodyFactory,
    CustomFieldFactory,
    NoteFactory,
    QrFactory,
    ScanFactory,
    TagFactory,
    TeamMemberFactory,
)
from assets.models import Asset, Custody, CustomField


class TestAssetList:
    def test_lists_organization_assets(
        self, client_logged_in, asset, other_organization
    ):
        foreign = AssetFactory(
            title="Foreign Prop", organization=other_organization
        )

        response = client_logged_in.get(reverse("assets:asset_list"))

        content = response.content.decode()
        assert response.status_code == 200
        assert asset.title in content
        assert foreign.title not in content

    def test_search_and_pagination(self, client_logged_in, organization):
        AssetFactory.create_batch(10, organization=organization)
        AssetFactory(title="Unique Lamp", organization=organization)

        response = client_logged_in.get(
            reverse("assets:asset_list"), {"s": "lamp"}
        )
        assert response.context["total"] == 1

        response = client_logged_in.get(
            reverse("assets:asset_list"), {"page": 2, "per_page": 8}
        )
        assert response.context["total"] == 11
        assert len(response.context["assets"]) == 3

    def test_owner_sees_bulk_controls(self, client_logged_in, asset):
        response = client_logged_in.get(reverse("assets:asset_list"))

        content = response.content.decode()
        assert 'id="bulk-modal-location"' in content
        assert 'value="all-selected"' in content

    def test_base_member_has_no_bulk_controls(self, base_client, asset):
        response = base_client.get(reverse("assets:asset_list"))

        assert response.status_code == 200
        assert 'id="bulk-modal-location"' not in response.content.decode()

    def test_requires_login(self, client, db):
        response = client.get(reverse("assets:asset_list"))

        assert response.status_code == 302
        assert reverse("accounts:login") in response["Location"]


class TestAssetLoader:
    def test_renders_details(self, client_logged_in, asset, organization):
        asset.valuation = Decimal("1250.50")
        asset.save()
        asset.tags.add(TagFactory(name="fragile", organization=organization))

        response = client_logged_in.get(asset.get_absolute_url())

        content = response.content.decode()
        assert response.status_code == 200
        assert response.context["header"] == {"title": "Test Prop"}
        assert "Main Store" in content
        assert "fragile" in content
        assert "$1,250.50" in content
        assert 'data-testid="qr-button"' in content
        assert 'data-testid="scan-details"' in content

    def test_custody_shown_for_asset_in_custody(
        self, client_logged_in, asset, organization
    ):
        asset.status = Asset.STATUS_IN_CUSTODY
        asset.save()
        Custody.objects.create(
            asset=asset,
            custodian=TeamMemberFactory(
                name="Jo Keeper", organization=organization
            ),
        )

        response = client_logged_in.get(asset.get_absolute_url())

        content = response.content.decode()
        assert 'data-testid="custody"' in content
        assert "Jo Keeper" in content
        assert response.context["custody"]["custodian"] == "Jo Keeper"

    def test_notes_newest_first(self, client_logged_in, asset):
        NoteFactory(asset=asset, content="First note")
        NoteFactory(asset=asset, content="Second note")

        response = client_logged_in.get(asset.get_absolute_url())

        notes = response.context["notes"]
        assert [n.content for n in notes] == ["Second note", "First note"]
        assert all(n.date_display for n in notes)

    def test_custom_fields_with_values(
        self, client_logged_in, asset, organization
    ):
        AssetCustomFieldValueFactory(
            asset=asset,
            custom_field=CustomFieldFactory(
                name="Website", organization=organization
            ),
            value={
                "raw": "https://example.com",
                "valueText": "https://example.com",
            },
        )
        AssetCustomFieldValueFactory(
            asset=asset,
            custom_field=CustomFieldFactory(
                name="Empty", organization=organization
            ),
            value={"raw": ""},
        )
        AssetCustomFieldValueFactory(
            asset=asset,
            custom_field=CustomFieldFactory(
                name="Retired",
                organization=organization,
                active=False,
            ),
        )

        response = client_logged_in.get(asset.get_absolute_url())

        fields = response.context["custom_fields"]
        assert [f["name"] for f in fields] == ["Website"]
        assert fields[0]["is_link"] is True
        assert "https://example.com?ref=stockroom" in response.content.decode()

    def test_link_with_query_keeps_it(
        self, client_logged_in, asset, organization
    ):
        AssetCustomFieldValueFactory(
            asset=asset,
            custom_field=CustomFieldFactory(
                name="Manual", organization=organization
            ),
            value={
                "raw": "https://example.com/doc?id=7",
                "valueText": "https://example.com/doc?id=7",
            },
        )

        response = client_logged_in.get(asset.get_absolute_url())

        content = response.content.decode()
        assert (
            'href="https://example.com/doc?id=7&amp;ref=stockroom"'
            in content
        )
        assert "?id=7?ref" not in content

    def test_last_scan(self, client_logged_in, asset, user):
        qr = QrFactory(asset=asset)
        ScanFactory(
            qr=qr,
            user=user,
            latitude=Decimal("51.5"),
            longitude=Decimal("-0.12"),
        )

        response = client_logged_in.get(asset.get_absolute_url())

        last_scan = response.context["last_scan"]
        assert last_scan["scanned_by"] == "You"
        assert last_scan["has_coordinates"] is True

    def test_self_service_sees_reduced_view(
        self, self_service_client, asset, organization
    ):
        CustodyFactory(asset=asset)
        NoteFactory(asset=asset, content="Hidden note")
        QrFactory(asset=asset)

        response = self_service_client.get(asset.get_absolute_url())

        content = response.content.decode()
        assert response.status_code == 200
        assert response.context["notes"] == []
        assert response.context["custody"] is None
        assert response.context["last_scan"] is None
        assert 'data-testid="qr-button"' not in content
        assert 'data-testid="custody"' not in content
        assert 'data-testid="scan-details"' not in content
        assert "Hidden note" not in content
        assert "You are not allowed to view asset notes" in content

    def test_json_payload(self, client_logged_in, asset):
        NoteFactory(asset=asset, content="Packed away")

        response = client_logged_in.get(
            asset.get_absolute_url(), HTTP_ACCEPT="application/json"
        )

        data = response.json()
        assert data["error"] is None
        assert data["asset"]["title"] == "Test Prop"
        assert data["asset"]["location"]["name"] == "Main Store"
        assert data["asset"]["notes"][0]["content"] == "Packed away"
        assert data["header"] == {"title": "Test Prop"}
        assert "locale" in data

    def test_asset_of_other_organization_is_not_found(
        self, client_logged_in, other_organization
    ):
        foreign = AssetFactory(organization=other_organization)

        response = client_logged_in.get(
            foreign.get_absolute_url(), HTTP_ACCEPT="application/json"
        )

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["label"] == "Assets"
        assert error["status"] == 404

    def test_missing_asset_renders_error_page(self, client_logged_in):
        response = client_logged_in.get(
            reverse("assets:asset_detail", args=[999999])
        )

        assert response.status_code == 404
        assert "Asset not found" in response.content.decode()


class TestAssetAction:
    def test_toggle_availability_off(self, client_logged_in, asset):
        response = client_logged_in.post(
            asset.get_absolute_url(), {"intent": "toggle"}
        )

        assert response.status_code == 200
        assert response.json() == {"error": None}
        asset.refresh_from_db()
        assert asset.available_to_book is False

    def test_toggle_availability_on(self, client_logged_in, asset):
        asset.available_to_book = False
        asset.save()

        client_logged_in.post(
            asset.get_absolute_url(),
            {"intent": "toggle", "available_to_book": "on"},
        )

        asset.refresh_from_db()
        assert asset.available_to_book is True

    def test_delete_redirects_to_list(self, client_logged_in, asset):
        response = client_logged_in.post(
            asset.get_absolute_url(), {"intent": "delete"}
        )

        assert response.status_code == 302
        assert response["Location"] == reverse("assets:asset_list")
        assert not Asset.objects.filter(pk=asset.pk).exists()

    def test_delete_over_htmx(self, client_logged_in, asset, htmx_headers):
        response = client_logged_in.post(
            asset.get_absolute_url(), {"intent": "delete"}, **htmx_headers
        )

        assert response["HX-Redirect"] == reverse("assets:asset_list")
        assert not Asset.objects.filter(pk=asset.pk).exists()

    def test_delete_flashes_notification(self, client_logged_in, asset):
        response = client_logged_in.post(
            asset.get_absolute_url(), {"intent": "delete"}, follow=True
        )

        messages = [str(m) for m in response.context["messages"]]
        assert "Your asset has been deleted successfully" in messages

    def test_invalid_intent(self, client_logged_in, asset):
        response = client_logged_in.post(
            asset.get_absolute_url(), {"intent": "explode"}
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["label"] == "Request validation"
        assert error["additionalData"]["intent"] == "explode"

    def test_base_member_cannot_delete(self, base_client, asset):
        response = base_client.post(
            asset.get_absolute_url(), {"intent": "delete"}
        )

        assert response.status_code == 403
        assert Asset.objects.filter(pk=asset.pk).exists()

    def test_other_organization_cannot_toggle(
        self, outsider_client, asset
    ):
        response = outsider_client.post(
            asset.get_absolute_url(), {"intent": "toggle"}
        )

        assert response.status_code == 404
        asset.refresh_from_db()
        assert asset.available_to_book is True


class TestAssetQr:
    def test_returns_png(self, client_logged_in, asset):
        response = client_logged_in.get(
            reverse("assets:asset_qr", args=[asset.pk])
        )

        assert response.status_code == 200
        assert response["Content-Type"] == "image/png"
        assert response.content.startswith(b"\x89PNG")
        assert asset.qr_codes.count() == 1

    def test_reuses_existing_code(self, client_logged_in, asset):
        QrFactory(asset=asset)

        client_logged_in.get(reverse("assets:asset_qr", args=[asset.pk]))

        assert asset.qr_codes.count() == 1


class TestCustomFieldTypes:
    def test_boolean_field_displayed(
        self, client_logged_in, asset, organization
    ):
        AssetCustomFieldValueFactory(
            asset=asset,
            custom_field=CustomFieldFactory(
                name="Insured",
                type=CustomField.TYPE_BOOLEAN,
                organization=organization,
            ),
            value={"raw": "yes", "valueBoolean": True},
        )

        response = client_logged_in.get(asset.get_absolute_url())

        assert response.context["custom_fields"][0]["display_value"] == "Yes"
