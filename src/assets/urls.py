"""URL configuration for assets app."""

from django.urls import path
from django.views.generic import RedirectView

from . import views

app_name = "assets"

urlpatterns = [
    path(
        "",
        RedirectView.as_view(pattern_name="assets:asset_list"),
        name="home",
    ),
    # Assets
    path("assets/", views.asset_list, name="asset_list"),
    path("assets/<int:pk>/", views.asset_detail, name="asset_detail"),
    path("assets/<int:pk>/qr.png", views.asset_qr, name="asset_qr"),
    path(
        "assets/<int:pk>/notes/form/",
        views.note_form,
        name="note_form",
    ),
    path("assets/<int:pk>/notes/", views.note_create, name="note_create"),
    # Bulk actions
    path(
        "assets/bulk-modal/<slug:key>/",
        views.bulk_modal,
        name="bulk_modal",
    ),
    path(
        "assets/bulk-update-location/",
        views.bulk_update_location_view,
        name="bulk_update_location",
    ),
    # Locations
    path("locations/", views.location_list, name="location_list"),
    path(
        "locations/create/",
        views.location_create,
        name="location_create",
    ),
    path(
        "locations/bulk-delete/",
        views.locations_bulk_delete,
        name="locations_bulk_delete",
    ),
    path(
        "locations/<int:pk>/",
        views.location_detail,
        name="location_detail",
    ),
    path(
        "locations/<int:pk>/edit/",
        views.location_edit,
        name="location_edit",
    ),
    path(
        "locations/<int:pk>/delete/",
        views.location_delete,
        name="location_delete",
    ),
    path(
        "locations/<int:pk>/image/",
        views.location_image_upload,
        name="location_image_upload",
    ),
    # QR scans
    path("qr/<uuid:qr_id>/", views.scan_qr, name="scan_qr"),
]
