"""Views for the assets app."""

import logging
from urllib.parse import urlencode

from django_htmx.http import HttpResponseClientRedirect, retarget
from django_ratelimit.decorators import ratelimit

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.contrib.auth.views import redirect_to_login
from django.db import transaction
from django.http import HttpResponse, JsonResponse
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils import formats, timezone
from django.utils.translation import get_language
from django.views.decorators.http import require_GET, require_POST

from stockroom.errors import (
    AppError,
    data_payload,
    error_payload,
    log_app_error,
    make_app_error,
)
from stockroom.middleware import wants_json

from .forms import LocationForm, LocationImageForm, NoteForm
from .models import Asset, Location, Note
from .services import locations as location_service
from .services.bulk import ALL_SELECTED_KEY, bulk_update_location
from .services.custom_fields import displayable_custom_fields
from .services.modals import BulkModalStore
from .services.notifications import send_notification
from .services.pagination import get_params, page_bounds, total_pages
from .services.permissions import (
    PermissionAction,
    PermissionEntity,
    has_permission,
    require_permission,
)
from .services.scans import (
    generate_qr_image,
    get_or_create_qr,
    get_qr,
    get_scan_by_qr_id,
    parse_scan_data,
    record_scan,
)

logger = logging.getLogger(__name__)

# Modals rendered by {% bulk_modal %}; anything else is a 404
BULK_MODAL_KEYS = {"location"}

INTENT_PERMISSIONS = {
    "delete": PermissionAction.DELETE,
    "toggle": PermissionAction.UPDATE,
}


def _date_display(value):
    return formats.date_format(
        timezone.localtime(value), "SHORT_DATETIME_FORMAT"
    )


def _hx_redirect(request, url):
    """Redirect that also works for htmx requests."""
    if request.htmx:
        return HttpResponseClientRedirect(url)
    return redirect(url)


def _get_asset(pk, organization, queryset=None):
    queryset = queryset if queryset is not None else Asset.objects.all()
    try:
        return queryset.get(pk=pk, organization=organization)
    except (Asset.DoesNotExist, ValueError) as cause:
        raise AppError(
            "The asset you are trying to access does not exist or you do "
            "not have permission to access it.",
            cause=cause,
            title="Asset not found",
            label="Assets",
            status=404,
            should_be_captured=False,
            additional_data={"id": pk, "organizationId": organization.pk},
        ) from cause


def _pagination_context(params, total):
    return {
        "page": params["page"],
        "per_page": params["per_page"],
        "search": params["search"] or "",
        "total": total,
        "total_pages": total_pages(total, params["per_page"]),
    }


# --- Assets ---


@login_required
def asset_list(request):
    """List the organization's assets with the bulk location modal."""
    context = require_permission(
        request, PermissionEntity.ASSET, PermissionAction.READ
    )
    params = get_params(request.GET)
    skip, take = page_bounds(params["page"], params["per_page"])

    queryset = Asset.objects.filter(
        organization=context.organization
    ).select_related("category", "location")
    if params["search"]:
        queryset = queryset.filter(title__icontains=params["search"])
    total = queryset.count()
    assets = list(queryset.order_by("-created_at", "-pk")[skip : skip + take])

    return render(
        request,
        "assets/asset_list.html",
        {
            "assets": assets,
            "can_bulk_update": has_permission(
                context.role, PermissionEntity.ASSET, PermissionAction.UPDATE
            ),
            "all_selected_key": ALL_SELECTED_KEY,
            **_pagination_context(params, total),
        },
    )


def _asset_loader(request, pk):
    context = require_permission(
        request, PermissionEntity.ASSET, PermissionAction.READ
    )
    asset = _get_asset(
        pk,
        context.organization,
        Asset.objects.select_related(
            "category", "location", "organization", "custody__custodian"
        ).prefetch_related("tags"),
    )

    custody = None
    notes = []
    last_scan = None
    if not context.is_self_service:
        if hasattr(asset, "custody"):
            custody = {
                "custodian": asset.custody.custodian.name,
                "created_at": asset.custody.created_at,
                "date_display": _date_display(asset.custody.created_at),
            }
        notes = list(asset.notes.select_related("user"))
        for note in notes:
            note.date_display = _date_display(note.created_at)

        # Only one QR code per asset for now
        qr = asset.qr_codes.order_by("created_at").first()
        if qr is not None:
            last_scan = parse_scan_data(
                get_scan_by_qr_id(qr.pk), request.user
            )

    return {
        "asset": asset,
        "custody": custody,
        "notes": notes,
        "custom_fields": displayable_custom_fields(asset),
        "last_scan": last_scan,
        "header": {"title": asset.title},
        "locale": get_language(),
        "is_self_service": context.is_self_service,
        "note_form": NoteForm(),
        "can_create_note": has_permission(
            context.role, PermissionEntity.NOTE, PermissionAction.CREATE
        ),
        "can_update": has_permission(
            context.role, PermissionEntity.ASSET, PermissionAction.UPDATE
        ),
        "can_delete": has_permission(
            context.role, PermissionEntity.ASSET, PermissionAction.DELETE
        ),
    }


def _asset_payload(loaded):
    asset = loaded["asset"]
    return {
        "asset": {
            "id": asset.pk,
            "title": asset.title,
            "description": asset.description,
            "status": asset.status,
            "availableToBook": asset.available_to_book,
            "category": (
                {
                    "id": asset.category.pk,
                    "name": asset.category.name,
                    "color": asset.category.color,
                }
                if asset.category
                else None
            ),
            "location": (
                {"id": asset.location.pk, "name": asset.location.name}
                if asset.location
                else None
            ),
            "tags": [{"id": t.pk, "name": t.name} for t in asset.tags.all()],
            "valuation": (
                str(asset.valuation) if asset.valuation is not None else None
            ),
            "custody": (
                {
                    "custodian": loaded["custody"]["custodian"],
                    "dateDisplay": loaded["custody"]["date_display"],
                }
                if loaded["custody"]
                else None
            ),
            "notes": [
                {
                    "id": note.pk,
                    "content": note.content,
                    "type": note.type,
                    "dateDisplay": note.date_display,
                }
                for note in loaded["notes"]
            ],
            "customFields": loaded["custom_fields"],
        },
        "lastScan": loaded["last_scan"],
        "header": loaded["header"],
        "locale": loaded["locale"],
    }


def _asset_action(request, pk):
    intent = request.POST.get("intent")
    try:
        if intent not in INTENT_PERMISSIONS:
            raise AppError(
                "Invalid intent.",
                title="Bad request",
                label="Request validation",
                status=400,
                should_be_captured=False,
                additional_data={"intent": intent},
            )

        context = require_permission(
            request, PermissionEntity.ASSET, INTENT_PERMISSIONS[intent]
        )
        asset = _get_asset(pk, context.organization)

        if intent == "delete":
            main_image = asset.main_image.name if asset.main_image else None
            storage = asset.main_image.storage
            with transaction.atomic():
                asset.delete()
            if main_image:
                storage.delete(main_image)

            send_notification(
                request,
                title="Asset deleted",
                message="Your asset has been deleted successfully",
                icon="trash",
                variant="error",
            )
            logger.info("Asset %s deleted by user %s", pk, request.user.pk)
            return _hx_redirect(request, reverse("assets:asset_list"))

        available_to_book = request.POST.get("available_to_book") == "on"
        Asset.objects.filter(pk=asset.pk).update(
            available_to_book=available_to_book, updated_at=timezone.now()
        )
        send_notification(
            request,
            title="Asset availability status updated successfully",
            message="Your asset's availability for booking has been updated",
            icon="success",
            variant="success",
        )
        return JsonResponse(data_payload())
    except Exception as cause:
        reason = make_app_error(
            cause, {"userId": request.user.pk, "id": pk}
        )
        log_app_error(reason)
        return JsonResponse(error_payload(reason), status=reason.status)


@login_required
def asset_detail(request, pk):
    """Asset page: GET renders the asset, POST runs an ``intent``."""
    if request.method == "POST":
        return _asset_action(request, pk)

    loaded = _asset_loader(request, pk)
    if wants_json(request) and not request.htmx:
        return JsonResponse(data_payload(**_asset_payload(loaded)))
    return render(request, "assets/asset_detail.html", loaded)


@login_required
@require_GET
def asset_qr(request, pk):
    """Serve the PNG of the asset's QR code."""
    context = require_permission(
        request, PermissionEntity.QR, PermissionAction.READ
    )
    asset = _get_asset(pk, context.organization)
    qr = get_or_create_qr(asset)
    image = generate_qr_image(request.build_absolute_uri(qr.get_absolute_url()))
    return HttpResponse(image.read(), content_type="image/png")


@ratelimit(key="ip", rate="60/m", method="GET", block=True)
@require_GET
def scan_qr(request, qr_id):
    """Record a scan of a printed QR code and send the user to the asset."""
    qr = get_qr(qr_id)
    record_scan(
        qr,
        user=request.user,
        latitude=request.GET.get("latitude"),
        longitude=request.GET.get("longitude"),
        user_agent=request.META.get("HTTP_USER_AGENT", ""),
    )
    asset_url = qr.asset.get_absolute_url()
    if not request.user.is_authenticated:
        return redirect_to_login(asset_url)
    return redirect(asset_url)


# --- Bulk actions ---


@login_required
@require_POST
def bulk_modal(request, key):
    """Open or close a bulk-action modal and re-render it."""
    if key not in BULK_MODAL_KEYS:
        raise AppError(
            "Unknown bulk action.",
            title="Not found",
            label="Bulk",
            status=404,
            should_be_captured=False,
            additional_data={"key": key},
        )
    context = require_permission(
        request, PermissionEntity.ASSET, PermissionAction.UPDATE
    )

    store = BulkModalStore(request)
    modal = store.get(key)
    action = request.POST.get("action")
    changed = False
    if action == "open":
        changed = modal.open()
    elif action == "close":
        changed = modal.close()
        if not changed:
            logger.debug("Ignored close of modal %r while submitting", key)
    if changed:
        store.save(modal)

    return render(
        request,
        "assets/partials/bulk_modal.html",
        {
            "modal": modal,
            "locations": Location.objects.filter(
                organization=context.organization
            ).order_by("name"),
        },
    )


@login_required
@require_POST
def bulk_update_location_view(request):
    """Move the selected assets to another location."""
    context = require_permission(
        request, PermissionEntity.ASSET, PermissionAction.UPDATE
    )
    if request.POST.get("intent") != "bulk-update-location":
        raise AppError(
            "Invalid intent.",
            title="Bad request",
            label="Request validation",
            status=400,
            should_be_captured=False,
            additional_data={"intent": request.POST.get("intent")},
        )

    asset_ids = request.POST.getlist("asset_ids")
    if not asset_ids:
        raise AppError(
            "Select at least one asset.",
            title="Nothing selected",
            label="Bulk",
            status=400,
            should_be_captured=False,
        )

    store = BulkModalStore(request)
    modal = store.get(
        "location",
        on_click=lambda: logger.info(
            "User %s confirmed a bulk location update", request.user.pk
        ),
    )
    with store.submission(modal):
        moved = bulk_update_location(
            asset_ids,
            request.POST.get("location") or None,
            context.organization,
            request.user,
            search=(request.POST.get("s") or "").strip() or None,
        )

    send_notification(
        request,
        title="Location updated",
        message=f"{moved} asset{'s' if moved != 1 else ''} moved.",
    )
    if wants_json(request) and not request.htmx:
        return JsonResponse(data_payload(updated=moved))

    url = reverse("assets:asset_list")
    search = request.POST.get("s")
    if search:
        url = f"{url}?{urlencode({'s': search})}"
    return _hx_redirect(request, url)


# --- Notes ---


@login_required
@require_GET
def note_form(request, pk):
    """Render the note form, collapsed or in editing state."""
    context = require_permission(
        request, PermissionEntity.NOTE, PermissionAction.CREATE
    )
    asset = _get_asset(pk, context.organization)
    return render(
        request,
        "assets/partials/note_form.html",
        {
            "asset": asset,
            "note_form": NoteForm(),
            "editing": request.GET.get("editing") == "1",
        },
    )


@login_required
@require_POST
@ratelimit(key="user", rate="30/m", method="POST", block=True)
def note_create(request, pk):
    """Add a comment to an asset's timeline."""
    context = require_permission(
        request, PermissionEntity.NOTE, PermissionAction.CREATE
    )
    asset = _get_asset(pk, context.organization)
    form = NoteForm(request.POST)

    if not form.is_valid():
        response = render(
            request,
            "assets/partials/note_form.html",
            {"asset": asset, "note_form": form, "editing": True},
            status=200 if request.htmx else 400,
        )
        if request.htmx:
            return retarget(response, f"#note-form-{asset.pk}")
        return response

    Note.objects.create(
        asset=asset,
        user=request.user,
        type=Note.TYPE_COMMENT,
        content=form.cleaned_data["content"],
    )
    logger.info("Note added to asset %s by user %s", asset.pk, request.user.pk)

    if not request.htmx:
        messages.success(request, "Note created.")
        return redirect(asset.get_absolute_url())

    notes = list(asset.notes.select_related("user"))
    for note in notes:
        note.date_display = _date_display(note.created_at)
    return render(
        request,
        "assets/partials/notes.html",
        {
            "asset": asset,
            "notes": notes,
            "note_form": NoteForm(),
            "editing": False,
            "can_create_note": True,
        },
    )


# --- Locations ---


@login_required
def location_list(request):
    """List locations with search and pagination."""
    context = require_permission(
        request, PermissionEntity.LOCATION, PermissionAction.READ
    )
    params = get_params(request.GET)
    locations, total = location_service.get_locations(
        context.organization,
        page=params["page"],
        per_page=params["per_page"],
        search=params["search"],
    )
    return render(
        request,
        "assets/location_list.html",
        {
            "locations": locations,
            "all_selected_key": ALL_SELECTED_KEY,
            "can_delete": has_permission(
                context.role,
                PermissionEntity.LOCATION,
                PermissionAction.DELETE,
            ),
            "can_create": has_permission(
                context.role,
                PermissionEntity.LOCATION,
                PermissionAction.CREATE,
            ),
            **_pagination_context(params, total),
        },
    )


@login_required
def location_detail(request, pk):
    """Show a location and a page of the assets it holds."""
    context = require_permission(
        request, PermissionEntity.LOCATION, PermissionAction.READ
    )
    params = get_params(request.GET)
    location, assets, total = location_service.get_location(
        pk,
        context.organization,
        page=params["page"],
        per_page=params["per_page"],
        search=params["search"],
        order_by=request.GET.get("order_by", "created_at"),
        order_direction=request.GET.get("order_direction", "desc"),
        user_organizations=context.user_organizations,
        request=request,
    )
    return render(
        request,
        "assets/location_detail.html",
        {
            "location": location,
            "assets": assets,
            "total_assets": total,
            "image_form": LocationImageForm(),
            "can_update": has_permission(
                context.role,
                PermissionEntity.LOCATION,
                PermissionAction.UPDATE,
            ),
            "can_delete": has_permission(
                context.role,
                PermissionEntity.LOCATION,
                PermissionAction.DELETE,
            ),
            **_pagination_context(params, location.matching_asset_count),
        },
    )


def _duplicate_name(form, error):
    if error.status == 400:
        form.add_error("name", error.message)
        return True
    return False


@login_required
def location_create(request):
    context = require_permission(
        request, PermissionEntity.LOCATION, PermissionAction.CREATE
    )
    form = LocationForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        try:
            location = location_service.create_location(
                user=request.user,
                organization=context.organization,
                **form.cleaned_data,
            )
        except AppError as error:
            if not _duplicate_name(form, error):
                raise
        else:
            messages.success(request, f"Location '{location.name}' created.")
            return redirect(location.get_absolute_url())

    return render(
        request, "assets/location_form.html", {"form": form, "location": None}
    )


@login_required
def location_edit(request, pk):
    context = require_permission(
        request, PermissionEntity.LOCATION, PermissionAction.UPDATE
    )
    location, _, _ = location_service.get_location(
        pk, context.organization, per_page=1
    )
    form = LocationForm(
        request.POST or None,
        initial={
            "name": location.name,
            "address": location.address,
            "description": location.description,
        },
    )
    if request.method == "POST" and form.is_valid():
        try:
            location = location_service.update_location(
                pk,
                context.organization,
                request.user,
                **form.cleaned_data,
            )
        except AppError as error:
            if not _duplicate_name(form, error):
                raise
        else:
            messages.success(request, f"Location '{location.name}' updated.")
            return redirect(location.get_absolute_url())

    return render(
        request,
        "assets/location_form.html",
        {"form": form, "location": location},
    )


@login_required
def location_delete(request, pk):
    context = require_permission(
        request, PermissionEntity.LOCATION, PermissionAction.DELETE
    )
    if request.method != "POST":
        location, _, total = location_service.get_location(
            pk, context.organization, per_page=1
        )
        return render(
            request,
            "assets/location_confirm_delete.html",
            {"location": location, "total": total},
        )

    location = location_service.delete_location(pk, context.organization)
    send_notification(
        request,
        title="Location deleted",
        message=f"Location '{location.name}' has been deleted.",
        icon="trash",
        variant="error",
    )
    return _hx_redirect(request, reverse("assets:location_list"))


@login_required
@require_POST
def locations_bulk_delete(request):
    """Delete the selected locations, or all of them with the sentinel."""
    context = require_permission(
        request, PermissionEntity.LOCATION, PermissionAction.DELETE
    )
    location_ids = request.POST.getlist("location_ids")
    if not location_ids:
        raise AppError(
            "Select at least one location.",
            title="Nothing selected",
            label="Location",
            status=400,
            should_be_captured=False,
        )

    deleted = location_service.bulk_delete_locations(
        location_ids, context.organization
    )
    send_notification(
        request,
        title="Locations deleted",
        message=f"{deleted} location{'s' if deleted != 1 else ''} deleted.",
        icon="trash",
        variant="error",
    )
    if wants_json(request) and not request.htmx:
        return JsonResponse(data_payload(deleted=deleted))
    return _hx_redirect(request, reverse("assets:location_list"))


@login_required
@require_POST
def location_image_upload(request, pk):
    context = require_permission(
        request, PermissionEntity.LOCATION, PermissionAction.UPDATE
    )
    location, _, _ = location_service.get_location(
        pk, context.organization, per_page=1
    )
    form = LocationImageForm(request.POST, request.FILES)
    if not form.is_valid():
        raise AppError(
            " ".join(form.errors.get("image", ["Invalid image."])),
            title="Invalid image",
            label="Image",
            status=400,
            should_be_captured=False,
            additional_data={"locationId": location.pk},
        )

    location_service.update_location_image(
        context.organization,
        location,
        form.cleaned_data["image"],
        user=request.user,
    )
    messages.success(request, "Location image updated.")
    return _hx_redirect(request, location.get_absolute_url())
