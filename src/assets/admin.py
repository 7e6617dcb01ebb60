"""Admin configuration for assets app using django-unfold."""

from unfold.admin import ModelAdmin, TabularInline
from unfold.contrib.filters.admin import (
    ChoicesDropdownFilter,
    MultipleRelatedDropdownFilter,
    RelatedDropdownFilter,
)
from unfold.decorators import action, display

from django.contrib import admin, messages
from django.db.models import Count
from django.utils.html import format_html

from .models import (
    Asset,
    AssetCustomFieldValue,
    Category,
    Custody,
    CustomField,
    Image,
    Location,
    Note,
    Qr,
    Scan,
    Tag,
    TeamMember,
)
from .services.locations import bulk_delete_locations


class NoteInline(TabularInline):
    model = Note
    extra = 0
    fields = ["type", "content", "user", "created_at"]
    readonly_fields = ["created_at"]


class CustomFieldValueInline(TabularInline):
    model = AssetCustomFieldValue
    extra = 0
    fields = ["custom_field", "value"]


class QrInline(TabularInline):
    model = Qr
    extra = 0
    fields = ["id", "created_at"]
    readonly_fields = ["id", "created_at"]


class CustodyInline(TabularInline):
    model = Custody
    extra = 0
    fields = ["custodian", "created_at"]
    readonly_fields = ["created_at"]


class ScanInline(TabularInline):
    model = Scan
    extra = 0
    fields = ["user", "latitude", "longitude", "user_agent", "created_at"]
    readonly_fields = fields


@admin.register(Tag)
class TagAdmin(ModelAdmin):
    list_display = ["name", "organization", "display_asset_count"]
    list_filter = [("organization", RelatedDropdownFilter)]
    search_fields = ["name"]

    @display(description="Assets")
    def display_asset_count(self, obj):
        return obj.assets.count()


@admin.register(Category)
class CategoryAdmin(ModelAdmin):
    list_display = [
        "name",
        "display_color",
        "organization",
        "display_asset_count",
    ]
    list_filter = [("organization", RelatedDropdownFilter)]
    search_fields = ["name"]

    @display(description="Color")
    def display_color(self, obj):
        return format_html(
            '<span style="display:inline-block;width:12px;height:12px;'
            'border-radius:9999px;background:{}"></span> {}',
            obj.color,
            obj.color,
        )

    @display(description="Assets")
    def display_asset_count(self, obj):
        return obj.assets.count()


@admin.register(Image)
class ImageAdmin(ModelAdmin):
    list_display = ["file", "kind", "organization", "updated_at"]
    list_filter = ["kind", ("organization", RelatedDropdownFilter)]
    readonly_fields = ["created_at", "updated_at"]


@admin.register(Location)
class LocationAdmin(ModelAdmin):
    list_display = [
        "name",
        "organization",
        "address",
        "display_asset_count",
        "updated_at",
    ]
    list_filter = [("organization", RelatedDropdownFilter)]
    search_fields = ["name", "address", "description"]
    autocomplete_fields = ["organization"]
    readonly_fields = ["image", "created_at", "updated_at"]
    actions = ["delete_with_images"]

    def get_queryset(self, request):
        return (
            super()
            .get_queryset(request)
            .annotate(_asset_count=Count("assets"))
        )

    @display(description="Assets", ordering="_asset_count")
    def display_asset_count(self, obj):
        return obj._asset_count

    @action(description="Delete selected locations and their images")
    def delete_with_images(self, request, queryset):
        deleted = 0
        by_organization = {}
        for location in queryset.select_related("organization"):
            by_organization.setdefault(location.organization, []).append(
                location.pk
            )
        for organization, ids in by_organization.items():
            deleted += bulk_delete_locations(ids, organization)
        messages.success(request, f"{deleted} location(s) deleted.")


@admin.register(TeamMember)
class TeamMemberAdmin(ModelAdmin):
    list_display = ["name", "organization", "user"]
    list_filter = [("organization", RelatedDropdownFilter)]
    search_fields = ["name", "user__username", "user__email"]


@admin.register(Asset)
class AssetAdmin(ModelAdmin):
    list_display = [
        "title",
        "display_status",
        "category",
        "location",
        "available_to_book",
        "organization",
        "updated_at",
    ]
    list_filter = [
        ("status", ChoicesDropdownFilter),
        ("organization", RelatedDropdownFilter),
        ("category", RelatedDropdownFilter),
        ("location", RelatedDropdownFilter),
        ("tags", MultipleRelatedDropdownFilter),
        "available_to_book",
    ]
    list_filter_submit = True
    search_fields = ["title", "description"]
    autocomplete_fields = ["organization", "location"]
    readonly_fields = ["created_by", "created_at", "updated_at"]
    inlines = [CustodyInline, CustomFieldValueInline, QrInline, NoteInline]

    @display(
        description="Status",
        label={
            Asset.STATUS_AVAILABLE: "success",
            Asset.STATUS_IN_CUSTODY: "warning",
            Asset.STATUS_CHECKED_OUT: "info",
        },
    )
    def display_status(self, obj):
        return obj.status

    @action(description="Mark as available to book")
    def mark_bookable(self, request, queryset):
        updated = queryset.update(available_to_book=True)
        messages.success(request, f"{updated} asset(s) marked as bookable.")

    @action(description="Mark as unavailable to book")
    def mark_unbookable(self, request, queryset):
        updated = queryset.update(available_to_book=False)
        messages.success(request, f"{updated} asset(s) marked as unbookable.")

    actions = ["mark_bookable", "mark_unbookable"]


@admin.register(Note)
class NoteAdmin(ModelAdmin):
    list_display = ["asset", "type", "user", "created_at"]
    list_filter = [("type", ChoicesDropdownFilter)]
    search_fields = ["content", "asset__title"]
    autocomplete_fields = ["asset"]


@admin.register(CustomField)
class CustomFieldAdmin(ModelAdmin):
    list_display = ["name", "type", "active", "organization"]
    list_filter = [
        ("type", ChoicesDropdownFilter),
        "active",
        ("organization", RelatedDropdownFilter),
    ]
    search_fields = ["name"]


@admin.register(Qr)
class QrAdmin(ModelAdmin):
    list_display = ["id", "asset", "organization", "display_scan_count"]
    search_fields = ["id", "asset__title"]
    autocomplete_fields = ["asset"]
    inlines = [ScanInline]

    def get_queryset(self, request):
        return (
            super().get_queryset(request).annotate(_scan_count=Count("scans"))
        )

    @display(description="Scans", ordering="_scan_count")
    def display_scan_count(self, obj):
        return obj._scan_count
