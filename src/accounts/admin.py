"""Admin configuration for accounts app."""

from unfold.admin import ModelAdmin, TabularInline
from unfold.decorators import display

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from django.db.models import Count

from .forms import CustomUserChangeForm, CustomUserCreationForm
from .models import CustomUser, Organization, UserOrganization


class UserOrganizationInline(TabularInline):
    model = UserOrganization
    extra = 0
    fields = ["organization", "role", "created_at"]
    readonly_fields = ["created_at"]
    autocomplete_fields = ["organization"]


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin, ModelAdmin):
    add_form = CustomUserCreationForm
    form = CustomUserChangeForm
    model = CustomUser
    inlines = [UserOrganizationInline]
    list_display = [
        "display_user",
        "email",
        "display_organizations",
        "is_staff",
        "is_active",
    ]
    list_filter = ["is_active", "is_staff", "is_superuser"]
    search_fields = [
        "username",
        "email",
        "display_name",
        "first_name",
        "last_name",
    ]
    fieldsets = (
        (
            "Profile",
            {
                "classes": ["tab"],
                "fields": (
                    "username",
                    "password",
                    "display_name",
                    "first_name",
                    "last_name",
                    "email",
                ),
            },
        ),
        (
            "Permissions",
            {
                "classes": ["tab"],
                "fields": ("is_active", "is_staff", "is_superuser"),
            },
        ),
    )
    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": (
                    "username",
                    "email",
                    "display_name",
                    "password1",
                    "password2",
                ),
            },
        ),
    )

    @display(description="User", ordering="username")
    def display_user(self, obj):
        return obj.get_display_name()

    @display(description="Organizations")
    def display_organizations(self, obj):
        return ", ".join(
            f"{m.organization.name} ({m.get_role_display()})"
            for m in obj.user_organizations.select_related("organization")
        )


@admin.register(Organization)
class OrganizationAdmin(ModelAdmin):
    list_display = ["name", "currency", "member_count", "created_at"]
    search_fields = ["name"]

    def get_queryset(self, request):
        return (
            super()
            .get_queryset(request)
            .annotate(_member_count=Count("user_organizations"))
        )

    @display(description="Members", ordering="_member_count")
    def member_count(self, obj):
        return obj._member_count
