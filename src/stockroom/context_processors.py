"""Context processors for site-wide template variables."""

from django.conf import settings

from accounts.models import UserOrganization
from accounts.organizations import (
    get_current_membership,
    get_user_organizations,
)


def site_settings(request):
    """Add site configuration to template context."""
    return {
        "SITE_NAME": settings.SITE_NAME,
        "SITE_URL": settings.SITE_URL,
    }


def current_organization(request):
    """Expose the organization the request acts in and the user's others."""
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return {}

    membership = get_current_membership(request)
    if membership is None:
        return {"user_memberships": []}

    return {
        "current_membership": membership,
        "current_organization": membership.organization,
        "current_role": membership.role,
        "is_self_service": (
            membership.role == UserOrganization.ROLE_SELF_SERVICE
        ),
        "user_memberships": list(get_user_organizations(user)),
    }
