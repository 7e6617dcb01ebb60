"""Resolve the organization a request is acting in."""

from .models import UserOrganization

ORGANIZATION_SESSION_KEY = "organization_id"


def get_user_organizations(user):
    """Return the user's memberships, oldest first."""
    if not user.is_authenticated:
        return UserOrganization.objects.none()
    return UserOrganization.objects.filter(user=user).select_related(
        "organization"
    )


def get_current_membership(request):
    """Return the :class:`UserOrganization` for the current request.

    Uses the organization stored in the session when the user still
    belongs to it, otherwise falls back to the first membership.
    Returns None for users without any membership.
    """
    cached = getattr(request, "_current_membership", None)
    if cached is not None:
        return cached

    memberships = get_user_organizations(request.user)
    membership = None
    organization_id = request.session.get(ORGANIZATION_SESSION_KEY)
    if organization_id:
        membership = memberships.filter(
            organization_id=organization_id
        ).first()
    if membership is None:
        membership = memberships.first()

    request._current_membership = membership
    return membership


def set_current_organization(request, organization_id) -> bool:
    """Switch the session to ``organization_id`` if the user is a member."""
    membership = (
        get_user_organizations(request.user)
        .filter(organization_id=organization_id)
        .first()
    )
    if membership is None:
        return False
    request.session[ORGANIZATION_SESSION_KEY] = membership.organization_id
    request._current_membership = membership
    return True
