"""Permission checking for organization role-based access control."""

from dataclasses import dataclass

from accounts.models import Organization, UserOrganization
from accounts.organizations import (
    get_current_membership,
    get_user_organizations,
)
from stockroom.errors import AppError


class PermissionEntity:
    ASSET = "asset"
    LOCATION = "location"
    NOTE = "note"
    QR = "qr"


class PermissionAction:
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


ALL_ACTIONS = frozenset(
    {
        PermissionAction.CREATE,
        PermissionAction.READ,
        PermissionAction.UPDATE,
        PermissionAction.DELETE,
    }
)

# Owners and administrators may do anything. Base members can read
# everything and write notes. Self-service members only browse.
ROLE_PERMISSIONS = {
    UserOrganization.ROLE_OWNER: {
        PermissionEntity.ASSET: ALL_ACTIONS,
        PermissionEntity.LOCATION: ALL_ACTIONS,
        PermissionEntity.NOTE: ALL_ACTIONS,
        PermissionEntity.QR: ALL_ACTIONS,
    },
    UserOrganization.ROLE_ADMIN: {
        PermissionEntity.ASSET: ALL_ACTIONS,
        PermissionEntity.LOCATION: ALL_ACTIONS,
        PermissionEntity.NOTE: ALL_ACTIONS,
        PermissionEntity.QR: ALL_ACTIONS,
    },
    UserOrganization.ROLE_BASE: {
        PermissionEntity.ASSET: {PermissionAction.READ},
        PermissionEntity.LOCATION: {PermissionAction.READ},
        PermissionEntity.NOTE: {
            PermissionAction.READ,
            PermissionAction.CREATE,
        },
        PermissionEntity.QR: {PermissionAction.READ},
    },
    UserOrganization.ROLE_SELF_SERVICE: {
        PermissionEntity.ASSET: {PermissionAction.READ},
        PermissionEntity.LOCATION: {PermissionAction.READ},
    },
}


@dataclass
class OrganizationContext:
    """What a permitted request is allowed to act on."""

    organization: Organization
    role: str
    user_organizations: list

    @property
    def organization_id(self):
        return self.organization.pk

    @property
    def is_self_service(self) -> bool:
        return self.role == UserOrganization.ROLE_SELF_SERVICE


def has_permission(role: str, entity: str, action: str) -> bool:
    """Check whether ``role`` may perform ``action`` on ``entity``."""
    return action in ROLE_PERMISSIONS.get(role, {}).get(entity, ())


def require_permission(request, entity: str, action: str):
    """Return the request's :class:`OrganizationContext` or raise 403.

    Raises an :class:`AppError` when the user has no organization or
    their role in the current one does not grant ``action`` on
    ``entity``.
    """
    user = request.user
    membership = get_current_membership(request)

    if membership is None:
        raise AppError(
            "You are not a member of any organization.",
            title="Forbidden",
            label="Permission",
            status=403,
            should_be_captured=False,
            additional_data={"userId": user.pk},
        )

    if not has_permission(membership.role, entity, action):
        raise AppError(
            "You do not have permission to perform this action.",
            title="Forbidden",
            label="Permission",
            status=403,
            should_be_captured=False,
            additional_data={
                "userId": user.pk,
                "entity": entity,
                "action": action,
            },
        )

    return OrganizationContext(
        organization=membership.organization,
        role=membership.role,
        user_organizations=list(get_user_organizations(user)),
    )
