"""User and organization models for Stockroom."""

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models


class Organization(models.Model):
    """Workspace that owns locations, assets and their metadata."""

    name = models.CharField(max_length=200)
    currency = models.CharField(
        max_length=3,
        default="USD",
        help_text="ISO 4217 code used to display asset valuations",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class CustomUser(AbstractUser):
    """Extended user with display name and required, unique email."""

    display_name = models.CharField(
        max_length=255,
        blank=True,
        help_text="Human-readable name shown on notes and scans",
    )
    email = models.EmailField("email address", blank=False, unique=True)
    organizations = models.ManyToManyField(
        Organization,
        through="UserOrganization",
        related_name="members",
        blank=True,
    )

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"

    def get_display_name(self):
        """Return display_name if set, otherwise full name or username."""
        if self.display_name:
            return self.display_name
        full = self.get_full_name()
        return full if full else self.username

    def __str__(self):
        return self.get_display_name()


class UserOrganization(models.Model):
    """Membership of a user in an organization, with a role."""

    ROLE_OWNER = "OWNER"
    ROLE_ADMIN = "ADMIN"
    ROLE_BASE = "BASE"
    ROLE_SELF_SERVICE = "SELF_SERVICE"

    ROLE_CHOICES = [
        (ROLE_OWNER, "Owner"),
        (ROLE_ADMIN, "Administrator"),
        (ROLE_BASE, "Base"),
        (ROLE_SELF_SERVICE, "Self service"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="user_organizations",
    )
    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name="user_organizations",
    )
    role = models.CharField(
        max_length=20, choices=ROLE_CHOICES, default=ROLE_BASE
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "pk"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "organization"],
                name="unique_user_organization",
            ),
        ]

    def __str__(self):
        return f"{self.user} @ {self.organization} ({self.role})"
