"""Models for Stockroom asset and location tracking."""

import uuid

from django.conf import settings
from django.db import models
from django.urls import reverse


def image_upload_path(instance, filename):
    """Store images under ``<organization>/<kind>/<owner>/<filename>``."""
    kind = instance.kind or "images"
    owner = instance.owner_id or "unassigned"
    return f"{instance.organization_id}/{kind}/{owner}/{filename}"


def thumbnail_upload_path(instance, filename):
    kind = instance.kind or "images"
    owner = instance.owner_id or "unassigned"
    return f"{instance.organization_id}/{kind}/{owner}/thumbnails/{filename}"


class Image(models.Model):
    """Uploaded picture, resized on upload, with a square thumbnail."""

    file = models.ImageField(upload_to=image_upload_path)
    thumbnail = models.ImageField(
        upload_to=thumbnail_upload_path, blank=True, null=True
    )
    content_type = models.CharField(max_length=100, default="image/jpeg")
    kind = models.CharField(
        max_length=30,
        default="locations",
        help_text="Upload folder, e.g. 'locations'",
    )
    owner_id = models.PositiveBigIntegerField(
        null=True,
        blank=True,
        help_text="Primary key of the record the image was uploaded for",
    )
    organization = models.ForeignKey(
        "accounts.Organization",
        on_delete=models.CASCADE,
        related_name="images",
    )
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-updated_at"]

    def __str__(self):
        return self.file.name

    def delete_files(self):
        """Remove the stored image and thumbnail from storage."""
        for field in (self.file, self.thumbnail):
            if field and field.name:
                field.storage.delete(field.name)


class Category(models.Model):
    """Asset classification, scoped to an organization."""

    name = models.CharField(max_length=100)
    color = models.CharField(max_length=7, default="#808080")
    organization = models.ForeignKey(
        "accounts.Organization",
        on_delete=models.CASCADE,
        related_name="categories",
    )

    class Meta:
        verbose_name_plural = "categories"
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "name"],
                name="unique_category_per_organization",
            ),
        ]

    def __str__(self):
        return self.name


class Tag(models.Model):
    """Free-form label attached to assets."""

    name = models.CharField(max_length=50)
    organization = models.ForeignKey(
        "accounts.Organization",
        on_delete=models.CASCADE,
        related_name="tags",
    )

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "name"],
                name="unique_tag_per_organization",
            ),
        ]

    def __str__(self):
        return self.name


class Location(models.Model):
    """Physical place where assets are kept.

    Names are unique within an organization. Assets point at a location
    but are not owned by it; deleting a location leaves its assets
    without one.
    """

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    address = models.CharField(max_length=500, blank=True)
    organization = models.ForeignKey(
        "accounts.Organization",
        on_delete=models.CASCADE,
        related_name="locations",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_locations",
    )
    image = models.OneToOneField(
        Image,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="location",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-updated_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "name"],
                name="unique_location_name_per_organization",
            ),
        ]
        indexes = [
            models.Index(
                fields=["organization", "updated_at"],
                name="idx_location_org_updated",
            ),
        ]

    def __str__(self):
        return self.name

    def get_absolute_url(self):
        return reverse("assets:location_detail", kwargs={"pk": self.pk})

    @property
    def image_url(self):
        if self.image_id and self.image.file:
            return self.image.file.url
        return None

    @property
    def thumbnail_url(self):
        if self.image_id and self.image.thumbnail:
            return self.image.thumbnail.url
        return self.image_url


class TeamMember(models.Model):
    """Person who can hold assets in custody, with or without an account."""

    name = models.CharField(max_length=200)
    organization = models.ForeignKey(
        "accounts.Organization",
        on_delete=models.CASCADE,
        related_name="team_members",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="team_memberships",
    )

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    @property
    def email(self):
        return self.user.email if self.user_id else ""


class Asset(models.Model):
    """Trackable item belonging to an organization."""

    STATUS_AVAILABLE = "AVAILABLE"
    STATUS_IN_CUSTODY = "IN_CUSTODY"
    STATUS_CHECKED_OUT = "CHECKED_OUT"

    STATUS_CHOICES = [
        (STATUS_AVAILABLE, "Available"),
        (STATUS_IN_CUSTODY, "In custody"),
        (STATUS_CHECKED_OUT, "Checked out"),
    ]

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default=STATUS_AVAILABLE
    )
    available_to_book = models.BooleanField(
        default=True,
        help_text="Asset is available for being used in bookings",
    )
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assets",
    )
    location = models.ForeignKey(
        Location,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assets",
    )
    tags = models.ManyToManyField(Tag, blank=True, related_name="assets")
    valuation = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )
    main_image = models.ImageField(
        upload_to="assets/", blank=True, null=True
    )
    organization = models.ForeignKey(
        "accounts.Organization",
        on_delete=models.CASCADE,
        related_name="assets",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_assets",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["organization", "status"],
                name="idx_asset_org_status",
            ),
            models.Index(fields=["created_at"], name="idx_asset_created_at"),
        ]

    def __str__(self):
        return self.title

    def get_absolute_url(self):
        return reverse("assets:asset_detail", kwargs={"pk": self.pk})

    @property
    def is_available(self):
        return self.status == self.STATUS_AVAILABLE


class Custody(models.Model):
    """Assignment of an asset to a team member."""

    asset = models.OneToOneField(
        Asset, on_delete=models.CASCADE, related_name="custody"
    )
    custodian = models.ForeignKey(
        TeamMember, on_delete=models.CASCADE, related_name="custodies"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "custodies"

    def __str__(self):
        return f"{self.asset} held by {self.custodian}"


class Note(models.Model):
    """Comment or automatic update written on an asset's timeline."""

    TYPE_COMMENT = "COMMENT"
    TYPE_UPDATE = "UPDATE"

    TYPE_CHOICES = [
        (TYPE_COMMENT, "Comment"),
        (TYPE_UPDATE, "Update"),
    ]

    content = models.TextField()
    type = models.CharField(
        max_length=10, choices=TYPE_CHOICES, default=TYPE_COMMENT
    )
    asset = models.ForeignKey(
        Asset, on_delete=models.CASCADE, related_name="notes"
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notes",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-pk"]

    def __str__(self):
        return f"{self.get_type_display()} on {self.asset}"


class CustomField(models.Model):
    """Organization-defined extra attribute for assets."""

    TYPE_TEXT = "TEXT"
    TYPE_MULTILINE_TEXT = "MULTILINE_TEXT"
    TYPE_BOOLEAN = "BOOLEAN"
    TYPE_DATE = "DATE"
    TYPE_OPTION = "OPTION"

    TYPE_CHOICES = [
        (TYPE_TEXT, "Text"),
        (TYPE_MULTILINE_TEXT, "Multiline text"),
        (TYPE_BOOLEAN, "Boolean"),
        (TYPE_DATE, "Date"),
        (TYPE_OPTION, "Option"),
    ]

    name = models.CharField(max_length=100)
    type = models.CharField(
        max_length=20, choices=TYPE_CHOICES, default=TYPE_TEXT
    )
    options = models.JSONField(default=list, blank=True)
    active = models.BooleanField(default=True)
    organization = models.ForeignKey(
        "accounts.Organization",
        on_delete=models.CASCADE,
        related_name="custom_fields",
    )

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "name"],
                name="unique_custom_field_per_organization",
            ),
        ]

    def __str__(self):
        return self.name


class AssetCustomFieldValue(models.Model):
    """Value of a custom field for one asset.

    ``value`` is a JSON object holding the submitted ``raw`` value plus a
    typed copy (``valueText``, ``valueBoolean``, ``valueDate`` or
    ``valueOption``).
    """

    asset = models.ForeignKey(
        Asset, on_delete=models.CASCADE, related_name="custom_field_values"
    )
    custom_field = models.ForeignKey(
        CustomField, on_delete=models.CASCADE, related_name="values"
    )
    value = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["custom_field__name"]
        constraints = [
            models.UniqueConstraint(
                fields=["asset", "custom_field"],
                name="unique_custom_field_value_per_asset",
            ),
        ]

    def __str__(self):
        return f"{self.custom_field.name}: {self.value.get('raw')}"


class Qr(models.Model):
    """QR code printed on an asset label."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    asset = models.ForeignKey(
        Asset, on_delete=models.CASCADE, related_name="qr_codes"
    )
    organization = models.ForeignKey(
        "accounts.Organization",
        on_delete=models.CASCADE,
        related_name="qr_codes",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "QR code"
        ordering = ["created_at"]

    def __str__(self):
        return str(self.id)

    def get_absolute_url(self):
        return reverse("assets:scan_qr", kwargs={"qr_id": self.pk})


class Scan(models.Model):
    """A single scan of a QR code."""

    qr = models.ForeignKey(Qr, on_delete=models.CASCADE, related_name="scans")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="scans",
    )
    latitude = models.DecimalField(
        max_digits=9, decimal_places=6, null=True, blank=True
    )
    longitude = models.DecimalField(
        max_digits=9, decimal_places=6, null=True, blank=True
    )
    user_agent = models.CharField(max_length=500, blank=True)
    manual_update = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-pk"]

    def __str__(self):
        return f"Scan of {self.qr_id} at {self.created_at}"
