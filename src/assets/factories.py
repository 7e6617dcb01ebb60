"""Factory Boy factories for Stockroom test data generation."""

import factory
from factory.django import DjangoModelFactory


class OrganizationFactory(DjangoModelFactory):
    """Factory for Organization model."""

    class Meta:
        model = "accounts.Organization"

    name = factory.Sequence(lambda n: f"Organization {n}")
    currency = "USD"


class UserFactory(DjangoModelFactory):
    """Factory for CustomUser model."""

    class Meta:
        model = "accounts.CustomUser"
        skip_postgeneration_save = True

    username = factory.Sequence(lambda n: f"user{n}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@example.com")
    display_name = factory.Faker("name")
    is_active = True

    @factory.post_generation
    def password(self, create, extracted, **kwargs):
        pwd = extracted or "testpass123!"
        self.set_password(pwd)
        if create:
            self.save(update_fields=["password"])


class UserOrganizationFactory(DjangoModelFactory):
    """Factory for UserOrganization memberships."""

    class Meta:
        model = "accounts.UserOrganization"

    user = factory.SubFactory(UserFactory)
    organization = factory.SubFactory(OrganizationFactory)
    role = "OWNER"


class TagFactory(DjangoModelFactory):
    """Factory for Tag model."""

    class Meta:
        model = "assets.Tag"

    name = factory.Sequence(lambda n: f"tag-{n}")
    organization = factory.SubFactory(OrganizationFactory)


class CategoryFactory(DjangoModelFactory):
    """Factory for Category model."""

    class Meta:
        model = "assets.Category"

    name = factory.Sequence(lambda n: f"Category {n}")
    color = "#ab339f"
    organization = factory.SubFactory(OrganizationFactory)


class LocationFactory(DjangoModelFactory):
    """Factory for Location model."""

    class Meta:
        model = "assets.Location"

    name = factory.Sequence(lambda n: f"Location {n}")
    address = factory.Faker("address")
    organization = factory.SubFactory(OrganizationFactory)


class ImageFactory(DjangoModelFactory):
    """Factory for stored location images."""

    class Meta:
        model = "assets.Image"

    file = factory.django.ImageField(
        filename="test.jpg", width=100, height=100
    )
    kind = "locations"
    organization = factory.SubFactory(OrganizationFactory)


class AssetFactory(DjangoModelFactory):
    """Factory for Asset model."""

    class Meta:
        model = "assets.Asset"

    title = factory.Sequence(lambda n: f"Asset {n}")
    organization = factory.SubFactory(OrganizationFactory)
    category = factory.SubFactory(
        CategoryFactory,
        organization=factory.SelfAttribute("..organization"),
    )
    location = factory.SubFactory(
        LocationFactory,
        organization=factory.SelfAttribute("..organization"),
    )
    created_by = factory.SubFactory(UserFactory)


class TeamMemberFactory(DjangoModelFactory):
    """Factory for TeamMember model."""

    class Meta:
        model = "assets.TeamMember"

    name = factory.Faker("name")
    organization = factory.SubFactory(OrganizationFactory)


class CustodyFactory(DjangoModelFactory):
    """Factory for Custody model."""

    class Meta:
        model = "assets.Custody"

    asset = factory.SubFactory(AssetFactory, status="IN_CUSTODY")
    custodian = factory.SubFactory(
        TeamMemberFactory,
        organization=factory.SelfAttribute("..asset.organization"),
    )


class NoteFactory(DjangoModelFactory):
    """Factory for Note model."""

    class Meta:
        model = "assets.Note"

    asset = factory.SubFactory(AssetFactory)
    content = factory.Faker("sentence")
    type = "COMMENT"


class CustomFieldFactory(DjangoModelFactory):
    """Factory for CustomField model."""

    class Meta:
        model = "assets.CustomField"

    name = factory.Sequence(lambda n: f"Field {n}")
    type = "TEXT"
    organization = factory.SubFactory(OrganizationFactory)


class AssetCustomFieldValueFactory(DjangoModelFactory):
    """Factory for AssetCustomFieldValue model."""

    class Meta:
        model = "assets.AssetCustomFieldValue"

    asset = factory.SubFactory(AssetFactory)
    custom_field = factory.SubFactory(
        CustomFieldFactory,
        organization=factory.SelfAttribute("..asset.organization"),
    )
    value = factory.LazyFunction(lambda: {"raw": "value", "valueText": "value"})


class QrFactory(DjangoModelFactory):
    """Factory for Qr model."""

    class Meta:
        model = "assets.Qr"

    asset = factory.SubFactory(AssetFactory)
    organization = factory.LazyAttribute(lambda o: o.asset.organization)


class ScanFactory(DjangoModelFactory):
    """Factory for Scan model."""

    class Meta:
        model = "assets.Scan"

    qr = factory.SubFactory(QrFactory)
    user_agent = "Mozilla/5.0"
