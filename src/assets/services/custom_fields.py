"""Display helpers for asset custom field values."""

import datetime
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from django.core.exceptions import ValidationError
from django.core.validators import URLValidator
from django.utils import formats

from ..models import CustomField

_url_validator = URLValidator(schemes=["http", "https"])

REF_PARAM = ("ref", "stockroom")


def is_link(value) -> bool:
    """Return True when ``value`` is an http(s) URL."""
    if not isinstance(value, str):
        return False
    try:
        _url_validator(value.strip())
    except ValidationError:
        return False
    return True


def with_ref(url: str) -> str:
    """Tag an outgoing link with ``ref=stockroom``, keeping its query."""
    parts = urlsplit(url.strip())
    query = [
        (name, value)
        for name, value in parse_qsl(parts.query, keep_blank_values=True)
        if name != REF_PARAM[0]
    ]
    query.append(REF_PARAM)
    return urlunsplit(parts._replace(query=urlencode(query)))


def has_value(field_value) -> bool:
    raw = (field_value.value or {}).get("raw")
    return raw not in (None, "")


def get_custom_field_display_value(field_value) -> str:
    """Render an :class:`AssetCustomFieldValue` for humans."""
    value = field_value.value or {}
    field_type = field_value.custom_field.type

    if field_type == CustomField.TYPE_BOOLEAN:
        flag = value.get("valueBoolean")
        if flag is None:
            flag = str(value.get("raw", "")).lower() in ("yes", "true", "on")
        return "Yes" if flag else "No"

    if field_type == CustomField.TYPE_DATE:
        raw_date = value.get("valueDate") or value.get("raw")
        try:
            parsed = datetime.date.fromisoformat(str(raw_date)[:10])
        except ValueError:
            return str(raw_date)
        return formats.date_format(parsed, "SHORT_DATE_FORMAT")

    if field_type == CustomField.TYPE_OPTION:
        return str(value.get("valueOption") or value.get("raw", ""))

    return str(value.get("valueText") or value.get("raw", ""))


def displayable_custom_fields(asset) -> list[dict]:
    """Active custom field values of ``asset`` that hold a value."""
    rows = []
    for field_value in asset.custom_field_values.select_related(
        "custom_field"
    ).filter(custom_field__active=True):
        if not has_value(field_value):
            continue
        display = get_custom_field_display_value(field_value)
        link = is_link(display)
        rows.append(
            {
                "id": field_value.pk,
                "name": field_value.custom_field.name,
                "type": field_value.custom_field.type,
                "display_value": display,
                "is_link": link,
                "link": with_ref(display) if link else None,
            }
        )
    return rows
