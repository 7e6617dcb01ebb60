"""Template tags for the assets app."""

from decimal import Decimal, InvalidOperation

import bleach
import markdown as markdown_lib

from django import template
from django.utils.safestring import mark_safe

from assets.models import Location
from assets.services.modals import BulkModalStore

register = template.Library()

# Tailwind size steps (rem) for 32, 40, 44, 48 and 56px hugs
ICON_HUG_SIZES = {
    "sm": "8",
    "md": "10",
    "lg": "11",
    "xl": "12",
    "2xl": "14",
}

CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "JPY": "¥"}

# Markup allowed in rendered notes
MARKDOWN_TAGS = frozenset(
    {
        "a", "blockquote", "br", "code", "em", "h1", "h2", "h3", "h4",
        "hr", "li", "ol", "p", "pre", "strong", "table", "tbody", "td",
        "th", "thead", "tr", "ul",
    }
)
MARKDOWN_ATTRIBUTES = {"a": ["href", "title", "rel"]}
MARKDOWN_PROTOCOLS = frozenset({"http", "https", "mailto"})


@register.simple_tag
def icon_hug_classes(size="sm", extra=""):
    """CSS classes for the square hover target wrapped around an icon."""
    step = ICON_HUG_SIZES.get(size, ICON_HUG_SIZES["sm"])
    classes = ["inline-flex items-center justify-center", f"h-{step} w-{step}"]
    if extra:
        classes.append(extra)
    classes.append("rounded-lg hover:cursor-pointer hover:bg-[#344054]")
    return " ".join(classes)


@register.inclusion_tag("assets/partials/bulk_modal.html", takes_context=True)
def bulk_modal(context, key):
    """Render the trigger and dialog of a bulk-action modal."""
    request = context["request"]
    modal = BulkModalStore(request).get(key)
    organization = context.get("current_organization")
    locations = (
        Location.objects.filter(organization=organization).order_by("name")
        if organization is not None
        else Location.objects.none()
    )
    return {
        "modal": modal,
        "locations": locations,
        "request": request,
        "csrf_token": context.get("csrf_token"),
    }


@register.filter
def currency(value, code="USD"):
    """Format ``value`` as an amount in the ISO 4217 ``code``."""
    if value in (None, ""):
        return ""
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        return value
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{symbol}{amount:,.2f}"
    return f"{amount:,.2f} {code}"


@register.filter(name="markdown")
def render_markdown(value):
    """Render note Markdown to sanitized HTML with bare URLs linked."""
    if not value:
        return ""
    html = markdown_lib.markdown(
        str(value), extensions=["extra", "nl2br", "sane_lists"]
    )
    cleaned = bleach.clean(
        html,
        tags=MARKDOWN_TAGS,
        attributes=MARKDOWN_ATTRIBUTES,
        protocols=MARKDOWN_PROTOCOLS,
        strip=True,
    )
    return mark_safe(bleach.linkify(cleaned, skip_tags=["pre", "code"]))
