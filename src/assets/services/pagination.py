"""Pagination and search parameters shared by list views."""

DEFAULT_PER_PAGE = 8
MAX_PER_PAGE = 25


def _to_int(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def clamp_per_page(per_page) -> int:
    """Coerce ``per_page`` into ``1..MAX_PER_PAGE``.

    Anything below 1 (or not a number) falls back to the default.
    """
    per_page = _to_int(per_page, DEFAULT_PER_PAGE)
    if per_page < 1:
        return DEFAULT_PER_PAGE
    return min(per_page, MAX_PER_PAGE)


def page_bounds(page, per_page) -> tuple[int, int]:
    """Return ``(skip, take)`` for a 1-based ``page``."""
    take = clamp_per_page(per_page)
    page = _to_int(page, 1)
    skip = (page - 1) * take if page > 1 else 0
    return skip, take


def get_params(query) -> dict:
    """Read ``page``, ``per_page`` and ``s`` from a query dict."""
    page = max(_to_int(query.get("page"), 1), 1)
    per_page = clamp_per_page(query.get("per_page"))
    search = (query.get("s") or "").strip() or None
    return {"page": page, "per_page": per_page, "search": search}


def total_pages(total: int, per_page: int) -> int:
    per_page = clamp_per_page(per_page)
    return max((total + per_page - 1) // per_page, 1)
