"""Utility functions for formatting Discord messages."""

from __future__ import annotations

import re
from functools import cache

_URL_RE = re.compile(r"^https?://\S+$", re.IGNORECASE)


def is_url(query: str) -> bool:
    return bool(_URL_RE.match(query.strip()))


def format_requester(requester_id: int, requester_name: str | None = None) -> str:
    """Mention the requester, falling back to their display name."""
    if requester_name:
        return f"<@{requester_id}> ({requester_name})"
    return f"<@{requester_id}>"


def paginate(total: int, page: int, per_page: int) -> tuple[int, int, int]:
    """Clamp *page* and return ``(page, total_pages, start_index)``."""
    total_pages = max(1, -(-total // per_page))
    page = min(max(page, 1), total_pages)
    return page, total_pages, (page - 1) * per_page


@cache
def truncate(text: str, max_length: int = 90) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 1] + "…"
