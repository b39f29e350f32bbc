"""Helpers for building and reading shareable quiz links."""

from __future__ import annotations

from urllib.parse import parse_qs, urlencode, urlsplit

from student_quiz.constants.network_constants import SHARE_QUERY_PARAM


def build_share_link(base_url: str, quiz_id: str) -> str:
    """Return ``base_url?quiz=<id>``; the id is URL-safe and embedded verbatim."""
    return f"{base_url.rstrip('/')}/?{urlencode({SHARE_QUERY_PARAM: quiz_id})}"


def extract_quiz_id(url: str) -> str | None:
    """Read the shared quiz id from a link, or ``None`` if it carries none."""
    values = parse_qs(urlsplit(url).query).get(SHARE_QUERY_PARAM)
    if not values or not values[0].strip():
        return None
    return values[0].strip()
