# src/services/links.py
import re
from typing import Optional

from src.app.domain.models import Link, LinkType

# Checked in order; the first pattern found anywhere in the URL wins.
_LINK_PATTERNS: tuple[tuple[re.Pattern[str], LinkType], ...] = (
    (re.compile(r"instagram\.com", re.IGNORECASE), LinkType.INSTAGRAM),
    (re.compile(r"facebook\.com", re.IGNORECASE), LinkType.FACEBOOK),
    (re.compile(r"google\.com/maps", re.IGNORECASE), LinkType.GOOGLE_MAP),
    (re.compile(r"alltrails\.com", re.IGNORECASE), LinkType.ALLTRAIL),
)


def infer_link_type(url: str) -> LinkType:
    """Classify a URL by the site it points to."""
    for pattern, link_type in _LINK_PATTERNS:
        if pattern.search(url or ""):
            return link_type
    return LinkType.OTHER


def build_link(url: str, description: Optional[str] = None) -> Link:
    cleaned = (url or "").strip()
    if not cleaned:
        raise ValueError("Link URL is required")
    desc = description.strip() if isinstance(description, str) else None
    return Link(url=cleaned, type=infer_link_type(cleaned), description=desc or None)
