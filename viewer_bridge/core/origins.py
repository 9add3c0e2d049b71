"""
Origin checks for CRM-facing endpoints.

Two different rules live here:
- CORS: an Origin is allowed when it contains one of the configured markers
  (HubSpot surfaces, our own backend host, localhost)
- HubSpot request check: Origin, or the scheme+host of the Referer, must be
  a HubSpot domain, or the User-Agent must mention HubSpot
"""
import re
from typing import Iterable, List, Optional
from urllib.parse import urlsplit


HUBSPOT_DOMAIN_PATTERNS = [
    re.compile(r"^https?://([a-z0-9-]+\.)*hubspot\.com$", re.IGNORECASE),
    re.compile(r"^https?://([a-z0-9-]+\.)*hubspotusercontent\.com$", re.IGNORECASE),
    re.compile(r"^https?://([a-z0-9-]+\.)*hs-sites\.com$", re.IGNORECASE),
    re.compile(r"^https?://([a-z0-9-]+\.)*hubspotpreview\.com$", re.IGNORECASE),
]

HUBSPOT_USER_AGENT = re.compile(r"hubspot", re.IGNORECASE)


def build_origin_regex(markers: Iterable[str]) -> str:
    """
    Build a CORS origin regex matching any origin containing a marker.

    Starlette full-matches ``allow_origin_regex`` against the Origin header.
    """
    escaped = [re.escape(m) for m in markers if m]
    if not escaped:
        # Matches nothing
        return r"(?!)"
    return r".*(?:" + "|".join(escaped) + r").*"


def referer_origin(referer: Optional[str]) -> str:
    """Reduce a Referer URL to ``scheme://host``; empty string if unparsable."""
    if not referer:
        return ""
    try:
        parts = urlsplit(referer)
    except ValueError:
        return ""
    if not parts.scheme or not parts.netloc:
        return ""
    return f"{parts.scheme}://{parts.netloc}"


def is_hubspot_domain(value: str) -> bool:
    """Check whether ``scheme://host`` is a HubSpot domain."""
    return any(pattern.match(value) for pattern in HUBSPOT_DOMAIN_PATTERNS)


def is_hubspot_request(
    origin: Optional[str],
    referer: Optional[str],
    user_agent: Optional[str],
) -> bool:
    """
    Decide whether a request may call the CRM-facing endpoints.

    Returns:
        True if the request comes from HubSpot, or carries neither Origin
        nor Referer (server-to-server calls)
    """
    origin = origin or ""
    referer = referer or ""

    if is_hubspot_domain(origin) or is_hubspot_domain(referer_origin(referer)):
        return True
    if user_agent and HUBSPOT_USER_AGENT.search(user_agent):
        return True

    return not origin and not referer


def origin_markers_summary(markers: List[str]) -> str:
    return ", ".join(markers)
