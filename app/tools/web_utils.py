from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse

FAVICON_SERVICE_URL = "https://www.google.com/s2/favicons?domain={host}&sz=64"


@dataclass(frozen=True, slots=True)
class HostInfo:
    host: str | None = None
    site_name: str | None = None


def build_host_info(url: str | None) -> HostInfo:
    """Derive host and display site name; unparseable URLs yield an empty HostInfo."""
    if not url:
        return HostInfo()
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return HostInfo()
    if not hostname:
        return HostInfo()
    site_name = hostname[4:] if hostname.startswith("www.") else hostname
    return HostInfo(host=hostname, site_name=site_name)


def build_favicon(host: str | None) -> str | None:
    return FAVICON_SERVICE_URL.format(host=host) if host else None


def is_valid_url(url: str) -> bool:
    """Basic URL validation."""
    try:
        result = urlparse(url)
        return all([result.scheme in ("http", "https"), result.netloc])
    except ValueError:
        return False
