"""Image URL resolution for read-model documents."""

from typing import Optional
from urllib.parse import urljoin, urlparse


class BaseUrlImageResolver:
    """
    Resolve stored image paths against a public base URL.

    Absolute URLs are returned unchanged. Without a base URL every path is
    returned as stored.
    """

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = base_url.rstrip("/") + "/" if base_url else None

    async def resolve(self, url: str) -> str:
        if not url or urlparse(url).scheme in ("http", "https", "data"):
            return url
        if self.base_url is None:
            return url
        return urljoin(self.base_url, url.lstrip("/"))


class IdentityImageResolver:
    """Returns every URL as given. Used by dry runs."""

    async def resolve(self, url: str) -> str:
        return url


__all__ = ["BaseUrlImageResolver", "IdentityImageResolver"]
