"""Portrait asset URLs for NPC avatars."""

import hashlib
import hmac
import time
from typing import Optional, Protocol
from urllib.parse import quote, urlencode


class AssetStore(Protocol):
    """Produces time-limited URLs for stored assets."""

    async def get_signed_url(self, path: str, ttl_minutes: int = 60) -> Optional[str]: ...


class SignedUrlAssetStore:
    """Signs asset paths under a public base URL with an HMAC and expiry.

    The storage server is expected to verify ``signature`` over
    ``"{path}:{expires}"`` with the same key.
    """

    def __init__(self, base_url: Optional[str], signing_key: str = ""):
        self.base_url = base_url.rstrip("/") if base_url else None
        self.signing_key = signing_key

    def sign(self, path: str, expires: int) -> str:
        message = f"{path}:{expires}".encode("utf-8")
        return hmac.new(self.signing_key.encode("utf-8"), message, hashlib.sha256).hexdigest()

    async def get_signed_url(self, path: str, ttl_minutes: int = 60) -> Optional[str]:
        """Build a signed URL for a stored asset.

        Args:
            path: Storage path, e.g. "worlds/w1/npcs/n1/profile.jpg".
            ttl_minutes: How long the URL stays valid.

        Returns:
            The URL, or None when no path or base URL is configured.
        """
        if not path or not self.base_url:
            return None

        path = path.lstrip("/")
        expires = int(time.time()) + ttl_minutes * 60
        query = urlencode({"expires": expires, "signature": self.sign(path, expires)})
        return f"{self.base_url}/{quote(path)}?{query}"
