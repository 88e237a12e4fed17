"""Discord REST helpers for bot token checks and invite links."""

import base64
import binascii
import logging
from typing import Optional
from urllib.parse import quote, urlencode

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)

DISCORD_API_BASE = "https://discord.com/api/v10"

# Manage Webhooks, Send Messages, Read Message History and the rest the
# dashboard asks for when inviting a bot
DEFAULT_INVITE_PERMISSIONS = 2863576804359376


class DiscordBotInfo(BaseModel):
    """Identity of a bot account."""

    id: str
    username: str
    discriminator: Optional[str] = None


def _headers(token: str) -> dict[str, str]:
    return {
        "Authorization": f"Bot {token}",
        "Content-Type": "application/json",
    }


async def get_bot_info(token: str, timeout: float = 10.0) -> Optional[DiscordBotInfo]:
    """Fetch the bot user behind a token.

    Args:
        token: Discord bot token.
        timeout: Request timeout in seconds.

    Returns:
        DiscordBotInfo, or None if the token is rejected or the call fails.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.get(f"{DISCORD_API_BASE}/users/@me", headers=_headers(token))
            resp.raise_for_status()
    except httpx.HTTPStatusError as e:
        logger.error(f"Discord API error: {e.response.status_code}")
        return None
    except httpx.HTTPError as e:
        logger.error(f"Error fetching bot info from Discord: {e}")
        return None

    data = resp.json()
    return DiscordBotInfo(
        id=str(data["id"]),
        username=data["username"],
        discriminator=data.get("discriminator"),
    )


async def validate_token(token: str) -> bool:
    """Check a bot token by fetching its user."""
    return await get_bot_info(token) is not None


def extract_client_id_from_token(token: str) -> Optional[str]:
    """Decode the client ID embedded in a token's first segment.

    Args:
        token: Discord bot token.

    Returns:
        Numeric client ID string, or None if it cannot be decoded.
    """
    first = token.split(".")[0]
    if not first:
        return None

    padded = first + "=" * (-len(first) % 4)
    try:
        decoded = base64.b64decode(padded, altchars=b"-_").decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        decoded = first

    return decoded if decoded.isdigit() else None


async def get_client_id(token: str, timeout: float = 10.0) -> Optional[str]:
    """Get the application (client) ID for a bot token.

    Tries the application endpoint first, then falls back to decoding the
    token itself.

    Args:
        token: Discord bot token.
        timeout: Request timeout in seconds.

    Returns:
        Client ID, or None if neither method works.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.get(
                f"{DISCORD_API_BASE}/oauth2/applications/@me", headers=_headers(token)
            )
            resp.raise_for_status()
            app_id = resp.json().get("id")
            if app_id:
                return str(app_id)
    except httpx.HTTPStatusError as e:
        logger.warning(f"Discord API error when fetching application info: {e.response.status_code}")
    except httpx.HTTPError as e:
        logger.error(f"Error fetching application info from Discord: {e}")

    client_id = extract_client_id_from_token(token)
    if client_id:
        logger.warning("Using fallback method to extract client ID from token")
    return client_id


def generate_invite_url(client_id: str, permissions: Optional[int] = None) -> str:
    """Build the OAuth2 URL that adds the bot to a server."""
    query = urlencode(
        {
            "client_id": client_id,
            "permissions": DEFAULT_INVITE_PERMISSIONS if permissions is None else permissions,
            "scope": "bot applications.commands",
        },
        quote_via=quote,
    )
    return f"https://discord.com/api/oauth2/authorize?{query}"
