"""Discord token and invite helpers for the dashboard."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from npc_herald.discord import discord_api

router = APIRouter()
logger = logging.getLogger(__name__)


class TokenRequest(BaseModel):
    """A Discord bot token to check."""

    token: str = Field(..., min_length=1, description="Discord bot token")


class TokenCheckResponse(BaseModel):
    """Result of a token check."""

    valid: bool
    bot: Optional[discord_api.DiscordBotInfo] = None
    client_id: Optional[str] = None
    invite_url: Optional[str] = None


@router.post("/validate-token", response_model=TokenCheckResponse)
async def validate_token(request: TokenRequest) -> TokenCheckResponse:
    """Check a bot token and return its invite link.

    Args:
        request: The token to check.

    Returns:
        Validity, bot identity and invite URL when valid.
    """
    token = request.token.strip()
    info = await discord_api.get_bot_info(token)
    if info is None:
        return TokenCheckResponse(valid=False)

    client_id = await discord_api.get_client_id(token)
    return TokenCheckResponse(
        valid=True,
        bot=info,
        client_id=client_id,
        invite_url=discord_api.generate_invite_url(client_id) if client_id else None,
    )


@router.get("/invite-url")
async def invite_url(client_id: str, permissions: Optional[int] = None) -> dict:
    """Build a bot invite URL for a client ID."""
    if not client_id.isdigit():
        raise HTTPException(status_code=400, detail="client_id must be numeric")
    return {"invite_url": discord_api.generate_invite_url(client_id, permissions)}
