"""Bot status and activity endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from npc_herald.discord.bot_manager import HeraldBot
from npc_herald.discord.models import RecentResponse
from npc_herald.discord.recent_responses import fetch_recent_webhook_messages
from npc_herald.discord.store import CampaignStore, EntityNotFoundError

router = APIRouter()
logger = logging.getLogger(__name__)


def get_bot(request: Request) -> Optional[HeraldBot]:
    """Running bot, if the lifespan started one."""
    return getattr(request.app.state, "bot", None)


def get_store(request: Request) -> CampaignStore:
    """Campaign store created at startup."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Campaign store not initialized")
    return store


@router.get("/bot/status")
async def bot_status(bot: Optional[HeraldBot] = Depends(get_bot)) -> dict:
    """Get Discord bot status.

    Returns:
        Readiness and identity of the bot account.
    """
    if bot is None:
        return {"ready": False, "user_id": None, "username": None, "guild_count": 0}
    return bot.status()


@router.get("/bots/{bot_id}/recent-responses", response_model=list[RecentResponse])
async def recent_responses(
    bot_id: str,
    limit: int = Query(10, ge=1, le=50),
    bot: Optional[HeraldBot] = Depends(get_bot),
    store: CampaignStore = Depends(get_store),
) -> list[RecentResponse]:
    """Latest replies an NPC bot posted.

    Args:
        bot_id: Bot configuration ID.
        limit: Maximum replies to return.

    Returns:
        Replies, newest first.
    """
    try:
        config = await store.get_configuration(bot_id)
    except EntityNotFoundError:
        raise HTTPException(status_code=404, detail="Bot not found")
    except Exception as e:
        logger.error(f"Failed to load bot {bot_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    if bot is None or not bot.ready:
        return []

    return await fetch_recent_webhook_messages(bot.client, store, config, limit=limit)
