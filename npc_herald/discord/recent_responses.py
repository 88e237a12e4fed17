"""Recent NPC replies read back from Discord channel history."""

import logging

import discord

from npc_herald.discord.models import BotConfiguration, RecentResponse
from npc_herald.discord.store import CampaignStore

logger = logging.getLogger(__name__)

MESSAGES_PER_CHANNEL = 50
TEXT_CHANNEL_TYPES = (discord.TextChannel, discord.VoiceChannel, discord.StageChannel)


async def _channels_for(client: discord.Client, config: BotConfiguration) -> list:
    guild = client.get_guild(int(config.server_id)) or await client.fetch_guild(int(config.server_id))

    if config.channel_id:
        channel = guild.get_channel(int(config.channel_id)) or await guild.fetch_channel(
            int(config.channel_id)
        )
        return [channel]

    return [c for c in await guild.fetch_channels() if isinstance(c, TEXT_CHANNEL_TYPES)]


async def fetch_recent_webhook_messages(
    client: discord.Client,
    store: CampaignStore,
    config: BotConfiguration,
    limit: int = 10,
) -> list[RecentResponse]:
    """Find the latest webhook replies posted for a bot configuration.

    Scans the configured channel, or every text channel of the server for a
    server-wide bot, and keeps messages whose webhook username matches an
    NPC of the configuration's world.

    Args:
        client: Logged-in Discord client.
        store: Campaign store used to map names to NPCs.
        config: The bot configuration.
        limit: Maximum number of replies to return.

    Returns:
        Replies newest first; empty if the client is not ready or on error.
    """
    if not client.is_ready():
        logger.warning("Discord client not ready, cannot fetch messages")
        return []

    try:
        channels = await _channels_for(client, config)

        found = []
        for channel in channels:
            try:
                async for message in channel.history(limit=MESSAGES_PER_CHANNEL):
                    if message.webhook_id and message.author.name:
                        found.append(message)
            except discord.HTTPException as e:
                logger.error(f"Error fetching messages from channel {channel.id}: {e}")

        found.sort(key=lambda m: m.created_at, reverse=True)
        found = found[:limit]

        npcs = await store.list_npcs(config.world_id)
        npc_ids = {npc.name.lower(): npc.id for npc in npcs}

        responses = []
        for message in found:
            npc_id = npc_ids.get(message.author.name.lower())
            if not npc_id:
                continue
            responses.append(
                RecentResponse(
                    content=message.content,
                    npc_id=npc_id,
                    npc_name=message.author.name,
                    channel_id=str(message.channel.id),
                    created_at=message.created_at,
                )
            )
        return responses
    except Exception as e:
        logger.error(f"Error fetching recent webhook messages for bot {config.id}: {e}")
        return []
