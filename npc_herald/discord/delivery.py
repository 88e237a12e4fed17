"""Posts NPC replies into Discord through per-channel webhooks."""

import logging
from typing import Optional

import discord

from npc_herald.discord.assets import AssetStore
from npc_herald.discord.models import BotConfiguration, NPCProfile

logger = logging.getLogger(__name__)

# Discord limits
MAX_NAME_LENGTH = 80
MAX_MESSAGE_LENGTH = 2000


def split_message(content: str, limit: int = MAX_MESSAGE_LENGTH) -> list[str]:
    """Split content into chunks Discord will accept.

    Prefers breaking on newlines, then spaces, then hard cuts.

    Args:
        content: Message text.
        limit: Maximum characters per chunk.

    Returns:
        Non-empty chunks in order.
    """
    chunks = []
    remaining = content.strip()
    while len(remaining) > limit:
        cut = remaining.rfind("\n", 0, limit)
        if cut <= 0:
            cut = remaining.rfind(" ", 0, limit)
        if cut <= 0:
            cut = limit
        chunks.append(remaining[:cut].rstrip())
        remaining = remaining[cut:].lstrip()
    if remaining:
        chunks.append(remaining)
    return chunks


class WebhookDelivery:
    """Publishes replies under an NPC's name and portrait."""

    def __init__(
        self,
        client: discord.Client,
        assets: Optional[AssetStore] = None,
        name_prefix: str = "NPC Herald",
        avatar_ttl_minutes: int = 60,
    ):
        self.client = client
        self.assets = assets
        self.name_prefix = name_prefix
        self.avatar_ttl_minutes = avatar_ttl_minutes
        self._webhooks: dict[int, discord.Webhook] = {}

    def owns_webhook(self, webhook: discord.Webhook) -> bool:
        """True for webhooks this service created and can post through."""
        return bool(webhook.token) and (webhook.name or "").startswith(self.name_prefix)

    async def _resolve_channel(self, channel_id: str):
        channel = self.client.get_channel(int(channel_id))
        if channel is None:
            channel = await self.client.fetch_channel(int(channel_id))
        return channel

    async def get_or_create_webhook(self, channel, npc_name: str) -> discord.Webhook:
        """Reuse this service's webhook in a channel or create one.

        Args:
            channel: discord.TextChannel (threads must pass their parent).
            npc_name: Name used when a webhook has to be created.

        Returns:
            A webhook with a token.
        """
        cached = self._webhooks.get(channel.id)
        if cached is not None:
            return cached

        for webhook in await channel.webhooks():
            if self.owns_webhook(webhook):
                self._webhooks[channel.id] = webhook
                return webhook

        name = f"{self.name_prefix} - {npc_name}"[:MAX_NAME_LENGTH]
        webhook = await channel.create_webhook(name=name, reason="NPC replies")
        logger.info(f"Created webhook {webhook.id} in channel {channel.id}")
        self._webhooks[channel.id] = webhook
        return webhook

    async def resolve_avatar_url(self, npc: NPCProfile) -> Optional[str]:
        """Signed portrait URL, or None if there is none or it fails."""
        if not self.assets or not npc.image_path:
            return None
        try:
            return await self.assets.get_signed_url(npc.image_path, self.avatar_ttl_minutes)
        except Exception as e:
            logger.warning(f"Could not sign portrait for NPC {npc.id}: {e}")
            return None

    async def deliver(
        self,
        bot_config: BotConfiguration,
        npc: NPCProfile,
        channel_id: str,
        content: str,
    ) -> bool:
        """Send a reply as the NPC.

        Args:
            bot_config: Configuration the reply belongs to.
            npc: NPC whose name and portrait are used.
            channel_id: Discord channel (or thread) ID.
            content: Reply text.

        Returns:
            True if every chunk was sent, False on any failure.
        """
        channel = None
        try:
            channel = await self._resolve_channel(channel_id)

            thread = None
            if isinstance(channel, discord.Thread):
                thread = channel
                channel = channel.parent

            webhook = await self.get_or_create_webhook(channel, npc.name)
            avatar_url = await self.resolve_avatar_url(npc)

            send_kwargs = {"username": npc.name[:MAX_NAME_LENGTH]}
            if avatar_url:
                send_kwargs["avatar_url"] = avatar_url
            if thread is not None:
                send_kwargs["thread"] = thread

            for chunk in split_message(content):
                await webhook.send(content=chunk, **send_kwargs)
        except discord.NotFound as e:
            # Webhook deleted out from under us; the next call recreates it
            self._webhooks.pop(getattr(channel, "id", None), None)
            logger.error(f"Webhook or channel missing for bot {bot_config.id} in {channel_id}: {e}")
            return False
        except Exception as e:
            logger.error(f"Failed to deliver reply for bot {bot_config.id} in {channel_id}: {e}")
            return False

        logger.info(f"Delivered reply as {npc.name} in channel {channel_id}")
        return True
