"""Discord client lifecycle for the NPC relay bot."""

import logging
from typing import Optional

import discord
from openai import AsyncOpenAI

from npc_herald.core.config import Settings
from npc_herald.discord.assets import AssetStore
from npc_herald.discord.character_resolver import CharacterResolver
from npc_herald.discord.context_builder import ChannelContextBuilder
from npc_herald.discord.delivery import WebhookDelivery
from npc_herald.discord.directory import BotDirectory
from npc_herald.discord.message_router import NPCMessageRouter
from npc_herald.discord.npc_agent import NPCAgent
from npc_herald.discord.recency import RecencyCache
from npc_herald.discord.store import CampaignStore

logger = logging.getLogger(__name__)


class HeraldBot:
    """Owns the Discord client and wires the message pipeline to it.

    Clients are built here and handed to the components, so nothing in the
    pipeline reads global state.
    """

    def __init__(
        self,
        settings: Settings,
        store: CampaignStore,
        assets: Optional[AssetStore] = None,
        openai_client: Optional[AsyncOpenAI] = None,
        client: Optional[discord.Client] = None,
    ):
        self.settings = settings
        self.store = store
        self.client = client or discord.Client(intents=self._intents())
        self.openai = openai_client or AsyncOpenAI(api_key=settings.openai_api_key)

        self.directory = BotDirectory(store)
        self.resolver = CharacterResolver(store, RecencyCache(settings.recency_cache_size))
        self.agent = NPCAgent(
            self.openai,
            model=settings.openai_model,
            temperature=settings.openai_temperature,
            max_tokens=settings.openai_max_tokens,
        )
        self.delivery = WebhookDelivery(
            self.client,
            assets=assets,
            name_prefix=settings.webhook_name_prefix,
            avatar_ttl_minutes=settings.avatar_url_ttl_minutes,
        )
        self.router: Optional[NPCMessageRouter] = None
        self.ready = False

        self._setup_events()

    @staticmethod
    def _intents() -> discord.Intents:
        intents = discord.Intents.default()
        intents.guilds = True
        intents.guild_messages = True
        intents.message_content = True
        return intents

    def build_router(self, bot_user_id: int | str) -> NPCMessageRouter:
        """Create the message router once the bot's user id is known."""
        return NPCMessageRouter(
            store=self.store,
            directory=self.directory,
            resolver=self.resolver,
            context_builder=ChannelContextBuilder(bot_user_id),
            agent=self.agent,
            delivery=self.delivery,
            bot_user_id=bot_user_id,
            history_limit=self.settings.history_limit,
        )

    def _setup_events(self) -> None:
        client = self.client

        @client.event
        async def on_ready():
            logger.info(f"Discord bot logged in as {client.user}")
            self.router = self.build_router(client.user.id)
            self.ready = True

        @client.event
        async def on_message(message):
            # discord.py dispatches each event as its own task
            if self.router is None or message.author == client.user:
                return
            await self.router.handle_message(message)

        @client.event
        async def on_disconnect():
            logger.warning("Discord bot disconnected")
            self.ready = False

        @client.event
        async def on_resumed():
            self.ready = True

    async def start(self) -> None:
        """Log in and run until stopped."""
        if not self.settings.discord_bot_token:
            raise ValueError("Discord bot token is required")
        if not self.settings.openai_api_key:
            raise ValueError("OpenAI API key is required")

        logger.info("Starting Discord bot")
        try:
            await self.client.start(self.settings.discord_bot_token)
        except Exception as e:
            logger.error(f"Failed to start Discord bot: {e}")
            raise

    async def stop(self) -> None:
        """Close the Discord and OpenAI clients."""
        if not self.client.is_closed():
            await self.client.close()
        await self.openai.close()
        self.ready = False
        logger.info("Discord bot stopped")

    def status(self) -> dict:
        """Readiness summary for the API."""
        user = self.client.user
        return {
            "ready": self.ready,
            "user_id": str(user.id) if user else None,
            "username": str(user) if user else None,
            "guild_count": len(self.client.guilds) if self.ready else 0,
            "cached_conversations": len(self.resolver.cache),
        }
