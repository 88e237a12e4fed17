"""Message router for Discord NPC interactions."""

import logging
from typing import Optional

from npc_herald.discord.character_resolver import CharacterResolver
from npc_herald.discord.context_builder import DEFAULT_HISTORY_LIMIT, ChannelContextBuilder
from npc_herald.discord.delivery import WebhookDelivery
from npc_herald.discord.directory import BotDirectory
from npc_herald.discord.models import BotConfiguration, InboundMention, NPCProfile, World
from npc_herald.discord.npc_agent import NPCAgent
from npc_herald.discord.store import CampaignStore

logger = logging.getLogger(__name__)


class NPCMessageRouter:
    """Routes a mention of the bot to the NPC that should answer it.

    Flow per message: directory lookup, character resolution, history
    rebuild, reply generation, webhook delivery. Each message is handled on
    its own; a failure anywhere drops only that message's reply.
    """

    def __init__(
        self,
        store: CampaignStore,
        directory: BotDirectory,
        resolver: CharacterResolver,
        context_builder: ChannelContextBuilder,
        agent: NPCAgent,
        delivery: WebhookDelivery,
        bot_user_id: int | str,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        self.store = store
        self.directory = directory
        self.resolver = resolver
        self.context_builder = context_builder
        self.agent = agent
        self.delivery = delivery
        self.bot_user_id = str(bot_user_id)
        self.history_limit = history_limit

    def extract_request(self, mention: InboundMention) -> Optional[str]:
        """Return the message text if this event is addressed to us.

        Args:
            mention: Normalized inbound event.

        Returns:
            Content without the bot mention, or None to ignore the event.
        """
        if mention.author_is_bot:
            return None
        if not mention.mentions(self.bot_user_id):
            return None
        if mention.server_id is None:
            logger.warning("Message received in non-guild channel, ignoring")
            return None

        text = self.context_builder.strip_mention(mention.content)
        return text or None

    async def _load_persona(
        self,
        config: BotConfiguration,
    ) -> tuple[NPCProfile, World]:
        npc = await self.store.get_npc(config.npc_id)
        world = await self.store.get_world(config.world_id)
        return npc, world

    async def handle_message(self, message) -> bool:
        """Handle one inbound Discord message.

        Args:
            message: discord.Message from the gateway.

        Returns:
            True if a reply was delivered.
        """
        try:
            return await self._handle(message)
        except Exception as e:
            logger.exception(f"Error handling message {getattr(message, 'id', '?')}: {e}")
            return False

    async def _handle(self, message) -> bool:
        mention = InboundMention.from_message(message)
        text = self.extract_request(mention)
        if text is None:
            return False

        candidates = await self.directory.find_candidates(
            mention.server_id, mention.placement_channel_id
        )
        if not candidates:
            logger.debug(
                f"No bot configuration for server {mention.server_id}, "
                f"channel {mention.placement_channel_id}"
            )
            return False

        config = await self.resolver.select_configuration(
            candidates, text, mention.author_id, mention.channel_id
        )
        if config is None:
            logger.debug(f"Could not determine an NPC for message {mention.message_id}")
            return False

        try:
            npc, world = await self._load_persona(config)
        except Exception as e:
            logger.error(f"Could not load NPC/world for bot {config.id}: {e}")
            return False

        # The triggering message is sent as the new user turn, not history
        history = await self.context_builder.build_history(
            message.channel, limit=self.history_limit, before=message
        )

        reply = await self.agent.generate_reply(config, npc, world, history, text)
        if not reply:
            return False

        return await self.delivery.deliver(config, npc, mention.channel_id, reply)
