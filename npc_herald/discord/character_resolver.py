"""Chooses which NPC answers a message when several bots share a channel."""

import logging
import re
from typing import Optional

from npc_herald.discord.models import BotConfiguration, NPCProfile
from npc_herald.discord.recency import RecencyCache
from npc_herald.discord.store import CampaignStore

logger = logging.getLogger(__name__)


class CharacterResolver:
    """Selects a bot configuration for a message.

    Priority:
    - The only candidate, when there is just one
    - NPC name as a whole word in the message
    - NPC name as a substring of the message
    - The bot the user last talked to in this channel
    - The first candidate
    """

    def __init__(self, store: CampaignStore, cache: Optional[RecencyCache] = None):
        self.store = store
        self.cache = cache if cache is not None else RecencyCache()

    async def select_configuration(
        self,
        candidates: list[BotConfiguration],
        message_text: str,
        user_id: str,
        channel_id: str,
    ) -> Optional[BotConfiguration]:
        """Pick the configuration that should answer.

        Args:
            candidates: Eligible configurations in directory order.
            message_text: Message content with the bot mention removed.
            user_id: Discord ID of the message author.
            channel_id: Discord channel ID.

        Returns:
            The chosen BotConfiguration, or None if there are no candidates.
        """
        if not candidates:
            return None

        if len(candidates) == 1:
            return self._remember(candidates[0], user_id, channel_id, "single candidate")

        named = await self._named_candidates(candidates)

        for config, npc in named:
            if self._is_word_in_text(npc.name.lower(), message_text.lower()):
                return self._remember(config, user_id, channel_id, f"whole-word match on {npc.name}")

        for config, npc in named:
            if npc.name.strip() and npc.name.lower() in message_text.lower():
                return self._remember(config, user_id, channel_id, f"substring match on {npc.name}")

        cached_id = self.cache.get(user_id, channel_id)
        if cached_id:
            for config in candidates:
                if config.id == cached_id:
                    return self._remember(config, user_id, channel_id, "recency cache")

            # Cached bot is gone or inactive
            self.cache.evict(user_id, channel_id)
            logger.debug(f"Evicted stale cache entry {cached_id} for user {user_id} in channel {channel_id}")

        return self._remember(candidates[0], user_id, channel_id, "fallback to first candidate")

    async def _named_candidates(
        self,
        candidates: list[BotConfiguration],
    ) -> list[tuple[BotConfiguration, NPCProfile]]:
        """Resolve each candidate's NPC, skipping ones that cannot be loaded."""
        named = []
        npcs: dict[str, NPCProfile] = {}
        for config in candidates:
            if config.npc_id not in npcs:
                try:
                    npcs[config.npc_id] = await self.store.get_npc(config.npc_id)
                except Exception as e:
                    logger.warning(f"Could not load NPC {config.npc_id} for bot {config.id}: {e}")
                    continue
            named.append((config, npcs[config.npc_id]))
        return named

    def _remember(
        self,
        config: BotConfiguration,
        user_id: str,
        channel_id: str,
        reason: str,
    ) -> BotConfiguration:
        self.cache.remember(user_id, channel_id, config.id)
        logger.debug(f"Selected bot {config.id} ({reason}) for user {user_id} in channel {channel_id}")
        return config

    def _is_word_in_text(self, word: str, text: str) -> bool:
        """Check if a word appears as a whole word in text.

        Args:
            word: Word to find.
            text: Text to search.

        Returns:
            True if word is found as whole word.
        """
        if not word.strip():
            return False
        pattern = rf"\b{re.escape(word)}\b"
        return bool(re.search(pattern, text))
