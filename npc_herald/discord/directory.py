"""Directory of bot configurations eligible for a server and channel."""

import logging
from typing import Optional

from npc_herald.discord.models import BotConfiguration
from npc_herald.discord.store import CampaignStore

logger = logging.getLogger(__name__)


class BotDirectory:
    """Resolves which active bot configurations serve a channel."""

    def __init__(self, store: CampaignStore):
        self.store = store

    async def find_candidates(
        self,
        server_id: str,
        channel_id: Optional[str] = None,
    ) -> list[BotConfiguration]:
        """Find active configurations for a server/channel pair.

        Channel-specific matches come first, then the server-wide
        configuration, deduplicated by id.

        Args:
            server_id: Discord guild ID.
            channel_id: Discord channel ID, if any.

        Returns:
            Ordered candidates; empty when no bot should respond.
        """
        configs = await self.store.list_active_configurations(server_id, channel_id)

        channel_matches = []
        server_wide = []
        for config in configs:
            if not config.active or config.server_id != server_id:
                continue
            if config.is_server_wide:
                server_wide.append(config)
            elif channel_id is not None and config.channel_id == channel_id:
                channel_matches.append(config)

        candidates = []
        seen = set()
        for config in channel_matches + server_wide:
            if config.id in seen:
                continue
            seen.add(config.id)
            candidates.append(config)

        logger.debug(
            f"Found {len(candidates)} candidate bot(s) for server {server_id}, channel {channel_id}"
        )
        return candidates
