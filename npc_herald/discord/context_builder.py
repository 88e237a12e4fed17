"""Rebuilds conversation history from a Discord channel's message log."""

import logging
import re
from typing import AsyncIterator

from npc_herald.discord.models import ChatRole, ConversationTurn

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 20


class ChannelContextBuilder:
    """Turns recent channel messages into chat turns.

    Nothing is stored: every call replays the channel's own history, so
    replies posted by our webhooks come back as assistant turns.
    """

    def __init__(self, bot_user_id: int | str):
        self.bot_user_id = str(bot_user_id)
        self._mention_pattern = re.compile(rf"<@!?{re.escape(self.bot_user_id)}>")

    def strip_mention(self, content: str) -> str:
        """Remove mentions of our bot from message content."""
        return self._mention_pattern.sub("", content or "").strip()

    def _mentions_bot(self, message) -> bool:
        return any(str(m.id) == self.bot_user_id for m in message.mentions)

    def classify(self, message) -> ChatRole | None:
        """Decide the role of a message, or None to drop it.

        Args:
            message: discord.Message from the channel history.

        Returns:
            ASSISTANT for webhook or own-bot messages, USER for people,
            None for other bots.
        """
        is_webhook = message.webhook_id is not None
        is_own_bot = str(message.author.id) == self.bot_user_id

        if message.author.bot and not is_webhook and not is_own_bot:
            return None
        if is_webhook or is_own_bot:
            return ChatRole.ASSISTANT
        return ChatRole.USER

    async def iter_history(
        self,
        channel,
        limit: int = DEFAULT_HISTORY_LIMIT,
        before=None,
    ) -> AsyncIterator[ConversationTurn]:
        """Yield conversation turns oldest-first.

        Args:
            channel: discord.abc.Messageable to read from.
            limit: Maximum number of raw messages to fetch.
            before: Optional message or datetime; only older messages are read.

        Yields:
            ConversationTurn per kept message, in chronological order.
        """
        # history() yields newest first
        messages = [m async for m in channel.history(limit=limit, before=before)]
        messages.reverse()

        for message in messages:
            role = self.classify(message)
            if role is None:
                continue

            content = message.content or ""
            if self._mentions_bot(message):
                content = self.strip_mention(content)
            content = content.strip()
            if not content:
                continue

            yield ConversationTurn(role=role, content=content)

    async def build_history(
        self,
        channel,
        limit: int = DEFAULT_HISTORY_LIMIT,
        before=None,
    ) -> list[ConversationTurn]:
        """Collect the channel history into a list.

        Args:
            channel: discord.abc.Messageable to read from.
            limit: Maximum number of raw messages to fetch.
            before: Optional message or datetime bound.

        Returns:
            Turns oldest-first; empty if the history could not be read.
        """
        try:
            history = [turn async for turn in self.iter_history(channel, limit, before)]
        except Exception as e:
            logger.error(f"Error fetching history for channel {getattr(channel, 'id', '?')}: {e}")
            return []

        assistant_count = sum(1 for t in history if t.role == ChatRole.ASSISTANT)
        logger.debug(
            f"Rebuilt {len(history)} turn(s) for channel {getattr(channel, 'id', '?')} "
            f"({assistant_count} assistant, {len(history) - assistant_count} user)"
        )
        return history
