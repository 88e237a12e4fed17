"""Data models for NPC Discord integration."""

from datetime import datetime
from enum import Enum
from typing import Optional

import discord
from pydantic import BaseModel, Field


class ChatRole(str, Enum):
    """Roles a replayed channel message can take in a conversation."""

    USER = "user"
    ASSISTANT = "assistant"


class World(BaseModel):
    """A narrative setting owning NPCs and bot configurations."""

    id: str
    name: str
    description: str = ""


class NPCProfile(BaseModel):
    """Character profile owned by a world."""

    id: str
    world_id: str
    name: str
    description: str = ""
    image_path: Optional[str] = None  # storage path of the portrait
    active: bool = True


class BotConfiguration(BaseModel):
    """Binds one NPC persona to a Discord server, optionally one channel."""

    id: str
    world_id: str
    npc_id: str
    server_id: str
    channel_id: Optional[str] = None
    active: bool = True
    name: str
    description: Optional[str] = None

    @property
    def is_server_wide(self) -> bool:
        """True when the configuration is not scoped to a channel."""
        return self.channel_id is None


class ConversationTurn(BaseModel):
    """One replayed channel message, ready for the chat model."""

    role: ChatRole
    content: str

    def as_message(self) -> dict:
        """Render as an OpenAI chat message."""
        return {"role": self.role.value, "content": self.content}


class InboundMention(BaseModel):
    """Normalized view of an inbound Discord message event."""

    message_id: str
    author_id: str
    author_is_bot: bool = False
    server_id: Optional[str] = None
    channel_id: str
    parent_channel_id: Optional[str] = None
    content: str = ""
    mentioned_ids: list[str] = Field(default_factory=list)

    @classmethod
    def from_message(cls, message) -> "InboundMention":
        """Build from a discord.py Message.

        Args:
            message: discord.Message instance.

        Returns:
            InboundMention with ids stringified.
        """
        return cls(
            message_id=str(message.id),
            author_id=str(message.author.id),
            author_is_bot=bool(message.author.bot),
            server_id=str(message.guild.id) if message.guild else None,
            channel_id=str(message.channel.id),
            parent_channel_id=(
                str(message.channel.parent_id)
                if isinstance(message.channel, discord.Thread)
                else None
            ),
            content=message.content or "",
            mentioned_ids=[str(m.id) for m in message.mentions],
        )

    @property
    def placement_channel_id(self) -> str:
        """Channel whose bot configuration applies; threads use their parent."""
        return self.parent_channel_id or self.channel_id

    def mentions(self, user_id: str) -> bool:
        """Check whether the given user id is mentioned."""
        return str(user_id) in self.mentioned_ids


class RecentResponse(BaseModel):
    """An NPC reply found in a channel's webhook history."""

    content: str
    npc_id: str
    npc_name: str
    channel_id: str
    created_at: datetime
