"""Discord integration for world NPCs."""

from npc_herald.discord.models import (
    ChatRole,
    World,
    NPCProfile,
    BotConfiguration,
    ConversationTurn,
    InboundMention,
    RecentResponse,
)
from npc_herald.discord.store import (
    CampaignStore,
    ConfigurationConflictError,
    EntityNotFoundError,
    InMemoryCampaignStore,
)
from npc_herald.discord.assets import AssetStore, SignedUrlAssetStore
from npc_herald.discord.directory import BotDirectory
from npc_herald.discord.recency import RecencyCache
from npc_herald.discord.character_resolver import CharacterResolver
from npc_herald.discord.context_builder import ChannelContextBuilder
from npc_herald.discord.npc_agent import NPCAgent
from npc_herald.discord.delivery import WebhookDelivery
from npc_herald.discord.message_router import NPCMessageRouter
from npc_herald.discord.bot_manager import HeraldBot

__all__ = [
    # Models
    "ChatRole",
    "World",
    "NPCProfile",
    "BotConfiguration",
    "ConversationTurn",
    "InboundMention",
    "RecentResponse",
    # Collaborators
    "CampaignStore",
    "ConfigurationConflictError",
    "EntityNotFoundError",
    "InMemoryCampaignStore",
    "AssetStore",
    "SignedUrlAssetStore",
    # Pipeline
    "BotDirectory",
    "RecencyCache",
    "CharacterResolver",
    "ChannelContextBuilder",
    "NPCAgent",
    "WebhookDelivery",
    "NPCMessageRouter",
    "HeraldBot",
]
