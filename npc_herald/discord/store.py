"""Campaign data collaborators consumed by the message pipeline.

The pipeline never writes worlds, NPCs or bot configurations; it reads them
through :class:`CampaignStore`. The in-memory implementation here backs tests
and local runs, and :mod:`npc_herald.discord.graph_store` backs production.
"""

import logging
from typing import Iterable, Optional, Protocol

from npc_herald.discord.models import BotConfiguration, NPCProfile, World

logger = logging.getLogger(__name__)


class EntityNotFoundError(LookupError):
    """Raised when a world, NPC or configuration does not exist."""

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} not found: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id


class ConfigurationConflictError(ValueError):
    """Raised when a bot configuration would break the placement rules."""


class CampaignStore(Protocol):
    """Read interface over worlds, NPCs and bot configurations."""

    async def list_active_configurations(
        self,
        server_id: str,
        channel_id: Optional[str] = None,
    ) -> list[BotConfiguration]: ...

    async def get_configuration(self, config_id: str) -> BotConfiguration: ...

    async def get_npc(self, npc_id: str) -> NPCProfile: ...

    async def get_world(self, world_id: str) -> World: ...

    async def list_npcs(self, world_id: str) -> list[NPCProfile]: ...


def check_placement(
    existing: Iterable[BotConfiguration],
    candidate: BotConfiguration,
) -> None:
    """Validate a configuration against others already registered.

    Within a server there is either one server-wide configuration or any
    number of channel-specific ones, with at most one per channel.

    Args:
        existing: Configurations already stored (any server).
        candidate: The configuration being added or updated.

    Raises:
        ConfigurationConflictError: If the placement rules are violated.
    """
    for other in existing:
        if other.id == candidate.id or other.server_id != candidate.server_id:
            continue

        if candidate.is_server_wide and other.is_server_wide:
            raise ConfigurationConflictError(
                f"Server {candidate.server_id} already has a server-wide bot ({other.id})"
            )
        if candidate.is_server_wide or other.is_server_wide:
            raise ConfigurationConflictError(
                f"Server {candidate.server_id} cannot mix server-wide and "
                f"channel-specific bots (conflicts with {other.id})"
            )
        if other.channel_id == candidate.channel_id:
            raise ConfigurationConflictError(
                f"Channel {candidate.channel_id} already has a bot ({other.id})"
            )


class InMemoryCampaignStore:
    """Dict-backed campaign store."""

    def __init__(self):
        self._worlds: dict[str, World] = {}
        self._npcs: dict[str, NPCProfile] = {}
        self._configs: dict[str, BotConfiguration] = {}

    def add_world(self, world: World) -> World:
        self._worlds[world.id] = world
        return world

    def add_npc(self, npc: NPCProfile) -> NPCProfile:
        self._npcs[npc.id] = npc
        return npc

    def add_configuration(self, config: BotConfiguration) -> BotConfiguration:
        """Register a configuration, enforcing placement rules."""
        check_placement(self._configs.values(), config)
        self._configs[config.id] = config
        return config

    def set_active(self, config_id: str, active: bool) -> BotConfiguration:
        """Activate or deactivate a configuration."""
        if config_id not in self._configs:
            raise EntityNotFoundError("Bot configuration", config_id)
        updated = self._configs[config_id].model_copy(update={"active": active})
        self._configs[config_id] = updated
        return updated

    async def list_active_configurations(
        self,
        server_id: str,
        channel_id: Optional[str] = None,
    ) -> list[BotConfiguration]:
        return [
            c
            for c in self._configs.values()
            if c.active
            and c.server_id == server_id
            and (c.channel_id is None or c.channel_id == channel_id)
        ]

    async def get_configuration(self, config_id: str) -> BotConfiguration:
        if config_id not in self._configs:
            raise EntityNotFoundError("Bot configuration", config_id)
        return self._configs[config_id]

    async def get_npc(self, npc_id: str) -> NPCProfile:
        if npc_id not in self._npcs:
            raise EntityNotFoundError("NPC", npc_id)
        return self._npcs[npc_id]

    async def get_world(self, world_id: str) -> World:
        if world_id not in self._worlds:
            raise EntityNotFoundError("World", world_id)
        return self._worlds[world_id]

    async def list_npcs(self, world_id: str) -> list[NPCProfile]:
        return [n for n in self._npcs.values() if n.world_id == world_id and n.active]
