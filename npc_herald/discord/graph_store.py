"""Neo4j-backed campaign store."""

import logging
from typing import Optional

from neo4j import AsyncDriver

from npc_herald.core.database import neo4j_session
from npc_herald.discord.models import BotConfiguration, NPCProfile, World
from npc_herald.discord.store import EntityNotFoundError, check_placement

logger = logging.getLogger(__name__)


GRAPH_SCHEMA = {
    "constraints": [
        "CREATE CONSTRAINT world_id IF NOT EXISTS FOR (w:World) REQUIRE w.id IS UNIQUE",
        "CREATE CONSTRAINT npc_id IF NOT EXISTS FOR (n:NPC) REQUIRE n.id IS UNIQUE",
        "CREATE CONSTRAINT bot_id IF NOT EXISTS FOR (b:BotConfiguration) REQUIRE b.id IS UNIQUE",
        "CREATE CONSTRAINT server_id IF NOT EXISTS FOR (s:DiscordServer) REQUIRE s.id IS UNIQUE",
    ],
    "indexes": [
        "CREATE INDEX bot_server IF NOT EXISTS FOR (b:BotConfiguration) ON (b.server_id)",
        "CREATE INDEX npc_world IF NOT EXISTS FOR (n:NPC) ON (n.world_id)",
    ],
}


class Neo4jCampaignStore:
    """Campaign store reading World, NPC and BotConfiguration nodes."""

    def __init__(self, driver: Optional[AsyncDriver] = None):
        self._driver = driver

    async def ensure_schema(self) -> None:
        """Create constraints and indexes if they don't exist."""
        async with neo4j_session(self._driver) as session:
            for statement in GRAPH_SCHEMA["constraints"] + GRAPH_SCHEMA["indexes"]:
                await session.run(statement)

    async def _fetch_one(self, query: str, **params) -> Optional[dict]:
        async with neo4j_session(self._driver) as session:
            result = await session.run(query, **params)
            record = await result.single()
            return dict(record["n"]) if record else None

    async def _fetch_all(self, query: str, **params) -> list[dict]:
        async with neo4j_session(self._driver) as session:
            result = await session.run(query, **params)
            return [dict(record["n"]) async for record in result]

    # ===================
    # Reads
    # ===================

    async def list_active_configurations(
        self,
        server_id: str,
        channel_id: Optional[str] = None,
    ) -> list[BotConfiguration]:
        query = """
        MATCH (n:BotConfiguration {server_id: $server_id, active: true})
        WHERE n.channel_id IS NULL OR n.channel_id = $channel_id
        RETURN n
        ORDER BY n.created_at
        """
        rows = await self._fetch_all(query, server_id=server_id, channel_id=channel_id)
        return [BotConfiguration(**row) for row in rows]

    async def get_configuration(self, config_id: str) -> BotConfiguration:
        row = await self._fetch_one(
            "MATCH (n:BotConfiguration {id: $id}) RETURN n", id=config_id
        )
        if not row:
            raise EntityNotFoundError("Bot configuration", config_id)
        return BotConfiguration(**row)

    async def get_npc(self, npc_id: str) -> NPCProfile:
        row = await self._fetch_one("MATCH (n:NPC {id: $id}) RETURN n", id=npc_id)
        if not row:
            raise EntityNotFoundError("NPC", npc_id)
        return NPCProfile(**row)

    async def get_world(self, world_id: str) -> World:
        row = await self._fetch_one("MATCH (n:World {id: $id}) RETURN n", id=world_id)
        if not row:
            raise EntityNotFoundError("World", world_id)
        return World(**row)

    async def list_npcs(self, world_id: str) -> list[NPCProfile]:
        query = """
        MATCH (n:NPC {world_id: $world_id, active: true})
        RETURN n
        ORDER BY n.name
        """
        rows = await self._fetch_all(query, world_id=world_id)
        return [NPCProfile(**row) for row in rows]

    # ===================
    # Registration
    # ===================

    async def add_configuration(self, config: BotConfiguration) -> BotConfiguration:
        """Store a configuration after checking the server's placement rules.

        Args:
            config: Configuration to create or replace.

        Returns:
            The stored configuration.

        Raises:
            ConfigurationConflictError: If the placement rules are violated.
        """
        async with neo4j_session(self._driver) as session:
            await session.execute_write(self._store_configuration, config)

        logger.info(f"Stored bot configuration {config.id} for server {config.server_id}")
        return config

    @staticmethod
    async def _store_configuration(tx, config: BotConfiguration) -> None:
        # Write-locks the server node so concurrent registrations check in turn
        await tx.run(
            "MERGE (s:DiscordServer {id: $server_id}) SET s.updated_at = datetime()",
            server_id=config.server_id,
        )

        result = await tx.run(
            "MATCH (n:BotConfiguration {server_id: $server_id}) RETURN n",
            server_id=config.server_id,
        )
        existing = [BotConfiguration(**dict(record["n"])) async for record in result]
        check_placement(existing, config)

        query = """
        MERGE (n:BotConfiguration {id: $id})
        ON CREATE SET n.created_at = datetime()
        SET n += $properties
        WITH n
        MATCH (npc:NPC {id: $npc_id})
        MERGE (n)-[:PORTRAYS]->(npc)
        RETURN n
        """
        properties = config.model_dump(exclude={"id"})
        await tx.run(query, id=config.id, npc_id=config.npc_id, properties=properties)
