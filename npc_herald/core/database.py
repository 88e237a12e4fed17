"""Database connection management for Neo4j."""

from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncGenerator

from neo4j import AsyncDriver, AsyncGraphDatabase, AsyncSession

from npc_herald.core.config import settings


@lru_cache
def get_neo4j_driver() -> AsyncDriver:
    """Get cached Neo4j driver instance."""
    return AsyncGraphDatabase.driver(
        settings.neo4j_uri,
        auth=(settings.neo4j_user, settings.neo4j_password),
    )


@asynccontextmanager
async def neo4j_session(driver: AsyncDriver | None = None) -> AsyncGenerator[AsyncSession, None]:
    """Context manager for Neo4j sessions."""
    driver = driver or get_neo4j_driver()
    session = driver.session()
    try:
        yield session
    finally:
        await session.close()


async def close_neo4j_driver() -> None:
    """Close the cached driver if one was created."""
    if get_neo4j_driver.cache_info().currsize:
        await get_neo4j_driver().close()
        get_neo4j_driver.cache_clear()
