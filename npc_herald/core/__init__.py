"""Core configuration and utilities."""

from npc_herald.core.config import settings, get_settings
from npc_herald.core.database import get_neo4j_driver, neo4j_session
from npc_herald.core.log_setup import setup_logging

__all__ = ["settings", "get_settings", "get_neo4j_driver", "neo4j_session", "setup_logging"]
