"""FastAPI application entry point."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from npc_herald.api.routes import bots, discord_tools
from npc_herald.core.config import settings
from npc_herald.core.database import close_neo4j_driver
from npc_herald.core.log_setup import setup_logging
from npc_herald.discord.assets import SignedUrlAssetStore
from npc_herald.discord.bot_manager import HeraldBot
from npc_herald.discord.graph_store import Neo4jCampaignStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the Discord bot with the app and stop it on shutdown."""
    setup_logging(settings.log_level)

    store = Neo4jCampaignStore()
    try:
        await store.ensure_schema()
    except Exception as e:
        logger.error(f"Could not prepare Neo4j schema: {e}")

    app.state.store = store
    app.state.bot = None
    bot_task = None

    if settings.discord_bot_token and settings.openai_api_key:
        bot = HeraldBot(
            settings,
            store,
            assets=SignedUrlAssetStore(settings.asset_base_url, settings.asset_signing_key),
        )
        app.state.bot = bot
        bot_task = asyncio.create_task(bot.start())
    else:
        logger.warning("Discord bot token or OpenAI API key missing; bot not started")

    yield

    if app.state.bot is not None:
        await app.state.bot.stop()
    if bot_task is not None:
        bot_task.cancel()
        await asyncio.gather(bot_task, return_exceptions=True)
    await close_neo4j_driver()


app = FastAPI(
    title="NPC Herald",
    description="Routes Discord mentions to world NPCs and replies in character",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for the dashboard
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(bots.router, prefix="/api", tags=["Bots"])
app.include_router(discord_tools.router, prefix="/api/discord", tags=["Discord"])


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "NPC Herald",
        "version": "0.1.0",
    }


@app.get("/health")
async def health():
    """Detailed health check."""
    bot = getattr(app.state, "bot", None)
    return {
        "status": "healthy",
        "components": {
            "api": "ok",
            "openai": "configured" if settings.openai_api_key else "missing",
            "discord": "ready" if bot is not None and bot.ready else "offline",
        },
    }
