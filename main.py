"""Run the NPC Herald API and Discord bot."""

import uvicorn

from npc_herald.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "npc_herald.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
