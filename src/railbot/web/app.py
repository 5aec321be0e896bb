"""FastAPI strategy inspector: read-only access to bot audits and profiles."""

from __future__ import annotations

import os
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from railbot.ai.audit import StrategyAudit
from railbot.ai.botlog import configure_logging
from railbot.ai.profiles import ARCHETYPE_PROFILES, SKILL_PROFILES, ArchetypeProfile, SkillProfile
from railbot.ai.services import InMemoryAuditStore
from railbot.ai.settings import EngineSettings


def create_app(audit_store: Optional[InMemoryAuditStore] = None) -> FastAPI:
    """
    Build the inspector app around an audit store.

    Args:
        audit_store: Where the strategy engine saves audits (default: a new empty store)
    """
    store = audit_store if audit_store is not None else InMemoryAuditStore()

    app = FastAPI(
        title="Railbot Strategy Inspector",
        description="Inspect bot turn audits and personality profiles",
        version="1.0.0",
    )
    app.state.audit_store = store

    origins = os.getenv("RAILBOT_CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        """Health check."""
        return {"status": "ok", "service": "railbot"}

    @app.get("/profiles/skills", response_model=list[SkillProfile])
    async def list_skill_profiles():
        """Skill profiles, easiest first."""
        return list(SKILL_PROFILES.values())

    @app.get("/profiles/archetypes", response_model=list[ArchetypeProfile])
    async def list_archetype_profiles():
        return list(ARCHETYPE_PROFILES.values())

    @app.get("/games/{game_id}/bots/{player_id}/audit", response_model=StrategyAudit)
    async def get_latest_audit(game_id: str, player_id: str):
        """Latest audit for a bot, or 404 if it has not taken a turn."""
        audit = await store.get_latest_audit(game_id, player_id)
        if audit is None:
            raise HTTPException(status_code=404, detail="No audit recorded for this bot")
        return audit

    @app.get("/games/{game_id}/bots/{player_id}/audits", response_model=list[StrategyAudit])
    async def list_audits(game_id: str, player_id: str):
        """Every audit for a bot, oldest first."""
        return await store.list_audits(game_id, player_id)

    return app


async def serve(audit_store: InMemoryAuditStore, settings: Optional[EngineSettings] = None) -> None:
    """
    Serve the inspector from inside the process that runs the strategy engine.

    Pass the same store the engine saves audits to, and run this coroutine
    next to the engine's turns, e.g. with `asyncio.gather`.

    Args:
        audit_store: The engine's audit store
        settings: Bind address, port and log level (default: read from the environment)
    """
    settings = settings or EngineSettings()
    configure_logging(settings.log_level)
    config = uvicorn.Config(
        create_app(audit_store),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    await uvicorn.Server(config).serve()
