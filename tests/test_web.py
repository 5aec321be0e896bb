"""Tests for the strategy inspector API."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from conftest import FakeGameStore, FakeSnapshotProvider, make_snapshot

from railbot.ai.audit import build_audit, compute_snapshot_hash
from railbot.ai.engine import StrategyEngine
from railbot.ai.executor import TurnExecutor
from railbot.ai.options import OptionGenerator
from railbot.ai.profiles import BotConfig, SkillLevel
from railbot.ai.scoring import Scorer
from railbot.ai.services import InMemoryAuditStore, RecordingNotifier
from railbot.ai.settings import EngineSettings
from railbot.game.actions import ExecutionResult
from railbot.web.app import create_app, serve

GAME = "game-0001-abcdef"
BOT = "player-0001-abcdef"


def make_audit(turn_number):
    snapshot = make_snapshot()
    config = BotConfig(skill_level=SkillLevel.MEDIUM)
    generated = OptionGenerator().generate(snapshot)
    scored = Scorer().score(generated.feasible, snapshot, config)
    return build_audit(
        turn_number=turn_number,
        config=config,
        snapshot_hash=compute_snapshot_hash(snapshot),
        scored=scored,
        infeasible=generated.infeasible,
        selected_plan=[scored[0]],
        execution_result=ExecutionResult(success=True, actions_executed=1),
        snapshot=snapshot,
        duration_ms=2.0,
    )


@pytest.fixture
def store():
    return InMemoryAuditStore()


@pytest.fixture
def client(store):
    return TestClient(create_app(store))


class TestInspector:
    def test_health(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "railbot"}

    def test_skill_profiles(self, client):
        body = client.get("/profiles/skills").json()
        assert [p["level"] for p in body] == ["easy", "medium", "hard"]
        assert body[0]["random_choice_percent"] == 20
        assert len(body[2]["base_weights"]) == 12

    def test_archetype_profiles(self, client):
        body = client.get("/profiles/archetypes").json()
        assert len(body) == 5
        assert {"id", "name", "description", "multipliers"} <= set(body[0])

    def test_missing_audit(self, client):
        response = client.get(f"/games/{GAME}/bots/{BOT}/audit")
        assert response.status_code == 404
        assert response.json()["detail"] == "No audit recorded for this bot"

    def test_latest_audit(self, client, store):
        asyncio.run(store.save_turn_audit(GAME, BOT, make_audit(1)))
        asyncio.run(store.save_turn_audit(GAME, BOT, make_audit(2)))
        body = client.get(f"/games/{GAME}/bots/{BOT}/audit").json()
        assert body["turn_number"] == 2
        assert body["skill_level"] == "medium"
        assert len(body["feasible_options"]) == 8
        assert body["bot_status"]["cash"] == 50

    def test_audit_list(self, client, store):
        for turn in (1, 2, 3):
            asyncio.run(store.save_turn_audit(GAME, BOT, make_audit(turn)))
        body = client.get(f"/games/{GAME}/bots/{BOT}/audits").json()
        assert [a["turn_number"] for a in body] == [1, 2, 3]
        assert client.get(f"/games/{GAME}/bots/someone-else/audits").json() == []


class FakeServer:
    started = []

    def __init__(self, config):
        self.config = config

    async def serve(self):
        FakeServer.started.append(self.config)


class TestServeAlongsideEngine:
    def test_engine_audits_visible(self, client, store):
        engine = StrategyEngine(
            FakeSnapshotProvider(make_snapshot()),
            TurnExecutor(FakeGameStore()),
            store,
            RecordingNotifier(),
            settings=EngineSettings(),
        )
        asyncio.run(engine.take_turn(GAME, BOT, "user-1", BotConfig(skill_level=SkillLevel.HARD), 5))
        response = client.get(f"/games/{GAME}/bots/{BOT}/audit")
        assert response.status_code == 200
        assert response.json()["turn_number"] == 5

    def test_serve_uses_given_store(self, monkeypatch, store):
        FakeServer.started.clear()
        monkeypatch.setattr("railbot.web.app.uvicorn.Server", FakeServer)
        asyncio.run(serve(store, EngineSettings(host="0.0.0.0", port=9001, log_level="WARNING")))
        (config,) = FakeServer.started
        assert config.app.state.audit_store is store
        assert (config.host, config.port, config.log_level) == ("0.0.0.0", 9001, "warning")
