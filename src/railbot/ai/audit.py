"""Per-turn strategy audit records."""

from __future__ import annotations

import hashlib
import json
from typing import Optional, Sequence

from pydantic import BaseModel, Field, SerializeAsAny

from railbot.ai.profiles import BotConfig, SkillLevel, get_archetype_profile
from railbot.game.actions import ExecutionResult, FeasibleOption, InfeasibleOption, ScoredOption
from railbot.models.snapshot import WorldSnapshot
from railbot.models.trains import TrainType

NO_ACTIONS_PLAN = "PassTurn (no actions)"


class BotStatus(BaseModel, frozen=True):
    """Compact summary of the bot at the time of the turn."""

    cash: int = 0
    train_type: TrainType = TrainType.FREIGHT
    loads: tuple[str, ...] = ()
    major_cities_connected: int = 0


class StrategyAudit(BaseModel, frozen=True):
    """
    Point-in-time record of one bot turn.

    Created once, persisted, and never updated.
    """

    turn_number: int
    archetype_name: str
    skill_level: SkillLevel
    snapshot_hash: str = Field(description="Short fingerprint for correlating turns; empty if capture failed")
    current_plan: str
    archetype_rationale: str
    feasible_options: tuple[ScoredOption, ...] = ()
    rejected_options: tuple[InfeasibleOption, ...] = ()
    selected_plan: tuple[SerializeAsAny[FeasibleOption], ...] = ()
    execution_result: ExecutionResult
    bot_status: BotStatus
    duration_ms: float = 0.0


def compute_snapshot_hash(snapshot: WorldSnapshot) -> str:
    """First 8 hex chars of an MD5 over the snapshot's identifying fields."""
    data = json.dumps(
        {
            "g": snapshot.game_id,
            "b": snapshot.bot_player_id,
            "m": snapshot.money,
            "p": snapshot.position.model_dump() if snapshot.position is not None else None,
            "l": list(snapshot.carried_loads),
            "t": len(snapshot.track_segments),
        },
        separators=(",", ":"),
    )
    return hashlib.md5(data.encode("utf-8")).hexdigest()[:8]


def build_audit(
    *,
    turn_number: int,
    config: BotConfig,
    snapshot_hash: str,
    scored: Sequence[ScoredOption],
    infeasible: Sequence[InfeasibleOption],
    selected_plan: Sequence[FeasibleOption],
    execution_result: ExecutionResult,
    snapshot: Optional[WorldSnapshot],
    duration_ms: float,
) -> StrategyAudit:
    """Assemble the audit for a finished turn."""
    archetype = get_archetype_profile(config.archetype)

    if snapshot is not None:
        status = BotStatus(
            cash=snapshot.money,
            train_type=snapshot.train_type,
            loads=snapshot.carried_loads,
            major_cities_connected=snapshot.connected_major_cities,
        )
    else:
        status = BotStatus()

    return StrategyAudit(
        turn_number=turn_number,
        archetype_name=archetype.name,
        skill_level=config.skill_level,
        snapshot_hash=snapshot_hash,
        current_plan="; ".join(a.description for a in selected_plan) or NO_ACTIONS_PLAN,
        archetype_rationale=f"{archetype.name}: {archetype.description}",
        feasible_options=tuple(scored),
        rejected_options=tuple(infeasible),
        selected_plan=tuple(selected_plan),
        execution_result=execution_result,
        bot_status=status,
        duration_ms=duration_ms,
    )
