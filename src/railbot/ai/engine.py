"""Strategy engine - runs one bot turn from snapshot to audit."""

from __future__ import annotations

import random
import time
from typing import Optional

from pydantic import BaseModel

from railbot.ai.audit import StrategyAudit, build_audit, compute_snapshot_hash
from railbot.ai.botlog import BotLogAdapter, bot_logger
from railbot.ai.executor import TurnExecutor
from railbot.ai.options import OptionGenerator
from railbot.ai.policy import RandomSource, select_candidate_order
from railbot.ai.profiles import BotConfig, get_skill_profile
from railbot.ai.scoring import Scorer
from railbot.ai.services import (
    TURN_COMPLETE_EVENT,
    TURN_START_EVENT,
    AuditStore,
    Notifier,
    SnapshotCaptureError,
    SnapshotProvider,
)
from railbot.ai.settings import EngineSettings
from railbot.ai.validator import PlanValidator
from railbot.game.actions import ExecutionResult, FeasibleOption, pass_turn, single_action_plan
from railbot.models.board import hex_distance
from railbot.models.snapshot import WorldSnapshot

FALLBACK_PASS_DESCRIPTION = "PassTurn (fallback: all retries exhausted)"


class TurnResult(BaseModel, frozen=True):
    """What the engine reports back for one bot turn."""

    success: bool
    audit: StrategyAudit
    retries_used: int
    fell_back_to_pass: bool


class PlacementResult(BaseModel, frozen=True):
    """Where the bot's train was placed at game start."""

    row: int
    col: int
    city_name: str


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class StrategyEngine:
    """
    Orchestrates a bot turn.

    Snapshot -> generate -> score -> order -> validate/execute with retries
    -> PassTurn fallback -> audit. Every call returns exactly one
    `TurnResult`, and exactly one terminal action is attempted successfully
    or as the fallback.
    """

    def __init__(
        self,
        snapshots: SnapshotProvider,
        executor: TurnExecutor,
        audits: AuditStore,
        notifier: Notifier,
        *,
        generator: Optional[OptionGenerator] = None,
        scorer: Optional[Scorer] = None,
        validator: Optional[PlanValidator] = None,
        rng: Optional[RandomSource] = None,
        settings: Optional[EngineSettings] = None,
    ):
        """
        Args:
            snapshots: Captures the world state for a bot turn
            executor: Applies plans to the game state
            audits: Persists turn audits
            notifier: Transport for turn-start/turn-complete events
            generator: Option generator (default: `OptionGenerator()`)
            scorer: Option scorer (default: built from `settings`)
            validator: Plan validator (default: `PlanValidator()`)
            rng: Random source for candidate ordering
            settings: Engine settings (default: read from the environment)
        """
        self.settings = settings or EngineSettings()
        self.snapshots = snapshots
        self.executor = executor
        self.audits = audits
        self.notifier = notifier
        self.generator = generator or OptionGenerator()
        self.scorer = scorer or Scorer(self.settings)
        self.validator = validator or PlanValidator()
        self.rng = rng or random.Random()

    async def save_audit_safe(
        self, game_id: str, player_id: str, audit: StrategyAudit, log: BotLogAdapter
    ) -> None:
        """Persist an audit; failures are logged and never raised."""
        try:
            await self.audits.save_turn_audit(game_id, player_id, audit)
        except Exception as exc:
            log.error("Failed to save turn audit", data={"error": str(exc)})

    async def _finish(
        self,
        game_id: str,
        bot_player_id: str,
        audit: StrategyAudit,
        log: BotLogAdapter,
        *,
        success: bool,
        retries_used: int,
        fell_back_to_pass: bool,
    ) -> TurnResult:
        await self.save_audit_safe(game_id, bot_player_id, audit, log)
        self.notifier.emit(game_id, TURN_COMPLETE_EVENT, {"bot_player_id": bot_player_id, "audit": audit})
        return TurnResult(
            success=success, audit=audit, retries_used=retries_used, fell_back_to_pass=fell_back_to_pass
        )

    async def take_turn(
        self,
        game_id: str,
        bot_player_id: str,
        bot_user_id: str,
        config: BotConfig,
        turn_number: int,
    ) -> TurnResult:
        """
        Run one complete bot turn.

        Only a snapshot capture failure ends the turn before an action is
        attempted; validation and execution failures move on to the next
        candidate, and once the retry budget is spent a PassTurn is executed.

        Args:
            game_id: Game the bot is playing
            bot_player_id: The bot's player record ID
            bot_user_id: The bot's user ID
            config: Skill level and archetype
            turn_number: Current turn number, recorded in the audit

        Returns:
            TurnResult with the turn's audit
        """
        start = time.perf_counter()
        log = bot_logger(__name__, game_id, bot_player_id)

        self.notifier.emit(game_id, TURN_START_EVENT, {"bot_player_id": bot_player_id, "turn_number": turn_number})
        log.info(
            f"Turn {turn_number} starting",
            data={"skill_level": config.skill_level.value, "archetype": config.archetype.value},
        )

        # Snapshot
        try:
            snapshot = await self.snapshots.capture(game_id, bot_player_id, bot_user_id)
        except Exception as exc:
            message = str(exc)
            log.error(f"Failed to capture snapshot: {message}")
            audit = build_audit(
                turn_number=turn_number,
                config=config,
                snapshot_hash="",
                scored=[],
                infeasible=[],
                selected_plan=[],
                execution_result=ExecutionResult(
                    success=False, actions_executed=0, error=message, duration_ms=_elapsed_ms(start)
                ),
                snapshot=None,
                duration_ms=_elapsed_ms(start),
            )
            return await self._finish(
                game_id, bot_player_id, audit, log, success=False, retries_used=0, fell_back_to_pass=True
            )

        snapshot_hash = compute_snapshot_hash(snapshot)
        log.debug(
            "Snapshot captured",
            data={"hash": snapshot_hash, "money": snapshot.money, "loads": len(snapshot.carried_loads)},
        )

        # Generate, score, order
        generated = self.generator.generate(snapshot)
        if generated.infeasible:
            log.debug(
                "Infeasible options rejected",
                data={"reasons": [f"{o.type.value}: {o.reason}" for o in generated.infeasible]},
            )
        scored = self.scorer.score(generated.feasible, snapshot, config)
        log.debug("Options scored", data={"top3": [f"{o.type.value}({o.score:.2f})" for o in scored[:3]]})

        skill = get_skill_profile(config.skill_level)
        candidates = select_candidate_order(
            scored, skill.random_choice_percent, skill.suboptimality_percent, self.rng
        )

        def audit_for(selected: FeasibleOption, result: ExecutionResult) -> StrategyAudit:
            return build_audit(
                turn_number=turn_number,
                config=config,
                snapshot_hash=snapshot_hash,
                scored=scored,
                infeasible=generated.infeasible,
                selected_plan=[selected],
                execution_result=result,
                snapshot=snapshot,
                duration_ms=_elapsed_ms(start),
            )

        # Validate and execute with retries
        max_retries = self.settings.max_retries
        retries_used = 0
        for attempt, selected in enumerate(candidates[:max_retries]):
            plan = single_action_plan(selected)

            validation = self.validator.validate(plan, snapshot)
            if not validation.valid:
                log.warning(
                    f"Validation failed (attempt {attempt + 1}/{max_retries})",
                    data={"action": selected.type.value, "errors": list(validation.errors)},
                )
                retries_used += 1
                continue

            result = await self.executor.execute(plan, snapshot)
            if result.success:
                log.info(
                    f"Turn {turn_number} complete",
                    data={"action": selected.type.value, "score": round(selected.score, 3), "retries_used": retries_used},
                )
                return await self._finish(
                    game_id,
                    bot_player_id,
                    audit_for(selected, result),
                    log,
                    success=True,
                    retries_used=retries_used,
                    fell_back_to_pass=False,
                )

            log.warning(
                f"Execution failed (attempt {attempt + 1}/{max_retries})",
                data={"action": selected.type.value, "error": result.error},
            )
            retries_used += 1

        # Fallback; a pass is always legal so it is not validated
        log.error(f"All retries exhausted ({retries_used}), executing PassTurn fallback")
        pass_action = pass_turn(FALLBACK_PASS_DESCRIPTION)
        pass_result = await self.executor.execute(single_action_plan(pass_action), snapshot)
        return await self._finish(
            game_id,
            bot_player_id,
            audit_for(pass_action, pass_result),
            log,
            success=pass_result.success,
            retries_used=retries_used,
            fell_back_to_pass=True,
        )

    async def place_initial_train(self, game_id: str, bot_player_id: str, bot_user_id: str) -> PlacementResult:
        """
        Place the bot's train at the major city nearest its demand cities.

        Each major city scores `sum(1 / (1 + distance))` over the distinct
        demand cities with a known position; the first best city wins.

        Raises:
            SnapshotCaptureError: If the world state cannot be captured
            ValueError: If the map has no major cities
        """
        log = bot_logger(__name__, game_id, bot_player_id)
        log.info("Placing initial train")

        try:
            snapshot = await self.snapshots.capture(game_id, bot_player_id, bot_user_id)
        except Exception as exc:
            raise SnapshotCaptureError(str(exc)) from exc

        if not snapshot.major_cities:
            raise ValueError("No major cities available for initial placement")

        best_city, best_score = self._best_start_city(snapshot)
        log.info(f"Selected {best_city.city_name} for initial placement", data={"score": f"{best_score:.2f}"})

        center = best_city.center
        point = snapshot.find_point(center.row, center.col)
        x = point.x if point is not None else 0
        y = point.y if point is not None else 0
        await self.executor.store.update_position(game_id, bot_player_id, center.row, center.col, x, y)

        return PlacementResult(row=center.row, col=center.col, city_name=best_city.city_name)

    @staticmethod
    def _best_start_city(snapshot: WorldSnapshot):
        demand_cities: list[str] = []
        for card in snapshot.demand_cards:
            for demand in card.demands:
                if demand.city not in demand_cities:
                    demand_cities.append(demand.city)

        positions = snapshot.city_positions()
        best_city = snapshot.major_cities[0]
        best_score = float("-inf")
        for city in snapshot.major_cities:
            score = 0.0
            for name in demand_cities:
                point = positions.get(name)
                if point is None:
                    continue
                score += 1 / (1 + hex_distance(city.center.key, point.key))
            if score > best_score:
                best_city, best_score = city, score
        return best_city, best_score
