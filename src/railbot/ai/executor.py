"""Apply a validated turn plan to the game state."""

from __future__ import annotations

import logging
import time
from typing import Optional, Sequence

from railbot.ai.services import GameStore
from railbot.game.actions import (
    BuildTowardMajorCityParams,
    BuildTrackParams,
    DeliverLoadParams,
    ExecutionResult,
    FeasibleOption,
    PassTurnParams,
    PickupAndDeliverParams,
    TurnPlan,
    UpgradeTrainParams,
)
from railbot.models.board import Point
from railbot.models.snapshot import WorldSnapshot

logger = logging.getLogger(__name__)


class PartialExecutionError(RuntimeError):
    """Raised when part of an action (a move or a pickup) was committed before a later step failed."""


class TurnExecutor:
    """
    Translate plan actions into `GameStore` calls.

    Each action runs to completion or raises; the first failure stops the
    plan and is reported in the `ExecutionResult`.
    """

    def __init__(self, store: GameStore):
        self.store = store

    async def execute(self, plan: TurnPlan, snapshot: WorldSnapshot) -> ExecutionResult:
        start = time.perf_counter()
        executed = 0
        try:
            for action in plan.actions:
                await self._execute_action(action, snapshot)
                executed += 1
        except Exception as exc:
            logger.error("TurnExecutor failed after %d actions: %s", executed, exc)
            return ExecutionResult(
                success=False,
                actions_executed=0,
                error=str(exc),
                duration_ms=(time.perf_counter() - start) * 1000,
            )
        return ExecutionResult(
            success=True,
            actions_executed=executed,
            duration_ms=(time.perf_counter() - start) * 1000,
        )

    async def _execute_action(self, action: FeasibleOption, snapshot: WorldSnapshot) -> None:
        params = action.params
        if isinstance(params, PassTurnParams):
            return
        elif isinstance(params, DeliverLoadParams):
            await self._deliver(params, snapshot)
        elif isinstance(params, PickupAndDeliverParams):
            await self._pickup_and_deliver(params, snapshot)
        elif isinstance(params, (BuildTrackParams, BuildTowardMajorCityParams)):
            if params.segments:
                await self.store.build_track(
                    snapshot.game_id,
                    snapshot.bot_player_id,
                    snapshot.bot_user_id,
                    params.segments,
                    params.total_cost,
                )
        elif isinstance(params, UpgradeTrainParams):
            await self.store.purchase_train(
                snapshot.game_id, snapshot.bot_user_id, params.kind, params.target_train_type
            )
        else:
            raise ValueError(f"Unknown action params: {type(params).__name__}")

    async def _move_along(self, path: Sequence[Point], snapshot: WorldSnapshot) -> Optional[Point]:
        """
        Move the train along `path`, skipping `path[0]` (its current milepost).

        Returns:
            The last milepost reached, or None if the train did not move

        Raises:
            PartialExecutionError: If a step fails after earlier steps were committed
        """
        reached: Optional[Point] = None
        for point in path[1:]:
            try:
                await self.store.move_train(snapshot.game_id, snapshot.bot_user_id, point.row, point.col, 1)
            except Exception as exc:
                if reached is None:
                    raise
                raise PartialExecutionError(
                    f"move to {reached.row},{reached.col} committed; move to {point.row},{point.col} failed: {exc}"
                ) from exc
            reached = point
        return reached

    async def _return_load(self, snapshot: WorldSnapshot, city: str, load_type: str) -> None:
        try:
            await self.store.return_load(snapshot.game_id, city, load_type)
        except Exception as exc:
            # Load chip tracking is secondary to the delivery itself
            logger.warning("Could not return %s to the tray at %s: %s", load_type, city, exc)

    async def _deliver(self, params: DeliverLoadParams, snapshot: WorldSnapshot) -> None:
        reached = await self._move_along(params.move_path, snapshot)
        try:
            await self.store.deliver_load(
                snapshot.game_id, snapshot.bot_user_id, params.city, params.load_type, params.demand_card_id
            )
        except Exception as exc:
            if reached is None:
                raise
            raise PartialExecutionError(
                f"move to {reached.row},{reached.col} committed; delivery of {params.load_type} "
                f"to {params.city} failed: {exc}"
            ) from exc
        await self._return_load(snapshot, params.city, params.load_type)

    async def _pickup_and_deliver(self, params: PickupAndDeliverParams, snapshot: WorldSnapshot) -> None:
        reached = await self._move_along(params.pickup_path, snapshot)

        dropped = params.pickup_load_type in snapshot.dropped_loads.get(params.pickup_city, ())
        try:
            await self.store.pickup_load(
                snapshot.game_id, snapshot.bot_user_id, params.pickup_city, params.pickup_load_type, dropped
            )
        except Exception as exc:
            if reached is None:
                raise
            raise PartialExecutionError(
                f"move to {reached.row},{reached.col} committed; pickup of {params.pickup_load_type} "
                f"at {params.pickup_city} failed: {exc}"
            ) from exc

        if len(params.deliver_path) <= 1:
            return
        try:
            await self._move_along(params.deliver_path, snapshot)
            await self.store.deliver_load(
                snapshot.game_id,
                snapshot.bot_user_id,
                params.deliver_city,
                params.pickup_load_type,
                params.demand_card_id,
            )
        except Exception as exc:
            raise PartialExecutionError(
                f"pickup of {params.pickup_load_type} at {params.pickup_city} committed; "
                f"delivery to {params.deliver_city} failed: {exc}"
            ) from exc
        await self._return_load(snapshot, params.deliver_city, params.pickup_load_type)
