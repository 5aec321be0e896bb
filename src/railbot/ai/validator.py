"""Last-moment re-check of a turn plan against the snapshot."""

from __future__ import annotations

from railbot.game.actions import (
    BuildTowardMajorCityParams,
    BuildTrackParams,
    DeliverLoadParams,
    FeasibleOption,
    PassTurnParams,
    PickupAndDeliverParams,
    TurnPlan,
    UpgradeTrainParams,
    ValidationResult,
)
from railbot.game.rules import find_reachable_city, find_upgrade, remaining_budget
from railbot.models.snapshot import WorldSnapshot


class PlanValidator:
    """
    Validate a plan's action against the live snapshot.

    Option generation and execution are not atomic with the rest of the
    game, so every check the generator made is repeated here. Ordinary
    failures are returned as errors; only a malformed plan raises.
    """

    def validate(self, plan: TurnPlan, snapshot: WorldSnapshot) -> ValidationResult:
        """
        Args:
            plan: Single-action plan to check
            snapshot: Current world state

        Returns:
            ValidationResult listing every problem found

        Raises:
            ValueError: If the action's params are not a known action type
        """
        errors: list[str] = []
        money = snapshot.money
        for action in plan.actions:
            errors.extend(self._check_action(action, snapshot))
            money -= self._spend(action)

        if money < 0:
            errors.append(f"Plan leaves bot with negative funds: {money}M")

        return ValidationResult(valid=not errors, errors=tuple(errors))

    def _check_action(self, action: FeasibleOption, snapshot: WorldSnapshot) -> list[str]:
        params = action.params
        if isinstance(params, DeliverLoadParams):
            return self._check_deliver(params, snapshot)
        elif isinstance(params, PickupAndDeliverParams):
            return self._check_pickup(params, snapshot)
        elif isinstance(params, BuildTrackParams):
            return self._check_build("BuildTrack", params.segments, params.total_cost, snapshot)
        elif isinstance(params, BuildTowardMajorCityParams):
            return self._check_build(
                "BuildTowardMajorCity", params.segments, params.total_cost, snapshot, target=params.target_city
            )
        elif isinstance(params, UpgradeTrainParams):
            return self._check_upgrade(params, snapshot)
        elif isinstance(params, PassTurnParams):
            return []
        else:
            raise ValueError(f"Unknown action params: {type(params).__name__}")

    @staticmethod
    def _spend(action: FeasibleOption) -> int:
        params = action.params
        if isinstance(params, (BuildTrackParams, BuildTowardMajorCityParams)):
            return params.total_cost
        if isinstance(params, UpgradeTrainParams):
            return params.cost
        return 0

    @staticmethod
    def _check_demand(prefix: str, card_id: int, index: int, snapshot: WorldSnapshot) -> list[str]:
        card = snapshot.get_demand_card(card_id)
        if card is None:
            return [f"{prefix}: demand card {card_id} not in hand"]
        if card.demand_at(index) is None:
            return [f"{prefix}: invalid demand index {index}"]
        return []

    @staticmethod
    def _check_reach(prefix: str, city: str, snapshot: WorldSnapshot, label: str = "") -> list[str]:
        if snapshot.position is None:
            return [f"{prefix}: bot has no position on the map"]
        if find_reachable_city(snapshot, city) is None:
            return [f"{prefix}: cannot reach {label}{city} within {snapshot.remaining_movement} movement"]
        return []

    def _check_deliver(self, params: DeliverLoadParams, snapshot: WorldSnapshot) -> list[str]:
        errors = []
        if params.load_type not in snapshot.carried_loads:
            errors.append(f"DeliverLoad: not carrying {params.load_type}")
        errors.extend(self._check_demand("DeliverLoad", params.demand_card_id, params.demand_index, snapshot))
        errors.extend(self._check_reach("DeliverLoad", params.city, snapshot))
        return errors

    def _check_pickup(self, params: PickupAndDeliverParams, snapshot: WorldSnapshot) -> list[str]:
        errors = []
        if len(snapshot.carried_loads) >= snapshot.capacity:
            errors.append(f"PickupAndDeliver: train at capacity ({snapshot.capacity} loads)")
        if not snapshot.load_available_at(params.pickup_city, params.pickup_load_type):
            errors.append(f"PickupAndDeliver: {params.pickup_load_type} not available at {params.pickup_city}")
        errors.extend(
            self._check_demand("PickupAndDeliver", params.demand_card_id, params.demand_index, snapshot)
        )
        errors.extend(self._check_reach("PickupAndDeliver", params.pickup_city, snapshot, label="pickup city "))
        return errors

    @staticmethod
    def _check_build(
        prefix: str, segments: tuple, total_cost: int, snapshot: WorldSnapshot, target: str = ""
    ) -> list[str]:
        if not segments:
            return [f"{prefix}: no segments to build" + (f" toward {target}" if target else "")]
        errors = []
        budget = remaining_budget(snapshot)
        if total_cost > budget:
            errors.append(f"{prefix}: cost {total_cost}M exceeds remaining turn budget {budget}M")
        if total_cost > snapshot.money:
            errors.append(f"{prefix}: insufficient funds (need {total_cost}M, have {snapshot.money}M)")
        return errors

    @staticmethod
    def _check_upgrade(params: UpgradeTrainParams, snapshot: WorldSnapshot) -> list[str]:
        if snapshot.train_type == params.target_train_type:
            return ["UpgradeTrain: already have this train type"]
        if find_upgrade(snapshot.train_type, params.target_train_type) is None:
            return [
                f"UpgradeTrain: no valid path from {snapshot.train_type.value} "
                f"to {params.target_train_type.value}"
            ]
        errors = []
        budget = remaining_budget(snapshot)
        if params.cost > budget:
            errors.append(f"UpgradeTrain: cost {params.cost}M exceeds remaining turn budget {budget}M")
        if params.cost > snapshot.money:
            errors.append(f"UpgradeTrain: insufficient funds (need {params.cost}M, have {snapshot.money}M)")
        return errors
