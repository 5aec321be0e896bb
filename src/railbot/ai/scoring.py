"""Weighted multi-dimension scoring of feasible options.

Each option is mapped to a 12-dimension value vector by an evaluator chosen
from a dispatch table keyed on action type. Values are clipped to [0, 1] and
combined with the final weights:

    score = sum(base_weight[d] * archetype_multiplier[d] * value[d])
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence

import numpy as np

from railbot.ai.profiles import DIMENSIONS, BotConfig, ScoringDimension, get_archetype_profile, get_skill_profile
from railbot.ai.settings import EngineSettings
from railbot.game.actions import (
    AIActionType,
    BuildTowardMajorCityParams,
    BuildTrackParams,
    DeliverLoadParams,
    FeasibleOption,
    PickupAndDeliverParams,
    ScoredOption,
    UpgradeTrainParams,
)
from railbot.game.rules import CROSSGRADE_COST, UPGRADE_COST
from railbot.models.snapshot import WorldSnapshot
from railbot.models.trains import TRAIN_PROPERTIES

# Evaluator tuning constants
TYPICAL_MAX_PAYMENT = 25.0
STEP_COST = 5.0
PICKUP_DISCOUNT = 0.6
ESTIMATED_DELIVERY_LEG = 5
PICKUP_STEP_COST = 3.0
SCARCITY_SUPPLY = 5.0
RISK_CASH_BUFFER = 50.0
SEGMENTS_PER_TURN = 8.0
MAX_SEGMENT_COST = 5.0
MAJOR_CITY_PROXIMITY_BONUS = 0.8
PASS_TURN_RISK_CREDIT = 0.1

RATIONALE_THRESHOLD = 0.01
RATIONALE_TOP_N = 3
NO_SIGNAL_RATIONALE = "minimal scoring signal"

_INDEX = {dim: i for i, dim in enumerate(DIMENSIONS)}

Values = dict[ScoringDimension, float]


def count_load_availability(snapshot: WorldSnapshot, load_type: str) -> int:
    """Count how many supply slots across all cities offer a load type."""
    return sum(loads.count(load_type) for loads in snapshot.load_availability.values())


def _payment(snapshot: WorldSnapshot, card_id: int, index: int) -> int:
    card = snapshot.get_demand_card(card_id)
    demand = card.demand_at(index) if card is not None else None
    return demand.payment if demand is not None else 0


class Scorer:
    """
    Score and rank feasible options for a bot personality.

    Args:
        settings: Engine settings; victory thresholds are read from here.
    """

    def __init__(self, settings: Optional[EngineSettings] = None):
        settings = settings or EngineSettings()
        self.victory_cash = settings.victory_cash
        self.victory_cities = settings.victory_cities
        self._evaluators: dict[AIActionType, Callable[[object, WorldSnapshot], Values]] = {
            AIActionType.DELIVER_LOAD: self._eval_deliver_load,
            AIActionType.PICKUP_AND_DELIVER: self._eval_pickup_and_deliver,
            AIActionType.BUILD_TRACK: self._eval_build_track,
            AIActionType.BUILD_TOWARD_MAJOR_CITY: self._eval_build_toward_major_city,
            AIActionType.UPGRADE_TRAIN: self._eval_upgrade_train,
            AIActionType.PASS_TURN: self._eval_pass_turn,
        }
        missing = set(AIActionType) - set(self._evaluators)
        if missing:
            raise RuntimeError(f"No evaluator for action types: {sorted(t.value for t in missing)}")

    @staticmethod
    def final_weights(config: BotConfig) -> np.ndarray:
        """Base weights times archetype multipliers, in dimension order."""
        skill = get_skill_profile(config.skill_level)
        archetype = get_archetype_profile(config.archetype)
        base = np.array([skill.base_weights[d] for d in DIMENSIONS], dtype=float)
        multipliers = np.array([archetype.multipliers[d] for d in DIMENSIONS], dtype=float)
        return base * multipliers

    def evaluate(self, option: FeasibleOption, snapshot: WorldSnapshot) -> np.ndarray:
        """
        Return the clipped value vector for one option.

        Raises:
            ValueError: If the option's params carry an unknown action type.
        """
        evaluator = self._evaluators.get(option.params.type)
        if evaluator is None:
            raise ValueError(f"Unknown action type: {option.params.type}")
        vector = np.zeros(len(DIMENSIONS), dtype=float)
        for dim, value in evaluator(option.params, snapshot).items():
            vector[_INDEX[dim]] = value
        return np.clip(vector, 0.0, 1.0)

    def score(
        self, options: Sequence[FeasibleOption], snapshot: WorldSnapshot, config: BotConfig
    ) -> list[ScoredOption]:
        """
        Score options and sort them by descending score.

        Ties keep generator order.
        """
        weights = self.final_weights(config)
        scored = []
        for option in options:
            contributions = weights * self.evaluate(option, snapshot)
            scored.append(
                ScoredOption(
                    type=option.type,
                    description=option.description,
                    params=option.params,
                    score=float(contributions.sum()),
                    rationale=self._rationale(contributions),
                )
            )
        return sorted(scored, key=lambda s: s.score, reverse=True)

    @staticmethod
    def _rationale(contributions: np.ndarray) -> str:
        ranked = sorted(
            (i for i in range(len(DIMENSIONS)) if contributions[i] > RATIONALE_THRESHOLD),
            key=lambda i: -contributions[i],
        )[:RATIONALE_TOP_N]
        if not ranked:
            return NO_SIGNAL_RATIONALE
        return ", ".join(f"{DIMENSIONS[i].value}:{contributions[i]:.2f}" for i in ranked)

    # --- Evaluators ---

    def _eval_deliver_load(self, params: DeliverLoadParams, snapshot: WorldSnapshot) -> Values:
        payment = _payment(snapshot, params.demand_card_id, params.demand_index)
        path_len = max(len(params.move_path) - 1, 1)
        others = sum(1 for load in snapshot.carried_loads if load != params.load_type)
        supply = count_load_availability(snapshot, params.load_type)
        return {
            ScoringDimension.IMMEDIATE_INCOME: payment / TYPICAL_MAX_PAYMENT,
            ScoringDimension.INCOME_PER_MILEPOST: payment / (path_len * STEP_COST),
            ScoringDimension.MULTI_DELIVERY_POTENTIAL: others / 2,
            # fewer loads left aboard after the drop means less exposure
            ScoringDimension.RISK_EXPOSURE: 0.8 - (len(snapshot.carried_loads) - 1) * 0.2,
            ScoringDimension.VICTORY_PROGRESS: (snapshot.money + payment) / self.victory_cash,
            ScoringDimension.LOAD_SCARCITY: 1.0 - supply / SCARCITY_SUPPLY,
        }

    def _eval_pickup_and_deliver(self, params: PickupAndDeliverParams, snapshot: WorldSnapshot) -> Values:
        payment = _payment(snapshot, params.demand_card_id, params.demand_index)
        pickup_len = max(len(params.pickup_path) - 1, 1)
        slots_after = snapshot.capacity - len(snapshot.carried_loads) - 1
        matching = sum(
            1 for card in snapshot.demand_cards for d in card.demands if d.resource == params.pickup_load_type
        )
        supply = count_load_availability(snapshot, params.pickup_load_type)
        return {
            ScoringDimension.IMMEDIATE_INCOME: payment / TYPICAL_MAX_PAYMENT * PICKUP_DISCOUNT,
            ScoringDimension.INCOME_PER_MILEPOST: payment / ((pickup_len + ESTIMATED_DELIVERY_LEG) * PICKUP_STEP_COST),
            ScoringDimension.MULTI_DELIVERY_POTENTIAL: slots_after / 2,
            ScoringDimension.LOAD_COMBINATION_SCORE: matching / 3,
            ScoringDimension.LOAD_SCARCITY: 1.0 - supply / SCARCITY_SUPPLY,
            ScoringDimension.RISK_EXPOSURE: 0.5 - len(snapshot.carried_loads) * 0.15,
        }

    def _eval_build_track(self, params: BuildTrackParams, snapshot: WorldSnapshot) -> Values:
        seg_count = len(params.segments)
        avg_cost = params.total_cost / seg_count if seg_count else 0.0
        return {
            ScoringDimension.NETWORK_EXPANSION_VALUE: seg_count / SEGMENTS_PER_TURN,
            ScoringDimension.BACKBONE_ALIGNMENT: 1.0 - avg_cost / MAX_SEGMENT_COST,
            ScoringDimension.RISK_EXPOSURE: (snapshot.money - params.total_cost) / RISK_CASH_BUFFER,
            ScoringDimension.VICTORY_PROGRESS: snapshot.connected_major_cities / self.victory_cities * 0.3,
        }

    def _eval_build_toward_major_city(self, params: BuildTowardMajorCityParams, snapshot: WorldSnapshot) -> Values:
        seg_count = len(params.segments)
        return {
            ScoringDimension.NETWORK_EXPANSION_VALUE: seg_count / SEGMENTS_PER_TURN + 0.2,
            ScoringDimension.MAJOR_CITY_PROXIMITY: MAJOR_CITY_PROXIMITY_BONUS,
            ScoringDimension.VICTORY_PROGRESS: (snapshot.connected_major_cities + 1) / self.victory_cities,
            ScoringDimension.BACKBONE_ALIGNMENT: 0.7 + seg_count / 20,
            ScoringDimension.RISK_EXPOSURE: (snapshot.money - params.total_cost) / RISK_CASH_BUFFER,
        }

    def _eval_upgrade_train(self, params: UpgradeTrainParams, snapshot: WorldSnapshot) -> Values:
        target = TRAIN_PROPERTIES[params.target_train_type]
        current = TRAIN_PROPERTIES[snapshot.train_type]
        speed_gain = target.speed - current.speed
        capacity_gain = target.capacity - current.capacity
        cost = CROSSGRADE_COST if params.kind == "crossgrade" else UPGRADE_COST
        return {
            # speed normalized to roughly the same scale as capacity
            ScoringDimension.UPGRADE_ROI: (speed_gain / 3 + capacity_gain) / (cost / 10),
            ScoringDimension.MULTI_DELIVERY_POTENTIAL: 0.8 if capacity_gain > 0 else 0.2,
            ScoringDimension.INCOME_PER_MILEPOST: 0.6 if speed_gain > 0 else 0.1,
            ScoringDimension.RISK_EXPOSURE: (snapshot.money - cost) / RISK_CASH_BUFFER,
        }

    def _eval_pass_turn(self, params: object, snapshot: WorldSnapshot) -> Values:
        return {ScoringDimension.RISK_EXPOSURE: PASS_TURN_RISK_CREDIT}
