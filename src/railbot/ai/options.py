"""Enumerate every action a bot could attempt this turn."""

from __future__ import annotations

from pydantic import BaseModel

from railbot.game.actions import (
    AIActionType,
    BuildTowardMajorCityParams,
    BuildTrackParams,
    DeliverLoadParams,
    FeasibleOption,
    InfeasibleOption,
    PickupAndDeliverParams,
    UpgradeTrainParams,
    feasible,
    infeasible,
    pass_turn,
)
from railbot.game.rules import (
    VALID_UPGRADES,
    ReachableCity,
    compute_build_segments,
    compute_reachable_cities,
    remaining_budget,
    unconnected_major_cities,
    validate_build_track_feasibility,
    validate_delivery_feasibility,
    validate_pickup_feasibility,
    validate_upgrade_feasibility,
)
from railbot.models.board import GridPoint, Point, TerrainType
from railbot.models.snapshot import WorldSnapshot


class GenerationResult(BaseModel, frozen=True):
    """Options split by whether the rules allow them right now."""

    feasible: tuple[FeasibleOption, ...] = ()
    infeasible: tuple[InfeasibleOption, ...] = ()


def _path_to(snapshot: WorldSnapshot, reachable: list[ReachableCity], city_name: str) -> tuple[Point, ...]:
    """
    Two-point path from the train to a reachable city, or just the train's position.

    Raises:
        ValueError: If the bot has no position on the map
    """
    if snapshot.position is None:
        raise ValueError("Bot has no position on the map")
    for city in reachable:
        if city.city_name == city_name:
            return (snapshot.position, Point(row=city.row, col=city.col))
    return (snapshot.position,)


def _demand_city_point(snapshot: WorldSnapshot, city_name: str) -> GridPoint | None:
    # Prefer the major-city milepost when the city has several
    fallback = None
    for point in snapshot.map_points:
        if point.city_name != city_name:
            continue
        if point.terrain == TerrainType.MAJOR_CITY:
            return point
        if fallback is None:
            fallback = point
    return fallback


class OptionGenerator:
    """
    Produce feasible and infeasible candidate options from a snapshot.

    Options are emitted in a fixed order (deliveries, pickups, track builds,
    major-city builds, upgrades, pass) which the scorer's stable sort uses to
    break ties. A pass-turn option is always present.
    """

    def generate(self, snapshot: WorldSnapshot) -> GenerationResult:
        feasible_options: list[FeasibleOption] = []
        infeasible_options: list[InfeasibleOption] = []

        reachable = (
            compute_reachable_cities(snapshot, snapshot.remaining_movement)
            if snapshot.position is not None
            else []
        )

        self._delivery_options(snapshot, reachable, feasible_options, infeasible_options)
        self._pickup_options(snapshot, reachable, feasible_options, infeasible_options)
        self._build_track_options(snapshot, feasible_options, infeasible_options)
        self._build_toward_major_city_options(snapshot, feasible_options, infeasible_options)
        self._upgrade_options(snapshot, feasible_options, infeasible_options)
        feasible_options.append(pass_turn())

        return GenerationResult(feasible=tuple(feasible_options), infeasible=tuple(infeasible_options))

    def _delivery_options(
        self,
        snapshot: WorldSnapshot,
        reachable: list[ReachableCity],
        out: list[FeasibleOption],
        rejected: list[InfeasibleOption],
    ) -> None:
        if not snapshot.carried_loads or not snapshot.demand_cards:
            return

        for card in snapshot.demand_cards:
            for index, demand in enumerate(card.demands):
                description = f"Deliver {demand.resource} to {demand.city} for {demand.payment}M"
                result = validate_delivery_feasibility(snapshot, card.id, index)
                if not result.feasible:
                    rejected.append(infeasible(AIActionType.DELIVER_LOAD, description, result.reason or ""))
                    continue
                out.append(
                    feasible(
                        AIActionType.DELIVER_LOAD,
                        description,
                        DeliverLoadParams(
                            move_path=_path_to(snapshot, reachable, demand.city),
                            demand_card_id=card.id,
                            demand_index=index,
                            load_type=demand.resource,
                            city=demand.city,
                        ),
                    )
                )

    def _pickup_options(
        self,
        snapshot: WorldSnapshot,
        reachable: list[ReachableCity],
        out: list[FeasibleOption],
        rejected: list[InfeasibleOption],
    ) -> None:
        if snapshot.position is None:
            return
        if len(snapshot.carried_loads) >= snapshot.capacity:
            return

        for card in snapshot.demand_cards:
            for index, demand in enumerate(card.demands):
                # Already carried: the delivery options cover it
                if demand.resource in snapshot.carried_loads:
                    continue

                pickup_cities = [city for city, loads in snapshot.load_availability.items() if demand.resource in loads]
                for city, loads in snapshot.dropped_loads.items():
                    if demand.resource in loads and city not in pickup_cities:
                        pickup_cities.append(city)

                for pickup_city in pickup_cities:
                    description = (
                        f"Pick up {demand.resource} at {pickup_city}, "
                        f"deliver to {demand.city} for {demand.payment}M"
                    )
                    result = validate_pickup_feasibility(snapshot, demand.resource, pickup_city)
                    if not result.feasible:
                        rejected.append(infeasible(AIActionType.PICKUP_AND_DELIVER, description, result.reason or ""))
                        continue
                    out.append(
                        feasible(
                            AIActionType.PICKUP_AND_DELIVER,
                            description,
                            PickupAndDeliverParams(
                                pickup_path=_path_to(snapshot, reachable, pickup_city),
                                pickup_city=pickup_city,
                                pickup_load_type=demand.resource,
                                deliver_city=demand.city,
                                demand_card_id=card.id,
                                demand_index=index,
                            ),
                        )
                    )

    def _build_track_options(
        self,
        snapshot: WorldSnapshot,
        out: list[FeasibleOption],
        rejected: list[InfeasibleOption],
    ) -> None:
        budget = remaining_budget(snapshot)
        if budget <= 0 or snapshot.money <= 0:
            return
        budget = min(budget, snapshot.money)

        for card in snapshot.demand_cards:
            for demand in card.demands:
                target = _demand_city_point(snapshot, demand.city)
                if target is None:
                    continue
                segments = compute_build_segments(snapshot, target.row, target.col, budget)
                if not segments:
                    continue

                total_cost = sum(seg.cost for seg in segments)
                description = f"Build track toward {demand.city} ({total_cost}M, {len(segments)} segments)"
                result = validate_build_track_feasibility(snapshot, segments)
                if not result.feasible:
                    rejected.append(infeasible(AIActionType.BUILD_TRACK, description, result.reason or ""))
                    continue
                out.append(
                    feasible(
                        AIActionType.BUILD_TRACK,
                        description,
                        BuildTrackParams(segments=tuple(segments), total_cost=total_cost),
                    )
                )

    def _build_toward_major_city_options(
        self,
        snapshot: WorldSnapshot,
        out: list[FeasibleOption],
        rejected: list[InfeasibleOption],
    ) -> None:
        budget = remaining_budget(snapshot)
        if budget <= 0 or snapshot.money <= 0:
            return
        budget = min(budget, snapshot.money)

        for city in unconnected_major_cities(snapshot):
            segments = compute_build_segments(snapshot, city.center.row, city.center.col, budget)
            if not segments:
                continue

            total_cost = sum(seg.cost for seg in segments)
            description = f"Build toward {city.city_name} ({total_cost}M, {len(segments)} segments)"
            result = validate_build_track_feasibility(snapshot, segments)
            if not result.feasible:
                rejected.append(infeasible(AIActionType.BUILD_TOWARD_MAJOR_CITY, description, result.reason or ""))
                continue
            out.append(
                feasible(
                    AIActionType.BUILD_TOWARD_MAJOR_CITY,
                    description,
                    BuildTowardMajorCityParams(
                        target_city=city.city_name,
                        segments=tuple(segments),
                        total_cost=total_cost,
                    ),
                )
            )

    def _upgrade_options(
        self,
        snapshot: WorldSnapshot,
        out: list[FeasibleOption],
        rejected: list[InfeasibleOption],
    ) -> None:
        for upgrade in VALID_UPGRADES[snapshot.train_type]:
            verb = "Upgrade" if upgrade.kind == "upgrade" else "Crossgrade"
            description = f"{verb} to {upgrade.target_train_type.value} ({upgrade.cost}M)"
            result = validate_upgrade_feasibility(snapshot, upgrade.target_train_type)
            if not result.feasible:
                rejected.append(infeasible(AIActionType.UPGRADE_TRAIN, description, result.reason or ""))
                continue
            out.append(
                feasible(
                    AIActionType.UPGRADE_TRAIN,
                    description,
                    UpgradeTrainParams(
                        target_train_type=upgrade.target_train_type,
                        kind=upgrade.kind,
                        cost=upgrade.cost,
                    ),
                )
            )
