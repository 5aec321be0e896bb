"""Tests for map rules: reachability, build search and feasibility checks."""

from conftest import BOT_TRACK, make_map, make_snapshot, segment

from railbot.game.rules import (
    MAX_BUILD_PER_TURN,
    VALID_UPGRADES,
    compute_build_segments,
    compute_reachable_cities,
    find_upgrade,
    segment_cost,
    unconnected_major_cities,
    validate_build_track_feasibility,
    validate_delivery_feasibility,
    validate_pickup_feasibility,
    validate_upgrade_feasibility,
)
from railbot.models.board import (
    GridPoint,
    MajorCityGroup,
    PlayerTrack,
    Point,
    TerrainType,
    hex_distance,
    hex_neighbors,
)
from railbot.models.trains import TrainType


class TestHexGeometry:
    def test_neighbors_even_row(self):
        assert set(hex_neighbors(2, 3)) == {(2, 2), (2, 4), (1, 2), (1, 3), (3, 2), (3, 3)}

    def test_neighbors_odd_row(self):
        assert set(hex_neighbors(1, 3)) == {(1, 2), (1, 4), (0, 3), (0, 4), (2, 3), (2, 4)}

    def test_distance(self):
        assert hex_distance((2, 3), (2, 3)) == 0
        assert hex_distance((2, 3), (2, 6)) == 3
        assert hex_distance((2, 3), (4, 0)) == 4

    def test_neighbors_are_distance_one(self):
        for n in hex_neighbors(3, 3):
            assert hex_distance((3, 3), n) == 1


class TestCosts:
    def test_terrain_cost(self):
        assert segment_cost(GridPoint(id="a", row=0, col=0, terrain=TerrainType.MOUNTAIN)) == 2
        assert segment_cost(GridPoint(id="a", row=0, col=0, terrain=TerrainType.MAJOR_CITY)) == 5

    def test_ferry_cost(self):
        port = GridPoint(id="p", row=0, col=0, terrain=TerrainType.FERRY_PORT, ferry_cost=8)
        assert segment_cost(port) == 8

    def test_upgrade_table(self):
        assert [u.target_train_type for u in VALID_UPGRADES[TrainType.FREIGHT]] == [
            TrainType.FAST_FREIGHT,
            TrainType.HEAVY_FREIGHT,
        ]
        assert VALID_UPGRADES[TrainType.SUPERFREIGHT] == ()
        crossgrade = find_upgrade(TrainType.FAST_FREIGHT, TrainType.HEAVY_FREIGHT)
        assert crossgrade.kind == "crossgrade"
        assert crossgrade.cost == 5
        assert find_upgrade(TrainType.FREIGHT, TrainType.SUPERFREIGHT) is None


class TestReachability:
    def test_cities_along_track(self, snapshot):
        reachable = {c.city_name: c.distance for c in compute_reachable_cities(snapshot, 9)}
        assert reachable == {"Essen": 1, "Berlin": 3}

    def test_limited_by_movement(self, snapshot):
        reachable = {c.city_name for c in compute_reachable_cities(snapshot, 2)}
        assert reachable == {"Essen"}

    def test_uses_opponent_track(self):
        opponent = PlayerTrack(
            player_id="rival",
            segments=(segment((2, 3), (2, 4)), segment((2, 4), (2, 5)), segment((2, 5), (2, 6), 3)),
        )
        snapshot = make_snapshot()
        snapshot = make_snapshot(all_player_tracks=snapshot.all_player_tracks + (opponent,))
        reachable = {c.city_name for c in compute_reachable_cities(snapshot, 9)}
        assert "Wien" in reachable

    def test_no_position(self):
        assert compute_reachable_cities(make_snapshot(position=None), 9) == []


class TestBuildSegments:
    def test_cheapest_path_from_network(self, snapshot):
        segments = compute_build_segments(snapshot, 2, 6, MAX_BUILD_PER_TURN)
        assert [s.to.key for s in segments] == [(2, 4), (2, 5), (2, 6)]
        assert segments[0].from_.key == (2, 3)
        assert sum(s.cost for s in segments) == 5

    def test_avoids_water(self):
        snapshot = make_snapshot(map_points=make_map({(2, 4): TerrainType.WATER}))
        segments = compute_build_segments(snapshot, 2, 6, MAX_BUILD_PER_TURN)
        assert segments
        assert all((2, 4) not in (s.from_.key, s.to.key) for s in segments)
        assert sum(s.cost for s in segments) == 6

    def test_bounded_by_budget(self, snapshot):
        assert compute_build_segments(snapshot, 2, 6, 4) == []

    def test_target_already_on_network(self, snapshot):
        assert compute_build_segments(snapshot, 2, 3, MAX_BUILD_PER_TURN) == []

    def test_starts_from_position_without_track(self):
        snapshot = make_snapshot(track_segments=(), all_player_tracks=())
        segments = compute_build_segments(snapshot, 2, 3, MAX_BUILD_PER_TURN)
        assert segments[0].from_.key == (2, 0)
        assert segments[-1].to.key == (2, 3)
        # Skirting Essen (cost 3) through clear terrain is cheaper
        assert sum(s.cost for s in segments) == 1 + 1 + 1 + 5
        assert all(s.to.key != (2, 1) for s in segments)

    def test_unconnected_major_cities(self, snapshot):
        assert [c.city_name for c in unconnected_major_cities(snapshot)] == ["Paris"]

    def test_outpost_counts_as_connected(self):
        paris = MajorCityGroup(city_name="Paris", center=Point(row=4, col=0), outposts=(Point(row=3, col=0),))
        snapshot = make_snapshot(
            major_cities=(paris,),
            track_segments=BOT_TRACK + (segment((2, 0), (3, 0)),),
        )
        assert unconnected_major_cities(snapshot) == []


class TestFeasibility:
    def test_delivery_feasible(self, snapshot):
        assert validate_delivery_feasibility(snapshot, 1, 0).feasible

    def test_delivery_reasons(self, snapshot):
        assert validate_delivery_feasibility(snapshot, 9, 0).reason == "Demand card 9 not in hand"
        assert validate_delivery_feasibility(snapshot, 1, 5).reason == "Invalid demand index 5"
        assert validate_delivery_feasibility(snapshot, 1, 1).reason == "Not carrying Wine"

    def test_delivery_out_of_reach(self):
        snapshot = make_snapshot(remaining_movement=2)
        assert validate_delivery_feasibility(snapshot, 1, 0).reason == "Cannot reach Berlin within 2 movement"

    def test_pickup(self, snapshot):
        assert validate_pickup_feasibility(snapshot, "Steel", "Essen").feasible
        assert validate_pickup_feasibility(snapshot, "Wine", "Essen").reason == "Wine not available at Essen"
        assert validate_pickup_feasibility(snapshot, "Wine", "Wien").reason == "Cannot reach Wien within 9 movement"

    def test_pickup_at_capacity(self):
        snapshot = make_snapshot(carried_loads=("Coal", "Beer"))
        assert validate_pickup_feasibility(snapshot, "Steel", "Essen").reason == "Train at capacity (2 loads)"

    def test_pickup_dropped_load(self):
        snapshot = make_snapshot(dropped_loads={"Essen": ("Wine",)})
        assert validate_pickup_feasibility(snapshot, "Wine", "Essen").feasible

    def test_build(self, snapshot):
        assert validate_build_track_feasibility(snapshot, [segment((2, 3), (2, 4))]).feasible
        assert validate_build_track_feasibility(snapshot, []).reason == "No segments to build"

    def test_build_over_turn_budget(self):
        snapshot = make_snapshot(turn_build_cost_so_far=18)
        result = validate_build_track_feasibility(snapshot, [segment((2, 3), (2, 4), 3)])
        assert result.reason == "Build cost 3M exceeds remaining turn budget 2M"

    def test_build_insufficient_funds(self):
        snapshot = make_snapshot(money=2)
        result = validate_build_track_feasibility(snapshot, [segment((2, 3), (2, 4), 3)])
        assert result.reason == "Insufficient funds: need 3M, have 2M"

    def test_upgrade(self, snapshot):
        assert validate_upgrade_feasibility(snapshot, TrainType.FAST_FREIGHT).feasible
        assert validate_upgrade_feasibility(snapshot, TrainType.FREIGHT).reason == "Already have this train type"
        assert validate_upgrade_feasibility(snapshot, TrainType.SUPERFREIGHT).reason == (
            "No valid upgrade path from Freight to Superfreight"
        )

    def test_upgrade_insufficient_funds(self):
        snapshot = make_snapshot(money=10)
        result = validate_upgrade_feasibility(snapshot, TrainType.HEAVY_FREIGHT)
        assert result.reason == "Insufficient funds: need 20M, have 10M"
