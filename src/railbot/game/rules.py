"""Rules helpers used to judge whether a bot action is feasible.

These answer the questions the option generator and plan validator ask of
the map: which cities can the train reach this turn, what is the cheapest
track to build toward a target, and can the bot afford an action. All
functions are pure functions of a `WorldSnapshot`.
"""

from __future__ import annotations

import heapq
from collections import deque
from typing import Literal, Optional

from pydantic import BaseModel

from railbot.models.board import GridPoint, MajorCityGroup, Point, TerrainType, TrackSegment, hex_neighbors
from railbot.models.snapshot import WorldSnapshot
from railbot.models.trains import TrainType

# Maximum money a player may spend on track and trains in one turn
MAX_BUILD_PER_TURN = 20

UPGRADE_COST = 20
CROSSGRADE_COST = 5

TERRAIN_COSTS: dict[TerrainType, int] = {
    TerrainType.CLEAR: 1,
    TerrainType.MOUNTAIN: 2,
    TerrainType.ALPINE: 5,
    TerrainType.SMALL_CITY: 3,
    TerrainType.MEDIUM_CITY: 3,
    TerrainType.MAJOR_CITY: 5,
    TerrainType.FERRY_PORT: 1,  # base; the crossing cost comes from the port
    TerrainType.WATER: 0,
}

Node = tuple[int, int]


class UpgradePath(BaseModel, frozen=True):
    """A train purchase available from a given train type."""

    target_train_type: TrainType
    kind: Literal["upgrade", "crossgrade"]
    cost: int


VALID_UPGRADES: dict[TrainType, tuple[UpgradePath, ...]] = {
    TrainType.FREIGHT: (
        UpgradePath(target_train_type=TrainType.FAST_FREIGHT, kind="upgrade", cost=UPGRADE_COST),
        UpgradePath(target_train_type=TrainType.HEAVY_FREIGHT, kind="upgrade", cost=UPGRADE_COST),
    ),
    TrainType.FAST_FREIGHT: (
        UpgradePath(target_train_type=TrainType.SUPERFREIGHT, kind="upgrade", cost=UPGRADE_COST),
        UpgradePath(target_train_type=TrainType.HEAVY_FREIGHT, kind="crossgrade", cost=CROSSGRADE_COST),
    ),
    TrainType.HEAVY_FREIGHT: (
        UpgradePath(target_train_type=TrainType.SUPERFREIGHT, kind="upgrade", cost=UPGRADE_COST),
        UpgradePath(target_train_type=TrainType.FAST_FREIGHT, kind="crossgrade", cost=CROSSGRADE_COST),
    ),
    TrainType.SUPERFREIGHT: (),
}


class FeasibilityResult(BaseModel, frozen=True):
    """Whether an action is feasible, and why not."""

    feasible: bool
    reason: Optional[str] = None


class ReachableCity(BaseModel, frozen=True):
    """A city the train can reach this turn."""

    city_name: str
    row: int
    col: int
    distance: int
    terrain: TerrainType


_OK = FeasibilityResult(feasible=True)


def _fail(reason: str) -> FeasibilityResult:
    return FeasibilityResult(feasible=False, reason=reason)


def remaining_budget(snapshot: WorldSnapshot) -> int:
    """Money the bot may still spend on building this turn."""
    return MAX_BUILD_PER_TURN - snapshot.turn_build_cost_so_far


def segment_cost(point: GridPoint) -> int:
    """Cost to build a segment ending at this milepost."""
    if point.terrain == TerrainType.FERRY_PORT and point.ferry_cost is not None:
        return point.ferry_cost
    return TERRAIN_COSTS[point.terrain]


def _edge(a: Node, b: Node) -> tuple[Node, Node]:
    return (a, b) if a <= b else (b, a)


def union_track_graph(snapshot: WorldSnapshot) -> dict[Node, set[Node]]:
    """
    Build an undirected adjacency map from every player's track.

    Major cities are internally connected: each center is linked to all of
    its outposts as public edges.
    """
    adjacency: dict[Node, set[Node]] = {}

    def link(a: Node, b: Node) -> None:
        adjacency.setdefault(a, set()).add(b)
        adjacency.setdefault(b, set()).add(a)

    for track in snapshot.all_player_tracks:
        for seg in track.segments:
            link(seg.from_.key, seg.to.key)
    # The bot's own track counts even if the provider left it out of all_player_tracks
    for seg in snapshot.track_segments:
        link(seg.from_.key, seg.to.key)
    for city in snapshot.major_cities:
        for outpost in city.outposts:
            link(city.center.key, outpost.key)
    return adjacency


def compute_reachable_cities(snapshot: WorldSnapshot, max_movement: int) -> list[ReachableCity]:
    """
    Breadth-first search over the union track graph for cities within reach.

    Each edge traversal costs one milepost of movement.
    """
    if snapshot.position is None:
        return []

    adjacency = union_track_graph(snapshot)
    start = snapshot.position.key
    distances: dict[Node, int] = {start: 0}
    queue: deque[Node] = deque([start])

    while queue:
        current = queue.popleft()
        current_dist = distances[current]
        if current_dist >= max_movement:
            continue
        for nxt in adjacency.get(current, ()):
            if nxt not in distances:
                distances[nxt] = current_dist + 1
                queue.append(nxt)

    lookup = {p.key: p for p in snapshot.map_points}
    cities: list[ReachableCity] = []
    for node, dist in distances.items():
        point = lookup.get(node)
        if point is not None and point.is_city:
            cities.append(
                ReachableCity(
                    city_name=point.city_name,
                    row=node[0],
                    col=node[1],
                    distance=dist,
                    terrain=point.terrain,
                )
            )
    return cities


def find_reachable_city(snapshot: WorldSnapshot, city_name: str) -> Optional[ReachableCity]:
    """Return the nearest reachable milepost of a city, if any."""
    matches = [
        c
        for c in compute_reachable_cities(snapshot, snapshot.remaining_movement)
        if c.city_name == city_name
    ]
    if not matches:
        return None
    return min(matches, key=lambda c: c.distance)


def compute_build_segments(
    snapshot: WorldSnapshot, target_row: int, target_col: int, budget: int
) -> list[TrackSegment]:
    """
    Cheapest new segments from the bot's network toward a target milepost.

    Multi-source Dijkstra seeded from every node of the bot's network (or
    from its position when it has no track yet). Already-built edges cost
    nothing and are not returned. Returns an empty list when the target is
    already on the network or cannot be reached within the budget.
    """
    lookup = {p.key: p for p in snapshot.map_points}
    network_nodes = snapshot.network_nodes()
    network_edges = {_edge(s.from_.key, s.to.key) for s in snapshot.track_segments}
    target: Node = (target_row, target_col)

    if target in network_nodes:
        return []

    if network_nodes:
        sources = list(network_nodes)
    elif snapshot.position is not None:
        sources = [snapshot.position.key]
    else:
        return []

    dist: dict[Node, int] = {}
    prev: dict[Node, Node] = {}
    visited: set[Node] = set()
    heap: list[tuple[int, Node]] = []
    for src in sources:
        dist[src] = 0
        heapq.heappush(heap, (0, src))

    while heap:
        cost, current = heapq.heappop(heap)
        if current in visited:
            continue
        visited.add(current)
        if current == target:
            break
        if current not in lookup:
            continue

        for neighbor in hex_neighbors(*current):
            if neighbor in visited:
                continue
            point = lookup.get(neighbor)
            if point is None or point.terrain == TerrainType.WATER:
                continue
            edge_cost = 0 if _edge(current, neighbor) in network_edges else segment_cost(point)
            new_cost = cost + edge_cost
            if new_cost > budget:
                continue
            if neighbor not in dist or new_cost < dist[neighbor]:
                dist[neighbor] = new_cost
                prev[neighbor] = current
                heapq.heappush(heap, (new_cost, neighbor))

    if target not in prev:
        return []

    path: list[Node] = [target]
    while path[-1] in prev:
        path.append(prev[path[-1]])
    path.reverse()

    segments: list[TrackSegment] = []
    for a, b in zip(path, path[1:]):
        if _edge(a, b) in network_edges:
            continue
        from_point = lookup[a]
        to_point = lookup[b]
        segments.append(
            TrackSegment(
                from_=Point(row=from_point.row, col=from_point.col, x=from_point.x, y=from_point.y),
                to=Point(row=to_point.row, col=to_point.col, x=to_point.x, y=to_point.y),
                cost=segment_cost(to_point),
            )
        )
    return segments


def unconnected_major_cities(snapshot: WorldSnapshot) -> list[MajorCityGroup]:
    """Major cities with no milepost (center or outpost) on the bot's track."""
    nodes = snapshot.network_nodes()
    return [city for city in snapshot.major_cities if not any(k in nodes for k in city.keys)]


# --- Feasibility checks ---


def validate_delivery_feasibility(
    snapshot: WorldSnapshot, demand_card_id: int, demand_index: int
) -> FeasibilityResult:
    """Check the bot carries the load and can reach the demand city."""
    card = snapshot.get_demand_card(demand_card_id)
    if card is None:
        return _fail(f"Demand card {demand_card_id} not in hand")
    demand = card.demand_at(demand_index)
    if demand is None:
        return _fail(f"Invalid demand index {demand_index}")
    if demand.resource not in snapshot.carried_loads:
        return _fail(f"Not carrying {demand.resource}")
    if snapshot.position is None:
        return _fail("Bot has no position on the map")
    if find_reachable_city(snapshot, demand.city) is None:
        return _fail(f"Cannot reach {demand.city} within {snapshot.remaining_movement} movement")
    return _OK


def validate_pickup_feasibility(
    snapshot: WorldSnapshot, load_type: str, city_name: str
) -> FeasibilityResult:
    """Check the load is at the city, the train has room, and the city is reachable."""
    if snapshot.position is None:
        return _fail("Bot has no position on the map")
    if len(snapshot.carried_loads) >= snapshot.capacity:
        return _fail(f"Train at capacity ({snapshot.capacity} loads)")
    if not snapshot.load_available_at(city_name, load_type):
        return _fail(f"{load_type} not available at {city_name}")
    if find_reachable_city(snapshot, city_name) is None:
        return _fail(f"Cannot reach {city_name} within {snapshot.remaining_movement} movement")
    return _OK


def validate_build_track_feasibility(
    snapshot: WorldSnapshot, segments: list[TrackSegment] | tuple[TrackSegment, ...]
) -> FeasibilityResult:
    """Check segments have valid costs that fit the turn budget and the bot's cash."""
    if not segments:
        return _fail("No segments to build")
    total = 0
    for seg in segments:
        if seg.cost <= 0:
            return _fail(f"Invalid segment cost: {seg.cost}")
        total += seg.cost
    budget = remaining_budget(snapshot)
    if total > budget:
        return _fail(f"Build cost {total}M exceeds remaining turn budget {budget}M")
    if total > snapshot.money:
        return _fail(f"Insufficient funds: need {total}M, have {snapshot.money}M")
    return _OK


def find_upgrade(current: TrainType, target: TrainType) -> Optional[UpgradePath]:
    """Return the purchase path from one train type to another, if any."""
    for upgrade in VALID_UPGRADES[current]:
        if upgrade.target_train_type == target:
            return upgrade
    return None


def validate_upgrade_feasibility(snapshot: WorldSnapshot, target: TrainType) -> FeasibilityResult:
    """Check an upgrade path exists and fits the turn budget and the bot's cash."""
    if snapshot.train_type == target:
        return _fail("Already have this train type")
    upgrade = find_upgrade(snapshot.train_type, target)
    if upgrade is None:
        return _fail(f"No valid upgrade path from {snapshot.train_type.value} to {target.value}")
    budget = remaining_budget(snapshot)
    if upgrade.cost > budget:
        return _fail(f"Upgrade cost {upgrade.cost}M exceeds remaining turn budget {budget}M")
    if upgrade.cost > snapshot.money:
        return _fail(f"Insufficient funds: need {upgrade.cost}M, have {snapshot.money}M")
    return _OK
