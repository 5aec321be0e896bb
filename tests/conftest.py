"""Shared fixtures: a small hex map, a bot snapshot on it, and fake collaborators."""

from __future__ import annotations

from typing import Optional

import pytest

from railbot.ai.audit import StrategyAudit
from railbot.models.board import GridPoint, MajorCityGroup, PlayerTrack, Point, TerrainType, TrackSegment
from railbot.models.demand import Demand, DemandCard
from railbot.models.snapshot import WorldSnapshot
from railbot.models.trains import TrainType

ROWS = 5
COLS = 7

# (row, col) -> (terrain, city name)
CITIES = {
    (2, 1): (TerrainType.SMALL_CITY, "Essen"),
    (2, 3): (TerrainType.MAJOR_CITY, "Berlin"),
    (2, 6): (TerrainType.MEDIUM_CITY, "Wien"),
    (4, 0): (TerrainType.MAJOR_CITY, "Paris"),
}


def make_map(overrides: Optional[dict[tuple[int, int], TerrainType]] = None) -> tuple[GridPoint, ...]:
    """A 5x7 grid of clear mileposts with a few cities; pixel x/y are col*10, row*10."""
    overrides = overrides or {}
    points = []
    for row in range(ROWS):
        for col in range(COLS):
            terrain, city = CITIES.get((row, col), (TerrainType.CLEAR, None))
            terrain = overrides.get((row, col), terrain)
            points.append(
                GridPoint(
                    id=f"{row}-{col}",
                    row=row,
                    col=col,
                    x=col * 10,
                    y=row * 10,
                    terrain=terrain,
                    city_name=city,
                )
            )
    return tuple(points)


def segment(a: tuple[int, int], b: tuple[int, int], cost: int = 1) -> TrackSegment:
    return TrackSegment(from_=Point(row=a[0], col=a[1]), to=Point(row=b[0], col=b[1]), cost=cost)


MAJOR_CITIES = (
    MajorCityGroup(city_name="Berlin", center=Point(row=2, col=3)),
    MajorCityGroup(city_name="Paris", center=Point(row=4, col=0)),
)

# Track along row 2 from the train to Berlin
BOT_TRACK = (segment((2, 0), (2, 1), 3), segment((2, 1), (2, 2)), segment((2, 2), (2, 3), 5))

DEMAND_CARD = DemandCard(
    id=1,
    demands=(
        Demand(city="Berlin", resource="Coal", payment=20),
        Demand(city="Wien", resource="Wine", payment=30),
        Demand(city="Paris", resource="Steel", payment=15),
    ),
)


def make_snapshot(**overrides) -> WorldSnapshot:
    """Bot at (2, 0) on a Freight carrying Coal, with track to Berlin."""
    fields = dict(
        game_id="game-0001-abcdef",
        bot_player_id="player-0001-abcdef",
        bot_user_id="user-1",
        position=Point(row=2, col=0, x=0, y=20),
        money=50,
        train_type=TrainType.FREIGHT,
        remaining_movement=9,
        carried_loads=("Coal",),
        demand_cards=(DEMAND_CARD,),
        track_segments=BOT_TRACK,
        connected_major_cities=1,
        all_player_tracks=(PlayerTrack(player_id="player-0001-abcdef", segments=BOT_TRACK),),
        load_availability={"Essen": ("Coal", "Steel"), "Wien": ("Wine",)},
        map_points=make_map(),
        major_cities=MAJOR_CITIES,
    )
    fields.update(overrides)
    return WorldSnapshot(**fields)


@pytest.fixture
def snapshot() -> WorldSnapshot:
    return make_snapshot()


class FakeSnapshotProvider:
    def __init__(self, snapshot: Optional[WorldSnapshot] = None, error: Optional[Exception] = None):
        self.snapshot = snapshot
        self.error = error
        self.calls: list[tuple[str, str, str]] = []

    async def capture(self, game_id: str, bot_player_id: str, bot_user_id: str) -> WorldSnapshot:
        self.calls.append((game_id, bot_player_id, bot_user_id))
        if self.error is not None:
            raise self.error
        assert self.snapshot is not None
        return self.snapshot


class FakeGameStore:
    """Records every mutation; methods named in `fail_on` raise RuntimeError."""

    def __init__(self, fail_on: tuple[str, ...] = ()):
        self.fail_on = set(fail_on)
        self.calls: list[tuple] = []

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise RuntimeError(f"{name} failed")

    def names(self) -> list[str]:
        return [c[0] for c in self.calls]

    async def move_train(self, game_id, user_id, row, col, movement_cost=1):
        self._record("move_train", row, col)

    async def deliver_load(self, game_id, user_id, city, load_type, demand_card_id):
        self._record("deliver_load", city, load_type, demand_card_id)

    async def pickup_load(self, game_id, user_id, city, load_type, dropped):
        self._record("pickup_load", city, load_type, dropped)

    async def return_load(self, game_id, city, load_type):
        self._record("return_load", city, load_type)

    async def build_track(self, game_id, player_id, user_id, segments, total_cost):
        self._record("build_track", len(segments), total_cost)

    async def purchase_train(self, game_id, user_id, kind, train_type):
        self._record("purchase_train", kind, train_type)

    async def update_position(self, game_id, player_id, row, col, x, y):
        self._record("update_position", row, col, x, y)


class FailingAuditStore:
    async def save_turn_audit(self, game_id: str, player_id: str, audit: StrategyAudit) -> None:
        raise ConnectionError("audit table locked")

    async def get_latest_audit(self, game_id: str, player_id: str):
        return None


class StubRng:
    """Random source returning fixed values."""

    def __init__(self, value: float, index: int = 0):
        self.value = value
        self.index = index
        self.randrange_calls: list[int] = []

    def random(self) -> float:
        return self.value

    def randrange(self, stop: int) -> int:
        self.randrange_calls.append(stop)
        return self.index
