"""Immutable per-turn view of the game from one bot's perspective."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from railbot.models.board import GridPoint, MajorCityGroup, PlayerTrack, Point, TrackSegment
from railbot.models.demand import DemandCard
from railbot.models.trains import TrainType, train_capacity


class WorldSnapshot(BaseModel, frozen=True):
    """
    Point-in-time view of every game fact relevant to one bot turn.

    Snapshots are produced fresh each turn by a `SnapshotProvider` and are
    never mutated by the decision pipeline. Everything the option generator,
    scorer and validator need is carried here so that they stay pure
    functions of the snapshot.
    """

    game_id: str
    bot_player_id: str
    bot_user_id: str = ""
    turn_build_cost_so_far: int = Field(default=0, description="Build money spent this turn")

    # Bot state
    position: Optional[Point] = None
    money: int = 0
    train_type: TrainType = TrainType.FREIGHT
    remaining_movement: int = 0
    carried_loads: tuple[str, ...] = ()
    demand_cards: tuple[DemandCard, ...] = ()

    # Bot's own network
    track_segments: tuple[TrackSegment, ...] = ()
    connected_major_cities: int = 0

    all_player_tracks: tuple[PlayerTrack, ...] = Field(
        default=(), description="Every player's track, for movement over shared rails"
    )

    # Global state
    load_availability: dict[str, tuple[str, ...]] = Field(
        default_factory=dict, description="City -> load types available there"
    )
    dropped_loads: dict[str, tuple[str, ...]] = Field(
        default_factory=dict, description="City -> load types dropped there"
    )
    map_points: tuple[GridPoint, ...] = ()
    major_cities: tuple[MajorCityGroup, ...] = ()

    @property
    def capacity(self) -> int:
        return train_capacity(self.train_type)

    def get_demand_card(self, card_id: int) -> Optional[DemandCard]:
        """Find a held demand card by ID."""
        for card in self.demand_cards:
            if card.id == card_id:
                return card
        return None

    def find_point(self, row: int, col: int) -> Optional[GridPoint]:
        """Find the map point at a grid location."""
        for point in self.map_points:
            if point.row == row and point.col == col:
                return point
        return None

    def city_positions(self) -> dict[str, GridPoint]:
        """Map each named city to the first milepost carrying its name."""
        positions: dict[str, GridPoint] = {}
        for point in self.map_points:
            if point.city_name and point.city_name not in positions:
                positions[point.city_name] = point
        return positions

    def load_available_at(self, city: str, load_type: str) -> bool:
        """True if the load can be picked up at the city (supply or dropped)."""
        return load_type in self.load_availability.get(city, ()) or load_type in self.dropped_loads.get(
            city, ()
        )

    def network_nodes(self) -> set[tuple[int, int]]:
        """Grid locations touched by the bot's own track."""
        nodes: set[tuple[int, int]] = set()
        for seg in self.track_segments:
            nodes.add(seg.from_.key)
            nodes.add(seg.to.key)
        return nodes
