"""Board geometry: mileposts, terrain, track segments and major cities."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TerrainType(str, Enum):
    """Terrain of a milepost on the hex grid."""

    CLEAR = "clear"
    MOUNTAIN = "mountain"
    ALPINE = "alpine"
    SMALL_CITY = "small_city"
    MEDIUM_CITY = "medium_city"
    MAJOR_CITY = "major_city"
    FERRY_PORT = "ferry_port"
    WATER = "water"

    @classmethod
    def city_types(cls) -> list[TerrainType]:
        """Return the terrain types that hold a named city."""
        return [cls.SMALL_CITY, cls.MEDIUM_CITY, cls.MAJOR_CITY]


class Point(BaseModel, frozen=True):
    """A grid location, optionally with its pixel position."""

    row: int
    col: int
    x: float = 0
    y: float = 0

    @property
    def key(self) -> tuple[int, int]:
        return (self.row, self.col)


class GridPoint(BaseModel, frozen=True):
    """A milepost on the map."""

    id: str = Field(description="Milepost identifier")
    row: int
    col: int
    x: float = 0
    y: float = 0
    terrain: TerrainType = TerrainType.CLEAR
    city_name: Optional[str] = Field(default=None, description="Name of the city at this milepost")
    ferry_cost: Optional[int] = Field(
        default=None, description="Crossing cost when this is a ferry port"
    )

    @property
    def key(self) -> tuple[int, int]:
        return (self.row, self.col)

    @property
    def is_city(self) -> bool:
        return self.city_name is not None and self.terrain in TerrainType.city_types()


class TrackSegment(BaseModel, frozen=True):
    """One built edge between two adjacent mileposts."""

    model_config = ConfigDict(populate_by_name=True)

    from_: Point = Field(alias="from")
    to: Point
    cost: int = Field(ge=0, description="Build cost paid for this segment")


class PlayerTrack(BaseModel, frozen=True):
    """All segments owned by one player."""

    player_id: str
    segments: tuple[TrackSegment, ...] = ()


class MajorCityGroup(BaseModel, frozen=True):
    """A major city: its center milepost and surrounding outposts."""

    city_name: str
    center: Point
    outposts: tuple[Point, ...] = ()

    @property
    def keys(self) -> list[tuple[int, int]]:
        return [self.center.key] + [p.key for p in self.outposts]


def hex_neighbors(row: int, col: int) -> list[tuple[int, int]]:
    """
    Return the six neighbours of a milepost on the offset hex grid.

    Odd rows are shifted right, so their upper/lower neighbours sit at
    (col, col + 1); even rows use (col - 1, col).
    """
    if row % 2 == 1:
        return [
            (row, col - 1),
            (row, col + 1),
            (row - 1, col),
            (row - 1, col + 1),
            (row + 1, col),
            (row + 1, col + 1),
        ]
    return [
        (row, col - 1),
        (row, col + 1),
        (row - 1, col - 1),
        (row - 1, col),
        (row + 1, col - 1),
        (row + 1, col),
    ]


def _to_cube(row: int, col: int) -> tuple[int, int, int]:
    # odd-r offset -> cube coordinates
    q = col - (row - (row & 1)) // 2
    r = row
    return q, r, -q - r


def hex_distance(a: tuple[int, int], b: tuple[int, int]) -> int:
    """Number of milepost steps between two grid locations."""
    aq, ar, as_ = _to_cube(*a)
    bq, br, bs = _to_cube(*b)
    return max(abs(aq - bq), abs(ar - br), abs(as_ - bs))
