"""Train types and their movement/capacity properties."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class TrainType(str, Enum):
    """The four locomotive types."""

    FREIGHT = "Freight"
    FAST_FREIGHT = "FastFreight"
    HEAVY_FREIGHT = "HeavyFreight"
    SUPERFREIGHT = "Superfreight"


class TrainProperties(BaseModel, frozen=True):
    """Movement allowance and load capacity of a train type."""

    speed: int = Field(description="Mileposts per turn")
    capacity: int = Field(description="Loads carried at once")


TRAIN_PROPERTIES: dict[TrainType, TrainProperties] = {
    TrainType.FREIGHT: TrainProperties(speed=9, capacity=2),
    TrainType.FAST_FREIGHT: TrainProperties(speed=12, capacity=2),
    TrainType.HEAVY_FREIGHT: TrainProperties(speed=9, capacity=3),
    TrainType.SUPERFREIGHT: TrainProperties(speed=12, capacity=3),
}


def train_capacity(train_type: TrainType) -> int:
    """Return the load capacity for a train type."""
    return TRAIN_PROPERTIES[train_type].capacity
