"""Demand cards held by a player."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class Demand(BaseModel, frozen=True):
    """A single demand: deliver a load type to a city for a payment."""

    city: str = Field(description="Destination city")
    resource: str = Field(description="Load type demanded")
    payment: int = Field(ge=0, description="Payout in millions on delivery")


class DemandCard(BaseModel, frozen=True):
    """
    A demand card.

    Each card lists several demands; fulfilling any one of them discards
    the whole card.
    """

    id: int = Field(description="Card identifier")
    demands: tuple[Demand, ...] = Field(default=(), description="Demands on this card")

    def demand_at(self, index: int) -> Optional[Demand]:
        """Return the demand at a slot, or None for an invalid index."""
        if index < 0 or index >= len(self.demands):
            return None
        return self.demands[index]
