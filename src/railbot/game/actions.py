"""Action types and option records for the bot decision pipeline."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, SerializeAsAny

from railbot.models.board import Point, TrackSegment
from railbot.models.trains import TrainType


class AIActionType(str, Enum):
    """All action types a bot can attempt in a turn."""

    DELIVER_LOAD = "DeliverLoad"
    PICKUP_AND_DELIVER = "PickupAndDeliver"
    BUILD_TRACK = "BuildTrack"
    BUILD_TOWARD_MAJOR_CITY = "BuildTowardMajorCity"
    UPGRADE_TRAIN = "UpgradeTrain"
    PASS_TURN = "PassTurn"


class DeliverLoadParams(BaseModel, frozen=True):
    """
    Move to a demand city and deliver a carried load.

    `move_path[0]` is the bot's current position.
    """

    type: Literal[AIActionType.DELIVER_LOAD] = AIActionType.DELIVER_LOAD
    move_path: tuple[Point, ...] = Field(description="Mileposts to traverse, starting at the train")
    demand_card_id: int
    demand_index: int
    load_type: str
    city: str


class PickupAndDeliverParams(BaseModel, frozen=True):
    """
    Move to a supply city and pick up a load for a held demand.

    The delivery leg is only executed in the same turn when `deliver_path`
    has more than one point.
    """

    type: Literal[AIActionType.PICKUP_AND_DELIVER] = AIActionType.PICKUP_AND_DELIVER
    pickup_path: tuple[Point, ...]
    pickup_city: str
    pickup_load_type: str
    deliver_path: tuple[Point, ...] = ()
    deliver_city: str
    demand_card_id: int
    demand_index: int


class BuildTrackParams(BaseModel, frozen=True):
    """Lay new track segments."""

    type: Literal[AIActionType.BUILD_TRACK] = AIActionType.BUILD_TRACK
    segments: tuple[TrackSegment, ...]
    total_cost: int


class BuildTowardMajorCityParams(BaseModel, frozen=True):
    """Lay new track toward an unconnected major city."""

    type: Literal[AIActionType.BUILD_TOWARD_MAJOR_CITY] = AIActionType.BUILD_TOWARD_MAJOR_CITY
    target_city: str
    segments: tuple[TrackSegment, ...]
    total_cost: int


class UpgradeTrainParams(BaseModel, frozen=True):
    """Buy a new train, either a full upgrade or a cheaper crossgrade."""

    type: Literal[AIActionType.UPGRADE_TRAIN] = AIActionType.UPGRADE_TRAIN
    target_train_type: TrainType
    kind: Literal["upgrade", "crossgrade"]
    cost: int


class PassTurnParams(BaseModel, frozen=True):
    """Do nothing this turn."""

    type: Literal[AIActionType.PASS_TURN] = AIActionType.PASS_TURN


# Discriminated union of all action parameter types
ActionParams = Annotated[
    Union[
        DeliverLoadParams,
        PickupAndDeliverParams,
        BuildTrackParams,
        BuildTowardMajorCityParams,
        UpgradeTrainParams,
        PassTurnParams,
    ],
    Field(discriminator="type"),
]


class FeasibleOption(BaseModel, frozen=True):
    """A candidate action the generator believes is currently legal."""

    type: AIActionType
    description: str
    params: ActionParams


class InfeasibleOption(BaseModel, frozen=True):
    """A candidate action rejected by the generator, kept for the audit."""

    type: AIActionType
    description: str
    reason: str


class ScoredOption(FeasibleOption, frozen=True):
    """A feasible option with its weighted score and a short rationale."""

    score: float
    rationale: str


class TurnPlan(BaseModel, frozen=True):
    """The action chosen for validation and execution this turn."""

    actions: tuple[SerializeAsAny[FeasibleOption], ...] = Field(min_length=1, max_length=1)

    @property
    def action(self) -> FeasibleOption:
        return self.actions[0]


class ValidationResult(BaseModel, frozen=True):
    """Outcome of re-checking a plan against the snapshot."""

    valid: bool
    errors: tuple[str, ...] = ()


class ExecutionResult(BaseModel, frozen=True):
    """Outcome of applying a plan to the game state."""

    success: bool
    actions_executed: int = 0
    error: Optional[str] = None
    duration_ms: float = 0.0


# Helper functions to create options
def feasible(type: AIActionType, description: str, params: ActionParams) -> FeasibleOption:
    """Create a feasible option."""
    return FeasibleOption(type=type, description=description, params=params)


def infeasible(type: AIActionType, description: str, reason: str) -> InfeasibleOption:
    """Create an infeasible option."""
    return InfeasibleOption(type=type, description=description, reason=reason)


def pass_turn(description: str = "Pass turn - no action taken") -> FeasibleOption:
    """Create a pass-turn option."""
    return FeasibleOption(type=AIActionType.PASS_TURN, description=description, params=PassTurnParams())


def single_action_plan(option: FeasibleOption) -> TurnPlan:
    """Wrap one option into a turn plan."""
    return TurnPlan(actions=(option,))
