"""Tests for action types and option records."""

import pytest
from pydantic import ValidationError

from railbot.game.actions import (
    AIActionType,
    BuildTrackParams,
    DeliverLoadParams,
    FeasibleOption,
    PassTurnParams,
    ScoredOption,
    TurnPlan,
    UpgradeTrainParams,
    feasible,
    infeasible,
    pass_turn,
    single_action_plan,
)
from railbot.models.board import Point, TrackSegment
from railbot.models.trains import TrainType


class TestActionTypes:
    def test_all_action_types(self):
        assert len(AIActionType) == 6

    def test_params_carry_their_type(self):
        params = DeliverLoadParams(
            move_path=(Point(row=0, col=0),), demand_card_id=1, demand_index=0, load_type="Coal", city="Berlin"
        )
        assert params.type == AIActionType.DELIVER_LOAD
        assert UpgradeTrainParams(target_train_type=TrainType.FAST_FREIGHT, kind="upgrade", cost=20).type == (
            AIActionType.UPGRADE_TRAIN
        )

    def test_params_parsed_by_discriminator(self):
        option = FeasibleOption.model_validate(
            {
                "type": "BuildTrack",
                "description": "Build",
                "params": {
                    "type": "BuildTrack",
                    "segments": [{"from": {"row": 0, "col": 0}, "to": {"row": 0, "col": 1}, "cost": 1}],
                    "total_cost": 1,
                },
            }
        )
        assert isinstance(option.params, BuildTrackParams)
        assert option.params.segments[0].from_ == Point(row=0, col=0)

    def test_unknown_discriminator_rejected(self):
        with pytest.raises(ValidationError):
            FeasibleOption.model_validate({"type": "PassTurn", "description": "x", "params": {"type": "Teleport"}})

    def test_invalid_upgrade_kind_rejected(self):
        with pytest.raises(ValidationError):
            UpgradeTrainParams(target_train_type=TrainType.FAST_FREIGHT, kind="sidegrade", cost=20)

    def test_options_are_frozen(self):
        option = pass_turn()
        with pytest.raises(ValidationError):
            option.description = "changed"


class TestHelpers:
    def test_pass_turn(self):
        option = pass_turn()
        assert option.type == AIActionType.PASS_TURN
        assert isinstance(option.params, PassTurnParams)
        assert option.description == "Pass turn - no action taken"

    def test_feasible_and_infeasible(self):
        segment = TrackSegment(from_=Point(row=0, col=0), to=Point(row=0, col=1), cost=1)
        option = feasible(AIActionType.BUILD_TRACK, "Build", BuildTrackParams(segments=(segment,), total_cost=1))
        assert option.params.total_cost == 1

        rejected = infeasible(AIActionType.UPGRADE_TRAIN, "Upgrade", "Insufficient funds")
        assert rejected.reason == "Insufficient funds"

    def test_scored_option_is_a_feasible_option(self):
        scored = ScoredOption(
            type=AIActionType.PASS_TURN, description="Pass", params=PassTurnParams(), score=0.1, rationale="r"
        )
        assert isinstance(scored, FeasibleOption)


class TestTurnPlan:
    def test_single_action(self):
        plan = single_action_plan(pass_turn())
        assert len(plan.actions) == 1
        assert plan.action.type == AIActionType.PASS_TURN

    def test_empty_plan_rejected(self):
        with pytest.raises(ValidationError):
            TurnPlan(actions=())

    def test_two_actions_rejected(self):
        with pytest.raises(ValidationError):
            TurnPlan(actions=(pass_turn(), pass_turn()))

    def test_scored_fields_serialized(self):
        scored = ScoredOption(
            type=AIActionType.PASS_TURN, description="Pass", params=PassTurnParams(), score=0.5, rationale="r"
        )
        dumped = single_action_plan(scored).model_dump()
        assert dumped["actions"][0]["score"] == 0.5
