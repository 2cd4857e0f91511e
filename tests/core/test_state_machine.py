import pytest

from screenflow.core import state_machine as sm
from screenflow.errors import WorkflowStateError


def test_forward_transitions_are_allowed():
    for current, target in zip(sm.STAGES, sm.STAGES[1:]):
        sm.check_transition(current, target)


def test_backward_and_repeated_transitions_raise():
    with pytest.raises(WorkflowStateError):
        sm.check_transition(sm.STARTED, sm.ENROLLED)
    with pytest.raises(WorkflowStateError):
        sm.check_transition(sm.ENROLLED, sm.ENROLLED)
    with pytest.raises(WorkflowStateError):
        sm.check_transition(sm.SUBMITTED, sm.SUBMITTED)


def test_steps_submitted_can_be_reentered():
    sm.check_transition(sm.STEPS_SUBMITTED, sm.STEPS_SUBMITTED)


def test_unknown_stage():
    with pytest.raises(WorkflowStateError, match="Unknown stage"):
        sm.check_transition("NOPE", sm.SUBMITTED)


def test_step_groups_must_follow_order():
    sm.check_step_group([], sm.STEP_PERSONAL_DETAILS)
    sm.check_step_group([sm.STEP_PERSONAL_DETAILS], sm.STEP_HOUSING_HISTORY)
    with pytest.raises(WorkflowStateError, match="out of order"):
        sm.check_step_group([], sm.STEP_COMBINED_INCOME)
    with pytest.raises(WorkflowStateError):
        sm.check_step_group(list(sm.STEP_GROUPS), sm.STEP_MOVE_IN_DATE)


def test_skipping_a_stage_raises():
    with pytest.raises(WorkflowStateError, match="Illegal transition"):
        sm.check_transition(sm.AUTHENTICATED, sm.STARTED)
