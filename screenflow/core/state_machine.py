# Workflow stages, in the only order a run may visit them.

from screenflow.errors import WorkflowStateError

# Magic link resolved to a unit; no credentials yet
UNAUTHENTICATED = "UNAUTHENTICATED"

# Bearer + refresh token issued for the applicant's phone
AUTHENTICATED = "AUTHENTICATED"

# Application record created; verification map resolved
ENROLLED = "ENROLLED"

# Application started, invite flow passed, identity verification requested
STARTED = "STARTED"

# One or more of the step groups below submitted
STEPS_SUBMITTED = "STEPS_SUBMITTED"

# Signature uploaded and submission disclosure step sent
DISCLOSURE_SIGNED = "DISCLOSURE_SIGNED"

# Waiting on the out-of-band identity verification
VERIFICATION_PENDING = "VERIFICATION_PENDING"

# Identity verification reported "verified"
VERIFICATION_RESOLVED = "VERIFICATION_RESOLVED"

# Final submission accepted
SUBMITTED = "SUBMITTED"

STAGES = (
    UNAUTHENTICATED,
    AUTHENTICATED,
    ENROLLED,
    STARTED,
    STEPS_SUBMITTED,
    DISCLOSURE_SIGNED,
    VERIFICATION_PENDING,
    VERIFICATION_RESOLVED,
    SUBMITTED,
)

# Step groups recorded while in STEPS_SUBMITTED
STEP_PERSONAL_DETAILS = "personal_details"
STEP_HOUSING_HISTORY = "housing_history"
STEP_COMBINED_INCOME = "combined_income"
STEP_MOVE_IN_DATE = "move_in_date"

STEP_GROUPS = (
    STEP_PERSONAL_DETAILS,
    STEP_HOUSING_HISTORY,
    STEP_COMBINED_INCOME,
    STEP_MOVE_IN_DATE,
)


def stage_index(stage: str) -> int:
    try:
        return STAGES.index(stage)
    except ValueError:
        raise WorkflowStateError(f"Unknown stage: {stage}") from None


def check_transition(current: str, target: str) -> None:
    """Only a move to the next stage is legal. STEPS_SUBMITTED may be re-entered for each group."""
    if current == target == STEPS_SUBMITTED:
        return
    if stage_index(target) != stage_index(current) + 1:
        raise WorkflowStateError(f"Illegal transition {current} -> {target}")


def check_step_group(done: list, group: str) -> None:
    """Step groups are submitted once each, in STEP_GROUPS order."""
    if group not in STEP_GROUPS:
        raise WorkflowStateError(f"Unknown step group: {group}")
    expected = STEP_GROUPS[len(done)] if len(done) < len(STEP_GROUPS) else None
    if group != expected:
        raise WorkflowStateError(f"Step group {group} out of order (expected {expected})")
