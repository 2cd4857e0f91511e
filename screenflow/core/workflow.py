"""
Sequencer for one applicant onboarding run.

Each public stage method takes the ApplicationState, performs its remote
calls, mutates the state from the responses, writes a read-after-write
snapshot and returns the state. The stage guard in state_machine rejects
anything but a forward move, so a run that fails part-way cannot be resumed;
a new run starts from a fresh enrollment.
"""
import time
from typing import Callable, Optional

import httpx

from screenflow.core import state_machine as sm
from screenflow.core.invitations import ROLE_APPLICANT, ROLE_CO_SIGNER, invite_co_party
from screenflow.core.run_config import RunOptions
from screenflow.core.steps import (
    INCOME_FINISH_STEP,
    INCOME_SOURCES_STEP,
    INCOME_STEP,
    STEP_HOUSING_HISTORY,
    STEP_SUBMISSION_DISCLOSURE,
    employment_payload,
    housing_history_payload,
    personal_details_steps,
)
from screenflow.core.verifications import resolve_verification_map
from screenflow.data.generators import RandomDataSource
from screenflow.errors import WorkflowStateError
from screenflow.observability.logging import EventLogger
from screenflow.screening.client import ScreeningClient
from screenflow.screening.uploads import upload_income_document, upload_signature
from screenflow.store.models import (
    COMBINED_INCOME,
    HOUSING_HISTORY,
    IDENTITY,
    PERSONAL_DETAILS,
    SUBMISSION_DISCLOSURE,
    ApplicationState,
)
from screenflow.store.snapshots import APPLICANT_SNAPSHOT, APPLICATION_SNAPSHOT, SnapshotSink
from screenflow.utils.payload import STATUS_VERIFIED, transform_status_fields
from screenflow.utils.time import last_day_of_current_month
from screenflow.utils.wait import wait_for

PAYSTUB_DOCUMENT_TYPE = "paystub"


class WorkflowSequencer:
    def __init__(
        self,
        client: ScreeningClient,
        data_source: RandomDataSource,
        snapshots: SnapshotSink,
        logger: EventLogger,
        options: Optional[RunOptions] = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        storage_transport: Optional[httpx.BaseTransport] = None,
    ):
        self.client = client
        self.data = data_source
        self.snapshots = snapshots
        self.log = logger
        self.options = options or RunOptions()
        self._sleep = sleep
        self._clock = clock
        self._storage_transport = storage_transport

    # ------------------------------------------------------------------
    # plumbing
    # ------------------------------------------------------------------

    def _advance(self, state: ApplicationState, target: str) -> None:
        sm.check_transition(state.stage, target)
        self.log.info("stage_changed", fromStage=state.stage, toStage=target, applicationId=state.id)
        state.stage = target

    def _snapshot(self, state: ApplicationState) -> None:
        details = self.client.get_application_details(state.require_id())
        self.snapshots.write(APPLICATION_SNAPSHOT, details)
        self.snapshots.write_state(state)

    def _submit_group(self, state: ApplicationState, group: str, submit: Callable[[], None]) -> ApplicationState:
        sm.check_step_group(state.steps_submitted, group)
        if state.stage != sm.STEPS_SUBMITTED:
            sm.check_transition(state.stage, sm.STEPS_SUBMITTED)
        submit()
        state.steps_submitted.append(group)
        self._advance(state, sm.STEPS_SUBMITTED)
        self._snapshot(state)
        return state

    # ------------------------------------------------------------------
    # stages
    # ------------------------------------------------------------------

    def enroll(self, state: ApplicationState) -> ApplicationState:
        sm.check_transition(state.stage, sm.ENROLLED)
        name = self.data.full_name()
        email = self.data.email()

        resp = self.client.enroll_with_magic_link({
            "magic_link_token": state.app_token,
            "unit_id": state.unit_id,
            "applicant": {
                "email": email,
                "first_name": name.first,
                "last_name": name.last,
                "middle_name": name.middle,
            },
        })
        app = resp.application
        # Every category must resolve before anything is submitted
        verifications = resolve_verification_map(app.current_applicant.verifications)

        state.id = app.id
        state.applicant.id = app.current_applicant.id
        state.applicant.email = email
        state.applicant.first_name = name.first
        state.applicant.middle_name = name.middle
        state.applicant.last_name = name.last
        state.verifications = verifications

        self._advance(state, sm.ENROLLED)
        self._snapshot(state)
        self.log.info("enrolled", applicationId=state.id, email=email)
        return state

    def start(self, state: ApplicationState) -> ApplicationState:
        sm.check_transition(state.stage, sm.STARTED)
        app_id = state.require_id()
        applicant_id = state.require_applicant_id()

        self.client.start_application(app_id)

        passed = self.client.pass_invite_flow(applicant_id)
        self.snapshots.write(APPLICANT_SNAPSHOT, passed)
        self.log.info("invite_flow_passed", applicantId=applicant_id)

        self.log.info("identity_verification_requested", applicationId=app_id)
        self.client.create_test_identity_verification({"application_id": app_id, "applicant_id": applicant_id})
        state.identity_verification_requested = True

        self._advance(state, sm.STARTED)
        self._snapshot(state)
        return state

    def invite_co_parties(self, state: ApplicationState) -> ApplicationState:
        if state.stage not in (sm.STARTED, sm.STEPS_SUBMITTED):
            raise WorkflowStateError(f"Invitations are not allowed in stage {state.stage}")
        actors = self.options.actors
        for _ in range(actors.co_applicants):
            invite_co_party(self.client, state, ROLE_APPLICANT, self.data, self.log)
        for _ in range(actors.guarantors):
            invite_co_party(self.client, state, ROLE_CO_SIGNER, self.data, self.log)
        if actors.co_applicants or actors.guarantors:
            self._snapshot(state)
        return state

    def submit_personal_details(self, state: ApplicationState) -> ApplicationState:
        def _submit():
            app_id = state.require_id()
            vid = state.verification_id(PERSONAL_DETAILS)
            for step in personal_details_steps(state.applicant, self.options.default_values, self.data):
                self.client.provide_verification_step(app_id, vid, step.step_name, step.get_payload())
                self.log.info("step_submitted", step=step.step_name)

        return self._submit_group(state, sm.STEP_PERSONAL_DETAILS, _submit)

    def submit_housing_history(self, state: ApplicationState) -> ApplicationState:
        def _submit():
            payload, address = housing_history_payload(self.options.default_values, self.data)
            self.client.provide_verification_step(
                state.require_id(), state.verification_id(HOUSING_HISTORY), STEP_HOUSING_HISTORY, payload
            )
            state.applicant.address = address
            self.log.info("step_submitted", step=STEP_HOUSING_HISTORY)

        return self._submit_group(state, sm.STEP_HOUSING_HISTORY, _submit)

    def submit_combined_income(self, state: ApplicationState) -> ApplicationState:
        def _submit():
            app_id = state.require_id()
            vid = state.verification_id(COMBINED_INCOME)

            income = self.client.create_income_resource(app_id, vid, INCOME_STEP, employment_payload(self.data))
            state.income_id = income.id
            self.log.info("income_created", incomeId=income.id)

            source = self.client.create_income_resource(
                app_id, vid, INCOME_SOURCES_STEP, {"income_id": income.id, "type": PAYSTUB_DOCUMENT_TYPE}
            )
            state.income_source_id = source.id
            self.log.info("income_source_created", incomeSourceId=source.id)

            upload_income_document(
                self.client, app_id, vid, source.id, self.options.paystub_path, PAYSTUB_DOCUMENT_TYPE, self.log,
                storage_transport=self._storage_transport,
            )
            self.client.post_income_verification(app_id, vid, INCOME_FINISH_STEP)
            self.log.info("step_submitted", step=sm.STEP_COMBINED_INCOME)

        return self._submit_group(state, sm.STEP_COMBINED_INCOME, _submit)

    def submit_move_in_date(self, state: ApplicationState) -> ApplicationState:
        def _submit():
            move_in = last_day_of_current_month()
            self.client.submit_desired_move_in_date(state.require_id(), {"desired_move_in_date": move_in})
            self.log.info("step_submitted", step=sm.STEP_MOVE_IN_DATE, moveInDate=move_in)

        return self._submit_group(state, sm.STEP_MOVE_IN_DATE, _submit)

    def sign_disclosure(self, state: ApplicationState) -> ApplicationState:
        sm.check_transition(state.stage, sm.DISCLOSURE_SIGNED)
        missing = [g for g in sm.STEP_GROUPS if g not in state.steps_submitted]
        if missing:
            raise WorkflowStateError(f"Cannot sign disclosure before submitting: {', '.join(missing)}")

        app_id = state.require_id()
        asset_id = upload_signature(
            self.client, app_id, self.options.signature_path, self.log,
            storage_transport=self._storage_transport,
        )
        state.signature_asset_id = asset_id
        self.client.provide_verification_step(
            app_id,
            state.verification_id(SUBMISSION_DISCLOSURE),
            STEP_SUBMISSION_DISCLOSURE,
            {"data": {"full_name": state.applicant.display_name, "signature": asset_id}},
        )
        self.log.info("disclosure_signed", assetId=asset_id)

        self._advance(state, sm.DISCLOSURE_SIGNED)
        self._snapshot(state)
        return state

    def await_identity_verification(self, state: ApplicationState) -> ApplicationState:
        self._advance(state, sm.VERIFICATION_PENDING)
        app_id = state.require_id()
        vid = state.verification_id(IDENTITY)
        timeouts = self.options.timeouts

        self.log.info("identity_verification_wait", waitMs=timeouts.identity_verification_wait_ms)
        self._sleep(timeouts.identity_verification_wait_ms / 1000.0)

        def _verified() -> bool:
            status = self.client.get_verification_details(app_id, vid).verification.status
            state.last_verification_status = status
            if status == STATUS_VERIFIED:
                self.log.info("identity_verification_completed")
                return True
            # "failed" keeps polling until the timeout
            self.log.error("identity_verification_not_completed", status=status)
            return False

        wait_for(
            _verified,
            timeout_ms=timeouts.identity_verification_check_ms,
            interval_ms=timeouts.identity_verification_interval_ms,
            clock=self._clock,
            sleep=self._sleep,
        )

        self._advance(state, sm.VERIFICATION_RESOLVED)
        self._snapshot(state)
        return state

    def submit(self, state: ApplicationState) -> ApplicationState:
        sm.check_transition(state.stage, sm.SUBMITTED)
        app_id = state.require_id()
        details = self.client.get_application_details(app_id)
        self.client.submit_application(app_id, transform_status_fields(details))
        self._advance(state, sm.SUBMITTED)
        self._snapshot(state)
        self.log.info(
            "application_submitted",
            applicationId=app_id,
            applicantId=state.applicant.id,
            phone=state.applicant.phone,
        )
        return state

    def run(self, state: ApplicationState) -> ApplicationState:
        """Drive an AUTHENTICATED state all the way to SUBMITTED."""
        state = self.enroll(state)
        state = self.start(state)
        state = self.invite_co_parties(state)
        state = self.submit_personal_details(state)
        state = self.submit_housing_history(state)
        state = self.submit_combined_income(state)
        state = self.submit_move_in_date(state)
        state = self.sign_disclosure(state)
        state = self.await_identity_verification(state)
        state = self.submit(state)
        self.log.info(
            "run_finished",
            applicationId=state.id,
            applicantName=state.applicant.display_name,
            coParties=len(state.applicants),
        )
        return state
