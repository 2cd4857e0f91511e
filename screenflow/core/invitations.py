from screenflow.data.generators import RandomDataSource
from screenflow.errors import RemoteServiceError
from screenflow.observability.logging import EventLogger
from screenflow.screening.client import ScreeningClient
from screenflow.store.models import Applicant, ApplicationState

ROLE_APPLICANT = "applicant"
ROLE_CO_SIGNER = "co_signer"


def invite_co_party(
    client: ScreeningClient,
    state: ApplicationState,
    role: str,
    data: RandomDataSource,
    logger: EventLogger,
) -> Applicant:
    """
    Invite one co-applicant (role "applicant") or guarantor ("co_signer") and
    record their magic link on the state. The invitee fills in their own part
    later; the primary applicant's steps do not wait for them.
    """
    app_id = state.require_id()

    summary = client.get_application_summary(app_id)
    if role == ROLE_APPLICANT and not summary.has_multiple_applicants:
        logger.info("multiple_applicants_enabled", applicationId=app_id)
        client.patch_application(app_id, {"has_multiple_applicants": True})
    if role == ROLE_CO_SIGNER and not summary.has_multiple_guarantors:
        logger.info("multiple_guarantors_enabled", applicationId=app_id)
        client.patch_application(app_id, {"has_multiple_guarantors": True})

    name = data.full_name()
    email = data.email()
    logger.info("co_party_invite", role=role, email=email)
    client.invite_applicant({
        "application_id": app_id,
        "email": email,
        "first_name": name.first,
        "last_name": name.last,
        "role": role,
    })

    links = client.get_magic_links(app_id)
    link = next((m.application_link for m in links.magic_links if m.email == email), None)
    if not link:
        raise RemoteServiceError(
            f"No magic link returned for invited {role} {email}",
            endpoint=f"/screen/applications/{app_id}/magic_links",
        )

    invitee = Applicant(
        role=role,
        first_name=name.first,
        middle_name=name.middle,
        last_name=name.last,
        email=email,
        invite_magic_link=link,
    )
    state.applicants.append(invitee)
    logger.info("co_party_invited", role=role, magicLink=link)
    return invitee
