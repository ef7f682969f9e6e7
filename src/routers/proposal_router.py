import html
from datetime import datetime, timezone
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request

from auth import SessionStore, get_client_identifier, get_session_store
from core.errors import GateError, NotFoundError, UnauthorizedError, UnexpectedFailureError, ValidationFailedError
from core.logger import get_logger
from services import (
    Attachment,
    ContractService,
    ContractSigner,
    EmailService,
    get_contract_service,
    get_email_service,
    get_proposal,
)

from .schemas import ContractSubmissionRequest, parse_body

logger = get_logger(__name__)


proposal_router = APIRouter(tags=["proposals"])


def login_url(path: str) -> str:
    return f"/?{urlencode({'return': path})}"


@proposal_router.get("/proposal/{proposal_id}")
async def get_proposal_details(
    proposal_id: str,
    request: Request,
    session_store: SessionStore = Depends(get_session_store),
):
    """
    Proposal metadata for a visitor holding a session for this proposal.

    Raises:
        404: Unknown proposal
        401: No valid session for this proposal
    """
    proposal = get_proposal(proposal_id)
    if proposal is None:
        raise NotFoundError("Proposal not found")

    if not session_store.is_authenticated(request, proposal.id):
        raise UnauthorizedError(extra={"loginUrl": login_url(proposal.path)})

    return {"success": True, "proposal": proposal.to_dict()}


def contract_email_text(signer: ContractSigner, contract_title: str) -> str:
    return (
        f"Hello {signer.name},\n\n"
        f"Thank you for signing the {contract_title}.\n\n"
        f"We're excited to partner with {signer.company} on this project. "
        "Attached is a copy of the signed agreement for your records.\n\n"
        "Next Steps:\n"
        "1. You'll receive an invoice for the initial payment within 1 business day\n"
        "2. Our team will reach out within 24 hours to schedule your kickoff meeting\n"
        "3. We'll begin the discovery phase to understand your specific needs\n\n"
        "If you have any questions, please don't hesitate to reach out.\n\n"
        "Best regards,\n"
        "The Zero to One AI Team"
    )


def contract_email_html(signer: ContractSigner, contract_title: str) -> str:
    """HTML part of the confirmation email; signer input is escaped."""
    name = html.escape(signer.name)
    company = html.escape(signer.company)
    title = html.escape(contract_title)
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        '<h2 style="color: #0f172a;">Contract Signed Successfully</h2>'
        f"<p>Hello {name},</p>"
        f"<p>Thank you for signing the <strong>{title}</strong>.</p>"
        f"<p>We're excited to partner with {company} on this project. "
        "Attached is a copy of the signed agreement for your records.</p>"
        "<h3>Next Steps:</h3>"
        "<ol>"
        "<li>You'll receive an invoice for the initial payment within 1 business day</li>"
        "<li>Our team will reach out within 24 hours to schedule your kickoff meeting</li>"
        "<li>We'll begin the discovery phase to understand your specific needs</li>"
        "</ol>"
        "<p>If you have any questions, please don't hesitate to reach out.</p>"
        "<p>Best regards,<br>The Zero to One AI Team</p>"
        "</div>"
    )


@proposal_router.post("/contract/submit")
async def submit_contract(
    request: Request,
    session_store: SessionStore = Depends(get_session_store),
    contract_service: ContractService = Depends(get_contract_service),
    email_service: EmailService = Depends(get_email_service),
):
    """
    Sign a proposal's contract: render the PDF and email it to the signer.

    Returns:
        {"success": true, "message": "Contract signed successfully"}
    """
    body = await parse_body(request, ContractSubmissionRequest)

    proposal = get_proposal(body.proposal_id)
    if proposal is None or not proposal.contract_title:
        raise ValidationFailedError("Invalid proposal ID")

    if not session_store.is_authenticated(request, proposal.id):
        raise UnauthorizedError(extra={"loginUrl": login_url(f"{proposal.path}/contract")})

    signer = ContractSigner(
        name=body.name,
        title=body.title,
        email=body.email,
        phone=body.phone,
        company=body.company,
        address=body.address,
    )
    client_ip = get_client_identifier(request.headers)
    signed_at = datetime.now(timezone.utc)

    try:
        document = contract_service.render_pdf(proposal.contract_title, signer, client_ip, signed_at)

        if email_service.is_configured:
            await email_service.send(
                to=signer.email,
                subject=f"Zero to One AI - Contract Signed - {signer.company}",
                text=contract_email_text(signer, proposal.contract_title),
                html=contract_email_html(signer, proposal.contract_title),
                attachments=[Attachment(ContractService.attachment_filename(signer.company, signed_at), document)],
            )
        else:
            logger.warning("SendGrid is not configured; contract email skipped")

    except GateError:
        raise
    except Exception as e:
        raise UnexpectedFailureError(
            "Internal server error",
            context={"component": "contract-submit", "proposal_id": proposal.id},
        ) from e

    logger.info(f"Contract signed for proposal {proposal.id} by {signer.company}")
    return {"success": True, "message": "Contract signed successfully"}
