"""
Services Package

Contains service layer classes for:
- Proposal registry
- Contract PDF rendering (fpdf2)
- Email delivery (SendGrid)
- Voice demo signed URLs (ElevenLabs)
"""

from services.contract_service import ContractService, ContractSigner, get_contract_service
from services.email_service import Attachment, EmailService, get_email_service
from services.proposals import PROPOSALS, Proposal, get_proposal
from services.voice_service import VoiceService, VoiceServiceError, get_voice_service

__all__ = [
    "PROPOSALS",
    "Attachment",
    "ContractService",
    "ContractSigner",
    "EmailService",
    "Proposal",
    "VoiceService",
    "VoiceServiceError",
    "get_contract_service",
    "get_email_service",
    "get_proposal",
    "get_voice_service",
]
