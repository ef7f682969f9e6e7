"""
Contract Service

Renders the signed-contract PDF (fpdf2, Letter size, core fonts) that is
emailed to the signer.
"""

from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache

from fpdf import FPDF

from core.logger import get_logger
from core.settings import get_settings

logger = get_logger(__name__)

PAGE_HEIGHT = 792
MARGIN = 50


@dataclass(frozen=True)
class ContractSigner:
    name: str
    title: str
    email: str
    phone: str
    company: str
    address: str


def _latin1(text: str) -> str:
    # Core PDF fonts only cover Latin-1
    return text.encode("latin-1", "replace").decode("latin-1")


class ContractService:
    def __init__(self, site_name: str = "launch.zto1ai.com"):
        self.site_name = site_name

    def render_pdf(
        self,
        contract_title: str,
        signer: ContractSigner,
        client_ip: str,
        signed_at: datetime,
    ) -> bytes:
        """
        Render the signed agreement

        Args:
            contract_title: Agreement name printed as the heading
            signer: Details captured from the signing form
            client_ip: Client identifier recorded in the audit trail
            signed_at: Signing timestamp (timezone-aware)

        Returns:
            PDF document bytes
        """
        pdf = FPDF(orientation="portrait", unit="pt", format="letter")
        pdf.set_auto_page_break(auto=False)
        pdf.add_page()

        y = MARGIN
        pdf.set_font("Helvetica", style="B", size=16)
        pdf.text(MARGIN, y, _latin1(contract_title.upper()))

        y += 40
        pdf.set_font("Helvetica", size=12)
        lines = [
            f"This agreement was electronically signed by {signer.name}",
            f"Title: {signer.title} at {signer.company}",
            f"Email: {signer.email}  Phone: {signer.phone}",
            f"Address: {signer.address}",
            f"Date: {signed_at.strftime('%B %d, %Y %H:%M %Z')}",
            f"IP Address: {client_ip}",
        ]
        for line in lines:
            pdf.text(MARGIN, y, _latin1(line))
            y += 20

        pdf.set_font("Helvetica", style="B", size=10)
        pdf.text(MARGIN, PAGE_HEIGHT - 100, "--- ELECTRONIC SIGNATURE AUDIT TRAIL ---")
        pdf.set_font("Helvetica", size=8)
        pdf.text(
            MARGIN,
            PAGE_HEIGHT - 80,
            _latin1(f"Signed electronically via {self.site_name} on {signed_at.isoformat()}"),
        )

        document = bytes(pdf.output())
        logger.info(f"Rendered contract PDF for {signer.company} ({len(document)} bytes)")
        return document

    @staticmethod
    def attachment_filename(company: str, signed_at: datetime) -> str:
        company_slug = "_".join(company.split())
        return f"ZeroToOneAI_Contract_{company_slug}_{signed_at.date().isoformat()}.pdf"


@lru_cache
def get_contract_service() -> ContractService:
    return ContractService(site_name=get_settings().site_name)
