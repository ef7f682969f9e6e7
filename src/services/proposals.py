"""
Proposal Registry

The gated resources this site serves. Content rendering lives in the
frontend; the backend only needs identity, titles and the contract name.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Proposal:
    id: str
    title: str
    subtitle: str
    contract_title: str | None = None

    @property
    def path(self) -> str:
        return f"/proposal/{self.id}"

    def to_dict(self) -> dict[str, str | None]:
        return {
            "id": self.id,
            "title": self.title,
            "subtitle": self.subtitle,
            "path": self.path,
            "contractTitle": self.contract_title,
        }


PROPOSALS: dict[str, Proposal] = {
    "adb": Proposal(
        id="adb",
        title="American Board of Dermatology",
        subtitle="Patient Simulation Training System",
        contract_title="AI-Powered Patient Simulation System Agreement",
    ),
}


def get_proposal(proposal_id: str) -> Proposal | None:
    return PROPOSALS.get(proposal_id)
