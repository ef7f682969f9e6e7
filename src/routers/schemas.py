"""
Request Schemas

Bodies are validated here instead of through FastAPI's automatic body
parsing so validation failures use the gate's 400 error shape.
"""

from typing import Annotated, TypeVar

from fastapi import Request
from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationError

from core.errors import ValidationFailedError

RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

M = TypeVar("M", bound=BaseModel)


class PasswordVerificationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    password: str = Field(min_length=1)
    return_url: str | None = Field(default=None, alias="returnUrl")


class ContractSubmissionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: RequiredText
    title: RequiredText
    email: Annotated[str, StringConstraints(strip_whitespace=True, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")]
    phone: RequiredText
    company: RequiredText
    address: RequiredText
    proposal_id: RequiredText = Field(alias="proposalId")


async def parse_body(request: Request, model: type[M]) -> M:
    """
    Read and validate a JSON request body

    Raises:
        ValidationFailedError: With field-level details; submitted values are
            never echoed back
    """
    try:
        payload = await request.json()
    except ValueError as e:
        raise ValidationFailedError(
            extra={"details": [{"loc": ["body"], "msg": "Malformed JSON body", "type": "json_invalid"}]}
        ) from e

    try:
        return model.model_validate(payload)
    except ValidationError as e:
        details = e.errors(include_url=False, include_context=False, include_input=False)
        raise ValidationFailedError(extra={"details": details}) from e
