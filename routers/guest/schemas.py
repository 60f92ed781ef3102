"""Guest session schemas."""

from pydantic import BaseModel


class ClaimRequest(BaseModel):
    guestSessionId: str
