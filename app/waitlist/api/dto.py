from pydantic import BaseModel


class WaitlistRequest(BaseModel):
    """Waitlist form fields. Empty values are reported by the service, not rejected here."""

    name: str = ""
    email: str = ""


class BaseResponse(BaseModel):
    status: bool
    message: str
    data: dict | None = None
