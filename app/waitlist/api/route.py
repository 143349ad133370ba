from fastapi import APIRouter, Depends, Request

from app.waitlist.api.dto import BaseResponse, WaitlistRequest
from app.waitlist.service.waitlist_service import WaitlistService

waitlist_router = APIRouter(prefix="/api", tags=["Waitlist"])


def get_waitlist_service(request: Request) -> WaitlistService:
    """Dependency to get the waitlist service from app.state."""
    service = getattr(request.app.state, "waitlist_service", None)
    if service is None:
        service = WaitlistService()
        request.app.state.waitlist_service = service
    return service


@waitlist_router.post("/waitlist", response_model=BaseResponse)
async def submit_to_waitlist(body: WaitlistRequest, service: WaitlistService = Depends(get_waitlist_service)):
    """Sign up for the launch waitlist. Validation failures are reported in the body."""
    result = await service.submit(body.name, body.email)
    return BaseResponse(status=result.success, message=result.message)
