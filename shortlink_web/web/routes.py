"""Redirect route implementation."""

from fastapi import APIRouter, Request, status
from fastapi.responses import RedirectResponse

router = APIRouter()


@router.get("/{code}", include_in_schema=False)
async def redirect_to_url(request: Request, code: str):
    """Redirect to the original URL and record the click.

    Unknown codes answer 404 and expired ones 410 through the app's
    exception handlers.
    """
    service = request.app.state.service

    original_url = await service.resolve(code, source_ip=getattr(request.state, "client_ip", None))

    # 302 so every visit comes back through here and is counted
    return RedirectResponse(url=original_url, status_code=status.HTTP_302_FOUND)
