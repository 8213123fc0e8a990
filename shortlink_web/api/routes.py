"""API routes implementation."""

from fastapi import APIRouter, Query, Request
from datetime import datetime, timezone
from typing import List

from .schemas import (
    ShortenRequest,
    ShortenResponse,
    InfoResponse,
    AnalyticsResponse,
    LinkSummary,
    HealthResponse,
    ErrorResponse,
    StatisticsResponse,
)
from shortlink.common.url_builder import build_short_url

# Routes called by the front-end, mounted at the root
router = APIRouter()

# Operational routes, mounted under /api
ops_router = APIRouter()


@router.post(
    "/shorten",
    response_model=ShortenResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid URL, alias or expiry"},
        409: {"model": ErrorResponse, "description": "Alias already taken or no free code"},
        500: {"model": ErrorResponse, "description": "Storage error"},
    },
    summary="Create short link",
    description="Create a short link. Optionally provide an alias and an expiry.",
)
async def shorten_url(request: Request, body: ShortenRequest):
    """Create a short link."""
    service = request.app.state.service
    config = request.app.state.config

    link = await service.shorten(
        original_url=body.original_url,
        alias=body.custom_alias,
        expires_at=body.expires_at,
    )

    short_url = build_short_url(
        short_code=link.code,
        headers=dict(request.headers),
        fallback_base_url=config.base_url,
        request_scheme=request.url.scheme,
        request_host=request.headers.get("host"),
        path_prefix=config.path_prefix,
    )

    return ShortenResponse(
        url=link.code,
        short_url=short_url,
        original_url=link.original_url,
        created_at=link.created_at,
        expires_at=link.expires_at,
    )


@router.get(
    "/info/{code}",
    response_model=InfoResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Short code not found"},
    },
    summary="Get link information",
    description="Get the original URL, creation time and click count without recording a click.",
)
async def get_link_info(request: Request, code: str):
    service = request.app.state.service

    link = await service.get_info(code)

    return InfoResponse(
        original_url=link.original_url,
        created_at=link.created_at,
        click_count=link.click_count,
        expires_at=link.expires_at,
    )


@router.get(
    "/analytics/{code}",
    response_model=AnalyticsResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Short code not found"},
    },
    summary="Get click analytics",
    description="Get the click count and the source IP of every click, most recent first.",
)
async def get_link_analytics(request: Request, code: str):
    service = request.app.state.service

    analytics = await service.get_analytics(code)

    return AnalyticsResponse(
        click_count=analytics.click_count,
        ip_addresses=analytics.ip_addresses,
    )


@ops_router.get(
    "/links",
    response_model=List[LinkSummary],
    summary="List recent links",
    description="List recently created links, newest first.",
)
async def list_recent_links(request: Request, limit: int = Query(50, ge=1, le=500)):
    service = request.app.state.service

    links = await service.list_recent(limit)

    return [
        LinkSummary(
            code=link.code,
            original_url=link.original_url,
            created_at=link.created_at,
            expires_at=link.expires_at,
            click_count=link.click_count,
        )
        for link in links
    ]


@ops_router.get(
    "/stats",
    response_model=StatisticsResponse,
    summary="Get statistics",
    description="Get service-wide statistics.",
)
async def get_statistics(request: Request):
    """Get service statistics."""
    service = request.app.state.service

    stats = await service.get_statistics()

    return StatisticsResponse(**stats)


@ops_router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the service is healthy.",
)
async def health_check(request: Request):
    """Health check endpoint for load balancers and monitoring."""
    service = request.app.state.service

    health = await service.health_check()

    return HealthResponse(
        status="healthy" if health["overall"] else "unhealthy",
        database="healthy" if health["database"] else "unhealthy",
        cache="healthy" if health["cache"] else "unhealthy",
        timestamp=datetime.now(timezone.utc),
    )
