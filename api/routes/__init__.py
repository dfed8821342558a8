from __future__ import annotations

from fastapi import APIRouter

from api.routes import health


def get_api_router() -> APIRouter:
    router = APIRouter()

    router.include_router(health.router, tags=["health"])
    # reviews, attestations: not built yet

    return router
