from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from veryfiable import SERVICE_DESCRIPTION, SERVICE_NAME, __version__

router = APIRouter()


class ServiceDescriptor(BaseModel):
    service: str
    version: str
    description: str
    endpoints: dict[str, str]


DESCRIPTOR = ServiceDescriptor(
    service=SERVICE_NAME,
    version=__version__,
    description=SERVICE_DESCRIPTION,
    endpoints={"health": "/api/v1/health"},
)


@router.get("/", response_model=ServiceDescriptor)
def root() -> ServiceDescriptor:
    return DESCRIPTOR
