from __future__ import annotations

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient


def make_client(app: FastAPI) -> AsyncClient:
    # Unhandled errors must come back as 500 responses, not be re-raised into the test.
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    return AsyncClient(transport=transport, base_url="http://test")
