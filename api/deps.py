from __future__ import annotations

from fastapi import Request

from veryfiable.core.config import Config
from veryfiable.core.database import Database


def get_config(request: Request) -> Config:
    return request.app.state.config


def get_db(request: Request) -> Database:
    db = getattr(request.app.state, "db", None)
    if db is not None:
        return db
    db = Database(get_config(request).database)
    request.app.state.db = db
    return db
