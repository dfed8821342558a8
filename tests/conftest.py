from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import pytest

# pytest may run without installing the project; ensure repo root is importable.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from veryfiable.core.config import Config  # noqa: E402


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for k in list(os.environ):
        if k.startswith("VERYFIABLE_"):
            monkeypatch.delenv(k, raising=False)


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """CLI commands call configure_logging(), which replaces root handlers."""

    root = logging.getLogger()
    level = root.level
    yield
    for h in list(root.handlers):
        if type(h) is logging.StreamHandler:
            root.removeHandler(h)
    root.setLevel(level)


@pytest.fixture()
def test_config() -> Config:
    """Config that depends on neither the caller's environment nor cwd."""

    return Config(_env_file=None, api={"environment": "test"})
