"""Shared pytest fixtures."""

from __future__ import annotations

import logging
import os
from typing import Iterator

import pytest

from mvpkit.utils.logging import reset_logging


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("MVPKIT_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Undo root logger changes made by ``setup_logging``."""

    root = logging.getLogger()
    level = root.level
    yield
    reset_logging()
    root.setLevel(level)
    logging.captureWarnings(False)
