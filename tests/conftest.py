"""Shared test fixtures for flowlint."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


@pytest.fixture()
def write_flow(tmp_path: Path) -> Callable[[list[dict[str, object]]], Path]:
    """Return a helper that writes a flow object list to ``flows.json``."""

    def _write(objects: list[dict[str, object]], name: str = "flows.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(objects), encoding="utf-8")
        return path

    return _write
