"""Pytest configuration for test suite.

Ensures the project root is on ``sys.path`` so imports like
``import template_engine`` resolve regardless of the working directory pytest
chooses, and provides a template directory populated with sample files.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_project_root_on_syspath() -> None:
    project_root = Path(__file__).resolve().parents[1]
    project_root_str = str(project_root)
    if project_root_str not in sys.path:
        # Prepend to prefer local sources over site-packages
        sys.path.insert(0, project_root_str)


_ensure_project_root_on_syspath()

from helpers import TEMPLATE_TEXT, CountingReader  # noqa: E402


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """Directory containing the sample templates from ``TEMPLATE_TEXT``."""
    root = tmp_path / "templates"
    for name, text in TEMPLATE_TEXT.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


@pytest.fixture
def counting_reader() -> CountingReader:
    return CountingReader(delay=0.01)
