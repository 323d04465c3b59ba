"""Package version: installed distribution metadata, else ``pyproject.toml``."""

from __future__ import annotations

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

DISTRIBUTION = "template-engine-cache"
DEV_VERSION = "0.0.0-dev"


_PYPROJECT = Path(__file__).resolve().parents[1] / "pyproject.toml"


def _read_version(pyproject: Path = _PYPROJECT) -> str:
    try:
        return version(DISTRIBUTION)
    except PackageNotFoundError:
        pass
    try:
        with pyproject.open("rb") as fh:
            return str(tomllib.load(fh)["project"]["version"])
    except (OSError, KeyError, tomllib.TOMLDecodeError):
        return DEV_VERSION


__version__ = _read_version()
