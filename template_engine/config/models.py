"""Config models and loader.

This module defines Pydantic models for file- and environment-based
configuration of the template engine. JSON parsing prefers `orjson` when
available and falls back to the standard library's `json` module otherwise.
"""

from __future__ import annotations

import json as _json
from pathlib import Path
from typing import Any, Callable, Optional

try:
    import orjson as _orjson_mod  # type: ignore[assignment]
except ImportError:  # pragma: no cover - optional dependency
    _orjson_mod = None  # type: ignore[assignment]
    _loads_orjson: Optional[Callable[[bytes], Any]] = None
else:

    def _loads_orjson(buf: bytes) -> Any:
        loader = getattr(_orjson_mod, "loads")  # type: ignore[assignment]
        return loader(buf)


from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DIRECTORY_NAME = "Templates"
CONFIG_SECTION = "TemplateEngine"


def _default_template_directory() -> Path:
    return Path.cwd() / DEFAULT_DIRECTORY_NAME


class TemplateEngineSettings(BaseModel):
    """Template engine configuration.

    Attributes
    ----------
    template_directory: Path
        Root directory template names are resolved against. Defaults to
        ``./Templates`` relative to the working directory.
    use_cache: bool
        Serve templates through a :class:`TemplateCache` (parse once, copy
        per read) instead of a plain :class:`TemplateLoader`.
    """

    template_directory: Path = Field(default_factory=_default_template_directory)
    use_cache: bool = Field(True, description="Memoise parsed templates")

    @staticmethod
    def load(path: Path) -> "TemplateEngineSettings":
        """Load settings from a JSON file.

        The settings may sit at the top level of the document or under a
        ``"TemplateEngine"`` key, so the engine can share a file with other
        application settings.
        """
        raw = path.read_bytes()
        if _loads_orjson is not None:
            data = _loads_orjson(raw)
        else:
            data = _json.loads(raw.decode("utf-8"))
        if isinstance(data, dict) and CONFIG_SECTION in data:
            data = data[CONFIG_SECTION]
        return TemplateEngineSettings.model_validate(data)


class EnvSettings(BaseSettings):
    """Environment-driven settings and .env support.

    Attributes
    ----------
    log_level: str
        Logging level name (e.g., "DEBUG", "INFO"). Defaults to "INFO".
    config: Optional[Path]
        Path to a JSON settings file; takes precedence over the fields below.
    template_directory: Optional[Path]
        Template root override.
    use_cache: bool
        Whether to cache parsed templates. Defaults to True.
    """

    model_config = SettingsConfigDict(env_file=".env", env_prefix="TEMPLATE_ENGINE_")

    log_level: str = Field("INFO")
    config: Optional[Path] = None
    template_directory: Optional[Path] = None
    use_cache: bool = Field(True)


def resolve_settings(env: Optional[EnvSettings] = None) -> TemplateEngineSettings:
    """Build :class:`TemplateEngineSettings` from the environment.

    A JSON file named by ``TEMPLATE_ENGINE_CONFIG`` wins; otherwise the
    individual environment values are used, falling back to defaults.
    """
    env = env or EnvSettings()
    if env.config is not None:
        return TemplateEngineSettings.load(env.config)
    values: dict[str, Any] = {"use_cache": env.use_cache}
    if env.template_directory is not None:
        values["template_directory"] = env.template_directory
    return TemplateEngineSettings.model_validate(values)
