"""FastAPI integration.

The template source is built once per application and kept on
``app.state``; request handlers receive it through the
:func:`get_template_source` dependency rather than a module-level global.

Usage
-----
    app = FastAPI()
    install_template_engine(app, TemplateEngineSettings(template_directory=...))

    @app.get("/")
    async def home(source: TemplateSource = Depends(get_template_source)):
        writer = await source.get_writer_async("home.html")
        ...
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from . import __version__
from .config.models import TemplateEngineSettings, resolve_settings
from .errors import (
    MalformedTemplateError,
    TemplateNotFoundError,
    TemplateReadError,
    UnknownFieldError,
)
from .factory import TemplateSource, create_template_source
from .loader import TemplateCache

logger = logging.getLogger(__name__)


def install_template_engine(
    app: FastAPI,
    settings: Optional[TemplateEngineSettings] = None,
    source: Optional[TemplateSource] = None,
) -> TemplateSource:
    """Attach a template source to `app`, building it from settings if needed.

    An already installed source is kept, so repeated calls are harmless.
    """
    existing = getattr(app.state, "template_source", None)
    if existing is not None:
        return existing
    if source is None:
        source = create_template_source(settings or resolve_settings())
    app.state.template_source = source
    return source


def get_template_source(request: Request) -> TemplateSource:
    """FastAPI dependency returning the application's template source."""
    source = getattr(request.app.state, "template_source", None)
    if source is None:
        raise RuntimeError("Template engine is not installed on this application")
    return source


def _check_name(name: str) -> str:
    # Names are resolved under the template directory; refuse to leave it
    if ".." in PurePosixPath(name).parts or name.startswith("/"):
        raise HTTPException(status_code=404, detail=f"Template not found: {name}")
    return name


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(TemplateNotFoundError)
    async def not_found_handler(_request: Request, exc: TemplateNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(MalformedTemplateError)
    async def malformed_handler(_request: Request, exc: MalformedTemplateError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(UnknownFieldError)
    async def unknown_field_handler(_request: Request, exc: UnknownFieldError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(TemplateReadError)
    async def read_error_handler(_request: Request, exc: TemplateReadError):
        logger.error("http.template_read_failed", extra={"error": str(exc)})
        return JSONResponse(
            status_code=500, content={"detail": "Template could not be read"}
        )


def create_app(settings: Optional[TemplateEngineSettings] = None) -> FastAPI:
    """Create a small FastAPI app that renders templates by name.

    Query parameters are applied as field values on the main section.
    """
    app = FastAPI(title="Template Engine", version=__version__)
    install_template_engine(app, settings)
    _register_exception_handlers(app)

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/templates/{name:path}", response_class=PlainTextResponse)
    async def render_template(
        name: str,
        request: Request,
        source: TemplateSource = Depends(get_template_source),
    ) -> str:
        writer = await source.get_writer_async(_check_name(name))
        writer.set_fields(dict(request.query_params))
        return writer.get_content(append_all=True)

    @app.get("/cache/{name:path}")
    async def cache_status(
        name: str, source: TemplateSource = Depends(get_template_source)
    ) -> Dict[str, Any]:
        name = _check_name(name)
        cached = isinstance(source, TemplateCache) and source.is_template_cached(name)
        return {"template": name, "cached": cached}

    return app
