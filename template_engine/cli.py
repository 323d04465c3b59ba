"""Command-line interface for rendering and serving templates.

Usage
-----
    template-engine render page.html --set TITLE=Home
    template-engine --directory ./Templates serve --port 8080
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .config.models import EnvSettings, TemplateEngineSettings, resolve_settings
from .errors import TemplateEngineError
from .factory import create_template_source
from .observability import setup_logging


def _parse_assignments(pairs: Sequence[str]) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got {pair!r}")
        values[key] = value
    return values


def _build_settings(args: argparse.Namespace, env: EnvSettings) -> TemplateEngineSettings:
    """Apply command-line overrides on top of environment settings."""
    if args.config:
        settings = TemplateEngineSettings.load(Path(args.config))
    else:
        settings = resolve_settings(env)
    if args.directory:
        settings = settings.model_copy(update={"template_directory": Path(args.directory)})
    if args.no_cache:
        settings = settings.model_copy(update={"use_cache": False})
    return settings


def _render(settings: TemplateEngineSettings, name: str, fields: Dict[str, str]) -> str:
    source = create_template_source(settings)
    writer = source.get_writer(name)
    writer.set_fields(fields)
    return writer.get_content(append_all=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Template engine CLI")
    parser.add_argument("--config", help="Path to JSON settings file")
    parser.add_argument("--directory", help="Template directory (overrides config)")
    parser.add_argument(
        "--no-cache",
        dest="no_cache",
        action="store_true",
        help="Load templates without caching",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help="Logging level (overrides environment)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Render a template to stdout")
    render.add_argument("name", help="Template name relative to the directory")
    render.add_argument(
        "--set",
        dest="fields",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Field value for the main section (repeatable)",
    )

    serve = sub.add_parser("serve", help="Run the HTTP demo app (requires uvicorn)")
    serve.add_argument("--host", default="127.0.0.1", help="Bind host")
    serve.add_argument("--port", type=int, default=8080, help="HTTP port")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)
    env = EnvSettings()
    effective_level = args.log_level or env.log_level.upper()
    setup_logging(effective_level)

    try:
        settings = _build_settings(args, env)
        if args.command == "render":
            fields = _parse_assignments(args.fields)
            sys.stdout.write(_render(settings, args.name, fields))
            return 0
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))
    except (TemplateEngineError, OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    # Lazy import uvicorn only for serve mode
    from .web import create_app

    uvicorn = importlib.import_module("uvicorn")
    uvicorn.run(
        create_app(settings),
        host=args.host,
        port=args.port,
        log_level=effective_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
