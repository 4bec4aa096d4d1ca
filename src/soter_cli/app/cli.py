from __future__ import annotations

import logging
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, Optional

import typer

from .container import Container, build_container
from ..config.settings import AppConfig
from ..core.domain.enums import OutputFormat, PackageType
from ..core.domain.errors import CheckError
from ..core.domain.options import ALLOWED_FIELDS, CheckOptions
from ..core.services.result_formatter import RenderedOutput
from ..core.usecases.check_orchestrator import CheckOrchestrator


app = typer.Typer(add_completion=False, help="Check installed plugins, themes and core against a vulnerability database.")

Action = Callable[[CheckOrchestrator, CheckOptions], RenderedOutput]

FORMAT_HELP = "Results output format."
FIELDS_HELP = f"Comma separated list of fields to show. Valid fields: {', '.join(ALLOWED_FIELDS)}."
IGNORE_HELP = "Comma separated list of slugs to skip entirely."
CORE_IGNORE_HELP = (
    "Comma separated list of core slugs to skip. Core slugs are the version stripped of "
    "any non-numeric characters (e.g. 4.7.4 becomes 474)."
)


class LogLevel(str, Enum):
    OFF = "OFF"
    CRITICAL = "CRITICAL"
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"
    DEBUG = "DEBUG"


def _configure_logging(log_level: Optional[LogLevel]) -> None:
    if log_level in (None, LogLevel.OFF):
        return

    level = logging.getLevelNamesMapping().get(log_level.value, logging.INFO)
    package_name = __package__.split(".", 1)[0] if __package__ else "soter_cli"
    logger = logging.getLogger(package_name)

    has_stream = any(isinstance(h, logging.StreamHandler) for h in logger.handlers)
    if not has_stream:
        handler = logging.StreamHandler()  # stderr
        handler.setFormatter(logging.Formatter("%(levelname)s | %(name)s | %(message)s"))
        logger.addHandler(handler)

    logger.propagate = False
    logger.setLevel(level)


@app.callback()
def main(
    ctx: typer.Context,
    log_level: Optional[LogLevel] = typer.Option(
        None, "--log-level", case_sensitive=False, help="Set log level (OFF, CRITICAL, ERROR, WARNING, INFO, DEBUG). Default: OFF"
    ),
    database: Optional[Path] = typer.Option(None, "--database", help="Vulnerability database file (overrides SOTER_DATABASE_PATH)."),
    manifest: Optional[Path] = typer.Option(None, "--manifest", help="Installed packages manifest (overrides SOTER_MANIFEST_PATH)."),
) -> None:
    """Root command callback: logging and config overrides."""
    _configure_logging(log_level)
    overrides = {"database_path": database, "manifest_path": manifest}
    ctx.obj = {k: v for k, v in overrides.items() if v is not None}


@contextmanager
def provide_container(overrides: Optional[dict] = None) -> Iterator[Container]:
    container = build_container(AppConfig(**(overrides or {})))
    container.init_resources()
    try:
        yield container
    finally:
        container.shutdown_resources()


def _run(ctx: typer.Context, output_format: OutputFormat, fields: Optional[str], ignore: Optional[str], action: Action) -> None:
    with provide_container(ctx.obj) as container:
        try:
            options = CheckOptions.parse(
                output_format,
                fields if fields is not None else container.config.default_fields(),
                ignore,
            )
            rendered = action(container.orchestrator(), options)
        except (CheckError, ValueError) as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1)

    typer.echo(rendered.text)


def _format_option():
    return typer.Option(OutputFormat.TABLE, "--format", case_sensitive=False, help=FORMAT_HELP)


def _fields_option():
    return typer.Option(None, "--fields", help=FIELDS_HELP)


@app.command("check-plugin", help="Check a plugin for vulnerabilities.")
def check_plugin(
    ctx: typer.Context,
    slug: str = typer.Argument(..., help="The plugin slug to check."),
    version: Optional[str] = typer.Argument(None, help="The plugin version to check. Defaults to the installed version."),
    output_format: OutputFormat = _format_option(),
    fields: Optional[str] = _fields_option(),
) -> None:
    _run(ctx, output_format, fields, None, lambda o, opts: o.check_single(PackageType.PLUGIN, slug, version, opts))


@app.command("check-plugins", help="Check all installed plugins for vulnerabilities.")
def check_plugins(
    ctx: typer.Context,
    output_format: OutputFormat = _format_option(),
    fields: Optional[str] = _fields_option(),
    ignore: Optional[str] = typer.Option(None, "--ignore", help=IGNORE_HELP),
) -> None:
    _run(ctx, output_format, fields, ignore, lambda o, opts: o.check_batch(PackageType.PLUGIN, opts))


@app.command("check-theme", help="Check a theme for vulnerabilities.")
def check_theme(
    ctx: typer.Context,
    slug: str = typer.Argument(..., help="The theme slug to check."),
    version: Optional[str] = typer.Argument(None, help="The theme version to check. Defaults to the installed version."),
    output_format: OutputFormat = _format_option(),
    fields: Optional[str] = _fields_option(),
) -> None:
    _run(ctx, output_format, fields, None, lambda o, opts: o.check_single(PackageType.THEME, slug, version, opts))


@app.command("check-themes", help="Check all installed themes for vulnerabilities.")
def check_themes(
    ctx: typer.Context,
    output_format: OutputFormat = _format_option(),
    fields: Optional[str] = _fields_option(),
    ignore: Optional[str] = typer.Option(None, "--ignore", help=IGNORE_HELP),
) -> None:
    _run(ctx, output_format, fields, ignore, lambda o, opts: o.check_batch(PackageType.THEME, opts))


@app.command("check-wordpress", help="Check a version of WordPress core for vulnerabilities.")
def check_wordpress(
    ctx: typer.Context,
    version: str = typer.Argument(..., help="The core version to check (e.g. 4.7.4)."),
    output_format: OutputFormat = _format_option(),
    fields: Optional[str] = _fields_option(),
) -> None:
    _run(ctx, output_format, fields, None, lambda o, opts: o.check_single(PackageType.WORDPRESS, version, version, opts))


app.command("check-wp", hidden=True, help="Alias of check-wordpress.")(check_wordpress)


@app.command("check-wordpresses", help="Check the installed version of WordPress core for vulnerabilities.")
def check_wordpresses(
    ctx: typer.Context,
    output_format: OutputFormat = _format_option(),
    fields: Optional[str] = _fields_option(),
    ignore: Optional[str] = typer.Option(None, "--ignore", help=CORE_IGNORE_HELP),
) -> None:
    _run(ctx, output_format, fields, ignore, lambda o, opts: o.check_batch(PackageType.WORDPRESS, opts))


@app.command("check-site", help="Check every installed plugin, theme and the core version for vulnerabilities.")
def check_site(
    ctx: typer.Context,
    output_format: OutputFormat = _format_option(),
    fields: Optional[str] = _fields_option(),
    ignore: Optional[str] = typer.Option(None, "--ignore", help=f"{IGNORE_HELP} {CORE_IGNORE_HELP}"),
) -> None:
    _run(ctx, output_format, fields, ignore, lambda o, opts: o.check_site(opts))


if __name__ == "__main__":  # pragma: no cover
    app()
