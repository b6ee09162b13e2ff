from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import NoReturn

import anyio
import typer

from . import __version__
from .config import ConfigError
from .logging import get_logger, setup_logging
from .settings import MbotSettings, load_settings, require_token

logger = get_logger(__name__)

_CONFIG_PATH_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to mbot.toml (default: ~/.mbot/mbot.toml).",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


def _exit_config_error(exc: ConfigError) -> NoReturn:
    typer.echo(f"error: {exc}", err=True)
    raise typer.Exit(code=1) from exc


def _load_or_exit(config_path: Path | None) -> tuple[MbotSettings, Path]:
    try:
        return load_settings(config_path)
    except ConfigError as exc:
        _exit_config_error(exc)


def _run_bot(settings: MbotSettings, token: str) -> None:
    from .loop import run_main_loop

    anyio.run(partial(run_main_loop, settings, token=token), backend="asyncio")


def run(
    config_path: Path | None = _CONFIG_PATH_OPTION,
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
) -> None:
    """Connect to Discord and serve commands."""
    setup_logging(debug=debug)
    settings, cfg_path = _load_or_exit(config_path)
    try:
        token = require_token(settings, cfg_path)
    except ConfigError as exc:
        _exit_config_error(exc)
    try:
        _run_bot(settings, token)
    except KeyboardInterrupt:
        logger.info("shutdown.interrupted")
    except Exception as exc:
        logger.exception("startup.failed")
        raise typer.Exit(code=1) from exc


def check(config_path: Path | None = _CONFIG_PATH_OPTION) -> None:
    """Validate the configuration and list the registered commands."""
    from .commands.builtin import build_registry, render_help
    from .correlator import Correlator
    from .games.guess import GuessingGame
    from .loop import guess_config

    settings, cfg_path = _load_or_exit(config_path)
    try:
        require_token(settings, cfg_path)
    except ConfigError as exc:
        _exit_config_error(exc)
    registry = build_registry(
        GuessingGame(correlator=Correlator(), config=guess_config(settings))
    )
    typer.echo(f"config: {cfg_path}")
    typer.echo(f"prefix: {settings.prefix}")
    typer.echo(f"owners: {len(settings.owners)}")
    if not settings.owners:
        typer.echo("warning: no owners configured; `nick` is disabled", err=True)
    typer.echo(render_help(registry, settings.prefix))


def create_app() -> typer.Typer:
    app = typer.Typer(add_completion=False, no_args_is_help=True)

    @app.callback()
    def _main(
        version: bool = typer.Option(
            False,
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show the version and exit.",
        ),
    ) -> None:
        """Prefix command bot with a number guessing game."""

    app.command(name="run")(run)
    app.command(name="check")(check)
    return app


def main() -> None:
    app = create_app()
    app()


if __name__ == "__main__":
    main()
