"""Typer application factory and CLI entry point for authhook.

The CLI manages the registry file (``authhook destinations ...``) and sends
authenticated requests to registered destinations (``authhook call ...``),
which is mostly useful to check that a destination's credential works.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. :class:`~authhook.exceptions.AuthHookError` escaping a
command exits with the error's ``exit_code``.
"""

from __future__ import annotations

import signal
import sys
from typing import Any, Optional

import typer

from authhook import __version__
from authhook.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="authhook",
    help="Attach destination credentials to outbound HTTP requests.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"authhook {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    registry: Optional[str] = typer.Option(
        None,
        "--registry",
        "-r",
        envvar="AUTHHOOK_REGISTRY",
        help="Registry file (JSON or YAML).",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Print requests instead of sending them."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~authhook.output.OutputManager`, routes the
    ``authhook`` logger to stderr, and stores shared options in ``ctx.obj``.
    """
    from authhook.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    output.attach_logging()

    ctx.ensure_object(dict)
    ctx.obj["registry"] = registry
    ctx.obj["dry_run"] = dry_run
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _register_commands() -> None:
    from authhook.commands.call import call_command
    from authhook.commands.destinations import destinations_app

    app.add_typer(
        destinations_app, name="destinations", help="Manage registered destinations."
    )
    app.command("call")(call_command)


_register_commands()


def main() -> None:
    """CLI entry point invoked by the ``authhook`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from authhook.exceptions import AuthHookError
        from authhook.output import error

        if isinstance(exc, AuthHookError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
