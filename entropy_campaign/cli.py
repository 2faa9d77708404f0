"""Thin CLI wrapper for entropy_campaign.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import json
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.markup import escape
from typer import core as typer_core
from typer.core import TyperCommand

from entropy_campaign import __version__
from entropy_campaign.config import get_settings, print_settings_json
from entropy_campaign.types import DEFAULT_BUFFER_BYTES

app = typer.Typer(
    name="entropy-campaign",
    help="Entropy Boot Campaign - repeated boot tests for the early-boot entropy collector",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

ITEM_SEPARATOR = "--"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# The click that typer parses with; newer typer releases bundle it as typer._click
_click = getattr(typer_core, "_click", None) or typer_core.click


class CampaignCommand(TyperCommand):
    """Command that requires `--` before its items.

    Usage errors exit with status 1 like every other fatal condition.
    """

    def parse_args(self, ctx: typer.Context, args: list[str]) -> list[str]:
        head = args[: args.index(ITEM_SEPARATOR)] if ITEM_SEPARATOR in args else args
        asks_help = any(a in ctx.help_option_names or a == "-h" for a in head)
        try:
            if ITEM_SEPARATOR not in args and not asks_help:
                raise _click.UsageError(
                    f"Campaign items must follow a '{ITEM_SEPARATOR}' separator",
                    ctx=ctx,
                )
            return super().parse_args(ctx, args)
        except _click.UsageError as e:
            e.exit_code = 1
            raise


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"entropy-campaign version {__version__}")
        raise typer.Exit()


def short_help_callback(ctx: typer.Context, value: bool) -> None:
    """Print the option summary without usage preamble and exit."""
    if not value or ctx.resilient_parsing:
        return
    for param in ctx.command.get_params(ctx):
        record = param.get_help_record(ctx)
        if record is not None:
            typer.echo(f"  {record[0]:<32} {record[1]}")
    raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Entropy Boot Campaign - repeated boot tests for the early-boot entropy collector."""


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        typer.echo(print_settings_json(settings))
    else:
        console.print("[bold]Effective Configuration:[/bold]")
        console.print()
        console.print("[bold]Paths:[/bold]")
        console.print(f"  Source root:         {settings.zircon_root}")
        console.print(f"  Test runner:         {settings.effective_runner_path()}")
        lister = settings.lister_path or "(<build dir>/tools/netls)"
        console.print(f"  Device lister:       {lister}")
        console.print()
        console.print("[bold]Build:[/bold]")
        console.print(f"  Make command:        {settings.make_command}")
        console.print(f"  Make jobs:           {settings.make_jobs}")
        console.print()
        console.print("[bold]Operational:[/bold]")
        console.print(f"  Lister timeout (ms): {settings.lister_timeout_ms}")
        console.print(f"  Log level:           {settings.log_level}")


@app.command()
def targets(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """List supported boot targets."""
    from entropy_campaign.targets import list_targets

    rows = list_targets()
    if json_output:
        output = [
            {
                "target_id": t.target_id,
                "architecture": t.architecture,
                "build_project": t.build_project,
                "boot_method": t.boot_method.value,
            }
            for t in rows
        ]
        typer.echo(json.dumps(output, indent=2))
        return

    console.print(f"[bold]{len(rows)} target(s):[/bold]")
    console.print()
    for t in rows:
        console.print(f"  [green]{t.target_id}[/green]")
        console.print(f"    Architecture: {t.architecture}")
        console.print(f"    Build project: {t.build_project}")
        console.print(f"    Boot method: {t.boot_method.value}")


@app.command(
    "run",
    cls=CampaignCommand,
    context_settings={"help_option_names": ["--help"]},
)
def run_cmd(
    ctx: typer.Context,
    items: Annotated[
        list[str] | None,
        typer.Argument(help="Kernel command lines to test, after '--'"),
    ] = None,
    output_dir: Annotated[
        Path | None,
        typer.Option("--output-dir", "-o", help="Directory for entropy samples"),
    ] = None,
    build_dir: Annotated[
        Path | None,
        typer.Option("--build-dir", "-b", help="Build directory override"),
    ] = None,
    source: Annotated[
        str | None,
        typer.Option("--source", "-s", help="Entropy source (hw_rng, jitterentropy)"),
    ] = None,
    target: Annotated[
        str | None,
        typer.Option("--target", "-t", help="Boot target (see 'targets')"),
    ] = None,
    device: Annotated[
        str | None,
        typer.Option("--device", "-n", help="Netboot device name"),
    ] = None,
    release: Annotated[
        bool,
        typer.Option("--release", "-r", help="Build and test the release variant"),
    ] = False,
    length: Annotated[
        int,
        typer.Option("--length", "-l", help="Bytes of entropy to collect per boot"),
    ] = DEFAULT_BUFFER_BYTES,
    items_file: Annotated[
        Path | None,
        typer.Option("--items-file", help="YAML file with more command lines"),
    ] = None,
    non_interactive: Annotated[
        bool,
        typer.Option("--non-interactive", help="Fail instead of prompting"),
    ] = False,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Logging level override"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output the campaign result as JSON"),
    ] = False,
    short_help: Annotated[
        bool,
        typer.Option(
            "-h",
            help="Show option summary and exit",
            callback=short_help_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Build once, then boot-test every command line given after '--'.

    Missing output directory, source, target and device are asked for
    interactively unless --non-interactive is given. Each command line is
    tried up to 5 times; the campaign stops at the first one that never
    passes.
    """
    from entropy_campaign import driver
    from entropy_campaign.campaign.executor import stderr_runner, subprocess_runner
    from entropy_campaign.log import configure_logging
    from entropy_campaign.prompts import RichPrompter
    from entropy_campaign.resolver import ExplicitInputs
    from entropy_campaign.types import CampaignError, ConfigurationError

    settings = get_settings()
    if log_level:
        if log_level.upper() not in LOG_LEVELS:
            err_console.print(f"[red]Invalid log level: {escape(log_level)}[/red]")
            err_console.print(f"Valid values: {', '.join(LOG_LEVELS)}")
            raise typer.Exit(code=1)
        settings = settings.model_copy(update={"log_level": log_level.upper()})
    configure_logging(settings.log_level, err_console)

    inputs = ExplicitInputs(
        output_dir=output_dir,
        build_dir=build_dir,
        source=source,
        target=target,
        device=device,
        release=release,
        length=length,
    )
    prompter = None if non_interactive else RichPrompter(err_console)

    try:
        result = driver.run(
            inputs,
            items,
            prompter=prompter,
            settings=settings,
            items_file=items_file,
            runner=stderr_runner if json_output else subprocess_runner,
        )
    except ConfigurationError as e:
        err_console.print(f"[red]Error: {escape(e.message)}[/red]")
        err_console.print(ctx.get_usage(), markup=False, highlight=False)
        raise typer.Exit(code=1) from None
    except CampaignError as e:
        err_console.print(f"[red]Error: {escape(e.message)}[/red]")
        raise typer.Exit(code=1) from None

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _print_result_summary(result.to_dict())

    if not result.all_passed:
        err_console.print(
            f"[red]Campaign aborted at item: {escape(result.failing_item or '')}[/red]"
        )
        raise typer.Exit(code=1)


def _print_result_summary(summary: dict[str, Any]) -> None:
    console.print()
    console.print("[bold]Campaign Results:[/bold]")
    per_item: dict[int, list[dict[str, Any]]] = {}
    for attempt in summary["attempts"]:
        per_item.setdefault(attempt["index"], []).append(attempt)

    for attempts in per_item.values():
        item = attempts[0]["item"]
        tries = len(attempts)
        if attempts[-1]["succeeded"]:
            console.print(f"  [green]✓ {escape(item)}[/green] ({tries} attempt(s))")
        else:
            console.print(f"  [red]✗ {escape(item)}[/red] ({tries} attempt(s))")

    console.print(f"  Items passed: {summary['items_completed']}")


if __name__ == "__main__":
    app()
