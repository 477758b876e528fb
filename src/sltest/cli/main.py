"""CLI entry point for sltest."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, Optional, Tuple

import click
import yaml

from sltest import __version__, bootstrap
from sltest.config import RunOptions, apply_options, load_config
from sltest.core.errors import ConfigError, SltError
from sltest.session import run_script


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


class CliState:
    """Holds global CLI state."""

    def __init__(self, verbose: bool) -> None:
        self.verbose = verbose


def _print_version(_: click.Context, __: click.Parameter, value: bool) -> None:
    if not value or click.get_current_context().resilient_parsing:
        return
    click.echo(f"sltest {__version__}")
    raise click.exceptions.Exit()


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option("--verbose", is_flag=True, help="Print SQL, extra checks and results for every directive.")
@click.option(
    "--version",
    is_flag=True,
    callback=_print_version,
    expose_value=False,
    is_eager=True,
    help="Show the sltest version and exit.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Top level CLI group for sltest."""

    bootstrap()
    ctx.obj = CliState(verbose=verbose)


@cli.command()
@click.argument("script", type=click.Path(exists=True, dir_okay=False))
@click.option("--verbose", is_flag=True, help="Increase output verbosity.")
@click.option("-d", "--diff", is_flag=True, help="Write result.log and expected.log on a wrong result.")
@click.option("--diff-dir", type=click.Path(file_okay=False), help="Directory for the diff files.")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), help="YAML run configuration.")
@click.option("--engine", type=str, help="Engine to run against (default: sqlite).")
@click.option(
    "--engine-option",
    "engine_options",
    multiple=True,
    help="Engine setting as KEY=VALUE (repeatable).",
)
@click.option("--in-memory", is_flag=True, help="Use an in-memory database.")
@click.option("--database", type=str, help="Database file to open and keep (default: a fresh in-memory database).")
@click.option("--check-min-disk-write", type=int, help="Minimum disk writes required at the end of the run.")
@click.option("--check-max-disk-write", type=int, help="Maximum disk writes allowed at the end of the run.")
@click.option("--check-min-disk-delete", type=int, help="Minimum disk deletions required at the end of the run.")
@click.option("--keep-going", is_flag=True, help="Run every directive and report all failures.")
@click.option(
    "--report",
    "report_format",
    type=click.Choice(["terminal", "json"]),
    default="terminal",
    show_default=True,
    help="Report format (terminal by default).",
)
@click.option("--report-path", type=str, help="When --report json, write to this path.")
@click.option("--no-color", is_flag=True, help="Disable ANSI colors in terminal output.")
@click.option("--list", "list_only", is_flag=True, help="List parsed directives without running.")
@click.pass_obj
def run(
    state: CliState,
    script: str,
    verbose: bool,
    diff: bool,
    diff_dir: Optional[str],
    config_path: Optional[str],
    engine: Optional[str],
    engine_options: Tuple[str, ...],
    in_memory: bool,
    database: Optional[str],
    check_min_disk_write: Optional[int],
    check_max_disk_write: Optional[int],
    check_min_disk_delete: Optional[int],
    keep_going: bool,
    report_format: str,
    report_path: Optional[str],
    no_color: bool,
    list_only: bool,
) -> None:
    """Execute a sqllogictest SCRIPT against an engine."""

    settings = _parse_engine_options(engine_options)
    if in_memory:
        settings["in_memory"] = True
    if database:
        settings["database"] = database
    options = RunOptions(
        engine=engine,
        engine_options=settings,
        min_disk_write=check_min_disk_write,
        max_disk_write=check_max_disk_write,
        min_disk_delete=check_min_disk_delete,
        diff=True if diff else None,
        diff_dir=Path(diff_dir) if diff_dir else None,
        verbose=True if verbose or state.verbose else None,
        keep_going=True if keep_going else None,
    )
    try:
        config = apply_options(load_config(config_path), options)
        exit_code = run_script(
            script,
            config,
            report_format=report_format,
            report_path=report_path,
            use_color=not no_color,
            list_only=list_only,
        )
    except (SltError, ConfigError, OSError) as exc:
        raise click.ClickException(str(exc)) from exc
    raise click.exceptions.Exit(exit_code)


def main(argv: Optional[list[str]] = None) -> int:
    """Program entry point for console_scripts shim."""

    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=argv, prog_name="sltest", standalone_mode=True)
    except click.ClickException as err:  # pragma: no cover - click handles display
        err.show()
        return err.exit_code
    except SystemExit as exc:  # click may raise exit code
        return int(exc.code or 0)
    return 0


def _parse_engine_options(specs: Tuple[str, ...]) -> Dict[str, object]:
    settings: Dict[str, object] = {}
    for spec in specs:
        key, raw = _split_assignment(spec)
        settings[key] = _parse_value(raw)
    return settings


def _split_assignment(spec: str) -> Tuple[str, str]:
    key, sep, raw = spec.partition("=")
    key = key.strip().replace("-", "_")
    if not sep or not key:
        raise click.BadParameter(f"Expected KEY=VALUE, got '{spec}'", param_hint="--engine-option")
    return key, raw


def _parse_value(raw: str) -> object:
    text = raw.strip()
    if not text:
        raise click.BadParameter("Engine option values cannot be empty", param_hint="--engine-option")
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError:
        return text


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
