"""Command line interface for printrack."""

from __future__ import annotations

import difflib
from pathlib import Path
from typing import Any, NoReturn

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from printrack.config import ConfigError, ConfigManager, PrintrackConfig, resolve_with_precedence
from printrack.consensus import Learner, LearnReport
from printrack.errors import (
    EmptyCorpusError,
    MalformedPrintError,
    NoExtensionError,
    NotFoundError,
    NotLearnedError,
    PrintrackError,
    StoreError,
)
from printrack.identify import IdentificationResult, Matcher
from printrack.logging_config import configure_logging
from printrack.paths import format_from_path, require_format
from printrack.prints import PrintCompiler, PrintFile
from printrack.workspace import Workspace

console = Console()

_ERROR_CODES: dict[type[Exception], str] = {
    NotFoundError: "not_found",
    NoExtensionError: "no_extension",
    NotLearnedError: "not_learned",
    EmptyCorpusError: "empty_corpus",
    MalformedPrintError: "malformed_print",
    StoreError: "store_error",
    ConfigError: "config_error",
}


def _handle_cli_error(exc: Exception, *, json_output: bool) -> NoReturn:
    """Emit a standardized error and terminate the command.

    Args:
        exc: Error raised by the core or the configuration layer.
        json_output: Indicates whether JSON mode is active.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    code = next(
        (value for kind, value in _ERROR_CODES.items() if isinstance(exc, kind)),
        "internal_error",
    )
    if json_output:
        console.print_json(data={"error": {"code": code, "message": str(exc)}})
        raise SystemExit(1)
    raise click.ClickException(str(exc)) from exc


def _emit_message(message: Any, *, quiet: bool, error: bool = False) -> None:
    """Print ``message`` unless quiet mode suppresses it. Plain strings are never wrapped."""

    if quiet and not error:
        return
    console.print(message, soft_wrap=isinstance(message, str))


def _cli_overrides(store: str | None) -> dict[str, Any]:
    return {"storage.root": store} if store else {}


def _load_runtime(
    store: str | None, *, json_output: bool = False
) -> tuple[PrintrackConfig, Workspace]:
    """Load configuration, configure logging, and resolve the storage workspace.

    Args:
        store: Optional storage root overriding `storage.root`.
        json_output: Keep log records off the console so stdout stays valid JSON.

    Returns:
        tuple[PrintrackConfig, Workspace]: Effective configuration and workspace.
    """

    config = ConfigManager().load(cli_overrides=_cli_overrides(store))
    workspace = Workspace.from_config(config)
    configure_logging(
        config.logging, log_path=workspace.log_path, console_output=not json_output
    )
    return config, workspace


def _resolve_quiet(
    ctx: click.Context, quiet: bool, json_output: bool, config: PrintrackConfig
) -> bool:
    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    if json_output:
        if explicit_quiet and quiet:
            raise click.ClickException("--json cannot be combined with --quiet.")
        return False
    return quiet if explicit_quiet else config.cli.quiet_default


def _learn_payload(report: LearnReport, compiled: list[PrintFile]) -> dict[str, Any]:
    return {
        "learned": [outcome.model_dump(mode="json") for outcome in report.outcomes],
        "compiled": [
            {"format": item.format, "records": len(item.records)} for item in compiled
        ],
        "errors": list(report.errors),
    }


def _identify_payload(result: IdentificationResult) -> dict[str, Any]:
    return {
        "candidate": result.candidate.as_posix(),
        "size_bytes": result.size_bytes,
        "answers": [answer.model_dump(mode="json") for answer in result.answers],
        "errors": list(result.errors),
    }


def _render_identification(result: IdentificationResult, top: int, quiet: bool) -> None:
    if not result.answers:
        _emit_message(
            f"[yellow]No print matched {result.candidate}.[/yellow]",
            quiet=quiet,
        )
        return

    shown, remainder = result.top(top)
    table = Table(title=f"Results for {result.candidate.name}")
    table.add_column("Extension", style="bold")
    table.add_column("Success rate", justify="right")
    table.add_column("Total prints", justify="right")
    table.add_column("Header")
    for answer in shown:
        table.add_row(
            answer.format,
            f"{answer.percent}%",
            str(answer.total_records),
            "header match" if answer.header_matched else "",
        )
    _emit_message(table, quiet=quiet)
    if remainder:
        _emit_message(f"{remainder} other possible extensions ...", quiet=quiet)
    if any(answer.header_matched for answer in shown):
        _emit_message(
            "[cyan]A header matching one of these extensions was detected.[/cyan]",
            quiet=quiet,
        )


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="printrack")
@click.option(
    "--store",
    type=click.Path(file_okay=False, path_type=str),
    envvar="PRINTRACK_STORE",
    help="Directory holding learn and print files (overrides storage.root).",
)
@click.pass_context
def cli(ctx: click.Context, store: str | None) -> None:
    """printrack learns file-format prints from examples and identifies unlabeled files."""
    ctx.ensure_object(dict)
    ctx.obj["store"] = store


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option(
    "-f",
    "--format",
    "format_name",
    type=str,
    help="Format to learn (default: each file's extension).",
)
@click.option(
    "--compile/--no-compile",
    "compile_prints",
    default=None,
    help="Recompile prints for learned formats.",
)
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing learned formats.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def learn(
    ctx: click.Context,
    paths: tuple[Path, ...],
    format_name: str | None,
    compile_prints: bool | None,
    json_output: bool,
    quiet: bool,
) -> None:
    """Learn the formats of PATHS, one sample at a time.

    Args:
        ctx: Click context carrying the storage override.
        paths: Sample files to learn from.
        format_name: Explicit format tag applied to every sample.
        compile_prints: Whether to recompile prints after learning.
        json_output: If True, emit JSON instead of rich output.
        quiet: When True, suppress non-error CLI output.
    """

    try:
        config, workspace = _load_runtime(ctx.obj.get("store"), json_output=json_output)
        quiet_enabled = _resolve_quiet(ctx, quiet, json_output, config)
        if format_name is not None:
            format_name = require_format(format_name)

        report = LearnReport()
        samples: list[tuple[str, Path]] = []
        for path in paths:
            try:
                samples.append((format_name or format_from_path(path), path))
            except NoExtensionError as exc:
                report.errors.append(f"{path}: {exc}")

        learner = Learner(workspace.consensus, chunk_size=config.learning.chunk_size_kb * 1024)
        learned = learner.learn_many(samples)
        report.outcomes.extend(learned.outcomes)
        report.errors.extend(learned.errors)

        should_compile = (
            compile_prints if compile_prints is not None else config.learning.compile_after_learn
        )
        compiled: list[PrintFile] = []
        if should_compile:
            compiler = PrintCompiler(workspace.consensus, workspace.corpus)
            compiled = [compiler.compile(name) for name in report.formats]
    except PrintrackError as exc:
        _handle_cli_error(exc, json_output=json_output)

    if json_output:
        console.print_json(data=_learn_payload(report, compiled))
    else:
        for outcome in report.outcomes:
            verb = "Learned new format" if outcome.created else "Refined"
            _emit_message(
                f"[green]{verb} {outcome.format} from {outcome.path} "
                f"({outcome.samples} samples, {outcome.length} bytes, "
                f"{outcome.forward_wildcards} wildcards).[/green]",
                quiet=quiet_enabled,
            )
        for item in compiled:
            _emit_message(
                f"[green]Compiled print for {item.format}: {len(item.records)} records.[/green]",
                quiet=quiet_enabled,
            )
        for error in report.errors:
            _emit_message(f"[red]{error}[/red]", quiet=quiet_enabled, error=True)

    if report.errors and not report.outcomes:
        raise SystemExit(1)


@cli.command("print")
@click.argument("formats", nargs=-1)
@click.option("--all", "compile_all", is_flag=True, help="Compile prints for every learned format.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing compiled prints.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def print_command(
    ctx: click.Context,
    formats: tuple[str, ...],
    compile_all: bool,
    json_output: bool,
    quiet: bool,
) -> None:
    """Compile the print file for each learned FORMAT (the extension, without the dot)."""

    try:
        config, workspace = _load_runtime(ctx.obj.get("store"), json_output=json_output)
        quiet_enabled = _resolve_quiet(ctx, quiet, json_output, config)
        if not formats and not compile_all:
            raise click.UsageError("Name at least one FORMAT or pass --all.")
        compiler = PrintCompiler(workspace.consensus, workspace.corpus)
        if compile_all:
            compiled = compiler.compile_all()
        else:
            compiled = [compiler.compile(name) for name in formats]
    except PrintrackError as exc:
        _handle_cli_error(exc, json_output=json_output)

    if json_output:
        console.print_json(
            data={
                "compiled": [
                    {
                        "format": item.format,
                        "records": len(item.records),
                        "forward": item.forward_count,
                        "reverse": item.reverse_count,
                    }
                    for item in compiled
                ]
            }
        )
        return

    for item in compiled:
        _emit_message(
            f"[green]Compiled print for {item.format}: {item.forward_count} forward and "
            f"{item.reverse_count} reverse records.[/green]",
            quiet=quiet_enabled,
        )


@cli.command()
@click.argument("path", type=click.Path(path_type=Path))
@click.option("--top", type=int, help="Rows to display before summarizing the rest.")
@click.option("--json", "json_output", is_flag=True, help="Emit the full ranking as JSON.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def identify(
    ctx: click.Context,
    path: Path,
    top: int | None,
    json_output: bool,
    quiet: bool,
) -> None:
    """Compare PATH with every print and rank the likely formats."""

    try:
        config, workspace = _load_runtime(ctx.obj.get("store"), json_output=json_output)
        quiet_enabled = _resolve_quiet(ctx, quiet, json_output, config)
        matcher = Matcher(workspace.corpus, workers=config.identify.workers)
        result = matcher.identify(path)
    except PrintrackError as exc:
        _handle_cli_error(exc, json_output=json_output)

    if json_output:
        console.print_json(data=_identify_payload(result))
        return

    limit = top if top is not None else config.identify.top_results
    _render_identification(result, limit, quiet_enabled)
    for error in result.errors:
        _emit_message(f"[yellow]Partly read print: {error}[/yellow]", quiet=quiet_enabled)


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing stored formats.")
@click.pass_context
def formats(ctx: click.Context, json_output: bool) -> None:
    """List learned formats and whether a print was compiled for them."""

    try:
        _, workspace = _load_runtime(ctx.obj.get("store"), json_output=json_output)
        learned = [workspace.consensus.load(name).meta for name in workspace.consensus.formats()]
        printed = set(workspace.corpus.formats()) if workspace.corpus.directory.is_dir() else set()
    except PrintrackError as exc:
        _handle_cli_error(exc, json_output=json_output)

    learned_names = {meta.format for meta in learned}
    if json_output:
        console.print_json(
            data={
                "learned": [meta.model_dump(mode="json") for meta in learned],
                "printed": sorted(printed),
                "print_only": sorted(printed - learned_names),
            }
        )
        return

    if not learned and not printed:
        console.print("[yellow]No formats learned yet. Use `printrack learn <file>`.[/yellow]")
        return

    table = Table(title="Formats")
    table.add_column("Format", style="bold")
    table.add_column("Samples", justify="right")
    table.add_column("Bytes", justify="right")
    table.add_column("Wildcards", justify="right")
    table.add_column("Print")
    for meta in learned:
        ratio = f"{meta.forward_wildcards * 100 // meta.length}%" if meta.length else "-"
        table.add_row(
            meta.format,
            str(meta.samples),
            str(meta.length),
            ratio,
            "yes" if meta.format in printed else "no",
        )
    for name in sorted(printed - learned_names):
        table.add_row(name, "-", "-", "-", "yes")
    console.print(table)


@cli.command()
@click.argument("format_name", metavar="FORMAT")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_context
def forget(ctx: click.Context, format_name: str, yes: bool) -> None:
    """Remove the learn files and print of FORMAT."""

    try:
        _, workspace = _load_runtime(ctx.obj.get("store"))
        format_name = require_format(format_name)
        if not yes:
            click.confirm(f"Forget everything learned about {format_name}?", abort=True)
        removed_learns = workspace.consensus.delete(format_name)
        removed_print = workspace.corpus.delete(format_name)
    except PrintrackError as exc:
        _handle_cli_error(exc, json_output=False)

    if not removed_learns and not removed_print:
        raise click.ClickException(f"The extension {format_name!r} was not learned.")
    console.print(f"[green]Forgot {format_name}.[/green]")


@cli.group()
def config() -> None:
    """Manage printrack configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore PRINTRACK__ environment variables.")
@click.pass_context
def config_view(ctx: click.Context, no_env: bool) -> None:
    """Show the effective settings, including `--store` and environment overrides."""
    try:
        effective = ConfigManager().load(
            cli_overrides=_cli_overrides(ctx.obj.get("store")), include_env=not no_env
        )
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(effective.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


def _config_diff(before: str, after: str) -> list[str]:
    """Unified diff of two config texts, ignoring the generated timestamp line."""
    return [
        line
        for line in difflib.unified_diff(
            before.splitlines(),
            after.splitlines(),
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
        if not line.startswith(("-# Last updated", "+# Last updated"))
    ]


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="YAML literal to store under KEY.")
def config_set(key: str, value: str) -> None:
    """Store VALUE under the dotted KEY, for example `identify.top_results`."""
    manager = ConfigManager()
    manager.ensure_exists()
    before = manager.read_text()

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        manager.update({key: parsed_value})
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    diff = _config_diff(before, manager.read_text())
    if not any(
        line.startswith(("+", "-")) and not line.startswith(("---", "+++")) for line in diff
    ):
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {key}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Edit `config.yaml` in $EDITOR; the result is validated before it is saved."""
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")
    if edited is None or edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
        resolve_with_precedence(defaults=PrintrackConfig(), file_overrides=parsed)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
