"""Command line interface for IconSmith."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Sequence
from uuid import UUID

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.syntax import Syntax
from rich.table import Table

from iconsmith.app import AppState
from iconsmith.background import TaskBusyError
from iconsmith.config import ConfigError, ConfigManager, IconSmithConfig
from iconsmith.deeplink import DeepLinkError
from iconsmith.icons import BatchResult
from iconsmith.library import IconCategory, IconRecord, LibraryError
from iconsmith.logs import configure_logging
from iconsmith.state import StateError, normalize_extension

console = Console()

_CATEGORY_CHOICE = click.Choice([category.value for category in IconCategory])


class OutputOptions:
    """Resolved quiet/summary/json flags for a command."""

    def __init__(self, *, quiet: bool, summary_only: bool, json_output: bool) -> None:
        self.quiet = quiet
        self.summary_only = summary_only
        self.json_output = json_output

    def emit(self, message: Any, *, mode: str = "detail") -> None:
        _emit_message(message, mode=mode, quiet=self.quiet, summary_only=self.summary_only)


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """
    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Conditionally print CLI output according to quiet/summary settings.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """
    if quiet and mode != "error":
        return
    if summary_only and mode not in {"summary", "warning", "error"}:
        return
    console.print(message)


def _format_summary_line(command: str, target: Path | str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands."""
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {target}: {parts}.[/green]"


def _resolve_output(
    ctx: click.Context,
    config: IconSmithConfig,
    *,
    quiet: bool = False,
    summary_mode: bool = False,
    json_output: bool = False,
) -> OutputOptions:
    """Combine explicit flags with configured CLI defaults.

    Raises:
        click.ClickException: If incompatible modes are requested.
    """
    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE

    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    summary_only = summary_mode if explicit_summary else config.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        if explicit_summary and summary_only:
            raise click.ClickException("--json cannot be combined with --summary.")
        quiet_enabled = False
        summary_only = False

    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )
    return OutputOptions(quiet=quiet_enabled, summary_only=summary_only, json_output=json_output)


def _open_state() -> tuple[IconSmithConfig, AppState]:
    """Load configuration, configure logging, then open the application state."""
    manager = ConfigManager()
    config = manager.load()
    configure_logging(config.logging, Path(config.storage.data_dir).expanduser())
    state = AppState.open(config)
    return config, state


def _run_command(action: str, json_output: bool, body: Callable[[], None]) -> None:
    """Run ``body`` and map known failures to CLI errors."""
    try:
        body()
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except (LibraryError, StateError) as exc:
        _handle_cli_error(str(exc), code="library_error", json_output=json_output, original=exc)
    except DeepLinkError as exc:
        _handle_cli_error(str(exc), code="deeplink_error", json_output=json_output, original=exc)
    except TaskBusyError as exc:
        _handle_cli_error(str(exc), code="busy", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error while {action}: {exc}",
            code="internal_error",
            json_output=json_output,
            details={"exception": type(exc).__name__},
            original=exc,
        )


def _batch_payload(result: BatchResult) -> dict[str, Any]:
    return {
        "succeeded": [str(path) for path in result.succeeded],
        "failed": [{"path": str(path), "error": str(error)} for path, error in result.failed],
        "cancelled": result.cancelled,
        "counts": {"succeeded": result.success_count, "failed": result.failure_count},
    }


def _emit_batch(command: str, target: str, result: BatchResult, output: OutputOptions) -> None:
    for path, error in result.failed:
        output.emit(f"[red]  - {path}: {error}[/red]", mode="warning")
    output.emit(
        _format_summary_line(
            command,
            target,
            {"succeeded": result.success_count, "failed": result.failure_count},
        ),
        mode="summary",
    )


def _run_with_progress(
    output: OutputOptions,
    description: str,
    run: Callable[[Callable[[int, int], None]], BatchResult],
) -> BatchResult:
    """Run a batch while rendering a progress bar unless output is suppressed."""
    with Progress(
        TextColumn("{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True,
        disable=output.quiet or output.json_output,
    ) as progress:
        task_id = progress.add_task(description, total=None)

        def _advance(completed: int, total: int) -> None:
            progress.update(task_id, completed=completed, total=total)

        return run(_advance)


def _parse_paths(values: Iterable[str]) -> list[Path]:
    return [Path(value).expanduser().resolve() for value in values]


def _icon_row(icon: IconRecord) -> list[str]:
    return [
        str(icon.id),
        icon.name,
        icon.category.display_name,
        icon.source.value,
        str(icon.usage_count),
    ]


def _print_icons(icons: Sequence[IconRecord], output: OutputOptions) -> None:
    if output.json_output:
        console.print_json(data=[icon.model_dump(mode="json", by_alias=True) for icon in icons])
        return
    table = Table(title="Icon library")
    for column in ("ID", "Name", "Category", "Source", "Uses"):
        table.add_column(column)
    for icon in icons:
        table.add_row(*_icon_row(icon))
    output.emit(table)
    output.emit(f"[green]{len(icons)} icon(s).[/green]", mode="summary")


def _common_output_options(func: Callable[..., Any]) -> Callable[..., Any]:
    func = click.option("--quiet", is_flag=True, help="Suppress non-error output.")(func)
    func = click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")(
        func
    )
    return click.option("--json", "json_output", is_flag=True, help="Emit JSON output.")(func)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="iconsmith")
def cli() -> None:
    """IconSmith assigns custom file icons and keeps them consistent."""


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.option("--ext", "extensions", multiple=True, help="Only include these extensions.")
@_common_output_options
@click.pass_context
def scan(
    ctx: click.Context,
    path: str,
    extensions: tuple[str, ...],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """List icon metadata for every file under PATH."""

    def _body() -> None:
        config, state = _open_state()
        output = _resolve_output(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        root = Path(path).expanduser().resolve()
        task = state.start_scan(root, extensions or None)
        records = task.result()
        for folder in state.folders:
            if Path(folder.path) == root:
                state.mark_scanned(folder.id, len(records))

        if json_output:
            console.print_json(data=[record.model_dump(mode="json") for record in records])
            return

        table = Table(title=f"Files in {root}")
        for column in ("File", "Ext", "Custom", "Marker", "Icon"):
            table.add_column(column)
        for record in sorted(records, key=lambda item: str(item.path)):
            table.add_row(
                str(record.path.relative_to(root)) if root in record.path.parents else record.filename,
                record.extension,
                "yes" if record.has_custom_icon else "",
                "yes" if record.has_marker else "",
                (record.icon_fingerprint or "?")[:12],
            )
        output.emit(table)
        output.emit(_format_summary_line("Scan", root, {"files": len(records)}), mode="summary")

    _run_command("scanning", json_output, _body)


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.option("--ext", "extensions", multiple=True, help="Only check these extensions.")
@_common_output_options
@click.pass_context
def check(
    ctx: click.Context,
    path: str,
    extensions: tuple[str, ...],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Report file types under PATH whose icons disagree."""

    def _body() -> None:
        config, state = _open_state()
        output = _resolve_output(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        root = Path(path).expanduser().resolve()
        found = state.detect_inconsistencies(root, extensions or None)

        if json_output:
            console.print_json(
                data=[
                    {
                        "extension": item.file_extension,
                        "totalFiles": item.total_files,
                        "differentIconCount": item.different_icon_count,
                        "dominantFingerprint": item.dominant_fingerprint,
                        "outlierFiles": [str(p) for p in item.outlier_paths],
                    }
                    for item in found
                ]
            )
            return

        if found:
            table = Table(title="Icon inconsistencies")
            for column in ("Ext", "Files", "Icons", "Outliers"):
                table.add_column(column)
            for item in found:
                table.add_row(
                    f".{item.file_extension}",
                    str(item.total_files),
                    str(item.different_icon_count),
                    str(len(item.outlier_files)),
                )
            output.emit(table)
        else:
            output.emit("[green]All file types use consistent icons.[/green]")
        output.emit(
            _format_summary_line(
                "Check",
                root,
                {"inconsistent_types": len(found), "outliers": sum(len(i.outlier_files) for i in found)},
            ),
            mode="summary",
        )

    _run_command("checking icons", json_output, _body)


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.option("--ext", "extensions", multiple=True, help="Only fix these extensions.")
@click.option("--dry-run", is_flag=True, help="Preview fixes without modifying files.")
@_common_output_options
@click.pass_context
def fix(
    ctx: click.Context,
    path: str,
    extensions: tuple[str, ...],
    dry_run: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Apply the dominant icon to outlier files under PATH."""

    def _body() -> None:
        config, state = _open_state()
        output = _resolve_output(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        root = Path(path).expanduser().resolve()
        found = state.detect_inconsistencies(root, extensions or None)
        payload: dict[str, Any] = {"context": {"root": str(root), "dry_run": dry_run}, "fixes": {}}
        fixed = failed = 0

        for item in found:
            if dry_run:
                payload["fixes"][item.file_extension] = {
                    "outliers": [str(p) for p in item.outlier_paths]
                }
                output.emit(
                    f"[yellow]Would update {len(item.outlier_files)} .{item.file_extension} file(s).[/yellow]"
                )
                continue
            result = _run_with_progress(
                output,
                f"Fixing .{item.file_extension}",
                lambda advance, item=item: state.fix_inconsistency(item, advance)
                or BatchResult(),
            )
            fixed += result.success_count
            failed += result.failure_count
            payload["fixes"][item.file_extension] = _batch_payload(result)
            for failed_path, error in result.failed:
                output.emit(f"[red]  - {failed_path}: {error}[/red]", mode="warning")

        if json_output:
            console.print_json(data=payload)
            return
        output.emit(
            _format_summary_line(
                "Fix",
                root,
                {"types": len(found), "fixed": fixed, "failed": failed, "dry_run": dry_run},
            ),
            mode="summary",
        )

    _run_command("fixing icons", json_output, _body)


@cli.command()
@click.argument("icon_id", type=click.UUID)
@click.argument("files", nargs=-1, type=click.Path(path_type=str))
@click.option("--uri", help="Apply to the files named by an iconsmith://apply link.")
@_common_output_options
@click.pass_context
def apply(
    ctx: click.Context,
    icon_id: UUID,
    files: tuple[str, ...],
    uri: Optional[str],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Apply library icon ICON_ID to FILES."""

    def _body() -> None:
        config, state = _open_state()
        output = _resolve_output(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        targets = _parse_paths(files)
        if uri:
            targets.extend(state.handle_deep_link(uri))
        if not targets:
            raise click.ClickException("No files given. Pass FILES or --uri.")

        icon = state.library.lookup(icon_id)
        if icon is None:
            raise click.ClickException(f"No icon with id {icon_id} in the library.")
        task = state.start_apply(icon_id, targets)
        result = _run_with_progress(output, f"Applying {icon.name}", lambda advance: task.result(progress=advance))
        state.complete_apply(icon, result)

        if json_output:
            console.print_json(data=_batch_payload(result))
            return
        _emit_batch("Apply", icon.name, result, output)

    _run_command("applying icons", json_output, _body)


@cli.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(path_type=str))
@_common_output_options
@click.pass_context
def remove(
    ctx: click.Context,
    files: tuple[str, ...],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Remove custom icons from FILES."""

    def _body() -> None:
        config, state = _open_state()
        output = _resolve_output(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        result = _run_with_progress(
            output,
            "Removing icons",
            lambda advance: state.remove_icons(_parse_paths(files), advance),
        )
        if json_output:
            console.print_json(data=_batch_payload(result))
            return
        _emit_batch("Remove", f"{len(files)} file(s)", result, output)

    _run_command("removing icons", json_output, _body)


@cli.command()
@click.option("--clear", is_flag=True, help="Discard the whole undo history instead.")
@_common_output_options
@click.pass_context
def undo(
    ctx: click.Context,
    clear: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Restore the icon changed by the most recent operation."""

    def _body() -> None:
        config, state = _open_state()
        output = _resolve_output(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        if clear:
            count = len(state.undo.entries)
            state.clear_undo_history()
            if json_output:
                console.print_json(data={"cleared": count})
                return
            output.emit(f"[green]Cleared {count} undo entries.[/green]", mode="summary")
            return

        entries = state.undo.entries
        target = entries[0].file_path if entries else None
        undone = state.undo_last()
        if json_output:
            console.print_json(data={"undone": undone, "path": target, "remaining": len(state.undo.entries)})
            return
        if undone:
            output.emit(f"[green]Restored icon for {target}.[/green]", mode="summary")
        else:
            output.emit("[yellow]Nothing to undo.[/yellow]", mode="warning")

    _run_command("undoing", json_output, _body)


@cli.command()
@click.option("--limit", type=int, help="Number of entries to show.")
@_common_output_options
@click.pass_context
def history(
    ctx: click.Context,
    limit: Optional[int],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Show recent icon activity, newest first."""

    def _body() -> None:
        config, state = _open_state()
        output = _resolve_output(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        entries = state.activity.recent(limit if limit is not None else config.cli.history_limit)
        if json_output:
            console.print_json(data=[entry.model_dump(mode="json", by_alias=True) for entry in entries])
            return
        if not entries:
            output.emit("[yellow]No recent activity.[/yellow]", mode="warning")
            return
        for entry in entries:
            output.emit(f"[{entry.timestamp.isoformat()}] {entry.summary}")

    _run_command("reading history", json_output, _body)


@cli.command(name="open")
@click.argument("uri")
@click.option("--icon", "icon_id", type=click.UUID, help="Apply this icon to the linked files.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON output.")
def open_link(uri: str, icon_id: Optional[UUID], json_output: bool) -> None:
    """Handle an iconsmith:// link, optionally applying ICON to its files."""

    def _body() -> None:
        _, state = _open_state()
        files = state.handle_deep_link(uri)
        if icon_id is None:
            if json_output:
                console.print_json(data={"pending": [str(path) for path in files]})
                return
            console.print(f"[cyan]{len(files)} file(s) pending:[/cyan]")
            for path in files:
                console.print(f"  - {path}")
            return
        result = state.apply_icon(icon_id, files)
        if json_output:
            console.print_json(data=_batch_payload(result))
            return
        console.print(
            _format_summary_line(
                "Apply", str(icon_id), {"succeeded": result.success_count, "failed": result.failure_count}
            )
        )

    _run_command("opening link", json_output, _body)


# Library --------------------------------------------------------------


@cli.group()
def library() -> None:
    """Manage the icon library."""


@library.command(name="list")
@click.option("--category", type=_CATEGORY_CHOICE, help="Only list this category.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON output.")
def library_list(category: Optional[str], json_output: bool) -> None:
    """List library icons."""

    def _body() -> None:
        _, state = _open_state()
        icons = state.library.list(IconCategory(category) if category else None)
        _print_icons(icons, OutputOptions(quiet=False, summary_only=False, json_output=json_output))

    _run_command("listing icons", json_output, _body)


@library.command(name="search")
@click.argument("text", default="")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON output.")
def library_search(text: str, json_output: bool) -> None:
    """Find icons whose name contains TEXT."""

    def _body() -> None:
        _, state = _open_state()
        _print_icons(
            state.library.search(text),
            OutputOptions(quiet=False, summary_only=False, json_output=json_output),
        )

    _run_command("searching icons", json_output, _body)


@library.command(name="import")
@click.argument("image", type=click.Path(exists=True, dir_okay=False, path_type=str))
@click.option("--name", help="Display name (defaults to the file name).")
@click.option("--category", type=_CATEGORY_CHOICE, default="custom", show_default=True)
def library_import(image: str, name: Optional[str], category: str) -> None:
    """Copy IMAGE into the library."""

    def _body() -> None:
        _, state = _open_state()
        source = Path(image).expanduser().resolve()
        icon = state.library.import_from_path(source, name or source.stem, IconCategory(category))
        console.print(f"[green]Imported {icon.name} as {icon.id}.[/green]")

    _run_command("importing icon", False, _body)


@library.command(name="paste")
@click.option("--name", required=True, help="Display name for the pasted image.")
@click.option("--category", type=_CATEGORY_CHOICE, default="custom", show_default=True)
def library_paste(name: str, category: str) -> None:
    """Add the image on the clipboard to the library."""

    def _body() -> None:
        _, state = _open_state()
        icon = state.library.import_from_clipboard(name, IconCategory(category))
        if icon is None:
            raise click.ClickException("The clipboard does not contain an image.")
        console.print(f"[green]Pasted {icon.name} as {icon.id}.[/green]")

    _run_command("pasting icon", False, _body)


@library.command(name="rm")
@click.argument("icon_id", type=click.UUID)
def library_remove(icon_id: UUID) -> None:
    """Delete an icon and its image."""

    def _body() -> None:
        _, state = _open_state()
        if state.library.lookup(icon_id) is None:
            raise click.ClickException(f"No icon with id {icon_id} in the library.")
        state.library.remove(icon_id)
        console.print(f"[green]Removed icon {icon_id}.[/green]")

    _run_command("removing icon", False, _body)


@library.command(name="edit")
@click.argument("icon_id", type=click.UUID)
@click.option("--name", help="New display name.")
@click.option("--category", type=_CATEGORY_CHOICE, help="New category.")
@click.option("--ext", "extensions", multiple=True, help="Associate these extensions.")
def library_edit(
    icon_id: UUID, name: Optional[str], category: Optional[str], extensions: tuple[str, ...]
) -> None:
    """Rename, recategorize or re-associate an icon."""

    def _body() -> None:
        _, state = _open_state()
        if state.library.lookup(icon_id) is None:
            raise click.ClickException(f"No icon with id {icon_id} in the library.")

        def _edit(icon: IconRecord) -> None:
            if name:
                icon.name = name
            if category:
                icon.category = IconCategory(category)
            if extensions:
                icon.associated_extensions = sorted({normalize_extension(e) for e in extensions})

        state.library.update(icon_id, _edit)
        console.print(f"[green]Updated icon {icon_id}.[/green]")

    _run_command("editing icon", False, _body)


# Presets --------------------------------------------------------------


@cli.group()
def preset() -> None:
    """Manage extension-to-icon presets."""


def _require_preset(state: AppState, preset_id: UUID):
    found = state.preset(preset_id)
    if found is None:
        raise click.ClickException(f"No preset with id {preset_id}.")
    return found


@preset.command(name="list")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON output.")
def preset_list(json_output: bool) -> None:
    """List presets."""

    def _body() -> None:
        _, state = _open_state()
        presets = state.presets
        if json_output:
            console.print_json(data=[item.model_dump(mode="json", by_alias=True) for item in presets])
            return
        table = Table(title="Presets")
        for column in ("ID", "Name", "Mappings"):
            table.add_column(column)
        for item in presets:
            mappings = ", ".join(f".{ext}" for ext in sorted(item.mappings))
            table.add_row(str(item.id), item.name, mappings)
        console.print(table)

    _run_command("listing presets", json_output, _body)


@preset.command(name="create")
@click.argument("name")
def preset_create(name: str) -> None:
    """Create an empty preset called NAME."""

    def _body() -> None:
        _, state = _open_state()
        created = state.add_preset(name)
        console.print(f"[green]Created preset {created.name} ({created.id}).[/green]")

    _run_command("creating preset", False, _body)


@preset.command(name="set")
@click.argument("preset_id", type=click.UUID)
@click.argument("extension")
@click.argument("icon_id", type=click.UUID)
def preset_set(preset_id: UUID, extension: str, icon_id: UUID) -> None:
    """Map EXTENSION to ICON_ID in a preset."""

    def _body() -> None:
        _, state = _open_state()
        _require_preset(state, preset_id)
        if state.library.lookup(icon_id) is None:
            raise click.ClickException(f"No icon with id {icon_id} in the library.")
        state.update_preset(preset_id, lambda item: item.set_mapping(extension, icon_id))
        console.print(f"[green]Mapped .{normalize_extension(extension)} to {icon_id}.[/green]")

    _run_command("updating preset", False, _body)


@preset.command(name="unset")
@click.argument("preset_id", type=click.UUID)
@click.argument("extension")
def preset_unset(preset_id: UUID, extension: str) -> None:
    """Remove the mapping for EXTENSION from a preset."""

    def _body() -> None:
        _, state = _open_state()
        _require_preset(state, preset_id)
        state.update_preset(preset_id, lambda item: item.remove_mapping(extension))
        console.print(f"[green]Removed mapping for .{normalize_extension(extension)}.[/green]")

    _run_command("updating preset", False, _body)


@preset.command(name="duplicate")
@click.argument("preset_id", type=click.UUID)
def preset_duplicate(preset_id: UUID) -> None:
    """Copy a preset under a new id."""

    def _body() -> None:
        _, state = _open_state()
        _require_preset(state, preset_id)
        copy = state.duplicate_preset(preset_id)
        console.print(f"[green]Created preset {copy.name} ({copy.id}).[/green]")

    _run_command("duplicating preset", False, _body)


@preset.command(name="rm")
@click.argument("preset_id", type=click.UUID)
def preset_remove(preset_id: UUID) -> None:
    """Delete a preset."""

    def _body() -> None:
        _, state = _open_state()
        _require_preset(state, preset_id)
        state.delete_preset(preset_id)
        console.print(f"[green]Deleted preset {preset_id}.[/green]")

    _run_command("deleting preset", False, _body)


@preset.command(name="apply")
@click.argument("preset_id", type=click.UUID)
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.option("--json", "json_output", is_flag=True, help="Emit JSON output.")
def preset_apply(preset_id: UUID, path: str, json_output: bool) -> None:
    """Apply a preset to every matching file under PATH."""

    def _body() -> None:
        _, state = _open_state()
        item = _require_preset(state, preset_id)
        root = Path(path).expanduser().resolve()
        results = state.apply_preset(preset_id, root)
        if json_output:
            console.print_json(data={ext: _batch_payload(result) for ext, result in results.items()})
            return
        for ext, result in results.items():
            console.print(
                f"  .{ext}: {result.success_count} updated, {result.failure_count} failed"
            )
        console.print(
            _format_summary_line(
                f"Preset {item.name}",
                root,
                {
                    "types": len(results),
                    "updated": sum(r.success_count for r in results.values()),
                    "failed": sum(r.failure_count for r in results.values()),
                },
            )
        )

    _run_command("applying preset", json_output, _body)


# Folders --------------------------------------------------------------


@cli.group()
def folders() -> None:
    """Manage folders registered for scanning."""


@folders.command(name="list")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON output.")
def folders_list(json_output: bool) -> None:
    """List registered folders."""

    def _body() -> None:
        _, state = _open_state()
        items = state.folders
        if json_output:
            console.print_json(data=[item.model_dump(mode="json", by_alias=True) for item in items])
            return
        table = Table(title="Folders")
        for column in ("ID", "Name", "Path", "Files", "Last scanned"):
            table.add_column(column)
        for item in items:
            table.add_row(
                str(item.id),
                item.display_name,
                item.display_path,
                "" if item.file_count is None else str(item.file_count),
                item.last_scanned.isoformat() if item.last_scanned else "never",
            )
        console.print(table)

    _run_command("listing folders", json_output, _body)


@folders.command(name="add")
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=str))
def folders_add(path: str) -> None:
    """Register PATH for scanning."""

    def _body() -> None:
        _, state = _open_state()
        added = state.add_folder(Path(path))
        if added is None:
            raise click.ClickException(f"{path} is not a directory.")
        console.print(f"[green]Added {added.display_path} ({added.id}).[/green]")

    _run_command("adding folder", False, _body)


@folders.command(name="rm")
@click.argument("folder_id", type=click.UUID)
def folders_remove(folder_id: UUID) -> None:
    """Unregister a folder."""

    def _body() -> None:
        _, state = _open_state()
        state.remove_folder(folder_id)
        console.print(f"[green]Removed folder {folder_id}.[/green]")

    _run_command("removing folder", False, _body)


# Configuration --------------------------------------------------------


@cli.group()
def config() -> None:
    """Inspect and edit the configuration file."""


@config.command(name="view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Show the effective configuration."""

    def _body() -> None:
        manager = ConfigManager()
        resolved = manager.load(include_env=not no_env)
        rendered = yaml.safe_dump(resolved.model_dump(mode="python"), sort_keys=False)
        console.print(Syntax(rendered, "yaml", theme="ansi_dark"))

    _run_command("reading configuration", False, _body)


@config.command(name="set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Set dotted configuration KEY to VALUE."""

    def _body() -> None:
        manager = ConfigManager()
        manager.ensure_exists()
        overrides = manager.load_file_overrides()
        try:
            parsed = yaml.safe_load(value)
        except yaml.YAMLError as exc:
            raise click.ClickException(f"Could not parse value: {exc}") from exc

        node = overrides
        segments = key.split(".")
        for segment in segments[:-1]:
            child = node.get(segment)
            if not isinstance(child, dict):
                child = {}
                node[segment] = child
            node = child
        node[segments[-1]] = parsed

        manager.load(cli_overrides={key: parsed}, include_env=False)
        manager.save(overrides)
        console.print(f"[green]Set {key} = {parsed!r}.[/green]")

    _run_command("updating configuration", False, _body)


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
