"""CLI entry point for checktree."""

from __future__ import annotations

from pathlib import Path

import click


# Default config template
CONFIG_TEMPLATE = """\
sync:
  toggle_debounce_ms: 30   # local toggles: resend checkbox states only
  edit_debounce_ms: 300    # other edits: full re-render
  scroll_debounce_ms: 10   # editor -> preview scroll echo

tree:
  show_headers: true

preview:
  default_mode: manual  # manual | ephemeral | sticky
  file_modes: {}

logging:
  verbose: false
"""

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_project_root_option = click.option(
    "--project-root",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    default=".",
    help="Project root holding .checktree/config.yaml (default: cwd).",
)

_document_argument = click.argument(
    "document",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
)


def _load_config(project_root: str) -> dict:
    from checktree.config import ConfigError, load_config

    try:
        return load_config(Path(project_root))
    except ConfigError as exc:
        click.echo(f"Config error: {exc}")
        raise SystemExit(1)


def _read(document: str) -> str:
    from checktree.buffer import FileBuffer

    return FileBuffer(Path(document)).text()


def _echo_nodes(nodes: list, depth: int = 0) -> None:
    for node in nodes:
        click.echo(f"{'  ' * depth}{node.marker} {node.label}  (line {node.line + 1})")
        _echo_nodes(node.children, depth + 1)


@click.group()
def cli() -> None:
    """Checktree: markdown checklists as a live, navigable tree."""


@cli.command()
@_project_root_option
def init(project_root: str) -> None:
    """Initialize .checktree/ with a default config."""
    from checktree.config import config_path_for, load_config

    config_path = config_path_for(Path(project_root))
    if config_path.exists():
        click.echo(f"{config_path} already exists")
        raise SystemExit(1)

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(CONFIG_TEMPLATE)
    # Load through the standard path to validate it
    load_config(path=config_path)
    click.echo(f"Created {config_path}")


@cli.command()
@_document_argument
@_project_root_option
@click.option(
    "--headers/--no-headers",
    default=None,
    help="Show headers as tree nodes (default: tree.show_headers from config).",
)
def tree(document: str, project_root: str, headers: bool | None) -> None:
    """Print the checklist hierarchy of DOCUMENT."""
    from checktree.tree import build_tree, completion

    config = _load_config(project_root)
    show_headers = config["tree"]["show_headers"] if headers is None else headers

    forest = build_tree(_read(document), show_headers=show_headers)
    if not forest.roots:
        click.echo("No checkboxes or headers found.")
        return
    _echo_nodes(forest.roots)

    stats = completion(forest)
    click.echo(f"\n{stats.completed}/{stats.total} tasks ({stats.percent}%)")


@cli.command()
@_document_argument
def stats(document: str) -> None:
    """Print completion counts for DOCUMENT."""
    from checktree.tree import build_tree, completion

    result = completion(build_tree(_read(document)))
    click.echo(f"{result.completed}/{result.total} tasks ({result.percent}%)")


@cli.command()
@_document_argument
@click.argument("line", type=int)
def toggle(document: str, line: int) -> None:
    """Toggle the checkbox on LINE (0-based) of DOCUMENT."""
    from checktree.buffer import FileBuffer
    from checktree.toggle import ToggleOutcome, toggle_line

    result = toggle_line(FileBuffer(Path(document)), line)

    if result.outcome is ToggleOutcome.TOGGLED:
        state = "checked" if result.checked else "unchecked"
        click.echo(f"Line {line}: {state}")
        click.echo(f"  {result.after}")
        return

    messages = {
        ToggleOutcome.NO_CHECKBOX: f"Line {line} has no checkbox.",
        ToggleOutcome.OUT_OF_RANGE: f"Line {line} is out of range.",
        ToggleOutcome.REJECTED: f"Edit rejected: {result.error}",
    }
    click.echo(messages[result.outcome])
    raise SystemExit(1)


@cli.command()
@_document_argument
def render(document: str) -> None:
    """Print the rendered preview of DOCUMENT."""
    from checktree.render import render_preview

    click.echo(render_preview(_read(document)).content, nl=False)


@cli.command()
@_document_argument
def actions(document: str) -> None:
    """List the toggle action for each checkbox line of DOCUMENT."""
    from checktree.scan import toggle_actions

    found = toggle_actions(_read(document))
    for action in found:
        click.echo(f"{action.line}\t{action.title}")
    if not found:
        click.echo("No checkboxes found.")


@cli.command()
@_document_argument
@_project_root_option
@click.option(
    "--set",
    "new_mode",
    type=click.Choice(["default", "manual", "ephemeral", "sticky"]),
    default=None,
    help="Persist a preview mode for DOCUMENT ('default' removes the override).",
)
def mode(document: str, project_root: str, new_mode: str | None) -> None:
    """Show or set the preview mode for DOCUMENT."""
    from checktree.config import config_path_for, preview_mode_for, set_preview_mode

    config = _load_config(project_root)
    if new_mode is not None:
        config = set_preview_mode(config_path_for(Path(project_root)), document, new_mode)
    click.echo(f"{document}: {preview_mode_for(config, document)}")


@cli.command()
@_document_argument
@_project_root_option
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging.")
def watch(document: str, project_root: str, verbose: bool) -> None:
    """Watch DOCUMENT and print sync events as JSON lines (foreground)."""
    import asyncio
    import logging

    from checktree.runner import watch_document

    config = _load_config(project_root)
    verbose = verbose or bool(config["logging"]["verbose"])
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
    )

    click.echo(f"Watching {document}...", err=True)
    try:
        asyncio.run(watch_document(Path(document), config, click.echo))
    except KeyboardInterrupt:
        pass
    click.echo("Stopped.", err=True)


if __name__ == "__main__":
    cli()
