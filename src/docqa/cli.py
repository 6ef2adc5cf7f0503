# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Command line entry point."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any, Final

import typer

from .config.loader import DEFAULT_CONFIG_FILE, load_config, resolve_source
from .config.models import ALL_VALIDATORS_KEY, ENABLED_KEY
from .config.updater import ConfigUpdater
from .docs import DocRegistry
from .errors import ConfigError, DocumentationGraphError, TodoFileExistsError
from .executor import Executor
from .logging import fail, info, ok
from .path_grouper import DEFAULT_SOURCE_GLOB
from .rules import default_registry
from .rules.registry import RuleRegistry
from .todo import TodoGenerator

CONFIG_ERROR_EXIT: Final[int] = 2

app = typer.Typer(
    name="docqa",
    help="Documentation quality checks over a documentation database.",
    add_completion=False,
    no_args_is_help=True,
)


def collect_files(paths: Sequence[Path], root: Path) -> list[str]:
    """Expand ``paths`` into sorted source files, root-relative where possible.

    Args:
        paths: Files or directories given on the command line.
        root: Project root.

    Returns:
        list[str]: Unique file paths in POSIX form.

    Raises:
        typer.BadParameter: If a path does not exist.
    """

    resolved_root = root.resolve()
    found: dict[str, None] = {}
    for raw in paths:
        path = raw if raw.is_absolute() else resolved_root / raw
        if path.is_dir():
            candidates = sorted(path.rglob(DEFAULT_SOURCE_GLOB))
        elif path.is_file():
            candidates = [path]
        else:
            raise typer.BadParameter(f"Path not found: {raw}")
        for candidate in candidates:
            absolute = candidate.resolve()
            try:
                found[absolute.relative_to(resolved_root).as_posix()] = None
            except ValueError:
                found[absolute.as_posix()] = None
    return list(found)


def _overrides(registry: RuleRegistry, only: Sequence[str], jobs: int | None) -> dict[str, dict[str, Any]]:
    overrides: dict[str, dict[str, Any]] = {}
    if only:
        selected = {registry.require(identifier).identifier for identifier in only}
        for identifier in registry:
            overrides[identifier] = {ENABLED_KEY: identifier in selected}
    if jobs is not None:
        overrides[ALL_VALIDATORS_KEY] = {"Jobs": jobs}
    return overrides


@app.command()
def check(
    paths: list[Path] = typer.Argument(None, help="Files or directories to check (defaults to the root)."),
    root: Path = typer.Option(Path.cwd(), "--root", "-r", help="Project root."),
    config: Path | None = typer.Option(None, "--config", "-c", help="Configuration file to use."),
    docs_db: Path | None = typer.Option(
        None,
        "--docs-db",
        help="JSON documentation database enabling in-process rules.",
    ),
    only: list[str] = typer.Option(None, "--only", help="Run only the given rule identifiers."),
    jobs: int | None = typer.Option(None, "--jobs", "-j", min=1, help="Number of rules run concurrently."),
    todo: bool = typer.Option(False, "--todo", help="Write a baseline excluding current offenses."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing baseline."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable coloured output."),
    no_emoji: bool = typer.Option(False, "--no-emoji", help="Disable emoji output."),
) -> None:
    """Check documentation quality and exit non-zero when the run fails."""

    use_color = False if no_color else None
    use_emoji = not no_emoji
    project_root = root.resolve()
    registry = default_registry()
    source = resolve_source(project_root, config)
    generator = TodoGenerator(project_root, source=source, force=force) if todo else None
    try:
        resolved = load_config(
            registry,
            root=project_root,
            config_path=config,
            overrides=_overrides(registry, only or (), jobs),
        )
        docs = DocRegistry.load(docs_db, root=project_root) if docs_db is not None else None
        if generator is not None:
            generator.ensure_writable()
    except (ConfigError, DocumentationGraphError, TodoFileExistsError) as exc:
        fail(str(exc), use_emoji=use_emoji, use_color=use_color)
        raise typer.Exit(code=CONFIG_ERROR_EXIT) from exc

    selection = collect_files(paths or [project_root], project_root)
    executor = Executor(
        registry, resolved, docs=docs, root=project_root, use_color=use_color, use_emoji=use_emoji
    )
    aggregate = executor.run(selection)

    if generator is not None:
        report = generator.generate(aggregate)
        info(report.message, use_emoji=use_emoji, use_color=use_color)
        raise typer.Exit(code=0)

    for offense in aggregate.offenses:
        typer.echo(offense.render())
    stats = aggregate.statistics
    summary = ", ".join(f"{count} {label}" for label, count in stats.items())
    if aggregate.clean and not aggregate.failures:
        ok(f"No offenses found in {len(selection)} file(s)", use_emoji=use_emoji, use_color=use_color)
    else:
        errored = f", {len(aggregate.failures)} rule(s) errored" if aggregate.failures else ""
        fail(f"{aggregate.count} offense(s) ({summary}){errored}", use_emoji=use_emoji, use_color=use_color)
    raise typer.Exit(
        code=aggregate.exit_code(
            resolved.settings.fail_on_severity,
            fail_on_errored=resolved.settings.fail_on_errored,
        )
    )


@app.command("rules")
def list_rules() -> None:
    """List every built-in rule with its default state and severity."""

    for definition in default_registry().definitions():
        state = "enabled" if definition.default_enabled else "disabled"
        typer.echo(f"{definition.identifier} [{state}, {definition.default_severity.value}]")
        if definition.description:
            typer.echo(f"    {definition.description}")


@app.command("update-config")
def update_config(
    root: Path = typer.Option(Path.cwd(), "--root", "-r", help="Project root."),
    config: Path | None = typer.Option(None, "--config", "-c", help="Configuration file to update."),
    strict: bool = typer.Option(False, "--strict", help="Enable new rules at error severity."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable coloured output."),
    no_emoji: bool = typer.Option(False, "--no-emoji", help="Disable emoji output."),
) -> None:
    """Add new rules to a configuration file and remove obsolete ones."""

    use_color = False if no_color else None
    use_emoji = not no_emoji
    path = config if config is not None else root.resolve() / DEFAULT_CONFIG_FILE
    try:
        report = ConfigUpdater(path, default_registry(), strict=strict).update()
    except ConfigError as exc:
        fail(str(exc), use_emoji=use_emoji, use_color=use_color)
        raise typer.Exit(code=CONFIG_ERROR_EXIT) from exc

    for label, identifiers in (("Added", report.added), ("Removed", report.removed)):
        for identifier in identifiers:
            info(f"{label} {identifier}", use_emoji=use_emoji, use_color=use_color)
    ok(
        f"Updated {path.name}: {len(report.added)} added, {len(report.removed)} removed, "
        f"{len(report.preserved)} preserved",
        use_emoji=use_emoji,
        use_color=use_color,
    )


def main() -> None:
    """Run the CLI application."""

    app()


__all__ = ["app", "collect_files", "main"]
