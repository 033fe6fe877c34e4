"""Diff command implementation."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..changes import RELEASE_SEVERITY
from ..declarations import load_module
from ..differ import DiffOptions
from ..exceptions import SemverImpactError
from ..policy import AnalysisResult, analyze, get_builtin_policy, load_config

_RELEASE_STYLES = {"major": "bold red", "minor": "yellow", "patch": "cyan", "none": "dim"}


def run_diff(
    old_path: Path,
    new_path: Path,
    *,
    policy_path: Path | None = None,
    builtin: str = "semver-default",
    output_json: bool = False,
    fail_on: str | None = None,
) -> int:
    """Diff two module analyses and report the required release type.

    Args:
        old_path: Module analysis document for the baseline
        new_path: Module analysis document for the new version
        policy_path: TOML/YAML policy file; overrides ``builtin``
        builtin: Name of a built-in policy
        output_json: Print the analysis as JSON instead of a table
        fail_on: Exit non-zero when the overall release is at least this severe

    Returns:
        Exit code (0 = ok, 1 = release at or above ``fail_on``, 2 = bad input)
    """
    console = Console(stderr=True)

    try:
        if policy_path is not None:
            config = load_config(policy_path)
            policy, options = config.policy, config.diff_options
        else:
            policy, options = get_builtin_policy(builtin), DiffOptions()
        old = load_module(old_path)
        new = load_module(new_path)
    except (KeyError, SemverImpactError) as exc:
        console.print(f"Error: {exc}", style="bold red")
        return 2

    result = analyze(old, new, policy, options)

    if output_json:
        output = result.to_dict()
        output["errors"] = {"old": list(old.errors), "new": list(new.errors)}
        print(json.dumps(output, indent=2, default=str))
    else:
        _print_table(Console(), result)
        for label, module in (("old", old), ("new", new)):
            for error in module.errors:
                console.print(f"{label}: {error}", style="yellow")

    if fail_on is not None and RELEASE_SEVERITY[result.release_type] >= RELEASE_SEVERITY[fail_on]:
        if not output_json:
            console.print(f"✗ Release type {result.release_type} meets --fail-on {fail_on}", style="bold red")
        return 1
    return 0


def _print_table(console: Console, result: AnalysisResult) -> None:
    if not result.results:
        console.print("No API changes detected.", style="dim")
    else:
        table = Table(title=f"API changes ({result.policy})")
        table.add_column("Release", no_wrap=True)
        table.add_column("Path", style="bold")
        table.add_column("Change")
        table.add_column("Rule", style="dim")
        table.add_column("Explanation")

        for item in result.results:
            descriptor = item.descriptor
            change = f"{descriptor.target} {descriptor.action}"
            if descriptor.aspect:
                change += f" ({descriptor.aspect}, {descriptor.impact})"
            table.add_row(
                item.release_type.upper(),
                item.path,
                change,
                item.matched_rule.name if item.matched_rule else "default",
                item.change.explanation,
                style=_RELEASE_STYLES.get(item.release_type),
            )
        console.print(table)

    for error in result.policy_errors:
        console.print(f"⚠ Skipped policy rule: {error}", style="yellow")
    console.print(f"Overall release: {result.release_type}", style=_RELEASE_STYLES.get(result.release_type, ""))
