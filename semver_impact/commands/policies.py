"""List built-in policies or show the rules of one policy."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..exceptions import PolicyLoadError
from ..policy import BUILTIN_POLICIES, compile_policy, get_builtin_policy, load_policy


def run_policies(name: str | None = None, *, policy_path: Path | None = None, output_json: bool = False) -> int:
    console = Console(stderr=True)

    if name is None and policy_path is None:
        if output_json:
            print(json.dumps([compile_policy(p).to_dict() for p in BUILTIN_POLICIES.values()], indent=2))
            return 0
        table = Table(title="Built-in policies")
        table.add_column("Name", style="bold")
        table.add_column("Rules", justify="right")
        table.add_column("Default")
        table.add_column("Description")
        for policy in BUILTIN_POLICIES.values():
            table.add_row(policy.name, str(len(policy.rules)), policy.default_release_type, policy.description or "")
        Console().print(table)
        return 0

    try:
        policy = load_policy(policy_path) if policy_path is not None else get_builtin_policy(name or "")
    except KeyError as exc:
        console.print(f"Error: {exc.args[0]}", style="bold red")
        return 2
    except PolicyLoadError as exc:
        console.print(f"Error: {exc}", style="bold red")
        return 2

    compiled = compile_policy(policy)
    if output_json:
        print(json.dumps(compiled.to_dict(), indent=2))
        return 0

    table = Table(title=f"{compiled.name} (default: {compiled.default_release_type})")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Rule", style="bold")
    table.add_column("Matches")
    table.add_column("Returns")
    table.add_column("Rationale", style="dim")
    for index, policy_rule in enumerate(compiled.rules, start=1):
        conditions = {k: v for k, v in policy_rule.to_dict().items() if k not in ("name", "returns", "rationale")}
        matches = "; ".join(
            f"{key}={','.join(value) if isinstance(value, list) else value}" for key, value in conditions.items()
        )
        table.add_row(str(index), policy_rule.name, matches or "*", policy_rule.returns, policy_rule.rationale or "")
    Console().print(table)

    for error in compiled.errors:
        console.print(f"⚠ Skipped rule: {error}", style="yellow")
    return 0
