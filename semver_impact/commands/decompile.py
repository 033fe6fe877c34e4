"""Decompile command: show the pattern and intent forms of dimensional rules."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from rich.console import Console
from rich.table import Table

from ..dsl import DimensionalRule, PatternRule, decompile_to_pattern, rule_from_dict, synthesize_intent


def _read_rules(path: Path) -> list[dict[str, Any]]:
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(text)
    elif suffix == ".toml":
        import tomllib

        data = tomllib.loads(text)
    else:
        data = json.loads(text)

    if isinstance(data, dict) and isinstance(data.get("rules"), list):
        data = data["rules"]
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ValueError("expected a rule object, a list of rules, or a table with 'rules'")
    return [item for item in data if isinstance(item, dict)]


def _explain(raw: dict[str, Any]) -> dict[str, Any]:
    entry: dict[str, Any] = {"rule": raw}
    try:
        rule = rule_from_dict(raw)
    except (KeyError, ValueError) as exc:
        entry["error"] = str(exc)
        return entry

    pattern: PatternRule | None = None
    if isinstance(rule, DimensionalRule):
        decompiled = decompile_to_pattern(rule)
        entry["confidence"] = round(decompiled.confidence, 3)
        if not decompiled.success or decompiled.pattern is None:
            entry["error"] = "no pattern matches this rule"
            return entry
        pattern = decompiled.pattern
        entry["alternatives"] = [alt.template for alt in decompiled.alternatives]
    elif isinstance(rule, PatternRule):
        pattern = rule
    else:
        entry["error"] = "already an intent rule"
        return entry

    entry["pattern"] = pattern.to_dict()
    synthesized = synthesize_intent(pattern)
    if synthesized.success and synthesized.intent is not None:
        entry["intent"] = synthesized.intent.expression
        entry["intent_confidence"] = round(synthesized.confidence, 3)
    return entry


def run_decompile(rule_path: Path, *, output_json: bool = False) -> int:
    """Decompile every rule in ``rule_path``.

    Returns:
        Exit code (0 = every rule decompiled, 1 = some failed, 2 = unreadable file)
    """
    console = Console(stderr=True)
    try:
        raw_rules = _read_rules(rule_path)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        console.print(f"Error: cannot read {rule_path}: {exc}", style="bold red")
        return 2

    entries = [_explain(raw) for raw in raw_rules]

    if output_json:
        print(json.dumps(entries, indent=2, default=str))
    else:
        table = Table(title=f"Decompiled rules ({rule_path.name})")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Pattern", style="bold")
        table.add_column("Confidence", justify="right")
        table.add_column("Intent")
        table.add_column("Alternatives", style="dim")
        for index, entry in enumerate(entries, start=1):
            if "error" in entry:
                table.add_row(str(index), f"✗ {entry['error']}", "", "", "", style="red")
                continue
            confidence = entry.get("confidence")
            table.add_row(
                str(index),
                entry["pattern"]["template"],
                f"{confidence:.2f}" if confidence is not None else "-",
                entry.get("intent", "-"),
                ", ".join(entry.get("alternatives", [])),
            )
        Console().print(table)

    return 1 if any("error" in entry for entry in entries) else 0
