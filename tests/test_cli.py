from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from builders import function, interface, module, param, prop
from semver_impact import __version__
from semver_impact.cli import cli


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def _modules(write_module, old, new) -> list[str]:
    return [str(write_module("old.json", old)), str(write_module("new.json", new))]


def test_version() -> None:
    result = CliRunner().invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_diff_json(write_module) -> None:
    paths = _modules(
        write_module,
        module(function("connect", [param("host")]), function("legacy")),
        module(function("connect", [param("host"), param("port", "number")])),
    )

    result = CliRunner().invoke(cli, ["diff", *paths, "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["policy"] == "semver-default"
    assert payload["release_type"] == "major"
    assert {(r["path"], r["rule"]) for r in payload["results"]} == {
        ("legacy", "export-removal"),
        ("connect", "type-narrowing"),
        ("connect.port", "required-param-addition"),
    }
    assert payload["errors"] == {"old": [], "new": []}


def test_diff_fail_on(write_module) -> None:
    paths = _modules(
        write_module,
        module(interface("Options", prop("host"))),
        module(interface("Options", prop("host"), prop("port", "number", optional=True))),
    )
    runner = CliRunner()

    minor = runner.invoke(cli, ["diff", *paths, "--fail-on", "major"])
    failing = runner.invoke(cli, ["diff", *paths, "--fail-on", "minor"])

    assert minor.exit_code == 0, minor.output
    assert "Overall release: minor" in minor.output
    assert failing.exit_code == 1


def test_diff_with_policy_file(write_module, tmp_path: Path) -> None:
    paths = _modules(write_module, module(function("a"), function("b")), module(function("a")))
    policy = tmp_path / "lenient.toml"
    _write(
        policy,
        """
name = "lenient"
default = "patch"

[[rules]]
expression = "member removal is breaking when nested"
returns = "major"
""",
    )

    result = CliRunner().invoke(cli, ["diff", *paths, "--policy", str(policy), "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["policy"] == "lenient"
    assert payload["release_type"] == "patch"


def test_diff_bad_input(write_module, tmp_path: Path) -> None:
    paths = _modules(write_module, module(function("a")), module(function("a")))
    broken = tmp_path / "broken.json"
    _write(broken, "{")
    runner = CliRunner()

    assert runner.invoke(cli, ["diff", *paths, "--builtin", "semver-yolo"]).exit_code == 2
    assert runner.invoke(cli, ["diff", paths[0], str(broken)]).exit_code == 2


def test_diff_no_changes(write_module) -> None:
    paths = _modules(write_module, module(function("a")), module(function("a")))

    result = CliRunner().invoke(cli, ["diff", *paths])

    assert result.exit_code == 0
    assert "No API changes detected." in result.output
    assert "Overall release: none" in result.output


def test_policies_list_and_show() -> None:
    runner = CliRunner()

    listing = runner.invoke(cli, ["policies", "--json"])
    shown = runner.invoke(cli, ["policies", "semver-read-only", "--json"])
    missing = runner.invoke(cli, ["policies", "semver-yolo"])

    assert listing.exit_code == 0
    assert [p["name"] for p in json.loads(listing.output)] == [
        "semver-default",
        "semver-read-only",
        "semver-write-only",
    ]
    assert shown.exit_code == 0
    read_only = json.loads(shown.output)
    assert read_only["default"] == "major"
    assert read_only["rules"][0] == {
        "name": "removal",
        "action": ["removed"],
        "returns": "major",
        "rationale": "Readers expect data to be present",
    }
    assert missing.exit_code == 2


def test_policies_from_file(tmp_path: Path) -> None:
    policy = tmp_path / "team.yaml"
    _write(
        policy,
        """
name: team
default: minor
rules:
  - expression: rename is breaking
    returns: major
""",
    )

    result = CliRunner().invoke(cli, ["policies", "--file", str(policy), "--json"])

    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["rules"][0]["name"] == "rename is breaking"
    assert payload["rules"][0]["action"] == ["renamed"]


def test_decompile_json(tmp_path: Path) -> None:
    rules = tmp_path / "rules.yaml"
    _write(
        rules,
        """
rules:
  - action: added
    impact: narrowing
    returns: major
  - template: "removed {target}"
    variables: {target: export}
    returns: major
  - expression: breaking removal
    returns: major
""",
    )

    result = CliRunner().invoke(cli, ["decompile", str(rules), "--json"])

    assert result.exit_code == 1
    first, second, third = json.loads(result.output)
    assert first["pattern"]["template"] == "added required {target}"
    assert first["confidence"] == 0.8
    assert first["intent"] == "required addition is breaking"
    assert second["intent"] == "breaking removal"
    assert third["error"] == "already an intent rule"


def test_decompile_unreadable_file(tmp_path: Path) -> None:
    rules = tmp_path / "rules.yaml"
    _write(rules, "rules: [unclosed\n")

    assert CliRunner().invoke(cli, ["decompile", str(rules)]).exit_code == 2


def test_verbose_and_quiet_conflict() -> None:
    result = CliRunner().invoke(cli, ["--verbose", "--quiet", "policies", "--json"])

    assert result.exit_code == 2
