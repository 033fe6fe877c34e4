from __future__ import annotations

import logging
from pathlib import Path

import pytest

from semver_impact.dsl import DimensionalRule, IntentRule, PatternRule
from semver_impact.exceptions import PolicyLoadError
from semver_impact.policy import PolicyRule, compile_policy, load_config, load_policy


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_load_toml_policy_with_mixed_rules(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "policy.toml"
    _write(
        path,
        """
name = "team"
default = "minor"
description = "Team policy"

[diff]
rename_threshold = 0.9
max_nesting_depth = 2

[[rules]]
name = "export-removal"
target = "export"
action = ["removed"]
returns = "major"
rationale = "Importers break"

[[rules]]
expression = "deprecation is patch"
returns = "patch"

[[rules]]
template = "{target} type widened"
variables = { target = "parameter" }
returns = "minor"

[[rules]]
name = "no-returns"
action = "added"

[[rules]]
type = "dimensional"
aspect = "readonly"
returns = "none"
description = "readonly flips"
""",
    )

    with caplog.at_level(logging.WARNING, logger="semver_impact"):
        config = load_config(path)

    policy = config.policy
    assert policy.name == "team"
    assert policy.default_release_type == "minor"
    assert policy.description == "Team policy"
    assert config.diff_options.rename_threshold == 0.9
    assert config.diff_options.max_nesting_depth == 2
    assert config.diff_options.detect_parameter_reordering

    assert [type(r) for r in policy.rules] == [PolicyRule, IntentRule, PatternRule, DimensionalRule]
    removal = policy.rules[0]
    assert isinstance(removal, PolicyRule)
    assert removal.target == ("export",)
    assert removal.rationale == "Importers break"
    assert "rule #4 has no valid 'returns', skipped" in caplog.text

    compiled = compile_policy(policy)
    assert [r.name for r in compiled.rules] == [
        "export-removal",
        "deprecation is patch",
        "{target} type widened",
        "readonly flips",
    ]
    assert compiled.errors == ()


def test_load_yaml_policy(tmp_path: Path) -> None:
    path = tmp_path / "policy.yaml"
    _write(
        path,
        """
name: yaml-policy
rules:
  - name: removal
    action: removed
    nested: true
    returns: major
  - expression: rename is breaking
    returns: major
""",
    )

    policy = load_policy(path)

    assert policy.name == "yaml-policy"
    assert policy.default_release_type == "major"
    assert isinstance(policy.rules[0], PolicyRule)
    assert policy.rules[0].nested is True
    assert policy.rules[1] == IntentRule("rename is breaking", "major")


def test_broken_dsl_rule_is_skipped(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "policy.toml"
    _write(
        path,
        """
name = "p"

[[rules]]
type = "regex"
returns = "major"

[[rules]]
name = "kept"
returns = "patch"
""",
    )

    with caplog.at_level(logging.WARNING, logger="semver_impact"):
        policy = load_policy(path)

    assert [getattr(r, "name", None) for r in policy.rules] == ["kept"]
    assert "unknown rule type 'regex'" in caplog.text


@pytest.mark.parametrize(
    ("filename", "text", "reason"),
    [
        ("missing-name.toml", 'default = "minor"\n', "name is required"),
        ("bad-default.toml", 'name = "p"\ndefault = "huge"\n', "default must be one of"),
        ("bad-diff.toml", 'name = "p"\n[diff]\nrename_threshold = 2\n', "invalid [diff] table"),
        ("broken.toml", "name = \n", "invalid TOML"),
        ("broken.yaml", "name: [unclosed\n", "invalid YAML"),
        ("list.yaml", "- a\n- b\n", "top-level value must be a table"),
    ],
)
def test_load_errors(tmp_path: Path, filename: str, text: str, reason: str) -> None:
    path = tmp_path / filename
    _write(path, text)

    with pytest.raises(PolicyLoadError) as excinfo:
        load_config(path)

    assert excinfo.value.reason.startswith(reason)


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(PolicyLoadError):
        load_policy(tmp_path / "nope.toml")
