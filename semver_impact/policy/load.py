from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..changes import RELEASE_TYPES
from ..differ import DiffOptions
from ..dsl.rules import rule_from_dict
from ..exceptions import PolicyLoadError
from .schema import AnyRule, Policy, PolicyRule

logger = logging.getLogger(__name__)

_LIST_FIELDS = ("action", "target", "aspect", "impact", "node_kind", "tags", "not_tags", "any_tags")


@dataclass(frozen=True)
class PolicyConfig:
    """A policy file: the policy plus the ``[diff]`` options that go with it."""

    policy: Policy
    diff_options: DiffOptions = field(default_factory=DiffOptions)


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _string_list(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return ()
    return tuple(str(v).strip() for v in value if str(v).strip())


def _read(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PolicyLoadError(str(path), str(exc)) from exc

    if path.suffix.lower() in {".yaml", ".yml"}:
        import yaml

        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise PolicyLoadError(str(path), f"invalid YAML: {exc}") from exc
    else:
        import tomllib

        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise PolicyLoadError(str(path), f"invalid TOML: {exc}") from exc

    if not isinstance(data, dict):
        raise PolicyLoadError(str(path), "top-level value must be a table")
    return data


def _policy_rule(raw: dict[str, Any], name: str, returns: str) -> PolicyRule:
    nested = raw.get("nested")
    rationale = raw.get("rationale")
    return PolicyRule(
        name=name,
        returns=returns,  # type: ignore[arg-type]
        nested=bool(nested) if isinstance(nested, bool) else None,
        rationale=str(rationale) if isinstance(rationale, str) else None,
        **{key: _string_list(raw.get(key)) for key in _LIST_FIELDS},
    )


def load_config(path: Path) -> PolicyConfig:
    """
    Load a policy (and optional diff options) from TOML or YAML.

    A rule table with ``expression`` is an intent rule and one with
    ``template`` is a pattern rule; both keep their DSL form until the
    policy is compiled. Any other table with a ``name`` is a policy rule.
    Rules without a valid ``returns`` are skipped.
    """
    data = _read(path)

    name = str(data.get("name", "")).strip()
    if not name:
        raise PolicyLoadError(str(path), "name is required")

    default = str(data.get("default", "major")).strip() or "major"
    if default not in RELEASE_TYPES:
        raise PolicyLoadError(str(path), f"default must be one of {', '.join(sorted(RELEASE_TYPES))}")

    try:
        diff_options = DiffOptions.from_dict(_coerce_dict(data.get("diff")))
    except (TypeError, ValueError) as exc:
        raise PolicyLoadError(str(path), f"invalid [diff] table: {exc}") from exc

    rules: list[AnyRule] = []
    for index, raw in enumerate(data.get("rules", [])):
        if not isinstance(raw, dict):
            continue

        returns = str(raw.get("returns", "")).strip()
        if returns not in RELEASE_TYPES:
            logger.warning("%s: rule #%d has no valid 'returns', skipped", path.name, index + 1)
            continue

        if "expression" in raw or "template" in raw or "type" in raw:
            try:
                rules.append(rule_from_dict(raw))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("%s: rule #%d skipped: %s", path.name, index + 1, exc)
            continue

        rule_name = str(raw.get("name", "")).strip()
        if not rule_name:
            continue
        rules.append(_policy_rule(raw, rule_name, returns))

    description = data.get("description")
    policy = Policy(
        name=name,
        rules=tuple(rules),
        default_release_type=default,  # type: ignore[arg-type]
        description=str(description) if isinstance(description, str) else None,
    )
    return PolicyConfig(policy=policy, diff_options=diff_options)


def load_policy(path: Path) -> Policy:
    """Load just the policy from a policy file."""
    return load_config(path).policy
