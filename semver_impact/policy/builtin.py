"""
Built-in policies.

- semver-default: general purpose, treats every surface as both read and
  written by consumers
- semver-read-only: for APIs consumers only read (return values, events);
  covariant, so widening output is breaking
- semver-write-only: for APIs consumers only write (options, inputs);
  contravariant, so widening input requirements is breaking

All three fall back to ``major`` for changes no rule recognizes.
"""

from __future__ import annotations

from .builder import create_policy, rule
from .schema import Policy

SEMVER_DEFAULT: Policy = (
    create_policy("semver-default", "major", "Conservative semantic versioning for shared APIs")
    # removals
    .add_rule(
        rule("export-removal")
        .target("export")
        .action("removed")
        .rationale("Removing an export breaks consumers who depend on it")
        .returns("major")
    )
    .add_rule(
        rule("member-removal")
        .action("removed")
        .nested(True)
        .rationale("Removing a member breaks consumers who access it")
        .returns("major")
    )
    .add_rule(rule("rename").action("renamed").rationale("Renaming breaks consumers who reference by name").returns("major"))
    .add_rule(
        rule("param-reorder")
        .target("parameter")
        .action("reordered")
        .rationale("Reordering parameters breaks positional callers")
        .returns("major")
    )
    .add_rule(
        rule("type-param-reorder")
        .target("type-parameter")
        .action("reordered")
        .rationale("Reordering type parameters breaks generic instantiation")
        .returns("major")
    )
    .add_rule(
        rule("required-param-addition")
        .target("parameter")
        .action("added")
        .has_tag("now-required")
        .rationale("Adding required parameters breaks existing callers")
        .returns("major")
    )
    .add_rule(
        rule("required-property-addition")
        .target("property")
        .action("added")
        .has_tag("now-required")
        .rationale("Adding required properties breaks existing implementers")
        .returns("major")
    )
    .add_rule(
        rule("type-narrowing")
        .aspect("type")
        .impact("narrowing")
        .rationale("Type narrowing may reject previously valid values")
        .returns("major")
    )
    .add_rule(
        rule("optionality-tightened")
        .aspect("optionality")
        .impact("narrowing")
        .rationale("Making something required breaks consumers who omit it")
        .returns("major")
    )
    .add_rule(
        rule("optionality-loosened")
        .aspect("optionality")
        .impact("widening")
        .rationale("Making something optional may hand readers a missing value")
        .returns("major")
    )
    .add_rule(rule("visibility-change").aspect("visibility").rationale("Visibility changes affect accessibility").returns("major"))
    .add_rule(
        rule("readonly-removed")
        .aspect("readonly")
        .impact("widening")
        .rationale("Removing readonly allows mutation, changing semantics")
        .returns("major")
    )
    .add_rule(
        rule("constraint-change")
        .aspect("constraint")
        .rationale("Constraint changes affect type parameter requirements")
        .returns("major")
    )
    .add_rule(
        rule("enum-value-change").aspect("enum-value").rationale("Enum value changes may break switch statements").returns("major")
    )
    # additions
    .add_rule(
        rule("export-addition").target("export").action("added").rationale("Adding exports is backward compatible").returns("minor")
    )
    .add_rule(
        rule("optional-addition")
        .action("added")
        .has_tag("now-optional")
        .rationale("Optional additions are backward compatible")
        .returns("minor")
    )
    .add_rule(
        rule("member-addition")
        .action("added")
        .nested(True)
        .not_tag("now-required")
        .rationale("Adding members is generally backward compatible")
        .returns("minor")
    )
    .add_rule(
        rule("type-widening")
        .aspect("type")
        .impact("widening")
        .rationale("Type widening accepts more values")
        .returns("minor")
    )
    .add_rule(
        rule("readonly-added")
        .aspect("readonly")
        .impact("narrowing")
        .rationale("Adding readonly is backward compatible for consumers")
        .returns("minor")
    )
    .add_rule(
        rule("undeprecation")
        .aspect("deprecation")
        .impact("narrowing")
        .rationale("Removing deprecation notices is backward compatible")
        .returns("minor")
    )
    .add_rule(
        rule("default-type-change")
        .aspect("default-type")
        .rationale("Default type parameter changes are usually compatible")
        .returns("minor")
    )
    .add_rule(
        rule("default-removed")
        .aspect("default-value")
        .has_tag("had-default")
        .not_tag("has-default")
        .rationale("Removing defaults requires explicit values")
        .returns("minor")
    )
    # informational
    .add_rule(
        rule("deprecation")
        .aspect("deprecation")
        .impact("widening")
        .rationale("Adding deprecation is informational, no behavior change")
        .returns("patch")
    )
    .add_rule(
        rule("default-change").aspect("default-value").rationale("Default value changes are backward compatible").returns("patch")
    )
    .add_rule(
        rule("type-equivalent")
        .aspect("type")
        .impact("equivalent")
        .rationale("Semantically equivalent types require no version bump")
        .returns("none")
    )
    .build()
)

SEMVER_READ_ONLY: Policy = (
    create_policy("semver-read-only", "major", "Covariant policy for surfaces consumers only read")
    .add_rule(rule("removal").action("removed").rationale("Readers expect data to be present").returns("major"))
    .add_rule(rule("rename").action("renamed").rationale("Readers reference by name").returns("major"))
    .add_rule(
        rule("param-reorder").target("parameter").action("reordered").rationale("Positional access is affected").returns("major")
    )
    .add_rule(
        rule("type-param-reorder")
        .target("type-parameter")
        .action("reordered")
        .rationale("Reordering type parameters breaks generic instantiation")
        .returns("major")
    )
    .add_rule(
        rule("type-narrowing")
        .aspect("type")
        .impact("narrowing")
        .rationale("Readers may not handle the narrower type")
        .returns("major")
    )
    .add_rule(
        rule("optionality-loosened")
        .aspect("optionality")
        .impact("widening")
        .rationale("Readers might receive a missing value")
        .returns("major")
    )
    .add_rule(rule("addition").action("added").rationale("Readers receive additional data").returns("minor"))
    .add_rule(
        rule("type-widening").aspect("type").impact("widening").rationale("Readers can handle broader types").returns("minor")
    )
    .add_rule(
        rule("optionality-tightened")
        .aspect("optionality")
        .impact("narrowing")
        .rationale("Readers always receive a value")
        .returns("minor")
    )
    .add_rule(rule("undeprecation").aspect("deprecation").impact("narrowing").returns("minor"))
    .add_rule(rule("deprecation").aspect("deprecation").impact("widening").returns("patch"))
    .add_rule(rule("default-change").aspect("default-value").returns("patch"))
    .add_rule(rule("type-equivalent").aspect("type").impact("equivalent").returns("none"))
    .build()
)

SEMVER_WRITE_ONLY: Policy = (
    create_policy("semver-write-only", "major", "Contravariant policy for surfaces consumers only write")
    .add_rule(
        rule("export-removal").target("export").action("removed").rationale("Cannot use removed exports").returns("major")
    )
    .add_rule(
        rule("enum-member-removal")
        .target("enum-member")
        .action("removed")
        .rationale("Cannot use removed enum value")
        .returns("major")
    )
    .add_rule(
        rule("member-removal")
        .action("removed")
        .nested(True)
        .rationale("Writers no longer need to provide the value")
        .returns("minor")
    )
    .add_rule(rule("rename").action("renamed").rationale("Writers reference by name").returns("major"))
    .add_rule(
        rule("param-reorder").target("parameter").action("reordered").rationale("Positional arguments affected").returns("major")
    )
    .add_rule(
        rule("type-param-reorder")
        .target("type-parameter")
        .action("reordered")
        .rationale("Reordering type parameters breaks generic instantiation")
        .returns("major")
    )
    .add_rule(
        rule("required-addition")
        .action("added")
        .has_tag("now-required")
        .rationale("Writers must provide the new required value")
        .returns("major")
    )
    .add_rule(
        rule("type-widening")
        .aspect("type")
        .impact("widening")
        .rationale("Writers must handle broader type requirements")
        .returns("major")
    )
    .add_rule(
        rule("optionality-tightened")
        .aspect("optionality")
        .impact("narrowing")
        .rationale("Writers must now provide the value")
        .returns("major")
    )
    .add_rule(
        rule("default-removed")
        .aspect("default-value")
        .has_tag("had-default")
        .not_tag("has-default")
        .rationale("Writers must now explicitly provide the value")
        .returns("major")
    )
    .add_rule(
        rule("optional-addition")
        .action("added")
        .has_tag("now-optional")
        .rationale("Writers can optionally provide the value")
        .returns("minor")
    )
    .add_rule(
        rule("export-addition").target("export").action("added").rationale("New exports are available to use").returns("minor")
    )
    .add_rule(
        rule("type-narrowing")
        .aspect("type")
        .impact("narrowing")
        .rationale("Stricter requirements, existing valid values still work")
        .returns("minor")
    )
    .add_rule(
        rule("optionality-loosened")
        .aspect("optionality")
        .impact("widening")
        .rationale("Writers can now omit the value")
        .returns("minor")
    )
    .add_rule(rule("undeprecation").aspect("deprecation").impact("narrowing").returns("minor"))
    .add_rule(rule("deprecation").aspect("deprecation").impact("widening").returns("patch"))
    .add_rule(rule("default-change").aspect("default-value").returns("patch"))
    .add_rule(rule("type-equivalent").aspect("type").impact("equivalent").returns("none"))
    .build()
)

BUILTIN_POLICIES: dict[str, Policy] = {
    policy.name: policy for policy in (SEMVER_DEFAULT, SEMVER_READ_ONLY, SEMVER_WRITE_ONLY)
}


def get_builtin_policy(name: str) -> Policy:
    """Look up a built-in policy by name.

    Raises:
        KeyError: if no built-in policy has that name
    """
    try:
        return BUILTIN_POLICIES[name]
    except KeyError:
        raise KeyError(f"unknown built-in policy '{name}' (available: {', '.join(BUILTIN_POLICIES)})") from None
