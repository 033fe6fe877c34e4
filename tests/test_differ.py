from __future__ import annotations

from dataclasses import replace

from builders import enum, function, interface, klass, module, param, prop, variable
from semver_impact.declarations import DeclarationNode, ModuleAnalysis, TypeInfo, TypeParameterInfo
from semver_impact.differ import DiffOptions, diff, flatten_changes, group_changes_by_descriptor


def _only(changes):
    assert len(changes) == 1, [c.explanation for c in changes]
    return changes[0]


def test_identical_trees_produce_no_changes(user_api: ModuleAnalysis) -> None:
    assert diff(user_api, user_api) == []

    clone = ModuleAnalysis.from_dict(user_api.to_dict())
    assert diff(user_api, clone) == []


def test_export_removal_and_addition() -> None:
    old = module(function("a"), function("legacy", [param("x", "number")], "number"))
    new = module(function("a"), variable("VERSION", "string"))

    changes = diff(old, new)

    assert [(c.path, c.action, c.target) for c in changes] == [
        ("legacy", "removed", "export"),
        ("VERSION", "added", "export"),
    ]
    assert not changes[0].context.is_nested


def test_required_parameter_is_narrowing() -> None:
    old = module(function("load", [param("url")]))
    new = module(function("load", [param("url"), param("timeout", "number")]))

    change = _only(diff(old, new))

    assert change.descriptor.action == "modified"
    assert change.descriptor.aspect == "type"
    assert change.descriptor.impact == "narrowing"
    assert "has-nested-changes" in change.descriptor.tags

    nested = _only(list(change.nested_changes))
    assert nested.path == "load.timeout"
    assert nested.descriptor.target == "parameter"
    assert nested.descriptor.action == "added"
    assert "now-required" in nested.descriptor.tags
    assert nested.context.is_nested
    assert nested.context.ancestors == ("load",)


def test_optional_and_rest_parameters_are_widening() -> None:
    old = module(function("load", [param("url")]))

    optional = _only(diff(old, module(function("load", [param("url"), param("retries", "number", optional=True)]))))
    rest = _only(diff(old, module(function("load", [param("url"), param("extra", "string[]", rest=True)]))))

    assert optional.descriptor.impact == "widening"
    assert "now-optional" in optional.nested_changes[0].descriptor.tags
    assert rest.descriptor.impact == "widening"
    assert {"now-optional", "is-rest-parameter"} <= rest.nested_changes[0].descriptor.tags


def test_removed_parameter_is_narrowing() -> None:
    old = module(function("save", [param("doc"), param("force", "boolean", optional=True)]))
    new = module(function("save", [param("doc")]))

    change = _only(diff(old, new))

    assert change.descriptor.impact == "narrowing"
    nested = change.nested_changes[0]
    assert nested.descriptor.action == "removed"
    assert "was-optional" in nested.descriptor.tags


def test_parameter_and_return_types_go_through_the_oracle() -> None:
    old = module(function("parse", [param("input", "string")], "Node | null"))
    new = module(function("parse", [param("input", "string | Buffer")], "Node"))

    change = _only(diff(old, new))

    # first differing position decides the parent
    assert change.descriptor.impact == "widening"
    by_path = {c.path: c for c in change.nested_changes}
    assert by_path["parse.input"].descriptor.impact == "widening"
    assert by_path["parse.input"].context.old_type == "string"
    assert by_path["parse.return"].descriptor.target == "return-type"
    assert by_path["parse.return"].descriptor.impact == "narrowing"


def test_unresolved_type_relationships_are_undetermined() -> None:
    old = module(variable("LIMIT", "number"))
    new = module(variable("LIMIT", "number | string"))

    resolved = _only(diff(old, new))
    unresolved = _only(diff(old, new, DiffOptions(resolve_type_relationships=False)))

    assert resolved.descriptor.impact == "widening"
    assert unresolved.descriptor.impact == "undetermined"


def test_rename_collapses_removed_and_added_pair() -> None:
    old = module(function("fetchUser", [param("id")], "User"))
    new = module(function("fetchUsers", [param("id")], "User"))

    change = _only(diff(old, new))

    assert change.action == "renamed"
    assert change.path == "fetchUser"
    assert change.new_node is not None and change.new_node.name == "fetchUsers"
    assert change.context.rename_confidence is not None
    assert change.context.rename_confidence >= 0.8


def test_rename_threshold_is_respected() -> None:
    old = module(function("fetchUser", [param("id")], "User"))
    new = module(function("fetchUsers", [param("id")], "User"))

    changes = diff(old, new, DiffOptions(rename_threshold=0.99))

    assert [c.action for c in changes] == ["removed", "added"]


def test_change_order_is_renamed_removed_added_modified() -> None:
    old = module(
        variable("LIMIT", "number"),
        function("fetchUser", [param("id")], "User"),
        function("zap", [param("target", "Element")], "void"),
    )
    new = module(
        variable("LIMIT", "bigint"),
        function("fetchUsers", [param("id")], "User"),
        interface("Options", prop("debug", "boolean")),
    )

    assert [c.action for c in diff(old, new)] == ["renamed", "removed", "added", "modified"]


def test_member_changes_nest_under_their_parent() -> None:
    old = module(interface("Config", prop("host"), prop("timeout", "number")))
    new = module(interface("Config", prop("host"), prop("port", "number", optional=True), prop("user")))

    change = _only(diff(old, new, DiffOptions(rename_threshold=1.0)))

    assert change.path == "Config"
    assert change.descriptor.aspect == "type"
    assert change.descriptor.impact == "equivalent"
    assert "has-nested-changes" in change.descriptor.tags

    nested = {c.path: c for c in change.nested_changes}
    assert nested["Config.timeout"].descriptor.action == "removed"
    assert "was-required" in nested["Config.timeout"].descriptor.tags
    assert nested["Config.port"].descriptor.tags == frozenset({"now-optional"})
    assert nested["Config.user"].descriptor.tags == frozenset({"now-required"})
    assert nested["Config.user"].descriptor.target == "property"
    assert all(c.context.is_nested for c in change.nested_changes)


def test_modifier_changes() -> None:
    old = module(interface("Point", prop("x", "number"), prop("y", "number", readonly=True)))
    new = module(interface("Point", prop("x", "number", optional=True), prop("y", "number")))

    change = _only(diff(old, new))
    nested = {c.path: c for c in change.nested_changes}

    x = nested["Point.x"].descriptor
    assert (x.aspect, x.impact) == ("optionality", "widening")
    assert {"was-required", "now-optional"} <= x.tags
    assert nested["Point.x"].context.modifier_change == "+optional"

    y = nested["Point.y"].descriptor
    assert (y.aspect, y.impact) == ("readonly", "widening")


def test_deprecation_and_default_value_changes() -> None:
    old = module(
        function("legacy"),
        interface("Opts", prop("retries", "number", default="3"), prop("mode", default="'fast'")),
    )
    new = module(
        function("legacy", deprecated=True),
        interface("Opts", prop("retries", "number", default="5"), prop("mode")),
    )

    changes = {c.path: c for c in flatten_changes(diff(old, new))}

    assert (changes["legacy"].descriptor.aspect, changes["legacy"].descriptor.impact) == ("deprecation", "widening")
    retries = changes["Opts.retries"].descriptor
    assert retries.aspect == "default-value"
    assert {"had-default", "has-default"} <= retries.tags
    mode = changes["Opts.mode"].descriptor
    assert (mode.aspect, mode.impact) == ("default-value", "narrowing")
    assert mode.tags == frozenset({"had-default", "is-nested-change"})


def test_heritage_clause_changes() -> None:
    old = module(klass("Widget"), interface("Props"))
    new = module(klass("Widget", extends=["Base"]), interface("Props", extends=["BaseProps"]))

    changes = {c.path: c.descriptor for c in diff(old, new)}

    assert (changes["Widget"].aspect, changes["Widget"].impact) == ("extends-clause", "narrowing")
    assert changes["Props"].aspect == "extends-clause"


def test_type_parameter_changes() -> None:
    old = module(interface("Box", prop("value"), type_params=[TypeParameterInfo("T")]))
    new = module(
        interface("Box", prop("value"), type_params=[TypeParameterInfo("T", constraint="object")]),
    )
    added = module(interface("Box", prop("value"), type_params=[TypeParameterInfo("T"), TypeParameterInfo("U")]))

    constrained = _only(diff(old, new)).descriptor
    assert (constrained.target, constrained.aspect, constrained.impact) == ("type-parameter", "constraint", "narrowing")
    assert "affects-type-parameter" in constrained.tags

    grown = _only(diff(old, added)).descriptor
    assert (grown.target, grown.action) == ("type-parameter", "added")


def test_enum_value_change() -> None:
    old = module(enum("Level", Low="1", High="2"))
    new = module(enum("Level", Low="1", High="3"))

    change = _only(diff(old, new))
    member = _only(list(change.nested_changes))

    assert member.path == "Level.High"
    assert (member.descriptor.target, member.descriptor.aspect) == ("enum-member", "enum-value")


def test_parameter_reorder_is_detected_even_with_identical_types() -> None:
    old = module(function("resize", [param("width", "number"), param("height", "number")]))
    new = module(function("resize", [param("height", "number"), param("width", "number")]))

    change = _only(diff(old, new))

    assert (change.descriptor.target, change.descriptor.action) == ("parameter", "reordered")
    assert change.parameter_analysis is not None
    assert change.parameter_analysis["confidence"] == "high"

    assert diff(old, new, DiffOptions(detect_parameter_reordering=False)) == []


def test_missing_type_info_degrades_to_undetermined() -> None:
    old = module(interface("Shape", prop("area", None)))
    new = module(interface("Shape", prop("area", "number")))

    change = _only(diff(old, new))
    area = change.nested_changes[0]

    assert (area.descriptor.aspect, area.descriptor.impact) == ("type", "undetermined")
    assert any("type information unavailable" in e for e in old.errors)
    assert new.errors == []


def test_nested_changes_can_be_disabled_or_depth_limited() -> None:
    old = module(interface("Config", prop("host")))
    new = module(interface("Config", prop("host"), prop("port", "number")))

    assert diff(old, new, DiffOptions(include_nested_changes=False)) == []
    assert diff(old, new, DiffOptions(max_nesting_depth=0)) == []
    assert len(diff(old, new, DiffOptions(max_nesting_depth=1))) == 1


def test_self_referential_tree_terminates() -> None:
    def tree(value_type: str) -> DeclarationNode:
        node = DeclarationNode(path="Tree", name="Tree", kind="interface")
        node.children["value"] = DeclarationNode(
            path="Tree.value",
            name="value",
            kind="property",
            parent="Tree",
            type_info=TypeInfo(signature=value_type),
        )
        node.children["self"] = node
        return node

    old = ModuleAnalysis(filename="old.d.ts", exports={"Tree": tree("string")})
    new = ModuleAnalysis(filename="new.d.ts", exports={"Tree": tree("number")})

    change = _only(diff(old, new))

    assert [c.path for c in change.nested_changes] == ["Tree.value"]


def test_flatten_tags_nested_copies_without_mutating_input() -> None:
    old = module(function("load", [param("url")]))
    new = module(function("load", [param("url"), param("timeout", "number")]))
    changes = diff(old, new)

    flat = flatten_changes(changes)

    assert [c.path for c in flat] == ["load", "load.timeout"]
    assert "is-nested-change" not in flat[0].descriptor.tags
    assert "is-nested-change" in flat[1].descriptor.tags
    assert "is-nested-change" not in changes[0].nested_changes[0].descriptor.tags


def test_group_changes_by_descriptor() -> None:
    old = module(function("a"), function("b"), variable("c", "string"))
    new = module(variable("c", "number"), function("d", [param("x")]))

    groups = group_changes_by_descriptor(diff(old, new, DiffOptions(rename_threshold=1.0)))

    assert set(groups) == {"export:removed", "export:added", "export:modified:type"}
    assert [c.path for c in groups["export:removed"]] == ["a", "b"]


def test_changes_reference_the_compared_nodes() -> None:
    old = module(interface("User", prop("id")))
    user = old.exports["User"]
    new = module(replace(user, children={**user.children, "name": replace(prop("name"), path="User.name")}))

    change = _only(diff(old, new))

    assert change.old_node is user
    assert change.new_node is new.exports["User"]
