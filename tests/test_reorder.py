from __future__ import annotations

from builders import param
from semver_impact.reorder import detect_reordering


def test_identity_permutation_is_high_confidence_reorder() -> None:
    analysis = detect_reordering(
        [param("width", "number"), param("height", "number")],
        [param("height", "number"), param("width", "number")],
    )

    assert analysis.has_reordering
    assert analysis.confidence == "high"
    assert "(width, height) → (height, width)" in analysis.summary


def test_cross_position_resemblance_is_medium_reorder() -> None:
    analysis = detect_reordering(
        [param("source"), param("dest")],
        [param("destination"), param("src")],
    )

    assert analysis.has_reordering
    assert analysis.confidence in ("medium", "high")
    assert '"destination" at position 0 resembles "dest"' in analysis.summary


def test_abbreviation_in_place_is_rename_not_reorder() -> None:
    analysis = detect_reordering(
        [param("source"), param("dest")],
        [param("src"), param("dst")],
    )

    assert not analysis.has_reordering
    assert "renames rather than reordering" in analysis.summary
    interpretations = {p.old_name: p.interpretation for p in analysis.position_analysis}
    assert interpretations["source"] == "abbreviation expansion/contraction"


def test_exact_identity_outranks_probabilistic_matches() -> None:
    analysis = detect_reordering(
        [param("a"), param("b"), param("source")],
        [param("b"), param("a"), param("target")],
    )

    assert analysis.has_reordering
    assert analysis.confidence == "high"


def test_preconditions_block_positive_verdicts() -> None:
    count_changed = detect_reordering([param("a"), param("b")], [param("b")])
    assert not count_changed.has_reordering
    assert "count changed" in count_changed.summary

    single = detect_reordering([param("a")], [param("b")])
    assert not single.has_reordering

    types_differ = detect_reordering(
        [param("a", "string"), param("b", "number")],
        [param("b", "number"), param("a", "string")],
    )
    assert not types_differ.has_reordering
    assert "Types differ" in types_differ.summary


def test_unrelated_names_are_unresolved() -> None:
    analysis = detect_reordering(
        [param("alpha"), param("omega")],
        [param("xyzzy"), param("plugh")],
    )

    assert not analysis.has_reordering
    assert analysis.confidence == "low"
    assert "no clear reordering pattern" in analysis.summary


def test_unchanged_names_report_no_changes() -> None:
    params = [param("a"), param("b")]
    analysis = detect_reordering(params, params)

    assert not analysis.has_reordering
    assert analysis.summary == "No parameter name changes detected"
    assert len(analysis.to_dict()["position_analysis"]) == 2
