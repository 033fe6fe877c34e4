from __future__ import annotations

import pytest

from semver_impact.oracle import DEFAULT_ORACLE, HeuristicTypeOracle, split_union


@pytest.mark.parametrize(
    ("old", "new", "impact"),
    [
        ("string", "string", "equivalent"),
        ("string |  number", "string | number", "equivalent"),
        ("string | number", "number | string", "equivalent"),
        ("string", "string | number", "widening"),
        ("string | number", "string", "narrowing"),
        ("'a' | 'b'", "'a' | 'b' | 'c'", "widening"),
        ("'a' | 'b' | 'c'", "'a' | 'c'", "narrowing"),
        ("string", "number", "undetermined"),
        ("Foo", "Foo?", "widening"),
        ("", "string", "undetermined"),
    ],
)
def test_heuristic_oracle(old: str, new: str, impact: str) -> None:
    assert HeuristicTypeOracle().compare(old, new).impact == impact


def test_oracle_is_total() -> None:
    result = DEFAULT_ORACLE.compare(None, 42)  # type: ignore[arg-type]
    assert result.impact == "undetermined"


def test_split_union_ignores_nested_bars() -> None:
    assert split_union("Array<string | number> | null") == ["Array<string | number>", "null"]
    assert split_union("'a|b' | 'c'") == ["'a|b'", "'c'"]
    assert split_union("(x: A | B) => void") == ["(x: A | B) => void"]
