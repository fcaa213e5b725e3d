"""Tests for parameter classification, named filtering and IN-clause building."""

from __future__ import annotations

from collections import OrderedDict

import pytest

from sqlitedb import Named, Positional, build_in_clause, classify
from sqlitedb.database.parameters import is_sequential, normalize_name, placeholder_names


@pytest.mark.unit
@pytest.mark.parametrize(
    "params",
    [None, [], (), {}],
)
def test_empty_collections_are_positional(params: object) -> None:
    assert classify(params) == Positional(())


@pytest.mark.unit
def test_sequence_is_positional() -> None:
    assert classify([5, "x", None]) == Positional((5, "x", None))


@pytest.mark.unit
def test_mapping_with_contiguous_int_keys_is_positional() -> None:
    assert classify({0: "a", 1: "b", 2: "c"}) == Positional(("a", "b", "c"))


@pytest.mark.unit
@pytest.mark.parametrize(
    "params",
    [
        {1: "a", 2: "b"},  # does not start at 0
        {0: "a", 2: "b"},  # gap
        OrderedDict([(1, "b"), (0, "a")]),  # right keys, wrong order
        {"0": "a"},  # string key
        {"id": 5},
    ],
)
def test_other_non_empty_mappings_are_named(params: dict) -> None:
    assert isinstance(classify(params), Named)


@pytest.mark.unit
def test_bool_keys_do_not_count_as_sequential() -> None:
    assert not is_sequential({False: "a", True: "b"})


@pytest.mark.unit
def test_explicit_parameter_sets_pass_through() -> None:
    named = Named({"id": 1})
    positional = Positional((1,))
    assert classify(named) is named
    assert classify(positional) is positional


@pytest.mark.unit
@pytest.mark.parametrize("params", ["abc", b"abc", 5, object()])
def test_scalars_and_strings_are_rejected(params: object) -> None:
    with pytest.raises(TypeError, match="sequence or a mapping"):
        classify(params)


@pytest.mark.unit
def test_named_keys_are_normalized_without_marker() -> None:
    assert classify({":id": 1, "name": "x"}) == Named({"id": 1, "name": "x"})
    assert normalize_name(":id") == "id"
    assert normalize_name(7) == "7"


@pytest.mark.unit
def test_named_bind_drops_names_missing_from_statement() -> None:
    params = classify({"id": 5, "name": "x"})
    assert params.bind("SELECT * FROM users WHERE id = :id") == {"id": 5}


@pytest.mark.unit
def test_named_bind_with_no_placeholders_binds_nothing() -> None:
    assert Named({"id": 5}).bind("SELECT 1") == {}


@pytest.mark.unit
def test_named_bind_matches_whole_names() -> None:
    params = Named({"id": 1, "id_2": 2})
    assert params.bind("SELECT :id_2") == {"id_2": 2}


@pytest.mark.unit
def test_positional_bind_passes_values_through() -> None:
    assert Positional((1, None)).bind("SELECT ?, ?") == (1, None)


@pytest.mark.unit
def test_placeholder_names_in_order() -> None:
    sql = "UPDATE t SET a = :a, b = :b WHERE id = :id AND a <> :a"
    assert placeholder_names(sql) == ["a", "b", "id", "a"]


@pytest.mark.unit
def test_placeholder_detection_ignores_quoting() -> None:
    # Known limitation: tokens inside string literals are detected too.
    assert placeholder_names("SELECT ':fake' , :real") == ["fake", "real"]


@pytest.mark.unit
@pytest.mark.parametrize(
    ("count", "expected"),
    [
        (3, "?, ?, ?"),
        (1, "?"),
        (0, ""),
        ([10, 20], "?, ?"),
        ((), ""),
    ],
)
def test_build_in_clause(count: object, expected: str) -> None:
    assert build_in_clause(count) == expected


@pytest.mark.unit
def test_build_in_clause_rejects_negative_count() -> None:
    with pytest.raises(ValueError, match="negative"):
        build_in_clause(-1)
