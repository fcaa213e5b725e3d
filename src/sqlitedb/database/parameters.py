"""Parameter classification and binding.

A statement's parameters are either positional (`?` placeholders, bound
in order) or named (`:name` placeholders, bound by key). The two cases
are represented explicitly by `Positional` and `Named`; `classify` turns
whatever the caller passed into one of them, once, at the boundary.
"""

from __future__ import annotations

import decimal
import re
from collections.abc import Mapping, Sequence, Sized
from dataclasses import dataclass, field
from typing import Any, Union

from .. import global_config as g

# Word characters following ':' in statement text. String literals and
# comments are not skipped.
NAMED_PLACEHOLDER_RE = re.compile(r":(\w+)")

_DISPLAY_TOKEN_RE = re.compile(r"\?|:(\w+)")
_WHITESPACE_RE = re.compile(r"\s+")
_NUMERIC_STRING_RE = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")


@dataclass(frozen=True)
class Positional:
    """Values bound by position, in order."""

    values: tuple[Any, ...] = ()

    def bind(self, sql: str) -> tuple[Any, ...]:  # noqa: ARG002
        return self.values


@dataclass(frozen=True)
class Named:
    """Values bound by placeholder name.

    Keys are stored without the leading marker, which is the form the
    sqlite3 driver expects in a binding dict.
    """

    values: dict[str, Any] = field(default_factory=dict)

    def bind(self, sql: str) -> dict[str, Any]:
        """Return only the values whose `:name` occurs in `sql`."""
        used = set(placeholder_names(sql))
        return {name: value for name, value in self.values.items() if name in used}


ParameterSet = Union[Positional, Named]


def normalize_name(key: Any) -> str:
    """Return a placeholder name without its leading `:` marker."""
    name = str(key)
    if name.startswith(g.NAMED_PLACEHOLDER_MARKER):
        name = name[len(g.NAMED_PLACEHOLDER_MARKER) :]
    return name


def placeholder_names(sql: str) -> list[str]:
    """Return the names of all `:name` placeholders in `sql`, in order."""
    return NAMED_PLACEHOLDER_RE.findall(sql)


def is_sequential(params: Mapping[Any, Any]) -> bool:
    """Return True if the mapping's keys are exactly 0..n-1 in order.

    The empty mapping counts as sequential.
    """
    return all(key == index and type(key) is int for index, key in enumerate(params))


def classify(params: Any) -> ParameterSet:
    """Decide once whether `params` is positional or named.

    Args:
        params: None, a `Positional`/`Named` instance, a mapping or a
            sequence of values.

    Returns:
        `Named` for a non-empty mapping whose keys are not exactly
        0..n-1 in order; `Positional` for everything else.

    Raises:
        TypeError: If `params` is a string, bytes or not a collection.
    """
    if isinstance(params, (Positional, Named)):
        return params
    if params is None:
        return Positional()
    if isinstance(params, Mapping):
        if is_sequential(params):
            return Positional(tuple(params.values()))
        return Named({normalize_name(key): value for key, value in params.items()})
    if isinstance(params, (str, bytes, bytearray)) or not isinstance(params, Sequence):
        msg = f"Parameters must be a sequence or a mapping, not {type(params).__name__}"
        raise TypeError(msg)
    return Positional(tuple(params))


def build_in_clause(count: int | Sized) -> str:
    """Return `count` comma-separated `?` placeholders for an IN (...) list.

    Args:
        count: Number of placeholders, or a sized collection whose length
            is used.

    Returns:
        e.g. "?, ?, ?" for 3; "" for 0.

    Raises:
        ValueError: If `count` is negative.
    """
    n = count if isinstance(count, int) else len(count)
    if n < 0:
        msg = f"Placeholder count must not be negative: {n}"
        raise ValueError(msg)
    return ", ".join([g.POSITIONAL_PLACEHOLDER] * n)


def _is_numeric(value: Any) -> bool:
    if isinstance(value, (int, float, decimal.Decimal)):
        return True
    return isinstance(value, str) and _NUMERIC_STRING_RE.fullmatch(value) is not None


def render_value(value: Any) -> str:
    """Render one bound value the way it is shown in the debug log."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (list, tuple, set, frozenset)):
        return "'" + "','".join("" if item is None else str(item) for item in value) + "'"
    if _is_numeric(value):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return f"X'{bytes(value).hex()}'"
    return f"'{value}'"


def interpolate_for_display(sql: str, params: Any = None) -> str:
    """Substitute bound values into placeholder positions, for logging.

    Positional values fill `?` placeholders left to right; a named value
    replaces the first occurrence of its `:name` only. Placeholders with
    no value are left untouched, and substituted text is never scanned
    again. Quotes inside values are not escaped, so the result is not
    guaranteed to be valid SQL.
    """
    parameter_set = classify(params)
    if isinstance(parameter_set, Positional):
        remaining = list(parameter_set.values)
        remaining.reverse()
        named: dict[str, Any] = {}
    else:
        remaining = []
        named = dict(parameter_set.values)

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name is None:
            return render_value(remaining.pop()) if remaining else match.group(0)
        if name in named:
            return render_value(named.pop(name))
        return match.group(0)

    return _DISPLAY_TOKEN_RE.sub(substitute, sql)


def collapse_whitespace(sql: str) -> str:
    """Collapse runs of whitespace (including newlines) to single spaces."""
    return _WHITESPACE_RE.sub(" ", sql).strip()
