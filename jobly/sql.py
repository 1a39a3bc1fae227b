"""
Parameterized SQL fragment builders.

Turns sparse field maps into clause text with ``$N`` positional
placeholders plus the matching value list. Callers prepend the clause
into a full statement and append any trailing parameters after the
returned values.
"""

from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional

from .errors import NoDataProvided, UnknownFilterKey

FilterSpec = Mapping[str, Callable[[int], str]]
ValueTransforms = Mapping[str, Callable[[Any], Any]]


class ClauseResult(NamedTuple):
    clause: str
    values: List[Any]


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def build_set_clause(fields: Mapping[str, Any], column_names: Mapping[str, str]) -> ClauseResult:
    """
    Build the column list of a partial UPDATE.

    Args:
        fields: Logical field name -> new value, e.g. {"firstName": "Aliya", "age": 3}
        column_names: Logical field name -> column name, e.g. {"firstName": "first_name"}.
            Fields missing here are used as the column name unchanged.

    Returns:
        ClauseResult such as ('"first_name"=$1, "age"=$2', ["Aliya", 3]).
        The SET keyword is left to the caller.

    Raises:
        NoDataProvided: If fields is empty
    """
    if not fields:
        raise NoDataProvided()

    segments = []
    values = []
    for idx, (key, value) in enumerate(fields.items(), start=1):
        column = column_names.get(key, key)
        segments.append(f"{quote_identifier(column)}=${idx}")
        values.append(value)

    return ClauseResult(", ".join(segments), values)


def build_where_clause(
    filters: Mapping[str, Any],
    filter_spec: FilterSpec,
    transforms: Optional[ValueTransforms] = None,
) -> ClauseResult:
    """
    Build a WHERE clause from whitelisted search filters.

    Args:
        filters: Filter key -> value. Values must already be of the type the
            fragment expects; nothing is coerced here.
        filter_spec: Filter key -> function taking the 1-based placeholder
            position and returning the comparison fragment.
        transforms: Optional filter key -> value transform, applied once per
            key before placeholders are numbered.

    Returns:
        ClauseResult such as ("WHERE (salary >= $1 AND (equity > 0) = $2)", [10000, True]),
        or ("", []) when no filters are given.

    Raises:
        UnknownFilterKey: If a filter key is not in filter_spec
    """
    for key in filters:
        if key not in filter_spec:
            raise UnknownFilterKey(key)

    if not filters:
        return ClauseResult("", [])

    prepared = apply_transforms(filters, transforms or {})

    fragments = []
    values = []
    for idx, (key, value) in enumerate(prepared.items(), start=1):
        fragments.append(filter_spec[key](idx))
        values.append(value)

    return ClauseResult(f"WHERE ({' AND '.join(fragments)})", values)


def apply_transforms(filters: Mapping[str, Any], transforms: ValueTransforms) -> Dict[str, Any]:
    """Return a copy of filters with each matching transform applied."""
    return {
        key: transforms[key](value) if key in transforms else value
        for key, value in filters.items()
    }


# Filter spec helpers

def comparison(expression: str, operator: str) -> Callable[[int], str]:
    """Fragment factory: comparison("salary", ">=")(3) -> "salary >= $3"."""
    def fragment(position: int) -> str:
        return f"{expression} {operator} ${position}"
    return fragment


def case_insensitive_like(column: str) -> Callable[[int], str]:
    # SQLite has no ILIKE
    def fragment(position: int) -> str:
        return f"LOWER({column}) LIKE LOWER(${position})"
    return fragment


def wrap_wildcards(value: Any) -> str:
    return f"%{value}%"
