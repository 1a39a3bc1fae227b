"""
Request validation for searches and create/update bodies.

Each request kind declares its fields once (name -> kind). Validation
rejects unknown fields, checks types, coerces query-string values where
asked to, and returns a new dict; the caller's data is never modified.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlparse

from .errors import BadRequestError

MAX_HANDLE_LENGTH = 25

# Largest value an INTEGER column holds
MAX_INTEGER = 2**31 - 1

COMPANY_SEARCH_FIELDS = {
    "nameLike": "str",
    "minEmployees": "count",
    "maxEmployees": "count",
}

JOB_SEARCH_FIELDS = {
    "titleLike": "str",
    "minSalary": "count",
    "hasEquity": "bool",
}

COMPANY_NEW_REQUIRED = {
    "handle": "handle",
    "name": "str",
    "description": "str",
}
COMPANY_NEW_OPTIONAL = {
    "numEmployees": "count",
    "logoUrl": "url",
}
COMPANY_UPDATE_FIELDS = {
    "name": "str",
    "description": "str",
    "numEmployees": "count",
    "logoUrl": "url",
}

JOB_NEW_REQUIRED = {
    "title": "str",
    "companyHandle": "handle",
}
JOB_NEW_OPTIONAL = {
    "salary": "count",
    "equity": "equity",
}
JOB_UPDATE_FIELDS = {
    "title": "str",
    "salary": "count",
    "equity": "equity",
}

# Kinds whose columns accept NULL
NULLABLE_KINDS = {"count", "url", "equity"}

_KIND_MESSAGES = {
    "str": "must be a non-empty string",
    "handle": f"must be a non-empty string of at most {MAX_HANDLE_LENGTH} characters",
    "count": f"must be an integer between 0 and {MAX_INTEGER}",
    "bool": "must be true or false",
    "url": "must be a valid absolute URL (scheme + host)",
    "equity": "must be a number between 0 and 1",
}


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _valid_url(v: str) -> bool:
    p = urlparse(v)
    return bool(p.scheme and p.netloc)


def _coerce(kind: str, value: Any) -> Any:
    """Convert a query-string value to the kind's type; unconvertible values pass through."""
    if not isinstance(value, str):
        return value
    if kind == "count" and value.strip().isdecimal():
        return int(value)
    if kind == "bool" and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    return value


def _check(kind: str, value: Any) -> Tuple[bool, Any]:
    """Return (valid, normalized value) for one field."""
    if kind == "str":
        return _is_non_empty_str(value), value
    if kind == "handle":
        return _is_non_empty_str(value) and len(value) <= MAX_HANDLE_LENGTH, value
    if kind == "count":
        ok = isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= MAX_INTEGER
        return ok, value
    if kind == "bool":
        return isinstance(value, bool), value
    if kind == "url":
        return isinstance(value, str) and _valid_url(value), value
    if kind == "equity":
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            return False, value
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            return False, value
        if not amount.is_finite() or amount < 0 or amount > 1:
            return False, value
        return True, str(amount)
    raise ValueError(f"Unknown field kind: {kind}")


def _validate(
    data: Mapping[str, Any],
    fields: Mapping[str, str],
    required: Optional[Mapping[str, str]] = None,
    coerce: bool = False,
    allow_null: bool = True,
) -> Tuple[Dict[str, Any], List[str]]:
    required = required or {}
    errors: List[str] = []
    cleaned: Dict[str, Any] = {}

    if not isinstance(data, Mapping):
        return cleaned, ["Request data must be an object"]

    for f in required:
        if f not in data:
            errors.append(f"Missing required field: {f}")

    known = {**required, **fields}
    for f, value in data.items():
        kind = known.get(f)
        if kind is None:
            errors.append(f"Unknown field: {f}")
            continue
        if value is None and allow_null and kind in NULLABLE_KINDS:
            cleaned[f] = None
            continue
        if coerce:
            value = _coerce(kind, value)
        ok, value = _check(kind, value)
        if not ok:
            errors.append(f"Field '{f}' {_KIND_MESSAGES[kind]}")
            continue
        cleaned[f] = value

    return cleaned, errors


def _raise_if(errors: List[str]) -> None:
    if errors:
        raise BadRequestError(errors)


def validate_company_search(query: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Validate company search parameters like
    {"nameLike": "net", "minEmployees": "2", "maxEmployees": "300"}.

    Employee bounds are converted to integers and must satisfy min <= max.

    Returns:
        Filters ready for Company.find_all()

    Raises:
        BadRequestError: Listing every problem found
    """
    cleaned, errors = _validate(query, COMPANY_SEARCH_FIELDS, coerce=True, allow_null=False)
    _raise_if(errors)

    min_emp = cleaned.get("minEmployees")
    max_emp = cleaned.get("maxEmployees")
    if min_emp is not None and max_emp is not None and min_emp > max_emp:
        raise BadRequestError("minEmployees cannot be greater than maxEmployees")

    return cleaned


def validate_job_search(query: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Validate job search parameters like
    {"titleLike": "eng", "minSalary": "50000", "hasEquity": "true"}.

    hasEquity=false means "any equity" and is dropped from the filters.
    """
    cleaned, errors = _validate(query, JOB_SEARCH_FIELDS, coerce=True, allow_null=False)
    _raise_if(errors)

    if cleaned.get("hasEquity") is False:
        del cleaned["hasEquity"]

    return cleaned


def validate_company_new(data: Mapping[str, Any]) -> Dict[str, Any]:
    cleaned, errors = _validate(data, COMPANY_NEW_OPTIONAL, required=COMPANY_NEW_REQUIRED)
    _raise_if(errors)
    return cleaned


def validate_company_update(data: Mapping[str, Any]) -> Dict[str, Any]:
    cleaned, errors = _validate(data, COMPANY_UPDATE_FIELDS)
    _raise_if(errors)
    return cleaned


def validate_job_new(data: Mapping[str, Any]) -> Dict[str, Any]:
    cleaned, errors = _validate(data, JOB_NEW_OPTIONAL, required=JOB_NEW_REQUIRED)
    _raise_if(errors)
    return cleaned


def validate_job_update(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Job updates may change title, salary and equity, never id or company."""
    cleaned, errors = _validate(data, JOB_UPDATE_FIELDS)
    _raise_if(errors)
    return cleaned
