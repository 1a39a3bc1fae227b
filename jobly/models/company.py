"""
Company model.

Responsibilities:
- CRUD operations for the companies table.
- Company search filters.

Non-Responsibilities:
- No request validation (see jobly.validation).
"""

from typing import Any, Dict, List, Mapping, Optional

from ..errors import BadRequestError, NotFoundError
from ..logger import get_logger
from ..sql import (
    build_set_clause,
    build_where_clause,
    case_insensitive_like,
    comparison,
    wrap_wildcards,
)
from .job import format_equity

UPDATE_FIELDS = ("name", "description", "numEmployees", "logoUrl")

COLUMN_NAMES = {
    "numEmployees": "num_employees",
    "logoUrl": "logo_url",
}

SEARCH_FILTERS = {
    "nameLike": case_insensitive_like("name"),
    "minEmployees": comparison("num_employees", ">="),
    "maxEmployees": comparison("num_employees", "<="),
}

SEARCH_TRANSFORMS = {
    "nameLike": wrap_wildcards,
}

_COMPANY_FIELDS = 'handle, name, description, num_employees AS "numEmployees", logo_url AS "logoUrl"'


class Company:
    """Companies backed by a query client (see jobly.database.Database)."""

    def __init__(self, db):
        self.db = db

    def create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Create a company from {handle, name, description, numEmployees, logoUrl}.

        Raises:
            BadRequestError: If the handle or the name is already taken
        """
        handle = data["handle"]
        duplicate_check = self.db.query(
            """SELECT handle
               FROM companies
               WHERE handle = $1""",
            [handle],
        )
        if duplicate_check.rows:
            raise BadRequestError(f"Duplicate company: {handle}")
        self._check_name_free(data["name"])

        result = self.db.query(
            f"""INSERT INTO companies (handle,
                                       name,
                                       description,
                                       num_employees,
                                       logo_url)
                VALUES ($1, $2, $3, $4, $5)
                RETURNING {_COMPANY_FIELDS}""",
            [
                handle,
                data["name"],
                data["description"],
                data.get("numEmployees"),
                data.get("logoUrl"),
            ],
        )
        company = result.rows[0]
        get_logger().info("Company created", handle=handle)
        return company

    def find_all(self, filters: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Find companies matching optional filters, ordered by name.

        Filters: nameLike (case-insensitive substring), minEmployees,
        maxEmployees. Values must already be validated and typed.
        """
        where, values = build_where_clause(filters or {}, SEARCH_FILTERS, SEARCH_TRANSFORMS)
        result = self.db.query(
            f"""SELECT {_COMPANY_FIELDS}
                FROM companies
                {where}
                ORDER BY name""",
            values,
        )
        return result.rows

    def get(self, handle: str) -> Dict[str, Any]:
        """
        Return a company with its jobs.

        Returns:
            {handle, name, description, numEmployees, logoUrl, jobs}
            where jobs is [{id, title, salary, equity}, ...]

        Raises:
            NotFoundError: If no such company
        """
        result = self.db.query(
            f"""SELECT {_COMPANY_FIELDS}
                FROM companies
                WHERE handle = $1""",
            [handle],
        )
        if not result.rows:
            raise NotFoundError(f"No company: {handle}")
        company = result.rows[0]

        jobs = self.db.query(
            """SELECT id, title, salary, equity
               FROM jobs
               WHERE company_handle = $1
               ORDER BY id""",
            [handle],
        )
        company["jobs"] = [format_equity(job) for job in jobs.rows]
        return company

    def update(self, handle: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Update some of {name, description, numEmployees, logoUrl}.

        Raises:
            BadRequestError: If a field cannot be updated or the new name is taken
            NoDataProvided: If data is empty
            NotFoundError: If no such company
        """
        unknown = [f"Unknown field: {key}" for key in data if key not in UPDATE_FIELDS]
        if unknown:
            raise BadRequestError(unknown)
        if data.get("name") is not None:
            self._check_name_free(data["name"], handle)

        set_cols, values = build_set_clause(data, COLUMN_NAMES)
        handle_idx = len(values) + 1

        result = self.db.query(
            f"""UPDATE companies
                SET {set_cols}
                WHERE handle = ${handle_idx}
                RETURNING {_COMPANY_FIELDS}""",
            [*values, handle],
        )
        if not result.rows:
            raise NotFoundError(f"No company: {handle}")

        get_logger().info("Company updated", handle=handle, fields=list(data))
        return result.rows[0]

    def _check_name_free(self, name: str, handle: Optional[str] = None) -> None:
        """Raise BadRequestError if another company already uses name."""
        result = self.db.query(
            """SELECT handle
               FROM companies
               WHERE name = $1""",
            [name],
        )
        if any(row["handle"] != handle for row in result.rows):
            raise BadRequestError(f"Duplicate company name: {name}")

    def remove(self, handle: str) -> None:
        """
        Delete a company (its jobs go with it).

        Raises:
            NotFoundError: If no such company
        """
        result = self.db.query(
            """DELETE
               FROM companies
               WHERE handle = $1
               RETURNING handle""",
            [handle],
        )
        if not result.rows:
            raise NotFoundError(f"No company: {handle}")
        get_logger().info("Company removed", handle=handle)
