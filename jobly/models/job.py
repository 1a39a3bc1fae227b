"""
Job model.

Responsibilities:
- CRUD operations for the jobs table.
- Job search filters.

Non-Responsibilities:
- No request validation (see jobly.validation).

Invariant:
A job always belongs to an existing company.
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

UPDATE_FIELDS = ("title", "salary", "equity")

COLUMN_NAMES: Dict[str, str] = {}

SEARCH_FILTERS = {
    "titleLike": case_insensitive_like("title"),
    "minSalary": comparison("salary", ">="),
    "hasEquity": comparison("(equity > 0)", "="),
}

SEARCH_TRANSFORMS = {
    "titleLike": wrap_wildcards,
}

_JOB_FIELDS = 'id, title, salary, equity, company_handle AS "companyHandle"'


def format_equity(row: Dict[str, Any]) -> Dict[str, Any]:
    """Report equity as a decimal string, as Postgres NUMERIC does."""
    equity = row.get("equity")
    if equity is not None:
        row["equity"] = str(equity)
    return row


class Job:
    """Jobs backed by a query client (see jobly.database.Database)."""

    def __init__(self, db):
        self.db = db

    def create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Create a job from {title, salary, equity, companyHandle}.

        Returns:
            {id, title, salary, equity, companyHandle}

        Raises:
            BadRequestError: If the company does not exist
        """
        company_handle = data["companyHandle"]
        company_check = self.db.query(
            """SELECT handle
               FROM companies
               WHERE handle = $1""",
            [company_handle],
        )
        if not company_check.rows:
            raise BadRequestError(f"No company with handle: {company_handle}")

        result = self.db.query(
            f"""INSERT INTO jobs (title,
                                  salary,
                                  equity,
                                  company_handle)
                VALUES ($1, $2, $3, $4)
                RETURNING {_JOB_FIELDS}""",
            [
                data["title"],
                data.get("salary"),
                data.get("equity"),
                company_handle,
            ],
        )
        job = format_equity(result.rows[0])
        get_logger().info("Job created", id=job["id"], company_handle=company_handle)
        return job

    def find_all(self, filters: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Find jobs matching optional filters, ordered by title.

        Filters: titleLike (case-insensitive substring), minSalary,
        hasEquity (True keeps jobs with non-zero equity).
        """
        where, values = build_where_clause(filters or {}, SEARCH_FILTERS, SEARCH_TRANSFORMS)
        result = self.db.query(
            f"""SELECT {_JOB_FIELDS}
                FROM jobs
                {where}
                ORDER BY title, id""",
            values,
        )
        return [format_equity(row) for row in result.rows]

    def get(self, job_id: int) -> Dict[str, Any]:
        """
        Return {id, title, salary, equity, companyHandle} for a job.

        Raises:
            NotFoundError: If no such job
        """
        result = self.db.query(
            f"""SELECT {_JOB_FIELDS}
                FROM jobs
                WHERE id = $1""",
            [job_id],
        )
        if not result.rows:
            raise NotFoundError(f"No job: {job_id}")
        return format_equity(result.rows[0])

    def update(self, job_id: int, data: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Update some of {title, salary, equity}.

        Raises:
            BadRequestError: If a field other than title, salary or equity is given
            NoDataProvided: If data is empty
            NotFoundError: If no such job
        """
        unknown = [f"Unknown field: {key}" for key in data if key not in UPDATE_FIELDS]
        if unknown:
            raise BadRequestError(unknown)

        set_cols, values = build_set_clause(data, COLUMN_NAMES)
        id_idx = len(values) + 1

        result = self.db.query(
            f"""UPDATE jobs
                SET {set_cols}
                WHERE id = ${id_idx}
                RETURNING {_JOB_FIELDS}""",
            [*values, job_id],
        )
        if not result.rows:
            raise NotFoundError(f"No job: {job_id}")

        get_logger().info("Job updated", id=job_id, fields=list(data))
        return format_equity(result.rows[0])

    def remove(self, job_id: int) -> None:
        """
        Delete a job.

        Raises:
            NotFoundError: If no such job
        """
        result = self.db.query(
            """DELETE
               FROM jobs
               WHERE id = $1
               RETURNING id""",
            [job_id],
        )
        if not result.rows:
            raise NotFoundError(f"No job: {job_id}")
        get_logger().info("Job removed", id=job_id)
