import argparse
import json
import sys
from pathlib import Path
from typing import Any

from . import __version__
from .config import get_database_url, load_env, normalize_database_url
from .database import get_database, init_database
from .errors import BadRequestError, JoblyError, NotFoundError
from .logger import get_logger
from .models import Company, Job
from .validation import (
    validate_company_new,
    validate_company_search,
    validate_company_update,
    validate_job_new,
    validate_job_search,
    validate_job_update,
)


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _load_json(path_str: str) -> Any:
    input_path = Path(path_str)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    with input_path.open("r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise SystemExit(f"Invalid JSON in {input_path}: {e}")


def _search_params(args: argparse.Namespace, names: dict) -> dict:
    """Collect the given CLI options that were set, keyed by filter name."""
    return {
        key: getattr(args, attr)
        for attr, key in names.items()
        if getattr(args, attr) is not None
    }


def cmd_init_db(args: argparse.Namespace) -> None:
    init_database(args.db)
    print(f"Initialized database: {args.db}")


def cmd_seed(args: argparse.Namespace) -> None:
    data = _load_json(args.input)
    if not isinstance(data, dict):
        raise SystemExit("Seed file must hold an object with 'companies' and 'jobs' lists")
    companies = [validate_company_new(c) for c in data.get("companies", [])]
    jobs = [validate_job_new(j) for j in data.get("jobs", [])]

    if args.dry_run:
        print(f"[DRY RUN] Would add {len(companies)} companies and {len(jobs)} jobs")
        for c in companies:
            print(f" - company {c['handle']}: {c['name']}")
        for j in jobs:
            print(f" - job {j['title']} @ {j['companyHandle']}")
        return

    db = init_database(args.db)
    # All or nothing, so a failed seed can be fixed and rerun
    with db.transaction():
        company_model = Company(db)
        job_model = Job(db)
        for c in companies:
            company_model.create(c)
        for j in jobs:
            job_model.create(j)
    print(f"Done. companies={len(companies)} jobs={len(jobs)}")


def cmd_companies(args: argparse.Namespace) -> None:
    query = _search_params(args, {
        "name_like": "nameLike",
        "min_employees": "minEmployees",
        "max_employees": "maxEmployees",
    })
    filters = validate_company_search(query)
    _print_json({"companies": Company(get_database(args.db)).find_all(filters)})


def cmd_company(args: argparse.Namespace) -> None:
    _print_json({"company": Company(get_database(args.db)).get(args.handle)})


def cmd_add_company(args: argparse.Namespace) -> None:
    data = validate_company_new(_load_json(args.input))
    _print_json({"company": Company(get_database(args.db)).create(data)})


def cmd_update_company(args: argparse.Namespace) -> None:
    data = validate_company_update(_load_json(args.input))
    _print_json({"company": Company(get_database(args.db)).update(args.handle, data)})


def cmd_remove_company(args: argparse.Namespace) -> None:
    Company(get_database(args.db)).remove(args.handle)
    _print_json({"deleted": args.handle})


def cmd_jobs(args: argparse.Namespace) -> None:
    query = _search_params(args, {
        "title_like": "titleLike",
        "min_salary": "minSalary",
        "has_equity": "hasEquity",
    })
    filters = validate_job_search(query)
    _print_json({"jobs": Job(get_database(args.db)).find_all(filters)})


def cmd_job(args: argparse.Namespace) -> None:
    _print_json({"job": Job(get_database(args.db)).get(args.id)})


def cmd_add_job(args: argparse.Namespace) -> None:
    data = validate_job_new(_load_json(args.input))
    _print_json({"job": Job(get_database(args.db)).create(data)})


def cmd_update_job(args: argparse.Namespace) -> None:
    data = validate_job_update(_load_json(args.input))
    _print_json({"job": Job(get_database(args.db)).update(args.id, data)})


def cmd_remove_job(args: argparse.Namespace) -> None:
    Job(get_database(args.db)).remove(args.id)
    _print_json({"deleted": args.id})


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jobly", description="Jobly: companies and job listings")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--db", default=None, help="Database URL (default: JOBLY_DATABASE_URL, DATABASE_URL or sqlite:///data/jobly.db)")

    subparsers = parser.add_subparsers(dest="command")

    ini = subparsers.add_parser("init-db", help="Create the companies and jobs tables")
    ini.set_defaults(func=cmd_init_db)

    sed = subparsers.add_parser("seed", help="Load companies and jobs from a JSON file")
    sed.add_argument("--input", required=True, help="JSON file: {\"companies\": [...], \"jobs\": [...]}")
    sed.add_argument("--dry-run", action="store_true", help="Validate and list, write nothing")
    sed.set_defaults(func=cmd_seed)

    cos = subparsers.add_parser("companies", help="List companies, optionally filtered")
    cos.add_argument("--name-like", help="Case-insensitive substring of the company name")
    cos.add_argument("--min-employees", help="Minimum number of employees")
    cos.add_argument("--max-employees", help="Maximum number of employees")
    cos.set_defaults(func=cmd_companies)

    co = subparsers.add_parser("company", help="Show a company and its jobs")
    co.add_argument("--handle", required=True, help="Company handle")
    co.set_defaults(func=cmd_company)

    aco = subparsers.add_parser("add-company", help="Create a company from a JSON file")
    aco.add_argument("--input", required=True, help="JSON: {handle, name, description, numEmployees, logoUrl}")
    aco.set_defaults(func=cmd_add_company)

    uco = subparsers.add_parser("update-company", help="Partially update a company from a JSON file")
    uco.add_argument("--handle", required=True, help="Company handle")
    uco.add_argument("--input", required=True, help="JSON with any of {name, description, numEmployees, logoUrl}")
    uco.set_defaults(func=cmd_update_company)

    rco = subparsers.add_parser("remove-company", help="Delete a company and its jobs")
    rco.add_argument("--handle", required=True, help="Company handle")
    rco.set_defaults(func=cmd_remove_company)

    jbs = subparsers.add_parser("jobs", help="List jobs, optionally filtered")
    jbs.add_argument("--title-like", help="Case-insensitive substring of the job title")
    jbs.add_argument("--min-salary", help="Minimum salary")
    jbs.add_argument("--has-equity", choices=["true", "false"], help="true: only jobs with non-zero equity")
    jbs.set_defaults(func=cmd_jobs)

    jb = subparsers.add_parser("job", help="Show a job")
    jb.add_argument("--id", required=True, type=int, help="Job id")
    jb.set_defaults(func=cmd_job)

    ajb = subparsers.add_parser("add-job", help="Create a job from a JSON file")
    ajb.add_argument("--input", required=True, help="JSON: {title, salary, equity, companyHandle}")
    ajb.set_defaults(func=cmd_add_job)

    ujb = subparsers.add_parser("update-job", help="Partially update a job from a JSON file")
    ujb.add_argument("--id", required=True, type=int, help="Job id")
    ujb.add_argument("--input", required=True, help="JSON with any of {title, salary, equity}")
    ujb.set_defaults(func=cmd_update_job)

    rjb = subparsers.add_parser("remove-job", help="Delete a job")
    rjb.add_argument("--id", required=True, type=int, help="Job id")
    rjb.set_defaults(func=cmd_remove_job)

    return parser


def main(argv=None):
    # Load .env if present (JOBLY_DATABASE_URL, JOBLY_LOG_LEVEL, ...)
    load_env()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if not hasattr(args, "func"):
        parser.print_help()
        return

    if args.db is None:
        args.db = get_database_url()
    else:
        args.db = normalize_database_url(args.db)

    try:
        args.func(args)
    except BadRequestError as e:
        print("Invalid:", file=sys.stderr)
        for err in e.errors:
            print(f" - {err}", file=sys.stderr)
        raise SystemExit(2)
    except NotFoundError as e:
        raise SystemExit(f"Not found: {e.message}")
    except JoblyError as e:
        get_logger().error("Command failed", command=args.command, error=e.message)
        raise SystemExit(str(e))


if __name__ == "__main__":
    main()
