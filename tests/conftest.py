"""
Pytest configuration and shared fixtures.
"""

import json
from pathlib import Path
from typing import Any, Dict, List

import pytest

from jobly.database import Database, init_database
from jobly.models import Company, Job

TEST_COMPANIES = [
    {
        "handle": "c1",
        "name": "C1",
        "numEmployees": 1,
        "description": "Desc1",
        "logoUrl": "http://c1.img",
    },
    {
        "handle": "c2",
        "name": "C2",
        "numEmployees": 2,
        "description": "Desc2",
        "logoUrl": "http://c2.img",
    },
    {
        "handle": "c3",
        "name": "C3",
        "numEmployees": 3,
        "description": "Desc3",
        "logoUrl": "http://c3.img",
    },
]

TEST_JOBS = [
    {"title": "testJob1", "salary": 100000, "equity": "0.01", "companyHandle": "c3"},
    {"title": "testJob2", "salary": 200000, "equity": "0", "companyHandle": "c3"},
    {"title": "testJob3", "salary": 300000, "equity": None, "companyHandle": "c2"},
    {"title": "testJob4", "salary": 400000, "equity": "0.01", "companyHandle": "c2"},
]


@pytest.fixture
def db_url(tmp_path) -> str:
    """URL of a temporary SQLite database file."""
    return f"sqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
def empty_db(db_url) -> Database:
    """Database with tables but no rows."""
    database = init_database(db_url)
    yield database
    database.close()


@pytest.fixture
def db(empty_db) -> Database:
    """Database seeded with three companies and four jobs."""
    companies = Company(empty_db)
    for data in TEST_COMPANIES:
        companies.create(data)
    jobs = Job(empty_db)
    for data in TEST_JOBS:
        jobs.create(data)
    return empty_db


@pytest.fixture
def test_jobs(db) -> List[Dict[str, Any]]:
    """Seeded jobs as stored, ordered by title (testJob1..testJob4)."""
    return Job(db).find_all()


@pytest.fixture
def seed_file(tmp_path) -> Path:
    """Seed JSON file with the test companies and jobs."""
    path = tmp_path / "seed.json"
    path.write_text(json.dumps({"companies": TEST_COMPANIES, "jobs": TEST_JOBS}))
    return path
