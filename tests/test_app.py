"""
Tests for the jobly command line.
"""

import json
import logging

import pytest

from jobly import __version__
from jobly.app import main
from jobly.database import Database
from jobly.logger import get_logger, reset_logger


def run(capsys, *argv):
    main(list(argv))
    return capsys.readouterr().out


@pytest.fixture(autouse=True)
def in_tmp_dir(tmp_path, monkeypatch):
    """Keep .env lookups and default paths inside tmp_path."""
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def seeded(db_url, seed_file, capsys) -> str:
    main(["--db", db_url, "seed", "--input", str(seed_file)])
    capsys.readouterr()
    return db_url


@pytest.fixture
def write_json(tmp_path):
    def _write(data, name="input.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data))
        return str(path)
    return _write


class TestBasics:

    def test_version(self, capsys):
        assert run(capsys, "--version").strip() == __version__

    def test_no_command_prints_help(self, capsys):
        assert "usage: jobly" in run(capsys)

    def test_init_db(self, capsys, tmp_path):
        url = f"sqlite:///{tmp_path / 'cli.db'}"
        out = run(capsys, "--db", url, "init-db")

        assert "Initialized database" in out
        assert (tmp_path / "cli.db").exists()

    def test_db_from_environment(self, capsys, tmp_path, monkeypatch):
        monkeypatch.setenv("JOBLY_DATABASE_URL", f"sqlite:///{tmp_path / 'env.db'}")

        run(capsys, "init-db")

        assert (tmp_path / "env.db").exists()

    def test_postgres_db_option_is_normalized(self, capsys, monkeypatch):
        urls = []
        monkeypatch.setattr("jobly.app.init_database", urls.append)

        run(capsys, "--db", "postgres://u:p@localhost/jobly", "init-db")

        assert urls == ["postgresql+psycopg://u:p@localhost/jobly"]

    def test_log_level_from_dotenv(self, capsys, tmp_path, monkeypatch):
        monkeypatch.setenv("JOBLY_LOG_LEVEL", "")
        monkeypatch.delenv("JOBLY_LOG_LEVEL")
        (tmp_path / ".env").write_text("JOBLY_LOG_LEVEL=DEBUG\n")
        reset_logger()
        try:
            run(capsys, "--db", f"sqlite:///{tmp_path / 'cli.db'}", "init-db")
            assert get_logger().logger.level == logging.DEBUG
        finally:
            reset_logger()


class TestSeed:

    def test_seed(self, capsys, db_url, seed_file):
        out = run(capsys, "--db", db_url, "seed", "--input", str(seed_file))
        assert "companies=3 jobs=4" in out

        companies = json.loads(run(capsys, "--db", db_url, "companies"))["companies"]
        assert [c["handle"] for c in companies] == ["c1", "c2", "c3"]

    def test_dry_run_writes_nothing(self, capsys, tmp_path, seed_file):
        url = f"sqlite:///{tmp_path / 'dry.db'}"
        out = run(capsys, "--db", url, "seed", "--input", str(seed_file), "--dry-run")

        assert "[DRY RUN] Would add 3 companies and 4 jobs" in out
        assert not (tmp_path / "dry.db").exists()

    def test_missing_file(self, capsys, db_url):
        with pytest.raises(SystemExit) as excinfo:
            main(["--db", db_url, "seed", "--input", "missing.json"])
        assert "Input file not found" in str(excinfo.value.code)

    def test_invalid_records(self, capsys, db_url, write_json):
        path = write_json({"companies": [{"handle": "x"}], "jobs": []})

        with pytest.raises(SystemExit) as excinfo:
            main(["--db", db_url, "seed", "--input", path])

        assert excinfo.value.code == 2
        assert "Missing required field: name" in capsys.readouterr().err

    def test_failed_seed_writes_nothing(self, capsys, db_url, write_json):
        companies = [
            {"handle": "a", "name": "Same", "description": "D"},
            {"handle": "b", "name": "Same", "description": "D"},
        ]
        path = write_json({"companies": companies, "jobs": []})

        with pytest.raises(SystemExit) as excinfo:
            main(["--db", db_url, "seed", "--input", path])

        assert excinfo.value.code == 2
        assert "Duplicate company name: Same" in capsys.readouterr().err
        db = Database(db_url)
        assert db.query("SELECT handle FROM companies").rows == []
        db.close()

        companies[1]["name"] = "Other"
        path = write_json({"companies": companies, "jobs": []})
        assert "companies=2 jobs=0" in run(capsys, "--db", db_url, "seed", "--input", path)

    def test_failed_job_rolls_back_companies(self, capsys, db_url, write_json):
        path = write_json({
            "companies": [{"handle": "a", "name": "A", "description": "D"}],
            "jobs": [{"title": "t", "companyHandle": "missing"}],
        })

        with pytest.raises(SystemExit) as excinfo:
            main(["--db", db_url, "seed", "--input", path])

        assert excinfo.value.code == 2
        db = Database(db_url)
        assert db.query("SELECT handle FROM companies").rows == []
        db.close()


class TestCompanies:

    def test_filters(self, capsys, seeded):
        out = run(capsys, "--db", seeded, "companies", "--name-like", "c", "--min-employees", "2")
        assert [c["handle"] for c in json.loads(out)["companies"]] == ["c2", "c3"]

    def test_min_greater_than_max(self, capsys, seeded):
        with pytest.raises(SystemExit) as excinfo:
            main(["--db", seeded, "companies", "--min-employees", "3", "--max-employees", "1"])

        assert excinfo.value.code == 2
        assert "minEmployees cannot be greater than maxEmployees" in capsys.readouterr().err

    def test_get(self, capsys, seeded):
        company = json.loads(run(capsys, "--db", seeded, "company", "--handle", "c3"))["company"]

        assert company["name"] == "C3"
        assert [j["title"] for j in company["jobs"]] == ["testJob1", "testJob2"]

    def test_get_not_found(self, capsys, seeded):
        with pytest.raises(SystemExit) as excinfo:
            main(["--db", seeded, "company", "--handle", "nope"])
        assert excinfo.value.code == "Not found: No company: nope"

    def test_add_update_remove(self, capsys, seeded, write_json):
        new = {"handle": "new", "name": "New", "description": "Desc"}
        created = json.loads(run(capsys, "--db", seeded, "add-company", "--input", write_json(new)))
        assert created["company"]["handle"] == "new"

        changes = write_json({"numEmployees": 7}, name="changes.json")
        updated = json.loads(run(capsys, "--db", seeded, "update-company", "--handle", "new", "--input", changes))
        assert updated["company"]["numEmployees"] == 7

        removed = json.loads(run(capsys, "--db", seeded, "remove-company", "--handle", "new"))
        assert removed == {"deleted": "new"}

    def test_duplicate(self, capsys, seeded, write_json):
        path = write_json({"handle": "c1", "name": "Other", "description": "D"})

        with pytest.raises(SystemExit) as excinfo:
            main(["--db", seeded, "add-company", "--input", path])

        assert excinfo.value.code == 2
        assert "Duplicate company: c1" in capsys.readouterr().err

    def test_duplicate_name(self, capsys, seeded, write_json):
        path = write_json({"handle": "c9", "name": "C1", "description": "D"})

        with pytest.raises(SystemExit) as excinfo:
            main(["--db", seeded, "add-company", "--input", path])

        assert excinfo.value.code == 2
        assert "Duplicate company name: C1" in capsys.readouterr().err

    def test_update_to_taken_name(self, capsys, seeded, write_json):
        path = write_json({"name": "C2"})

        with pytest.raises(SystemExit) as excinfo:
            main(["--db", seeded, "update-company", "--handle", "c1", "--input", path])

        assert excinfo.value.code == 2
        assert "Duplicate company name: C2" in capsys.readouterr().err

    def test_update_without_data(self, capsys, seeded, write_json):
        with pytest.raises(SystemExit) as excinfo:
            main(["--db", seeded, "update-company", "--handle", "c1", "--input", write_json({})])

        assert excinfo.value.code == 2
        assert "No data" in capsys.readouterr().err


class TestJobs:

    def test_all(self, capsys, seeded):
        jobs = json.loads(run(capsys, "--db", seeded, "jobs"))["jobs"]
        assert [j["title"] for j in jobs] == ["testJob1", "testJob2", "testJob3", "testJob4"]

    def test_filters(self, capsys, seeded):
        out = run(
            capsys, "--db", seeded, "jobs",
            "--title-like", "t", "--min-salary", "200000", "--has-equity", "true",
        )
        jobs = json.loads(out)["jobs"]

        assert len(jobs) == 1
        assert jobs[0]["title"] == "testJob4"
        assert jobs[0]["equity"] == "0.01"

    def test_has_equity_false_lists_all(self, capsys, seeded):
        jobs = json.loads(run(capsys, "--db", seeded, "jobs", "--has-equity", "false"))["jobs"]
        assert len(jobs) == 4

    def test_bad_salary(self, capsys, seeded):
        with pytest.raises(SystemExit) as excinfo:
            main(["--db", seeded, "jobs", "--min-salary", "lots"])
        assert excinfo.value.code == 2

    def test_add_get_update_remove(self, capsys, seeded, write_json):
        new = {"title": "worker", "salary": 10, "equity": 0.2, "companyHandle": "c1"}
        job = json.loads(run(capsys, "--db", seeded, "add-job", "--input", write_json(new)))["job"]
        job_id = str(job["id"])
        assert job["equity"] == "0.2"

        fetched = json.loads(run(capsys, "--db", seeded, "job", "--id", job_id))["job"]
        assert fetched == job

        changes = write_json({"title": "boss"}, name="changes.json")
        updated = json.loads(run(capsys, "--db", seeded, "update-job", "--id", job_id, "--input", changes))
        assert updated["job"]["title"] == "boss"

        assert json.loads(run(capsys, "--db", seeded, "remove-job", "--id", job_id)) == {"deleted": job["id"]}

        with pytest.raises(SystemExit) as excinfo:
            main(["--db", seeded, "job", "--id", job_id])
        assert excinfo.value.code == f"Not found: No job: {job_id}"

    def test_add_job_unknown_company(self, capsys, seeded, write_json):
        path = write_json({"title": "worker", "companyHandle": "nope"})

        with pytest.raises(SystemExit) as excinfo:
            main(["--db", seeded, "add-job", "--input", path])

        assert excinfo.value.code == 2
        assert "No company with handle: nope" in capsys.readouterr().err
