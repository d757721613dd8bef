"""
Contract test for the `run` command: exit codes, summary output
"""

import json
from pathlib import Path

from typer.testing import CliRunner

from appwrite.exception import AppwriteException

from keepalive.main import app

CLEAN_ENV = {
    "APPWRITE_PROJECTS": None,
    "APPWRITE_ENDPOINT": None,
    "APPWRITE_PROJECT_ID": None,
    "APPWRITE_API_KEY": None,
    "APPWRITE_PROJECT_NAME": None,
}


def _projects_env(*project_ids: str) -> dict:
    entries = [
        {"endpoint": "https://example.test/v1", "projectId": pid, "apiKey": f"key-{pid}"}
        for pid in project_ids
    ]
    return {**CLEAN_ENV, "APPWRITE_PROJECTS": json.dumps(entries)}


def _json_lines(out: str) -> list[dict]:
    return [json.loads(line) for line in out.splitlines() if line.startswith("{")]


def test_run_without_projects_exits_non_zero() -> None:
    """
    No configuration prints help and exits 1
    """
    runner = CliRunner()

    with runner.isolated_filesystem():
        result = runner.invoke(app, ["run"], env=CLEAN_ENV)

    assert result.exit_code == 1
    assert "No projects configured." in result.output
    assert "APPWRITE_PROJECTS" in result.output


def test_run_all_projects_alive(fake_databases, monkeypatch) -> None:
    """
    Every project succeeds -> exit 0 and the all-alive line
    """
    fakes = {
        "a": fake_databases(database=True, collection=True, document=True),
        "b": fake_databases(),
    }
    monkeypatch.setattr("keepalive.main.databases_for", lambda p: fakes[p.project_id])
    runner = CliRunner()

    with runner.isolated_filesystem():
        result = runner.invoke(app, ["run", "--attribute-wait", "0"], env=_projects_env("a", "b"))

    assert result.exit_code == 0, result.output
    assert "Processing 2 project(s)..." in result.stdout
    assert "  Successful: 2" in result.stdout
    assert "All projects alive." in result.stdout

    events = _json_lines(result.stdout)
    assert events[0]["event_type"] == "keepalive_start"
    assert events[-1]["event_type"] == "keepalive_shutdown"
    assert "key-a" not in result.stdout


def test_run_with_failure_exits_non_zero(fake_databases, monkeypatch) -> None:
    """
    Any failed project -> exit 1 and a failed-projects listing
    """
    fakes = {
        "a": fake_databases(database=True, collection=True, document=True),
        "b": fake_databases(errors={"get": AppwriteException("Project is paused", code=403)}),
    }
    monkeypatch.setattr("keepalive.main.databases_for", lambda p: fakes[p.project_id])
    runner = CliRunner()

    with runner.isolated_filesystem():
        result = runner.invoke(app, ["run", "--attribute-wait", "0"], env=_projects_env("a", "b"))

    assert result.exit_code == 1
    assert "  Failed: 1" in result.stdout
    assert "  - b: Project is paused" in result.stdout


def test_run_json_format(fake_databases, monkeypatch) -> None:
    """
    JSON summary is printed as one line
    """
    fake = fake_databases(database=True, collection=True, document=True)
    monkeypatch.setattr("keepalive.main.databases_for", lambda p: fake)
    runner = CliRunner()

    with runner.isolated_filesystem():
        result = runner.invoke(
            app,
            [
                "run",
                "--attribute-wait",
                "0",
                "--format",
                "json",
                "--source",
                "cron",
            ],
            env=_projects_env("a"),
        )

        assert result.exit_code == 0, result.output

        summaries = [line for line in _json_lines(result.stdout) if "meta" in line]
        assert len(summaries) == 1
        assert summaries[0]["total"] == 1
        assert summaries[0]["projects"][0]["action"] == "updated"

    assert fake.document["source"] == "cron"


def test_run_rejects_unknown_format() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["run", "--format", "xml"], env=CLEAN_ENV)

    assert result.exit_code != 0


def test_env_file_is_loaded(fake_databases, monkeypatch) -> None:
    """
    --env-file supplies single-project credentials
    """
    fake = fake_databases(database=True, collection=True, document=True)
    monkeypatch.setattr("keepalive.main.databases_for", lambda p: fake)
    runner = CliRunner()

    with runner.isolated_filesystem():
        Path("keepalive.env").write_text(
            "APPWRITE_ENDPOINT=https://example.test/v1\n"
            "APPWRITE_PROJECT_ID=from-file\n"
            "APPWRITE_API_KEY=file-key\n",
            encoding="utf-8",
        )
        result = runner.invoke(
            app,
            ["run", "--attribute-wait", "0", "--env-file", "keepalive.env"],
            env=CLEAN_ENV,
        )

    assert result.exit_code == 0, result.output
    loaded = [e for e in _json_lines(result.stdout) if e.get("event_type") == "config_loaded"]
    assert loaded[0]["source"] == "env"
