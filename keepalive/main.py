"""
keepalive.main
------------
AUTHOR: carter-vin

Keep Appwrite free-tier projects alive.

Key contract:
- `appwrite-keepalive run` pings every configured project, prints a summary,
  exits 1 if any project failed or none are configured.
- `appwrite-keepalive setup` provisions the keepalive resources once.
- `appwrite-keepalive version` prints version + runtime env.
"""

from __future__ import annotations

import platform
import sys
from dataclasses import dataclass
from datetime import datetime, timezone

import typer
from dotenv import find_dotenv, load_dotenv

from keepalive.config import (
    API_KEY_VAR,
    ENDPOINT_VAR,
    PROJECT_ID_VAR,
    PROJECT_NAME_VAR,
    PROJECTS_VAR,
    load_projects_from_env,
    load_single_project,
    missing_single_project_vars,
)
from keepalive.logging import emit_event
from keepalive.model import HEARTBEAT_SOURCE, TOOL_VERSION, to_json, utc_now_iso
from keepalive.provision import provision_project
from keepalive.runner import DEFAULT_ATTRIBUTE_WAIT_S, databases_for, keepalive_all
from keepalive.summary import RULE, render_json, render_text, summarize_results

app = typer.Typer(
    add_completion=False,
    help="appwrite-keepalive: keep Appwrite free-tier projects alive",
)


@dataclass(frozen=True)
class EnvironmentInfo:
    python_version: str
    os: str
    machine: str
    utc_now: str


def collect_environment_info() -> EnvironmentInfo:
    return EnvironmentInfo(
        python_version=sys.version.split()[0],
        os=f"{platform.system()} {platform.release()}",
        machine=platform.machine(),
        utc_now=datetime.now(timezone.utc).isoformat(),
    )


def _load_env_file(env_file: str | None) -> None:
    """
    Load a .env file without overriding the real environment
    """
    if env_file:
        load_dotenv(env_file, override=False)
        return
    found = find_dotenv(usecwd=True)
    if found:
        load_dotenv(found, override=False)


def _echo_config_help() -> None:
    typer.echo("No projects configured.", err=True)
    typer.echo("", err=True)
    typer.echo("Set environment variables:", err=True)
    typer.echo(f"  {ENDPOINT_VAR}    - Your Appwrite endpoint", err=True)
    typer.echo(f"  {PROJECT_ID_VAR}  - Your project ID", err=True)
    typer.echo(f"  {API_KEY_VAR}     - Your API key", err=True)
    typer.echo(f"  {PROJECT_NAME_VAR} - Optional friendly name", err=True)
    typer.echo("", err=True)
    typer.echo("Or for multiple projects:", err=True)
    typer.echo(f"  {PROJECTS_VAR}    - JSON array of project configs", err=True)


# -----------------------------
# ROOT COMMAND BEHAVIOR
# -----------------------------
@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """
    Print a short hint when no subcommand is given
    """
    if ctx.invoked_subcommand is None:
        typer.echo("No command provided. Try: appwrite-keepalive --help")


# -----------------------------
# CLI COMMANDS
# -----------------------------
@app.command()
def version() -> None:
    """
    Print tool version & runtime env
    """
    env = collect_environment_info()

    typer.echo(f"appwrite-keepalive v{TOOL_VERSION}")
    typer.echo(f"python={env.python_version}")
    typer.echo(f"os={env.os}")
    typer.echo(f"machine={env.machine}")
    typer.echo(f"utc_now={env.utc_now}")


@app.command("run")
def run(
    env_file: str | None = typer.Option(
        None,
        "--env-file",
        help="Path to a .env file (default: nearest .env from the working directory).",
    ),
    source: str = typer.Option(
        HEARTBEAT_SOURCE,
        "--source",
        help="Value written to the heartbeat 'source' field.",
    ),
    attribute_wait: float = typer.Option(
        DEFAULT_ATTRIBUTE_WAIT_S,
        "--attribute-wait",
        min=0.0,
        help="Seconds to wait for new attributes to become available.",
    ),
    output_format: str = typer.Option(
        "text",
        "--format",
        help="Summary format: text or json.",
    ),
) -> None:
    """
    Send a heartbeat to every configured project
    """
    if output_format not in {"text", "json"}:
        raise typer.BadParameter("--format must be text or json")

    emit_event("keepalive_start", mode="run")

    try:
        _load_env_file(env_file)
        projects = load_projects_from_env()

        if not projects:
            _echo_config_help()
            raise typer.Exit(code=1)

        typer.echo(f"appwrite-keepalive v{TOOL_VERSION}")
        typer.echo(RULE)
        typer.echo(f"Processing {len(projects)} project(s)...")

        results = keepalive_all(
            projects,
            databases_factory=databases_for,
            source=source,
            attribute_wait_s=attribute_wait,
        )
        summary = summarize_results(results)

        emit_event(
            "keepalive_summary",
            total=summary.total,
            successful=summary.successful,
            failed=summary.failed,
        )

        payload = render_json(
            summary,
            meta={"tool_version": TOOL_VERSION, "generated_at": utc_now_iso()},
        )
        if output_format == "json":
            typer.echo(to_json(payload))
        else:
            typer.echo("")
            typer.echo(render_text(summary))

        if not summary.all_ok:
            raise typer.Exit(code=1)

    finally:
        emit_event("keepalive_shutdown", mode="run")


@app.command("setup")
def setup(
    env_file: str | None = typer.Option(
        None,
        "--env-file",
        help="Path to a .env file (default: nearest .env from the working directory).",
    ),
) -> None:
    """
    Create the keepalive database, collection and attributes (run once)
    """
    emit_event("keepalive_start", mode="setup")

    try:
        _load_env_file(env_file)

        config = load_single_project()
        if config is None:
            typer.echo("Missing required environment variables:", err=True)
            for var in missing_single_project_vars():
                typer.echo(f"  - {var}", err=True)
            raise typer.Exit(code=1)

        typer.echo("appwrite-keepalive setup")
        typer.echo(RULE)
        typer.echo(f"Endpoint: {config.endpoint}")
        typer.echo(f"Project: {config.project_id}")
        typer.echo("")

        try:
            steps = provision_project(config, databases_factory=databases_for)
        except Exception as e:
            typer.echo(f"Setup failed: {e}", err=True)
            raise typer.Exit(code=1)

        for step in steps:
            verb = "Created" if step.status == "created" else "Exists"
            typer.echo(f"  {verb}: {step.resource} ({step.identifier})")

        typer.echo("")
        typer.echo(RULE)
        typer.echo("Setup complete.")

    finally:
        emit_event("keepalive_shutdown", mode="setup")


if __name__ == "__main__":
    app()
