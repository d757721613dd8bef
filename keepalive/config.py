"""
keepalive.config
AUTHOR: carter-vin

Project credentials from the environment

Sources (first match wins):
- APPWRITE_PROJECTS: JSON array of {endpoint, projectId, apiKey, name?}
- APPWRITE_ENDPOINT + APPWRITE_PROJECT_ID + APPWRITE_API_KEY (single project)

Malformed config is reported as a config_invalid event, never raised.
"""

from __future__ import annotations

import json
import os
from typing import Any, Mapping

from keepalive.logging import emit_event
from keepalive.model import ProjectConfig

PROJECTS_VAR = "APPWRITE_PROJECTS"
ENDPOINT_VAR = "APPWRITE_ENDPOINT"
PROJECT_ID_VAR = "APPWRITE_PROJECT_ID"
API_KEY_VAR = "APPWRITE_API_KEY"
PROJECT_NAME_VAR = "APPWRITE_PROJECT_NAME"

SINGLE_PROJECT_VARS = (ENDPOINT_VAR, PROJECT_ID_VAR, API_KEY_VAR)

_REQUIRED_KEYS = ("endpoint", "projectId", "apiKey")


def _normalize_endpoint(endpoint: str) -> str:
    return endpoint.strip().rstrip("/")


def _project_from_entry(entry: Any) -> ProjectConfig:
    """
    Build a ProjectConfig from one APPWRITE_PROJECTS element

    Raises ValueError on invalid entries
    """
    if not isinstance(entry, dict):
        raise ValueError(f"expected object, got {type(entry).__name__}")

    for key in _REQUIRED_KEYS:
        value = entry.get(key)
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"missing or empty '{key}'")

    name = entry.get("name")
    if name is not None and not isinstance(name, str):
        raise ValueError("'name' must be a string")

    return ProjectConfig(
        endpoint=_normalize_endpoint(entry["endpoint"]),
        project_id=entry["projectId"].strip(),
        api_key=entry["apiKey"].strip(),
        name=name or None,
    )


def _load_multi(raw: str) -> list[ProjectConfig] | None:
    """
    Parse APPWRITE_PROJECTS

    Returns None when the value is unusable (caller falls back)
    """
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        emit_event("config_invalid", source=PROJECTS_VAR, message=f"invalid JSON: {e}")
        return None

    if not isinstance(parsed, list):
        emit_event(
            "config_invalid",
            source=PROJECTS_VAR,
            message=f"expected JSON array, got {type(parsed).__name__}",
        )
        return None

    projects: list[ProjectConfig] = []
    for index, entry in enumerate(parsed):
        try:
            projects.append(_project_from_entry(entry))
        except ValueError as e:
            emit_event("config_invalid", source=PROJECTS_VAR, index=index, message=str(e))

    return projects


def missing_single_project_vars(environ: Mapping[str, str] | None = None) -> list[str]:
    env = os.environ if environ is None else environ
    return [var for var in SINGLE_PROJECT_VARS if not (env.get(var) or "").strip()]


def load_single_project(environ: Mapping[str, str] | None = None) -> ProjectConfig | None:
    """
    Single-project config, or None if any required variable is missing
    """
    env = os.environ if environ is None else environ

    if missing_single_project_vars(env):
        return None

    return ProjectConfig(
        endpoint=_normalize_endpoint(env[ENDPOINT_VAR]),
        project_id=env[PROJECT_ID_VAR].strip(),
        api_key=env[API_KEY_VAR].strip(),
        name=env.get(PROJECT_NAME_VAR) or None,
    )


def load_projects_from_env(environ: Mapping[str, str] | None = None) -> list[ProjectConfig]:
    """
    Load project configurations from environment variables
    """
    env = os.environ if environ is None else environ

    raw = env.get(PROJECTS_VAR)
    if raw and raw.strip():
        projects = _load_multi(raw)
        if projects is not None:
            emit_event("config_loaded", source=PROJECTS_VAR, projects=len(projects))
            return projects

    project = load_single_project(env)
    if project is None:
        return []

    emit_event("config_loaded", source="env", projects=1)
    return [project]
