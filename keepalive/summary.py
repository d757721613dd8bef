"""
keepalive.summary
AUTHOR: carter-vin

Deterministic run summary for operator-friendly output
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from keepalive.model import KeepaliveResult

SUMMARY_SCHEMA_VERSION = "1"

RULE = "─" * 40


@dataclass(frozen=True)
class RunSummary:
    total: int
    successful: int
    failed: int
    failures: list[tuple[str, str]]
    results: list[KeepaliveResult]

    @property
    def all_ok(self) -> bool:
        return self.total > 0 and self.failed == 0


def summarize_results(results: Iterable[KeepaliveResult]) -> RunSummary:
    """
    Aggregate per-project results; failures keep input order
    """
    items = list(results)
    failures = [(r.label, r.message) for r in items if not r.success]
    return RunSummary(
        total=len(items),
        successful=len(items) - len(failures),
        failed=len(failures),
        failures=failures,
        results=items,
    )


def render_text(summary: RunSummary) -> str:
    lines: list[str] = [
        RULE,
        "Summary:",
        f"  Successful: {summary.successful}",
        f"  Failed: {summary.failed}",
    ]

    if summary.failures:
        lines.append("")
        lines.append("Failed projects:")
        for label, message in summary.failures:
            lines.append(f"  - {label}: {message}")
    elif summary.all_ok:
        lines.append("")
        lines.append("All projects alive.")

    return "\n".join(lines)


def render_json(summary: RunSummary, *, meta: dict | None = None) -> dict:
    """
    Render the summary into a deterministic JSON payload
    """
    meta = meta or {}
    return {
        "meta": {
            "schema_version": SUMMARY_SCHEMA_VERSION,
            "tool_version": meta.get("tool_version"),
            "generated_at": meta.get("generated_at"),
        },
        "total": summary.total,
        "successful": summary.successful,
        "failed": summary.failed,
        "projects": [result.to_dict() for result in summary.results],
    }
