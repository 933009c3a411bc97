# -*- coding: utf-8 -*-
"""Grouping report generation (JSON/text)."""

from __future__ import annotations

import os
import json
import time
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pattern_builder.grouping import GroupingResult
    from pattern_builder.preview import PreviewSummary

logger = logging.getLogger(__name__)


def build_grouping_report(result: GroupingResult, summary: PreviewSummary) -> dict:
    """Plain-dict view of a grouping run, ready for JSON encoding."""
    return {
        "generated": time.strftime("%Y-%m-%dT%H:%M:%S"),
        "groups": {group_id: list(files) for group_id, files in result.groups.items()},
        "roles": {name: role.name for name, role in result.file_to_role.items()},
        "unmatched": [
            {"filename": name, "reason": result.unmatched_reasons.get(name, "")}
            for name in result.unmatched_files
        ],
        "summary": {
            "total_files": summary.total_files,
            "matched_files": summary.matched_files,
            "unmatched_files": summary.unmatched_files,
            "match_percentage": round(summary.match_percentage, 2),
            "role_counts": {role.name: count for role, count in summary.role_counts.items()},
            "group_count": summary.group_count,
            "incomplete_groups": summary.incomplete_groups,
            "healthy": summary.is_healthy(),
        },
    }


def write_grouping_report(result: GroupingResult, summary: PreviewSummary, output_path: str) -> bool:
    """Write a JSON grouping report to *output_path*. Returns False if it cannot be written."""
    report = build_grouping_report(result, summary)
    try:
        parent = os.path.dirname(output_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2)
        return True
    except OSError as exc:
        logger.warning(f"Failed to write grouping report to '{output_path}': {exc}")
        return False


def format_grouping_table(result: GroupingResult) -> str:
    """Human-readable listing of groups, roles and unmatched files."""
    lines = []
    for group_id, files in result.groups.items():
        lines.append(f"[{group_id}]")
        for name in files:
            role = result.file_to_role.get(name)
            lines.append(f"    {role.name if role else '?':<9} {name}")
    if result.unmatched_files:
        lines.append("[unmatched]")
        for name in result.unmatched_files:
            lines.append(f"    {name}  ({result.unmatched_reasons.get(name, '')})")
    return "\n".join(lines)
