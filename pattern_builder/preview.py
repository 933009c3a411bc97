# -*- coding: utf-8 -*-
"""Per-file preview outcomes and the aggregate preview summary.

Responsibilities:
    - Describe what happened to one filename (``FilenamePreview``).
    - Turn a ``GroupingResult`` into ordered preview outcomes.
    - Aggregate outcomes into counts, incomplete groups and a health verdict.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pattern_builder.grouping import REASON_INVALID_PATTERN, GroupingResult
from pattern_builder.tokens import ImageRole

HEALTHY_MATCH_PERCENTAGE = 80.0
MAX_INCOMPLETE_RATIO = 0.20

_PATTERN_FAILURE_PREFIX = REASON_INVALID_PATTERN.split("{", 1)[0]


@dataclass(frozen=True)
class FilenamePreview:
    """Outcome of grouping and role assignment for a single file."""

    filename: str
    matched: bool = False
    role: Optional[ImageRole] = None
    group_id: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def has_error(self) -> bool:
        return bool(self.error_message)


def build_previews(filenames: list[str], result: GroupingResult) -> list[FilenamePreview]:
    """One outcome per filename, in input order.

    Unmatched files carry their reason as an error only when the group
    pattern itself failed; ordinary non-matches are reported as unmatched.
    """
    previews = []
    for name in filenames:
        if name in result.file_to_group_id:
            previews.append(FilenamePreview(
                name, True, result.file_to_role.get(name), result.file_to_group_id[name]))
            continue
        reason = result.unmatched_reasons.get(name)
        error = reason if reason and reason.startswith(_PATTERN_FAILURE_PREFIX) else None
        previews.append(FilenamePreview(name, False, error_message=error))
    return previews


class PreviewSummary:
    """Read-only statistics computed once from a list of ``FilenamePreview``."""

    def __init__(self, previews: list[FilenamePreview]) -> None:
        previews = list(previews or ())
        self._total = len(previews)
        self._matched = sum(1 for p in previews if p.matched)
        self._role_counts = {role: 0 for role in ImageRole}
        self._unmatched_filenames = []
        self._group_roles: dict[str, set[ImageRole]] = {}
        self._error_messages = []

        for p in previews:
            if not p.matched:
                self._unmatched_filenames.append(p.filename)
            elif p.role is not None:
                self._role_counts[p.role] += 1
            if p.matched and p.group_id and p.group_id.strip():
                roles = self._group_roles.setdefault(p.group_id, set())
                if p.role is not None:
                    roles.add(p.role)
            if p.has_error:
                self._error_messages.append(f"{p.filename}: {p.error_message}")

        # OVERVIEW alone never completes a group
        self._incomplete_groups = [
            group_id for group_id, roles in self._group_roles.items()
            if roles and (ImageRole.FRONT not in roles or ImageRole.REAR not in roles)
        ]

    @property
    def total_files(self) -> int:
        return self._total

    @property
    def matched_files(self) -> int:
        return self._matched

    @property
    def unmatched_files(self) -> int:
        return self._total - self._matched

    @property
    def match_percentage(self) -> float:
        if self._total == 0:
            return 0.0
        return self._matched * 100.0 / self._total

    @property
    def role_counts(self) -> dict[ImageRole, int]:
        return dict(self._role_counts)

    def role_count(self, role: ImageRole) -> int:
        return self._role_counts.get(role, 0)

    @property
    def unmatched_filenames(self) -> list[str]:
        return list(self._unmatched_filenames)

    @property
    def group_roles(self) -> dict[str, frozenset[ImageRole]]:
        return {group_id: frozenset(roles) for group_id, roles in self._group_roles.items()}

    @property
    def group_count(self) -> int:
        return len(self._group_roles)

    @property
    def incomplete_groups(self) -> list[str]:
        return list(self._incomplete_groups)

    @property
    def complete_group_count(self) -> int:
        return self.group_count - len(self._incomplete_groups)

    @property
    def error_messages(self) -> list[str]:
        return list(self._error_messages)

    @property
    def has_errors(self) -> bool:
        return bool(self._error_messages)

    @property
    def has_warnings(self) -> bool:
        return bool(self._incomplete_groups) or self.unmatched_files > 0

    def is_healthy(self) -> bool:
        if self.has_errors:
            return False
        if self._total == 0:
            return True
        if self.match_percentage < HEALTHY_MATCH_PERCENTAGE:
            return False
        if self._group_roles:
            return len(self._incomplete_groups) / len(self._group_roles) < MAX_INCOMPLETE_RATIO
        return True

    def summary_text(self) -> str:
        lines = [
            f"Files: {self._matched}/{self._total} matched ({self.match_percentage:.1f}%)",
            f"Groups: {self.group_count} ({self.complete_group_count} complete)",
            "Roles: " + ", ".join(
                f"{role.name.lower()}={self._role_counts[role]}" for role in ImageRole.in_precedence_order()),
        ]
        if self._incomplete_groups:
            lines.append(f"Incomplete groups: {', '.join(self._incomplete_groups)}")
        if self._unmatched_filenames:
            lines.append(f"Unmatched files: {len(self._unmatched_filenames)}")
        lines.append("Status: " + ("healthy" if self.is_healthy() else "needs attention"))
        return "\n".join(lines)

    def __repr__(self):
        return (f"PreviewSummary(total={self._total}, matched={self._matched}, "
                f"groups={self.group_count}, incomplete={len(self._incomplete_groups)})")
