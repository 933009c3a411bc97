# -*- coding: utf-8 -*-
"""Filename grouping and in-group role assignment.

Responsibilities:
    - Extract a Group ID from each filename with the compiled group pattern.
    - Assign a role to every grouped file, OVERVIEW first, then FRONT, then REAR.
    - Track unmatched files together with a human-readable reason.

The engine never raises on user-supplied patterns: an invalid group pattern
marks every file unmatched, and a malformed rule simply does not match.
"""

from __future__ import annotations

import re
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pattern_builder.pattern_generator import count_capturing_groups
from pattern_builder.rules import matches_any_rule, rules_by_role
from pattern_builder.tokenizer import SEGMENT_RE
from pattern_builder.tokens import ImageRole, RoleRule
from pattern_builder.validation import ValidationError, ValidationErrorType, ValidationResult

if TYPE_CHECKING:
    from pattern_builder.unknown_segments import UnknownSegmentHandler

logger = logging.getLogger(__name__)

REASON_INVALID_PATTERN = "Invalid group pattern: {error}"
REASON_EMPTY_GROUP_ID = "Group pattern matched but captured empty group ID"
REASON_NO_MATCH = "Filename doesn't match group pattern"
REASON_NO_ROLE = "No role rules matched this file"


@dataclass
class GroupingResult:
    """Outcome of grouping a filename set.

    Every input filename is either grouped (present in ``file_to_group_id`` and
    ``file_to_role``) or listed in ``unmatched_files``, never both.
    """

    groups: dict[str, list[str]] = field(default_factory=dict)
    file_to_group_id: dict[str, str] = field(default_factory=dict)
    file_to_role: dict[str, ImageRole] = field(default_factory=dict)
    unmatched_files: list[str] = field(default_factory=list)
    unmatched_reasons: dict[str, str] = field(default_factory=dict)

    @property
    def total_files(self) -> int:
        return len(self.file_to_group_id) + len(self.unmatched_files)

    @property
    def matched_files(self) -> int:
        return len(self.file_to_group_id)

    @property
    def group_count(self) -> int:
        return len(self.groups)

    def files_with_role(self, role: ImageRole) -> list[str]:
        return [name for name, r in self.file_to_role.items() if r == role]


def strip_ignored_segments(filename: str, handler: UnknownSegmentHandler | None) -> str:
    """Remove segments *handler* marks as ignored, along with their leading delimiter.

    Returns *filename* unchanged when there is no handler or nothing to remove.
    """
    if handler is None or not filename:
        return filename

    leading = ""
    kept: list[tuple[str, str]] = []
    last_end = 0
    for index, m in enumerate(SEGMENT_RE.finditer(filename)):
        delimiter = filename[last_end:m.start()]
        last_end = m.end()
        if index == 0:
            leading = delimiter
        if not handler.should_ignore_segment(m.group()):
            kept.append((delimiter, m.group()))

    if not kept:
        return filename
    text = leading + kept[0][1] + "".join(d + s for d, s in kept[1:])
    return text + filename[last_end:]


class GroupingEngine:
    """Groups filenames by extracted Group ID and assigns image roles."""

    def group_and_assign_roles(
        self,
        filenames: list[str],
        group_pattern: str,
        role_rules: list[RoleRule],
        unknown_segment_handler: UnknownSegmentHandler | None = None,
    ) -> GroupingResult:
        """Group *filenames* with *group_pattern* and assign roles from *role_rules*.

        Repeated filenames are processed once. When *unknown_segment_handler*
        is given, segments it marks as ignored are removed from each filename
        before the group pattern and the role rules are applied, matching the
        token list the group pattern was generated from. Results are always
        keyed by the original filename.
        """
        result = GroupingResult()
        filenames = list(dict.fromkeys(filenames or ()))

        try:
            regex = re.compile(group_pattern or "", re.IGNORECASE)
        except re.error as exc:
            reason = REASON_INVALID_PATTERN.format(error=exc)
            logger.warning(f"Group pattern {group_pattern!r} does not compile: {exc}")
            for name in filenames:
                self._mark_unmatched(result, name, reason)
            return result

        texts = {name: strip_ignored_segments(name, unknown_segment_handler) for name in filenames}

        for name in filenames:
            m = regex.search(texts[name])
            if m is None or regex.groups < 1:
                self._mark_unmatched(result, name, REASON_NO_MATCH)
                continue
            group_id = m.group(1)
            if group_id is None or not group_id.strip():
                self._mark_unmatched(result, name, REASON_EMPTY_GROUP_ID)
                continue
            result.groups.setdefault(group_id, []).append(name)
            result.file_to_group_id[name] = group_id

        self._assign_roles(result, role_rules or [], texts)

        logger.debug(
            f"Grouped {result.matched_files}/{len(filenames)} files into {result.group_count} groups"
        )
        return result

    @staticmethod
    def _mark_unmatched(result: GroupingResult, name: str, reason: str) -> None:
        if name in result.unmatched_reasons:
            return
        result.unmatched_files.append(name)
        result.unmatched_reasons[name] = reason

    def _assign_roles(self, result: GroupingResult, role_rules: list[RoleRule], texts: dict[str, str]) -> None:
        buckets = rules_by_role(role_rules)

        for group_id in list(result.groups):
            members = result.groups[group_id]
            assigned: dict[str, ImageRole] = {}

            for role in ImageRole.in_precedence_order():
                rules = buckets.get(role, ())
                for name in members:
                    if name not in assigned and matches_any_rule(texts.get(name, name), rules):
                        assigned[name] = role

            kept = []
            for name in members:
                role = assigned.get(name)
                if role is None:
                    result.file_to_group_id.pop(name, None)
                    self._mark_unmatched(result, name, REASON_NO_ROLE)
                else:
                    result.file_to_role[name] = role
                    kept.append(name)

            if kept:
                result.groups[group_id] = kept
            else:
                del result.groups[group_id]

    def validate_group_pattern(self, pattern: str | None) -> ValidationResult:
        """Structural checks for a standalone group pattern."""
        if pattern is None or not pattern.strip():
            return ValidationResult.failure(ValidationError.of(ValidationErrorType.EMPTY_GROUP_PATTERN))

        try:
            re.compile(pattern)
        except re.error as exc:
            return ValidationResult.failure(ValidationError.of(
                ValidationErrorType.REGEX_SYNTAX_ERROR, f"Invalid regex syntax: {exc}"))

        groups = count_capturing_groups(pattern)
        if groups == 0:
            return ValidationResult.failure(ValidationError.of(ValidationErrorType.NO_CAPTURING_GROUPS))
        if groups > 1:
            return ValidationResult.failure(ValidationError.of(
                ValidationErrorType.MULTIPLE_CAPTURING_GROUPS,
                f"Pattern contains {groups} capturing groups - only one is allowed",
            ))
        return ValidationResult.success()
