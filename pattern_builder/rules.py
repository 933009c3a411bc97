# -*- coding: utf-8 -*-
"""Role rule evaluation.

Responsibilities:
    - Decide whether a single ``RoleRule`` matches a filename (``matches_rule``).
    - Classify filenames into roles with OVERVIEW > FRONT > REAR precedence.
    - Check a rule list for empty values, broken overrides and missing roles.

Matching is deliberately permissive: a malformed ``REGEX_OVERRIDE`` pattern
simply does not match. Strict syntax checks live in ``validate_rules`` and in
``PatternGenerator.validate_patterns``.
"""

from __future__ import annotations

import re
import logging
from collections import defaultdict
from typing import Iterable

from pattern_builder.tokens import ImageRole, RoleRule, RuleType
from pattern_builder.validation import (
    ValidationError,
    ValidationErrorType,
    ValidationResult,
    ValidationWarning,
    ValidationWarningType,
)

logger = logging.getLogger(__name__)


def matches_rule(filename: str, rule: RoleRule) -> bool:
    """Return True if *filename* satisfies *rule*."""
    if rule.is_blank:
        return False

    if rule.rule_type == RuleType.REGEX_OVERRIDE:
        flags = 0 if rule.case_sensitive else re.IGNORECASE
        try:
            return re.search(rule.rule_value, filename, flags) is not None
        except re.error as exc:
            logger.debug(f"Ignoring malformed override pattern {rule.rule_value!r}: {exc}")
            return False

    target = filename if rule.case_sensitive else filename.lower()
    value = rule.rule_value if rule.case_sensitive else rule.rule_value.lower()

    if rule.rule_type == RuleType.EQUALS:
        return target == value
    if rule.rule_type == RuleType.CONTAINS:
        return value in target
    if rule.rule_type == RuleType.STARTS_WITH:
        return target.startswith(value)
    if rule.rule_type == RuleType.ENDS_WITH:
        return target.endswith(value)
    raise ValueError(f"Unhandled rule type: {rule.rule_type}")


def matches_any_rule(filename: str, rules: Iterable[RoleRule]) -> bool:
    return any(matches_rule(filename, rule) for rule in rules)


def rules_by_role(rules: Iterable[RoleRule]) -> dict[ImageRole, list[RoleRule]]:
    """Bucket *rules* by target role, each bucket stably sorted by priority."""
    buckets: dict[ImageRole, list[RoleRule]] = defaultdict(list)
    for rule in rules or ():
        buckets[rule.target_role].append(rule)
    return {role: sorted(bucket, key=lambda r: r.priority) for role, bucket in buckets.items()}


class RuleEngine:
    """Classifies individual filenames against a rule list."""

    def classify_filename(self, filename: str, rules: list[RoleRule]) -> ImageRole | None:
        """Return the first role (by precedence) with a matching rule, or None.

        Raises:
            ValueError: if *filename* is blank or *rules* is None.
        """
        if filename is None or not filename.strip():
            raise ValueError("Filename cannot be empty")
        if rules is None:
            raise ValueError("Rules cannot be None")

        buckets = rules_by_role(rules)
        for role in ImageRole.in_precedence_order():
            if matches_any_rule(filename, buckets.get(role, ())):
                return role
        return None

    def classify_filenames(self, filenames: list[str], rules: list[RoleRule]) -> dict[ImageRole, list[str]]:
        """Classify every non-blank filename; unclassified files are left out."""
        if filenames is None:
            raise ValueError("Filenames cannot be None")
        results: dict[ImageRole, list[str]] = {role: [] for role in ImageRole}
        for name in filenames:
            if not name or not name.strip():
                continue
            role = self.classify_filename(name, rules)
            if role is not None:
                results[role].append(name)
        return results

    def validate_rules(self, rules: list[RoleRule] | None) -> ValidationResult:
        """Check *rules* for empty values, malformed overrides and uncovered roles."""
        if rules is None:
            return ValidationResult.failure(ValidationError(
                ValidationErrorType.INVALID_RULE_CONFIGURATION, "Rules list cannot be None"))

        errors: list[ValidationError] = []
        warnings: list[ValidationWarning] = []

        for number, rule in enumerate(rules, start=1):
            if rule.is_blank:
                warnings.append(ValidationWarning(
                    ValidationWarningType.EMPTY_RULE_VALUE,
                    f"Rule {number} has empty value and will not match any files",
                ))
                continue
            if rule.rule_type == RuleType.REGEX_OVERRIDE:
                try:
                    re.compile(rule.rule_value)
                except re.error as exc:
                    errors.append(ValidationError(
                        ValidationErrorType.INVALID_REGEX_PATTERN,
                        f"Rule {number} has invalid regex pattern: {exc}",
                    ))

        covered = {rule.target_role for rule in rules}
        for role in ImageRole.in_precedence_order():
            if role not in covered:
                warnings.append(ValidationWarning(
                    ValidationWarningType.MISSING_ROLE_RULES,
                    f"No rules defined for {role.name} role - files will not be classified as {role.name}",
                ))

        return ValidationResult.from_lists(errors, warnings)
