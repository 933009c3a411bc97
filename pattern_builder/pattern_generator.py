# -*- coding: utf-8 -*-
"""Regex generation from visual configuration, and structural validation.

This module turns the operator's choices into regular expressions:

    - an anchored *group pattern* built from an ordered token sequence, with a
      single capturing group around the token chosen as the vehicle Group ID;
    - one *role pattern* per ``ImageRole`` built from the operator's role rules.

``validate_patterns`` checks a ``PatternConfiguration`` for completeness and
syntax, and ``count_capturing_groups`` gives a lightweight structural count of
capturing groups that is shared with the grouping engine.
"""

from __future__ import annotations

import re
import logging
from dataclasses import dataclass, field, replace
from typing import Optional, TYPE_CHECKING

from pattern_builder.tokens import (
    FilenameToken,
    ImageRole,
    RoleRule,
    RuleType,
    TokenType,
    role_for_camera_value,
)
from pattern_builder.validation import (
    ValidationError,
    ValidationErrorType,
    ValidationResult,
    ValidationWarning,
    ValidationWarningType,
)

if TYPE_CHECKING:
    from pattern_builder.validation_log import ValidationLog

logger = logging.getLogger(__name__)

# Inserted between successive token positions
DELIMITER_PATTERN = r"[_\-\.\s]+"

GROUP_ID_PATTERN = r"[\w\-]+"
INDEX_PATTERN = r"\d+"
UNKNOWN_PATTERN = r"\w*"
GENERIC_DATE_PATTERN = r"\d{2,4}[\-/]?\d{2}[\-/]?\d{2,4}"

CAMERA_SIDE_PATTERNS = {
    ImageRole.FRONT: "(?i:front|f|fr|forward)",
    ImageRole.REAR: "(?i:rear|r|rr|back|behind)",
    ImageRole.OVERVIEW: "(?i:overview|ov|ovr|ovw|scene|full)",
}

# (literal shape, emitted pattern)
_DATE_SHAPES = (
    (re.compile(r"\d{4}-\d{2}-\d{2}"), r"\d{4}-\d{2}-\d{2}"),  # YYYY-MM-DD
    (re.compile(r"\d{2}-\d{2}-\d{4}"), r"\d{2}-\d{2}-\d{4}"),  # MM-DD-YYYY
    (re.compile(r"\d{8}"), r"\d{8}"),                          # YYYYMMDD
)


def count_capturing_groups(pattern: str | None) -> int:
    """Count capturing groups in *pattern* with a three-state scan.

    States are: the previous character was an unescaped backslash, the scan is
    inside a ``[...]`` character class, or neither. An unescaped ``(`` outside
    a character class counts unless the next character is ``?`` (non-capturing,
    named, lookaround and inline-flag groups all start with ``(?``).

    This is a structural approximation, not a regex parser.
    """
    if not pattern:
        return 0

    count = 0
    escaped = False
    in_char_class = False

    for i, char in enumerate(pattern):
        if escaped:
            escaped = False
            continue
        if char == "\\":
            escaped = True
            continue
        if char == "[":
            in_char_class = True
        elif char == "]":
            in_char_class = False
        elif char == "(" and not in_char_class:
            if i + 1 < len(pattern) and pattern[i + 1] != "?":
                count += 1
    return count


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


@dataclass(frozen=True)
class PatternConfiguration:
    """Immutable snapshot of everything ``validate_patterns`` looks at."""

    group_pattern: str = ""
    front_pattern: str = ""
    rear_pattern: str = ""
    overview_pattern: str = ""
    role_rules: tuple[RoleRule, ...] = field(default_factory=tuple)
    tokens: tuple[FilenameToken, ...] = field(default_factory=tuple)
    group_id_token: Optional[FilenameToken] = None

    def __post_init__(self):
        object.__setattr__(self, "role_rules", tuple(self.role_rules or ()))
        object.__setattr__(self, "tokens", tuple(self.tokens or ()))

    def role_pattern(self, role: ImageRole) -> str:
        return {
            ImageRole.FRONT: self.front_pattern,
            ImageRole.REAR: self.rear_pattern,
            ImageRole.OVERVIEW: self.overview_pattern,
        }[role]

    def is_valid(self) -> bool:
        """Quick completeness check: a group pattern and at least one role pattern."""
        return not _is_blank(self.group_pattern) and any(
            not _is_blank(self.role_pattern(role)) for role in ImageRole
        )

    def with_changes(self, **changes) -> PatternConfiguration:
        return replace(self, **changes)


class PatternGenerator:
    """Builds group and role patterns and validates configurations."""

    def __init__(self, validation_log: ValidationLog | None = None) -> None:
        self._log = validation_log

    # -- Group pattern -------------------------------------------------------

    def generate_group_pattern(self, tokens: list[FilenameToken], group_id_token: FilenameToken | None) -> str:
        """Generate an anchored group pattern from *tokens*.

        The sub-pattern of *group_id_token* is wrapped in the pattern's only
        capturing group. Tokens that share a position (e.g. contributed by
        different sample filenames) are merged into a non-capturing alternation.

        Raises:
            ValueError: if *group_id_token* is None or not one of *tokens*.
        """
        if not tokens:
            return ""
        if group_id_token is None:
            raise ValueError("Group ID token cannot be None")
        if group_id_token not in tokens:
            raise ValueError("Group ID token must be present in the tokens list")

        by_position: dict[int, dict[str, None]] = {}
        capture = None
        for token in tokens:
            sub = self._token_pattern(token)
            if token == group_id_token:
                sub = f"({sub})"
                capture = sub
            by_position.setdefault(token.position, {})[sub] = None

        parts = ["^"]
        for index, position in enumerate(sorted(by_position)):
            if index > 0:
                parts.append(DELIMITER_PATTERN)
            alternatives = list(by_position[position])
            if len(alternatives) == 1:
                parts.append(alternatives[0])
            else:
                # Capturing branch first so the group id is not lost to a sibling
                alternatives.sort(key=lambda alt: alt != capture)
                parts.append("(?:" + "|".join(alternatives) + ")")
        parts.append("$")

        pattern = "".join(parts)
        logger.debug(f"Generated group pattern {pattern!r} from {len(tokens)} tokens")
        if self._log is not None:
            self._log.log_pattern_generation("group", pattern, True)
        return pattern

    def _token_pattern(self, token: FilenameToken) -> str:
        kind = token.suggested_type
        if kind in (TokenType.PREFIX, TokenType.SUFFIX):
            return re.escape(token.value)
        if kind == TokenType.GROUP_ID:
            return GROUP_ID_PATTERN
        if kind == TokenType.CAMERA_SIDE:
            return self._camera_side_pattern(token.value)
        if kind == TokenType.DATE:
            return self._date_pattern(token.value)
        if kind == TokenType.INDEX:
            return INDEX_PATTERN
        if kind == TokenType.EXTENSION:
            return f"(?i:{re.escape(token.value)})"
        if kind == TokenType.UNKNOWN:
            return UNKNOWN_PATTERN
        raise ValueError(f"Unhandled token type: {kind}")

    @staticmethod
    def _camera_side_pattern(value: str) -> str:
        role = role_for_camera_value(value)
        if role is None:
            return f"(?i:{re.escape(value)})"
        return CAMERA_SIDE_PATTERNS[role]

    @staticmethod
    def _date_pattern(value: str) -> str:
        for shape, pattern in _DATE_SHAPES:
            if shape.fullmatch(value):
                return pattern
        return GENERIC_DATE_PATTERN

    # -- Role patterns -------------------------------------------------------

    def generate_role_pattern(self, rules: list[RoleRule], role: ImageRole) -> str:
        """Combine the rules targeting *role* into one regex (empty if none apply)."""
        if not rules:
            return ""

        selected = sorted((r for r in rules if r.target_role == role), key=lambda r: r.priority)
        patterns = [p for p in (self._rule_pattern(r) for r in selected) if p]

        if not patterns:
            return ""
        pattern = patterns[0] if len(patterns) == 1 else "(?:" + "|".join(patterns) + ")"
        if self._log is not None:
            self._log.log_pattern_generation(f"{role.name.lower()} role", pattern, True)
        return pattern

    @staticmethod
    def _rule_pattern(rule: RoleRule) -> str:
        if rule.is_blank:
            return ""
        if rule.rule_type == RuleType.REGEX_OVERRIDE:
            return rule.rule_value

        value = re.escape(rule.rule_value.strip())
        if rule.rule_type == RuleType.EQUALS:
            body = f"^{value}$"
        elif rule.rule_type == RuleType.CONTAINS:
            body = f".*{value}.*"
        elif rule.rule_type == RuleType.STARTS_WITH:
            body = f"^{value}.*"
        elif rule.rule_type == RuleType.ENDS_WITH:
            body = f".*{value}$"
        else:
            raise ValueError(f"Unhandled rule type: {rule.rule_type}")

        return body if rule.case_sensitive else f"(?i:{body})"

    def generate_configuration(
        self,
        tokens: list[FilenameToken],
        group_id_token: FilenameToken | None,
        rules: list[RoleRule],
    ) -> PatternConfiguration:
        """Generate every pattern at once and bundle them with their inputs."""
        group_pattern = self.generate_group_pattern(tokens, group_id_token) if group_id_token else ""
        return PatternConfiguration(
            group_pattern=group_pattern,
            front_pattern=self.generate_role_pattern(rules, ImageRole.FRONT),
            rear_pattern=self.generate_role_pattern(rules, ImageRole.REAR),
            overview_pattern=self.generate_role_pattern(rules, ImageRole.OVERVIEW),
            role_rules=tuple(rules or ()),
            tokens=tuple(tokens or ()),
            group_id_token=group_id_token,
        )

    # -- Validation ----------------------------------------------------------

    def validate_patterns(self, config: PatternConfiguration | None) -> ValidationResult:
        """Validate *config* for correctness and completeness.

        Runs four independent checks (group pattern, role patterns, role rules,
        regex syntax) and concatenates their findings.
        """
        if config is None:
            return ValidationResult.failure(
                ValidationError(ValidationErrorType.NO_GROUP_ID_SELECTED, "Pattern configuration cannot be None")
            )

        errors: list[ValidationError] = []
        warnings: list[ValidationWarning] = []

        self._check_group_pattern(config, errors)
        self._check_role_patterns(config, errors, warnings)
        self._check_role_rules(config, errors, warnings)
        self._check_regex_syntax(config, errors)

        return ValidationResult.from_lists(errors, warnings)

    @staticmethod
    def _check_group_pattern(config: PatternConfiguration, errors: list) -> None:
        if _is_blank(config.group_pattern):
            if config.group_id_token is None:
                errors.append(ValidationError.of(ValidationErrorType.NO_GROUP_ID_SELECTED))
            else:
                errors.append(ValidationError.of(ValidationErrorType.EMPTY_GROUP_PATTERN))
            return

        groups = count_capturing_groups(config.group_pattern)
        if groups == 0:
            errors.append(ValidationError(
                ValidationErrorType.NO_CAPTURING_GROUPS,
                "Group pattern must contain exactly one capturing group",
                "Ensure the Group ID token is properly selected",
            ))
        elif groups > 1:
            errors.append(ValidationError(
                ValidationErrorType.MULTIPLE_CAPTURING_GROUPS,
                f"Group pattern contains {groups} capturing groups - only one is allowed",
                "Remove extra parentheses or use non-capturing groups (?:...)",
            ))

    @staticmethod
    def _check_role_patterns(config: PatternConfiguration, errors: list, warnings: list) -> None:
        has_front = not _is_blank(config.front_pattern)
        has_rear = not _is_blank(config.rear_pattern)
        has_overview = not _is_blank(config.overview_pattern)

        if not (has_front or has_rear or has_overview):
            errors.append(ValidationError(
                ValidationErrorType.NO_ROLE_PATTERNS,
                "At least one role pattern must be defined",
                "Define rules for front, rear, or overview images",
            ))
        if not has_overview:
            warnings.append(ValidationWarning(
                ValidationWarningType.NO_OVERVIEW_IMAGES,
                "No overview pattern defined - some images may not be categorized",
            ))

    def _check_role_rules(self, config: PatternConfiguration, errors: list, warnings: list) -> None:
        rules = config.role_rules
        has_role_patterns = any(not _is_blank(config.role_pattern(role)) for role in ImageRole)

        if not rules:
            if not has_role_patterns:
                errors.append(ValidationError.of(ValidationErrorType.NO_ROLE_RULES_DEFINED))
            return

        for rule in rules:
            if rule.is_blank:
                errors.append(ValidationError(
                    ValidationErrorType.INVALID_RULE_VALUE,
                    f"Rule value cannot be empty for {rule.target_role.name} role",
                ))

        warnings.extend(self._overlapping_rule_warnings(rules))

    @staticmethod
    def _overlapping_rule_warnings(rules) -> list[ValidationWarning]:
        found = []
        for i, first in enumerate(rules):
            for second in rules[i + 1:]:
                if first.target_role == second.target_role:
                    continue
                if first.rule_type != RuleType.CONTAINS or second.rule_type != RuleType.CONTAINS:
                    continue
                if first.is_blank or second.is_blank:
                    continue
                a, b = first.rule_value, second.rule_value
                if a in b or b in a:
                    found.append(ValidationWarning(
                        ValidationWarningType.OVERLAPPING_RULES,
                        f"Rules for {first.target_role.name} and {second.target_role.name} may overlap",
                        f"'{a}' / '{b}'",
                    ))
        return found

    @staticmethod
    def _check_regex_syntax(config: PatternConfiguration, errors: list) -> None:
        for label, pattern in (
            ("Group pattern", config.group_pattern),
            ("Front pattern", config.front_pattern),
            ("Rear pattern", config.rear_pattern),
            ("Overview pattern", config.overview_pattern),
        ):
            if _is_blank(pattern):
                continue
            try:
                re.compile(pattern)
            except re.error as exc:
                errors.append(ValidationError(
                    ValidationErrorType.REGEX_SYNTAX_ERROR,
                    f"{label} has invalid regex syntax: {exc}",
                    "Check for unescaped special characters or unmatched parentheses",
                ))
