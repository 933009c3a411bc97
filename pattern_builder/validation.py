# -*- coding: utf-8 -*-
"""Validation taxonomy and results.

Responsibilities:
    - Enumerate the closed set of blocking error kinds and advisory warning kinds.
    - Carry a default message (and, for errors, fix recommendations) per kind.
    - Compose validation outcomes via ``ValidationResult.combine``.

Errors block use of a configuration; warnings never do.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ValidationErrorType(Enum):
    NO_GROUP_ID_SELECTED = "no_group_id_selected"
    INVALID_GROUP_PATTERN = "invalid_group_pattern"
    NO_ROLE_RULES_DEFINED = "no_role_rules_defined"
    NO_FILES_MATCHED = "no_files_matched"
    INCOMPLETE_GROUPS = "incomplete_groups"
    REGEX_SYNTAX_ERROR = "regex_syntax_error"
    EMPTY_GROUP_PATTERN = "empty_group_pattern"
    NO_ROLE_PATTERNS = "no_role_patterns"
    INVALID_RULE_VALUE = "invalid_rule_value"
    MULTIPLE_CAPTURING_GROUPS = "multiple_capturing_groups"
    NO_CAPTURING_GROUPS = "no_capturing_groups"
    INVALID_RULE_CONFIGURATION = "invalid_rule_configuration"
    INVALID_REGEX_PATTERN = "invalid_regex_pattern"

    @property
    def default_message(self) -> str:
        return _ERROR_MESSAGES[self]

    @property
    def guidance(self) -> list[str]:
        """Operator-facing fix recommendations for this kind of error."""
        return list(_ERROR_GUIDANCE[self])


class ValidationWarningType(Enum):
    UNMATCHED_FILES = "unmatched_files"
    INCOMPLETE_GROUP_COVERAGE = "incomplete_group_coverage"
    OVERLAPPING_RULES = "overlapping_rules"
    RESTRICTIVE_PATTERN = "restrictive_pattern"
    PERMISSIVE_PATTERN = "permissive_pattern"
    CASE_SENSITIVITY_WARNING = "case_sensitivity_warning"
    COMPLEX_REGEX = "complex_regex"
    NO_OVERVIEW_IMAGES = "no_overview_images"
    UNBALANCED_GROUPS = "unbalanced_groups"
    EXTENSION_MISMATCH = "extension_mismatch"
    EMPTY_RULE_VALUE = "empty_rule_value"
    MISSING_ROLE_RULES = "missing_role_rules"
    NO_SAMPLE_FILES = "no_sample_files"
    LOW_MATCH_RATE = "low_match_rate"
    INCOMPLETE_GROUPS = "incomplete_groups"

    @property
    def default_message(self) -> str:
        return _WARNING_MESSAGES[self]


_ERROR_MESSAGES = {
    ValidationErrorType.NO_GROUP_ID_SELECTED: "Please select a token to use as Group ID",
    ValidationErrorType.INVALID_GROUP_PATTERN: "Group pattern must contain exactly one capturing group",
    ValidationErrorType.NO_ROLE_RULES_DEFINED: "Please define rules for identifying image roles",
    ValidationErrorType.NO_FILES_MATCHED: "No files match the current pattern - try adjusting Group ID",
    ValidationErrorType.INCOMPLETE_GROUPS: "Some groups are missing required image types",
    ValidationErrorType.REGEX_SYNTAX_ERROR: "Invalid regular expression syntax",
    ValidationErrorType.EMPTY_GROUP_PATTERN: "Group pattern cannot be empty",
    ValidationErrorType.NO_ROLE_PATTERNS: "At least one role pattern must be defined",
    ValidationErrorType.INVALID_RULE_VALUE: "Rule value cannot be empty",
    ValidationErrorType.MULTIPLE_CAPTURING_GROUPS:
        "Group pattern contains multiple capturing groups - only one is allowed",
    ValidationErrorType.NO_CAPTURING_GROUPS: "Group pattern must contain exactly one capturing group",
    ValidationErrorType.INVALID_RULE_CONFIGURATION: "Invalid rule configuration",
    ValidationErrorType.INVALID_REGEX_PATTERN: "Invalid regex pattern in rule",
}

_WARNING_MESSAGES = {
    ValidationWarningType.UNMATCHED_FILES: "Some files don't match any role pattern",
    ValidationWarningType.INCOMPLETE_GROUP_COVERAGE: "Some groups only have one image type",
    ValidationWarningType.OVERLAPPING_RULES: "Role rules have overlapping patterns",
    ValidationWarningType.RESTRICTIVE_PATTERN: "Pattern may be too restrictive",
    ValidationWarningType.PERMISSIVE_PATTERN: "Pattern may be too permissive",
    ValidationWarningType.CASE_SENSITIVITY_WARNING: "Case sensitivity might cause matching issues",
    ValidationWarningType.COMPLEX_REGEX: "Regular expression is complex and might impact performance",
    ValidationWarningType.NO_OVERVIEW_IMAGES: "No overview images found - consider adding overview rules",
    ValidationWarningType.UNBALANCED_GROUPS: "Groups have significantly different numbers of images",
    ValidationWarningType.EXTENSION_MISMATCH: "File extensions vary - consider using extension matching",
    ValidationWarningType.EMPTY_RULE_VALUE: "Rule has empty value and will not match any files",
    ValidationWarningType.MISSING_ROLE_RULES: "No rules defined for image role",
    ValidationWarningType.NO_SAMPLE_FILES: "No sample files available for pattern testing",
    ValidationWarningType.LOW_MATCH_RATE: "Pattern matches fewer files than expected",
    ValidationWarningType.INCOMPLETE_GROUPS: "Some groups are missing required image roles",
}

_ERROR_GUIDANCE = {
    ValidationErrorType.NO_GROUP_ID_SELECTED: (
        "Select a token from the filename that uniquely identifies each vehicle group",
        "Avoid tokens that are the same across all files, like prefixes or extensions",
    ),
    ValidationErrorType.INVALID_GROUP_PATTERN: (
        "Ensure the group pattern contains exactly one capturing group",
        "Check that parentheses are properly matched and not escaped",
    ),
    ValidationErrorType.NO_ROLE_RULES_DEFINED: (
        "Define at least one rule to identify front, rear, or overview images",
        "Use 'contains' rules for common keywords like 'front', 'rear', 'overview'",
    ),
    ValidationErrorType.NO_FILES_MATCHED: (
        "Try selecting a different token as the Group ID",
        "Verify that filenames follow a consistent pattern",
    ),
    ValidationErrorType.INCOMPLETE_GROUPS: (
        "Review role rules to ensure they match your filename patterns",
        "Consider more flexible rules, e.g. 'contains' instead of 'equals'",
    ),
    ValidationErrorType.REGEX_SYNTAX_ERROR: (
        "Check for unmatched parentheses, brackets, or braces",
        "Ensure special characters are escaped with backslashes",
    ),
    ValidationErrorType.EMPTY_GROUP_PATTERN: (
        "Select a Group ID token to generate the pattern automatically",
        "Ensure the pattern contains exactly one capturing group",
    ),
    ValidationErrorType.NO_ROLE_PATTERNS: (
        "Define rules for at least one image role (front, rear, or overview)",
    ),
    ValidationErrorType.INVALID_RULE_VALUE: (
        "Enter a value for the rule (e.g. 'front', 'rear', 'overview')",
        "Use keywords that appear in your filenames",
    ),
    ValidationErrorType.MULTIPLE_CAPTURING_GROUPS: (
        "Remove extra parentheses from the group pattern",
        "Use non-capturing groups (?:...) if you need grouping without capturing",
    ),
    ValidationErrorType.NO_CAPTURING_GROUPS: (
        "Add parentheses around the Group ID portion of the pattern",
    ),
    ValidationErrorType.INVALID_RULE_CONFIGURATION: (
        "Check that all rule fields are properly filled",
        "Verify that the target role is correctly specified",
    ),
    ValidationErrorType.INVALID_REGEX_PATTERN: (
        "Check the regex syntax for errors",
        "Ensure special characters are properly escaped",
    ),
}


def _check_exhaustive(enum_cls, table: dict, table_name: str) -> None:
    missing = [member.name for member in enum_cls if member not in table]
    if missing:
        raise RuntimeError(f"{table_name} is missing entries for: {', '.join(missing)}")


_check_exhaustive(ValidationErrorType, _ERROR_MESSAGES, "_ERROR_MESSAGES")
_check_exhaustive(ValidationErrorType, _ERROR_GUIDANCE, "_ERROR_GUIDANCE")
_check_exhaustive(ValidationWarningType, _WARNING_MESSAGES, "_WARNING_MESSAGES")


@dataclass(frozen=True)
class ValidationError:
    """A blocking problem with a pattern configuration."""

    type: ValidationErrorType
    message: Optional[str] = None
    context: Optional[str] = None

    def __post_init__(self):
        if self.type is None:
            raise ValueError("Error type cannot be None")
        if self.message is None:
            object.__setattr__(self, "message", self.type.default_message)

    @classmethod
    def of(cls, type: ValidationErrorType, message: Optional[str] = None,
           context: Optional[str] = None) -> ValidationError:
        return cls(type, message, context)

    @property
    def has_context(self) -> bool:
        return bool(self.context and self.context.strip())

    @property
    def full_description(self) -> str:
        if self.has_context:
            return f"{self.message} ({self.context})"
        return self.message


@dataclass(frozen=True)
class ValidationWarning:
    """An advisory finding; never blocks use of a configuration."""

    type: ValidationWarningType
    message: Optional[str] = None
    context: Optional[str] = None

    def __post_init__(self):
        if self.type is None:
            raise ValueError("Warning type cannot be None")
        if self.message is None:
            object.__setattr__(self, "message", self.type.default_message)

    @classmethod
    def of(cls, type: ValidationWarningType, message: Optional[str] = None,
           context: Optional[str] = None) -> ValidationWarning:
        return cls(type, message, context)

    @property
    def has_context(self) -> bool:
        return bool(self.context and self.context.strip())

    @property
    def full_description(self) -> str:
        if self.has_context:
            return f"{self.message} ({self.context})"
        return self.message


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of one or more validation checks.

    Results compose with ``combine``: error and warning lists are concatenated
    and validity is ANDed, so ``success()`` is the identity element.
    """

    valid: bool = True
    errors: tuple[ValidationError, ...] = field(default_factory=tuple)
    warnings: tuple[ValidationWarning, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "errors", tuple(self.errors or ()))
        object.__setattr__(self, "warnings", tuple(self.warnings or ()))

    @classmethod
    def success(cls) -> ValidationResult:
        return cls(True)

    @classmethod
    def failure(cls, errors) -> ValidationResult:
        if isinstance(errors, ValidationError):
            errors = [errors]
        return cls(False, tuple(errors))

    @classmethod
    def with_warnings(cls, warnings) -> ValidationResult:
        return cls(True, (), tuple(warnings))

    @classmethod
    def from_lists(cls, errors, warnings) -> ValidationResult:
        """Build a result whose validity follows from *errors* being empty."""
        return cls(not errors, tuple(errors), tuple(warnings))

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def error_messages(self) -> list[str]:
        return [e.message for e in self.errors]

    @property
    def warning_messages(self) -> list[str]:
        return [w.message for w in self.warnings]

    def combine(self, other: ValidationResult | None) -> ValidationResult:
        if other is None:
            return self
        return ValidationResult(
            self.valid and other.valid,
            self.errors + other.errors,
            self.warnings + other.warnings,
        )

    def __repr__(self):
        return f"ValidationResult(valid={self.valid}, errors={len(self.errors)}, warnings={len(self.warnings)})"
