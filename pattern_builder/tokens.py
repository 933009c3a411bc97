# -*- coding: utf-8 -*-
"""Value types shared by every stage of the pattern builder.

Responsibilities:
    - Describe a typed filename token (``FilenameToken``).
    - Enumerate token kinds, image roles, and role rule kinds.
    - Describe a role rule (``RoleRule``) used to classify images.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class TokenType(Enum):
    """Kinds of filename segments the tokenizer can suggest."""
    PREFIX = "prefix"
    SUFFIX = "suffix"
    GROUP_ID = "group_id"
    CAMERA_SIDE = "camera_side"
    DATE = "date"
    INDEX = "index"
    EXTENSION = "extension"
    UNKNOWN = "unknown"


class ImageRole(Enum):
    """Role of an image inside a vehicle group, with its evaluation precedence."""
    OVERVIEW = 1
    FRONT = 2
    REAR = 3

    @property
    def precedence(self) -> int:
        return self.value

    @classmethod
    def in_precedence_order(cls) -> list[ImageRole]:
        return sorted(cls, key=lambda role: role.precedence)


class RuleType(Enum):
    """How a role rule compares its value against a filename."""
    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    REGEX_OVERRIDE = "regex_override"


def _clamp(confidence: float) -> float:
    return max(0.0, min(1.0, float(confidence)))


@dataclass
class FilenameToken:
    """A single segment of a filename with its suggested type.

    ``value`` and ``position`` identify the segment and never change. The
    suggested type and confidence may be overwritten by enhancement passes;
    confidence is always kept within ``[0, 1]``.
    """

    value: str
    position: int
    suggested_type: TokenType = TokenType.UNKNOWN
    confidence: float = 0.0

    def __post_init__(self):
        if self.position < 0:
            raise ValueError(f"Token position must be non-negative, got {self.position}")
        self.confidence = _clamp(self.confidence)

    def __setattr__(self, name, value):
        if name in ("value", "position") and name in self.__dict__:
            raise AttributeError(f"FilenameToken.{name} is read-only")
        if name == "confidence":
            value = _clamp(value)
        super().__setattr__(name, value)

    def with_type(self, suggested_type: TokenType, confidence: float) -> FilenameToken:
        """Return a copy carrying a new type and confidence."""
        return FilenameToken(self.value, self.position, suggested_type, confidence)

    def with_position(self, position: int) -> FilenameToken:
        """Return a copy moved to *position*."""
        return FilenameToken(self.value, position, self.suggested_type, self.confidence)

    def __repr__(self):
        return (f"FilenameToken(value={self.value!r}, position={self.position}, "
                f"type={self.suggested_type.name}, confidence={self.confidence:.2f})")


@dataclass(frozen=True)
class RoleRule:
    """A rule that assigns ``target_role`` to filenames matching ``rule_value``.

    Rules with a lower ``priority`` are evaluated first within their role.
    """

    target_role: ImageRole = ImageRole.FRONT
    rule_type: RuleType = RuleType.CONTAINS
    rule_value: str = ""
    case_sensitive: bool = False
    priority: int = 0

    @property
    def is_blank(self) -> bool:
        """True if the rule has no usable value and therefore never matches."""
        return self.rule_value is None or not self.rule_value.strip()


# Camera side synonyms, shared by the tokenizer and the pattern generator
CAMERA_SYNONYMS: dict[ImageRole, tuple[str, ...]] = {
    ImageRole.FRONT: ("front", "f", "fr", "forward"),
    ImageRole.REAR: ("rear", "r", "rr", "back", "behind"),
    ImageRole.OVERVIEW: ("overview", "ov", "ovr", "ovw", "scene", "full"),
}

ALL_CAMERA_SYNONYMS = frozenset(s for synonyms in CAMERA_SYNONYMS.values() for s in synonyms)


def role_for_camera_value(value: str) -> ImageRole | None:
    """Return the role whose synonym set contains *value* (case-insensitive)."""
    lower = value.lower()
    for role, synonyms in CAMERA_SYNONYMS.items():
        if lower in synonyms:
            return role
    return None


def renumber(tokens: list[FilenameToken]) -> list[FilenameToken]:
    """Return copies of *tokens* with dense positions ``0..n-1`` in list order."""
    return [token.with_position(i) for i, token in enumerate(tokens)]


@dataclass
class TokenSuggestion:
    """A suggested token type for one position across the analysed filenames."""
    type: TokenType
    description: str
    examples: list[str] = field(default_factory=list)
    confidence: float = 0.0
    position: int = -1

    def __post_init__(self):
        self.confidence = _clamp(self.confidence)
