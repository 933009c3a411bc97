# -*- coding: utf-8 -*-
"""Operator decisions for filename segments the tokenizer could not type.

Responsibilities:
    - Remember a per-segment decision (ignore, custom token, free text).
    - Find UNKNOWN segments that still need a decision.
    - Rewrite token lists according to the stored decisions.

Segment text is matched case-insensitively; labels are keyed by the
lowercased value.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pattern_builder.tokens import FilenameToken, TokenType, renumber

logger = logging.getLogger(__name__)

CUSTOM_TOKEN_CONFIDENCE = 0.8
FREE_TEXT_CONFIDENCE = 0.9


class SegmentAction(Enum):
    IGNORE = "ignore"
    CUSTOM_TOKEN = "custom_token"
    FREE_TEXT = "free_text"


@dataclass(frozen=True)
class SegmentLabel:
    segment_value: str
    action: SegmentAction
    custom_label: Optional[str] = None


@dataclass(frozen=True)
class UnknownSegmentSummary:
    """Snapshot of unknown segment coverage across a token set."""

    all_unknown_segments: frozenset[str]
    labeled_segments: frozenset[str]
    unlabeled_segments: frozenset[str]

    @property
    def has_unlabeled_segments(self) -> bool:
        return bool(self.unlabeled_segments)

    @property
    def total_unknown_count(self) -> int:
        return len(self.all_unknown_segments)

    @property
    def labeled_count(self) -> int:
        return len(self.labeled_segments)

    @property
    def unlabeled_count(self) -> int:
        return len(self.unlabeled_segments)


class UnknownSegmentHandler:
    """Label store for unknown segments, scoped to one editing session."""

    def __init__(self) -> None:
        self._labels: dict[str, SegmentLabel] = {}

    def label_segment(self, segment_value: str, action: SegmentAction,
                      custom_label: str | None = None) -> SegmentLabel:
        """Record (or replace) the decision for *segment_value*."""
        if not segment_value or not segment_value.strip():
            raise ValueError("Segment value cannot be empty")
        if action is None:
            raise ValueError("Segment action cannot be None")

        label = SegmentLabel(segment_value, action, custom_label)
        self._labels[segment_value.lower()] = label
        logger.debug(f"Labelled segment {segment_value!r} as {action.name}")
        return label

    def get_segment_label(self, segment_value: str) -> SegmentLabel | None:
        if not segment_value:
            return None
        return self._labels.get(segment_value.lower())

    def should_ignore_segment(self, segment_value: str) -> bool:
        label = self.get_segment_label(segment_value)
        return label is not None and label.action == SegmentAction.IGNORE

    def all_segment_labels(self) -> dict[str, SegmentLabel]:
        return dict(self._labels)

    def clear_all_labels(self) -> None:
        self._labels.clear()

    def identify_unknown_segments(self, tokens: list[FilenameToken]) -> list[str]:
        """Distinct UNKNOWN values without a decision, in first-seen order."""
        seen: dict[str, None] = {}
        for token in tokens or ():
            if token.suggested_type != TokenType.UNKNOWN:
                continue
            if token.value.lower() in self._labels:
                continue
            seen.setdefault(token.value, None)
        return list(seen)

    def apply_segment_labels(self, tokens: list[FilenameToken]) -> list[FilenameToken]:
        """Return a new token list with every stored decision applied.

        IGNORE drops the token, CUSTOM_TOKEN retypes it as a SUFFIX and
        FREE_TEXT keeps it UNKNOWN with raised confidence. Positions of the
        returned tokens are dense from 0.
        """
        kept: list[FilenameToken] = []
        for token in tokens or ():
            label = self._labels.get(token.value.lower())
            if label is None:
                kept.append(token.with_position(token.position))
            elif label.action == SegmentAction.IGNORE:
                continue
            elif label.action == SegmentAction.CUSTOM_TOKEN:
                kept.append(token.with_type(TokenType.SUFFIX, CUSTOM_TOKEN_CONFIDENCE))
            else:
                kept.append(token.with_type(TokenType.UNKNOWN, FREE_TEXT_CONFIDENCE))
        return renumber(kept)

    def get_unknown_segment_summary(
        self, tokens_by_filename: dict[str, list[FilenameToken]] | None
    ) -> UnknownSegmentSummary:
        """Partition the UNKNOWN values of every file's tokens into labeled and unlabeled."""
        unknown = frozenset(
            token.value.lower()
            for tokens in (tokens_by_filename or {}).values()
            for token in tokens or ()
            if token.suggested_type == TokenType.UNKNOWN
        )
        labeled = frozenset(value for value in unknown if value in self._labels)
        return UnknownSegmentSummary(unknown, labeled, unknown - labeled)
