# -*- coding: utf-8 -*-
"""Bounded in-memory log of validation and pattern-building activity.

A ``ValidationLog`` is created by its owner (usually ``PatternBuilderEngine``)
and handed to the components that report into it. Entries are mirrored to the
standard ``logging`` hierarchy; the in-memory copy keeps only the most recent
``capacity`` entries so it can back a support/diagnostics view.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Optional

from pattern_builder.validation import ValidationError, ValidationWarning

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 1000

CATEGORY_VALIDATION = "VALIDATION"
CATEGORY_USER_ACTION = "USER_ACTION"
CATEGORY_CONFIG_CHANGE = "CONFIG_CHANGE"
CATEGORY_PATTERN_GEN = "PATTERN_GEN"
CATEGORY_FILE_ANALYSIS = "FILE_ANALYSIS"
CATEGORY_PREVIEW_UPDATE = "PREVIEW_UPDATE"
CATEGORY_EXCEPTION = "EXCEPTION"
CATEGORY_PERFORMANCE = "PERFORMANCE"


@dataclass(frozen=True)
class LogEntry:
    level: int
    category: str
    message: str
    context: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    def __str__(self):
        stamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(self.timestamp))
        ctx = f" [{self.context}]" if self.context else ""
        return f"{stamp} [{logging.getLevelName(self.level)}] {self.category}: {self.message}{ctx}"


class ValidationLog:
    """Thread-safe ring buffer of ``LogEntry`` objects (oldest dropped first)."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY, sink: logging.Logger | None = None) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._lock = threading.Lock()
        self._sink = sink or logger

    @property
    def capacity(self) -> int:
        return self._entries.maxlen

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _add(self, level: int, category: str, message: str, context: str | None = None,
             exc_info: BaseException | None = None) -> LogEntry:
        entry = LogEntry(level, category, message, context)
        with self._lock:
            self._entries.append(entry)
        self._sink.log(level, str(entry), exc_info=exc_info)
        return entry

    # -- Typed helpers -------------------------------------------------------

    def log_validation_error(self, error: ValidationError, context: str | None = None) -> None:
        self._add(logging.ERROR, CATEGORY_VALIDATION,
                  f"Validation error: {error.type.name} - {error.message}", context)

    def log_validation_warning(self, warning: ValidationWarning, context: str | None = None) -> None:
        self._add(logging.WARNING, CATEGORY_VALIDATION,
                  f"Validation warning: {warning.type.name} - {warning.message}", context)

    def log_user_action(self, action: str, details: str | None = None) -> None:
        self._add(logging.INFO, CATEGORY_USER_ACTION, f"User action: {action}", details)

    def log_configuration_change(self, component: str, old_value, new_value) -> None:
        self._add(logging.INFO, CATEGORY_CONFIG_CHANGE, f"Configuration changed: {component}",
                  f"'{old_value}' -> '{new_value}'")

    def log_pattern_generation(self, pattern_type: str, pattern: str, success: bool) -> None:
        level = logging.INFO if success else logging.WARNING
        outcome = "succeeded" if success else "failed"
        self._add(level, CATEGORY_PATTERN_GEN, f"Pattern generation {outcome}: {pattern_type}", pattern)

    def log_file_analysis(self, file_count: int, token_count: int, duration_ms: int) -> None:
        self._add(logging.INFO, CATEGORY_FILE_ANALYSIS,
                  f"File analysis completed: {file_count} files, {token_count} tokens",
                  f"Duration: {duration_ms}ms")

    def log_preview_update(self, total_files: int, matched_files: int, group_count: int) -> None:
        self._add(logging.DEBUG, CATEGORY_PREVIEW_UPDATE,
                  f"Preview updated: {matched_files}/{total_files} files matched, {group_count} groups")

    def log_exception(self, exc: BaseException, context: str | None = None) -> None:
        self._add(logging.ERROR, CATEGORY_EXCEPTION, f"Exception occurred: {exc}", context, exc_info=exc)

    def log_performance(self, operation: str, duration_ms: int, details: str | None = None) -> None:
        self._add(logging.DEBUG, CATEGORY_PERFORMANCE, f"Performance: {operation} took {duration_ms}ms", details)

    # -- Queries -------------------------------------------------------------

    def recent_entries(self, max_entries: int = DEFAULT_CAPACITY) -> list[LogEntry]:
        with self._lock:
            entries = list(self._entries)
        return entries[-max_entries:] if max_entries > 0 else []

    def entries_by_category(self, category: str, max_entries: int = DEFAULT_CAPACITY) -> list[LogEntry]:
        with self._lock:
            matching = [e for e in self._entries if e.category == category]
        return matching[-max_entries:] if max_entries > 0 else []

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def validation_summary(self) -> str:
        with self._lock:
            validation = [e for e in self._entries if e.category == CATEGORY_VALIDATION]
        errors = sum(1 for e in validation if e.level == logging.ERROR)
        warnings = sum(1 for e in validation if e.level == logging.WARNING)
        if not errors and not warnings:
            return "No recent validation issues"
        return f"Recent validation issues: {errors} errors, {warnings} warnings"

    def format_entries(self, entries: list[LogEntry] | None = None) -> str:
        if entries is None:
            entries = self.recent_entries()
        lines = [
            "Pattern Builder Validation Log",
            f"Generated: {time.strftime('%Y-%m-%d %H:%M:%S')}",
            "=" * 50,
            "",
        ]
        lines.extend(str(e) for e in entries)
        return "\n".join(lines) + "\n"
