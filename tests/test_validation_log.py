# -*- coding: utf-8 -*-
"""Tests for pattern_builder.validation_log."""

import logging
import os
import sys
import threading
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from pattern_builder.validation import (
    ValidationError,
    ValidationErrorType,
    ValidationWarning,
    ValidationWarningType,
)
from pattern_builder.validation_log import (
    CATEGORY_CONFIG_CHANGE,
    CATEGORY_USER_ACTION,
    CATEGORY_VALIDATION,
    ValidationLog,
)


def _quiet_sink():
    sink = logging.getLogger("test_validation_log.sink")
    sink.disabled = True
    return sink


class TestValidationLog(unittest.TestCase):
    def setUp(self):
        self.log = ValidationLog(capacity=5, sink=_quiet_sink())

    def test_capacity_must_be_positive(self):
        with self.assertRaises(ValueError):
            ValidationLog(capacity=0)

    def test_oldest_entries_are_evicted(self):
        for i in range(8):
            self.log.log_user_action(f"action {i}")
        entries = self.log.recent_entries()
        self.assertEqual(len(entries), 5)
        self.assertEqual(entries[0].message, "User action: action 3")
        self.assertEqual(entries[-1].message, "User action: action 7")

    def test_recent_entries_limit(self):
        for i in range(3):
            self.log.log_user_action(f"a{i}")
        self.assertEqual([e.message for e in self.log.recent_entries(2)],
                         ["User action: a1", "User action: a2"])
        self.assertEqual(self.log.recent_entries(0), [])

    def test_categories_and_levels(self):
        self.log.log_validation_error(ValidationError.of(ValidationErrorType.NO_FILES_MATCHED))
        self.log.log_validation_warning(ValidationWarning.of(ValidationWarningType.LOW_MATCH_RATE), "3/10")
        self.log.log_configuration_change("extension", "jpg", "any")

        validation = self.log.entries_by_category(CATEGORY_VALIDATION)
        self.assertEqual([e.level for e in validation], [logging.ERROR, logging.WARNING])
        self.assertIn("NO_FILES_MATCHED", validation[0].message)
        self.assertEqual(validation[1].context, "3/10")

        change = self.log.entries_by_category(CATEGORY_CONFIG_CHANGE)[0]
        self.assertEqual(change.context, "'jpg' -> 'any'")
        self.assertEqual(self.log.entries_by_category(CATEGORY_USER_ACTION), [])

    def test_validation_summary(self):
        self.assertEqual(self.log.validation_summary(), "No recent validation issues")
        self.log.log_validation_error(ValidationError.of(ValidationErrorType.NO_FILES_MATCHED))
        self.log.log_validation_warning(ValidationWarning.of(ValidationWarningType.LOW_MATCH_RATE))
        self.log.log_validation_warning(ValidationWarning.of(ValidationWarningType.UNMATCHED_FILES))
        self.assertEqual(self.log.validation_summary(), "Recent validation issues: 1 errors, 2 warnings")

    def test_clear(self):
        self.log.log_user_action("x")
        self.log.clear()
        self.assertEqual(len(self.log), 0)

    def test_format_entries(self):
        self.log.log_performance("preview", 12, "4 files")
        text = self.log.format_entries()
        self.assertTrue(text.startswith("Pattern Builder Validation Log\n"))
        self.assertIn("PERFORMANCE: Performance: preview took 12ms [4 files]", text)

    def test_mirrors_to_sink(self):
        log = ValidationLog(sink=logging.getLogger("test_validation_log.mirror"))
        with self.assertLogs("test_validation_log.mirror", level="INFO") as cm:
            log.log_user_action("Loaded files", "4 files")
        self.assertIn("USER_ACTION: User action: Loaded files [4 files]", cm.output[0])

    def test_concurrent_writers(self):
        log = ValidationLog(capacity=10000, sink=_quiet_sink())

        def writer(n):
            for i in range(200):
                log.log_user_action(f"{n}-{i}")

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(len(log), 800)


if __name__ == "__main__":
    unittest.main()
