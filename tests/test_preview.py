# -*- coding: utf-8 -*-
"""Tests for pattern_builder.preview."""

import os
import sys
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from pattern_builder.grouping import GroupingEngine
from pattern_builder.preview import FilenamePreview, PreviewSummary, build_previews
from pattern_builder.tokens import ImageRole, RoleRule, RuleType


def _matched(name, group_id, role):
    return FilenamePreview(name, True, role, group_id)


def _complete_group(group_id):
    return [
        _matched(f"{group_id}_front.jpg", group_id, ImageRole.FRONT),
        _matched(f"{group_id}_rear.jpg", group_id, ImageRole.REAR),
    ]


class TestPreviewSummary(unittest.TestCase):
    def test_empty(self):
        summary = PreviewSummary([])
        self.assertEqual(summary.total_files, 0)
        self.assertEqual(summary.match_percentage, 0.0)
        self.assertTrue(summary.is_healthy())
        self.assertFalse(summary.has_warnings)
        self.assertEqual(summary.role_counts, {role: 0 for role in ImageRole})

    def test_counts(self):
        previews = _complete_group("A") + [
            _matched("A_ov.jpg", "A", ImageRole.OVERVIEW),
            FilenamePreview("junk.txt"),
        ]
        summary = PreviewSummary(previews)
        self.assertEqual(summary.total_files, 4)
        self.assertEqual(summary.matched_files, 3)
        self.assertEqual(summary.unmatched_files, 1)
        self.assertAlmostEqual(summary.match_percentage, 75.0)
        self.assertEqual(summary.role_count(ImageRole.OVERVIEW), 1)
        self.assertEqual(summary.unmatched_filenames, ["junk.txt"])
        self.assertEqual(summary.group_roles, {
            "A": frozenset({ImageRole.FRONT, ImageRole.REAR, ImageRole.OVERVIEW}),
        })

    def test_front_only_group_is_incomplete(self):
        summary = PreviewSummary([_matched("B_front.jpg", "B", ImageRole.FRONT)])
        self.assertEqual(summary.incomplete_groups, ["B"])
        self.assertTrue(summary.has_warnings)

    def test_front_and_rear_is_complete(self):
        summary = PreviewSummary(_complete_group("A"))
        self.assertEqual(summary.incomplete_groups, [])
        self.assertEqual(summary.complete_group_count, 1)
        self.assertTrue(summary.is_healthy())

    def test_overview_alone_is_incomplete(self):
        summary = PreviewSummary([_matched("C_ov.jpg", "C", ImageRole.OVERVIEW)])
        self.assertEqual(summary.incomplete_groups, ["C"])

    def test_blank_group_id_is_not_a_group(self):
        summary = PreviewSummary([_matched("x.jpg", "  ", ImageRole.FRONT)])
        self.assertEqual(summary.group_count, 0)
        self.assertTrue(summary.is_healthy())

    def test_errors_make_it_unhealthy(self):
        previews = _complete_group("A") + [FilenamePreview("bad.jpg", error_message="Invalid group pattern: x")]
        summary = PreviewSummary(previews)
        self.assertTrue(summary.has_errors)
        self.assertEqual(summary.error_messages, ["bad.jpg: Invalid group pattern: x"])
        self.assertFalse(summary.is_healthy())

    def test_low_match_rate_is_unhealthy(self):
        previews = _complete_group("A") + _complete_group("B") + [FilenamePreview("x.jpg")]
        summary = PreviewSummary(previews)
        self.assertAlmostEqual(summary.match_percentage, 80.0)
        self.assertTrue(summary.is_healthy())

        previews.append(FilenamePreview("y.jpg"))
        self.assertFalse(PreviewSummary(previews).is_healthy())

    def test_incomplete_ratio_threshold(self):
        previews = []
        for group_id in "ABCD":
            previews.extend(_complete_group(group_id))
        previews.append(_matched("E_front.jpg", "E", ImageRole.FRONT))
        # 1 of 5 groups incomplete is exactly 20 %, which is not healthy
        self.assertFalse(PreviewSummary(previews).is_healthy())

        previews.extend(_complete_group("F"))
        self.assertTrue(PreviewSummary(previews).is_healthy())

    def test_summary_text(self):
        text = PreviewSummary(_complete_group("A") + [_matched("B_front.jpg", "B", ImageRole.FRONT)]).summary_text()
        self.assertIn("Files: 3/3 matched (100.0%)", text)
        self.assertIn("Incomplete groups: B", text)
        self.assertIn("needs attention", text)


class TestBuildPreviews(unittest.TestCase):
    RULES = [
        RoleRule(ImageRole.FRONT, RuleType.CONTAINS, "front"),
        RoleRule(ImageRole.REAR, RuleType.CONTAINS, "rear"),
    ]

    def test_outcomes_follow_input_order(self):
        files = ["car_B_rear.jpg", "other.jpg", "car_A_front.jpg"]
        result = GroupingEngine().group_and_assign_roles(files, r"^car_([A-Z]+)_", self.RULES)
        previews = build_previews(files, result)

        self.assertEqual([p.filename for p in previews], files)
        self.assertEqual(previews[0], FilenamePreview("car_B_rear.jpg", True, ImageRole.REAR, "B"))
        self.assertFalse(previews[1].matched)
        self.assertIsNone(previews[1].error_message)

    def test_pattern_failure_becomes_error(self):
        files = ["car_A_front.jpg"]
        result = GroupingEngine().group_and_assign_roles(files, "(", self.RULES)
        summary = PreviewSummary(build_previews(files, result))
        self.assertTrue(summary.has_errors)
        self.assertFalse(summary.is_healthy())


if __name__ == "__main__":
    unittest.main()
