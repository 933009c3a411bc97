# -*- coding: utf-8 -*-
"""Tests for pattern_builder.rules."""

import os
import sys
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from pattern_builder.rules import RuleEngine, matches_rule, rules_by_role
from pattern_builder.tokens import ImageRole, RoleRule, RuleType
from pattern_builder.validation import ValidationErrorType, ValidationWarningType


class TestMatchesRule(unittest.TestCase):
    def test_literal_rule_types(self):
        name = "Car_ABC_Front.jpg"
        self.assertTrue(matches_rule(name, RoleRule(ImageRole.FRONT, RuleType.CONTAINS, "front")))
        self.assertTrue(matches_rule(name, RoleRule(ImageRole.FRONT, RuleType.STARTS_WITH, "car_")))
        self.assertTrue(matches_rule(name, RoleRule(ImageRole.FRONT, RuleType.ENDS_WITH, ".JPG")))
        self.assertTrue(matches_rule(name, RoleRule(ImageRole.FRONT, RuleType.EQUALS, "car_abc_front.jpg")))
        self.assertFalse(matches_rule(name, RoleRule(ImageRole.FRONT, RuleType.EQUALS, "car_abc")))

    def test_case_sensitive(self):
        rule = RoleRule(ImageRole.FRONT, RuleType.CONTAINS, "front", case_sensitive=True)
        self.assertFalse(matches_rule("Car_Front.jpg", rule))
        self.assertTrue(matches_rule("car_front.jpg", rule))

    def test_regex_override(self):
        rule = RoleRule(ImageRole.REAR, RuleType.REGEX_OVERRIDE, r"_r\d_")
        self.assertTrue(matches_rule("car_R2_x.jpg", rule))
        strict = RoleRule(ImageRole.REAR, RuleType.REGEX_OVERRIDE, r"_r\d_", case_sensitive=True)
        self.assertFalse(matches_rule("car_R2_x.jpg", strict))

    def test_malformed_regex_does_not_match(self):
        self.assertFalse(matches_rule("anything", RoleRule(ImageRole.REAR, RuleType.REGEX_OVERRIDE, "[")))

    def test_blank_value_never_matches(self):
        self.assertFalse(matches_rule("anything", RoleRule(ImageRole.REAR, RuleType.CONTAINS, "")))
        self.assertFalse(matches_rule("anything", RoleRule(ImageRole.REAR, RuleType.REGEX_OVERRIDE, " ")))


class TestRulesByRole(unittest.TestCase):
    def test_stable_priority_sort(self):
        rules = [
            RoleRule(ImageRole.FRONT, RuleType.CONTAINS, "b", priority=2),
            RoleRule(ImageRole.FRONT, RuleType.CONTAINS, "a", priority=1),
            RoleRule(ImageRole.FRONT, RuleType.CONTAINS, "c", priority=2),
            RoleRule(ImageRole.REAR, RuleType.CONTAINS, "r"),
        ]
        buckets = rules_by_role(rules)
        self.assertEqual([r.rule_value for r in buckets[ImageRole.FRONT]], ["a", "b", "c"])
        self.assertNotIn(ImageRole.OVERVIEW, buckets)


class TestRuleEngine(unittest.TestCase):
    def setUp(self):
        self.engine = RuleEngine()
        self.rules = [
            RoleRule(ImageRole.FRONT, RuleType.CONTAINS, "front"),
            RoleRule(ImageRole.REAR, RuleType.CONTAINS, "rear"),
            RoleRule(ImageRole.OVERVIEW, RuleType.CONTAINS, "scene"),
        ]

    def test_classify_filename(self):
        self.assertEqual(self.engine.classify_filename("a_front.jpg", self.rules), ImageRole.FRONT)
        self.assertEqual(self.engine.classify_filename("a_rear.jpg", self.rules), ImageRole.REAR)
        self.assertIsNone(self.engine.classify_filename("a_side.jpg", self.rules))

    def test_overview_precedence(self):
        self.assertEqual(self.engine.classify_filename("scene_front_rear.jpg", self.rules), ImageRole.OVERVIEW)

    def test_invalid_arguments(self):
        with self.assertRaises(ValueError):
            self.engine.classify_filename("  ", self.rules)
        with self.assertRaises(ValueError):
            self.engine.classify_filename("a.jpg", None)

    def test_classify_filenames(self):
        result = self.engine.classify_filenames(["a_front.jpg", "", "b_rear.jpg", "c.jpg"], self.rules)
        self.assertEqual(result[ImageRole.FRONT], ["a_front.jpg"])
        self.assertEqual(result[ImageRole.REAR], ["b_rear.jpg"])
        self.assertEqual(result[ImageRole.OVERVIEW], [])

    def test_validate_rules(self):
        rules = [
            RoleRule(ImageRole.FRONT, RuleType.CONTAINS, ""),
            RoleRule(ImageRole.REAR, RuleType.REGEX_OVERRIDE, "(oops"),
        ]
        result = self.engine.validate_rules(rules)
        self.assertFalse(result.valid)
        self.assertEqual([e.type for e in result.errors], [ValidationErrorType.INVALID_REGEX_PATTERN])
        self.assertEqual([w.type for w in result.warnings], [
            ValidationWarningType.EMPTY_RULE_VALUE,
            ValidationWarningType.MISSING_ROLE_RULES,
        ])
        self.assertIn("OVERVIEW", result.warnings[1].message)

    def test_validate_complete_rules(self):
        result = self.engine.validate_rules(self.rules)
        self.assertTrue(result.valid)
        self.assertFalse(result.has_warnings)

    def test_validate_none(self):
        result = self.engine.validate_rules(None)
        self.assertEqual([e.type for e in result.errors], [ValidationErrorType.INVALID_RULE_CONFIGURATION])


if __name__ == "__main__":
    unittest.main()
