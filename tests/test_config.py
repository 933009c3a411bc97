# -*- coding: utf-8 -*-
"""Tests for pattern_builder.config."""

import os
import shutil
import sys
import tempfile
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from pattern_builder.config import (
    Preset,
    configuration_from_dict,
    configuration_to_dict,
    load_configuration,
    load_presets,
    rule_from_dict,
    rule_to_dict,
    save_configuration,
    save_presets,
)
from pattern_builder.pattern_generator import PatternConfiguration
from pattern_builder.tokens import FilenameToken, ImageRole, RoleRule, RuleType, TokenType


def _config():
    group_token = FilenameToken("ABC123", 1, TokenType.GROUP_ID, 0.8)
    return PatternConfiguration(
        group_pattern=r"^car[_\-\.\s]+([\w\-]+)",
        front_pattern="(?i:front)",
        rear_pattern="(?i:rear)",
        role_rules=(
            RoleRule(ImageRole.FRONT, RuleType.CONTAINS, "front"),
            RoleRule(ImageRole.REAR, RuleType.REGEX_OVERRIDE, r"_r\d", case_sensitive=True, priority=2),
        ),
        tokens=(FilenameToken("car", 0, TokenType.PREFIX, 0.525), group_token),
        group_id_token=group_token,
    )


class TestDictConversion(unittest.TestCase):
    def test_rule_defaults_are_omitted(self):
        self.assertEqual(rule_to_dict(RoleRule(ImageRole.FRONT, RuleType.CONTAINS, "f")),
                         {"role": "FRONT", "type": "CONTAINS", "value": "f"})

    def test_rule_round_trip(self):
        rule = RoleRule(ImageRole.OVERVIEW, RuleType.ENDS_WITH, "_ov", True, 3)
        self.assertEqual(rule_from_dict(rule_to_dict(rule)), rule)

    def test_configuration_round_trip(self):
        config = _config()
        self.assertEqual(configuration_from_dict(configuration_to_dict(config)), config)

    def test_bad_entries_are_skipped(self):
        data = {
            "group_pattern": "(x)",
            "role_rules": [{"role": "SIDE"}, {"role": "REAR", "value": "r"}],
            "tokens": [{"value": "a"}],
        }
        with self.assertLogs("pattern_builder.config", level="WARNING"):
            config = configuration_from_dict(data)
        self.assertEqual(config.role_rules, (RoleRule(ImageRole.REAR, RuleType.CONTAINS, "r"),))
        self.assertEqual(config.tokens, ())


class TestFiles(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_configuration_file_round_trip(self):
        path = os.path.join(self.tmpdir, "sub", "pattern.yaml")
        save_configuration(_config(), path, name="Highway cams")
        config, name = load_configuration(path)
        self.assertEqual(config, _config())
        self.assertEqual(name, "Highway cams")

    def test_missing_configuration(self):
        self.assertEqual(load_configuration(os.path.join(self.tmpdir, "nope.yaml")), (None, ""))

    def test_non_dict_configuration(self):
        path = os.path.join(self.tmpdir, "list.yaml")
        with open(path, "w") as f:
            f.write("- a\n- b\n")
        self.assertEqual(load_configuration(path), (None, ""))

    def test_presets_round_trip(self):
        path = os.path.join(self.tmpdir, "presets.yaml")
        preset = Preset("Default", _config(), "Standard layout")
        preset.mark_used()
        save_presets([preset], path)

        loaded = load_presets(path)
        self.assertEqual(len(loaded), 1)
        self.assertEqual(loaded[0].name, "Default")
        self.assertEqual(loaded[0].configuration, _config())
        self.assertEqual(loaded[0].last_used, preset.last_used)
        self.assertTrue(loaded[0].is_valid())

    def test_presets_missing_or_invalid(self):
        self.assertEqual(load_presets(os.path.join(self.tmpdir, "nope.yaml")), [])

        path = os.path.join(self.tmpdir, "presets.yaml")
        with open(path, "w") as f:
            f.write("presets:\n  - description: unnamed\n")
        with self.assertLogs("pattern_builder.config", level="WARNING"):
            self.assertEqual(load_presets(path), [])

    def test_preset_validity(self):
        self.assertFalse(Preset(" ", _config()).is_valid())
        self.assertFalse(Preset("Empty", PatternConfiguration()).is_valid())


if __name__ == "__main__":
    unittest.main()
