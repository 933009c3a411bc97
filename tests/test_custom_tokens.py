# -*- coding: utf-8 -*-
"""Tests for pattern_builder.custom_tokens."""

import os
import shutil
import sys
import tempfile
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from pattern_builder.custom_tokens import CustomToken, CustomTokenManager, PRECONFIGURED_TOKENS
from pattern_builder.tokenizer import FilenameTokenizer
from pattern_builder.tokens import TokenType


class TestCustomToken(unittest.TestCase):
    def test_blank_name_rejected(self):
        with self.assertRaises(ValueError):
            CustomToken("  ")

    def test_examples_become_frozenset(self):
        token = CustomToken("Cam", examples=["c1", "c2", "c1"])
        self.assertEqual(token.examples, frozenset({"c1", "c2"}))


class TestCustomTokenManager(unittest.TestCase):
    def setUp(self):
        self.manager = CustomTokenManager()
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_registry_is_keyed_case_insensitively(self):
        self.manager.add_custom_token(CustomToken("Lane", examples={"l1"}))
        self.manager.add_custom_token(CustomToken("LANE", examples={"l2"}))
        self.assertEqual(self.manager.custom_token_count(), 1)
        self.assertEqual(self.manager.get_custom_token("lane").examples, frozenset({"l2"}))
        self.manager.remove_custom_token("lAnE")
        self.assertEqual(self.manager.custom_token_count(), 0)

    def test_preconfigured(self):
        self.manager.load_preconfigured_custom_tokens()
        self.assertEqual(self.manager.custom_token_count(), len(PRECONFIGURED_TOKENS))
        self.assertEqual(self.manager.find_matching_custom_token("NB").name, "Direction")
        self.assertEqual(self.manager.find_matching_custom_token("sta1").mapped_type, TokenType.PREFIX)
        self.assertIsNone(self.manager.find_matching_custom_token("zzz"))

    def test_enhance_retypes_matching_tokens(self):
        self.manager.load_preconfigured_custom_tokens()
        analysis = FilenameTokenizer().analyze_filenames(["ABC1_nb_front.jpg", "XYZ2_sb_rear.jpg"])
        enhanced = self.manager.enhance_with_custom_tokens(analysis)

        token = enhanced.tokens_for("ABC1_nb_front.jpg")[1]
        self.assertEqual(token.value, "nb")
        self.assertEqual(token.suggested_type, TokenType.SUFFIX)
        self.assertAlmostEqual(token.confidence, 0.9)
        # the input analysis is left alone
        self.assertIsNot(enhanced, analysis)
        self.assertEqual(enhanced.suggestions, analysis.suggestions)

    def test_enhance_with_empty_registry_is_identity(self):
        analysis = FilenameTokenizer().analyze_filenames(["a_b.jpg"])
        self.assertIs(self.manager.enhance_with_custom_tokens(analysis), analysis)

    def test_yaml_round_trip(self):
        path = os.path.join(self.tmpdir, "nested", "tokens.yaml")
        self.manager.add_custom_token(CustomToken("Cam", "Camera id", {"c1", "c2"}, TokenType.PREFIX))
        self.manager.save_custom_tokens(path)

        loaded = CustomTokenManager()
        loaded.load_custom_tokens(path)
        self.assertEqual(loaded.all_custom_tokens(), [CustomToken("Cam", "Camera id", {"c1", "c2"}, TokenType.PREFIX)])

    def test_missing_file_loads_presets(self):
        self.manager.load_custom_tokens(os.path.join(self.tmpdir, "missing.yaml"))
        self.assertEqual(self.manager.custom_token_count(), len(PRECONFIGURED_TOKENS))

    def test_malformed_file_loads_presets(self):
        path = os.path.join(self.tmpdir, "bad.yaml")
        with open(path, "w") as f:
            f.write("custom_tokens: [unclosed\n")
        with self.assertLogs("pattern_builder.custom_tokens", level="WARNING"):
            self.manager.load_custom_tokens(path)
        self.assertEqual(self.manager.custom_token_count(), len(PRECONFIGURED_TOKENS))

    def test_invalid_entries_are_skipped(self):
        path = os.path.join(self.tmpdir, "tokens.yaml")
        with open(path, "w") as f:
            f.write(
                "custom_tokens:\n"
                "  - name: Good\n"
                "    examples: [g1]\n"
                "  - description: no name\n"
                "  - name: BadType\n"
                "    mapped_type: NOPE\n"
            )
        with self.assertLogs("pattern_builder.custom_tokens", level="WARNING") as cm:
            self.manager.load_custom_tokens(path)
        self.assertEqual([t.name for t in self.manager.all_custom_tokens()], ["Good"])
        self.assertTrue(any("Skipped 2" in line for line in cm.output))


if __name__ == "__main__":
    unittest.main()
