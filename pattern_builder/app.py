# -*- coding: utf-8 -*-
"""Main application. Wires the tokenizer and pattern generator to grouping and preview.

The ``PatternBuilderEngine`` class sequences the full workflow:

    analyze → (label unknown segments) → build_configuration → validate → preview

``main`` exposes the same workflow on the command line.
"""

from __future__ import annotations

import os
import sys
import time
import logging
import argparse
from typing import Optional

from pattern_builder import __version__
from pattern_builder.config import load_configuration, save_configuration
from pattern_builder.custom_tokens import CustomTokenManager
from pattern_builder.extensions import (
    analyze_extension_usage,
    apply_extension_matching,
    has_flexible_extension_matching,
)
from pattern_builder.grouping import REASON_NO_ROLE, GroupingEngine, GroupingResult
from pattern_builder.pattern_generator import PatternConfiguration, PatternGenerator
from pattern_builder.preview import PreviewSummary, build_previews
from pattern_builder.reporting import format_grouping_table, write_grouping_report
from pattern_builder.tokenizer import FilenameTokenizer, TokenAnalysis
from pattern_builder.tokens import FilenameToken, ImageRole, RoleRule, RuleType, TokenType
from pattern_builder.unknown_segments import UnknownSegmentHandler
from pattern_builder.validation import (
    ValidationError,
    ValidationErrorType,
    ValidationResult,
    ValidationWarning,
    ValidationWarningType,
)
from pattern_builder.validation_log import ValidationLog

logger = logging.getLogger(__name__)

LOW_MATCH_RATE = 0.5

DEFAULT_ROLE_RULES = (
    RoleRule(ImageRole.OVERVIEW, RuleType.CONTAINS, "overview"),
    RoleRule(ImageRole.FRONT, RuleType.CONTAINS, "front"),
    RoleRule(ImageRole.REAR, RuleType.CONTAINS, "rear"),
)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class PatternBuilderEngine:
    """Orchestrates analysis, configuration building, validation and preview."""

    def __init__(self, validation_log: ValidationLog | None = None,
                 custom_tokens: CustomTokenManager | None = None) -> None:
        self.validation_log = validation_log if validation_log is not None else ValidationLog()
        self.tokenizer = FilenameTokenizer()
        self.custom_tokens = custom_tokens if custom_tokens is not None else CustomTokenManager()
        self.segments = UnknownSegmentHandler()
        self.generator = PatternGenerator(self.validation_log)
        self.grouping = GroupingEngine()

    # -- Analysis ------------------------------------------------------------

    def analyze(self, filenames: list[str]) -> TokenAnalysis:
        """Tokenize *filenames*, suggest token types and apply custom tokens."""
        start = time.perf_counter()
        analysis = self.custom_tokens.enhance_with_custom_tokens(self.tokenizer.analyze_filenames(filenames))
        token_count = sum(len(tokens) for tokens in analysis.tokenized_filenames.values())
        self.validation_log.log_file_analysis(len(filenames), token_count, _elapsed_ms(start))
        return analysis

    def labelled_tokens(self, analysis: TokenAnalysis) -> dict[str, list[FilenameToken]]:
        """Per-file tokens with the unknown segment decisions applied."""
        return {name: self.segments.apply_segment_labels(analysis.tokens_for(name))
                for name in analysis.filenames}

    # -- Configuration -------------------------------------------------------

    def build_configuration(
        self,
        filenames: list[str],
        group_position: int | None = None,
        role_rules: list[RoleRule] | None = None,
        use_any_extension: bool = False,
    ) -> PatternConfiguration:
        """Generate a configuration from sample *filenames*.

        The Group ID is the token at *group_position* of the first file, or the
        first token typed GROUP_ID when no position is given. Tokens of every
        sample contribute to the other positions so variations (front/rear,
        jpg/png) end up as alternatives in the group pattern.
        """
        rules = list(role_rules) if role_rules is not None else list(DEFAULT_ROLE_RULES)
        analysis = self.analyze(filenames)
        per_file = self.labelled_tokens(analysis)
        representative = per_file.get(filenames[0], []) if filenames else []

        group_token = self._pick_group_token(representative, group_position)
        if group_token is None:
            logger.warning("No Group ID token could be selected from the sample filenames")
            return self.generator.generate_configuration(representative, None, rules)

        group_token = group_token.with_type(TokenType.GROUP_ID, max(group_token.confidence, 0.5))
        tokens = [group_token]
        for name in filenames:
            tokens.extend(t for t in per_file.get(name, []) if t.position != group_token.position)
        tokens.sort(key=lambda t: t.position)

        config = self.generator.generate_configuration(tokens, group_token, rules)
        if use_any_extension:
            widened = apply_extension_matching(config.group_pattern, True)
            if widened != config.group_pattern:
                self.validation_log.log_configuration_change("group pattern", config.group_pattern, widened)
                config = config.with_changes(group_pattern=widened)
        return config

    @staticmethod
    def _pick_group_token(tokens: list[FilenameToken], position: int | None) -> FilenameToken | None:
        if position is not None:
            for token in tokens:
                if token.position == position:
                    return token
            raise ValueError(f"No token at position {position} (first file has {len(tokens)} tokens)")
        for token in tokens:
            if token.suggested_type == TokenType.GROUP_ID:
                return token
        return None

    @staticmethod
    def effective_rules(config: PatternConfiguration) -> list[RoleRule]:
        """Role rules of *config*, or override rules built from its role patterns."""
        if config.role_rules:
            return list(config.role_rules)
        return [
            RoleRule(role, RuleType.REGEX_OVERRIDE, config.role_pattern(role))
            for role in ImageRole.in_precedence_order()
            if config.role_pattern(role).strip()
        ]

    # -- Validation & preview ------------------------------------------------

    def validate(self, config: PatternConfiguration | None, sample_filenames: list[str] | None = None) -> ValidationResult:
        """Structural validation of *config* plus checks against sample files."""
        result = self.generator.validate_patterns(config)

        if config is not None:
            result = result.combine(self._check_samples(config, sample_filenames or []))

        for error in result.errors:
            self.validation_log.log_validation_error(error)
        for warning in result.warnings:
            self.validation_log.log_validation_warning(warning)
        return result

    def _check_samples(self, config: PatternConfiguration, samples: list[str]) -> ValidationResult:
        if not samples:
            return ValidationResult.with_warnings([ValidationWarning.of(ValidationWarningType.NO_SAMPLE_FILES)])

        errors: list[ValidationError] = []
        warnings: list[ValidationWarning] = []

        if self.grouping.validate_group_pattern(config.group_pattern).valid:
            grouped = self.grouping.group_and_assign_roles(
                samples, config.group_pattern, self.effective_rules(config), self.segments)
            total = len(samples)
            if grouped.matched_files == 0 and not any(r != REASON_NO_ROLE for r in grouped.unmatched_reasons.values()):
                # Every file matched the group pattern but none got a role
                errors.append(ValidationError.of(
                    ValidationErrorType.NO_FILES_MATCHED,
                    "No files were assigned a role - check the role rules"))
            elif grouped.matched_files == 0:
                errors.append(ValidationError.of(ValidationErrorType.NO_FILES_MATCHED))
            elif grouped.matched_files / total < LOW_MATCH_RATE:
                warnings.append(ValidationWarning.of(
                    ValidationWarningType.LOW_MATCH_RATE,
                    context=f"{grouped.matched_files}/{total} files matched"))

            no_role = sum(1 for r in grouped.unmatched_reasons.values() if r == REASON_NO_ROLE)
            if no_role and grouped.matched_files:
                warnings.append(ValidationWarning.of(
                    ValidationWarningType.INCOMPLETE_GROUPS,
                    context=f"{no_role} file(s) matched no role rule"))

        recommendation = analyze_extension_usage(samples)
        if recommendation.recommend_flexible_matching and not has_flexible_extension_matching(config.group_pattern):
            warnings.append(ValidationWarning.of(
                ValidationWarningType.EXTENSION_MISMATCH, context=recommendation.reasoning))

        return ValidationResult.from_lists(errors, warnings)

    def preview(self, filenames: list[str], config: PatternConfiguration) -> tuple[GroupingResult, PreviewSummary]:
        """Group *filenames* with *config* and summarise the outcome."""
        start = time.perf_counter()
        result = self.grouping.group_and_assign_roles(
            filenames, config.group_pattern, self.effective_rules(config), self.segments)
        summary = PreviewSummary(build_previews(filenames, result))
        self.validation_log.log_preview_update(summary.total_files, summary.matched_files, summary.group_count)
        self.validation_log.log_performance("preview", _elapsed_ms(start), f"{len(filenames)} files")
        return result, summary


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------

def parse_rule(text: str) -> RoleRule:
    """Parse ``ROLE:TYPE:VALUE`` (e.g. ``front:contains:_F_``) into a ``RoleRule``.

    A trailing ``:cs`` makes the rule case-sensitive.
    """
    parts = text.split(":", 2)
    if len(parts) != 3:
        raise argparse.ArgumentTypeError(f"Rule must look like ROLE:TYPE:VALUE, got {text!r}")
    role, kind, value = parts
    case_sensitive = False
    if value.endswith(":cs"):
        value, case_sensitive = value[:-3], True
    try:
        return RoleRule(ImageRole[role.upper()], RuleType[kind.upper()], value, case_sensitive)
    except KeyError as exc:
        raise argparse.ArgumentTypeError(f"Unknown role or rule type in {text!r}: {exc}") from exc


def collect_filenames(args) -> list[str]:
    """Filenames from ``--dir`` (sorted listing of plain files) plus positional arguments."""
    names: list[str] = []
    if args.dir:
        try:
            names.extend(sorted(
                entry.name for entry in os.scandir(args.dir) if entry.is_file()
            ))
        except OSError as exc:
            logger.error(f"Cannot list directory '{args.dir}': {exc}")
    names.extend(args.filenames or [])
    return names


def _add_input_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("filenames", nargs="*", help="Sample filenames")
    parser.add_argument("--dir", "-d", help="Read sample filenames from this directory")


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pattern-builder",
        description="Build and test filename patterns that group vehicle images and assign camera roles.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pattern-builder analyze --dir ./samples
  pattern-builder generate --dir ./samples --group-position 1 -o toll.yaml
  pattern-builder preview -c toll.yaml --dir ./samples --report report.json
  pattern-builder validate -c toll.yaml --dir ./samples
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logging")

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    analyze_parser = subparsers.add_parser("analyze", help="Tokenize sample filenames and suggest token types")
    _add_input_arguments(analyze_parser)

    generate_parser = subparsers.add_parser("generate", help="Generate a pattern configuration")
    _add_input_arguments(generate_parser)
    generate_parser.add_argument("--group-position", "-g", type=int,
                                 help="Token position of the Group ID (default: first suggested Group ID)")
    generate_parser.add_argument("--rule", "-r", action="append", type=parse_rule, dest="rules",
                                 help="Role rule ROLE:TYPE:VALUE, repeatable (default: overview/front/rear contains)")
    generate_parser.add_argument("--any-extension", action="store_true",
                                 help="Accept any image extension in the group pattern")
    generate_parser.add_argument("--output", "-o", help="Write the configuration to this YAML file")
    generate_parser.add_argument("--name", default="", help="Configuration name stored in the YAML file")

    preview_parser = subparsers.add_parser("preview", help="Group sample files with a saved configuration")
    _add_input_arguments(preview_parser)
    preview_parser.add_argument("--config", "-c", required=True, help="Configuration YAML file")
    preview_parser.add_argument("--report", help="Write a JSON grouping report to this path")

    validate_parser = subparsers.add_parser("validate", help="Validate a saved configuration")
    _add_input_arguments(validate_parser)
    validate_parser.add_argument("--config", "-c", required=True, help="Configuration YAML file")

    return parser


def _print_validation(result: ValidationResult) -> None:
    for error in result.errors:
        print(f"ERROR   {error.full_description}")
        for hint in error.type.guidance:
            print(f"        - {hint}")
    for warning in result.warnings:
        print(f"WARNING {warning.full_description}")
    print("Configuration is valid" if result.valid else "Configuration is NOT valid")


def handle_analyze_command(engine: PatternBuilderEngine, args) -> int:
    filenames = collect_filenames(args)
    if not filenames:
        print("No filenames given", file=sys.stderr)
        return 1

    analysis = engine.analyze(filenames)
    for suggestion in analysis.suggestions:
        print(f"[{suggestion.position}] {suggestion.type.name:<11} {suggestion.confidence:.2f}  "
              f"{suggestion.description} (e.g. {', '.join(suggestion.examples)})")

    summary = engine.segments.get_unknown_segment_summary(analysis.tokenized_filenames)
    if summary.has_unlabeled_segments:
        print(f"Unknown segments: {', '.join(sorted(summary.unlabeled_segments))}")
    return 0


def handle_generate_command(engine: PatternBuilderEngine, args) -> int:
    filenames = collect_filenames(args)
    if not filenames:
        print("No filenames given", file=sys.stderr)
        return 1

    try:
        config = engine.build_configuration(filenames, args.group_position, args.rules, args.any_extension)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"group:    {config.group_pattern}")
    for role in ImageRole.in_precedence_order():
        print(f"{role.name.lower() + ':':<9} {config.role_pattern(role)}")

    result = engine.validate(config, filenames)
    _print_validation(result)

    if args.output:
        try:
            save_configuration(config, args.output, name=args.name)
        except OSError as exc:
            print(f"Error: cannot write '{args.output}': {exc}", file=sys.stderr)
            return 1
        print(f"Saved configuration to {args.output}")
    return 0 if result.valid else 2


def _load_config_or_fail(path: str) -> Optional[PatternConfiguration]:
    config, _name = load_configuration(path)
    if config is None:
        print(f"Error: cannot load configuration '{path}'", file=sys.stderr)
    return config


def handle_preview_command(engine: PatternBuilderEngine, args) -> int:
    config = _load_config_or_fail(args.config)
    if config is None:
        return 1
    filenames = collect_filenames(args)

    result, summary = engine.preview(filenames, config)
    table = format_grouping_table(result)
    if table:
        print(table)
    print(summary.summary_text())

    if args.report:
        if write_grouping_report(result, summary, args.report):
            print(f"Report written to {args.report}")
        else:
            print(f"WARNING: Failed to write report to {args.report}", file=sys.stderr)
    return 0 if summary.is_healthy() else 2


def handle_validate_command(engine: PatternBuilderEngine, args) -> int:
    config = _load_config_or_fail(args.config)
    if config is None:
        return 1
    result = engine.validate(config, collect_filenames(args))
    _print_validation(result)
    return 0 if result.valid else 2


_HANDLERS = {
    "analyze": handle_analyze_command,
    "generate": handle_generate_command,
    "preview": handle_preview_command,
    "validate": handle_validate_command,
}


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    # Findings are printed directly; their log mirror is only shown with --verbose
    audit = logging.getLogger("pattern_builder.audit")
    audit.disabled = not args.verbose
    engine = PatternBuilderEngine(ValidationLog(sink=audit))
    try:
        return _HANDLERS[args.command](engine, args)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
