# -*- coding: utf-8 -*-
"""Image file extension detection and flexible extension matching.

Responsibilities:
    - Detect and normalise image file extensions.
    - Generate extension patterns and widen a group pattern to accept any
      supported image extension.
    - Recommend flexible matching when sample files use several extensions.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field

from pattern_builder.pattern_generator import DELIMITER_PATTERN

SUPPORTED_IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "tiff", "tif", "bmp", "gif", "webp"})

ANY_IMAGE_EXTENSION_PATTERN = r"(?i:\.(?:jpg|jpeg|png|tiff?|bmp|gif|webp))"

# Literal extension forms found in generated or hand-written group patterns
_EXTENSION_FORMS = (
    # delimiter followed by an extension token, as emitted by the generator
    re.compile(re.escape(DELIMITER_PATTERN) + r"\(\?i:[A-Za-z0-9]{2,5}\)(?=\$?\Z)"),
    # (?i:\.jpg)
    re.compile(r"\(\?i:\\\.[A-Za-z0-9]{2,5}\)"),
    # \.jpg
    re.compile(r"\\\.[A-Za-z0-9]{2,5}(?![A-Za-z0-9])"),
)


def get_extension(filename: str) -> str:
    """Lowercased extension of *filename* without the dot, or ``""``."""
    if not filename:
        return ""
    ext = os.path.splitext(filename)[1]
    return ext[1:].lower() if len(ext) > 1 else ""


def has_image_extension(filename: str) -> bool:
    return get_extension(filename) in SUPPORTED_IMAGE_EXTENSIONS


def get_unique_extensions(filenames: list[str]) -> set[str]:
    return {ext for ext in (get_extension(name) for name in filenames or ()) if ext}


def generate_extension_pattern(extensions, case_sensitive: bool = False) -> str:
    """Pattern matching a dot followed by one of *extensions*.

    An empty selection falls back to ``ANY_IMAGE_EXTENSION_PATTERN``.
    """
    if not extensions:
        return ANY_IMAGE_EXTENSION_PATTERN
    body = r"\.(?:" + "|".join(re.escape(ext) for ext in sorted(extensions)) + ")"
    return body if case_sensitive else f"(?i:{body})"


def has_flexible_extension_matching(pattern: str | None) -> bool:
    return bool(pattern) and "jpg|jpeg|png|tiff" in pattern


def apply_extension_matching(pattern: str, use_any_extension: bool) -> str:
    """Replace a literal extension in *pattern* with ``ANY_IMAGE_EXTENSION_PATTERN``."""
    if not pattern or not use_any_extension or has_flexible_extension_matching(pattern):
        return pattern
    for form in _EXTENSION_FORMS:
        modified, count = form.subn(lambda m: ANY_IMAGE_EXTENSION_PATTERN, pattern, count=1)
        if count:
            return modified
    return pattern


def validate_extension(filename: str, use_any_extension: bool = True, specific_extensions=None) -> bool:
    """True if *filename* carries an acceptable extension."""
    if not filename:
        return False
    if use_any_extension or not specific_extensions:
        return has_image_extension(filename)
    return get_extension(filename) in {ext.lower() for ext in specific_extensions}


def describe_extension_matching(use_any_extension: bool, specific_extensions=None) -> str:
    if use_any_extension:
        return "Any image extension (.jpg, .jpeg, .png, .tiff, .bmp, .gif, .webp)"
    if not specific_extensions:
        return "No extension filtering"
    if len(specific_extensions) == 1:
        return f"Only .{next(iter(specific_extensions))} files"
    return "Only " + ", ".join(f".{ext}" for ext in sorted(specific_extensions)) + " files"


@dataclass(frozen=True)
class ExtensionRecommendation:
    recommend_flexible_matching: bool
    detected_extensions: frozenset[str] = field(default_factory=frozenset)
    reasoning: str = ""


def analyze_extension_usage(filenames: list[str]) -> ExtensionRecommendation:
    """Recommend whether a pattern should accept any image extension."""
    if not filenames:
        return ExtensionRecommendation(False, frozenset(), "No files to analyze")

    extensions = frozenset(get_unique_extensions(filenames))
    if not extensions:
        return ExtensionRecommendation(False, extensions, "No file extensions found")
    if len(extensions) == 1:
        ext = next(iter(extensions))
        return ExtensionRecommendation(False, extensions, f"All files use .{ext} extension")

    listed = ", ".join(f".{ext}" for ext in sorted(extensions))
    if extensions <= SUPPORTED_IMAGE_EXTENSIONS:
        return ExtensionRecommendation(
            True, extensions, f"Multiple image extensions found ({listed}) - recommend flexible matching")
    return ExtensionRecommendation(
        False, extensions, "Mixed file types found - specific extension matching recommended")
