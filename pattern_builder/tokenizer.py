# -*- coding: utf-8 -*-
"""Filename tokenization and token type suggestion.

Responsibilities:
    - Split filenames into positional tokens on ``_ - . whitespace``.
    - Merge dash-written date runs (``2024-01-15``) back into a single token.
    - Analyse a batch of filenames position by position and suggest a
      ``TokenType`` for each token.

Example:
    >>> tokenizer = FilenameTokenizer()
    >>> [t.value for t in tokenizer.tokenize_filename("cam1_2024-01-15_front.jpg")]
    ['cam1', '2024-01-15', 'front', 'jpg']
"""

from __future__ import annotations

import re
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from statistics import mean
from typing import Optional

from pattern_builder.extensions import SUPPORTED_IMAGE_EXTENSIONS
from pattern_builder.tokens import (
    ALL_CAMERA_SYNONYMS,
    FilenameToken,
    ImageRole,
    TokenSuggestion,
    TokenType,
    role_for_camera_value,
)

logger = logging.getLogger(__name__)

# One filename segment; delimiters are `_ - . whitespace`
SEGMENT_RE = re.compile(r"[^_\-\.\s]+")

DATE_RES = (
    re.compile(r"\d{4}-\d{2}-\d{2}"),  # 2024-01-15
    re.compile(r"\d{2}-\d{2}-\d{4}"),  # 01-15-2024
    re.compile(r"\d{8}"),              # 20240115 / 01152024
)

INDEX_RE = re.compile(r"\d{1,6}")

_YEAR_RE = re.compile(r"\d{4}")
_PAIR_RE = re.compile(r"\d{2}")

# Suggestion thresholds
EXTENSION_THRESHOLD = 0.5
CAMERA_SIDE_THRESHOLD = 0.3
DATE_THRESHOLD = 0.5
INDEX_THRESHOLD = 0.4
GROUP_ID_UNIQUENESS = 0.7
FIXED_UNIQUENESS = 0.3
MAX_EXAMPLES = 3

DEFAULT_CACHE_SIZE = 1000


def _is_date(value: str) -> bool:
    return any(r.fullmatch(value) for r in DATE_RES)


def _ratio(values, predicate) -> float:
    if not values:
        return 0.0
    return sum(1 for v in values if predicate(v)) / len(values)


def image_role_for_token(value: str) -> ImageRole | None:
    """Role implied by a camera side token such as ``front`` or ``ov``."""
    if not value:
        return None
    return role_for_camera_value(value)


@dataclass
class TokenAnalysis:
    """Result of ``FilenameTokenizer.analyze_filenames``."""

    filenames: list[str] = field(default_factory=list)
    tokenized_filenames: dict[str, list[FilenameToken]] = field(default_factory=dict)
    suggestions: list[TokenSuggestion] = field(default_factory=list)
    confidence_scores: dict[TokenType, float] = field(default_factory=dict)

    def tokens_for(self, filename: str) -> list[FilenameToken]:
        return self.tokenized_filenames.get(filename, [])

    def best_suggestion(self) -> Optional[TokenSuggestion]:
        if not self.suggestions:
            return None
        return max(self.suggestions, key=lambda s: s.confidence)

    def suggestions_for_type(self, token_type: TokenType) -> list[TokenSuggestion]:
        return [s for s in self.suggestions if s.type == token_type]


class FilenameTokenizer:
    """Splits filenames into tokens and suggests their types.

    ``cache_size`` bounds an LRU cache of tokenized filenames; 0 disables it.
    """

    def __init__(self, cache_size: int = DEFAULT_CACHE_SIZE) -> None:
        self._cache_size = cache_size
        self._cache: OrderedDict[str, tuple[FilenameToken, ...]] = OrderedDict()

    def clear_cache(self) -> None:
        self._cache.clear()

    @property
    def cache_len(self) -> int:
        return len(self._cache)

    def tokenize_filename(self, filename: str) -> list[FilenameToken]:
        if not filename or not filename.strip():
            return []

        cached = self._cache.get(filename)
        if cached is not None:
            self._cache.move_to_end(filename)
            # Callers may retype tokens, so hand out fresh objects
            return [t.with_position(t.position) for t in cached]

        matches = list(SEGMENT_RE.finditer(filename))
        parts = [m.group() for m in matches]
        delimiters = [filename[a.end():b.start()] for a, b in zip(matches, matches[1:])]
        tokens = self._merge_dates(parts, delimiters)

        if self._cache_size > 0:
            self._cache[filename] = tuple(t.with_position(t.position) for t in tokens)
            if len(self._cache) > self._cache_size:
                self._cache.popitem(last=False)
        return tokens

    @staticmethod
    def _merge_dates(parts: list[str], delimiters: list[str]) -> list[FilenameToken]:
        """Build tokens from *parts*, joining dash-separated date runs into one value.

        ``delimiters[i]`` is the text between ``parts[i]`` and ``parts[i + 1]``.
        Only runs written with single dashes are merged so the token keeps the
        exact shape it has in the filename.
        """
        merged: list[str] = []
        i = 0
        while i < len(parts):
            if i + 2 < len(parts) and delimiters[i] == delimiters[i + 1] == "-":
                a, b, c = parts[i:i + 3]
                ymd = _YEAR_RE.fullmatch(a) and _PAIR_RE.fullmatch(b) and _PAIR_RE.fullmatch(c)
                mdy = _PAIR_RE.fullmatch(a) and _PAIR_RE.fullmatch(b) and _YEAR_RE.fullmatch(c)
                if ymd or mdy:
                    merged.append(f"{a}-{b}-{c}")
                    i += 3
                    continue
            merged.append(parts[i])
            i += 1
        return [FilenameToken(value, position) for position, value in enumerate(merged)]

    # -- Batch analysis ------------------------------------------------------

    def analyze_filenames(self, filenames: list[str]) -> TokenAnalysis:
        """Tokenize *filenames* and type every token from positional statistics."""
        if not filenames:
            return TokenAnalysis()

        tokenized = {name: self.tokenize_filename(name) for name in filenames}
        suggestions = self.suggest_token_types(tokenized)

        by_type: dict[TokenType, list[float]] = {}
        for s in suggestions:
            by_type.setdefault(s.type, []).append(s.confidence)
        scores = {kind: mean(values) for kind, values in by_type.items()}

        self._apply_suggestions(tokenized, suggestions)
        logger.debug(f"Analysed {len(filenames)} filenames: {len(suggestions)} suggestions")
        return TokenAnalysis(list(filenames), tokenized, suggestions, scores)

    def suggest_token_types(self, tokenized: dict[str, list[FilenameToken]]) -> list[TokenSuggestion]:
        by_position: dict[int, list[str]] = {}
        for tokens in tokenized.values():
            for token in tokens:
                by_position.setdefault(token.position, []).append(token.value)

        suggestions = []
        for position in sorted(by_position):
            suggestions.extend(self._analyze_position(position, by_position[position], len(tokenized)))
        return suggestions

    @staticmethod
    def _analyze_position(position: int, values: list[str], total_files: int) -> list[TokenSuggestion]:
        unique = list(dict.fromkeys(values))
        examples = unique[:MAX_EXAMPLES]
        uniqueness = len(unique) / len(values)

        def suggest(kind, description, confidence):
            return TokenSuggestion(kind, description, list(examples), confidence, position)

        found = []

        # Only positions present in every file can hold the extension
        if len(values) == total_files:
            ext = _ratio(unique, lambda v: v.lower() in SUPPORTED_IMAGE_EXTENSIONS)
            if ext > EXTENSION_THRESHOLD:
                found.append(suggest(TokenType.EXTENSION, "File extension", ext))

        camera = _ratio(unique, lambda v: v.lower() in ALL_CAMERA_SYNONYMS)
        if camera > CAMERA_SIDE_THRESHOLD:
            found.append(suggest(TokenType.CAMERA_SIDE, "Camera position or image side", camera))

        date = _ratio(unique, _is_date)
        if date > DATE_THRESHOLD:
            found.append(suggest(TokenType.DATE, "Date or timestamp", date))

        index = _ratio(unique, lambda v: INDEX_RE.fullmatch(v) is not None)
        if index > INDEX_THRESHOLD:
            found.append(suggest(TokenType.INDEX, "Numeric index or sequence", index))

        if uniqueness > GROUP_ID_UNIQUENESS and max(camera, date, index) < FIXED_UNIQUENESS:
            found.append(suggest(TokenType.GROUP_ID, "Vehicle group identifier", uniqueness * 0.8))

        if uniqueness < FIXED_UNIQUENESS:
            if position == 0:
                found.append(suggest(TokenType.PREFIX, "Fixed prefix", (1.0 - uniqueness) * 0.7))
            else:
                found.append(suggest(TokenType.SUFFIX, "Fixed suffix", (1.0 - uniqueness) * 0.6))

        return found

    @staticmethod
    def _matches_kind(value: str, kind: TokenType) -> bool:
        if kind == TokenType.EXTENSION:
            return value.lower() in SUPPORTED_IMAGE_EXTENSIONS
        if kind == TokenType.CAMERA_SIDE:
            return value.lower() in ALL_CAMERA_SYNONYMS
        if kind == TokenType.DATE:
            return _is_date(value)
        if kind == TokenType.INDEX:
            return INDEX_RE.fullmatch(value) is not None
        # Group ids vary per file, so examples only ever list a few of them
        return kind == TokenType.GROUP_ID

    def _apply_suggestions(self, tokenized, suggestions: list[TokenSuggestion]) -> None:
        by_position: dict[int, list[TokenSuggestion]] = {}
        for s in suggestions:
            by_position.setdefault(s.position, []).append(s)

        for tokens in tokenized.values():
            for token in tokens:
                candidates = [
                    s for s in by_position.get(token.position, ())
                    if token.value in s.examples or self._matches_kind(token.value, s.type)
                ]
                if candidates:
                    best = max(candidates, key=lambda s: s.confidence)
                    token.suggested_type = best.type
                    token.confidence = best.confidence
