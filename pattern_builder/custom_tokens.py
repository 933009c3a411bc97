# -*- coding: utf-8 -*-
"""User-defined token vocabulary and its YAML persistence."""

from __future__ import annotations

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path

from pattern_builder.tokenizer import TokenAnalysis
from pattern_builder.tokens import FilenameToken, TokenType

logger = logging.getLogger(__name__)

CUSTOM_TOKEN_CONFIDENCE = 0.9

DEFAULT_CUSTOM_TOKENS_PATH = os.path.join(os.path.expanduser("~"), ".pattern_builder", "custom_tokens.yaml")


@dataclass(frozen=True)
class CustomToken:
    """A named vocabulary entry: any of ``examples`` is typed as ``mapped_type``."""

    name: str
    description: str = ""
    examples: frozenset[str] = field(default_factory=frozenset)
    mapped_type: TokenType = TokenType.SUFFIX

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Custom token name cannot be empty")
        object.__setattr__(self, "examples", frozenset(self.examples or ()))

    def __str__(self):
        return f"{self.name} ({self.description})"


PRECONFIGURED_TOKENS = (
    CustomToken("Lane", "Traffic lane identifier",
                frozenset({"lane1", "lane2", "lane3", "l1", "l2", "l3"}), TokenType.SUFFIX),
    CustomToken("Direction", "Traffic direction indicator",
                frozenset({"nb", "sb", "eb", "wb", "north", "south", "east", "west"}), TokenType.SUFFIX),
    CustomToken("Station", "Monitoring station identifier",
                frozenset({"sta1", "sta2", "station1", "station2", "st1", "st2"}), TokenType.PREFIX),
    CustomToken("Violation", "Violation type indicator",
                frozenset({"speed", "redlight", "toll", "hov", "violation"}), TokenType.SUFFIX),
)


class CustomTokenManager:
    """Registry of custom tokens keyed by lowercased name."""

    def __init__(self) -> None:
        self._tokens: dict[str, CustomToken] = {}

    def add_custom_token(self, token: CustomToken) -> None:
        self._tokens[token.name.lower()] = token

    def remove_custom_token(self, name: str) -> None:
        self._tokens.pop(name.lower(), None)

    def get_custom_token(self, name: str) -> CustomToken | None:
        return self._tokens.get(name.lower())

    def all_custom_tokens(self) -> list[CustomToken]:
        return list(self._tokens.values())

    def custom_token_count(self) -> int:
        return len(self._tokens)

    def clear_all_custom_tokens(self) -> None:
        self._tokens.clear()

    def find_matching_custom_token(self, value: str) -> CustomToken | None:
        """First custom token listing *value* among its examples (case-insensitive)."""
        lower = value.lower()
        for token in self._tokens.values():
            if any(example.lower() == lower for example in token.examples):
                return token
        return None

    def enhance_with_custom_tokens(self, analysis: TokenAnalysis) -> TokenAnalysis:
        """Return a copy of *analysis* with custom token matches retyped."""
        if not self._tokens:
            return analysis

        enhanced = {}
        for filename, tokens in analysis.tokenized_filenames.items():
            retyped = []
            for token in tokens:
                custom = self.find_matching_custom_token(token.value)
                if custom is None:
                    retyped.append(token)
                else:
                    retyped.append(FilenameToken(token.value, token.position,
                                                 custom.mapped_type, CUSTOM_TOKEN_CONFIDENCE))
            enhanced[filename] = retyped

        return TokenAnalysis(
            list(analysis.filenames),
            enhanced,
            list(analysis.suggestions),
            dict(analysis.confidence_scores),
        )

    def load_preconfigured_custom_tokens(self) -> None:
        for token in PRECONFIGURED_TOKENS:
            self.add_custom_token(token)

    # -- Persistence ---------------------------------------------------------

    def save_custom_tokens(self, path: str | Path = DEFAULT_CUSTOM_TOKENS_PATH) -> None:
        """Write every custom token to a YAML file at *path*."""
        import yaml

        entries = [
            {
                "name": token.name,
                "description": token.description,
                "mapped_type": token.mapped_type.name,
                "examples": sorted(token.examples),
            }
            for token in self._tokens.values()
        ]

        parent = os.path.dirname(str(path))
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(str(path), "w", encoding="utf-8") as f:
            yaml.dump({"custom_tokens": entries}, f, default_flow_style=False, sort_keys=False)
        logger.info(f"Saved {len(entries)} custom tokens to '{path}'")

    def load_custom_tokens(self, path: str | Path = DEFAULT_CUSTOM_TOKENS_PATH) -> None:
        """Replace the registry with the tokens stored at *path*.

        A missing file loads the preconfigured tokens; an unreadable or
        malformed file is logged and falls back to the same defaults.
        """
        path = str(path)
        if not os.path.isfile(path):
            self.load_preconfigured_custom_tokens()
            return

        import yaml

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            logger.warning(f"Failed to read custom tokens from '{path}': {exc} - using defaults")
            self.load_preconfigured_custom_tokens()
            return

        if not isinstance(data, dict) or not isinstance(data.get("custom_tokens", []), list):
            logger.warning(f"Custom tokens file '{path}' is not a valid YAML dictionary - using defaults")
            self.load_preconfigured_custom_tokens()
            return

        self._tokens.clear()
        skipped_count = 0
        for idx, entry in enumerate(data.get("custom_tokens", []), start=1):
            try:
                token = CustomToken(
                    name=entry["name"],
                    description=entry.get("description", ""),
                    examples=frozenset(str(e) for e in entry.get("examples") or ()),
                    mapped_type=TokenType[entry.get("mapped_type", "SUFFIX")],
                )
            except (KeyError, TypeError, AttributeError, ValueError) as exc:
                logger.warning(f"Custom token {idx} in '{path}' is invalid ({exc!r}) - skipping")
                skipped_count += 1
                continue
            self.add_custom_token(token)

        if skipped_count > 0:
            logger.warning(f"Skipped {skipped_count} invalid custom token(s) in '{path}'")
        logger.debug(f"Loaded {len(self._tokens)} custom tokens from '{path}'")
