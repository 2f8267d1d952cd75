"""Analyzer utilities for register record search.

Records and queries go through the same analyzer so that a query token can
only ever match a token produced at index time. The pipeline is deliberately
small: lowercase, then split on anything that is not a Unicode letter or
digit. No stopwords and no stemming, since company names are short and
every word in them is significant.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
import re
from typing import Any, Protocol


# Letters and digits only; ``\w`` also admits the underscore.
ALNUM_PATTERN = r"[^\W_]+"


@dataclass
class Token:
    """Represents a token emitted by analyzers."""

    text: str
    position: int
    start_char: int
    end_char: int


class Tokenizer(Protocol):
    """Protocol implemented by tokenizers."""

    def __call__(self, text: str) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class TokenFilter(Protocol):
    """Protocol implemented by token filters."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class RegexTokenizer:
    """Regex-based tokenizer that yields alphanumeric runs."""

    def __init__(self, pattern: str = ALNUM_PATTERN, flags: int = re.UNICODE) -> None:
        self.pattern = re.compile(pattern, flags)

    def __call__(self, text: str) -> Iterator[Token]:
        for position, match in enumerate(self.pattern.finditer(text)):
            yield Token(
                text=match.group(0),
                position=position,
                start_char=match.start(),
                end_char=match.end(),
            )


class AnalyzerPipeline:
    """Composable analyzer pipeline (tokenizer + filters)."""

    def __init__(self, tokenizer: Tokenizer, filters: Sequence[TokenFilter] | None = None) -> None:
        self.tokenizer = tokenizer
        self.filters = list(filters or [])

    def __call__(self, text: str) -> list[Token]:
        stream: Iterable[Token] = self.tokenizer(text)
        for token_filter in self.filters:
            stream = token_filter(stream)
        tokens = list(stream)
        for idx, token in enumerate(tokens):  # normalize positions post-filtering
            token.position = idx
        return tokens


class RecordAnalyzer:
    """Analyzer shared by record fields and query text.

    The input is lowercased before splitting. Some characters expand when
    lowercased (``"İ"`` becomes ``"i"`` plus a combining dot), and splitting
    afterwards keeps query and field text on the same footing.
    """

    def __init__(self) -> None:
        self.pipeline = AnalyzerPipeline(RegexTokenizer())

    def __call__(self, text: Any) -> list[Token]:
        return self.pipeline(coerce_text(text).lower())


def coerce_text(value: Any) -> str:
    """Return ``value`` as text, treating ``None`` as the empty string."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


_DEFAULT_ANALYZER = RecordAnalyzer()


def tokenize(text: Any) -> list[str]:
    """Split text into lowercase alphanumeric tokens.

    Order is preserved and duplicates are kept. Any input is accepted;
    ``None`` and punctuation-only strings produce an empty list.
    """
    return [token.text for token in _DEFAULT_ANALYZER(text)]
