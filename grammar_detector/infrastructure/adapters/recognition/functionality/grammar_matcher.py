# grammar_detector/infrastructure/adapters/recognition/functionality/grammar_matcher.py

"""
Grammar (target phrase) matching for transcript fragments.
"""

import re
from typing import Iterable, List, Pattern, Tuple, Union

from grammar_detector.core.exceptions import ConfigurationError
from grammar_detector.core.logging.logger import get_logger

logger = get_logger(__name__)


class GrammarMatcher:
    """
    Case-insensitive, unanchored pattern test against transcript text.

    Matching is side-effect free; the same text always yields the same
    answer and the same spans.
    """

    def __init__(self, pattern: Union[str, Pattern]):
        """
        Args:
            pattern: Regex source or compiled pattern. Always compiled
                     with IGNORECASE.
        """
        source = pattern.pattern if isinstance(pattern, re.Pattern) else pattern
        if not source:
            raise ConfigurationError("Grammar pattern must not be empty")

        try:
            self._regex = re.compile(source, re.IGNORECASE)
        except re.error as e:
            raise ConfigurationError(f"Invalid grammar pattern {source!r}: {e}") from e

    @classmethod
    def from_phrases(cls, phrases: Iterable[str]) -> "GrammarMatcher":
        """
        Compile literal phrases into one alternation, e.g.
        ["bonjour", "salut"] -> (bonjour|salut)
        """
        escaped = [re.escape(phrase.strip()) for phrase in phrases if phrase and phrase.strip()]
        if not escaped:
            raise ConfigurationError("At least one non-empty phrase is required")

        matcher = cls(f"({'|'.join(escaped)})")
        logger.debug("grammar_compiled", phrases=len(escaped), pattern=matcher.pattern)
        return matcher

    @property
    def pattern(self) -> str:
        return self._regex.pattern

    def test(self, text: str) -> bool:
        """Does the pattern occur anywhere in text?"""
        if not text:
            return False
        return self._regex.search(text) is not None

    def spans(self, text: str) -> List[Tuple[int, int]]:
        """All non-overlapping (start, end) spans of matches in text."""
        if not text:
            return []
        return [m.span() for m in self._regex.finditer(text) if m.end() > m.start()]

    def highlight(self, text: str, open_tag: str = "<mark>", close_tag: str = "</mark>") -> str:
        """Wrap every matched fragment of text in open_tag/close_tag."""
        if not text:
            return text

        parts = []
        cursor = 0
        for start, end in self.spans(text):
            parts.append(text[cursor:start])
            parts.append(f"{open_tag}{text[start:end]}{close_tag}")
            cursor = end
        parts.append(text[cursor:])
        return "".join(parts)

    def __repr__(self) -> str:
        return f"GrammarMatcher({self.pattern!r})"
