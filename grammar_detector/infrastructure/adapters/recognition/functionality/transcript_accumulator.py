# grammar_detector/infrastructure/adapters/recognition/functionality/transcript_accumulator.py

"""
Transcript accumulation across interim/final engine results.

Two selection policies exist side by side and are NOT interchangeable
in their matching semantics:

- ConfidenceScanPolicy: newest entry above the confidence threshold wins,
  `matched` latches once per sentence, finalized repeats of the previous
  sentence are dropped (edit similarity).
- WindowedConcatenationPolicy: last entry prefixed with the penultimate one,
  match recomputed on every callback, no dedup.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import NamedTuple, Optional

from grammar_detector.core.config.detector_config import SelectionPolicyName
from grammar_detector.core.exceptions import ConfigurationError
from grammar_detector.core.logging.logger import get_logger
from grammar_detector.core.models import ResultList, Sentence

from .edit_similarity import is_same_sentence, similarity
from .grammar_matcher import GrammarMatcher

logger = get_logger(__name__)


class Selection(NamedTuple):
    """Working value picked from one result list."""
    value: str
    is_final: bool


@dataclass(frozen=True)
class AccumulatorUpdate:
    """Co má session po jednom callbacku oznámit."""
    sentence: Sentence
    emit_sentence: bool
    emit_match: bool
    dropped: bool = False


class SentenceSelectionPolicy(ABC):
    """Strategy deciding the current sentence and which notifications it earns."""

    name: SelectionPolicyName

    def __init__(self):
        self._current = Sentence()
        self._last = Sentence()

    @property
    def current_sentence(self) -> Sentence:
        return self._current

    @property
    def last_sentence(self) -> Sentence:
        return self._last

    def reset(self) -> None:
        self._current = Sentence()
        self._last = Sentence()

    @abstractmethod
    def select(self, results: ResultList) -> Optional[Selection]:
        """Pick the working value from the ordered result list (None = keep current)."""
        pass

    @abstractmethod
    def process(self, results: ResultList, matcher: GrammarMatcher) -> Optional[AccumulatorUpdate]:
        """Apply one result callback."""
        pass


class ConfidenceScanPolicy(SentenceSelectionPolicy):
    """Confidence scan + latched match + edit-similarity dedup."""

    name = SelectionPolicyName.CONFIDENCE_SCAN

    def __init__(self, confidence: float = 0.8, same_sentence_tolerance: float = 0.5):
        super().__init__()
        self.confidence = confidence
        self.same_sentence_tolerance = same_sentence_tolerance

    def select(self, results: ResultList) -> Optional[Selection]:
        if not results:
            return None

        # Jediný výsledek bereme vždy, bez ohledu na confidence
        if len(results) == 1:
            result = results[0]
            return Selection(result.top.transcript.strip(), result.is_final)

        for result in reversed(results):
            if result.top.confidence >= self.confidence:
                return Selection(result.top.transcript.strip(), result.is_final)

        return None

    def process(self, results: ResultList, matcher: GrammarMatcher) -> Optional[AccumulatorUpdate]:
        if not results:
            return None

        selection = self.select(results)
        if selection is not None:
            self._current.value = selection.value
            self._current.is_final = selection.is_final
        else:
            # Nothing confident enough - keep the previous value as interim
            self._current.is_final = False

        if not self._current.is_final:
            matched_now = self._match_current(matcher)
            return AccumulatorUpdate(
                sentence=self._current.snapshot(),
                emit_sentence=True,
                emit_match=matched_now
            )

        # Skip spam sentence
        if is_same_sentence(self._last.value, self._current.value, self.same_sentence_tolerance):
            logger.debug(
                "sentence_dropped_as_repeat",
                value=self._current.value[:100],
                similarity=round(similarity(self._last.value, self._current.value), 3)
            )
            dropped = self._current.snapshot()
            self._current = Sentence()
            return AccumulatorUpdate(sentence=dropped, emit_sentence=False, emit_match=False, dropped=True)

        matched_now = self._match_current(matcher)
        finalized = self._current.snapshot()

        # Reset při nové větě
        self._last = self._current
        self._current = Sentence()

        return AccumulatorUpdate(sentence=finalized, emit_sentence=True, emit_match=matched_now)

    def _match_current(self, matcher: GrammarMatcher) -> bool:
        """Latch `matched`; True only on the false -> true transition."""
        if not self._current.matched and matcher.test(self._current.value):
            self._current.matched = True
            return True
        return False


class WindowedConcatenationPolicy(SentenceSelectionPolicy):
    """Last two entries concatenated, match recomputed on every callback."""

    name = SelectionPolicyName.WINDOWED_CONCATENATION

    def select(self, results: ResultList) -> Optional[Selection]:
        if not results:
            return None

        final_entry = results[-1]
        value = final_entry.top.transcript.strip()

        # Penultimate entry keeps continuity when the engine resets its list
        if len(results) > 1:
            value = f"{results[-2].top.transcript.strip()} {value}".strip()

        return Selection(value, final_entry.is_final)

    def process(self, results: ResultList, matcher: GrammarMatcher) -> Optional[AccumulatorUpdate]:
        selection = self.select(results)
        if selection is None:
            return None

        sentence = Sentence(
            value=selection.value,
            matched=matcher.test(selection.value),
            is_final=selection.is_final
        )

        if sentence.is_final:
            self._last = sentence
            self._current = Sentence()
        else:
            self._current = sentence

        return AccumulatorUpdate(
            sentence=sentence.snapshot(),
            emit_sentence=True,
            emit_match=sentence.matched
        )


def create_policy(
        name: SelectionPolicyName,
        confidence: float = 0.8,
        same_sentence_tolerance: float = 0.5
) -> SentenceSelectionPolicy:
    """Build the policy registered under name."""
    name = SelectionPolicyName(name)
    if name == SelectionPolicyName.CONFIDENCE_SCAN:
        return ConfidenceScanPolicy(confidence=confidence, same_sentence_tolerance=same_sentence_tolerance)
    if name == SelectionPolicyName.WINDOWED_CONCATENATION:
        return WindowedConcatenationPolicy()
    raise ConfigurationError(f"Unknown selection policy: {name}")


class TranscriptAccumulator:
    """
    Merges consecutive result lists into the current sentence.

    Thin facade over a SentenceSelectionPolicy; the session only talks
    to this class.
    """

    def __init__(self, matcher: GrammarMatcher, policy: SentenceSelectionPolicy):
        self.matcher = matcher
        self.policy = policy

        logger.debug("transcript_accumulator_initialized", policy=policy.name.value)

    @property
    def current_sentence(self) -> Sentence:
        return self.policy.current_sentence

    @property
    def last_sentence(self) -> Sentence:
        return self.policy.last_sentence

    def accept(self, results: ResultList) -> Optional[AccumulatorUpdate]:
        """Process one result callback; None when the list carried nothing usable."""
        return self.policy.process(results, self.matcher)

    def reset(self) -> None:
        self.policy.reset()
