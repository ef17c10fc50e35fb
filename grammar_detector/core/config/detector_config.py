# grammar_detector/core/config/detector_config.py

"""Detector configuration record - immutable for the session lifetime."""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from grammar_detector.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from grammar_detector.infrastructure.adapters.recognition.functionality.grammar_matcher import GrammarMatcher


class SelectionPolicyName(str, Enum):
    """Registered sentence selection policies"""
    CONFIDENCE_SCAN = "confidence_scan"
    WINDOWED_CONCATENATION = "windowed_concatenation"


@dataclass(frozen=True)
class DetectorConfig:
    """
    Konfigurace detektoru.
    Nastaví se jednou při konstrukci session a už se nemění.
    """

    pattern: "GrammarMatcher"

    # ========================================
    # Engine settings
    # ========================================
    continuous: bool = True
    lang: str = "en-US"
    interim_results: bool = False
    max_alternatives: int = 1

    # ========================================
    # Sentence selection
    # ========================================
    confidence: float = 0.8
    same_sentence_tolerance: float = 0.5
    selection_policy: SelectionPolicyName = SelectionPolicyName.CONFIDENCE_SCAN

    # ========================================
    # Stall recovery (None = disabled)
    # ========================================
    watchdog_interval: Optional[float] = 2.0

    def __post_init__(self):
        # Normalizuj string -> enum (frozen, proto object.__setattr__)
        try:
            object.__setattr__(self, 'selection_policy', SelectionPolicyName(self.selection_policy))
        except ValueError as e:
            raise ConfigurationError(f"Unknown selection policy: {self.selection_policy!r}") from e
        self.validate()

    @property
    def watchdog_enabled(self) -> bool:
        return bool(self.watchdog_interval)

    def validate(self) -> None:
        """Validuj konfiguraci."""
        if self.pattern is None or not callable(getattr(self.pattern, 'test', None)):
            raise ConfigurationError("pattern must be a GrammarMatcher")

        if not self.lang:
            raise ConfigurationError("lang must not be empty")

        if isinstance(self.max_alternatives, bool) or not isinstance(self.max_alternatives, int):
            raise ConfigurationError(f"max_alternatives must be an integer, got {self.max_alternatives!r}")

        if self.max_alternatives < 1:
            raise ConfigurationError("max_alternatives must be >= 1")

        if not 0.0 <= self.confidence <= 1.0:
            raise ConfigurationError("confidence must be between 0.0-1.0")

        if not 0.0 <= self.same_sentence_tolerance <= 1.0:
            raise ConfigurationError("same_sentence_tolerance must be between 0.0-1.0")

        if self.watchdog_interval is not None and self.watchdog_interval < 0:
            raise ConfigurationError("watchdog_interval must be >= 0 (or None to disable)")

    def to_dict(self) -> dict:
        """Export config jako dictionary."""
        return {
            'pattern': self.pattern.pattern,
            'continuous': self.continuous,
            'lang': self.lang,
            'interim_results': self.interim_results,
            'max_alternatives': self.max_alternatives,
            'confidence': self.confidence,
            'same_sentence_tolerance': self.same_sentence_tolerance,
            'selection_policy': self.selection_policy.value,
            'watchdog_interval': self.watchdog_interval
        }
