# grammar_detector/core/models/sentence.py

"""Sentence model - best current hypothesis for one utterance."""

from dataclasses import dataclass, replace


@dataclass
class Sentence:
    """Nejlepší aktuální hypotéza pro jednu promluvu."""
    value: str = ""
    matched: bool = False
    is_final: bool = False

    def snapshot(self) -> "Sentence":
        """Copy handed to listeners so later mutation does not leak."""
        return replace(self)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'value': self.value,
            'matched': self.matched,
            'isFinal': self.is_final
        }
