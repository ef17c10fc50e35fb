# grammar_detector/core/models/hypothesis.py

"""Raw engine payloads: hypothesis results and error events."""

from dataclasses import dataclass, field
from typing import Any, Dict, Sequence, Tuple


@dataclass(frozen=True)
class Alternative:
    """One alternative transcript with its confidence."""
    transcript: str
    confidence: float = 0.0


@dataclass(frozen=True)
class HypothesisResult:
    """
    One entry of the engine's ordered result list.

    Alternatives are ordered best-first; earlier entries of the list
    are stable prefixes of the utterance turn.
    """
    alternatives: Tuple[Alternative, ...] = field(default_factory=tuple)
    is_final: bool = False

    @property
    def top(self) -> Alternative:
        """Best alternative (empty transcript when the engine sent none)."""
        if not self.alternatives:
            return Alternative(transcript="", confidence=0.0)
        return self.alternatives[0]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HypothesisResult":
        """
        Build from a plain mapping, e.g. a replay script entry:
        {"is_final": true, "alternatives": [{"transcript": "...", "confidence": 0.9}]}
        """
        alternatives = tuple(
            Alternative(
                transcript=str(alt.get('transcript', '')),
                confidence=float(alt.get('confidence', 0.0))
            )
            for alt in data.get('alternatives', [])
        )
        return cls(alternatives=alternatives, is_final=bool(data.get('is_final', False)))


def single(transcript: str, confidence: float = 1.0, is_final: bool = False) -> HypothesisResult:
    """Shortcut for a result with exactly one alternative."""
    return HypothesisResult(
        alternatives=(Alternative(transcript=transcript, confidence=confidence),),
        is_final=is_final
    )


ResultList = Sequence[HypothesisResult]


@dataclass(frozen=True)
class EngineErrorEvent:
    """Error reported by the engine (kind + human readable message)."""
    kind: str
    message: str = ""

    def to_dict(self) -> dict:
        return {'kind': self.kind, 'message': self.message}
