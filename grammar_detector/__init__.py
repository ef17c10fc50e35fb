"""
Grammar detector.

Watches a continuous speech-to-text hypothesis stream and reports when the
recognized text contains one of the target phrases.

Usage:
    from grammar_detector import (
        DetectorConfig, GrammarMatcher, MatchThrottle, RecognitionSession
    )

    config = DetectorConfig(
        pattern=GrammarMatcher.from_phrases(["bonjour", "salut"]),
        lang="fr-FR",
        interim_results=True
    )
    session = RecognitionSession(config, engine_factory=my_engine_factory)

    throttle = MatchThrottle(on_match=print, cooldown=30.0)
    throttle.attach(session)

    session.start()
"""

from grammar_detector.core.config.detector_config import DetectorConfig, SelectionPolicyName
from grammar_detector.core.events import DetectorEvent
from grammar_detector.infrastructure.adapters.recognition.functionality import GrammarMatcher, similarity
from grammar_detector.application.services import MatchThrottle, RecognitionSession, SessionState

__all__ = [
    'DetectorConfig',
    'SelectionPolicyName',
    'DetectorEvent',
    'GrammarMatcher',
    'similarity',
    'MatchThrottle',
    'RecognitionSession',
    'SessionState'
]

__version__ = '1.0.0'
