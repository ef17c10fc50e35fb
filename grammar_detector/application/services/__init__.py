"""Application Services"""

from grammar_detector.application.services.recognition_session import RecognitionSession, SessionState
from grammar_detector.application.services.match_throttle import MatchThrottle

__all__ = ['RecognitionSession', 'SessionState', 'MatchThrottle']
