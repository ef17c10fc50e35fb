# grammar_detector/infrastructure/adapters/recognition/__init__.py

"""
Recognition adapters.

Usage:
    from grammar_detector.infrastructure.adapters.recognition import ReplayTranscriptSource

    source = ReplayTranscriptSource.from_file("config/replay/demo.yaml")
    session = RecognitionSession(config, engine_factory=source.create_engine)
    session.start()
"""

from .replay_engine import ReplayRecognitionEngine, ReplayStep, ReplayTranscriptSource
from .engine_registry import EngineBinding, resolve_engine

__all__ = [
    'ReplayRecognitionEngine',
    'ReplayStep',
    'ReplayTranscriptSource',
    'EngineBinding',
    'resolve_engine'
]
