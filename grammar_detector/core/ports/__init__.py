"""Ports (interfaces) the core depends on"""

from grammar_detector.core.ports.i_recognition_engine import IRecognitionEngine, EngineFactory

__all__ = ['IRecognitionEngine', 'EngineFactory']
