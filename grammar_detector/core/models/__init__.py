# grammar_detector/core/models/__init__.py

"""Core models - data classes shared by ports, adapters and services."""

from .sentence import Sentence
from .hypothesis import Alternative, HypothesisResult, EngineErrorEvent, ResultList, single

__all__ = [
    'Sentence',
    'Alternative',
    'HypothesisResult',
    'EngineErrorEvent',
    'ResultList',
    'single'
]
