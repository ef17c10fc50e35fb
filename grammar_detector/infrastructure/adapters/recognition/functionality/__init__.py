# grammar_detector/infrastructure/adapters/recognition/functionality/__init__.py

"""
Recognition functionality modules.
Matching, accumulation, dedup and stall detection for transcript streams.
"""

from .edit_similarity import similarity, edit_distance, is_same_sentence
from .grammar_matcher import GrammarMatcher
from .transcript_accumulator import (
    TranscriptAccumulator,
    SentenceSelectionPolicy,
    ConfidenceScanPolicy,
    WindowedConcatenationPolicy,
    AccumulatorUpdate,
    Selection,
    create_policy
)
from .watchdog_timer import WatchdogTimer, Scheduler, DEFAULT_WATCHDOG_INTERVAL

__all__ = [
    'similarity',
    'edit_distance',
    'is_same_sentence',
    'GrammarMatcher',
    'TranscriptAccumulator',
    'SentenceSelectionPolicy',
    'ConfidenceScanPolicy',
    'WindowedConcatenationPolicy',
    'AccumulatorUpdate',
    'Selection',
    'create_policy',
    'WatchdogTimer',
    'Scheduler',
    'DEFAULT_WATCHDOG_INTERVAL'
]
