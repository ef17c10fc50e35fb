"""Continuous transcription engine port"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from grammar_detector.core.models import EngineErrorEvent, ResultList


class IRecognitionEngine(ABC):
    """
    Abstract continuous transcription engine.

    The engine is configured through plain attributes before start() and
    reports back through the three callbacks the session installs.
    start/stop/abort are fire-and-forget; their effects arrive later
    as callbacks.
    """

    def __init__(self):
        self.continuous: bool = False
        self.lang: str = "en-US"
        self.interim_results: bool = False
        self.max_alternatives: int = 1

        self.on_result: Optional[Callable[[ResultList], None]] = None
        self.on_error: Optional[Callable[[EngineErrorEvent], None]] = None
        self.on_end: Optional[Callable[[], None]] = None

    @abstractmethod
    def start(self):
        """Start listening"""
        pass

    @abstractmethod
    def stop(self):
        """Stop listening gracefully (pending audio may still produce a result)"""
        pass

    @abstractmethod
    def abort(self):
        """Stop immediately, engine reports 'aborted'"""
        pass


# Vrací novou instanci enginu při každém (re)startu
EngineFactory = Callable[[], IRecognitionEngine]
