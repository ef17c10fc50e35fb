# tests/conftest.py

import pytest

from grammar_detector.core.config.detector_config import DetectorConfig
from grammar_detector.core.models import EngineErrorEvent
from grammar_detector.core.ports.i_recognition_engine import IRecognitionEngine
from grammar_detector.infrastructure.adapters.recognition.functionality import GrammarMatcher


class FakeEngine(IRecognitionEngine):
    """Records primitive calls; callbacks are fired by the test."""

    def __init__(self, fail_on_start: bool = False):
        super().__init__()
        self.fail_on_start = fail_on_start
        self.start_calls = 0
        self.stop_calls = 0
        self.abort_calls = 0

    def start(self):
        self.start_calls += 1
        if self.fail_on_start:
            raise RuntimeError("microphone unavailable")

    def stop(self):
        self.stop_calls += 1

    def abort(self):
        self.abort_calls += 1

    # Test helpers
    def emit_result(self, *results):
        self.on_result(list(results))

    def emit_error(self, kind: str, message: str = ""):
        self.on_error(EngineErrorEvent(kind=kind, message=message))

    def emit_end(self):
        self.on_end()


class FakeEngineFactory:
    """EngineFactory that keeps every handle it created."""

    def __init__(self, fail_on_start: bool = False):
        self.fail_on_start = fail_on_start
        self.engines = []

    def __call__(self) -> FakeEngine:
        engine = FakeEngine(fail_on_start=self.fail_on_start)
        self.engines.append(engine)
        return engine

    @property
    def latest(self) -> FakeEngine:
        return self.engines[-1]


class ManualTimer:
    def __init__(self, due: float, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Deterministic stand-in for loop.call_later."""

    def __init__(self):
        self.now = 0.0
        self.timers = []

    def __call__(self, delay, callback):
        timer = ManualTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> int:
        return len([t for t in self.timers if not t.cancelled])

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = sorted(
            (t for t in self.timers if not t.cancelled and t.due <= self.now),
            key=lambda t: t.due
        )
        self.timers = [t for t in self.timers if t not in due and not t.cancelled]
        for timer in due:
            timer.callback()


class EventRecorder:
    """Subscribes to every session notification and keeps (name, payload)."""

    def __init__(self, emitter):
        self.events = []
        for name in ("start", "end", "error", "sentence", "match"):
            emitter.on(name, lambda payload, name=name: self.events.append((name, payload)))

    def named(self, name):
        return [payload for event, payload in self.events if event == name]

    def names(self):
        return [event for event, _ in self.events]


@pytest.fixture
def matcher():
    return GrammarMatcher.from_phrases(["bonjour", "salut"])


@pytest.fixture
def make_config(matcher):
    def _make(**overrides):
        options = dict(pattern=matcher, continuous=True, lang="fr-FR", interim_results=True)
        options.update(overrides)
        return DetectorConfig(**options)
    return _make


@pytest.fixture
def engine_factory():
    return FakeEngineFactory()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def failing_engine_factory():
    return FakeEngineFactory(fail_on_start=True)


@pytest.fixture
def recorder():
    return EventRecorder
