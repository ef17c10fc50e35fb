# grammar_detector/application/services/recognition_session.py

"""Recognition Session - restart-on-drop state machine around the engine"""

from enum import Enum
from typing import Optional

import structlog

from grammar_detector.core.config.detector_config import DetectorConfig
from grammar_detector.core.events import DetectorEvent, EventEmitter
from grammar_detector.core.exceptions import ErrorCategory, classify_engine_error
from grammar_detector.core.models import EngineErrorEvent, ResultList, Sentence
from grammar_detector.core.ports.i_recognition_engine import EngineFactory, IRecognitionEngine
from grammar_detector.infrastructure.adapters.recognition.functionality import (
    Scheduler,
    TranscriptAccumulator,
    WatchdogTimer,
    create_policy
)

logger = structlog.get_logger()

ENGINE_EXCEPTION = "engine-exception"


class SessionState(Enum):
    """Session states"""
    INACTIVE = "inactive"
    ACTIVE = "active"


class RecognitionSession(EventEmitter):
    """
    Orchestrates engine start/stop/restart and routes results.

    States:
    - INACTIVE: no engine is listening
    - ACTIVE: an engine handle is listening; if it ends on its own
      (or the watchdog stops it) a fresh handle is started immediately

    Notifications: start, end, error, sentence, match.
    Nothing is ever raised to the caller; failures arrive as `error`.
    """

    def __init__(
            self,
            config: DetectorConfig,
            engine_factory: EngineFactory,
            scheduler: Optional[Scheduler] = None
    ):
        """
        Args:
            config: Immutable detector configuration (pattern included)
            engine_factory: Returns a fresh engine handle on every call
            scheduler: Watchdog scheduler (default: running asyncio loop)
        """
        super().__init__()
        self._config = config
        self._engine_factory = engine_factory
        self._engine: Optional[IRecognitionEngine] = None
        self._state = SessionState.INACTIVE

        self._accumulator = TranscriptAccumulator(
            matcher=config.pattern,
            policy=create_policy(
                config.selection_policy,
                confidence=config.confidence,
                same_sentence_tolerance=config.same_sentence_tolerance
            )
        )

        self._watchdog: Optional[WatchdogTimer] = None
        if config.watchdog_enabled:
            self._watchdog = WatchdogTimer(
                interval=config.watchdog_interval,
                on_timeout=self._on_watchdog_timeout,
                scheduler=scheduler
            )

        self.restart_count = 0

        logger.info(
            "recognition_session_initialized",
            lang=config.lang,
            policy=config.selection_policy.value,
            watchdog_interval=config.watchdog_interval
        )

    # ========================================
    # PUBLIC INTERFACE
    # ========================================

    @property
    def config(self) -> DetectorConfig:
        return self._config

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state == SessionState.ACTIVE

    @property
    def current_sentence(self) -> Sentence:
        return self._accumulator.current_sentence.snapshot()

    def start(self) -> None:
        """Start the recognition (no-op when already active)."""
        if self.is_active:
            return

        self._state = SessionState.ACTIVE
        self._accumulator.reset()
        logger.info("session_starting")

        if not self._launch_engine():
            self._state = SessionState.INACTIVE
            return

        self.notify(DetectorEvent.START)

    def stop(self) -> None:
        """Stop the recognition and report `end` (no-op when inactive)."""
        if not self.is_active:
            return

        self._state = SessionState.INACTIVE
        self._cancel_watchdog()
        logger.info("session_stopping")

        if self._engine is not None:
            self._call_engine(self._engine, 'abort')

        # End is reported here; the handle's later 'aborted' only confirms it
        self.notify(DetectorEvent.END)

    # ========================================
    # ENGINE LIFECYCLE
    # ========================================

    def _launch_engine(self) -> bool:
        """Create, configure, wire and start a fresh handle. Returns success."""
        try:
            engine = self._engine_factory()
        except Exception as e:
            logger.error("engine_creation_failed", error=str(e), exc_info=True)
            self.notify(DetectorEvent.ERROR, EngineErrorEvent(kind=ENGINE_EXCEPTION, message=str(e)))
            return False

        # Bind options
        engine.continuous = self._config.continuous
        engine.lang = self._config.lang
        engine.interim_results = self._config.interim_results
        engine.max_alternatives = self._config.max_alternatives

        # Bind events - each closure remembers its own handle
        engine.on_result = lambda results: self._on_result(engine, results)
        engine.on_error = lambda event: self._on_error(engine, event)
        engine.on_end = lambda: self._on_end(engine)

        # Nahraď předchozí handle (nikdy dva živé)
        self._engine = engine
        return self._call_engine(engine, 'start')

    def _restart_engine(self) -> None:
        self.restart_count += 1
        logger.info("engine_restarting", restart_count=self.restart_count)

        if not self._launch_engine():
            self._state = SessionState.INACTIVE
            self._cancel_watchdog()
            self.notify(DetectorEvent.END)

    def _call_engine(self, engine: IRecognitionEngine, primitive: str) -> bool:
        """Invoke start/stop/abort; a raising engine becomes an `error` notification."""
        try:
            getattr(engine, primitive)()
            return True
        except Exception as e:
            logger.error("engine_call_failed", primitive=primitive, error=str(e), exc_info=True)
            self.notify(DetectorEvent.ERROR, EngineErrorEvent(kind=ENGINE_EXCEPTION, message=str(e)))
            return False

    def _rearm_watchdog(self) -> None:
        if self._watchdog is None:
            return
        try:
            self._watchdog.rearm()
        except Exception as e:
            # Result is still routed, only stall recovery is lost
            logger.error("watchdog_rearm_failed", error=str(e), exc_info=True)

    def _cancel_watchdog(self) -> None:
        if self._watchdog is not None:
            self._watchdog.cancel()

    # ========================================
    # ENGINE CALLBACKS
    # ========================================

    def _on_result(self, engine: IRecognitionEngine, results: ResultList) -> None:
        if engine is not self._engine or not self.is_active:
            logger.debug("stale_result_ignored")
            return

        self._rearm_watchdog()

        update = self._accumulator.accept(results)
        if update is None or update.dropped:
            return

        if update.emit_match:
            logger.info("grammar_matched", value=update.sentence.value[:100], is_final=update.sentence.is_final)
            self.notify(DetectorEvent.MATCH, update.sentence)

        if update.emit_sentence:
            self.notify(DetectorEvent.SENTENCE, update.sentence)

    def _on_error(self, engine: IRecognitionEngine, event: EngineErrorEvent) -> None:
        if engine is not self._engine:
            logger.debug("stale_error_ignored", kind=event.kind)
            return

        category = classify_engine_error(event.kind)

        if category == ErrorCategory.TRANSIENT_NO_SIGNAL:
            logger.debug("engine_no_speech")
            return

        if category == ErrorCategory.USER_ABORTED:
            if not self.is_active:
                # Confirmation of our own stop(), end already reported
                logger.debug("engine_abort_confirmed")
                return

            # Clean stop - no auto-restart on the following end callback
            self._state = SessionState.INACTIVE
            self._cancel_watchdog()
            logger.info("engine_aborted")
            self.notify(DetectorEvent.END)
            return

        logger.warning("engine_error", kind=event.kind, message=event.message)
        self.notify(DetectorEvent.ERROR, event)

    def _on_end(self, engine: IRecognitionEngine) -> None:
        if engine is not self._engine:
            logger.debug("stale_end_ignored")
            return

        if self.is_active:
            # Engine ended on its own (or watchdog) - restart
            self._restart_engine()
        else:
            logger.debug("engine_ended")

    def _on_watchdog_timeout(self) -> None:
        if not self.is_active or self._engine is None:
            return

        logger.warning("engine_stalled_forcing_stop", interval=self._config.watchdog_interval)
        if not self._call_engine(self._engine, 'stop'):
            # Handle refused to stop, its end callback will never come
            self._restart_engine()
