"""CLI interface - live view of the detector"""

import asyncio
from typing import Optional
import structlog

from grammar_detector.application.services.recognition_session import RecognitionSession
from grammar_detector.core.events import DetectorEvent
from grammar_detector.core.models import EngineErrorEvent, Sentence

logger = structlog.get_logger()

HIGHLIGHT_ON = "\033[1;33m"
HIGHLIGHT_OFF = "\033[0m"


class ConsoleUI:
    """Clean command-line view: state, live sentence, matched sentences, totals"""

    def __init__(
            self,
            session: RecognitionSession,
            user_config,
            finished: Optional[asyncio.Event] = None,
            grace_period: float = 1.0
    ):
        self.session = session
        self.user_config = user_config
        self.finished = finished
        self.grace_period = grace_period
        self.phrases = user_config.get('grammar.phrases', [])

        self.matched_sentences = 0
        self.total_notified = 0
        self.history: list = []
        self._subscriptions = []

        logger.info("console_ui_initialized", phrases=len(self.phrases))

    async def run(self):
        """Main UI loop"""
        self._print_header()
        self._bind()
        self.session.start()

        try:
            await self._wait_until_done()
        finally:
            self.session.stop()
            # Nech doběhnout aborted/end callbacky
            await asyncio.sleep(0.05)
            self._unbind()
            self._print_summary()

    async def _wait_until_done(self):
        if self.finished is None:
            await asyncio.Event().wait()  # Until interrupted
            return

        await self.finished.wait()
        await asyncio.sleep(self.grace_period)

    def _bind(self):
        self._subscriptions = [
            self.session.on(DetectorEvent.START, self._on_start),
            self.session.on(DetectorEvent.END, self._on_end),
            self.session.on(DetectorEvent.ERROR, self._on_error),
            self.session.on(DetectorEvent.SENTENCE, self._on_sentence),
        ]

    def _unbind(self):
        for subscription in self._subscriptions:
            self.session.off(subscription)
        self._subscriptions = []

    def _print_header(self):
        print("\n" + "═"*60)
        print("  🎤  Grammar Detector".center(60))
        print("═"*60)
        print("\n  🔎 Listening for:")
        for phrase in self.phrases:
            print(f"     • {phrase}")
        print("  🔇 Press Ctrl+C to exit\n")
        print("═"*60 + "\n")

    def _print_summary(self):
        print("\n" + "─"*60)
        print(f"  ✅ Matched sentences: {self.matched_sentences}")
        print(f"  🔔 Notifications delivered: {self.total_notified}")
        print("─"*60 + "\n")

    def _highlight(self, text: str) -> str:
        return self.session.config.pattern.highlight(text, HIGHLIGHT_ON, HIGHLIGHT_OFF)

    # ========================================
    # SESSION EVENTS
    # ========================================

    def _on_start(self, _payload):
        print("🟢 Active")

    def _on_end(self, _payload):
        print("\n🔴 Inactive")

    def _on_error(self, event: EngineErrorEvent):
        logger.error("recognition_error", kind=event.kind, message=event.message)
        print(f"\n⚠️  Engine error: {event.kind} {event.message}".rstrip())

    def _on_sentence(self, sentence: Sentence):
        if not sentence.is_final:
            # Live (interim) sentence
            print(f"\r🗣️  {self._highlight(sentence.value)}\033[K", end="", flush=True)
            return

        # Reset live line
        print("\r\033[K", end="")

        if not sentence.matched:
            return

        self.matched_sentences += 1
        self.history.insert(0, sentence.value)
        print(f"✨ [{self.matched_sentences}] {self._highlight(sentence.value)}")

    def on_accepted_match(self, value: str, is_final: Optional[bool] = None):
        """Called by the throttle for every delivered match."""
        self.total_notified += 1
        suffix = "" if is_final is None else (" (final)" if is_final else " (interim)")
        print(f"\n🔔 Match #{self.total_notified}: {value}{suffix}")
