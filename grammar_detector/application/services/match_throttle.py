# grammar_detector/application/services/match_throttle.py

"""Match Throttle - cooldown gate in front of the application callback"""

import time
from typing import Callable, Dict, Optional
import structlog

from grammar_detector.core.events import DetectorEvent, EventEmitter, Subscription
from grammar_detector.core.models import Sentence

logger = structlog.get_logger()

DEFAULT_COOLDOWN = 30.0


class MatchThrottle:
    """
    Delivers at most one match per cooldown window.

    The first match is always accepted; later ones only once
    `elapsed >= cooldown` since the last accepted one.
    """

    def __init__(
            self,
            on_match: Callable[..., None],
            cooldown: float = DEFAULT_COOLDOWN,
            include_finality: bool = False,
            clock: Callable[[], float] = time.monotonic
    ):
        """
        Args:
            on_match: Application callback, on_match(value) or on_match(value, is_final)
            cooldown: Minimum seconds between two accepted matches
            include_finality: Pass is_final as second argument
            clock: Monotonic clock in seconds
        """
        if cooldown < 0:
            raise ValueError("cooldown must be >= 0")

        self.on_match = on_match
        self.cooldown = cooldown
        self.include_finality = include_finality
        self._clock = clock
        self._last_accepted: Optional[float] = None
        self._subscription: Optional[Subscription] = None
        self._emitter: Optional[EventEmitter] = None

        # Statistics
        self.accepted = 0
        self.discarded = 0

        logger.debug("match_throttle_initialized", cooldown=cooldown, include_finality=include_finality)

    def attach(self, emitter: EventEmitter) -> Subscription:
        """Subscribe to `match` notifications of a session."""
        self.detach()
        self._emitter = emitter
        self._subscription = emitter.on(DetectorEvent.MATCH, self.handle_match)
        return self._subscription

    def detach(self) -> None:
        if self._emitter is not None and self._subscription is not None:
            self._emitter.off(self._subscription)
        self._emitter = None
        self._subscription = None

    def handle_match(self, sentence: Sentence) -> bool:
        """Gate one match notification. Returns True when delivered."""
        now = self._clock()

        if self._last_accepted is not None and (now - self._last_accepted) < self.cooldown:
            self.discarded += 1
            logger.debug(
                "match_throttled",
                value=sentence.value[:50],
                remaining=round(self.cooldown - (now - self._last_accepted), 2)
            )
            return False

        self._last_accepted = now
        self.accepted += 1
        logger.info("match_accepted", value=sentence.value[:100], total=self.accepted)

        if self.include_finality:
            self.on_match(sentence.value, sentence.is_final)
        else:
            self.on_match(sentence.value)
        return True

    def reset(self) -> None:
        """Forget the last accepted timestamp (next match passes)."""
        self._last_accepted = None

    def get_stats(self) -> Dict:
        return {
            'accepted': self.accepted,
            'discarded': self.discarded,
            'cooldown': self.cooldown
        }
