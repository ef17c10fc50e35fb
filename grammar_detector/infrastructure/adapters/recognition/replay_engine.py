"""
Replay engine - plays a scripted hypothesis stream through the engine port.
Engine handles from one source share the cursor, so a restarted handle
continues the stream where the previous one stopped.
"""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
import structlog

from grammar_detector.core.exceptions import ABORTED, ConfigurationError
from grammar_detector.core.models import EngineErrorEvent, HypothesisResult, single
from grammar_detector.core.ports.i_recognition_engine import IRecognitionEngine

logger = structlog.get_logger()


@dataclass(frozen=True)
class ReplayStep:
    """One scripted engine callback, delivered `delay` seconds after the previous one."""
    delay: float = 0.0
    results: Tuple[HypothesisResult, ...] = field(default_factory=tuple)
    error: Optional[EngineErrorEvent] = None
    end: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReplayStep":
        delay = float(data.get('delay', 0.0))
        if delay < 0:
            raise ConfigurationError(f"Replay step delay must be >= 0, got {delay}")

        if 'say' in data:
            result = single(
                str(data['say']),
                confidence=float(data.get('confidence', 1.0)),
                is_final=bool(data.get('is_final', False))
            )
            return cls(delay=delay, results=(result,))

        if 'error' in data:
            error = data['error'] or {}
            return cls(delay=delay, error=EngineErrorEvent(
                kind=str(error.get('kind', 'unknown')),
                message=str(error.get('message', ''))
            ))

        if data.get('end'):
            return cls(delay=delay, end=True)

        results = tuple(HypothesisResult.from_dict(r) for r in data.get('results', []))
        if not results:
            raise ConfigurationError(f"Replay step needs say/results/error/end: {data!r}")
        return cls(delay=delay, results=results)


class ReplayTranscriptSource:
    """Shared, finite stream of scripted steps (the 'live audio')."""

    def __init__(self, steps: List[ReplayStep], speed: float = 1.0):
        """
        Args:
            steps: Scripted steps in order
            speed: Playback speed multiplier (2.0 = twice as fast)
        """
        if speed <= 0:
            raise ConfigurationError("Replay speed must be > 0")

        self.steps = list(steps)
        self.speed = speed
        self._cursor = 0
        self.finished = asyncio.Event()
        self.engines_created = 0

    @classmethod
    def from_file(cls, path: str, speed: float = 1.0) -> "ReplayTranscriptSource":
        """Load steps from a YAML script ({steps: [...]})."""
        script_path = Path(path)
        if not script_path.exists():
            raise ConfigurationError(f"Replay script not found: {script_path}")

        try:
            with open(script_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in replay script: {e}") from e

        steps = [ReplayStep.from_dict(step) for step in data.get('steps', [])]
        logger.info("replay_script_loaded", path=str(script_path), steps=len(steps))
        return cls(steps, speed=speed)

    @property
    def remaining(self) -> int:
        return len(self.steps) - self._cursor

    def peek(self) -> Optional[ReplayStep]:
        if self._cursor >= len(self.steps):
            return None
        return self.steps[self._cursor]

    def advance(self) -> None:
        self._cursor += 1
        if self._cursor >= len(self.steps):
            self.finished.set()

    def create_engine(self) -> "ReplayRecognitionEngine":
        """EngineFactory - fresh handle over the shared cursor."""
        self.engines_created += 1
        return ReplayRecognitionEngine(self)


class ReplayRecognitionEngine(IRecognitionEngine):
    """Engine handle driven by a ReplayTranscriptSource on the asyncio loop."""

    def __init__(self, source: ReplayTranscriptSource):
        super().__init__()
        self.source = source
        self._task: Optional[asyncio.Task] = None
        self._ended = False

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self._task is not None:
            raise RuntimeError("Replay engine already started")

        if not self.source.steps:
            self.source.finished.set()

        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug("replay_engine_started", remaining=self.source.remaining)

    def stop(self):
        self._halt()
        self._schedule_end()

    def abort(self):
        self._halt()
        if self._ended:
            return
        loop = asyncio.get_running_loop()
        loop.call_soon(self._emit_error, EngineErrorEvent(kind=ABORTED, message="Recognition aborted"))
        self._schedule_end()

    def _halt(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def _schedule_end(self) -> None:
        if not self._ended:
            asyncio.get_running_loop().call_soon(self._finish)

    def _finish(self) -> None:
        if self._ended:
            return
        self._ended = True
        if self.on_end:
            self.on_end()

    def _emit_error(self, event: EngineErrorEvent) -> None:
        if self.on_error:
            self.on_error(event)

    async def _run(self) -> None:
        while True:
            step = self.source.peek()
            if step is None:
                # Stream exhausted - keep listening silently
                return

            await asyncio.sleep(step.delay / self.source.speed)
            self.source.advance()

            if step.end:
                logger.debug("replay_engine_self_end")
                self._finish()
                return

            if step.error is not None:
                self._emit_error(step.error)
                continue

            results = self._shape(step.results)
            if results and self.on_result:
                self.on_result(results)

            if not self.continuous and results and results[-1].is_final:
                self._finish()
                return

    def _shape(self, results: Tuple[HypothesisResult, ...]) -> List[HypothesisResult]:
        """Apply interim_results / max_alternatives like a real engine would."""
        if not self.interim_results and not results[-1].is_final:
            return []

        limit = max(1, self.max_alternatives)
        return [
            HypothesisResult(alternatives=tuple(result.alternatives[:limit]), is_final=result.is_final)
            for result in results
        ]

