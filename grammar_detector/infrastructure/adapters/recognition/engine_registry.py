# grammar_detector/infrastructure/adapters/recognition/engine_registry.py

"""
Engine registry - resolves the configured engine name to an EngineFactory.
Resolution happens once, in the container; the session never looks engines up.
"""

import asyncio
import os
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import structlog

from grammar_detector.core.exceptions import ConfigurationError, EngineUnavailableError
from grammar_detector.core.ports.i_recognition_engine import EngineFactory
from .replay_engine import ReplayTranscriptSource

logger = structlog.get_logger()


@dataclass
class EngineBinding:
    """Resolved engine capability"""
    name: str
    factory: EngineFactory
    finished: Optional[asyncio.Event] = None  # Set when a finite source is exhausted


def _bind_replay(user_config) -> EngineBinding:
    script = os.getenv("GRAMMAR_DETECTOR_REPLAY") or user_config.get('replay.script', 'config/replay/demo.yaml')
    speed = user_config.get('replay.speed', 1.0)

    try:
        source = ReplayTranscriptSource.from_file(script, speed=speed)
    except ConfigurationError as e:
        raise EngineUnavailableError(f"Replay engine unavailable: {e}") from e

    return EngineBinding(name="replay", factory=source.create_engine, finished=source.finished)


ENGINE_BINDERS: Dict[str, Callable[..., EngineBinding]] = {
    'replay': _bind_replay,
}


def resolve_engine(name: str, user_config) -> EngineBinding:
    """
    Resolve engine by name.

    Raises:
        EngineUnavailableError: Unknown engine or the host cannot provide it
    """
    binder = ENGINE_BINDERS.get(name)
    if binder is None:
        raise EngineUnavailableError(
            f"Transcription engine '{name}' is not available (known: {sorted(ENGINE_BINDERS)})"
        )

    binding = binder(user_config)
    logger.info("engine_resolved", engine=name)
    return binding
